"""Coalesce concurrent calls to the same operation into one execution."""

from __future__ import annotations

import threading
from concurrent.futures import Future
from typing import Callable, Generic, Optional, TypeVar

from femo_client.infrastructure import log_utils

T = TypeVar("T")


class SingleFlight(Generic[T]):
    """Run ``fn`` once for every caller that arrives while it is in flight.

    The first caller (the leader) executes ``fn``; callers arriving before it
    finishes block on a shared future and receive the same result or the
    same exception. Once the flight lands the next caller starts a new one.
    """

    def __init__(self, name: str = "operation") -> None:
        self._name = name
        self._lock = threading.Lock()
        self._inflight: Optional[Future] = None
        self._waiters = 0

    @property
    def waiters(self) -> int:
        """Number of followers currently blocked on the in-flight call."""
        with self._lock:
            return self._waiters

    @property
    def in_flight(self) -> bool:
        with self._lock:
            return self._inflight is not None

    def do(self, fn: Callable[[], T]) -> T:
        with self._lock:
            future = self._inflight
            leader = future is None
            if leader:
                future = Future()
                self._inflight = future
            else:
                self._waiters += 1

        if not leader:
            log_utils.debug(f"Joining in-flight {self._name}.")
            try:
                return future.result()
            finally:
                with self._lock:
                    self._waiters -= 1

        try:
            result = fn()
        except BaseException as exc:
            future.set_exception(exc)
            raise
        else:
            future.set_result(result)
            return result
        finally:
            with self._lock:
                self._inflight = None


__all__ = ["SingleFlight"]
