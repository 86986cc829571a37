"""Top-level application shell: reacts to auth events with navigation."""

from __future__ import annotations

import threading
from typing import Callable, List, Optional

from femo_client.application.auth_manager import AuthManager
from femo_client.domain.entities import AuthEvent, AuthEventKind
from femo_client.domain.routes import ROOT_ROUTE, is_public_route, normalize_path
from femo_client.infrastructure.log_utils import log_message


class Navigator:
    """Tracks the current location and the navigation history."""

    def __init__(self, initial_path: str = ROOT_ROUTE) -> None:
        self._lock = threading.Lock()
        self._current = normalize_path(initial_path)
        self._history: List[str] = [self._current]

    @property
    def current_path(self) -> str:
        with self._lock:
            return self._current

    @property
    def history(self) -> List[str]:
        with self._lock:
            return list(self._history)

    def navigate(self, path: str) -> str:
        target = normalize_path(path)
        with self._lock:
            self._current = target
            self._history.append(target)
        return target


class AppShell:
    """Subscribes to the auth manager and sends expired sessions to ``/``.

    Navigation is skipped when the user is already on a public route (root,
    the ``/auth`` subtree, terms or privacy).
    """

    def __init__(
        self,
        auth: AuthManager,
        navigator: Optional[Navigator] = None,
        *,
        on_session_expired: Optional[Callable[[AuthEvent], None]] = None,
    ) -> None:
        self.auth = auth
        self.navigator = navigator or Navigator()
        self.on_session_expired = on_session_expired
        self._unsubscribe: Optional[Callable[[], None]] = auth.subscribe(self.handle_event)

    def handle_event(self, event: AuthEvent) -> None:
        if event.kind is not AuthEventKind.SESSION_EXPIRED:
            return

        current = self.navigator.current_path
        if is_public_route(current):
            log_message(f"Session expired on public route {current}; staying put.", "INFO")
        else:
            log_message(f"Session expired on {current}; returning to {ROOT_ROUTE}.", "WARN")
            self.navigator.navigate(ROOT_ROUTE)

        if self.on_session_expired is not None:
            self.on_session_expired(event)

    def close(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None


__all__ = ["AppShell", "Navigator"]
