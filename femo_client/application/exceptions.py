"""Error taxonomy for calls made against the Femo API."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List, Optional

import requests

DEFAULT_ERROR_MESSAGE = "An error occurred"
NO_RESPONSE_MESSAGE = "No response from server"


def _extract_message(payload: Any) -> Optional[str]:
    if not isinstance(payload, dict):
        return None
    message = payload.get("message") or payload.get("error")
    if isinstance(message, list):
        parts = [str(part) for part in message if part]
        return "; ".join(parts) or None
    if message:
        return str(message)
    return None


def _extract_code(payload: Any) -> Optional[str]:
    if not isinstance(payload, dict):
        return None
    code = payload.get("code")
    return str(code) if code is not None else None


class FemoApiError(RuntimeError):
    """Base exception for every failure surfaced by the client."""

    default_code: Optional[str] = None

    def __init__(
        self,
        message: str,
        *,
        code: Optional[str] = None,
        status_code: Optional[int] = None,
        resp: Optional[requests.Response] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        self.status_code = status_code
        self.resp = resp

    @classmethod
    def from_response(cls, resp: requests.Response, *, default_message: str = DEFAULT_ERROR_MESSAGE):
        """Build an error that keeps the server's message, code and status."""
        try:
            payload = resp.json()
        except ValueError:
            payload = None
        return cls(
            _extract_message(payload) or default_message,
            code=_extract_code(payload),
            status_code=resp.status_code,
            resp=resp,
        )


class ServerRejectedError(FemoApiError):
    """The backend answered with a non-2xx status."""


class UnauthenticatedError(ServerRejectedError):
    """A 401 the client could not (or must not) recover from."""

    default_code = "UNAUTHENTICATED"


class RefreshFailedError(FemoApiError):
    """The refresh call failed; the session has been wiped."""

    default_code = "REFRESH_FAILED"


class NoResponseError(FemoApiError):
    """The request never produced a response (DNS, connect, timeout...)."""

    default_code = "NO_RESPONSE"

    def __init__(self, message: str = NO_RESPONSE_MESSAGE, **kwargs: Any) -> None:
        super().__init__(message, **kwargs)


class ClientValidationError(FemoApiError):
    """Input rejected locally; never reaches the network."""

    default_code = "VALIDATION_ERROR"

    def __init__(self, message: str, *, field: Optional[str] = None, problems: Optional[List[str]] = None) -> None:
        super().__init__(message)
        self.field = field
        self.problems = list(problems or [])


@dataclass(frozen=True)
class ErrorInfo:
    message: str
    code: Optional[str] = None
    status: Optional[int] = None


def describe_error(exc: BaseException) -> ErrorInfo:
    """Reduce any exception to the message/code/status a caller can display."""

    if isinstance(exc, FemoApiError):
        return ErrorInfo(message=exc.message, code=exc.code, status=exc.status_code)
    if isinstance(exc, requests.exceptions.RequestException):
        return ErrorInfo(message=NO_RESPONSE_MESSAGE, code="NO_RESPONSE")
    return ErrorInfo(message=str(exc) or "An unknown error occurred", code="UNKNOWN_ERROR")


__all__ = [
    "ClientValidationError",
    "ErrorInfo",
    "FemoApiError",
    "NoResponseError",
    "RefreshFailedError",
    "ServerRejectedError",
    "UnauthenticatedError",
    "describe_error",
]
