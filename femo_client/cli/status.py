"""Health check command support for the femo CLI."""

from __future__ import annotations

from dataclasses import dataclass
from time import perf_counter
from typing import Callable, Iterable, List, Sequence

import requests

from femo_client.application.auth_manager import AuthManager

DEFAULT_TIMEOUT_SECONDS = 3.0


@dataclass
class CheckResult:
    """Represents a single dependency check outcome."""

    name: str
    ok: bool
    detail: str


def _format_duration(start: float) -> str:
    elapsed = perf_counter() - start
    if elapsed < 0.001:
        return "<1ms"
    return f"{int(elapsed * 1000)}ms"


def _format_exception(exc: Exception) -> str:
    message = str(exc).strip()
    if not message:
        message = exc.__class__.__name__
    return message.splitlines()[0]


def check_api(base_url: str, timeout: float = DEFAULT_TIMEOUT_SECONDS) -> CheckResult:
    """Any HTTP answer from the backend counts as reachable."""
    start = perf_counter()
    try:
        response = requests.get(base_url, timeout=timeout)
    except requests.exceptions.RequestException as exc:
        return CheckResult(name="API", ok=False, detail=_format_exception(exc))
    return CheckResult(name="API", ok=True, detail=f"HTTP {response.status_code} in {_format_duration(start)}")


def check_session(auth: AuthManager) -> CheckResult:
    session = auth.session
    if session is None:
        return CheckResult(name="Session", ok=False, detail="not signed in")
    if auth.mock_token_active:
        return CheckResult(name="Session", ok=True, detail="mock access token active")

    who = session.user.display_name if session.user else "unknown user"
    refresh = "refresh token stored" if session.refresh_token else "no refresh token"
    return CheckResult(name="Session", ok=True, detail=f"{who}, {refresh}")


def run_status_checks(
    auth: AuthManager,
    *,
    timeout: float = DEFAULT_TIMEOUT_SECONDS,
    checks: Sequence[Callable[[], CheckResult]] | None = None,
) -> List[CheckResult]:
    """Executes dependency checks, allowing override for testing."""

    if checks is None:
        checks = (
            lambda: check_api(auth.base_url, timeout),
            lambda: check_session(auth),
        )

    return [check() for check in checks]


def render_results(results: Iterable[CheckResult]) -> str:
    lines = []
    for result in results:
        status = "OK" if result.ok else "FAIL"
        lines.append(f"{result.name:<8} {status:<4} {result.detail}")
    return "\n".join(lines)
