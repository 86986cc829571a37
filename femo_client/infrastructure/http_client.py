"""
Authenticated HTTP client for the Femo API.

Every outbound request gets the current bearer token. A 401 on a first
attempt triggers exactly one refresh-and-resubmit cycle through the
:class:`~femo_client.application.auth_manager.AuthManager`; the caller only
ever sees the outcome of the final attempt. Nothing else is retried.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

import requests

from femo_client.application.auth_manager import AuthManager
from femo_client.application.exceptions import NoResponseError, ServerRejectedError, UnauthenticatedError
from femo_client.config import settings
from femo_client.infrastructure import log_utils

AUTHORIZATION_HEADER = "Authorization"
MAX_REFRESH_RETRIES = 1


def bearer(token: str) -> str:
    return f"Bearer {token}"


@dataclass(frozen=True)
class RequestAttempt:
    """A prepared request paired with how many times it has been resubmitted.

    Attempts are immutable: :meth:`retried` returns a new attempt carrying a
    copy of the request, so concurrent requests never share retry state.
    """

    request: requests.PreparedRequest
    attempt: int = 0

    @property
    def is_retry(self) -> bool:
        return self.attempt > 0

    def retried(self, access_token: str) -> "RequestAttempt":
        prepared = self.request.copy()
        prepared.headers[AUTHORIZATION_HEADER] = bearer(access_token)
        return RequestAttempt(request=prepared, attempt=self.attempt + 1)


class AuthenticatedHttpClient:
    """Issues API calls with authentication attached and 401 recovery."""

    def __init__(
        self,
        auth: AuthManager,
        *,
        transport: Optional[requests.Session] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> None:
        self._auth = auth
        self._http = transport or requests.Session()
        self.base_url = (base_url or auth.base_url or settings.api_base_url).rstrip("/")
        self.timeout = timeout or settings.FEMO_REQUEST_TIMEOUT

    @property
    def auth(self) -> AuthManager:
        return self._auth

    def _url(self, path: str) -> str:
        if path.startswith("http://") or path.startswith("https://"):
            return path

        normalized = path if path.startswith("/") else f"/{path}"
        return f"{self.base_url}{normalized}"

    # ------------------------------------------------------------------
    # Request path
    # ------------------------------------------------------------------
    def build_request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        json: Any = None,
        data: Any = None,
        files: Any = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> RequestAttempt:
        """Prepare a first attempt, attaching the bearer token when one exists."""

        request = requests.Request(
            method=method.upper(),
            url=self._url(path),
            params=params,
            json=json,
            data=data,
            files=files,
            headers=dict(headers or {}),
        )
        prepared = self._http.prepare_request(request)

        token = self._auth.access_token
        if token:
            prepared.headers[AUTHORIZATION_HEADER] = bearer(token)
        return RequestAttempt(request=prepared)

    # ------------------------------------------------------------------
    # Response path
    # ------------------------------------------------------------------
    def request(self, method: str, path: str, **kwargs: Any) -> requests.Response:
        """Send a request and return the successful response.

        Raises :class:`ServerRejectedError` for non-2xx answers,
        :class:`UnauthenticatedError` for an unrecovered 401,
        :class:`RefreshFailedError` when the refresh itself failed, and
        :class:`NoResponseError` when nothing came back.
        """
        return self.send(self.build_request(method, path, **kwargs))

    def send(self, attempt: RequestAttempt) -> requests.Response:
        response = self._dispatch(attempt)

        if response.status_code == 401:
            return self._recover_unauthorized(attempt, response)
        if not response.ok:
            raise ServerRejectedError.from_response(response)
        return response

    def _dispatch(self, attempt: RequestAttempt) -> requests.Response:
        prepared = attempt.request
        log_utils.debug(f"{prepared.method} {prepared.url} (attempt {attempt.attempt + 1})")
        try:
            env = self._http.merge_environment_settings(prepared.url, {}, None, None, None)
            return self._http.send(prepared, timeout=self.timeout, allow_redirects=True, **env)
        except requests.exceptions.RequestException as exc:
            log_utils.error(f"{prepared.method} {prepared.url} got no response: {exc!r}")
            raise NoResponseError() from exc

    def _recover_unauthorized(self, attempt: RequestAttempt, response: requests.Response) -> requests.Response:
        failure = UnauthenticatedError.from_response(response, default_message="Unauthorized")
        label = f"{attempt.request.method} {attempt.request.url}"

        if attempt.attempt >= MAX_REFRESH_RETRIES:
            log_utils.warn(f"{label} still unauthorized after token refresh; giving up.")
            raise failure

        if self._auth.mock_token_active:
            log_utils.warn(f"{label} returned 401 with the mock access token; skipping refresh.")
            raise failure

        current = self._auth.access_token
        if current and attempt.request.headers.get(AUTHORIZATION_HEADER) != bearer(current):
            log_utils.info(f"{label} was sent with a superseded access token; resubmitting with the current one.")
            return self.send(attempt.retried(current))

        if not self._auth.refresh_token:
            log_utils.info(f"{label} returned 401 and no refresh token is stored.")
            raise failure

        try:
            session = self._auth.refresh_access_token()
        except UnauthenticatedError:
            # Session ended or lost its refresh token before the refresh completed.
            raise failure from None

        log_utils.info(f"Resubmitting {label} with refreshed access token.")
        return self.send(attempt.retried(session.access_token))

    # ------------------------------------------------------------------
    # JSON helpers
    # ------------------------------------------------------------------
    @staticmethod
    def decode(response: requests.Response) -> Any:
        if response.status_code == 204 or not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            return response.text

    def get(self, path: str, params: Optional[Dict[str, Any]] = None, **kwargs: Any) -> Any:
        return self.decode(self.request("GET", path, params=params, **kwargs))

    def post(self, path: str, json: Any = None, **kwargs: Any) -> Any:
        return self.decode(self.request("POST", path, json=json, **kwargs))

    def put(self, path: str, json: Any = None, **kwargs: Any) -> Any:
        return self.decode(self.request("PUT", path, json=json, **kwargs))

    def patch(self, path: str, json: Any = None, **kwargs: Any) -> Any:
        return self.decode(self.request("PATCH", path, json=json, **kwargs))

    def delete(self, path: str, **kwargs: Any) -> Any:
        return self.decode(self.request("DELETE", path, **kwargs))


__all__ = ["AuthenticatedHttpClient", "MAX_REFRESH_RETRIES", "RequestAttempt", "bearer"]
