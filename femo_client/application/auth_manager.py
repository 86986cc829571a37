"""Owner of the client session: login flows, token refresh and logout.

The ``AuthManager`` is the only component that writes the session. The
authenticated HTTP client reads tokens from it and asks it to refresh; the
application shell listens to its events to decide where to navigate.
"""

from __future__ import annotations

import threading
from typing import Any, Callable, Dict, List, Optional

import requests
from pydantic import ValidationError as PydanticValidationError

from femo_client.application.exceptions import (
    ClientValidationError,
    FemoApiError,
    NoResponseError,
    RefreshFailedError,
    ServerRejectedError,
    UnauthenticatedError,
)
from femo_client.application.session_store import SessionStore
from femo_client.config import settings
from femo_client.domain.entities import (
    AuthEvent,
    AuthEventKind,
    LoginResponse,
    RefreshResponse,
    RegistrationRequest,
    Session,
    User,
)
from femo_client.domain.identifier import (
    IdentifierType,
    detect_identifier_type,
    is_valid_femo_mail,
    sanitize_identifier,
)
from femo_client.domain.registration import account_problems
from femo_client.infrastructure.log_utils import log_message, redact_token
from femo_client.infrastructure.single_flight import SingleFlight

AuthListener = Callable[[AuthEvent], None]

DEVICE_ID_HEADER = "x-device-id"
REFRESH_TOKEN_HEADER = "x-refresh-token"

LOGIN_IDENTIFIER_PATH = "/auth/login/identifier"
LOGIN_EMAIL_PATH = "/auth/login"
LOGIN_MFA_PATH = "/auth/login/mfa"
REGISTER_PATH = "/auth/register"
REFRESH_PATH = "/auth/refresh"
LOGOUT_PATH = "/auth/logout"
FORGOT_PASSWORD_PATH = "/auth/forgot-password"


class AuthManager:
    """Authentication state machine backed by a :class:`SessionStore`."""

    def __init__(
        self,
        session_store: SessionStore,
        *,
        transport: Optional[requests.Session] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        mock_token: Optional[str] = None,
        single_flight: Optional[bool] = None,
    ) -> None:
        self._store = session_store
        self._http = transport or requests.Session()
        self.base_url = (base_url or settings.api_base_url).rstrip("/")
        self._timeout = timeout or settings.FEMO_REQUEST_TIMEOUT
        self._mock_token = (
            mock_token if mock_token is not None else settings.FEMO_MOCK_ACCESS_TOKEN.get_secret_value()
        )

        use_single_flight = settings.FEMO_REFRESH_SINGLE_FLIGHT if single_flight is None else single_flight
        self._refresh_flight: Optional[SingleFlight[Session]] = (
            SingleFlight("token refresh") if use_single_flight else None
        )

        self._state_lock = threading.RLock()
        self._listeners: List[AuthListener] = []
        self._session: Optional[Session] = session_store.load()
        if self._session is not None:
            log_message("Restored stored session.", "INFO")

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------
    @property
    def session(self) -> Optional[Session]:
        with self._state_lock:
            return self._session

    @property
    def access_token(self) -> Optional[str]:
        session = self.session
        return session.access_token if session else None

    @property
    def refresh_token(self) -> Optional[str]:
        session = self.session
        return session.refresh_token if session else None

    @property
    def is_authenticated(self) -> bool:
        return self.session is not None

    @property
    def mock_token_active(self) -> bool:
        """True while the local testing sentinel is the active access token."""
        return bool(self._mock_token) and self.access_token == self._mock_token

    @property
    def single_flight_enabled(self) -> bool:
        return self._refresh_flight is not None

    def device_id(self) -> str:
        return self._store.device_id()

    def update_cached_user(self, user: User) -> None:
        with self._state_lock:
            if self._session is None:
                return
            self._store.update_user(user)
            self._session = self._session.with_user(user)

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------
    def subscribe(self, listener: AuthListener) -> Callable[[], None]:
        """Register ``listener`` for auth events; returns an unsubscribe callable."""

        with self._state_lock:
            self._listeners.append(listener)

        def _unsubscribe() -> None:
            with self._state_lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return _unsubscribe

    def _emit(self, event: AuthEvent) -> None:
        with self._state_lock:
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(event)
            except Exception as exc:
                log_message(f"Auth listener failed on {event.kind.value}: {exc}", "ERROR", exc_info=True)

    # ------------------------------------------------------------------
    # Transport helpers
    # ------------------------------------------------------------------
    def _url(self, path: str) -> str:
        return f"{self.base_url}{path}"

    def _post(self, path: str, *, json: Any = None, headers: Optional[Dict[str, str]] = None) -> requests.Response:
        try:
            response = self._http.post(self._url(path), json=json, headers=headers, timeout=self._timeout)
        except requests.exceptions.RequestException as exc:
            log_message(f"POST {path} got no response: {exc}", "ERROR")
            raise NoResponseError() from exc

        if response.status_code == 401:
            raise UnauthenticatedError.from_response(response)
        if not response.ok:
            raise ServerRejectedError.from_response(response)
        return response

    @staticmethod
    def _parse_login(response: requests.Response) -> LoginResponse:
        try:
            return LoginResponse.model_validate(response.json())
        except (ValueError, PydanticValidationError) as exc:
            raise ServerRejectedError(
                "Malformed login response from server",
                code="BAD_RESPONSE",
                status_code=response.status_code,
                resp=response,
            ) from exc

    def _complete_login(self, login: LoginResponse) -> LoginResponse:
        if login.mfa_required:
            log_message(f"Login requires MFA for user {login.user_id}.", "INFO")
            return login

        if not login.access_token:
            raise ServerRejectedError("Login response did not include an access token", code="BAD_RESPONSE")

        with self._state_lock:
            self._session = self._store.establish(login.access_token, login.refresh_token, login.user)
            session = self._session

        who = login.user.display_name if login.user else "unknown user"
        log_message(f"Signed in as {who}.", "INFO")
        self._emit(AuthEvent(AuthEventKind.LOGGED_IN, session=session))
        return login

    # ------------------------------------------------------------------
    # Login flows
    # ------------------------------------------------------------------
    def login_with_identifier(self, identifier: str, password: str) -> LoginResponse:
        """Sign in with a Femo ID or Femo Mail.

        Returns the parsed response. When ``mfa_required`` is set no session is
        established; call :meth:`verify_mfa` with ``user_id`` and the code.
        """

        if detect_identifier_type(identifier) is IdentifierType.INVALID:
            raise ClientValidationError(
                "Enter a valid Femo ID or Femo Mail",
                field="identifier",
                problems=["Identifier must be all digits or an email address"],
            )
        if not password:
            raise ClientValidationError("Password is required", field="password")

        response = self._post(
            LOGIN_IDENTIFIER_PATH,
            json={"identifier": sanitize_identifier(identifier), "password": password},
            headers={DEVICE_ID_HEADER: self.device_id()},
        )
        return self._complete_login(self._parse_login(response))

    def login(self, email: str, password: str) -> LoginResponse:
        """Legacy email/password login."""

        email = (email or "").strip()
        if not is_valid_femo_mail(email):
            raise ClientValidationError("Enter a valid email address", field="email")
        if not password:
            raise ClientValidationError("Password is required", field="password")

        response = self._post(
            LOGIN_EMAIL_PATH,
            json={"email": email, "password": password},
            headers={DEVICE_ID_HEADER: self.device_id()},
        )
        return self._complete_login(self._parse_login(response))

    def verify_mfa(self, user_id: str, token: str) -> LoginResponse:
        if not user_id:
            raise ClientValidationError("MFA verification requires a user id", field="userId")
        token = (token or "").strip()
        if not token:
            raise ClientValidationError("Enter the verification code", field="token")

        response = self._post(
            LOGIN_MFA_PATH,
            json={"userId": user_id, "token": token},
            headers={DEVICE_ID_HEADER: self.device_id()},
        )
        return self._complete_login(self._parse_login(response))

    def register(self, request: RegistrationRequest) -> LoginResponse:
        problems = account_problems(
            request.email, request.password, request.terms_accepted, request.privacy_accepted
        )
        if problems:
            raise ClientValidationError("Registration details are incomplete", field="registration", problems=problems)

        response = self._post(REGISTER_PATH, json=request.model_dump(by_alias=True))
        return self._complete_login(self._parse_login(response))

    def request_password_reset(self, email: str) -> None:
        email = (email or "").strip()
        if not is_valid_femo_mail(email):
            raise ClientValidationError("Enter a valid email address", field="email")
        self._post(FORGOT_PASSWORD_PATH, json={"email": email})
        log_message("Password reset requested.", "INFO")

    # ------------------------------------------------------------------
    # Refresh
    # ------------------------------------------------------------------
    def refresh_access_token(self) -> Session:
        """Exchange the refresh token for a new access token.

        On failure the whole session is cleared, ``SESSION_EXPIRED`` is
        emitted and :class:`RefreshFailedError` is raised. Raises
        :class:`UnauthenticatedError` without any network call when there is
        no refresh token.
        """

        if self._refresh_flight is None:
            return self._refresh_once()
        return self._refresh_flight.do(self._refresh_once)

    def _refresh_once(self) -> Session:
        refresh_token = self.refresh_token
        if not refresh_token:
            raise UnauthenticatedError("No refresh token available")

        log_message(f"Refreshing access token with refresh token {redact_token(refresh_token)}.", "INFO")
        try:
            tokens = self._request_new_access_token(refresh_token)
        except RefreshFailedError as exc:
            self._expire(exc)
            raise

        with self._state_lock:
            current = self._session
            if current is None:
                log_message("Session ended while refreshing; discarding the new tokens.", "WARN")
                raise UnauthenticatedError("Session ended while the access token was being refreshed")
            if current.refresh_token != refresh_token:
                # another refresh rotated the tokens first; its result wins
                log_message("Refresh token rotated during refresh; keeping the newer session.", "INFO")
                return current
            self._session = self._store.update_access_token(tokens.access_token, tokens.refresh_token)
            session = self._session

        log_message(f"Access token refreshed ({redact_token(tokens.access_token)}).", "INFO")
        self._emit(AuthEvent(AuthEventKind.TOKEN_REFRESHED, session=session))
        return session

    def _request_new_access_token(self, refresh_token: str) -> RefreshResponse:
        try:
            response = self._http.post(
                self._url(REFRESH_PATH),
                headers={REFRESH_TOKEN_HEADER: refresh_token},
                timeout=self._timeout,
            )
        except requests.exceptions.RequestException as exc:
            raise RefreshFailedError(f"Token refresh got no response: {exc}") from exc

        if not response.ok:
            raise RefreshFailedError.from_response(response, default_message="Token refresh was rejected")

        try:
            return RefreshResponse.model_validate(response.json())
        except (ValueError, PydanticValidationError) as exc:
            raise RefreshFailedError(
                "Token refresh returned no access token",
                status_code=response.status_code,
                resp=response,
            ) from exc

    def _expire(self, error: FemoApiError) -> None:
        log_message(f"Token refresh failed ({error.message}); clearing session.", "WARN")
        with self._state_lock:
            self._store.clear()
            self._session = None
        self._emit(AuthEvent(AuthEventKind.SESSION_EXPIRED, error=error))

    # ------------------------------------------------------------------
    # Logout
    # ------------------------------------------------------------------
    def logout(self) -> None:
        """Best-effort server logout; the local session is always cleared."""

        session = self.session
        headers = {"Authorization": f"Bearer {session.access_token}"} if session else None
        try:
            self._post(LOGOUT_PATH, headers=headers)
        except FemoApiError as exc:
            log_message(f"Logout request failed, clearing local session anyway: {exc.message}", "WARN")
        finally:
            with self._state_lock:
                self._store.clear()
                self._session = None
            self._emit(AuthEvent(AuthEventKind.LOGGED_OUT))


__all__ = ["AuthListener", "AuthManager", "DEVICE_ID_HEADER", "REFRESH_TOKEN_HEADER"]
