"""Multi-step registration wizard against ``/auth/register/*``.

Every call goes out unauthenticated. Steps 1 and 2 hand back a short-lived
registration session token that the next step must send along with its data.
Step 3 creates the account; the caller signs in afterwards.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Type, TypeVar

import requests
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from femo_client.application.exceptions import (
    ClientValidationError,
    NoResponseError,
    ServerRejectedError,
    UnauthenticatedError,
)
from femo_client.config import settings
from femo_client.domain.entities import (
    AvailabilityResponse,
    FemoMailSuggestions,
    RegistrationContact,
    RegistrationCredentials,
    RegistrationIdentity,
    RegistrationResult,
    RegistrationStepResponse,
    ServerPasswordStrength,
)
from femo_client.domain.identifier import is_valid_femo_mail
from femo_client.domain.registration import credential_problems, femo_mail_name_problems, identity_problems
from femo_client.infrastructure.log_utils import log_message

STEP1_PATH = "/auth/register/step1"
STEP2_PATH = "/auth/register/step2"
STEP3_PATH = "/auth/register/step3"
FEMO_MAIL_SUGGESTIONS_PATH = "/auth/register/femo-mail-suggestions"
VALIDATE_FEMO_MAIL_PATH = "/auth/register/validate-femo-mail"
VALIDATE_EMAIL_PATH = "/auth/register/validate-email"
PASSWORD_STRENGTH_PATH = "/auth/register/check-password-strength"

ModelT = TypeVar("ModelT", bound=BaseModel)


class RegistrationService:
    def __init__(
        self,
        *,
        transport: Optional[requests.Session] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> None:
        self._http = transport or requests.Session()
        self.base_url = (base_url or settings.api_base_url).rstrip("/")
        self._timeout = timeout or settings.FEMO_REQUEST_TIMEOUT

    def _request(
        self,
        method: str,
        path: str,
        model: Type[ModelT],
        *,
        params: Optional[Dict[str, Any]] = None,
        json: Any = None,
    ) -> ModelT:
        try:
            response = self._http.request(
                method, f"{self.base_url}{path}", params=params, json=json, timeout=self._timeout
            )
        except requests.exceptions.RequestException as exc:
            log_message(f"{method} {path} got no response: {exc}", "ERROR")
            raise NoResponseError() from exc

        if response.status_code == 401:
            raise UnauthenticatedError.from_response(response)
        if not response.ok:
            raise ServerRejectedError.from_response(response)

        try:
            return model.model_validate(response.json())
        except (ValueError, PydanticValidationError) as exc:
            raise ServerRejectedError(
                f"Malformed response from {path}",
                code="BAD_RESPONSE",
                status_code=response.status_code,
                resp=response,
            ) from exc

    @staticmethod
    def _require(problems: List[str], message: str, field: str) -> None:
        if problems:
            raise ClientValidationError(message, field=field, problems=problems)

    @staticmethod
    def _require_token(session_token: str) -> None:
        if not session_token:
            raise ClientValidationError("Registration session is missing; start again at step 1", field="sessionToken")

    # ------------------------------------------------------------------
    # Wizard steps
    # ------------------------------------------------------------------
    def step1(self, identity: RegistrationIdentity) -> str:
        """Submit name, birthday and gender; returns the registration session token."""

        self._require(
            identity_problems(identity.first_name, identity.last_name, identity.birthday),
            "Identity details are incomplete",
            "identity",
        )
        result = self._request("POST", STEP1_PATH, RegistrationStepResponse, json=identity.model_dump(by_alias=True))
        log_message("Registration step 1 accepted.", "INFO")
        return result.session_token

    def step2(self, session_token: str, credentials: RegistrationCredentials) -> str:
        self._require_token(session_token)
        self._require(
            credential_problems(
                credentials.email,
                credentials.password,
                credentials.confirm_password,
                credentials.country,
                credentials.terms_accepted,
                credentials.privacy_accepted,
            ),
            "Account details are incomplete",
            "credentials",
        )
        payload = credentials.model_dump(by_alias=True)
        payload["email"] = credentials.email.strip()
        result = self._request(
            "POST", STEP2_PATH, RegistrationStepResponse, json={"sessionToken": session_token, "data": payload}
        )
        log_message("Registration step 2 accepted.", "INFO")
        return result.session_token

    def step3(self, session_token: str, contact: RegistrationContact) -> RegistrationResult:
        """Claim the Femo Mail name and create the account."""

        self._require_token(session_token)
        self._require(femo_mail_name_problems(contact.femo_mail_name), "Choose a valid Femo Mail name", "femoMailName")
        payload = contact.model_dump(by_alias=True, exclude_none=True)
        payload["femoMailName"] = contact.femo_mail_name.strip()
        result = self._request(
            "POST", STEP3_PATH, RegistrationResult, json={"sessionToken": session_token, "data": payload}
        )
        log_message(f"Registration finished for Femo Mail {result.femo_mail or payload['femoMailName']}.", "INFO")
        return result

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------
    def femo_mail_suggestions(self, username: str) -> List[str]:
        username = (username or "").strip()
        if not username:
            return []
        result = self._request(
            "GET", FEMO_MAIL_SUGGESTIONS_PATH, FemoMailSuggestions, params={"username": username}
        )
        return result.suggestions

    def validate_femo_mail(self, femo_mail_name: str) -> AvailabilityResponse:
        self._require(femo_mail_name_problems(femo_mail_name), "Choose a valid Femo Mail name", "femoMailName")
        return self._request(
            "GET",
            VALIDATE_FEMO_MAIL_PATH,
            AvailabilityResponse,
            params={"femoMailName": femo_mail_name.strip()},
        )

    def validate_email(self, email: str) -> AvailabilityResponse:
        email = (email or "").strip()
        if not is_valid_femo_mail(email):
            raise ClientValidationError("Enter a valid email address", field="email")
        return self._request("GET", VALIDATE_EMAIL_PATH, AvailabilityResponse, params={"email": email})

    def check_password_strength(self, password: str) -> ServerPasswordStrength:
        """Ask the backend to score ``password``; see ``validate_password`` for the local check."""

        if not password:
            raise ClientValidationError("Password is required", field="password")
        return self._request("POST", PASSWORD_STRENGTH_PATH, ServerPasswordStrength, json={"password": password})


__all__ = ["RegistrationService"]
