"""Domain entities for sessions, users and auth API payloads."""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class User(BaseModel):
    """Account as returned by the backend.

    Unknown fields are kept so a cached user round-trips without loss.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
        coerce_numbers_to_str=True,
    )

    id: str
    femo_id: Optional[int] = None
    femo_mail: Optional[str] = None
    email: Optional[str] = None
    username: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    avatar_url: Optional[str] = None
    mfa_enabled: bool = False
    is_email_verified: bool = False
    is_phone_verified: bool = False
    is_onboarding_completed: bool = False
    roles: List[str] = Field(default_factory=list)

    @property
    def display_name(self) -> str:
        full_name = " ".join(part for part in (self.first_name, self.last_name) if part)
        return full_name or self.username or self.femo_mail or self.email or self.id

    def to_storage(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class LoginResponse(BaseModel):
    """Body of ``/auth/login*`` and ``/auth/register`` responses."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    access_token: Optional[str] = None
    refresh_token: Optional[str] = None
    user: Optional[User] = None
    mfa_required: bool = Field(False, alias="mfaRequired")
    user_id: Optional[str] = Field(None, alias="userId")


class RefreshResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    access_token: str = Field(min_length=1)
    refresh_token: Optional[str] = None


class RegistrationRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    first_name: str
    last_name: str
    email: str
    password: str
    birthday: str
    gender: str
    country: str
    terms_accepted: bool = False
    privacy_accepted: bool = False


class _WizardModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


class RegistrationIdentity(_WizardModel):
    """Step 1 of the registration wizard."""

    first_name: str
    last_name: str
    birthday: str
    gender: str


class RegistrationCredentials(_WizardModel):
    """Step 2: the login email, password and consents."""

    email: str
    password: str
    confirm_password: str
    country: str
    terms_accepted: bool = False
    privacy_accepted: bool = False


class RegistrationContact(_WizardModel):
    """Step 3: the chosen Femo Mail name and an optional phone number."""

    femo_mail_name: str
    phone_country_code: Optional[str] = None
    phone_number: Optional[str] = None


class RegistrationStepResponse(_WizardModel):
    session_token: str = Field(min_length=1)


class RegistrationResult(_WizardModel):
    model_config = ConfigDict(coerce_numbers_to_str=True)

    success: bool = False
    user_id: Optional[str] = None
    femo_id: Optional[int] = None
    femo_mail: Optional[str] = None
    message: Optional[str] = None


class AvailabilityResponse(_WizardModel):
    available: bool
    message: Optional[str] = None


class FemoMailSuggestions(_WizardModel):
    suggestions: List[str] = Field(default_factory=list)


class ServerPasswordStrength(_WizardModel):
    score: int
    feedback: str = ""
    is_valid: bool = False


@dataclass(frozen=True)
class Session:
    """Credentials of the signed-in account.

    Immutable: a token refresh yields a new ``Session`` via ``with_access_token``.
    """

    access_token: str
    device_id: str
    refresh_token: Optional[str] = None
    user: Optional[User] = None

    def with_access_token(self, access_token: str, refresh_token: Optional[str] = None) -> "Session":
        return replace(
            self,
            access_token=access_token,
            refresh_token=refresh_token or self.refresh_token,
        )

    def with_user(self, user: Optional[User]) -> "Session":
        return replace(self, user=user)


class AuthEventKind(str, Enum):
    LOGGED_IN = "logged_in"
    TOKEN_REFRESHED = "token_refreshed"
    LOGGED_OUT = "logged_out"
    SESSION_EXPIRED = "session_expired"


@dataclass(frozen=True)
class AuthEvent:
    kind: AuthEventKind
    session: Optional[Session] = None
    error: Optional[BaseException] = None


__all__ = [
    "AuthEvent",
    "AuthEventKind",
    "AvailabilityResponse",
    "FemoMailSuggestions",
    "LoginResponse",
    "RefreshResponse",
    "RegistrationContact",
    "RegistrationCredentials",
    "RegistrationIdentity",
    "RegistrationRequest",
    "RegistrationResult",
    "RegistrationStepResponse",
    "ServerPasswordStrength",
    "Session",
    "User",
]
