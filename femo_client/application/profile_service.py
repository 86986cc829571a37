"""Keeps the cached account in sync with the backend."""

from __future__ import annotations

from typing import Any, Dict, Optional

from pydantic import ValidationError as PydanticValidationError

from femo_client.application.auth_manager import AuthManager
from femo_client.application.exceptions import ClientValidationError, FemoApiError, ServerRejectedError
from femo_client.domain.entities import User
from femo_client.infrastructure.http_client import AuthenticatedHttpClient
from femo_client.infrastructure.log_utils import log_message

CURRENT_USER_PATH = "/auth/me"


class ProfileService:
    def __init__(self, client: AuthenticatedHttpClient, auth: Optional[AuthManager] = None) -> None:
        self._client = client
        self._auth = auth or client.auth

    def refresh_user(self) -> User:
        """Fetch ``/auth/me`` and cache the result in the session."""

        try:
            payload = self._client.get(CURRENT_USER_PATH)
        except FemoApiError as exc:
            log_message(f"Refreshing current user failed: {exc.message}", "ERROR")
            raise

        raw_user = payload.get("user", payload) if isinstance(payload, dict) else payload
        try:
            user = User.model_validate(raw_user)
        except PydanticValidationError as exc:
            raise ServerRejectedError("Malformed user payload from server", code="BAD_RESPONSE") from exc

        self._auth.update_cached_user(user)
        return user

    def update_profile(self, updates: Dict[str, Any]) -> Optional[User]:
        """Apply ``updates`` locally first, then persist them to the backend.

        A backend failure is logged and the optimistic local copy is kept.
        """

        session = self._auth.session
        if session is None or session.user is None:
            log_message("Profile update skipped: no cached user.", "WARN")
            return None

        merged = {**session.user.to_storage(), **updates}
        try:
            updated = User.model_validate(merged)
        except PydanticValidationError as exc:
            problems = [str(err.get("msg")) for err in exc.errors()]
            raise ClientValidationError("Profile update produced an invalid user", field="profile", problems=problems) from exc

        self._auth.update_cached_user(updated)

        try:
            self._client.patch(f"/users/{updated.id}", json=updates)
        except FemoApiError as exc:
            log_message(f"Failed to sync profile update to backend: {exc.message}", "ERROR")
        return updated


__all__ = ["ProfileService"]
