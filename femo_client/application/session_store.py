"""Session persistence on top of a key-value store."""

from __future__ import annotations

import secrets
import string
import threading
import time
from typing import Any, Dict, Optional

from pydantic import ValidationError

from femo_client.domain.entities import Session, User
from femo_client.domain.key_value_store import KeyValueStore
from femo_client.infrastructure.log_utils import log_message

ACCESS_TOKEN_KEY = "access_token"
REFRESH_TOKEN_KEY = "refresh_token"
USER_KEY = "user"
DEVICE_ID_KEY = "deviceId"

SESSION_KEYS = (ACCESS_TOKEN_KEY, REFRESH_TOKEN_KEY, USER_KEY)

_BASE36_ALPHABET = string.digits + string.ascii_lowercase


def generate_device_id() -> str:
    """Return a fresh ``web-<epoch ms>-<9 base36 chars>`` identifier."""

    suffix = "".join(secrets.choice(_BASE36_ALPHABET) for _ in range(9))
    return f"web-{int(time.time() * 1000)}-{suffix}"


def _parse_user(raw: Any) -> Optional[User]:
    if not isinstance(raw, dict):
        return None
    try:
        return User.model_validate(raw)
    except ValidationError as exc:
        log_message(f"Discarding unreadable cached user: {exc.error_count()} validation error(s).", "WARN")
        return None


class SessionStore:
    """Reads and writes the single session held in a key-value store.

    Clearing removes access token, refresh token and cached user in one
    ``remove_many`` call. The device id survives a clear.
    """

    def __init__(self, store: KeyValueStore) -> None:
        self._store = store
        self._device_lock = threading.Lock()

    @property
    def store(self) -> KeyValueStore:
        return self._store

    def load(self) -> Optional[Session]:
        values = self._store.get_many(SESSION_KEYS)
        access_token = values.get(ACCESS_TOKEN_KEY)
        if not access_token:
            return None
        refresh_token = values.get(REFRESH_TOKEN_KEY) or None
        return Session(
            access_token=str(access_token),
            refresh_token=str(refresh_token) if refresh_token else None,
            device_id=self.device_id(),
            user=_parse_user(values.get(USER_KEY)),
        )

    def establish(
        self,
        access_token: str,
        refresh_token: Optional[str] = None,
        user: Optional[User] = None,
    ) -> Session:
        """Persist a brand-new session, replacing whatever was stored before."""

        values: Dict[str, object] = {ACCESS_TOKEN_KEY: access_token}
        stale_keys = []
        if refresh_token:
            values[REFRESH_TOKEN_KEY] = refresh_token
        else:
            stale_keys.append(REFRESH_TOKEN_KEY)
        if user is not None:
            values[USER_KEY] = user.to_storage()
        else:
            stale_keys.append(USER_KEY)

        self._store.set_many(values, remove=stale_keys)
        return Session(
            access_token=access_token,
            refresh_token=refresh_token or None,
            device_id=self.device_id(),
            user=user,
        )

    def update_access_token(self, access_token: str, refresh_token: Optional[str] = None) -> Session:
        values: Dict[str, object] = {ACCESS_TOKEN_KEY: access_token}
        if refresh_token:
            values[REFRESH_TOKEN_KEY] = refresh_token
        self._store.set_many(values)
        session = self.load()
        if session is None:  # pragma: no cover - store dropped the write
            raise RuntimeError("Session store did not retain the refreshed access token.")
        return session

    def update_user(self, user: User) -> None:
        self._store.set_many({USER_KEY: user.to_storage()})

    def clear(self) -> None:
        self._store.remove_many(SESSION_KEYS)
        log_message("Cleared stored session credentials.", "INFO")

    def device_id(self) -> str:
        with self._device_lock:
            existing = self._store.get(DEVICE_ID_KEY)
            if existing:
                return str(existing)
            device_id = generate_device_id()
            self._store.set_many({DEVICE_ID_KEY: device_id})
            log_message(f"Generated new device id {device_id}.", "INFO")
            return device_id

    def forget_device(self) -> None:
        with self._device_lock:
            self._store.remove_many([DEVICE_ID_KEY])


__all__ = [
    "ACCESS_TOKEN_KEY",
    "DEVICE_ID_KEY",
    "REFRESH_TOKEN_KEY",
    "SESSION_KEYS",
    "SessionStore",
    "USER_KEY",
    "generate_device_id",
]
