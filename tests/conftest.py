import os
import sys
import tempfile
from pathlib import Path
from typing import Any, List

_TMP_ROOT = Path(tempfile.mkdtemp(prefix="femo-client-tests-"))

os.environ.setdefault("FEMO_API_BASE_URL", "http://api.test")
os.environ.setdefault("FEMO_LOG_TO_CONSOLE", "false")
os.environ.setdefault("FEMO_LOG_DIR", str(_TMP_ROOT / "logs"))
os.environ.setdefault("FEMO_SESSION_STORE_PATH", str(_TMP_ROOT / "session.json"))


ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


import pytest

from femo_client.application.auth_manager import AuthManager
from femo_client.application.session_store import (
    ACCESS_TOKEN_KEY,
    DEVICE_ID_KEY,
    REFRESH_TOKEN_KEY,
    SessionStore,
    USER_KEY,
)
from femo_client.infrastructure.http_client import AuthenticatedHttpClient
from femo_client.infrastructure.key_value_store import InMemoryKeyValueStore

from tests.scripted_http import BASE_URL, MOCK_TOKEN, USER_PAYLOAD, ScriptedSession


@pytest.fixture
def kv_store() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore({DEVICE_ID_KEY: "web-1700000000000-abcdefghi"})


@pytest.fixture
def signed_in(kv_store: InMemoryKeyValueStore) -> InMemoryKeyValueStore:
    kv_store.set_many(
        {
            ACCESS_TOKEN_KEY: "A1",
            REFRESH_TOKEN_KEY: "R1",
            USER_KEY: dict(USER_PAYLOAD),
        }
    )
    return kv_store


@pytest.fixture
def session_store(kv_store: InMemoryKeyValueStore) -> SessionStore:
    return SessionStore(kv_store)


@pytest.fixture
def transport() -> ScriptedSession:
    return ScriptedSession()


@pytest.fixture
def make_auth(session_store: SessionStore, transport: ScriptedSession):
    """Factory so tests can seed the store before the session is restored."""

    def _factory(**overrides: Any) -> AuthManager:
        options = {
            "transport": transport,
            "base_url": BASE_URL,
            "timeout": 5.0,
            "mock_token": MOCK_TOKEN,
            "single_flight": True,
        }
        options.update(overrides)
        return AuthManager(session_store, **options)

    return _factory


@pytest.fixture
def auth(make_auth) -> AuthManager:
    return make_auth()


@pytest.fixture
def client(auth: AuthManager, transport: ScriptedSession) -> AuthenticatedHttpClient:
    return AuthenticatedHttpClient(auth, transport=transport, timeout=5.0)


@pytest.fixture
def events(auth: AuthManager) -> List[Any]:
    received: List[Any] = []
    auth.subscribe(received.append)
    return received
