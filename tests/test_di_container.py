import requests

from femo_client.application.auth_manager import AuthManager
from femo_client.application.profile_service import ProfileService
from femo_client.application.registration_service import RegistrationService
from femo_client.application.shell import AppShell
from femo_client.domain.key_value_store import KeyValueStore
from femo_client.infrastructure.di_container import Container, build_container
from femo_client.infrastructure.http_client import AuthenticatedHttpClient
from femo_client.infrastructure.key_value_store import InMemoryKeyValueStore
from tests.scripted_http import ScriptedSession


def test_services_share_one_session_owner():
    transport = ScriptedSession()
    container = build_container({requests.Session: transport, KeyValueStore: InMemoryKeyValueStore()})

    auth = container.resolve(AuthManager)
    client = container.resolve(AuthenticatedHttpClient)
    shell = container.resolve(AppShell)
    profile = container.resolve(ProfileService)

    assert client.auth is auth
    assert shell.auth is auth
    assert profile._client is client
    assert container.resolve(AuthManager) is auth
    assert auth.base_url == "http://api.test"


def test_registration_uses_the_plain_transport():
    transport = ScriptedSession()
    container = build_container({requests.Session: transport, KeyValueStore: InMemoryKeyValueStore()})

    registration = container.resolve(RegistrationService)

    assert registration._http is transport
    assert registration.base_url == "http://api.test"


def test_factory_overrides_receive_the_container():
    container = build_container(
        {
            KeyValueStore: InMemoryKeyValueStore,
            requests.Session: lambda: ScriptedSession(),
        }
    )

    assert isinstance(container.resolve(KeyValueStore), InMemoryKeyValueStore)
    assert isinstance(container.resolve(requests.Session), ScriptedSession)


def test_unregistered_service_raises_key_error():
    container = Container()

    try:
        container.resolve(AuthManager)
    except KeyError as exc:
        assert "AuthManager" in str(exc)
    else:  # pragma: no cover
        raise AssertionError("Expected KeyError")
