import json

import pytest

from femo_client.application.exceptions import ClientValidationError, ServerRejectedError
from femo_client.application.profile_service import ProfileService
from femo_client.application.session_store import USER_KEY
from tests.scripted_http import USER_PAYLOAD


def test_refresh_user_caches_the_account(signed_in, client, transport):
    transport.route("GET", "/auth/me", (200, {"user": {**USER_PAYLOAD, "firstName": "Augusta"}}))

    user = ProfileService(client).refresh_user()

    assert user.first_name == "Augusta"
    assert client.auth.session.user.first_name == "Augusta"
    assert signed_in.get(USER_KEY)["firstName"] == "Augusta"


def test_refresh_user_accepts_bare_payload(signed_in, client, transport):
    transport.route("GET", "/auth/me", (200, USER_PAYLOAD))

    assert ProfileService(client).refresh_user().femo_id == 12345


def test_refresh_user_rejects_malformed_payload(signed_in, client, transport):
    transport.route("GET", "/auth/me", (200, {"user": {"firstName": "no id"}}))

    with pytest.raises(ServerRejectedError) as excinfo:
        ProfileService(client).refresh_user()

    assert excinfo.value.code == "BAD_RESPONSE"


def test_update_profile_without_user_is_a_no_op(client, transport):
    assert ProfileService(client).update_profile({"firstName": "Ada"}) is None
    assert transport.sent == []


def test_update_profile_is_optimistic(signed_in, client, transport):
    transport.route("PATCH", "/users/user-1", (500, {"message": "db down"}))

    updated = ProfileService(client).update_profile({"lastName": "King"})

    assert updated.last_name == "King"
    assert client.auth.session.user.last_name == "King"
    assert signed_in.get(USER_KEY)["lastName"] == "King"
    [sent] = transport.calls("PATCH", "/users/user-1")
    assert json.loads(sent.body) == {"lastName": "King"}


def test_update_profile_rejects_invalid_values(signed_in, client, transport):
    with pytest.raises(ClientValidationError) as excinfo:
        ProfileService(client).update_profile({"mfaEnabled": "sometimes"})

    assert excinfo.value.field == "profile"
    assert transport.sent == []
    assert client.auth.session.user.mfa_enabled is False
