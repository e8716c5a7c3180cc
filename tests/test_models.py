import pytest
from matrix_client.models import (
    LoginResponse,
    SyncResponse,
    VersionsResponse,
    find_string,
)
from pydantic import ValidationError


def test_versions_response_ignores_unknown_keys():
    versions = VersionsResponse.model_validate(
        {"versions": ["r0.6.1", "v1.2"], "unstable_features": {"org.x": True}, "extra": 1}
    )
    assert versions.versions == ["r0.6.1", "v1.2"]
    assert versions.unstable_features == {"org.x": True}


def test_login_response_rejects_blank_token():
    with pytest.raises(ValidationError):
        LoginResponse.model_validate({"access_token": "", "user_id": "@a:x"})


def test_login_response_device_is_optional():
    resp = LoginResponse.model_validate({"access_token": "t", "user_id": "@a:x"})
    assert resp.device_id is None


def test_sync_response_room_helpers():
    data = SyncResponse.model_validate(
        {"next_batch": "s1", "rooms": {"join": {"!a:x": {}}, "invite": {"!b:x": {}}}}
    )
    assert data.joined_room_ids() == ["!a:x"]
    assert data.invited_room_ids() == ["!b:x"]
    assert SyncResponse.model_validate({"next_batch": "s2"}).joined_room_ids() == []


def test_find_string():
    assert find_string({"displayname": "Bob"}, "displayname") == "Bob"
    assert find_string({"displayname": None}, "displayname") is None
    assert find_string({"displayname": 3}, "displayname") is None
    assert find_string(None, "displayname") is None
