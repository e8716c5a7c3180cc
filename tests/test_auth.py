import hashlib
import hmac
import json

import pytest
import respx
from httpx import Response
from matrix_client.auth import (
    PasswordCredentials,
    login,
    logout,
    register_with_shared_secret,
    shared_secret_mac,
)
from matrix_client.client import MatrixHttpClient
from matrix_client.config import Capability
from matrix_client.context import SessionContext
from matrix_client.errors import CapabilityError, MatrixHTTPError, MissingAccessTokenError

HS = "https://hs.example.org"
LOGIN_URL = f"{HS}/_matrix/client/r0/login"
LOGOUT_URL = f"{HS}/_matrix/client/r0/logout"
REGISTER_URL = f"{HS}/_matrix/client/api/v1/register"

CREDS = PasswordCredentials(localpart="alice", password="hunter2")


@pytest.fixture
def client():
    with MatrixHttpClient(SessionContext(home_server_url=HS)) as cl:
        yield cl


@respx.mock
def test_login_then_logout_round_trip(client):
    respx.post(LOGIN_URL).mock(
        return_value=Response(
            200, json={"access_token": "tok1", "device_id": "dev1", "user_id": "@a:x"}
        )
    )
    logout_route = respx.post(LOGOUT_URL).mock(return_value=Response(200, json={}))

    ctx = login(client, CREDS)

    assert ctx is client.context
    assert client.context.access_token == "tok1"
    assert client.context.device_id == "dev1"
    assert client.context.acting_user == "@a:x"

    logout(client)

    assert logout_route.calls.last.request.url.params["access_token"] == "tok1"
    assert client.context.access_token is None
    assert client.context.device_id is None
    assert client.context.acting_user is None
    assert client.context.home_server_url == HS


@respx.mock
def test_login_body_shape(client):
    route = respx.post(LOGIN_URL).mock(
        return_value=Response(200, json={"access_token": "t", "user_id": "@alice:x"})
    )

    login(client, CREDS)

    sent = json.loads(route.calls.last.request.content)
    assert sent == {
        "type": "m.login.password",
        "identifier": {"type": "m.id.user", "user": "alice"},
        "user": "alice",
        "password": "hunter2",
    }
    assert "access_token" not in route.calls.last.request.url.params


@respx.mock
def test_login_resumes_device_and_sends_initial_name():
    route = respx.post(LOGIN_URL).mock(
        return_value=Response(
            200, json={"access_token": "t", "device_id": "DEV", "user_id": "@alice:x"}
        )
    )
    ctx = SessionContext(
        home_server_url=HS, device_id="DEV", initial_device_display_name="laptop"
    )

    with MatrixHttpClient(ctx) as client:
        login(client, CREDS)

    sent = json.loads(route.calls.last.request.content)
    assert sent["device_id"] == "DEV"
    assert sent["initial_device_display_name"] == "laptop"


@respx.mock
def test_failed_login_keeps_context(client):
    respx.post(LOGIN_URL).mock(
        return_value=Response(403, json={"errcode": "M_FORBIDDEN", "error": "Invalid password"})
    )

    with pytest.raises(MatrixHTTPError) as exc:
        login(client, CREDS)

    assert exc.value.errcode == "M_FORBIDDEN"
    assert client.context.access_token is None


def test_logout_without_token_fails_fast(client):
    with pytest.raises(MissingAccessTokenError):
        logout(client)


@respx.mock
def test_logout_clears_context_even_when_server_fails():
    respx.post(LOGOUT_URL).mock(return_value=Response(500))
    ctx = SessionContext(
        home_server_url=HS, access_token="tok1", device_id="dev1", acting_user="@a:x"
    )

    with MatrixHttpClient(ctx) as client:
        with pytest.raises(MatrixHTTPError):
            logout(client)

        assert client.context.access_token is None
        assert client.context.acting_user is None


def test_shared_secret_mac():
    expected = hmac.new(
        b"s3cret", b"alice\x00hunter2\x00notadmin", hashlib.sha1
    ).hexdigest()
    assert shared_secret_mac(CREDS, "s3cret", admin=False) == expected
    assert shared_secret_mac(CREDS, "s3cret", admin=True) != expected


@respx.mock
def test_register_with_shared_secret():
    route = respx.post(REGISTER_URL).mock(
        return_value=Response(
            200,
            json={"access_token": "reg-tok", "device_id": "D", "user_id": "@alice:example.org"},
        )
    )
    client = MatrixHttpClient(
        SessionContext(home_server_url=HS),
        capabilities={Capability.ADMIN_REGISTRATION},
    )

    with client:
        register_with_shared_secret(client, CREDS, "s3cret", admin=True)
        assert client.context.access_token == "reg-tok"
        assert client.context.acting_user == "@alice:example.org"

    sent = json.loads(route.calls.last.request.content)
    assert sent["user"] == "alice"
    assert sent["type"] == "org.matrix.login.shared_secret"
    assert sent["admin"] is True
    assert sent["mac"] == shared_secret_mac(CREDS, "s3cret", admin=True)


def test_register_requires_admin_capability(client):
    with pytest.raises(CapabilityError):
        register_with_shared_secret(client, CREDS, "s3cret")


def test_credentials_repr_hides_password():
    assert "hunter2" not in repr(CREDS)
