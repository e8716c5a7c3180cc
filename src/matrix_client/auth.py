"""Login, logout and shared-secret registration flows."""

from __future__ import annotations

import hashlib
import hmac
import logging
from typing import Any, Dict

from pydantic import BaseModel, ConfigDict, Field

from .client import MatrixHttpClient, PreparedRequest
from .config import Capability
from .context import SessionContext
from .errors import MatrixParseError
from .models import LoginResponse

PASSWORD_LOGIN_TYPE = "m.login.password"
USER_IDENTIFIER_TYPE = "m.id.user"
SHARED_SECRET_REGISTRATION_TYPE = "org.matrix.login.shared_secret"

log = logging.getLogger("matrix_client.auth")


class PasswordCredentials(BaseModel):
    localpart: str = Field(min_length=1, description="User localpart or full user ID")
    password: str = Field(repr=False)

    model_config = ConfigDict(frozen=True)


def shared_secret_mac(
    credentials: PasswordCredentials, shared_secret: str, admin: bool
) -> str:
    """HMAC-SHA1 hex digest as expected by Synapse's shared-secret registration."""
    message = "\0".join(
        [credentials.localpart, credentials.password, "admin" if admin else "notadmin"]
    )
    return hmac.new(
        shared_secret.encode("utf-8"), message.encode("utf-8"), hashlib.sha1
    ).hexdigest()


def _apply_login_response(
    client: MatrixHttpClient, request: PreparedRequest
) -> SessionContext:
    response = client.execute_model(LoginResponse, request)
    if response is None:
        # Only reachable if a caller-supplied request ignored a status.
        raise MatrixParseError("Login request returned no body.")
    client.context = client.context.with_credentials(
        access_token=response.access_token,
        device_id=response.device_id,
        acting_user=response.user_id,
    )
    log.info("matrix.logged_in", extra={"status": 200})
    return client.context


def login(client: MatrixHttpClient, credentials: PasswordCredentials) -> SessionContext:
    """
    Password login. An existing device id is resumed; the initial device
    display name is only sent when configured.
    """
    body: Dict[str, Any] = {
        "type": PASSWORD_LOGIN_TYPE,
        "identifier": {"type": USER_IDENTIFIER_TYPE, "user": credentials.localpart},
        "user": credentials.localpart,
        "password": credentials.password,
    }
    context = client.context
    if context.device_id:
        body["device_id"] = context.device_id
    if context.initial_device_display_name:
        body["initial_device_display_name"] = context.initial_device_display_name

    url = client.client_url("login", authenticated=False)
    return _apply_login_response(client, PreparedRequest("POST", url, json=body))


def logout(client: MatrixHttpClient) -> SessionContext:
    """
    Invalidate the access token server-side.

    The local credentials are dropped even when the server call fails; the
    failure is still raised.
    """
    url = client.client_url("logout")
    try:
        client.execute(PreparedRequest("POST", url, json={}))
    finally:
        client.context = client.context.without_credentials()
    return client.context


def register_with_shared_secret(
    client: MatrixHttpClient,
    credentials: PasswordCredentials,
    shared_secret: str,
    admin: bool = False,
) -> SessionContext:
    """Administrative registration through the legacy shared-secret endpoint."""
    client.require_capability(Capability.ADMIN_REGISTRATION)

    body = {
        "user": credentials.localpart,
        "password": credentials.password,
        "mac": shared_secret_mac(credentials, shared_secret, admin),
        "type": SHARED_SECRET_REGISTRATION_TYPE,
        "admin": admin,
    }
    url = client.client_url(
        "register",
        authenticated=False,
        version=client.defaults.registration_api_version,
    )
    return _apply_login_response(client, PreparedRequest("POST", url, json=body))


__all__ = [
    "PasswordCredentials",
    "login",
    "logout",
    "register_with_shared_secret",
    "shared_secret_mac",
]
