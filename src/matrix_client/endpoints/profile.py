from __future__ import annotations

from typing import Optional

from matrix_client.client import ContentResult, MatrixHttpClient, PreparedRequest
from matrix_client.errors import InvalidStateError
from matrix_client.models import Presence, WhoAmIResponse, find_string

from .media import get_media


def _own_user_id(client: MatrixHttpClient) -> str:
    user_id = client.context.acting_user
    if not user_id:
        raise InvalidStateError("No acting user is set; log in first.")
    return user_id


def _profile_field(client: MatrixHttpClient, user_id: str, field: str) -> Optional[str]:
    # 404: the user never set this field.
    url = client.client_url(f"profile/{user_id}/{field}")
    payload = client.execute_json(PreparedRequest("GET", url).ignoring(404))
    return find_string(payload, field)


def get_display_name(client: MatrixHttpClient, user_id: str) -> Optional[str]:
    return _profile_field(client, user_id, "displayname")


def get_avatar_url(client: MatrixHttpClient, user_id: str) -> Optional[str]:
    return _profile_field(client, user_id, "avatar_url")


def get_avatar(client: MatrixHttpClient, user_id: str) -> Optional[ContentResult]:
    """Avatar image of ``user_id``; None if no avatar is set or the media is gone."""
    avatar_url = get_avatar_url(client, user_id)
    if not avatar_url:
        return None
    return get_media(client, avatar_url)


def set_display_name(client: MatrixHttpClient, name: str) -> None:
    url = client.client_url(f"profile/{_own_user_id(client)}/displayname")
    client.execute(PreparedRequest("PUT", url, json={"displayname": name}))


def get_presence(client: MatrixHttpClient, user_id: str) -> Optional[Presence]:
    url = client.client_url(f"presence/{user_id}/status")
    return client.execute_model(Presence, PreparedRequest("GET", url).ignoring(404))


def whoami(client: MatrixHttpClient) -> str:
    """User ID the current access token belongs to."""
    url = client.client_url("account/whoami")
    response = client.execute_model(WhoAmIResponse, PreparedRequest("GET", url))
    return response.user_id
