from __future__ import annotations

import uuid
from typing import Any, Dict, List, Optional

from matrix_client.client import MatrixHttpClient, PreparedRequest
from matrix_client.models import (
    EventIdResponse,
    JoinedRoomsResponse,
    RoomAliasLookup,
    RoomIdResponse,
)


def create_room(
    client: MatrixHttpClient,
    *,
    name: Optional[str] = None,
    topic: Optional[str] = None,
    alias_localpart: Optional[str] = None,
    preset: Optional[str] = None,
    invite: Optional[List[str]] = None,
    is_direct: Optional[bool] = None,
) -> str:
    """Create a room and return its ID. Unset options are left to the server."""
    body: Dict[str, Any] = {
        "name": name,
        "topic": topic,
        "room_alias_name": alias_localpart,
        "preset": preset,
        "invite": invite,
        "is_direct": is_direct,
    }
    body = {k: v for k, v in body.items() if v is not None}
    url = client.client_url("createRoom")
    return client.execute_model(
        RoomIdResponse, PreparedRequest("POST", url, json=body)
    ).room_id


def join_room(client: MatrixHttpClient, room_id_or_alias: str) -> str:
    url = client.client_url(f"join/{room_id_or_alias}")
    return client.execute_model(
        RoomIdResponse, PreparedRequest("POST", url, json={})
    ).room_id


def leave_room(client: MatrixHttpClient, room_id: str) -> None:
    url = client.client_url(f"rooms/{room_id}/leave")
    client.execute(PreparedRequest("POST", url, json={}))


def get_joined_rooms(client: MatrixHttpClient) -> List[str]:
    url = client.client_url("joined_rooms")
    response = client.execute_model(JoinedRoomsResponse, PreparedRequest("GET", url))
    return list(response.joined_rooms)


def lookup_alias(client: MatrixHttpClient, alias: str) -> RoomAliasLookup:
    """Resolve ``#alias:server``; this endpoint needs no access token."""
    url = client.client_url(f"directory/room/{alias}", authenticated=False)
    lookup = client.execute_model(RoomAliasLookup, PreparedRequest("GET", url))
    return lookup.model_copy(update={"alias": alias})


def send_text(
    client: MatrixHttpClient,
    room_id: str,
    text: str,
    *,
    msgtype: str = "m.text",
    txn_id: Optional[str] = None,
) -> str:
    """Send a plain message and return the event ID."""
    txn_id = txn_id or uuid.uuid4().hex
    url = client.client_url(f"rooms/{room_id}/send/m.room.message/{txn_id}")
    body = {"msgtype": msgtype, "body": text}
    return client.execute_model(
        EventIdResponse, PreparedRequest("PUT", url, json=body)
    ).event_id
