from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class VersionsResponse(BaseModel):
    versions: List[str] = Field(default_factory=list)
    unstable_features: Dict[str, bool] = Field(default_factory=dict)

    model_config = ConfigDict(extra="ignore")


class LoginResponse(BaseModel):
    """Shared shape of login and registration responses."""

    access_token: str = Field(min_length=1)
    user_id: str
    device_id: Optional[str] = None
    home_server: Optional[str] = None

    model_config = ConfigDict(extra="ignore")


class WhoAmIResponse(BaseModel):
    user_id: str
    device_id: Optional[str] = None

    model_config = ConfigDict(extra="ignore")


class RoomIdResponse(BaseModel):
    room_id: str

    model_config = ConfigDict(extra="ignore")


class JoinedRoomsResponse(BaseModel):
    joined_rooms: List[str] = Field(default_factory=list)

    model_config = ConfigDict(extra="ignore")


class RoomAliasLookup(BaseModel):
    room_id: str
    servers: List[str] = Field(default_factory=list)
    alias: Optional[str] = None

    model_config = ConfigDict(extra="ignore")


class EventIdResponse(BaseModel):
    event_id: str

    model_config = ConfigDict(extra="ignore")


class Presence(BaseModel):
    presence: str
    last_active_ago: Optional[int] = None
    status_msg: Optional[str] = None
    currently_active: Optional[bool] = None

    model_config = ConfigDict(extra="ignore")


class SyncResponse(BaseModel):
    """Sync payload; room and account sections are left as raw JSON."""

    next_batch: str
    rooms: Dict[str, Any] = Field(default_factory=dict)
    presence: Dict[str, Any] = Field(default_factory=dict)
    account_data: Dict[str, Any] = Field(default_factory=dict)
    to_device: Dict[str, Any] = Field(default_factory=dict)

    model_config = ConfigDict(extra="allow")

    def joined_room_ids(self) -> List[str]:
        join = self.rooms.get("join")
        return list(join.keys()) if isinstance(join, dict) else []

    def invited_room_ids(self) -> List[str]:
        invite = self.rooms.get("invite")
        return list(invite.keys()) if isinstance(invite, dict) else []


def find_string(payload: Optional[Dict[str, Any]], key: str) -> Optional[str]:
    if not isinstance(payload, dict):
        return None
    value = payload.get(key)
    return value if isinstance(value, str) else None


__all__ = [
    "VersionsResponse",
    "LoginResponse",
    "WhoAmIResponse",
    "RoomIdResponse",
    "JoinedRoomsResponse",
    "RoomAliasLookup",
    "EventIdResponse",
    "Presence",
    "SyncResponse",
    "find_string",
]
