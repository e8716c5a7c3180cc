"""
Endpoint wrappers for the Matrix client-server API.

Each wrapper builds a request, hands it to MatrixHttpClient and parses the
result; none of them hold state of their own.
"""

from .appservice import create_user, get_user
from .media import get_media, parse_mxc_uri
from .profile import (
    get_avatar,
    get_avatar_url,
    get_display_name,
    get_presence,
    set_display_name,
    whoami,
)
from .rooms import (
    create_room,
    get_joined_rooms,
    join_room,
    leave_room,
    lookup_alias,
    send_text,
)
from .sync import SyncOptions, sync

__all__ = [
    "create_user",
    "get_user",
    "get_media",
    "parse_mxc_uri",
    "get_avatar",
    "get_avatar_url",
    "get_display_name",
    "get_presence",
    "set_display_name",
    "whoami",
    "create_room",
    "get_joined_rooms",
    "join_room",
    "leave_room",
    "lookup_alias",
    "send_text",
    "SyncOptions",
    "sync",
]
