"""Session context: server addresses, credentials and acting-user identity."""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from typing import Optional
from urllib.parse import urlsplit

from dotenv import load_dotenv

from .errors import InvalidStateError, MissingAccessTokenError


def _normalize_url(url: Optional[str]) -> Optional[str]:
    url = (url or "").strip().rstrip("/")
    return url or None


def _optional(value: Optional[str]) -> Optional[str]:
    value = (value or "").strip()
    return value or None


@dataclass(frozen=True)
class SessionContext:
    """
    Immutable view of a client session.

    Flows never mutate a context in place: login, logout and discovery
    return a new value which the owning client handle swaps in.
    """

    domain: Optional[str] = None
    home_server_url: Optional[str] = None
    identity_server_url: Optional[str] = None
    access_token: Optional[str] = None
    device_id: Optional[str] = None
    acting_user: Optional[str] = None
    is_virtual: bool = False
    initial_device_display_name: Optional[str] = None

    def __post_init__(self) -> None:
        if self.access_token is not None and not self.access_token.strip():
            raise ValueError("access_token must be absent or non-blank.")
        object.__setattr__(self, "home_server_url", _normalize_url(self.home_server_url))
        object.__setattr__(
            self, "identity_server_url", _normalize_url(self.identity_server_url)
        )

    @classmethod
    def from_env(cls, *, use_dotenv: bool = True) -> "SessionContext":
        if use_dotenv:
            load_dotenv()
        return cls(
            domain=_optional(os.getenv("MATRIX_DOMAIN")),
            home_server_url=_optional(os.getenv("MATRIX_HOME_SERVER_URL")),
            identity_server_url=_optional(os.getenv("MATRIX_IDENTITY_SERVER_URL")),
            access_token=_optional(os.getenv("MATRIX_ACCESS_TOKEN")),
            device_id=_optional(os.getenv("MATRIX_DEVICE_ID")),
            acting_user=_optional(os.getenv("MATRIX_USER_ID")),
            initial_device_display_name=_optional(os.getenv("MATRIX_DEVICE_NAME")),
        )

    @property
    def server_name(self) -> Optional[str]:
        """Domain part used for user IDs: the configured domain, else the HS host."""
        if self.domain:
            return self.domain
        if self.home_server_url:
            return urlsplit(self.home_server_url).netloc or None
        return None

    def user_id_for(self, localpart: str) -> str:
        server_name = self.server_name
        if not server_name:
            raise InvalidStateError(
                "A domain or home server URL is required to build a user ID."
            )
        return f"@{localpart}:{server_name}"

    def require_home_server(self) -> str:
        if not self.home_server_url:
            raise InvalidStateError("No home server base URL is set.")
        return self.home_server_url

    def require_identity_server(self) -> str:
        if not self.identity_server_url:
            raise InvalidStateError("No identity server base URL is set.")
        return self.identity_server_url

    def require_access_token(self) -> str:
        if not self.access_token:
            raise MissingAccessTokenError()
        return self.access_token

    def with_home_server(self, url: Optional[str]) -> "SessionContext":
        return replace(self, home_server_url=url)

    def with_identity_server(self, url: Optional[str]) -> "SessionContext":
        return replace(self, identity_server_url=url)

    def with_credentials(
        self,
        *,
        access_token: str,
        device_id: Optional[str],
        acting_user: Optional[str],
    ) -> "SessionContext":
        return replace(
            self,
            access_token=access_token,
            device_id=device_id,
            acting_user=acting_user,
        )

    def without_credentials(self) -> "SessionContext":
        return replace(self, access_token=None, device_id=None, acting_user=None)

    def as_virtual_user(self, user_id: str) -> "SessionContext":
        """Impersonate ``user_id`` with this context's (service) token."""
        return replace(self, acting_user=user_id, is_virtual=True)


__all__ = ["SessionContext"]
