from __future__ import annotations

import enum
import os
from dataclasses import dataclass, field, replace
from typing import FrozenSet, Optional

from dotenv import load_dotenv


class Capability(str, enum.Enum):
    STANDARD = "standard"
    VIRTUAL_IMPERSONATION = "virtual"
    ADMIN_REGISTRATION = "admin"


DEFAULT_CAPABILITIES: FrozenSet[Capability] = frozenset({Capability.STANDARD})


@dataclass(frozen=True)
class ClientDefaults:
    connect_timeout_seconds: float = 30.0
    read_timeout_seconds: float = 60.0
    client_api_version: str = "r0"
    media_api_version: str = "v1"
    registration_api_version: str = "api/v1"  # legacy shared-secret endpoint
    identity_api_version: str = "api"
    user_agent: str = "matrix-client-python"
    capabilities: FrozenSet[Capability] = field(default=DEFAULT_CAPABILITIES)


def parse_capabilities(raw: Optional[str]) -> FrozenSet[Capability]:
    """Parse a comma separated list such as ``"standard,admin"``."""
    if not raw or not raw.strip():
        return DEFAULT_CAPABILITIES
    caps = set()
    for part in raw.split(","):
        part = part.strip().lower()
        if not part:
            continue
        try:
            caps.add(Capability(part))
        except ValueError as exc:
            raise ValueError(f"Unknown client capability: {part!r}") from exc
    caps.add(Capability.STANDARD)
    return frozenset(caps)


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be a number, got {raw!r}") from exc


def load_env_config(*, use_dotenv: bool = True) -> ClientDefaults:
    """Load client defaults from environment (optional .env)."""
    if use_dotenv:
        load_dotenv()
    defaults = ClientDefaults()
    return replace(
        defaults,
        connect_timeout_seconds=_env_float(
            "MATRIX_CONNECT_TIMEOUT", defaults.connect_timeout_seconds
        ),
        read_timeout_seconds=_env_float(
            "MATRIX_READ_TIMEOUT", defaults.read_timeout_seconds
        ),
        client_api_version=os.getenv("MATRIX_CLIENT_API_VERSION", "").strip()
        or defaults.client_api_version,
        capabilities=parse_capabilities(os.getenv("MATRIX_CAPABILITIES")),
    )


__all__ = [
    "Capability",
    "ClientDefaults",
    "DEFAULT_CAPABILITIES",
    "load_env_config",
    "parse_capabilities",
]
