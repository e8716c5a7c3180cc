"""``.well-known`` auto-discovery of home-server and identity-server URLs."""

from __future__ import annotations

import json
import logging
from typing import Any, Iterable, List, Optional
from urllib.parse import urlsplit

import httpx
from pydantic import BaseModel, ConfigDict, Field

from .client import MatrixHttpClient, PreparedRequest
from .context import SessionContext
from .errors import InvalidStateError, MatrixRequestError

WELL_KNOWN_PATH = "/.well-known/matrix/client"
HOME_SERVER_KEY = "m.homeserver"
IDENTITY_SERVER_KEY = "m.identity_server"

log = logging.getLogger("matrix_client.discovery")


def _base_urls(value: Any) -> Iterable[Any]:
    # A single {"base_url": ...} object, or a list of them as alternates.
    entries = value if isinstance(value, list) else [value]
    for entry in entries:
        if isinstance(entry, dict):
            yield entry.get("base_url")


def _candidates(value: Any) -> List[str]:
    urls: List[str] = []
    for raw in _base_urls(value):
        if not isinstance(raw, str):
            continue
        url = raw.strip().rstrip("/")
        parts = urlsplit(url)
        if parts.scheme not in ("http", "https") or not parts.netloc:
            log.warning("matrix.discovery_invalid_url", extra={"candidate": raw})
            continue
        if url not in urls:
            urls.append(url)
    return urls


class DiscoverySettings(BaseModel):
    """Ordered candidates parsed from a ``.well-known/matrix/client`` document."""

    home_server_urls: List[str] = Field(default_factory=list)
    identity_server_urls: List[str] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True)

    @classmethod
    def from_well_known(cls, body: str) -> "DiscoverySettings":
        try:
            document = json.loads(body)
        except ValueError as exc:
            raise InvalidStateError(
                f"Invalid .well-known document: {exc}"
            ) from exc
        if not isinstance(document, dict):
            raise InvalidStateError(
                ".well-known document must be a JSON object, "
                f"got {type(document).__name__}"
            )

        return cls(
            home_server_urls=_candidates(document.get(HOME_SERVER_KEY)),
            identity_server_urls=_candidates(document.get(IDENTITY_SERVER_KEY)),
        )


def strip_port(domain: str) -> str:
    """``example.org:8448`` -> ``example.org``; bracketed IPv6 literals are kept whole."""
    domain = domain.strip()
    if domain.startswith("["):
        end = domain.find("]")
        return domain[: end + 1] if end != -1 else domain
    return domain.split(":")[0]


def discover_settings(client: MatrixHttpClient) -> Optional[DiscoverySettings]:
    """
    Resolve the client's domain into validated server URLs.

    - Returns None when the domain publishes no document and the context
      already holds a home server URL
    - Candidates are tried in order; a failing candidate is logged and
      skipped. If none answers, the last one is kept and a warning logged
    - On success the client's context is replaced with the accepted URLs

    There is no overall deadline: each probe is bounded only by the
    client's connect/read timeouts.
    """
    context = client.context
    if not (context.domain or "").strip():
        raise InvalidStateError(
            "A non-empty Matrix domain must be set to discover the client settings"
        )

    hostname = strip_port(context.domain)
    log.info("matrix.discovery", extra={"hostname": hostname})

    url = httpx.URL(f"https://{hostname}{WELL_KNOWN_PATH}")
    body = client.execute(PreparedRequest("GET", url).ignoring(404))
    if body is None or not body.strip():
        if context.home_server_url is None:
            raise InvalidStateError("No valid Homeserver base URL was found")
        log.info("matrix.discovery_no_document", extra={"hostname": hostname})
        return None

    settings = DiscoverySettings.from_well_known(body)
    if not settings.home_server_urls:
        raise InvalidStateError("No valid Homeserver base URL was found")

    accepted: Optional[SessionContext] = None
    tentative = context
    for candidate in settings.home_server_urls:
        tentative = context.with_home_server(candidate)
        try:
            if client.get_home_api_versions(context=tentative):
                accepted = tentative
                log.info("matrix.discovery_home_server", extra={"candidate": candidate})
                break
        except MatrixRequestError as exc:
            log.warning(
                "matrix.discovery_candidate_failed: %s",
                exc,
                extra={"candidate": candidate},
            )

    if accepted is None:
        # None answered; the last candidate stays in place.
        log.warning(
            "matrix.discovery_no_valid_home_server",
            extra={"candidate": settings.home_server_urls[-1]},
        )
        accepted = tentative

    for candidate in settings.identity_server_urls:
        tentative = accepted.with_identity_server(candidate)
        try:
            if client.validate_identity_server(context=tentative):
                accepted = tentative
                log.info(
                    "matrix.discovery_identity_server", extra={"candidate": candidate}
                )
                break
        except MatrixRequestError as exc:
            log.warning(
                "matrix.discovery_candidate_failed: %s",
                exc,
                extra={"candidate": candidate},
            )

    client.context = accepted
    return settings


__all__ = ["DiscoverySettings", "discover_settings", "strip_port", "WELL_KNOWN_PATH"]
