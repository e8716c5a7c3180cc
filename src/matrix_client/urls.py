"""Request URL construction for the ``/_matrix`` API tree."""

from __future__ import annotations

import re
from typing import Any, Dict, List, Optional
from urllib.parse import quote, urlsplit, urlunsplit

import httpx

from .context import SessionContext
from .errors import InvalidStateError

ACCESS_TOKEN_PARAM = "access_token"
VIRTUAL_USER_PARAM = "user_id"
REDACTED = "<redacted>"

_ACCESS_TOKEN_RE = re.compile(
    r"(?P<key>[?&]" + re.escape(ACCESS_TOKEN_PARAM) + r'=)(?P<token>[^&#\s"]*)'
)

# Matrix identifiers carry sigils that are legal inside a path segment.
_SEGMENT_SAFE = "@:!$+,;="


def _segments(raw: str) -> List[str]:
    return [s for s in (raw or "").split("/") if s]


def build_url(
    base_url: str,
    module: str,
    version: str,
    path: str,
    context: SessionContext,
    params: Optional[Dict[str, Any]] = None,
) -> httpx.URL:
    """
    Build ``{base}/_matrix/{module}/{version}/{path}``.

    - Empty segments are skipped, so an unversioned call passes ``version=""``.
    - A path prefix on ``base_url`` is kept.
    - In virtual mode the acting user is added as ``user_id`` on every URL.
    """
    if not base_url:
        raise InvalidStateError("A base URL is required to build a request URL.")

    parts = urlsplit(base_url)
    segments = _segments(parts.path) + ["_matrix", module]
    segments += _segments(version) + _segments(path)
    raw_path = "/" + "/".join(quote(s, safe=_SEGMENT_SAFE) for s in segments)

    query: Dict[str, Any] = {k: v for k, v in (params or {}).items() if v is not None}
    if context.is_virtual:
        if not context.acting_user:
            raise InvalidStateError("Virtual mode requires an acting user.")
        query[VIRTUAL_USER_PARAM] = context.acting_user

    url = urlunsplit((parts.scheme, parts.netloc, raw_path, "", ""))
    return httpx.URL(url, params=query or None)


def with_access_token(url: httpx.URL, context: SessionContext) -> httpx.URL:
    """Append the context's access token; a missing token is a caller bug."""
    return url.copy_set_param(ACCESS_TOKEN_PARAM, context.require_access_token())


def redact_url(url: Any) -> str:
    """Replace any ``access_token`` query value with a fixed placeholder."""
    return _ACCESS_TOKEN_RE.sub(lambda m: m.group("key") + REDACTED, str(url))


__all__ = [
    "ACCESS_TOKEN_PARAM",
    "VIRTUAL_USER_PARAM",
    "REDACTED",
    "build_url",
    "with_access_token",
    "redact_url",
]
