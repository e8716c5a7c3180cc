from __future__ import annotations

from typing import Optional, Tuple
from urllib.parse import urlsplit

from matrix_client.client import ContentResult, MatrixHttpClient, PreparedRequest

MXC_SCHEME = "mxc"


def parse_mxc_uri(uri: str) -> Tuple[str, str]:
    """``mxc://server/media_id`` -> ``(server, media_id)``."""
    parts = urlsplit(uri or "")
    media_id = parts.path.lstrip("/")
    if parts.scheme != MXC_SCHEME or not parts.netloc or not media_id or "/" in media_id:
        raise ValueError(f"Not a valid mxc URI: {uri!r}")
    return parts.netloc, media_id


def get_media(client: MatrixHttpClient, uri: str) -> Optional[ContentResult]:
    """Download the content behind an mxc URI; None if the server has no such media."""
    server, media_id = parse_mxc_uri(uri)
    url = client.media_url(f"download/{server}/{media_id}")
    return client.execute_content(PreparedRequest("GET", url).ignoring(404))
