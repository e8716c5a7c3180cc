from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

from matrix_client.client import MatrixHttpClient, PreparedRequest
from matrix_client.models import SyncResponse

DEFAULT_TIMEOUT_MS = 30_000


@dataclass(frozen=True)
class SyncOptions:
    since: Optional[str] = None
    timeout_ms: int = DEFAULT_TIMEOUT_MS
    filter: Optional[str] = None
    full_state: Optional[bool] = None
    set_presence: Optional[str] = None

    def to_params(self) -> Dict[str, Any]:
        params: Dict[str, Any] = {"timeout": str(self.timeout_ms)}
        if self.since:
            params["since"] = self.since
        if self.filter:
            params["filter"] = self.filter
        if self.full_state is not None:
            params["full_state"] = "true" if self.full_state else "false"
        if self.set_presence:
            params["set_presence"] = self.set_presence
        return params


def sync(client: MatrixHttpClient, options: Optional[SyncOptions] = None) -> SyncResponse:
    """
    Single long-poll sync call.

    The server holds the request up to ``timeout_ms``, so the client's read
    timeout has to be larger than that.
    """
    options = options or SyncOptions()
    url = client.client_url("sync", params=options.to_params())
    return client.execute_model(SyncResponse, PreparedRequest("GET", url))
