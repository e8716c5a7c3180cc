"""
Application-service helpers.

The service's own token is used for every call; the impersonated user is
carried as ``user_id`` on each URL by the virtual context.
"""

from __future__ import annotations

import logging

from matrix_client.client import MatrixHttpClient, PreparedRequest
from matrix_client.config import Capability

APPSERVICE_REGISTRATION_TYPE = "m.login.application_service"

log = logging.getLogger("matrix_client.appservice")


def get_user(client: MatrixHttpClient, localpart: str) -> MatrixHttpClient:
    """Client handle acting as ``@localpart:server`` through the service token."""
    client.require_capability(Capability.VIRTUAL_IMPERSONATION)
    context = client.context
    return client.for_context(context.as_virtual_user(context.user_id_for(localpart)))


def create_user(client: MatrixHttpClient, localpart: str) -> MatrixHttpClient:
    client.require_capability(Capability.VIRTUAL_IMPERSONATION)
    log.debug("matrix.appservice_register: %s", localpart)
    url = client.client_url("register")
    body = {"type": APPSERVICE_REGISTRATION_TYPE, "username": localpart}
    client.execute(PreparedRequest("POST", url, json=body))
    return get_user(client, localpart)
