"""Failure taxonomy and protocol error classification."""

from __future__ import annotations

import json
import logging
from typing import Optional

from pydantic import BaseModel, ConfigDict, ValidationError

log = logging.getLogger("matrix_client.errors")


class ErrorInfo(BaseModel):
    """Structured Matrix error body: ``{"errcode": ..., "error": ...}``."""

    errcode: str
    error: Optional[str] = None
    retry_after_ms: Optional[int] = None

    model_config = ConfigDict(extra="ignore", frozen=True)


class MatrixClientError(Exception):
    """Base error for client failures."""


class InvalidStateError(MatrixClientError):
    """The client or its context is not in a state allowing the operation."""


class MissingAccessTokenError(InvalidStateError):
    def __init__(self, message: str = "This method can only be used with a valid token."):
        super().__init__(message)


class CapabilityError(MatrixClientError):
    """The client was not configured with the capability an operation needs."""


class MatrixRequestError(MatrixClientError):
    """Base for anything a network call can raise."""


class MatrixTransportError(MatrixRequestError):
    """Connection, timeout or malformed HTTP exchange."""


class MatrixParseError(MatrixRequestError):
    pass


class MatrixHTTPError(MatrixRequestError):
    def __init__(
        self,
        *,
        status_code: int,
        method: str,
        url: str,
        info: Optional[ErrorInfo] = None,
        message: Optional[str] = None,
    ):
        if message is None:
            message = f"Request failed: {status_code}"
            if info is not None:
                message = f"{message} - {info.errcode} - {info.error}"
        super().__init__(message)
        self.status_code = status_code
        self.method = method
        self.url = url
        self.info = info

    @property
    def errcode(self) -> Optional[str]:
        return self.info.errcode if self.info is not None else None

    @property
    def error(self) -> Optional[str]:
        return self.info.error if self.info is not None else None


class MatrixRateLimitedError(MatrixHTTPError):
    def __init__(
        self,
        *,
        method: str,
        url: str,
        info: Optional[ErrorInfo] = None,
        status_code: int = 429,
    ):
        message = "Request was rate limited."
        if info is not None:
            message = f"{message} {info.errcode} - {info.error}"
        super().__init__(
            status_code=status_code,
            method=method,
            url=url,
            info=info,
            message=message,
        )

    @property
    def retry_after_ms(self) -> Optional[int]:
        return self.info.retry_after_ms if self.info is not None else None


def classify_error(body: Optional[str], status_code: int) -> Optional[ErrorInfo]:
    """
    Parse a failure body into an ErrorInfo.

    Home servers (and proxies in front of them) do not always return
    protocol error JSON, so anything unparsable yields None instead of
    raising.
    """
    if not body:
        return None

    try:
        info = ErrorInfo.model_validate(json.loads(body))
    except (ValueError, ValidationError):
        log.debug(
            "matrix.error_unparsed",
            extra={"status": status_code, "body": body[:500]},
        )
        return None

    log.debug(
        "matrix.error",
        extra={"status": status_code, "errcode": info.errcode, "error": info.error},
    )
    return info


__all__ = [
    "ErrorInfo",
    "MatrixClientError",
    "InvalidStateError",
    "MissingAccessTokenError",
    "CapabilityError",
    "MatrixRequestError",
    "MatrixTransportError",
    "MatrixParseError",
    "MatrixHTTPError",
    "MatrixRateLimitedError",
    "classify_error",
]
