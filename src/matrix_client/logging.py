from __future__ import annotations

import logging
from typing import Any, Dict

from .urls import redact_url

LOG_EXTRA_FIELDS = (
    "method",
    "url",
    "status",
    "duration_ms",
    "errcode",
    "hostname",
    "candidate",
    "attempt",
    "retry_after_ms",
)

RESERVED_LOG_KEYS = {
    "name",
    "msg",
    "args",
    "levelname",
    "levelno",
    "pathname",
    "filename",
    "module",
    "exc_info",
    "exc_text",
    "stack_info",
    "lineno",
    "funcName",
    "created",
    "msecs",
    "relativeCreated",
    "thread",
    "threadName",
    "processName",
    "process",
    "message",
    "asctime",
}

# Third-party loggers that put full request URLs in their message text.
TRANSPORT_LOGGERS = ("httpx", "httpcore")


class AccessTokenFilter(logging.Filter):
    """Rewrites the rendered message so no access_token value survives."""

    def filter(self, record: logging.LogRecord) -> bool:
        msg = record.getMessage()
        redacted = redact_url(msg)
        if redacted != msg:
            record.msg = redacted
            record.args = None
        return True


_TOKEN_FILTER = AccessTokenFilter()


def install_token_filter() -> None:
    """Attach the shared AccessTokenFilter to the transport loggers once."""
    for name in TRANSPORT_LOGGERS:
        logger = logging.getLogger(name)
        if _TOKEN_FILTER not in logger.filters:
            logger.addFilter(_TOKEN_FILTER)


class LogfmtFormatter(logging.Formatter):
    """Small logfmt-style formatter that tolerates missing extras."""

    def format(self, record: logging.LogRecord) -> str:
        kv: list[str] = [
            f"level={record.levelname.lower()}",
            f"logger={record.name}",
        ]

        msg = redact_url(record.getMessage())
        if msg:
            kv.append(f"event={self._fmt_val(msg)}")

        for key in LOG_EXTRA_FIELDS:
            val = getattr(record, key, None)
            if val is None:
                continue
            if key == "url":
                val = redact_url(val)
            kv.append(f"{key}={self._fmt_val(val)}")

        if record.exc_info:
            kv.append(f"exc_type={record.exc_info[0].__name__}")

        return " ".join(kv)

    @staticmethod
    def _fmt_val(val: Any) -> str:
        if isinstance(val, (int, float, bool)):
            return str(val)
        s = str(val)
        if " " in s or "=" in s:
            s = '"' + s.replace('"', '\\"') + '"'
        return s


def setup_logging(level: str = "INFO") -> None:
    """Initialize root logging with logfmt output."""

    root = logging.getLogger()
    # Avoid duplicate handlers if called twice
    for h in list(root.handlers):
        root.removeHandler(h)

    handler = logging.StreamHandler()
    handler.setFormatter(LogfmtFormatter())
    handler.addFilter(_TOKEN_FILTER)
    root.addHandler(handler)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    install_token_filter()


def log_event(
    event: str,
    logger: logging.Logger | None = None,
    level: int = logging.INFO,
    **fields: Any,
) -> None:
    """
    Minimal structured logging helper.
    - Drops reserved LogRecord attributes to avoid collisions.
    - Redacts access tokens from a ``url`` field before it reaches the record.
    """
    log = logger or logging.getLogger("matrix_client")
    extra: Dict[str, Any] = {k: v for k, v in fields.items() if k not in RESERVED_LOG_KEYS}
    if extra.get("url") is not None:
        extra["url"] = redact_url(extra["url"])
    log.log(level, event, extra=extra)


__all__ = [
    "AccessTokenFilter",
    "LOG_EXTRA_FIELDS",
    "LogfmtFormatter",
    "install_token_filter",
    "log_event",
    "setup_logging",
]
