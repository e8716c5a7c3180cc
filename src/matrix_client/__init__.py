"""matrix_client package exports."""

from .auth import (
    PasswordCredentials,
    login,
    logout,
    register_with_shared_secret,
    shared_secret_mac,
)
from .client import (
    ContentResult,
    MatrixHttpClient,
    PreparedRequest,
    create_client_from_env,
)
from .config import Capability, ClientDefaults, load_env_config
from .context import SessionContext
from .discovery import DiscoverySettings, discover_settings
from .errors import (
    CapabilityError,
    ErrorInfo,
    InvalidStateError,
    MatrixClientError,
    MatrixHTTPError,
    MatrixParseError,
    MatrixRateLimitedError,
    MatrixRequestError,
    MatrixTransportError,
    MissingAccessTokenError,
    classify_error,
)
from .logging import setup_logging
from .ratelimit import RetryAfterPolicy, fail_on_rate_limit
from .urls import build_url, redact_url, with_access_token

__all__ = [
    # Client
    "MatrixHttpClient",
    "PreparedRequest",
    "ContentResult",
    "create_client_from_env",
    # Context & config
    "SessionContext",
    "Capability",
    "ClientDefaults",
    "load_env_config",
    # Flows
    "DiscoverySettings",
    "discover_settings",
    "PasswordCredentials",
    "login",
    "logout",
    "register_with_shared_secret",
    "shared_secret_mac",
    # Exceptions
    "MatrixClientError",
    "InvalidStateError",
    "MissingAccessTokenError",
    "CapabilityError",
    "MatrixRequestError",
    "MatrixTransportError",
    "MatrixParseError",
    "MatrixHTTPError",
    "MatrixRateLimitedError",
    "ErrorInfo",
    "classify_error",
    # Rate limiting
    "fail_on_rate_limit",
    "RetryAfterPolicy",
    # URLs & logging
    "build_url",
    "with_access_token",
    "redact_url",
    "setup_logging",
]
