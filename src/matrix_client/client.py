import json
import logging
import time
from dataclasses import dataclass, replace
from typing import Any, FrozenSet, Iterable, List, Mapping, Optional, Type, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from .config import Capability, ClientDefaults, load_env_config
from .context import SessionContext
from .errors import (
    CapabilityError,
    MatrixHTTPError,
    MatrixParseError,
    MatrixRateLimitedError,
    MatrixTransportError,
    classify_error,
)
from .logging import install_token_filter, log_event
from .models import VersionsResponse
from .ratelimit import RateLimitPolicy, fail_on_rate_limit
from .urls import build_url, redact_url, with_access_token

T = TypeVar("T", bound=BaseModel)

IDENTITY_PROBE_BODY = "{}"


@dataclass(frozen=True)
class PreparedRequest:
    method: str
    url: httpx.URL
    json: Any = None
    content: Optional[bytes] = None
    headers: Optional[Mapping[str, str]] = None
    # Statuses that mean "no result" rather than failure, e.g. 404 on an unset profile field.
    ignored_statuses: FrozenSet[int] = frozenset()

    def ignoring(self, *statuses: int) -> "PreparedRequest":
        return replace(
            self, ignored_statuses=self.ignored_statuses | frozenset(statuses)
        )


class ContentResult:
    """Binary response of a content (media) request."""

    def __init__(self, response: httpx.Response):
        self.status_code = response.status_code
        self.headers = response.headers
        self.content_type: Optional[str] = response.headers.get("content-type")
        self.data: bytes = response.content

    @property
    def valid(self) -> bool:
        return self.status_code == 200

    def header(self, name: str) -> Optional[str]:
        return self.headers.get(name)


class MatrixHttpClient:
    """
    Synchronous HTTP client for the Matrix client-server API.
    - Builds URLs from the session context (token, virtual user)
    - Executes requests and classifies failures
    - Rate limiting is delegated to an injected policy (default: fail)

    A client handle is single-owner: the context is swapped on login, logout
    and discovery without any locking, so sharing one handle across threads
    needs external synchronization.
    """

    def __init__(
        self,
        context: Optional[SessionContext] = None,
        *,
        defaults: Optional[ClientDefaults] = None,
        capabilities: Optional[Iterable[Capability]] = None,
        rate_limit_policy: Optional[RateLimitPolicy] = None,
        logger: Optional[logging.Logger] = None,
        http: Optional[httpx.Client] = None,
    ):
        self.defaults = defaults if defaults is not None else ClientDefaults()
        caps = (
            self.defaults.capabilities if capabilities is None else capabilities
        )
        self.capabilities: FrozenSet[Capability] = frozenset(caps) | {
            Capability.STANDARD
        }
        self.rate_limit_policy = rate_limit_policy or fail_on_rate_limit
        self.log = logger or logging.getLogger("matrix_client.client")
        install_token_filter()

        self.context = context if context is not None else SessionContext()

        self._owns_http = http is None
        self.http = http or httpx.Client(
            headers={
                "Accept": "application/json",
                "User-Agent": self.defaults.user_agent,
            },
            timeout=httpx.Timeout(
                self.defaults.read_timeout_seconds,
                connect=self.defaults.connect_timeout_seconds,
            ),
            follow_redirects=True,
        )

    @classmethod
    def from_domain(cls, domain: str, **kwargs) -> "MatrixHttpClient":
        return cls(SessionContext(domain=domain), **kwargs)

    @classmethod
    def from_home_server(cls, base_url: str, **kwargs) -> "MatrixHttpClient":
        return cls(SessionContext(home_server_url=base_url), **kwargs)

    @classmethod
    def from_env(cls, **kwargs) -> "MatrixHttpClient":
        context = SessionContext.from_env()
        if not context.domain and not context.home_server_url:
            raise ValueError(
                "Missing MATRIX_DOMAIN or MATRIX_HOME_SERVER_URL in environment."
            )
        kwargs.setdefault("defaults", load_env_config(use_dotenv=False))
        return cls(context, **kwargs)

    def close(self) -> None:
        if self._owns_http:
            self.http.close()

    def __enter__(self) -> "MatrixHttpClient":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # --- context -------------------------------------------------------

    @property
    def context(self) -> SessionContext:
        return self._context

    @context.setter
    def context(self, value: SessionContext) -> None:
        if value.is_virtual:
            self.require_capability(Capability.VIRTUAL_IMPERSONATION)
        self._context = value

    def for_context(self, context: SessionContext) -> "MatrixHttpClient":
        """New handle on ``context`` sharing this client's transport."""
        return MatrixHttpClient(
            context,
            defaults=self.defaults,
            capabilities=self.capabilities,
            rate_limit_policy=self.rate_limit_policy,
            logger=self.log,
            http=self.http,
        )

    def has_capability(self, capability: Capability) -> bool:
        return capability in self.capabilities

    def require_capability(self, capability: Capability) -> None:
        if capability not in self.capabilities:
            raise CapabilityError(
                f"This client was not configured with the {capability.value!r} capability."
            )

    # --- URLs ----------------------------------------------------------

    def url(
        self,
        module: str,
        version: str,
        path: str,
        *,
        authenticated: bool = False,
        params: Optional[Mapping[str, Any]] = None,
        context: Optional[SessionContext] = None,
    ) -> httpx.URL:
        ctx = context or self.context
        url = build_url(
            ctx.require_home_server(), module, version, path, ctx, dict(params or {})
        )
        return with_access_token(url, ctx) if authenticated else url

    def client_url(
        self,
        path: str,
        *,
        authenticated: bool = True,
        params: Optional[Mapping[str, Any]] = None,
        version: Optional[str] = None,
    ) -> httpx.URL:
        return self.url(
            "client",
            version if version is not None else self.defaults.client_api_version,
            path,
            authenticated=authenticated,
            params=params,
        )

    def media_url(
        self, path: str, *, params: Optional[Mapping[str, Any]] = None
    ) -> httpx.URL:
        return self.url(
            "media",
            self.defaults.media_api_version,
            path,
            authenticated=True,
            params=params,
        )

    def identity_url(
        self, path: str, *, context: Optional[SessionContext] = None
    ) -> httpx.URL:
        ctx = context or self.context
        return build_url(
            ctx.require_identity_server(),
            "identity",
            self.defaults.identity_api_version,
            path,
            ctx,
        )

    # --- execution -----------------------------------------------------

    def execute(self, request: PreparedRequest) -> Optional[str]:
        """
        Text mode.
        - Returns the body on 200
        - Returns None when the status is one of request.ignored_statuses
        - Hands 429 to the rate-limit policy
        - Raises MatrixHTTPError on other statuses, MatrixTransportError on
          network/timeout/protocol failures
        """
        try:
            return self._send_text(request)
        except MatrixRateLimitedError as exc:
            return self.rate_limit_policy(
                request, exc, lambda: self._send_text(request)
            )

    def execute_content(self, request: PreparedRequest) -> Optional[ContentResult]:
        """Content mode: like execute() but keeps headers and raw bytes."""
        try:
            return self._send_content(request)
        except MatrixRateLimitedError as exc:
            return self.rate_limit_policy(
                request, exc, lambda: self._send_content(request)
            )

    def execute_json(self, request: PreparedRequest) -> Optional[Any]:
        body = self.execute(request)
        if body is None:
            return None
        if not body.strip():
            return {}
        try:
            return json.loads(body)
        except ValueError as exc:
            raise MatrixParseError(
                f"Expected JSON from {request.method} {redact_url(request.url)}, "
                f"got non-JSON body snippet: {body[:500]!r}"
            ) from exc

    def execute_model(self, model: Type[T], request: PreparedRequest) -> Optional[T]:
        body = self.execute(request)
        if body is None:
            return None
        try:
            return model.model_validate_json(body)
        except ValidationError as exc:
            raise MatrixParseError(
                f"Response from {request.method} {redact_url(request.url)} "
                f"did not match model {model.__name__}: {exc}"
            ) from exc

    def _send_text(self, request: PreparedRequest) -> Optional[str]:
        resp = self._send(request)
        body = resp.text
        if resp.status_code == 200:
            return body
        if resp.status_code in request.ignored_statuses:
            self.log.debug(
                "matrix.status_ignored",
                extra={"method": request.method, "status": resp.status_code},
            )
            return None
        raise self._to_http_error(request, resp.status_code, body)

    def _send_content(self, request: PreparedRequest) -> Optional[ContentResult]:
        resp = self._send(request)
        if resp.status_code == 200:
            result = ContentResult(resp)
            if not result.data:
                self.log.debug("matrix.content_empty", extra={"status": 200})
            elif result.content_type is None:
                self.log.debug("matrix.content_untyped", extra={"status": 200})
            return result
        if resp.status_code in request.ignored_statuses:
            self.log.debug(
                "matrix.status_ignored",
                extra={"method": request.method, "status": resp.status_code},
            )
            return None
        raise self._to_http_error(request, resp.status_code, resp.text)

    def _send(self, request: PreparedRequest) -> httpx.Response:
        method = request.method.upper()
        url = redact_url(request.url)
        start = time.perf_counter()

        try:
            resp = self.http.request(
                method,
                request.url,
                json=request.json,
                content=request.content,
                headers=request.headers,
            )
        except (httpx.ConnectError, httpx.TimeoutException) as exc:
            raise MatrixTransportError(
                f"Network/timeout error calling {method} {url}: {redact_url(exc)}"
            ) from exc
        except httpx.HTTPError as exc:
            raise MatrixTransportError(
                f"HTTPX error calling {method} {url}: {redact_url(exc)}"
            ) from exc

        log_event(
            "matrix.request",
            self.log,
            logging.DEBUG,
            method=method,
            url=url,
            status=resp.status_code,
            duration_ms=int((time.perf_counter() - start) * 1000),
        )
        return resp

    def _to_http_error(
        self, request: PreparedRequest, status_code: int, body: Optional[str]
    ) -> MatrixHTTPError:
        info = classify_error(body, status_code)
        method = request.method.upper()
        url = redact_url(request.url)
        if status_code == 429:
            return MatrixRateLimitedError(method=method, url=url, info=info)
        return MatrixHTTPError(
            status_code=status_code, method=method, url=url, info=info
        )

    # --- server probes -------------------------------------------------

    def get_home_api_versions(
        self, context: Optional[SessionContext] = None
    ) -> List[str]:
        """Spec versions the home server of ``context`` (default: ours) supports."""
        url = self.url("client", "", "versions", context=context)
        result = self.execute_model(VersionsResponse, PreparedRequest("GET", url))
        return list(result.versions) if result is not None else []

    def validate_identity_server(
        self, context: Optional[SessionContext] = None
    ) -> bool:
        url = self.identity_url("v1", context=context)
        return self.execute(PreparedRequest("GET", url)) == IDENTITY_PROBE_BODY


def create_client_from_env(**kwargs) -> MatrixHttpClient:
    """Create a MatrixHttpClient from MATRIX_* environment variables."""
    return MatrixHttpClient.from_env(**kwargs)


__all__ = [
    "ContentResult",
    "MatrixHttpClient",
    "PreparedRequest",
    "create_client_from_env",
]
