"""
Service client construction.

ServiceBuilder collects base URL, default headers, timeouts and HTTP
logging options, and builds a ServiceClient that owns an aiohttp session.
The client turns (method, path) pairs into request descriptors for the
orchestrator, and offers call() for a one-line authenticated request.

Usage:
    async with ServiceBuilder().timeout(10).build() as client:
        result = await client.call(provider, "GET", "rooms", params={"max": 50})
        rooms = result.unwrap()
"""

import asyncio
import logging
from collections.abc import Callable, Mapping
from typing import TYPE_CHECKING, Any
from urllib.parse import urljoin

import aiohttp

from core import __version__
from core.types import TokenProvider
from sparkapi.handler import ResultResponseHandler
from sparkapi.orchestrator import RequestDescriptor, perform_authenticated
from sparkapi.result import Result
from sparkapi.transport import AUTHORIZATION_HEADER, HttpCall, TransportResponse

if TYPE_CHECKING:
    from config.config import ClientConfig

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.ciscospark.com/v1/"
DEFAULT_TIMEOUT_SECONDS = 30
DEFAULT_CONNECT_TIMEOUT_SECONDS = 10
DEFAULT_HEADERS = {
    "User-Agent": f"sparkapi-python/{__version__}",
    "Accept": "application/json",
}


def _normalize_base_url(url: str) -> str:
    # urljoin drops the last path segment unless the base ends with a slash
    return url if url.endswith("/") else url + "/"


class ServiceClient:
    """
    HTTP client bound to one base URL.

    Session lifecycle: a session passed in is borrowed and never closed; a
    session created on first use is owned and closed by close().
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        headers: Mapping[str, str] | None = None,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        connect_timeout_seconds: float = DEFAULT_CONNECT_TIMEOUT_SECONDS,
        log_http_body: bool = False,
        notify_on_prepare_failure: bool = False,
        session: aiohttp.ClientSession | None = None,
        connector_limit: int = 100,
        connector_limit_per_host: int = 30,
    ):
        self.base_url = _normalize_base_url(base_url)
        self.headers = dict(DEFAULT_HEADERS if headers is None else headers)
        self.timeout = aiohttp.ClientTimeout(
            total=timeout_seconds,
            sock_connect=connect_timeout_seconds,
        )
        self.log_http_body = log_http_body
        self.notify_on_prepare_failure = notify_on_prepare_failure
        self._session = session
        self._owns_session = session is None
        self._connector_limit = connector_limit
        self._connector_limit_per_host = connector_limit_per_host

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            connector = aiohttp.TCPConnector(
                limit=self._connector_limit,
                limit_per_host=self._connector_limit_per_host,
                enable_cleanup_closed=True,
            )
            self._session = aiohttp.ClientSession(
                connector=connector,
                raise_for_status=False,
                timeout=aiohttp.ClientTimeout(total=None),  # Per-request timeout
            )
            self._owns_session = True
            logger.debug("Created HTTP session", extra={"http_url": self.base_url})
        return self._session

    def url_for(self, path: str) -> str:
        return urljoin(self.base_url, path.lstrip("/"))

    def prepare(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        data: Any = None,
        params: Mapping[str, Any] | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> RequestDescriptor:
        """
        Build a request descriptor for the orchestrator.

        Each invocation of the descriptor produces a new HttpCall carrying
        the given Authorization header value. None leaves the header off.
        """
        url = self.url_for(path)

        def build(authorization: str | None) -> HttpCall:
            request_headers = {**self.headers, **(headers or {})}
            if authorization is not None:
                request_headers[AUTHORIZATION_HEADER] = authorization
            return HttpCall(
                self._get_session(),
                method,
                url,
                headers=request_headers,
                json=json,
                data=data,
                params=params,
                timeout=self.timeout,
                log_body=self.log_http_body,
            )

        return build

    async def call(
        self,
        token_provider: TokenProvider | None,
        method: str,
        path: str,
        *,
        json: Any = None,
        data: Any = None,
        params: Mapping[str, Any] | None = None,
        headers: Mapping[str, str] | None = None,
        parse: Callable[[TransportResponse], Any] | None = TransportResponse.json,
        notify_on_prepare_failure: bool | None = None,
    ) -> Result[Any]:
        """
        Perform an authenticated request and return its single outcome.

        Args:
            token_provider: Token source, or None for an unauthenticated call
            method: HTTP method
            path: Path relative to the base URL
            parse: Applied to a successful response. Defaults to JSON
                decoding; pass None to receive the TransportResponse itself.
            notify_on_prepare_failure: Overrides the client default for this call

        Returns:
            Result.success(parsed body) or Result.failure(error). Credential
            errors and response errors arrive the same way.
        """
        outcome: list[Result[Any]] = []

        def complete(result: Result[Any]) -> None:
            outcome.append(result)

        call = await perform_authenticated(
            token_provider,
            self.prepare(method, path, json=json, data=data, params=params, headers=headers),
            ResultResponseHandler(complete, parse=parse),
            on_auth_failed=complete,
            notify_on_prepare_failure=(
                self.notify_on_prepare_failure
                if notify_on_prepare_failure is None
                else notify_on_prepare_failure
            ),
            operation=f"{method.upper()} {path}",
        )

        logger.debug(
            "Call finished",
            extra={
                "call_id": call.call_id,
                "attempt": call.attempts,
                "http_method": method.upper(),
                "http_url": self.url_for(path),
            },
        )
        return outcome[0]

    async def close(self) -> None:
        if self._session is not None and self._owns_session and not self._session.closed:
            await self._session.close()
            # Give time for connections to close
            await asyncio.sleep(0.250)
            logger.debug("Closed HTTP session")
        self._session = None

    async def __aenter__(self) -> "ServiceClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()


class ServiceBuilder:
    """
    Fluent builder for ServiceClient.

    The first call to header() discards the default headers, so a builder
    that sets any header sends exactly the headers it was given.
    """

    def __init__(self):
        self._base_url = DEFAULT_BASE_URL
        self._headers: dict[str, str] = dict(DEFAULT_HEADERS)
        self._headers_changed = False
        self._timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
        self._connect_timeout_seconds: float = DEFAULT_CONNECT_TIMEOUT_SECONDS
        self._log_http_body = False
        self._notify_on_prepare_failure = False
        self._session: aiohttp.ClientSession | None = None

    def base_url(self, url: str) -> "ServiceBuilder":
        if not url:
            raise ValueError("base_url must not be empty")
        self._base_url = url
        return self

    def header(self, name: str, value: str | None) -> "ServiceBuilder":
        if not self._headers_changed:
            self._headers.clear()
            self._headers_changed = True
        if value is not None:
            self._headers[name] = value
        return self

    def timeout(
        self,
        total_seconds: float,
        connect_seconds: float | None = None,
    ) -> "ServiceBuilder":
        if total_seconds <= 0:
            raise ValueError(f"timeout must be positive, got {total_seconds}")
        self._timeout_seconds = total_seconds
        if connect_seconds is not None:
            self._connect_timeout_seconds = connect_seconds
        return self

    def log_http_body(self, enabled: bool = True) -> "ServiceBuilder":
        self._log_http_body = enabled
        return self

    def notify_on_prepare_failure(self, enabled: bool = True) -> "ServiceBuilder":
        self._notify_on_prepare_failure = enabled
        return self

    def session(self, session: aiohttp.ClientSession) -> "ServiceBuilder":
        self._session = session
        return self

    def build(self) -> ServiceClient:
        logger.debug(
            "Building service client",
            extra={"http_url": self._base_url},
        )
        return ServiceClient(
            base_url=self._base_url,
            headers=self._headers,
            timeout_seconds=self._timeout_seconds,
            connect_timeout_seconds=self._connect_timeout_seconds,
            log_http_body=self._log_http_body,
            notify_on_prepare_failure=self._notify_on_prepare_failure,
            session=self._session,
        )

    @classmethod
    def from_config(cls, config: "ClientConfig") -> "ServiceBuilder":
        builder = (
            cls()
            .base_url(config.base_url)
            .timeout(config.timeout_seconds, config.connect_timeout_seconds)
            .log_http_body(config.log_http_body)
            .notify_on_prepare_failure(config.notify_on_prepare_failure)
        )
        for name, value in config.headers.items():
            builder.header(name, value)
        return builder


__all__ = [
    "ServiceBuilder",
    "ServiceClient",
    "DEFAULT_BASE_URL",
    "DEFAULT_HEADERS",
]
