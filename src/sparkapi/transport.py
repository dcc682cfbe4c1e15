"""
HTTP transport collaborator using aiohttp.

Provides one-shot calls built from a header value and issued with a
response handler. Handles timeouts and classifies responses, but never
retries: a consumed call refuses to run again, and connection errors are
reported to the handler as TransportFailure.
"""

import json
import logging
import time
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field
from typing import Any

import aiohttp

from core.errors.exceptions import (
    AuthorizationFailedError,
    CallAlreadyExecutedError,
    TransportFailure,
)
from core.logging.utilities import log_with_context
from sparkapi.handler import ResponseHandler
from sparkapi.result import maybe_await

logger = logging.getLogger(__name__)

UNAUTHORIZED_STATUS = 401
AUTHORIZATION_HEADER = "Authorization"

UnauthorizedListener = Callable[["TransportResponse"], Awaitable[None] | None]


@dataclass
class TransportResponse:
    """Fully read HTTP response."""

    status: int
    body: bytes
    url: str
    method: str
    headers: Mapping[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    @property
    def content_type(self) -> str | None:
        return self.headers.get("Content-Type")

    def text(self, encoding: str = "utf-8") -> str:
        return self.body.decode(encoding, errors="replace")

    def json(self) -> Any:
        """
        Decode the body as JSON. Empty bodies (204) decode to None.

        Raises:
            ValueError: If the body is not valid JSON
        """
        if not self.body:
            return None
        return json.loads(self.body)


class HttpCall:
    """
    One-shot HTTP request bound to a session.

    Mirrors the lifecycle of a consumable call object: build it, issue it
    once. A second execute() or enqueue() raises CallAlreadyExecutedError,
    so retries must ask the request descriptor for a new call.
    """

    def __init__(
        self,
        session: aiohttp.ClientSession,
        method: str,
        url: str,
        *,
        headers: Mapping[str, str] | None = None,
        json: Any = None,
        data: Any = None,
        params: Mapping[str, Any] | None = None,
        timeout: aiohttp.ClientTimeout | None = None,
        log_body: bool = False,
    ):
        self._session = session
        self.method = method.upper()
        self.url = url
        self.headers = dict(headers or {})
        self.json = json
        self.data = data
        self.params = dict(params) if params else None
        self.timeout = timeout
        self.log_body = log_body
        self._executed = False

    @property
    def executed(self) -> bool:
        return self._executed

    @property
    def authorization(self) -> str | None:
        return self.headers.get(AUTHORIZATION_HEADER)

    def __repr__(self) -> str:
        return f"HttpCall({self.method} {self.url}, executed={self._executed})"

    async def execute(self) -> TransportResponse:
        """
        Issue the request and read the whole response.

        Raises:
            CallAlreadyExecutedError: If this call was already issued
            TransportFailure: On connection errors and timeouts
        """
        if self._executed:
            raise CallAlreadyExecutedError(
                f"Call already executed: {self.method} {self.url}",
                context={"http_method": self.method, "http_url": self.url},
            )
        self._executed = True

        log_with_context(
            logger,
            logging.DEBUG,
            f"--> {self.method} {self.url}",
            http_method=self.method,
            http_url=self.url,
            http_body=self._loggable_request_body(),
        )

        start = time.perf_counter()
        request_kwargs: dict[str, Any] = {
            "headers": self.headers,
            "json": self.json,
            "data": self.data,
            "params": self.params,
        }
        if self.timeout is not None:
            request_kwargs["timeout"] = self.timeout

        try:
            async with self._session.request(self.method, self.url, **request_kwargs) as response:
                body = await response.read()
                result = TransportResponse(
                    status=response.status,
                    body=body,
                    url=self.url,
                    method=self.method,
                    headers=dict(response.headers),
                )
        except TimeoutError as e:
            raise TransportFailure(
                f"Timeout calling {self.method} {self.url}",
                cause=e,
                context={"http_method": self.method, "http_url": self.url, "error_type": "timeout"},
            ) from e
        except aiohttp.ClientError as e:
            raise TransportFailure(
                f"Connection error calling {self.method} {self.url}: {e}",
                cause=e,
                context={"http_method": self.method, "http_url": self.url},
            ) from e

        log_with_context(
            logger,
            logging.DEBUG,
            f"<-- {result.status} {self.method} {self.url}",
            http_status=result.status,
            http_method=self.method,
            http_url=self.url,
            duration_ms=round((time.perf_counter() - start) * 1000, 2),
            http_body=result.text()[:2000] if self.log_body else None,
        )
        return result

    def _loggable_request_body(self) -> str | None:
        if not self.log_body:
            return None
        if self.json is not None:
            return str(self.json)[:2000]
        if isinstance(self.data, (str, bytes)):
            return str(self.data)[:2000]
        return None

    async def enqueue(
        self,
        handler: ResponseHandler,
        on_unauthorized: UnauthorizedListener | None = None,
    ) -> None:
        """
        Issue the call and deliver its outcome.

        Args:
            handler: Receives success or failure
            on_unauthorized: One-shot listener for a 401 response. When set,
                a 401 goes to the listener instead of the handler.
        """
        try:
            response = await self.execute()
        except TransportFailure as e:
            logger.warning(
                "Transport failure: %s",
                e.message,
                extra={"error_category": e.category.value, "http_url": self.url},
            )
            await handler.on_failure(e)
            return

        await dispatch_response(response, handler, on_unauthorized)


async def dispatch_response(
    response: TransportResponse,
    handler: ResponseHandler,
    on_unauthorized: UnauthorizedListener | None = None,
) -> None:
    """
    Classify a response and route it.

    - 2xx → handler.on_success
    - 401 with listener → listener
    - 401 without listener → handler.on_failure(AuthorizationFailedError)
    - anything else → handler.on_failure(TransportFailure)
    """
    if response.ok:
        await handler.on_success(response)
        return

    if response.status == UNAUTHORIZED_STATUS:
        if on_unauthorized is not None:
            await maybe_await(on_unauthorized(response))
            return
        await handler.on_failure(
            AuthorizationFailedError(
                f"HTTP 401 from {response.method} {response.url}",
                response=response,
                context={"http_status": response.status, "http_url": response.url},
            )
        )
        return

    await handler.on_failure(
        TransportFailure(
            f"HTTP {response.status} from {response.method} {response.url}: {response.text()[:200]}",
            status_code=response.status,
            response=response,
            context={"http_status": response.status, "http_url": response.url},
        )
    )


__all__ = [
    "TransportResponse",
    "HttpCall",
    "UnauthorizedListener",
    "dispatch_response",
    "UNAUTHORIZED_STATUS",
    "AUTHORIZATION_HEADER",
]
