"""
Response handlers.

A handler receives the outcome of an issued call: on_success with the
response, or on_failure with a ClientError. Authorization failures are not
a handler capability; the orchestrator passes a one-shot on_unauthorized
listener with each issuance instead.
"""

import logging
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from typing import Any

from sparkapi.result import CompletionHandler, Result, maybe_await

logger = logging.getLogger(__name__)


class ResponseHandler(ABC):
    """Receives the outcome of one issued call."""

    @abstractmethod
    async def on_success(self, response: Any) -> None:
        ...

    @abstractmethod
    async def on_failure(self, error: BaseException) -> None:
        ...


class CallbackResponseHandler(ResponseHandler):
    """Adapts a pair of plain or async callables to ResponseHandler."""

    def __init__(
        self,
        on_success: Callable[[Any], Awaitable[None] | None],
        on_failure: Callable[[BaseException], Awaitable[None] | None],
    ):
        self._on_success = on_success
        self._on_failure = on_failure

    async def on_success(self, response: Any) -> None:
        await maybe_await(self._on_success(response))

    async def on_failure(self, error: BaseException) -> None:
        await maybe_await(self._on_failure(error))


class ResultResponseHandler(ResponseHandler):
    """
    Folds both handler outcomes into one Result for a completion callback.

    Args:
        completion: Receives Result.success(payload) or Result.failure(error)
        parse: Optional converter applied to the response on success (for
            example TransportResponse.json). A parse error becomes a failure.
    """

    def __init__(
        self,
        completion: CompletionHandler,
        parse: Callable[[Any], Any] | None = None,
    ):
        self._completion = completion
        self._parse = parse

    async def on_success(self, response: Any) -> None:
        if self._parse is None:
            await maybe_await(self._completion(Result.success(response)))
            return

        try:
            data = self._parse(response)
        except Exception as e:
            logger.debug("Response parse failed: %s", e, extra={"error": type(e).__name__})
            await maybe_await(self._completion(Result.failure(e)))
            return
        await maybe_await(self._completion(Result.success(data)))

    async def on_failure(self, error: BaseException) -> None:
        await maybe_await(self._completion(Result.failure(error)))


class OnceGuard:
    """
    Exactly-once delivery across a handler and an auth-failure channel.

    The first outcome delivered through any channel wins. Later deliveries
    are dropped with a warning. abandon() drops every delivery that has not
    happened yet, for callers that lost interest.
    """

    def __init__(
        self,
        handler: ResponseHandler,
        on_auth_failed: CompletionHandler | None = None,
        call_id: str = "",
    ):
        self._handler = handler
        self._on_auth_failed = on_auth_failed
        self._call_id = call_id
        self.delivered = False
        self.abandoned = False

    def _claim(self, channel: str) -> bool:
        if self.delivered:
            logger.warning(
                "Dropping duplicate %s delivery",
                channel,
                extra={"call_id": self._call_id},
            )
            return False
        self.delivered = True
        if self.abandoned:
            logger.debug(
                "Caller abandoned the call, dropping %s delivery",
                channel,
                extra={"call_id": self._call_id},
            )
            return False
        return True

    def abandon(self) -> None:
        self.abandoned = True

    async def success(self, response: Any) -> None:
        if self._claim("success"):
            await self._handler.on_success(response)

    async def failure(self, error: BaseException) -> None:
        if self._claim("failure"):
            await self._handler.on_failure(error)

    async def auth_failed(self, error: BaseException) -> None:
        if not self._claim("auth failure"):
            return
        if self._on_auth_failed is None:
            # No dedicated channel, fall back to the handler rather than drop
            await self._handler.on_failure(error)
            return
        await maybe_await(self._on_auth_failed(Result.failure(error)))

    def as_handler(self) -> ResponseHandler:
        """View of this guard usable wherever a ResponseHandler is expected."""
        return CallbackResponseHandler(self.success, self.failure)


__all__ = [
    "ResponseHandler",
    "CallbackResponseHandler",
    "ResultResponseHandler",
    "OnceGuard",
]
