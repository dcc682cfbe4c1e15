"""
Authenticated call orchestration.

Runs one logical operation against a token provider:

    get token -> build + issue request -> (401) refresh once -> rebuild + reissue once

The caller sees exactly one outcome: either through the response handler
(success, transport failure, a 401 on the retry) or through on_auth_failed
(no credentials, refresh failure).

Usage:
    await perform_authenticated(
        provider,
        lambda auth: client.prepare("GET", "rooms")(auth),
        ResultResponseHandler(on_done),
        on_auth_failed=on_done,
    )
"""

import asyncio
import logging
from collections.abc import Callable
from enum import Enum

from core.errors.exceptions import (
    AuthError,
    AuthorizationFailedError,
    CallAlreadyExecutedError,
    NoCredentialsError,
    RefreshFailedError,
    RequestNotBuiltError,
)
from core.logging.context_managers import LogContext
from core.logging.setup import generate_call_id
from core.logging.utilities import log_exception, log_with_context
from core.types import TokenProvider
from sparkapi.handler import OnceGuard, ResponseHandler
from sparkapi.result import CompletionHandler
from sparkapi.transport import HttpCall, TransportResponse, UnauthorizedListener

logger = logging.getLogger(__name__)

RequestDescriptor = Callable[[str | None], HttpCall | None]

# Tracked so scheduled calls are not garbage collected mid-flight
_background_tasks: set[asyncio.Task] = set()


def bearer(token: str) -> str:
    return f"Bearer {token}"


class CallState(str, Enum):
    AWAITING_TOKEN = "awaiting_token"
    REQUESTING = "requesting"
    AWAITING_REFRESH = "awaiting_refresh"
    RETRYING = "retrying"
    DONE = "done"


class AuthenticatedCall:
    """
    One authenticated operation, driven as an explicit state machine.

    States move forward only:
        AWAITING_TOKEN -> REQUESTING -> AWAITING_REFRESH -> RETRYING -> DONE
    Any state may jump to DONE.

    Args:
        token_provider: Source of bearer tokens. None issues the request
            without credentials; a 401 then goes straight to on_auth_failed.
        build_request: Descriptor turning a header value (or None) into a
            fresh one-shot HttpCall
        handler: Receives the outcome of the issued call
        on_auth_failed: Receives Result.failure for credential errors.
            Falls back to handler.on_failure when omitted.
        notify_on_prepare_failure: Invoke build_request(None) before
            reporting a credential error, so the descriptor can observe it
        operation: Label attached to log records
    """

    def __init__(
        self,
        token_provider: TokenProvider | None,
        build_request: RequestDescriptor,
        handler: ResponseHandler,
        on_auth_failed: CompletionHandler | None = None,
        notify_on_prepare_failure: bool = False,
        operation: str | None = None,
    ):
        self._token_provider = token_provider
        self._build_request = build_request
        self._notify_on_prepare_failure = notify_on_prepare_failure
        self.operation = operation or "authenticated_call"
        self.call_id = generate_call_id()
        self._guard = OnceGuard(handler, on_auth_failed, call_id=self.call_id)
        self._state = CallState.AWAITING_TOKEN
        self._started = False
        self.attempts = 0
        self.refreshes = 0

    @property
    def state(self) -> CallState:
        return self._state

    @property
    def abandoned(self) -> bool:
        return self._guard.abandoned

    def abandon(self) -> None:
        """
        Stop delivering to the caller.

        In-flight work (token fetch, refresh, request) still runs to
        completion so the provider cache stays consistent; only the final
        delivery is dropped.
        """
        self._guard.abandon()
        logger.debug("Call abandoned", extra={"call_id": self.call_id, "call_state": self._state.value})

    def _transition(self, new_state: CallState) -> None:
        old_state = self._state
        self._state = new_state
        log_with_context(
            logger,
            logging.DEBUG,
            f"{old_state.value} -> {new_state.value}",
            call_id=self.call_id,
            call_state=new_state.value,
        )

    async def run(self) -> None:
        """Drive the call to DONE. Can only be run once."""
        if self._started:
            raise CallAlreadyExecutedError(f"Authenticated call {self.call_id} already started")
        self._started = True

        with LogContext(call_id=self.call_id, operation=self.operation):
            try:
                await self._acquire_and_issue()
            finally:
                self._transition(CallState.DONE)

    def schedule(self) -> asyncio.Task:
        """Run the call as a fire-and-forget task on the running loop."""
        task = asyncio.create_task(self.run(), name=self.call_id)
        _background_tasks.add(task)

        def _on_task_done(t: asyncio.Task) -> None:
            _background_tasks.discard(t)
            if not t.cancelled() and t.exception() is not None:
                logger.error(
                    "Scheduled call failed",
                    extra={"call_id": self.call_id, "error": str(t.exception())[:200]},
                )

        task.add_done_callback(_on_task_done)
        return task

    async def _acquire_and_issue(self) -> None:
        if self._token_provider is None:
            self._transition(CallState.REQUESTING)
            await self._issue(None, on_unauthorized=self._reject_unauthenticated)
            return

        try:
            token = await self._token_provider.get_token()
        except Exception as e:
            await self._fail_auth(
                self._as_auth_error(e, NoCredentialsError, "Failed to get access token"),
                "No access token available",
            )
            return

        self._transition(CallState.REQUESTING)
        await self._issue(bearer(token), on_unauthorized=self._refresh_and_retry)

    async def _issue(
        self,
        header_value: str | None,
        on_unauthorized: UnauthorizedListener | None,
    ) -> None:
        try:
            call = self._build_request(header_value)
        except Exception as e:
            error = RequestNotBuiltError(
                f"Request descriptor raised: {e}",
                cause=e,
                context={"call_id": self.call_id, "call_state": self._state.value},
            )
            log_exception(logger, e, "Request descriptor raised", call_id=self.call_id)
            await self._guard.failure(error)
            return

        if call is None:
            await self._guard.failure(
                RequestNotBuiltError(
                    "Request descriptor returned no call",
                    context={"call_id": self.call_id, "call_state": self._state.value},
                )
            )
            return

        self.attempts += 1
        try:
            await call.enqueue(self._guard.as_handler(), on_unauthorized)
        except CallAlreadyExecutedError as e:
            # Descriptor handed back a consumed call instead of building one
            await self._guard.failure(e)

    async def _refresh_and_retry(self, response: TransportResponse) -> None:
        self._transition(CallState.AWAITING_REFRESH)
        log_with_context(
            logger,
            logging.INFO,
            "Authorization rejected, refreshing token",
            call_id=self.call_id,
            http_status=response.status,
            http_url=response.url,
        )

        self.refreshes += 1
        try:
            token = await self._token_provider.refresh_token()
        except Exception as e:
            await self._fail_auth(
                self._as_auth_error(e, RefreshFailedError, "Failed to refresh access token"),
                "Token refresh failed",
            )
            return

        self._transition(CallState.RETRYING)
        log_with_context(
            logger,
            logging.INFO,
            "Token refreshed, retrying request",
            call_id=self.call_id,
            attempt=self.attempts + 1,
        )
        # No listener on the retry: a second 401 is the handler's failure
        await self._issue(bearer(token), on_unauthorized=None)

    async def _reject_unauthenticated(self, response: TransportResponse) -> None:
        await self._fail_auth(
            AuthorizationFailedError(
                "Request rejected and no token provider is configured",
                response=response,
                context={"http_status": response.status, "http_url": response.url},
            ),
            "Unauthenticated request rejected",
        )

    async def _fail_auth(self, error: AuthError, msg: str) -> None:
        if self._notify_on_prepare_failure:
            # Result is discarded; the descriptor is only told that preparation failed
            try:
                self._build_request(None)
            except Exception as e:
                log_exception(
                    logger,
                    e,
                    "Request descriptor raised while being notified",
                    level=logging.DEBUG,
                    include_traceback=False,
                    call_id=self.call_id,
                )

        log_exception(
            logger,
            error,
            msg,
            level=logging.WARNING,
            include_traceback=False,
            call_id=self.call_id,
            call_state=self._state.value,
        )
        await self._guard.auth_failed(error)

    @staticmethod
    def _as_auth_error(exc: Exception, default_class: type[AuthError], msg: str) -> AuthError:
        if isinstance(exc, AuthError):
            return exc
        return default_class(f"{msg}: {exc}", cause=exc)


async def perform_authenticated(
    token_provider: TokenProvider | None,
    build_request: RequestDescriptor,
    handler: ResponseHandler,
    on_auth_failed: CompletionHandler | None = None,
    notify_on_prepare_failure: bool = False,
    operation: str | None = None,
) -> AuthenticatedCall:
    """
    Perform one authenticated operation and wait for it to finish.

    Returns the finished AuthenticatedCall for inspection (attempts,
    refreshes, call_id). The outcome itself is delivered through handler or
    on_auth_failed, exactly once.
    """
    call = AuthenticatedCall(
        token_provider,
        build_request,
        handler,
        on_auth_failed=on_auth_failed,
        notify_on_prepare_failure=notify_on_prepare_failure,
        operation=operation,
    )
    await call.run()
    return call


__all__ = [
    "AuthenticatedCall",
    "CallState",
    "RequestDescriptor",
    "bearer",
    "perform_authenticated",
]
