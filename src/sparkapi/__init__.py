"""
sparkapi: authenticated HTTP request pipeline.

Issues bearer-token calls, refreshes an expired token once per rejected
call and retries with a freshly built request.

Modules:
    orchestrator - perform_authenticated and the AuthenticatedCall state machine
    transport    - one-shot HttpCall over aiohttp and response dispatch
    handler      - response handlers and exactly-once delivery
    result       - Result type delivered to completion callbacks
    service      - ServiceBuilder / ServiceClient
"""

from sparkapi.handler import (
    CallbackResponseHandler,
    OnceGuard,
    ResponseHandler,
    ResultResponseHandler,
)
from sparkapi.orchestrator import (
    AuthenticatedCall,
    CallState,
    RequestDescriptor,
    perform_authenticated,
)
from sparkapi.result import CompletionHandler, Result
from sparkapi.service import DEFAULT_BASE_URL, ServiceBuilder, ServiceClient
from sparkapi.transport import HttpCall, TransportResponse, dispatch_response

__all__ = [
    # Orchestration
    "perform_authenticated",
    "AuthenticatedCall",
    "CallState",
    "RequestDescriptor",
    # Transport
    "HttpCall",
    "TransportResponse",
    "dispatch_response",
    # Handlers
    "ResponseHandler",
    "CallbackResponseHandler",
    "ResultResponseHandler",
    "OnceGuard",
    "Result",
    "CompletionHandler",
    # Service
    "ServiceBuilder",
    "ServiceClient",
    "DEFAULT_BASE_URL",
]
