"""Context variables for structured logging."""

from contextvars import ContextVar
from typing import Dict, Optional

_call_id: ContextVar[str] = ContextVar("call_id", default="")
_operation: ContextVar[str] = ContextVar("operation", default="")
_client: ContextVar[str] = ContextVar("client", default="")
_trace_id: ContextVar[str] = ContextVar("trace_id", default="")


def set_log_context(
    call_id: Optional[str] = None,
    operation: Optional[str] = None,
    client: Optional[str] = None,
    trace_id: Optional[str] = None,
) -> None:
    if call_id is not None:
        _call_id.set(call_id)
    if operation is not None:
        _operation.set(operation)
    if client is not None:
        _client.set(client)
    if trace_id is not None:
        _trace_id.set(trace_id)


def get_log_context() -> Dict[str, str]:
    return {
        "call_id": _call_id.get(),
        "operation": _operation.get(),
        "client": _client.get(),
        "trace_id": _trace_id.get(),
    }


def clear_log_context() -> None:
    _call_id.set("")
    _operation.set("")
    _client.set("")
    _trace_id.set("")
