"""Context managers for structured logging."""

from typing import Dict, Optional

from core.logging.context import get_log_context, set_log_context


class LogContext:
    """
    Context manager for temporary log context.

    Usage:
        with LogContext(call_id=call_id, operation="GET /rooms"):
            # All logs in this block carry call_id and operation
            await call.run()

    Context variables are per-task, so concurrent calls each see their own
    values.
    """

    def __init__(
        self,
        call_id: Optional[str] = None,
        operation: Optional[str] = None,
        client: Optional[str] = None,
        trace_id: Optional[str] = None,
    ):
        self.new_context = {
            "call_id": call_id,
            "operation": operation,
            "client": client,
            "trace_id": trace_id,
        }
        self.old_context: Dict[str, str] = {}

    def __enter__(self) -> "LogContext":
        self.old_context = get_log_context()
        set_log_context(**self.new_context)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        set_log_context(**self.old_context)
        return False

