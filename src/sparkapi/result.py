"""Completion result delivered to callers of authenticated operations."""

import inspect
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class Result(Generic[T]):
    """
    Tagged union of success(data) / failure(error).

    Attributes:
        data: Payload on success (may itself be None)
        error: Exception on failure, None on success
    """

    data: T | None = None
    error: BaseException | None = None

    @classmethod
    def success(cls, data: T | None = None) -> "Result[T]":
        return cls(data=data)

    @classmethod
    def failure(cls, error: BaseException) -> "Result[T]":
        if error is None:
            raise ValueError("failure() requires an error")
        return cls(error=error)

    @property
    def is_success(self) -> bool:
        return self.error is None

    def unwrap(self) -> T | None:
        """Return data on success, raise the error on failure."""
        if self.error is not None:
            raise self.error
        return self.data


CompletionHandler = Callable[[Result[Any]], Awaitable[None] | None]


async def maybe_await(value: Any) -> Any:
    """Await value if it is awaitable; callbacks may be plain or async functions."""
    if inspect.isawaitable(value):
        return await value
    return value


__all__ = ["Result", "CompletionHandler", "maybe_await"]
