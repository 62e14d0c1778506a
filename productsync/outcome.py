from dataclasses import dataclass
from typing import Awaitable, Generic, Optional, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class Outcome(Generic[T]):
    """Success-with-value or failure-with-cause, returned instead of raising."""

    value: Optional[T] = None
    error: Optional[Exception] = None

    @classmethod
    def success(cls, value: T = None) -> "Outcome[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: Exception) -> "Outcome[T]":
        return cls(error=error)

    @property
    def is_success(self) -> bool:
        return self.error is None

    def message(self, default: str) -> str:
        if self.error is None:
            return default
        return str(self.error) or default


async def capture(call: Awaitable[T]) -> Outcome[T]:
    # CancelledError is not an Exception, so cancellation still propagates
    try:
        return Outcome.success(await call)
    except Exception as exc:
        return Outcome.failure(exc)
