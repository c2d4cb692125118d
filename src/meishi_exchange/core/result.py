"""Tagged success/failure result used across the core."""

from dataclasses import dataclass
from typing import Generic, Optional, TypeVar

from .errors import CardError

T = TypeVar("T")


@dataclass(frozen=True)
class Result(Generic[T]):
    """
    Result of an operation that can fail.
    Holds either a value or an error, never both.
    """

    value: Optional[T] = None
    error: Optional[CardError] = None

    @property
    def is_success(self) -> bool:
        return self.error is None

    @property
    def is_failure(self) -> bool:
        return self.error is not None

    @staticmethod
    def success(value: Optional[T] = None) -> "Result[T]":
        return Result(value=value, error=None)

    @staticmethod
    def failure(error: CardError) -> "Result[T]":
        return Result(value=None, error=error)

    def unwrap(self) -> T:
        """Return the value or raise the carried error."""
        if self.error is not None:
            raise self.error
        return self.value
