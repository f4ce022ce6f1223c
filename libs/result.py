"""Result types for use case outcomes

Use cases return a Result instead of raising across their public boundary.
A Result carries either a value or an Error describing what went wrong.
"""

from dataclasses import dataclass
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class Error:
    """
    Error payload

    Attributes:
        code: Machine-readable error code (e.g., INSUFFICIENT_CREDITS)
        message: Human-readable message, safe to show to end users
        reason: Optional diagnostic detail for logs
    """

    code: str
    message: str
    reason: Optional[str] = None


class Result(Generic[T]):
    """Either an ok value or an Error"""

    __slots__ = ("_value", "_error")

    def __init__(self, value: Optional[T] = None, error: Optional[Error] = None):
        if error is not None and value is not None:
            raise ValueError("Result cannot hold both a value and an error")
        self._value = value
        self._error = error

    def is_ok(self) -> bool:
        return self._error is None

    def is_err(self) -> bool:
        return self._error is not None

    @property
    def value(self) -> T:
        if self._error is not None:
            raise ValueError(f"Result is an error: {self._error.code}")
        return self._value

    @property
    def error(self) -> Error:
        if self._error is None:
            raise ValueError("Result is ok, there is no error")
        return self._error

    def __repr__(self) -> str:
        if self.is_ok():
            return f"Result(ok={self._value!r})"
        return f"Result(err={self._error!r})"


class Return:
    """Constructors for Result"""

    @staticmethod
    def ok(value: Optional[T] = None) -> Result[T]:
        return Result(value=value)

    @staticmethod
    def err(error: Error) -> Result[T]:
        return Result(error=error)
