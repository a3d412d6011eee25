# =============================================================================
# Error Handling Types (Result + Error)
# =============================================================================

from dataclasses import dataclass, field
from enum import Enum
from typing import Generic, TypeVar

T = TypeVar('T')


class ErrorType(Enum):
    BRIDGE_ERROR = "bridge_error"
    PARSE_ERROR = "parse_error"
    NOT_FOUND = "not_found"
    VALIDATION_ERROR = "validation_error"
    FILE_NOT_FOUND = "file_not_found"


@dataclass
class Error:
    error_type: ErrorType
    message: str
    context: dict = field(default_factory=dict)
    original_exception: Exception = None


@dataclass
class Result(Generic[T]):
    success: bool
    value: T = None
    error: Error = None

    @staticmethod
    def ok(value: T) -> 'Result[T]':
        return Result(success=True, value=value)

    @staticmethod
    def err(error: Error) -> 'Result[T]':
        return Result(success=False, error=error)

    def is_ok(self) -> bool:
        return self.success

    def is_err(self) -> bool:
        return not self.success


def validation_error(message: str, **context) -> Result:
    """Shorthand for a failed Result carrying a VALIDATION_ERROR."""
    return Result.err(Error(
        error_type=ErrorType.VALIDATION_ERROR,
        message=message,
        context=context
    ))


def require_positive_int(value, name: str) -> Result[int]:
    """Check a caller-supplied argument is a positive integer.

    ``bool`` is rejected even though it subclasses ``int``.
    """
    if isinstance(value, bool) or not isinstance(value, int):
        return validation_error(
            f"{name} must be a positive integer, got {value!r}",
            argument=name
        )
    if value < 1:
        return validation_error(
            f"{name} must be a positive integer, got {value}",
            argument=name
        )
    return Result.ok(value)
