"""
Result Monad & Error Types for the Issue Index

Two error channels, each used where it fits:
    - Result[T, E]: fallible I/O against the authoritative issue store.
      Store adapters never raise for backend failures; they return Err.
    - Exceptions: contract violations inside the in-memory structures
      (peeking or extracting from an empty heap, min/max of an empty tree).
      Callers are expected to check ``is_empty`` first.

Absence is never an error: a tree miss or an unknown issue id is ``None``.
Staleness is never an error: it is corrected by a refresh.

Error code ranges:
    1000-1999: Container errors
    2000-2999: Storage errors
    5000-5999: Configuration errors
    9000-9999: Internal errors
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import (
    Any,
    Callable,
    Generic,
    Literal,
    NoReturn,
    Optional,
    TypeVar,
    Union,
    final,
)


# =============================================================================
# TYPE VARIABLES
# =============================================================================
T = TypeVar("T")  # Success value type
E = TypeVar("E")  # Error type
U = TypeVar("U")  # Transform result type


# =============================================================================
# RESULT MONAD: SUCCESS VARIANT
# =============================================================================
@final
@dataclass(frozen=True, slots=True)
class Ok(Generic[T]):
    """
    Success variant of Result monad.

    Example:
        result: Result[int, StorageError] = Ok(42)
        if result.is_ok():
            value = result.unwrap()
    """
    _value: T

    def is_ok(self) -> Literal[True]:
        return True

    def is_err(self) -> Literal[False]:
        return False

    def unwrap(self) -> T:
        """Extract value. Safe to call after is_ok() check."""
        return self._value

    def unwrap_or(self, default: T) -> T:
        return self._value

    def map(self, fn: Callable[[T], U]) -> "Ok[U]":
        """Apply transformation to success value."""
        return Ok(fn(self._value))

    def flat_map(self, fn: Callable[[T], "Result[U, Any]"]) -> "Result[U, Any]":
        """Monadic bind for chaining fallible operations."""
        return fn(self._value)

    @property
    def value(self) -> T:
        return self._value

    @property
    def error(self) -> None:
        return None

    def __repr__(self) -> str:
        return f"Ok({self._value!r})"

    def __bool__(self) -> Literal[True]:
        return True


# =============================================================================
# RESULT MONAD: ERROR VARIANT
# =============================================================================
@final
@dataclass(frozen=True, slots=True)
class Err(Generic[E]):
    """
    Error variant of Result monad.

    Carries the error object unchanged through map/flat_map chains.
    """
    _error: E

    def is_ok(self) -> Literal[False]:
        return False

    def is_err(self) -> Literal[True]:
        return True

    def unwrap(self) -> NoReturn:
        """
        Attempting to unwrap an error is a programming error.

        Raises:
            RuntimeError: Always, with error context
        """
        raise RuntimeError(f"Called unwrap() on Err: {self._error}")

    def unwrap_or(self, default: T) -> T:
        return default

    def map(self, fn: Callable[[Any], U]) -> "Err[E]":
        return self

    def flat_map(self, fn: Callable[[Any], "Result[U, E]"]) -> "Err[E]":
        return self

    @property
    def value(self) -> None:
        return None

    @property
    def error(self) -> E:
        return self._error

    def __repr__(self) -> str:
        return f"Err({self._error!r})"

    def __bool__(self) -> Literal[False]:
        return False


# Union type for pattern matching
Result = Union[Ok[T], Err[E]]


# =============================================================================
# ERROR TAXONOMY
# =============================================================================
class ErrorCode(Enum):
    """Canonical error codes for categorization and metrics."""

    # Container errors (1000-1999)
    CONTAINER_EMPTY = 1001

    # Storage errors (2000-2999)
    STORAGE_READ_ERROR = 2001
    STORAGE_WRITE_ERROR = 2002
    STORAGE_NOT_FOUND = 2003

    # Configuration errors (5000-5999)
    CONFIG_INVALID = 5001

    # Internal errors (9000-9999)
    INTERNAL_ERROR = 9001


@dataclass
class IssueIndexError(Exception):
    """
    Base class for all issue index errors.

    Structured error with:
        - Error code for programmatic handling
        - Human-readable message
        - Machine-readable details
        - Timestamp for correlation with log lines
    """

    code: ErrorCode
    message: str
    details: dict[str, Any] = field(default_factory=dict)
    cause: Optional[BaseException] = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def __post_init__(self) -> None:
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Serialize for logging."""
        return {
            "code": self.code.value,
            "code_name": self.code.name,
            "message": self.message,
            "details": self.details,
            "cause": repr(self.cause) if self.cause else None,
            "timestamp": self.timestamp.isoformat(),
        }

    def __str__(self) -> str:
        return f"[{self.code.name}] {self.message}"

    def __hash__(self) -> int:
        return id(self)


# =============================================================================
# SPECIALIZED ERROR TYPES (Convenience constructors)
# =============================================================================
@dataclass(eq=False)
class EmptyContainerError(IssueIndexError):
    """Raised when reading the extreme element of an empty tree or heap."""

    @classmethod
    def for_operation(cls, container: str, operation: str) -> "EmptyContainerError":
        return cls(
            code=ErrorCode.CONTAINER_EMPTY,
            message=f"{operation}() called on empty {container}",
            details={"container": container, "operation": operation},
        )


@dataclass(eq=False)
class StorageError(IssueIndexError):
    """Failure talking to the authoritative issue store."""

    @classmethod
    def read_error(cls, source: str, reason: str, cause: Optional[BaseException] = None) -> "StorageError":
        return cls(
            code=ErrorCode.STORAGE_READ_ERROR,
            message=f"Failed to read from '{source}': {reason}",
            details={"source": source, "reason": reason},
            cause=cause,
        )

    @classmethod
    def write_error(cls, source: str, reason: str, cause: Optional[BaseException] = None) -> "StorageError":
        return cls(
            code=ErrorCode.STORAGE_WRITE_ERROR,
            message=f"Failed to write to '{source}': {reason}",
            details={"source": source, "reason": reason},
            cause=cause,
        )

    @classmethod
    def not_found(cls, issue_id: int) -> "StorageError":
        return cls(
            code=ErrorCode.STORAGE_NOT_FOUND,
            message=f"Issue {issue_id} does not exist",
            details={"issue_id": issue_id},
        )


@dataclass(eq=False)
class ConfigError(IssueIndexError):
    """Invalid configuration value."""

    @classmethod
    def invalid(cls, param: str, value: Any, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_INVALID,
            message=f"Invalid config '{param}': {reason}",
            details={"param": param, "value": value, "reason": reason},
        )
