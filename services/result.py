"""
Result type for consistent error handling across services.

Services return Result[T] instead of raising for expected rejections (a side
already taken, a wager that is no longer active) so the command layer can
reply without parsing exception text.

Usage:
    # Returning success
    return Result.ok(wager)
    return Result.ok()      # void operations

    # Returning failure
    return Result.fail("Side A is already taken.", code=error_codes.SIDE_TAKEN)

    # Lifting a repository outcome dict
    return Result.from_outcome(outcome, value=wager)

    # Checking results
    if result.success:
        wager = result.value
    else:
        print(f"Error ({result.error_code}): {result.error}")
"""

from dataclasses import dataclass
from typing import Any, Generic, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class Result(Generic[T]):
    """
    A simple result type for service method return values.

    Attributes:
        success: Whether the operation succeeded
        value: The return value if successful (None if failed or void operation)
        error: Error message if failed (None if successful)
        error_code: Code from services.error_codes for programmatic handling
    """

    success: bool
    value: T | None = None
    error: str | None = None
    error_code: str | None = None

    @classmethod
    def ok(cls, value: T | None = None) -> "Result[T]":
        """Create a successful result with an optional value."""
        return cls(success=True, value=value)

    @classmethod
    def fail(cls, error: str, code: str | None = None) -> "Result[T]":
        """Create a failed result with an error message and optional error code."""
        return cls(success=False, error=error, error_code=code)

    @classmethod
    def from_outcome(cls, outcome: dict[str, Any], value: T | None = None) -> "Result[T]":
        """
        Convert a repository outcome dict into a Result.

        Failed outcomes carry "reason" (an error code) and "message".
        """
        if outcome.get("success"):
            return cls.ok(value)
        return cls.fail(outcome.get("message") or "Operation failed.", code=outcome.get("reason"))

    def __bool__(self) -> bool:
        """Allow using Result in boolean context: if result: ..."""
        return self.success

