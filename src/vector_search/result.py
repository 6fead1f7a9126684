"""Explicit success/failure values for fallible operations."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable
from dataclasses import dataclass
from typing import Generic, TypeVar

from vector_search.errors import VectorSearchError

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class Result(Generic[T]):
    """Outcome of an operation: either ``value`` or ``error``.

    Attributes:
        ok: True when the operation succeeded
        value: Success value (only meaningful when ``ok``)
        error: Failure cause (only set when not ``ok``)
    """

    ok: bool
    value: T | None = None
    error: Exception | None = None

    @classmethod
    def success(cls, value: T) -> Result[T]:
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, error: Exception | str) -> Result[T]:
        if isinstance(error, str):
            error = VectorSearchError(error)
        return cls(ok=False, error=error)

    @property
    def is_failure(self) -> bool:
        return not self.ok

    def unwrap(self) -> T:
        """Return the value, raising the stored error on failure."""
        if not self.ok:
            raise self.error or VectorSearchError("Operation failed")
        return self.value  # type: ignore[return-value]


async def guarded(
    awaitable: Awaitable[T],
    *,
    action: str,
    error_type: type[VectorSearchError],
    timeout: float | None = None,
) -> Result[T]:
    """Await an external call and capture its outcome as a Result.

    Args:
        awaitable: The external call (index or embedding provider)
        action: Human-readable description used in error messages
        error_type: Error class used to wrap foreign exceptions
        timeout: Deadline in seconds; None waits indefinitely

    Returns:
        Success with the call's value, or failure wrapping the cause. Errors that
        are already part of the taxonomy are kept as-is.
    """
    try:
        value = await asyncio.wait_for(awaitable, timeout=timeout)
    except TimeoutError:
        return Result.failure(error_type(f"Timed out after {timeout}s while trying to {action}"))
    except VectorSearchError as exc:
        return Result.failure(exc)
    except Exception as exc:
        wrapped = error_type(f"Failed to {action}: {exc}")
        wrapped.__cause__ = exc
        return Result.failure(wrapped)
    return Result.success(value)
