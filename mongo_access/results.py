"""
Tagged results for callers that prefer values over exceptions.

Usage:
    result = await safely(store.find_by_id("users", user_id))
    if result:
        print(result.value)
    else:
        print(result.error)
"""

from typing import Any, Awaitable, Generic, Optional, TypeVar

from .errors import MongoAccessError

T = TypeVar("T")


class StoreResult(Generic[T]):
    """
    Outcome of a Store operation.

    Attributes:
        success: Whether the operation succeeded
        value: The operation's return value on success
        error: The error raised on failure
    """

    def __init__(self, value: Optional[T] = None, error: Optional[MongoAccessError] = None):
        self.success = error is None
        self.value = value
        self.error = error

    @classmethod
    def ok(cls, value: Optional[T] = None) -> "StoreResult[T]":
        return cls(value=value)

    @classmethod
    def failed(cls, error: MongoAccessError) -> "StoreResult[T]":
        return cls(error=error)

    def unwrap(self) -> Optional[T]:
        """Return the value, raising the stored error on failure."""
        if self.error is not None:
            raise self.error
        return self.value

    def __bool__(self) -> bool:
        return self.success

    def __repr__(self) -> str:
        if self.success:
            return f"StoreResult(success=True, value={self.value!r})"
        return f"StoreResult(success=False, error={self.error!r})"


async def safely(operation: Awaitable[Any]) -> StoreResult:
    """Await a Store operation and capture its error in a StoreResult."""
    try:
        value = await operation
    except MongoAccessError as e:
        return StoreResult.failed(e)
    return StoreResult.ok(value)
