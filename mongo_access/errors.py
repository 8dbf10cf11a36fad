"""Custom error classes for mongo-access."""

from typing import Optional


class MongoAccessError(Exception):
    """Base exception for mongo-access operations."""

    def __init__(self, code: int, message: str):
        self.code = code
        self.message = message
        super().__init__(f"[{code}] {message}")


class ConfigurationError(MongoAccessError):
    """Raised when connect settings are missing or malformed."""

    def __init__(self, message: str):
        super().__init__(1, message)


class ConnectionError(MongoAccessError):
    """Raised when connecting or authenticating to the server fails."""

    def __init__(self, message: str):
        super().__init__(2, message)


class IllegalStateError(MongoAccessError):
    """Raised when an operation is called in the wrong connection state."""

    def __init__(self, message: str):
        super().__init__(3, message)


class ValidationError(MongoAccessError):
    """Raised when a call is missing a required identifier or parameter."""

    def __init__(self, message: str):
        super().__init__(4, message)


class StoreError(MongoAccessError):
    """Raised when the driver fails an operation.

    Carries the driver's error code when it reports one.
    """

    def __init__(self, operation: str, collection: Optional[str], message: str, code: Optional[int] = None):
        self.operation = operation
        self.collection = collection
        target = f"{operation} on '{collection}'" if collection else operation
        super().__init__(code if code is not None else 5, f"{target} failed: {message}")
