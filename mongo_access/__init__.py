"""
mongo-access
Asynchronous CRUD facade over MongoDB, backed by motor.
"""

import logging

from .store import Store, page_window
from .callbacks import CallbackStore, with_callback
from .config import StoreConfig
from .identifiers import get_bson_object_id, normalize_filter
from .results import StoreResult, safely
from .errors import (
    MongoAccessError,
    ConfigurationError,
    ConnectionError,
    IllegalStateError,
    ValidationError,
    StoreError,
)

logging.getLogger(__name__).addHandler(logging.NullHandler())

__version__ = "1.0.0"
__all__ = [
    "Store",
    "StoreConfig",
    "CallbackStore",
    "StoreResult",
    "safely",
    "with_callback",
    "page_window",
    "get_bson_object_id",
    "normalize_filter",
    "MongoAccessError",
    "ConfigurationError",
    "ConnectionError",
    "IllegalStateError",
    "ValidationError",
    "StoreError",
]
