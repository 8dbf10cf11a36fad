"""Conversion of hex identifier strings into bson ObjectIds."""

from typing import Any, Dict, Mapping, Optional, Union

from bson import ObjectId
from bson.errors import InvalidId

from .errors import ValidationError

ID_FIELD = "_id"


def get_bson_object_id(value: Union[str, ObjectId]) -> ObjectId:
    """Convert a 24-character hex string into an ObjectId.

    ObjectIds are returned unchanged.
    """
    if isinstance(value, ObjectId):
        return value
    if not isinstance(value, str):
        raise ValidationError(f"Identifier must be a hex string or ObjectId, got {type(value).__name__}")
    try:
        return ObjectId(value)
    except InvalidId as e:
        raise ValidationError(f"Invalid identifier '{value}': {e}") from e


def normalize_filter(filter: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    """Return a shallow copy of ``filter`` with a string ``_id`` converted."""
    if filter is None:
        return {}
    if not isinstance(filter, Mapping):
        raise ValidationError(f"Filter must be a mapping, got {type(filter).__name__}")

    normalized = dict(filter)
    if isinstance(normalized.get(ID_FIELD), str):
        normalized[ID_FIELD] = get_bson_object_id(normalized[ID_FIELD])
    return normalized
