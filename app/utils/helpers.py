"""
Small shared helpers: time, ObjectId parsing, pagination math.
"""

import math
from datetime import datetime, timezone
from typing import Optional

from bson import ObjectId

from app.core.errors import ValidationFailureError


def utcnow() -> datetime:
    """Naive UTC now. pymongo hands back naive UTC datetimes, so we compare like with like."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Normalize a client-supplied datetime to naive UTC."""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def parse_object_id(value: str, code: str = "VAL_002", label: str = "ID") -> ObjectId:
    """Convert a path/body id to ObjectId or raise a 400 with the given error code."""
    if not value or not ObjectId.is_valid(value):
        raise ValidationFailureError(f"Invalid {label} format", code=code)
    return ObjectId(value)


def pagination_meta(total: int, page: int, limit: int) -> dict:
    return {
        "total": total,
        "page": page,
        "limit": limit,
        "pages": math.ceil(total / limit) if limit else 0,
    }
