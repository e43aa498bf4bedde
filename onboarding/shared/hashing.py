"""
Canonical Hashing
Single source of truth for payload hashes (outbox idempotency keys, profile audit hashes).
"""

import hashlib
import json
from datetime import date, datetime
from typing import Any

from pydantic import BaseModel

# Bookkeeping fields that change between retries of the same write
VOLATILE_FIELDS = frozenset([
    "created_at",
    "updated_at",
    "enqueued_at",
    "timestamp",
    "attempts",
    "last_error",
])


def _normalize(value: Any, exclude_volatile: bool) -> Any:
    if isinstance(value, BaseModel):
        value = value.model_dump(mode="json")
    if isinstance(value, dict):
        return {
            str(key): _normalize(item, exclude_volatile)
            for key, item in value.items()
            if not (exclude_volatile and key in VOLATILE_FIELDS)
        }
    if isinstance(value, (list, tuple)):
        return [_normalize(item, exclude_volatile) for item in value]
    if isinstance(value, (set, frozenset)):
        # Sets have no order; sort for a stable digest
        return sorted(_normalize(item, exclude_volatile) for item in value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, float):
        return round(value, 10)
    return value


def canonicalize(obj: Any, exclude_volatile: bool = True) -> str:
    """
    Convert an answer payload (dicts, lists, pydantic models, dates) to a
    canonical JSON string. Same input always produces the same output.
    """
    return json.dumps(
        _normalize(obj, exclude_volatile),
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=True,
    )


def canonicalize_and_hash(obj: Any, exclude_volatile: bool = True) -> str:
    """Returns "sha256:<64-char-hex>"."""
    digest = hashlib.sha256(canonicalize(obj, exclude_volatile).encode("utf-8")).hexdigest()
    return f"sha256:{digest}"
