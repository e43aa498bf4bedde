"""Shared utilities: canonical hashing and session context."""

from .hashing import canonicalize, canonicalize_and_hash
from .context import SessionContext

__all__ = [
    "canonicalize",
    "canonicalize_and_hash",
    "SessionContext",
]
