from __future__ import annotations

from ..docstore.store import DocumentStore

RESTAURANTS = "restaurants"
RATINGS = "ratings"

_db: DocumentStore | None = None


def get_db() -> DocumentStore:
    """Return the process-wide document store, creating it on first call."""
    global _db
    if _db is None:
        _db = DocumentStore()
    return _db


def reset_db() -> DocumentStore:
    """Replace the process-wide store with an empty one and return it."""
    global _db
    _db = DocumentStore()
    return _db
