"""Utility helpers for document identifiers and timestamps."""
from __future__ import annotations

import datetime as _dt
import uuid


def document_id(collection: str, key: str) -> str:
    """Return the ArangoDB document id (vertex reference) for ``key``."""

    return f"{collection}/{key}"


def split_document_id(doc_id: str) -> tuple[str, str]:
    """Split ``doc_id`` into its collection name and key."""

    collection, sep, key = doc_id.partition("/")
    if not sep or not collection or not key:
        raise ValueError(f"Invalid document id: {doc_id!r}")
    return collection, key


def key_of(doc_id: str) -> str:
    return split_document_id(doc_id)[1]


def new_name(prefix: str) -> str:
    """Return a unique database or collection name with ``prefix``."""

    return f"{prefix}_{uuid.uuid4().hex}"


def utc_now() -> str:
    """Return the current UTC time formatted as an ISO 8601 string."""

    return _dt.datetime.now(_dt.timezone.utc).isoformat()
