"""Error types raised by the DAG client.

Every error carries a stable numeric ``code`` so callers can match failures
programmatically via :func:`is_dag_error` without depending on message text.
Driver failures that have no DAG-level meaning are wrapped in
:class:`StoreError` with the original exception chained as ``__cause__``.
"""
from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator

from arango.exceptions import ArangoError

ERR_VERTEX_NIL = 1101

ERR_EMPTY_KEY = 1201
ERR_DUPLICATE_KEY = 1202
ERR_NOT_FOUND = 1203

ERR_DUPLICATE_EDGE = 1301
ERR_LOOP = 1302

ERR_STORE = 1401

# ArangoDB server error numbers the client translates.
ARANGO_DOCUMENT_NOT_FOUND = 1202
ARANGO_UNIQUE_CONSTRAINT_VIOLATED = 1210


class DAGError(Exception):
    """Base class for all DAG errors."""

    code: int = 0

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)

    def to_payload(self) -> dict:
        return {"code": self.code, "error": type(self).__name__, "message": self.message}


class VertexNilError(DAGError):
    code = ERR_VERTEX_NIL

    def __init__(self) -> None:
        super().__init__("don't know what to do with 'None'")


class EmptyKeyError(DAGError):
    code = ERR_EMPTY_KEY

    def __init__(self) -> None:
        super().__init__("key is empty")


class DuplicateKeyError(DAGError):
    code = ERR_DUPLICATE_KEY

    def __init__(self, key: str) -> None:
        self.key = key
        super().__init__(f"'{key}' is already known")


class NotFoundError(DAGError):
    code = ERR_NOT_FOUND

    def __init__(self, message: str) -> None:
        super().__init__(message)

    @classmethod
    def vertex(cls, key: str) -> "NotFoundError":
        return cls(f"vertex '{key}' is unknown")

    @classmethod
    def edge(cls, src: str, dst: str) -> "NotFoundError":
        return cls(f"an edge from '{src}' to '{dst}' doesn't exist")


class DuplicateEdgeError(DAGError):
    code = ERR_DUPLICATE_EDGE

    def __init__(self, src: str, dst: str) -> None:
        self.src = src
        self.dst = dst
        super().__init__(f"edge between '{src}' and '{dst}' is already known")


class LoopError(DAGError):
    code = ERR_LOOP

    def __init__(self, src: str, dst: str) -> None:
        self.src = src
        self.dst = dst
        super().__init__(f"adding an edge from '{src}' to '{dst}' would create a loop")


class StoreError(DAGError):
    """Opaque failure reported by ArangoDB or the driver."""

    code = ERR_STORE

    def __init__(self, message: str, error_code: int | None = None, http_code: int | None = None) -> None:
        self.error_code = error_code
        self.http_code = http_code
        super().__init__(message)

    @classmethod
    def from_driver(cls, exc: ArangoError) -> "StoreError":
        return cls(
            f"ArangoDB error: {exc}",
            error_code=driver_error_code(exc),
            http_code=getattr(exc, "http_code", None),
        )


def is_dag_error(exc: BaseException, code: int | None = None) -> bool:
    """Return ``True`` if ``exc`` is a :class:`DAGError` (with ``code``, if given)."""

    if not isinstance(exc, DAGError):
        return False
    return code is None or exc.code == code


def driver_error_code(exc: ArangoError) -> int | None:
    """Return the ArangoDB error number attached to ``exc``, if any."""

    return getattr(exc, "error_code", None)


@contextmanager
def translate_store_errors() -> Iterator[None]:
    """Re-raise driver exceptions escaping the block as :class:`StoreError`."""

    try:
        yield
    except ArangoError as exc:
        raise StoreError.from_driver(exc) from exc


__all__ = [
    "ARANGO_DOCUMENT_NOT_FOUND",
    "ARANGO_UNIQUE_CONSTRAINT_VIOLATED",
    "DAGError",
    "DuplicateEdgeError",
    "DuplicateKeyError",
    "ERR_DUPLICATE_EDGE",
    "ERR_DUPLICATE_KEY",
    "ERR_EMPTY_KEY",
    "ERR_LOOP",
    "ERR_NOT_FOUND",
    "ERR_STORE",
    "ERR_VERTEX_NIL",
    "EmptyKeyError",
    "LoopError",
    "NotFoundError",
    "StoreError",
    "VertexNilError",
    "driver_error_code",
    "is_dag_error",
    "translate_store_errors",
]
