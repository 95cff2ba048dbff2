"""Lazy, closable result sequences backed by ArangoDB cursors."""
from __future__ import annotations

import logging
from typing import Any, Callable, Generic, Iterator, Mapping, Optional, TypeVar

from arango.cursor import Cursor

from ..errors import translate_store_errors

T = TypeVar("T")

logger = logging.getLogger(__name__)


class DocumentCursor(Generic[T]):
    """Forward-only iterator over the documents of a server-side cursor.

    Documents are fetched batch by batch as the caller iterates.  The server
    cursor is released as soon as the sequence is exhausted, when :meth:`close`
    is called, or when a ``with`` block around the cursor exits, whichever
    happens first.  Callers that may stop early must use one of the latter two.
    """

    def __init__(self, cursor: Cursor, factory: Callable[[Mapping[str, Any]], T]) -> None:
        self._cursor = cursor
        self._factory = factory
        self._closed = False

    def __iter__(self) -> "DocumentCursor[T]":
        return self

    def __next__(self) -> T:
        if self._closed:
            raise StopIteration
        try:
            with translate_store_errors():
                document = next(self._cursor)
        except BaseException:
            self.close()
            raise
        return self._factory(document)

    def __enter__(self) -> "DocumentCursor[T]":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    @property
    def closed(self) -> bool:
        return self._closed

    def count(self) -> Optional[int]:
        """Total number of results, if the query was run with ``count``."""

        return self._cursor.count()

    def close(self) -> None:
        """Release the server-side cursor.  Safe to call more than once."""

        if self._closed:
            return
        self._closed = True
        with translate_store_errors():
            self._cursor.close(ignore_missing=True)
        logger.debug("Released cursor %s", self._cursor.id)

    def keys(self) -> Iterator[str]:
        """Yield the ``key`` of every remaining item, closing on early exit."""

        try:
            for item in self:
                yield item.key  # type: ignore[attr-defined]
        finally:
            self.close()


__all__ = ["DocumentCursor"]
