"""DAG handle persisting vertices and edges in ArangoDB collections."""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Iterator, Optional

from arango.collection import StandardCollection
from arango.cursor import Cursor
from arango.database import StandardDatabase

from ..errors import (
    ARANGO_DOCUMENT_NOT_FOUND,
    ARANGO_UNIQUE_CONSTRAINT_VIOLATED,
    DuplicateEdgeError,
    DuplicateKeyError,
    EmptyKeyError,
    LoopError,
    NotFoundError,
    StoreError,
    VertexNilError,
    translate_store_errors,
)
from . import query as q
from .cursor import DocumentCursor
from .ids import document_id
from .model import DocumentMeta, Edge, Vertex, edge_document, payload_key, vertex_document

logger = logging.getLogger(__name__)


@dataclass
class DAG:
    """A directed acyclic graph stored in a vertex and an edge collection.

    The handle holds no graph state of its own; every question about the shape
    of the graph is answered by a query against the database.  Build one with
    :func:`arangodag.graph.provision.provision`.

    Concurrent :meth:`add_edge` calls are not serialized: the unique index
    catches two racing inserts of the same edge, but two different edges that
    only close a cycle together can both pass the cycle check.
    """

    db: StandardDatabase
    vertices: StandardCollection
    edges: StandardCollection
    query_logging: bool = False

    # ------------------------------------------------------------------
    # Vertices
    # ------------------------------------------------------------------

    def add_vertex(self, payload: Any, *, allow_empty: bool = False) -> str:
        """Add a vertex holding ``payload`` and return its key.

        If ``payload`` implements :class:`~arangodag.graph.model.KeyProvider`
        (or is a mapping with a ``_key`` field) that key is used, otherwise the
        database generates one.  ``None`` is rejected unless ``allow_empty``.
        """

        if payload is None and not allow_empty:
            raise VertexNilError()
        key = payload_key(payload)
        if key is not None and not key:
            raise EmptyKeyError()
        return self._insert_vertex(key, payload)

    def add_named_vertex(self, key: str, payload: Any = None) -> str:
        """Add a vertex under the explicit ``key``."""

        self._require_key(key)
        return self._insert_vertex(key, payload)

    def get_vertex(self, key: str) -> Vertex:
        """Return vertex ``key``; an empty or unknown key is :class:`NotFoundError`."""

        if not key:
            raise NotFoundError.vertex(key)
        with translate_store_errors():
            document = self.vertices.get(key)
        if document is None:
            raise NotFoundError.vertex(key)
        return Vertex.from_document(document)

    def vertex_exists(self, key: str) -> bool:
        if not key:
            return False
        with translate_store_errors():
            return bool(self.vertices.has(key))

    def update_vertex(self, key: str, payload: Any) -> DocumentMeta:
        """Merge ``payload`` into the data of the vertex ``key``."""

        self._require_key(key)
        document = vertex_document(key, payload)
        try:
            with translate_store_errors():
                result = self.vertices.update(document, merge=True)
        except StoreError as exc:
            if exc.error_code == ARANGO_DOCUMENT_NOT_FOUND:
                raise NotFoundError.vertex(key) from exc
            raise
        return DocumentMeta.from_document(result)

    def replace_vertex(self, key: str, payload: Any) -> DocumentMeta:
        """Replace the data of the vertex ``key`` with ``payload``."""

        self._require_key(key)
        document = vertex_document(key, payload)
        try:
            with translate_store_errors():
                result = self.vertices.replace(document)
        except StoreError as exc:
            if exc.error_code == ARANGO_DOCUMENT_NOT_FOUND:
                raise NotFoundError.vertex(key) from exc
            raise
        return DocumentMeta.from_document(result)

    def del_vertex(self, key: str) -> int:
        """Remove vertex ``key`` with all inbound and outbound edges.

        Returns the number of removed edges.  Edges and vertex are removed by
        one AQL statement, so either both go or neither does.
        """

        if not self.vertex_exists(key):
            raise NotFoundError.vertex(key)
        aql = q.remove_vertex(self.vertices.name, self.edges.name, key, self._vertex_id(key))
        try:
            removed = self._scalar(aql)
        except StoreError as exc:
            if exc.error_code == ARANGO_DOCUMENT_NOT_FOUND:
                raise NotFoundError.vertex(key) from exc
            raise
        logger.debug("Removed vertex %s and %s edge(s)", key, removed)
        return int(removed or 0)

    def get_order(self) -> int:
        """Return the number of vertices."""

        with translate_store_errors():
            return int(self.vertices.count())

    def get_all_vertices(self) -> DocumentCursor[Vertex]:
        return self._vertex_cursor(q.all_documents(self.vertices.name))

    def get_roots(self) -> DocumentCursor[Vertex]:
        """Vertices without parents."""

        return self._vertex_cursor(q.roots(self.vertices.name, self.edges.name))

    def get_leaves(self) -> DocumentCursor[Vertex]:
        """Vertices without children."""

        return self._vertex_cursor(q.leaves(self.vertices.name, self.edges.name))

    # ------------------------------------------------------------------
    # Edges
    # ------------------------------------------------------------------

    def add_edge(
        self,
        src: str,
        dst: str,
        payload: Any = None,
        *,
        create_vertices: bool = False,
    ) -> DocumentMeta:
        """Add an edge from vertex ``src`` to vertex ``dst``.

        The insert runs through four steps, each of which may reject it
        before anything is written:

        1. both endpoints must exist (or are created empty when
           ``create_vertices`` is set), else :class:`NotFoundError`;
        2. the edge must not exist yet, else :class:`DuplicateEdgeError`;
        3. ``dst`` must not reach ``src``, else :class:`LoopError`; this also
           rejects ``src == dst``;
        4. the edge document is inserted.  The unique ``(_from, _to)`` index
           remains the authority for duplicates, so a concurrent insert of the
           same edge still ends in :class:`DuplicateEdgeError`.
        """

        src_id = self._resolve_endpoint(src, create_vertices)
        dst_id = self._resolve_endpoint(dst, create_vertices)

        if self._find_edge(src_id, dst_id) is not None:
            logger.info("Rejected duplicate edge %s -> %s", src, dst)
            raise DuplicateEdgeError(src, dst)

        if self._path_exists(dst_id, src_id):
            logger.info("Rejected edge %s -> %s: would create a loop", src, dst)
            raise LoopError(src, dst)

        try:
            with translate_store_errors():
                result = self.edges.insert(edge_document(src_id, dst_id, payload))
        except StoreError as exc:
            if exc.error_code == ARANGO_UNIQUE_CONSTRAINT_VIOLATED:
                logger.info("Rejected duplicate edge %s -> %s (unique index)", src, dst)
                raise DuplicateEdgeError(src, dst) from exc
            raise
        return DocumentMeta.from_document(result)

    def get_edge(self, src: str, dst: str) -> Edge:
        self._require_key(src)
        self._require_key(dst)
        document = self._find_edge(self._vertex_id(src), self._vertex_id(dst))
        if document is None:
            raise NotFoundError.edge(src, dst)
        return Edge.from_document(document)

    def edge_exists(self, src: str, dst: str) -> bool:
        try:
            self.get_edge(src, dst)
        except NotFoundError:
            return False
        return True

    def del_edge(self, src: str, dst: str) -> DocumentMeta:
        """Remove the edge from ``src`` to ``dst``."""

        edge = self.get_edge(src, dst)
        try:
            with translate_store_errors():
                self.edges.delete(edge.key)
        except StoreError as exc:
            if exc.error_code == ARANGO_DOCUMENT_NOT_FOUND:
                raise NotFoundError.edge(src, dst) from exc
            raise
        return edge.meta

    def get_size(self) -> int:
        """Return the number of edges."""

        with translate_store_errors():
            return int(self.edges.count())

    def get_edges(self) -> DocumentCursor[Edge]:
        return DocumentCursor(self._execute(q.all_documents(self.edges.name)), Edge.from_document)

    # ------------------------------------------------------------------
    # Traversals
    # ------------------------------------------------------------------

    def get_parents(self, key: str) -> DocumentCursor[Vertex]:
        return self._relatives(key, q.Direction.INBOUND, 1, q.Order.BFS)

    def get_children(self, key: str) -> DocumentCursor[Vertex]:
        return self._relatives(key, q.Direction.OUTBOUND, 1, q.Order.BFS)

    def get_ancestors(self, key: str, dfs: bool = False) -> DocumentCursor[Vertex]:
        """All ancestors of ``key``, nearest first unless ``dfs`` is set.

        In BFS order every ancestor is returned once.  In DFS order an ancestor
        reachable over several paths is returned once per path.  An unknown
        ``key`` yields nothing.
        """

        order = q.Order.DFS if dfs else q.Order.BFS
        return self._relatives(key, q.Direction.INBOUND, q.MAX_DEPTH, order)

    def get_descendants(self, key: str, dfs: bool = False) -> DocumentCursor[Vertex]:
        """All descendants of ``key``; see :meth:`get_ancestors` for ordering."""

        order = q.Order.DFS if dfs else q.Order.BFS
        return self._relatives(key, q.Direction.OUTBOUND, q.MAX_DEPTH, order)

    def walk_ancestors(self, key: str, dfs: bool = False) -> Iterator[str]:
        """Generator over ancestor keys; closing it releases the cursor."""

        return self.get_ancestors(key, dfs=dfs).keys()

    def walk_descendants(self, key: str, dfs: bool = False) -> Iterator[str]:
        """Generator over descendant keys; closing it releases the cursor."""

        return self.get_descendants(key, dfs=dfs).keys()

    def get_parent_count(self, key: str) -> int:
        self._require_key(key)
        aql = q.relative_count(self.edges.name, self._vertex_id(key), direction=q.Direction.INBOUND)
        return int(self._scalar(aql) or 0)

    def get_child_count(self, key: str) -> int:
        self._require_key(key)
        aql = q.relative_count(self.edges.name, self._vertex_id(key), direction=q.Direction.OUTBOUND)
        return int(self._scalar(aql) or 0)

    def get_shortest_path(self, src: str, dst: str) -> DocumentCursor[Vertex]:
        """Vertices on the shortest path from ``src`` to ``dst``, both included.

        Yields only ``src`` when ``src == dst`` and nothing when there is no
        path or an endpoint does not exist.  Among equally short paths the
        database's own search order decides.
        """

        self._require_key(src)
        self._require_key(dst)
        aql = q.shortest_path(self.edges.name, self._vertex_id(src), self._vertex_id(dst))
        return self._vertex_cursor(aql)

    def path_exists(self, src: str, dst: str) -> bool:
        """Return ``True`` if ``dst`` is reachable from ``src``."""

        self._require_key(src)
        self._require_key(dst)
        return self._path_exists(self._vertex_id(src), self._vertex_id(dst))

    # ------------------------------------------------------------------
    # Query plumbing
    # ------------------------------------------------------------------

    def set_query_logging(self, enabled: bool) -> None:
        """Log every AQL statement and its bind vars at DEBUG level."""

        self.query_logging = enabled

    def log_query(self, aql: q.AQLQuery) -> None:
        if not self.query_logging:
            return
        try:
            bind_vars = json.dumps(aql.bind_vars, sort_keys=True)
        except (TypeError, ValueError):
            bind_vars = repr(aql.bind_vars)
        logger.debug("query=%s bindVars=%s", aql.query, bind_vars)

    def _execute(self, aql: q.AQLQuery) -> Cursor:
        self.log_query(aql)
        with translate_store_errors():
            return self.db.aql.execute(aql.query, bind_vars=dict(aql.bind_vars), count=aql.count)

    def _scalar(self, aql: q.AQLQuery) -> Any:
        """Run ``aql`` and return its first row (``None`` if there is none)."""

        with DocumentCursor(self._execute(aql), lambda row: row) as cursor:
            return next(cursor, None)

    def _exists(self, aql: q.AQLQuery) -> bool:
        with DocumentCursor(self._execute(aql), lambda row: row) as cursor:
            count = cursor.count()
            if count is None:
                return next(cursor, None) is not None
            return count > 0

    def _vertex_cursor(self, aql: q.AQLQuery) -> DocumentCursor[Vertex]:
        return DocumentCursor(self._execute(aql), Vertex.from_document)

    def _relatives(
        self, key: str, direction: q.Direction, depth: int, order: q.Order
    ) -> DocumentCursor[Vertex]:
        self._require_key(key)
        aql = q.relatives(
            self.edges.name,
            self._vertex_id(key),
            direction=direction,
            depth=depth,
            order=order,
        )
        return self._vertex_cursor(aql)

    def _path_exists(self, src_id: str, dst_id: str) -> bool:
        return self._exists(q.path_probe(self.edges.name, src_id, dst_id))

    def _find_edge(self, src_id: str, dst_id: str) -> Optional[dict]:
        return self._scalar(q.edge_lookup(self.edges.name, src_id, dst_id))

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _vertex_id(self, key: str) -> str:
        return document_id(self.vertices.name, key)

    @staticmethod
    def _require_key(key: str) -> None:
        if not key:
            raise EmptyKeyError()

    def _insert_vertex(self, key: Optional[str], payload: Any) -> str:
        try:
            with translate_store_errors():
                result = self.vertices.insert(vertex_document(key, payload))
        except StoreError as exc:
            if key is not None and exc.error_code == ARANGO_UNIQUE_CONSTRAINT_VIOLATED:
                raise DuplicateKeyError(key) from exc
            raise
        return result["_key"]

    def _resolve_endpoint(self, key: str, create: bool) -> str:
        """Return the document id for ``key``, creating the vertex if asked."""

        self._require_key(key)
        with translate_store_errors():
            document = self.vertices.get(key)
        if document is not None:
            return document["_id"]
        if not create:
            raise NotFoundError.vertex(key)
        logger.debug("Creating missing endpoint vertex %s", key)
        try:
            self.add_named_vertex(key)
        except DuplicateKeyError:
            logger.debug("Endpoint vertex %s was created concurrently", key)
        return self._vertex_id(key)


__all__ = ["DAG"]
