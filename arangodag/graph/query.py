"""AQL builders for reading and traversing the DAG.

Every builder is a pure function returning an :class:`AQLQuery`; nothing in
this module talks to the database.  Collection names and vertex references are
always passed as bind parameters.  Traversal direction is the one exception:
AQL does not accept ``INBOUND``/``OUTBOUND`` as a bind parameter, so it is
formatted into the template, and only ever from :class:`Direction`.
"""
from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any, Dict

MAX_DEPTH = 10000


class Direction(str, enum.Enum):
    """Traversal direction relative to the start vertex."""

    OUTBOUND = "OUTBOUND"
    INBOUND = "INBOUND"


class Order(str, enum.Enum):
    """Traversal order.

    ``BFS`` visits every vertex once at its shortest distance
    (``uniqueVertices: "global"``).  ``DFS`` follows one complete path before
    backtracking and applies no global uniqueness, so a vertex reachable over
    several paths is returned once per path.
    """

    BFS = "bfs"
    DFS = "dfs"

    @property
    def unique_vertices(self) -> str:
        return "global" if self is Order.BFS else "none"


@dataclass(frozen=True)
class AQLQuery:
    """An AQL statement together with its bind parameters."""

    query: str
    bind_vars: Dict[str, Any] = field(default_factory=dict)
    count: bool = False


ALL_DOCUMENTS = "FOR d IN @@collection RETURN d"

EDGE_LOOKUP = (
    "FOR e IN @@edges FILTER e._from == @from && e._to == @to LIMIT 1 RETURN e"
)

SHORTEST_PATH = "FOR v IN OUTBOUND SHORTEST_PATH @from TO @to @@edges RETURN v"

PATH_PROBE = (
    "FOR v IN OUTBOUND SHORTEST_PATH @from TO @to @@edges LIMIT 1 RETURN 1"
)

RELATIVES = (
    "FOR v IN 1..@depth {direction} @start @@edges "
    "OPTIONS {{order: @order, uniqueVertices: @uniqueVertices}} "
    "RETURN {distinct}v"
)

RELATIVE_COUNT = (
    "FOR v IN 1..1 {direction} @start @@edges COLLECT WITH COUNT INTO n RETURN n"
)

UNRELATED_VERTICES = (
    "FOR v IN @@vertices "
    "FILTER LENGTH(FOR vv IN 1..1 {direction} v @@edges LIMIT 1 RETURN 1) == 0 "
    "RETURN v"
)

REMOVE_VERTEX = (
    "LET removed = ("
    "FOR e IN @@edges FILTER e._from == @vertex || e._to == @vertex "
    "REMOVE e IN @@edges RETURN 1) "
    "REMOVE @key IN @@vertices "
    "RETURN LENGTH(removed)"
)


def all_documents(collection: str) -> AQLQuery:
    """Full scan of ``collection`` in storage order."""

    return AQLQuery(ALL_DOCUMENTS, {"@collection": collection})


def edge_lookup(edges: str, source_id: str, target_id: str) -> AQLQuery:
    """Fetch the edge from ``source_id`` to ``target_id``, if any."""

    return AQLQuery(EDGE_LOOKUP, {"@edges": edges, "from": source_id, "to": target_id})


def shortest_path(edges: str, source_id: str, target_id: str) -> AQLQuery:
    """Vertices on the shortest outbound path, both endpoints included."""

    return AQLQuery(SHORTEST_PATH, {"@edges": edges, "from": source_id, "to": target_id})


def path_probe(edges: str, source_id: str, target_id: str) -> AQLQuery:
    """Reachability probe: yields at most one row when a path exists.

    A vertex always reaches itself, so probing ``v`` to ``v`` finds a path.
    """

    return AQLQuery(
        PATH_PROBE,
        {"@edges": edges, "from": source_id, "to": target_id},
        count=True,
    )


def relatives(
    edges: str,
    start_id: str,
    *,
    direction: Direction,
    depth: int = 1,
    order: Order = Order.BFS,
) -> AQLQuery:
    """Traverse from ``start_id`` up to ``depth`` hops in ``direction``."""

    direction = Direction(direction)
    order = Order(order)
    if depth < 1:
        raise ValueError(f"depth must be at least 1, got {depth}")
    distinct = "DISTINCT " if order is Order.BFS else ""
    query = RELATIVES.format(direction=direction.value, distinct=distinct)
    return AQLQuery(
        query,
        {
            "@edges": edges,
            "start": start_id,
            "depth": min(depth, MAX_DEPTH),
            "order": order.value,
            "uniqueVertices": order.unique_vertices,
        },
    )


def relative_count(edges: str, start_id: str, *, direction: Direction) -> AQLQuery:
    """Number of direct relatives of ``start_id`` in ``direction``."""

    direction = Direction(direction)
    return AQLQuery(
        RELATIVE_COUNT.format(direction=direction.value),
        {"@edges": edges, "start": start_id},
    )


def roots(vertices: str, edges: str) -> AQLQuery:
    """Vertices without inbound edges."""

    return AQLQuery(
        UNRELATED_VERTICES.format(direction=Direction.INBOUND.value),
        {"@vertices": vertices, "@edges": edges},
    )


def leaves(vertices: str, edges: str) -> AQLQuery:
    """Vertices without outbound edges."""

    return AQLQuery(
        UNRELATED_VERTICES.format(direction=Direction.OUTBOUND.value),
        {"@vertices": vertices, "@edges": edges},
    )


def remove_vertex(vertices: str, edges: str, key: str, vertex_id: str) -> AQLQuery:
    """Remove a vertex and its incident edges in a single statement.

    Returns one row holding the number of removed edges.  The statement fails
    as a whole (no edge removed) when the vertex does not exist.
    """

    return AQLQuery(
        REMOVE_VERTEX,
        {"@vertices": vertices, "@edges": edges, "key": key, "vertex": vertex_id},
    )


__all__ = [
    "AQLQuery",
    "Direction",
    "MAX_DEPTH",
    "Order",
    "all_documents",
    "edge_lookup",
    "leaves",
    "path_probe",
    "relative_count",
    "relatives",
    "remove_vertex",
    "roots",
    "shortest_path",
]
