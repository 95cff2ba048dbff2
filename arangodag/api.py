"""Payload-driven API surface over a :class:`~arangodag.graph.store.DAG`."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping

from arangodag.errors import DAGError
from arangodag.graph.cursor import DocumentCursor
from arangodag.graph.model import Vertex
from arangodag.graph.store import DAG
from arangodag.obs.events import EventBus
from arangodag.persist.export import GraphExporter
from arangodag.router import ActionRouter

_VERTEX_QUERIES = ("all_vertices", "roots", "leaves", "parents", "children", "ancestors", "descendants")
_COUNT_QUERIES = ("order", "size", "parent_count", "child_count")


@dataclass
class DAGApp:
    """Container wiring a DAG handle to the action router and event bus."""

    dag: DAG
    event_bus: EventBus = field(default_factory=EventBus)
    router: ActionRouter = field(default_factory=ActionRouter)

    def __post_init__(self) -> None:
        self._register_default_actions()

    def handle(self, payload: Mapping[str, Any]) -> dict:
        """Dispatch an API payload and return a canonical response.

        Graph errors are recorded as ``error`` events and re-raised.
        """

        action = payload.get("action")
        if not action:
            raise KeyError("payload must include 'action'")
        params = dict(payload.get("params") or {})
        target_keys = self._target_keys(params)
        try:
            result = self.router.dispatch(action, params)
        except DAGError as exc:
            self.event_bus.emit(
                level="error",
                msg=f"Action '{action}' failed: {exc.message}",
                action=action,
                target_keys=target_keys,
                extras=exc.to_payload(),
            )
            raise
        event = self.event_bus.emit(
            level="info" if self.router.mutates(action) else "debug",
            msg=f"Executed action '{action}'",
            action=action,
            target_keys=target_keys,
        )
        return {"ok": True, "result": result, "events": [event.to_payload()]}

    def _register_default_actions(self) -> None:
        register = self.router.register
        register("add_vertex", self._handle_add_vertex, mutates=True)
        register("get_vertex", self._handle_get_vertex, required=("key",))
        register("update_vertex", self._handle_update_vertex, required=("key",), mutates=True)
        register("del_vertex", self._handle_del_vertex, required=("key",), mutates=True)
        register("add_edge", self._handle_add_edge, required=("src", "dst"), mutates=True)
        register("get_edge", self._handle_get_edge, required=("src", "dst"))
        register("edge_exists", self._handle_edge_exists, required=("src", "dst"))
        register("del_edge", self._handle_del_edge, required=("src", "dst"), mutates=True)
        register("query", self._handle_query)
        register("export_graph", self._handle_export_graph)

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------

    def _handle_add_vertex(self, params: dict) -> dict:
        data = params.get("data")
        key = params.get("key")
        if key:
            created = self.dag.add_named_vertex(key, data)
        else:
            created = self.dag.add_vertex(data, allow_empty=bool(params.get("allow_empty", False)))
        return {"key": created}

    def _handle_get_vertex(self, params: dict) -> dict:
        return self.dag.get_vertex(str(params["key"])).to_payload()

    def _handle_update_vertex(self, params: dict) -> dict:
        key = str(params["key"])
        if params.get("replace"):
            meta = self.dag.replace_vertex(key, params.get("data"))
        else:
            meta = self.dag.update_vertex(key, params.get("data"))
        return meta.to_payload()

    def _handle_del_vertex(self, params: dict) -> dict:
        key = str(params["key"])
        return {"key": key, "removed_edges": self.dag.del_vertex(key)}

    def _handle_add_edge(self, params: dict) -> dict:
        meta = self.dag.add_edge(
            str(params["src"]),
            str(params["dst"]),
            params.get("data"),
            create_vertices=bool(params.get("create_vertices", False)),
        )
        return {"edge": meta.to_payload()}

    def _handle_get_edge(self, params: dict) -> dict:
        return self.dag.get_edge(str(params["src"]), str(params["dst"])).to_payload()

    def _handle_edge_exists(self, params: dict) -> dict:
        return {"exists": self.dag.edge_exists(str(params["src"]), str(params["dst"]))}

    def _handle_del_edge(self, params: dict) -> dict:
        meta = self.dag.del_edge(str(params["src"]), str(params["dst"]))
        return {"edge": meta.to_payload()}

    def _handle_query(self, params: dict) -> dict:
        return self.query(
            kind=params.get("kind", "descendants"),
            key=params.get("key"),
            dst=params.get("dst"),
            dfs=bool(params.get("dfs", False)),
        )

    def _handle_export_graph(self, params: dict) -> dict:
        fmt = params.get("format", "dot")
        content = GraphExporter(self.dag).export(format=fmt)
        return {"format": fmt, "content": content}

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def query(
        self,
        *,
        kind: str,
        key: str | None = None,
        dst: str | None = None,
        dfs: bool = False,
    ) -> dict:
        """Run a read-side query and materialize its result."""

        if kind in _COUNT_QUERIES:
            return {"count": self._count(kind, key)}
        if kind == "shortest_path":
            if not key or not dst:
                raise KeyError("'key' and 'dst' are required for shortest_path queries")
            return {"items": _collect(self.dag.get_shortest_path(key, dst))}
        if kind not in _VERTEX_QUERIES:
            raise ValueError(f"Unsupported query kind: {kind}")
        if kind == "all_vertices":
            cursor = self.dag.get_all_vertices()
        elif kind == "roots":
            cursor = self.dag.get_roots()
        elif kind == "leaves":
            cursor = self.dag.get_leaves()
        else:
            if not key:
                raise KeyError(f"'key' is required for {kind} queries")
            if kind == "parents":
                cursor = self.dag.get_parents(key)
            elif kind == "children":
                cursor = self.dag.get_children(key)
            elif kind == "ancestors":
                cursor = self.dag.get_ancestors(key, dfs=dfs)
            else:
                cursor = self.dag.get_descendants(key, dfs=dfs)
        return {"items": _collect(cursor)}

    def _count(self, kind: str, key: str | None) -> int:
        if kind == "order":
            return self.dag.get_order()
        if kind == "size":
            return self.dag.get_size()
        if not key:
            raise KeyError(f"'key' is required for {kind} queries")
        if kind == "parent_count":
            return self.dag.get_parent_count(key)
        return self.dag.get_child_count(key)

    @staticmethod
    def _target_keys(params: Mapping[str, Any]) -> Iterable[str]:
        return [str(params[name]) for name in ("key", "src", "dst") if params.get(name)]


def _collect(cursor: DocumentCursor[Vertex]) -> list[dict]:
    with cursor:
        return [vertex.to_payload() for vertex in cursor]


__all__ = ["DAGApp"]
