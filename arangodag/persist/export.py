"""Graph export utilities."""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Literal

import networkx as nx

from ..graph.store import DAG

logger = logging.getLogger(__name__)

ExportFormat = Literal["dot", "json", "graphml"]


def _quote(value: str) -> str:
    return '"' + value.replace("\\", "\\\\").replace('"', '\\"') + '"'


@dataclass
class GraphExporter:
    """Serialize the stored DAG to a portable representation."""

    dag: DAG

    def build(self) -> nx.DiGraph:
        """Read all vertices, then all edges, into a :class:`networkx.DiGraph`.

        Nodes are named ``n1, n2, ...`` in the order the vertices are read and
        carry the vertex key as ``label``.  Edges are matched to nodes through
        their document ids; an edge whose endpoint was not part of the vertex
        scan (e.g. removed concurrently) is skipped.
        """

        graph = nx.DiGraph()
        nodes_by_id: dict[str, str] = {}

        with self.dag.get_all_vertices() as vertices:
            for index, vertex in enumerate(vertices, start=1):
                node = f"n{index}"
                nodes_by_id[vertex.id] = node
                graph.add_node(node, label=vertex.key)

        with self.dag.get_edges() as edges:
            for edge in edges:
                source = nodes_by_id.get(edge.source)
                target = nodes_by_id.get(edge.target)
                if source is None or target is None:
                    logger.warning(
                        "Skipping edge %s: endpoint %s not among exported vertices",
                        edge.key,
                        edge.source if source is None else edge.target,
                    )
                    continue
                graph.add_edge(source, target)

        return graph

    def export(self, *, format: ExportFormat = "dot") -> str:
        """Export the graph to the requested ``format``."""

        if format not in ("dot", "json", "graphml"):
            raise ValueError(f"Unsupported export format: {format}")
        graph = self.build()
        if format == "dot":
            return to_dot(graph)
        if format == "json":
            return json.dumps(nx.node_link_data(graph, edges="edges"), indent=2)
        return "\n".join(nx.generate_graphml(graph))


def to_dot(graph: nx.DiGraph) -> str:
    """Render ``graph`` as a Graphviz ``digraph``: node statements, then edges."""

    lines = ["digraph {"]
    for node, data in graph.nodes(data=True):
        lines.append(f"\t{node}[label={_quote(str(data.get('label', node)))}];")
    for source, target in graph.edges():
        lines.append(f"\t{source}->{target};")
    lines.append("}")
    return "\n".join(lines) + "\n"


__all__ = ["ExportFormat", "GraphExporter", "to_dot"]
