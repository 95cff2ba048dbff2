"""Command line benchmark: build a large tree concurrently and walk it.

Example::

    python -m arangodag.timing --depth 4 --branching 9 --workers 16
"""
from __future__ import annotations

import argparse
import logging
import sys
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Sequence

from arangodag.config import ArangoSettings
from arangodag.graph.ids import new_name
from arangodag.graph.provision import collection_names, provision_from_settings
from arangodag.graph.store import DAG

LOGGER = logging.getLogger(__name__)


@dataclass
class TimingResult:
    vertices: int
    edges: int
    build_seconds: float
    descendants: int
    walk_seconds: float


def _add_child(dag: DAG, parent: str, child: str) -> str:
    dag.add_named_vertex(child)
    dag.add_edge(parent, child)
    return child


def build_tree(dag: DAG, *, depth: int, branching: int, workers: int) -> tuple[int, int]:
    """Create a ``branching``-ary tree of ``depth`` levels below root ``"0"``.

    Each level is inserted with a pool of ``workers`` threads; returns the
    number of vertices and edges created.
    """

    dag.add_named_vertex("0")
    vertices, edges = 1, 0
    level = ["0"]
    with ThreadPoolExecutor(max_workers=workers) as pool:
        for _ in range(depth):
            futures = [
                pool.submit(_add_child, dag, parent, f"{parent}-{index}")
                for parent in level
                for index in range(branching)
            ]
            level = [future.result() for future in futures]
            vertices += len(level)
            edges += len(level)
            LOGGER.debug("Level done: %d vertices so far", vertices)
    return vertices, edges


def count_descendants(dag: DAG, key: str) -> int:
    with dag.get_descendants(key) as cursor:
        return sum(1 for _ in cursor)


def run(dag: DAG, *, depth: int, branching: int, workers: int) -> TimingResult:
    start = time.perf_counter()
    vertices, edges = build_tree(dag, depth=depth, branching=branching, workers=workers)
    build_seconds = time.perf_counter() - start

    start = time.perf_counter()
    descendants = count_descendants(dag, "0")
    walk_seconds = time.perf_counter() - start
    return TimingResult(vertices, edges, build_seconds, descendants, walk_seconds)


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--db", default=None, help="database name (default: a fresh one)")
    parser.add_argument("--name", default=None, help="base name of the vertex/edge collections")
    parser.add_argument("--depth", type=int, default=4, help="levels below the root")
    parser.add_argument("--branching", type=int, default=9, help="children per vertex")
    parser.add_argument("--workers", type=int, default=8, help="concurrent insert threads")
    parser.add_argument("-v", "--verbose", action="store_true", help="enable debug logging")
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    settings = ArangoSettings.from_env()
    base = args.name or new_name("timing")
    vertex_collection, edge_collection = collection_names(base)
    dag = provision_from_settings(args.db or new_name("test"), vertex_collection, edge_collection, settings)

    result = run(dag, depth=args.depth, branching=args.branching, workers=args.workers)
    print(
        f"{result.build_seconds:f}s to add {result.vertices} vertices and {result.edges} edges"
    )
    print(f"{result.walk_seconds:f}s to get {result.descendants} descendants")
    return 0


if __name__ == "__main__":  # pragma: no cover - manual benchmark
    sys.exit(main())
