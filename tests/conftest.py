"""Shared fixtures and an in-memory stand-in for the ``python-arango`` driver.

The fake implements the slice of the driver API the DAG uses: databases,
document/edge collections with a unique ``(_from, _to)`` index, and an AQL
endpoint that evaluates the statements built by :mod:`arangodag.graph.query`.
Traversals follow the order ArangoDB produces: the edge index returns the most
recently inserted edge of a vertex first, BFS visits neighbours in that order,
DFS pops them from a stack (oldest first), and ``SHORTEST_PATH`` searches
backwards from the target.
"""

from __future__ import annotations

import copy
import itertools
import json
from collections import deque
from typing import Any, Iterable

import pytest
from arango.exceptions import (
    AQLQueryExecuteError,
    CollectionCreateError,
    DocumentDeleteError,
    DocumentInsertError,
    DocumentReplaceError,
    DocumentUpdateError,
)
from arango.request import Request
from arango.response import Response

from arangodag.graph import query as q
from arangodag.graph.provision import provision
from arangodag.graph.store import DAG

DOCUMENT_NOT_FOUND = 1202
DUPLICATE_NAME = 1207
UNIQUE_CONSTRAINT_VIOLATED = 1210


def server_error(exc_type, error_code: int, http_code: int, message: str):
    """Build a driver exception the way the driver does from an HTTP reply."""

    body = {"error": True, "errorNum": error_code, "errorMessage": message, "code": http_code}
    response = Response(
        method="post",
        url="http://fake-arango:8529/_api",
        headers={},
        status_code=http_code,
        status_text="error",
        raw_body=json.dumps(body),
    )
    response.body = body
    response.error_code = error_code
    response.error_message = message
    response.is_success = False
    return exc_type(response, Request(method="post", endpoint="/_api"))


class FakeCursor:
    _ids = itertools.count(1)

    def __init__(self, rows: Iterable[Any], *, count: bool = False, registry: list | None = None) -> None:
        rows = list(rows)
        self.id = str(next(self._ids))
        self._rows = iter(rows)
        self._count = len(rows) if count else None
        self.closed = False
        if registry is not None:
            registry.append(self)

    def __iter__(self):
        return self

    def __next__(self):
        return copy.deepcopy(next(self._rows))

    def count(self):
        return self._count

    def close(self, ignore_missing: bool = False):
        self.closed = True
        return True


def _encode(document: dict) -> dict:
    """Round-trip through JSON like the driver's default serializer."""

    return json.loads(json.dumps(dict(document)))


def _merge(target: dict, patch: dict) -> dict:
    for key, value in patch.items():
        if isinstance(value, dict) and isinstance(target.get(key), dict):
            _merge(target[key], value)
        else:
            target[key] = value
    return target


class FakeCollection:
    def __init__(self, db: "FakeDatabase", name: str, edge: bool = False) -> None:
        self.db = db
        self._name = name
        self.edge = edge
        self.docs: dict[str, dict] = {}
        self.index_list: list[dict] = []
        self._keys = itertools.count(10000)
        self._revs = itertools.count(1)

    @property
    def name(self) -> str:
        return self._name

    def snapshot(self) -> list[dict]:
        return list(self.docs.values())

    def _meta(self, doc: dict) -> dict:
        return {"_id": doc["_id"], "_key": doc["_key"], "_rev": doc["_rev"]}

    def _unique_pair_taken(self, doc: dict) -> bool:
        if not any(index.get("unique") and index.get("fields") == ["_from", "_to"] for index in self.index_list):
            return False
        return any(
            other["_from"] == doc["_from"] and other["_to"] == doc["_to"] for other in self.snapshot()
        )

    def insert(self, document: dict) -> dict:
        doc = _encode(document)
        key = doc.get("_key") or str(next(self._keys))
        if key in self.docs or (self.edge and self._unique_pair_taken(doc)):
            raise server_error(DocumentInsertError, UNIQUE_CONSTRAINT_VIOLATED, 409, "unique constraint violated")
        doc["_key"] = key
        doc["_id"] = f"{self._name}/{key}"
        doc["_rev"] = f"_r{next(self._revs)}"
        self.docs[key] = doc
        return self._meta(doc)

    def get(self, key: str):
        doc = self.docs.get(key)
        return copy.deepcopy(doc) if doc is not None else None

    def has(self, key: str) -> bool:
        return key in self.docs

    def update(self, document: dict, merge: bool = True) -> dict:
        key = document["_key"]
        if key not in self.docs:
            raise server_error(DocumentUpdateError, DOCUMENT_NOT_FOUND, 404, "document not found")
        doc = self.docs[key]
        patch = {k: v for k, v in _encode(document).items() if not k.startswith("_")}
        if merge:
            _merge(doc, patch)
        else:
            doc.update(patch)
        doc["_rev"] = f"_r{next(self._revs)}"
        return self._meta(doc)

    def replace(self, document: dict) -> dict:
        key = document["_key"]
        if key not in self.docs:
            raise server_error(DocumentReplaceError, DOCUMENT_NOT_FOUND, 404, "document not found")
        old = self.docs[key]
        doc = {k: v for k, v in _encode(document).items() if not k.startswith("_")}
        doc.update({name: old[name] for name in ("_key", "_id", "_from", "_to") if name in old})
        doc["_rev"] = f"_r{next(self._revs)}"
        self.docs[key] = doc
        return self._meta(doc)

    def delete(self, key: str) -> dict:
        if key not in self.docs:
            raise server_error(DocumentDeleteError, DOCUMENT_NOT_FOUND, 404, "document not found")
        return self._meta(self.docs.pop(key))

    def count(self) -> int:
        return len(self.docs)

    def add_index(self, data: dict, formatter: bool = False) -> dict:
        for index in self.index_list:
            if all(index.get(name) == value for name, value in data.items()):
                return dict(index, isNewlyCreated=False)
        index = dict(data, id=f"{self._name}/{len(self.index_list) + 1}")
        self.index_list.append(index)
        return dict(index, isNewlyCreated=True)

    def indexes(self) -> list[dict]:
        return [dict(index) for index in self.index_list]


class FakeAQL:
    """Evaluates the statements built by :mod:`arangodag.graph.query`."""

    def __init__(self, db: "FakeDatabase") -> None:
        self.db = db
        self.queries: list[tuple[str, dict]] = []
        self._templates: dict[str, tuple] = {
            q.ALL_DOCUMENTS: ("all",),
            q.EDGE_LOOKUP: ("edge",),
            q.SHORTEST_PATH: ("shortest",),
            q.PATH_PROBE: ("probe",),
            q.REMOVE_VERTEX: ("remove",),
        }
        for direction in q.Direction:
            for distinct in ("DISTINCT ", ""):
                template = q.RELATIVES.format(direction=direction.value, distinct=distinct)
                self._templates[template] = ("relatives", direction, bool(distinct))
            self._templates[q.RELATIVE_COUNT.format(direction=direction.value)] = ("count", direction)
            self._templates[q.UNRELATED_VERTICES.format(direction=direction.value)] = ("unrelated", direction)

    def execute(self, query: str, bind_vars: dict | None = None, count: bool = False, **_: Any) -> FakeCursor:
        bind_vars = dict(bind_vars or {})
        self.queries.append((query, bind_vars))
        if query not in self._templates:
            raise AssertionError(f"unexpected query: {query}")
        kind, *extra = self._templates[query]
        rows = getattr(self, f"_{kind}")(bind_vars, *extra)
        return FakeCursor(rows, count=count, registry=self.db.cursors)

    # -- graph helpers ----------------------------------------------------

    def _document(self, doc_id: str):
        collection, _, key = doc_id.partition("/")
        coll = self.db.collections.get(collection)
        return coll.docs.get(key) if coll else None

    @staticmethod
    def _neighbours(edges: FakeCollection, vertex_id: str, direction: q.Direction) -> list[str]:
        """Neighbours of ``vertex_id``, most recently inserted edge first."""

        if direction is q.Direction.OUTBOUND:
            found = [e["_to"] for e in edges.snapshot() if e["_from"] == vertex_id]
        else:
            found = [e["_from"] for e in edges.snapshot() if e["_to"] == vertex_id]
        return list(reversed(found))

    def _bfs(self, edges, start, direction, depth) -> list[str]:
        visited = {start}
        frontier = [start]
        result: list[str] = []
        for _ in range(depth):
            following = []
            for vertex in frontier:
                for neighbour in self._neighbours(edges, vertex, direction):
                    if neighbour in visited:
                        continue
                    visited.add(neighbour)
                    result.append(neighbour)
                    following.append(neighbour)
            frontier = following
        return result

    def _dfs(self, edges, start, direction, depth) -> list[str]:
        result: list[str] = []
        stack = [(start, 0)]
        while stack:
            vertex, level = stack.pop()
            if level:
                result.append(vertex)
            if level == depth:
                continue
            for neighbour in self._neighbours(edges, vertex, direction):
                stack.append((neighbour, level + 1))
        return result

    def _path(self, edges, source, target) -> list[str]:
        if self._document(source) is None or self._document(target) is None:
            return []
        if source == target:
            return [source]
        following = {target: None}
        queue = deque([target])
        while queue:
            vertex = queue.popleft()
            for parent in self._neighbours(edges, vertex, q.Direction.INBOUND):
                if parent in following:
                    continue
                following[parent] = vertex
                if parent == source:
                    path = [source]
                    while path[-1] != target:
                        path.append(following[path[-1]])
                    return path
                queue.append(parent)
        return []

    # -- statement evaluators ----------------------------------------------

    def _all(self, bind_vars):
        return self.db.collections[bind_vars["@collection"]].snapshot()

    def _edge(self, bind_vars):
        edges = self.db.collections[bind_vars["@edges"]]
        return [
            e for e in edges.snapshot() if e["_from"] == bind_vars["from"] and e["_to"] == bind_vars["to"]
        ][:1]

    def _shortest(self, bind_vars):
        edges = self.db.collections[bind_vars["@edges"]]
        return [self._document(v) for v in self._path(edges, bind_vars["from"], bind_vars["to"])]

    def _probe(self, bind_vars):
        edges = self.db.collections[bind_vars["@edges"]]
        return [1] if self._path(edges, bind_vars["from"], bind_vars["to"]) else []

    def _relatives(self, bind_vars, direction, distinct):
        edges = self.db.collections[bind_vars["@edges"]]
        start = bind_vars["start"]
        if self._document(start) is None:
            return []
        if bind_vars["order"] == "bfs":
            assert bind_vars["uniqueVertices"] == "global"
            found = self._bfs(edges, start, direction, bind_vars["depth"])
        else:
            assert bind_vars["uniqueVertices"] == "none"
            found = self._dfs(edges, start, direction, bind_vars["depth"])
        if distinct:
            found = list(dict.fromkeys(found))
        return [self._document(v) for v in found]

    def _count(self, bind_vars, direction):
        edges = self.db.collections[bind_vars["@edges"]]
        return [len(self._neighbours(edges, bind_vars["start"], direction))]

    def _unrelated(self, bind_vars, direction):
        vertices = self.db.collections[bind_vars["@vertices"]]
        edges = self.db.collections[bind_vars["@edges"]]
        return [v for v in vertices.snapshot() if not self._neighbours(edges, v["_id"], direction)]

    def _remove(self, bind_vars):
        vertices = self.db.collections[bind_vars["@vertices"]]
        edges = self.db.collections[bind_vars["@edges"]]
        if bind_vars["key"] not in vertices.docs:
            raise server_error(AQLQueryExecuteError, DOCUMENT_NOT_FOUND, 404, "document not found")
        vertex_id = bind_vars["vertex"]
        incident = [k for k, e in list(edges.docs.items()) if vertex_id in (e["_from"], e["_to"])]
        for key in incident:
            del edges.docs[key]
        del vertices.docs[bind_vars["key"]]
        return [len(incident)]


class FakeDatabase:
    def __init__(self, name: str) -> None:
        self.name = name
        self.collections: dict[str, FakeCollection] = {}
        self.cursors: list[FakeCursor] = []
        self.created: list[str] = []
        self.aql = FakeAQL(self)

    def has_collection(self, name: str) -> bool:
        return name in self.collections

    def collection(self, name: str) -> FakeCollection:
        return self.collections[name]

    def create_collection(self, name: str, edge: bool = False, **_: Any) -> FakeCollection:
        if name in self.collections:
            raise server_error(CollectionCreateError, DUPLICATE_NAME, 409, "duplicate name")
        self.created.append(name)
        self.collections[name] = FakeCollection(self, name, edge=edge)
        return self.collections[name]


class FakeSystemDatabase(FakeDatabase):
    def __init__(self, client: "FakeArangoClient") -> None:
        super().__init__("_system")
        self.client = client

    def has_database(self, name: str) -> bool:
        return name in self.client.databases

    def create_database(self, name: str, **_: Any) -> bool:
        if name in self.client.databases:
            raise AssertionError(f"database {name} exists")
        self.client.databases[name] = FakeDatabase(name)
        return True


class FakeArangoClient:
    def __init__(self) -> None:
        self.databases: dict[str, FakeDatabase] = {}
        self.system = FakeSystemDatabase(self)

    def db(self, name: str = "_system", username: str = "root", password: str = "", **_: Any):
        if name == "_system":
            return self.system
        return self.databases[name]


@pytest.fixture()
def client() -> FakeArangoClient:
    return FakeArangoClient()


@pytest.fixture()
def dag(client: FakeArangoClient) -> DAG:
    return provision(client, "dag_test", "vertices", "edges")


@pytest.fixture()
def standard_dag(dag: DAG) -> DAG:
    """The graph used throughout the traversal tests.

    ::

         0   5
        /|
       | 1
       | |\\
       | 2 |
        \\| |
         3 |
         |/
         4
    """

    for key in "012345":
        dag.add_vertex({"_key": key})
    for src, dst in (("0", "1"), ("1", "2"), ("1", "4"), ("2", "3"), ("3", "4"), ("0", "3")):
        dag.add_edge(src, dst)
    return dag


@pytest.fixture()
def make_server_error():
    return server_error


@pytest.fixture()
def fake_cursor():
    return FakeCursor
