"""arangodag package initialization.

Directed acyclic graphs stored in ArangoDB.  :func:`provision` connects to (or
creates) the backing collections and returns a :class:`DAG` handle.
"""

from .errors import (
    DAGError,
    DuplicateEdgeError,
    DuplicateKeyError,
    EmptyKeyError,
    LoopError,
    NotFoundError,
    StoreError,
    VertexNilError,
)
from .graph import DAG, KeyProvider
from .graph.provision import provision

__all__ = [
    "DAG",
    "DAGError",
    "DuplicateEdgeError",
    "DuplicateKeyError",
    "EmptyKeyError",
    "KeyProvider",
    "LoopError",
    "NotFoundError",
    "StoreError",
    "VertexNilError",
    "provision",
]
