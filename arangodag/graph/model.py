"""Document model for vertices and edges stored in ArangoDB."""
from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Protocol, runtime_checkable

from .ids import key_of

KEY_FIELD = "_key"
DATA_FIELD = "data"


@runtime_checkable
class KeyProvider(Protocol):
    """Payloads implementing ``key()`` choose their own vertex key."""

    def key(self) -> str:  # pragma: no cover - interface
        ...


@dataclass(frozen=True)
class DocumentMeta:
    """Identity of a stored document."""

    key: str
    id: str
    rev: str | None = None

    @classmethod
    def from_document(cls, document: Mapping[str, Any]) -> "DocumentMeta":
        return cls(key=document["_key"], id=document["_id"], rev=document.get("_rev"))

    def to_payload(self) -> dict[str, Any]:
        return {"key": self.key, "id": self.id, "rev": self.rev}


@dataclass(frozen=True)
class Vertex:
    """A vertex document as read back from the vertex collection."""

    key: str
    id: str
    rev: str | None = None
    data: Any = None

    @property
    def meta(self) -> DocumentMeta:
        return DocumentMeta(key=self.key, id=self.id, rev=self.rev)

    @classmethod
    def from_document(cls, document: Mapping[str, Any]) -> "Vertex":
        return cls(
            key=document["_key"],
            id=document["_id"],
            rev=document.get("_rev"),
            data=document.get(DATA_FIELD),
        )

    def to_payload(self) -> dict[str, Any]:
        return {"key": self.key, "id": self.id, "data": self.data}


@dataclass(frozen=True)
class Edge:
    """An edge document connecting two vertex references."""

    key: str
    id: str
    source: str
    target: str
    rev: str | None = None
    data: Any = None

    @property
    def meta(self) -> DocumentMeta:
        return DocumentMeta(key=self.key, id=self.id, rev=self.rev)

    @property
    def source_key(self) -> str:
        return key_of(self.source)

    @property
    def target_key(self) -> str:
        return key_of(self.target)

    @classmethod
    def from_document(cls, document: Mapping[str, Any]) -> "Edge":
        return cls(
            key=document["_key"],
            id=document["_id"],
            source=document["_from"],
            target=document["_to"],
            rev=document.get("_rev"),
            data=document.get(DATA_FIELD),
        )

    def to_payload(self) -> dict[str, Any]:
        return {
            "key": self.key,
            "src": self.source_key,
            "dst": self.target_key,
            "source": self.source,
            "target": self.target,
            "data": self.data,
        }


def payload_key(payload: Any) -> Optional[str]:
    """Return the key a payload asks for, or ``None`` to let the store pick one.

    A payload chooses its key either by implementing :class:`KeyProvider` or,
    for mappings, by carrying a ``_key`` field.
    """

    value = None
    if isinstance(payload, KeyProvider) and callable(payload.key):
        value = payload.key()
    elif isinstance(payload, Mapping):
        value = payload.get(KEY_FIELD)
    return None if value is None else str(value)


def payload_data(payload: Any) -> Any:
    """Convert ``payload`` into a JSON-friendly value for the ``data`` field.

    Plain objects are stored as their public instance attributes.
    """

    if dataclasses.is_dataclass(payload) and not isinstance(payload, type):
        return dataclasses.asdict(payload)
    if isinstance(payload, Mapping):
        return dict(payload)
    if hasattr(payload, "__dict__") and not isinstance(payload, type):
        return {
            name: payload_data(value)
            for name, value in vars(payload).items()
            if not name.startswith("_")
        }
    return payload


def vertex_document(key: Optional[str], payload: Any) -> dict[str, Any]:
    document: dict[str, Any] = {}
    if key is not None:
        document[KEY_FIELD] = key
    if payload is not None:
        document[DATA_FIELD] = payload_data(payload)
    return document


def edge_document(source_id: str, target_id: str, payload: Any = None) -> dict[str, Any]:
    document: dict[str, Any] = {"_from": source_id, "_to": target_id}
    if payload is not None:
        document[DATA_FIELD] = payload_data(payload)
    return document


__all__ = [
    "DocumentMeta",
    "Edge",
    "KeyProvider",
    "Vertex",
    "edge_document",
    "payload_data",
    "payload_key",
    "vertex_document",
]
