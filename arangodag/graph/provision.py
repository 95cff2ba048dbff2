"""Provisioning of the database, collections and indexes backing a DAG."""
from __future__ import annotations

import logging
from typing import Optional

from arango import ArangoClient
from arango.collection import StandardCollection
from arango.database import StandardDatabase

from ..config import ArangoSettings
from ..errors import translate_store_errors
from .store import DAG

logger = logging.getLogger(__name__)

SYSTEM_DATABASE = "_system"

# Index over the edge endpoints that makes (_from, _to) pairs unique.
EDGE_INDEX = {"type": "persistent", "fields": ["_from", "_to"], "unique": True}


def collection_names(base: str) -> tuple[str, str]:
    """Return the ``(vertex, edge)`` collection names derived from ``base``."""

    return f"v-{base}", f"e-{base}"


def client_from_settings(settings: Optional[ArangoSettings] = None) -> ArangoClient:
    """Create an :class:`ArangoClient` for the configured server."""

    settings = settings or ArangoSettings.from_env()
    return ArangoClient(hosts=settings.url)


def ensure_database(
    client: ArangoClient,
    db_name: str,
    *,
    username: str = "root",
    password: str = "",
) -> StandardDatabase:
    """Return a handle to ``db_name``, creating the database if needed."""

    with translate_store_errors():
        sys_db = client.db(SYSTEM_DATABASE, username=username, password=password)
        if not sys_db.has_database(db_name):
            logger.info("Creating database %s", db_name)
            sys_db.create_database(db_name)
        return client.db(db_name, username=username, password=password)


def ensure_collection(db: StandardDatabase, name: str, *, edge: bool = False) -> StandardCollection:
    """Return collection ``name``, creating it (as edge collection if ``edge``)."""

    with translate_store_errors():
        if db.has_collection(name):
            return db.collection(name)
        logger.info("Creating %s collection %s", "edge" if edge else "document", name)
        return db.create_collection(name, edge=edge)


def ensure_edge_index(edges: StandardCollection) -> dict:
    """Ensure the unique ``(_from, _to)`` index exists on ``edges``.

    ArangoDB hands back the existing index when an identical definition is
    created again, so this is safe to call repeatedly.
    """

    with translate_store_errors():
        return edges.add_index(dict(EDGE_INDEX))


def provision(
    client: ArangoClient,
    db_name: str,
    vertex_collection: str,
    edge_collection: str,
    *,
    username: str = "root",
    password: str = "",
    query_logging: bool = False,
) -> DAG:
    """Connect to (and if necessary create) the collections of a DAG.

    Every step checks for existence before creating anything, so calling
    ``provision`` again with the same names returns an equivalent handle.
    Connection or permission failures are raised as
    :class:`~arangodag.errors.StoreError`; nothing is retried.
    """

    db = ensure_database(client, db_name, username=username, password=password)
    vertices = ensure_collection(db, vertex_collection)
    edges = ensure_collection(db, edge_collection, edge=True)
    ensure_edge_index(edges)
    return DAG(db=db, vertices=vertices, edges=edges, query_logging=query_logging)


def provision_from_settings(
    db_name: str,
    vertex_collection: str,
    edge_collection: str,
    settings: Optional[ArangoSettings] = None,
    *,
    client: Optional[ArangoClient] = None,
) -> DAG:
    """:func:`provision` using credentials from :class:`ArangoSettings`."""

    settings = settings or ArangoSettings.from_env()
    client = client or client_from_settings(settings)
    return provision(
        client,
        db_name,
        vertex_collection,
        edge_collection,
        username=settings.username,
        password=settings.password,
        query_logging=settings.query_logging,
    )


__all__ = [
    "EDGE_INDEX",
    "client_from_settings",
    "collection_names",
    "ensure_collection",
    "ensure_database",
    "ensure_edge_index",
    "provision",
    "provision_from_settings",
]
