"""Graph subpackage: document model, query builders and the DAG handle."""

from .cursor import DocumentCursor
from .model import DocumentMeta, Edge, KeyProvider, Vertex
from .provision import collection_names, provision_from_settings
from .query import AQLQuery, Direction, Order
from .store import DAG

__all__ = [
    "AQLQuery",
    "DAG",
    "Direction",
    "DocumentCursor",
    "DocumentMeta",
    "Edge",
    "KeyProvider",
    "Order",
    "Vertex",
    "collection_names",
    "provision_from_settings",
]
