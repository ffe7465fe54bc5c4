"""Document store abstraction and backends."""

from .base import DocumentStore, collection_of, join_key
from .memory import CompareAndSwapDocumentStore, MemoryDocumentStore
from .components import ComponentRepository

# NOTE: PostgresDocumentStore is NOT re-exported here so that importing
# bomsync does not require a working psycopg2 install:
#   from bomsync.store.postgres import PostgresDocumentStore

__all__ = [
    "DocumentStore",
    "MemoryDocumentStore",
    "CompareAndSwapDocumentStore",
    "ComponentRepository",
    "collection_of",
    "join_key",
]
