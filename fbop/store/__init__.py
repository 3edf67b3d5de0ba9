"""Document store adapter."""

from fbop.store.base import (
    MAX_BATCH_OPERATIONS,
    SERVER_TIMESTAMP,
    DocumentSnapshot,
    DocumentStore,
    Query,
    Subscription,
    WriteBatch,
    collection,
    collection_group,
)
from fbop.store.sql import SqlDocumentStore

__all__ = [
    "MAX_BATCH_OPERATIONS",
    "SERVER_TIMESTAMP",
    "DocumentSnapshot",
    "DocumentStore",
    "Query",
    "Subscription",
    "WriteBatch",
    "collection",
    "collection_group",
    "SqlDocumentStore",
]
