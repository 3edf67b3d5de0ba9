"""Document store contract.

Paths alternate collection and document ids, Firestore style:
``families/F1`` is a document, ``families/F1/children`` a collection.
"""

import secrets
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable, Optional, Union

# Max operations in one atomic batch
MAX_BATCH_OPERATIONS = 500


class _ServerTimestamp:
    """Sentinel replaced by the store's clock at write time."""

    def __repr__(self) -> str:
        return "SERVER_TIMESTAMP"


SERVER_TIMESTAMP = _ServerTimestamp()

FILTER_OPS = ("==", "<", "<=", ">", ">=")


def split_path(path: str) -> list[str]:
    return [p for p in path.strip("/").split("/") if p]


def is_document_path(path: str) -> bool:
    parts = split_path(path)
    return len(parts) > 0 and len(parts) % 2 == 0


def is_collection_path(path: str) -> bool:
    parts = split_path(path)
    return len(parts) % 2 == 1


@dataclass(frozen=True)
class DocumentSnapshot:
    path: str
    data: dict[str, Any]

    @property
    def id(self) -> str:
        return split_path(self.path)[-1]

    @property
    def parent_document_id(self) -> Optional[str]:
        """Id of the document owning this document's collection, if any."""
        parts = split_path(self.path)
        return parts[-3] if len(parts) >= 4 else None

    def get(self, key: str, default: Any = None) -> Any:
        return self.data.get(key, default)


@dataclass
class Query:
    """A collection (or collection group) query.

    ``collection`` is a full collection path, unless ``group`` is set, in
    which case it is a bare collection id matched anywhere in the tree.
    """

    collection: str
    group: bool = False
    filters: list[tuple[str, str, Any]] = field(default_factory=list)
    order: Optional[tuple[str, bool]] = None  # (field, descending)
    max_results: Optional[int] = None

    def where(self, field_name: str, op: str, value: Any) -> "Query":
        if op not in FILTER_OPS:
            raise ValueError(f"Unsupported filter operator: {op}")
        self.filters.append((field_name, op, value))
        return self

    def order_by(self, field_name: str, descending: bool = False) -> "Query":
        self.order = (field_name, descending)
        return self

    def limit(self, count: int) -> "Query":
        self.max_results = count
        return self


def collection(path: str) -> Query:
    return Query(collection=path)


def collection_group(collection_id: str) -> Query:
    return Query(collection=collection_id, group=True)


class WriteBatch:
    """Collects writes and applies them all-or-nothing on ``commit``."""

    def __init__(self, store: "DocumentStore"):
        self._store = store
        self._ops: list[tuple[str, str, Optional[dict], bool]] = []
        self._committed = False

    def set(self, path: str, data: dict, merge: bool = False) -> "WriteBatch":
        return self._add("set", path, data, merge)

    def update(self, path: str, fields: dict) -> "WriteBatch":
        return self._add("update", path, fields, True)

    def delete(self, path: str) -> "WriteBatch":
        return self._add("delete", path, None, False)

    def _add(self, kind: str, path: str, data: Optional[dict], merge: bool) -> "WriteBatch":
        if self._committed:
            raise RuntimeError("Batch already committed")
        if not is_document_path(path):
            raise ValueError(f"Not a document path: {path}")
        if len(self._ops) >= MAX_BATCH_OPERATIONS:
            raise ValueError(f"A batch holds at most {MAX_BATCH_OPERATIONS} operations")
        self._ops.append((kind, path, data, merge))
        return self

    def __len__(self) -> int:
        return len(self._ops)

    def commit(self) -> None:
        if self._committed:
            raise RuntimeError("Batch already committed")
        self._committed = True
        if self._ops:
            self._store._apply(self._ops)

    def __enter__(self) -> "WriteBatch":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type is None and not self._committed:
            self.commit()


class Subscription:
    """Handle for a live query; ``unsubscribe`` releases it exactly once."""

    def __init__(self, on_close: Callable[["Subscription"], None]):
        self._on_close = on_close
        self.active = True

    def unsubscribe(self) -> None:
        if not self.active:
            return
        self.active = False
        self._on_close(self)

    def __enter__(self) -> "Subscription":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.unsubscribe()


SubscriptionTarget = Union[Query, str]


class DocumentStore(ABC):
    """Contract of the hierarchical document store."""

    def new_id(self) -> str:
        return secrets.token_hex(10)

    def batch(self) -> WriteBatch:
        return WriteBatch(self)

    def set(self, path: str, data: dict, merge: bool = False) -> None:
        self.batch().set(path, data, merge).commit()

    def update(self, path: str, fields: dict) -> None:
        """Merge ``fields`` into an existing document. Raises NotFoundError if absent."""
        self.batch().update(path, fields).commit()

    def delete(self, path: str) -> None:
        """Delete a document; deleting a missing document is a no-op."""
        self.batch().delete(path).commit()

    def add(self, collection_path: str, data: dict) -> str:
        """Create a document with a generated id. Returns its path."""
        if not is_collection_path(collection_path):
            raise ValueError(f"Not a collection path: {collection_path}")
        path = f"{collection_path.strip('/')}/{self.new_id()}"
        self.set(path, data)
        return path

    @abstractmethod
    def get(self, path: str) -> Optional[DocumentSnapshot]:
        ...

    @abstractmethod
    def query(self, query: Query) -> list[DocumentSnapshot]:
        ...

    @abstractmethod
    def subscribe(
        self,
        target: SubscriptionTarget,
        callback: Callable[[Any], None],
        on_error: Optional[Callable[[Exception], None]] = None,
    ) -> Subscription:
        """Deliver the current result now and after every change.

        A Query target yields ``list[DocumentSnapshot]``; a document path
        yields ``DocumentSnapshot | None``.
        """

    @abstractmethod
    def _apply(self, ops: list[tuple[str, str, Optional[dict], bool]]) -> None:
        """Apply batch operations atomically."""
