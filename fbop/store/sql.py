"""SQLite-backed document store.

Documents live in a single ``documents`` table keyed by path. Filtering
and ordering happen in Python after the rows of one collection (or one
collection group) are loaded; collections here are small.

Live subscriptions are re-evaluated after every committed write and
delivered only when their result changed.
"""

import json
import logging
import operator
import threading
from datetime import datetime, timezone
from typing import Any, Callable, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from fbop.errors import FbopError, NotFoundError, PermissionDeniedError, TransientStoreError
from fbop.models.document import StoredDocument
from fbop.store.base import (
    SERVER_TIMESTAMP,
    DocumentSnapshot,
    DocumentStore,
    Query,
    Subscription,
    SubscriptionTarget,
    is_document_path,
    split_path,
)

logger = logging.getLogger(__name__)

# (operation, path) -> allowed; operation is 'read' | 'list' | 'write' | 'delete'
AccessPolicy = Callable[[str, str], bool]

_TS_KEY = "$ts"
_MISSING = object()
_UNSET = object()

_OPS = {
    "==": operator.eq,
    "<": operator.lt,
    "<=": operator.le,
    ">": operator.gt,
    ">=": operator.ge,
}


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# --- Value encoding ---

def _encode(value: Any) -> Any:
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return {_TS_KEY: value.isoformat()}
    if isinstance(value, dict):
        return {k: _encode(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_encode(v) for v in value]
    return value


def _decode(value: Any) -> Any:
    if isinstance(value, dict):
        if set(value) == {_TS_KEY}:
            return datetime.fromisoformat(value[_TS_KEY])
        return {k: _decode(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_decode(v) for v in value]
    return value


def _resolve_server_values(value: Any, now: datetime) -> Any:
    if value is SERVER_TIMESTAMP:
        return now
    if isinstance(value, dict):
        return {k: _resolve_server_values(v, now) for k, v in value.items()}
    return value


def _normalize(path: str) -> str:
    return "/".join(split_path(path))


def _to_snapshot(row: StoredDocument) -> DocumentSnapshot:
    return DocumentSnapshot(path=row.path, data=_decode(json.loads(row.data)))


# --- Query evaluation ---

def _matches(data: dict, filters: list[tuple[str, str, Any]]) -> bool:
    for name, op, value in filters:
        actual = data.get(name, _MISSING)
        if actual is _MISSING:
            return False
        try:
            if not _OPS[op](actual, value):
                return False
        except TypeError:
            return False
    return True


def _run_query(snapshots: list[DocumentSnapshot], query: Query) -> list[DocumentSnapshot]:
    results = [s for s in snapshots if _matches(s.data, query.filters)]
    if query.order:
        name, descending = query.order
        results = [s for s in results if s.data.get(name) is not None]
        results.sort(key=lambda s: (s.data[name], s.path), reverse=descending)
    else:
        results.sort(key=lambda s: s.path)
    if query.max_results is not None:
        results = results[: query.max_results]
    return results


class _Listener:
    def __init__(self, target: SubscriptionTarget, callback, on_error, subscription: Subscription):
        self.target = target
        self.callback = callback
        self.on_error = on_error
        self.subscription = subscription
        self.last: Any = _UNSET
        self.lock = threading.RLock()


class SqlDocumentStore(DocumentStore):
    """Document store on a SQLModel engine."""

    def __init__(
        self,
        engine,
        clock: Optional[Callable[[], datetime]] = None,
        access_policy: Optional[AccessPolicy] = None,
    ):
        self._engine = engine
        self._clock = clock or utcnow
        self._access_policy = access_policy
        self._write_lock = threading.RLock()
        self._listeners_lock = threading.Lock()
        self._listeners: list[_Listener] = []

    def now(self) -> datetime:
        """Current server time."""
        return self._clock()

    def _check_access(self, operation: str, path: str) -> None:
        if self._access_policy is not None and not self._access_policy(operation, path):
            raise PermissionDeniedError(
                f"Missing or insufficient permissions: {operation} {path}"
            )

    # --- Reads ---

    def get(self, path: str) -> Optional[DocumentSnapshot]:
        if not is_document_path(path):
            raise ValueError(f"Not a document path: {path}")
        path = _normalize(path)
        self._check_access("read", path)
        try:
            with Session(self._engine) as session:
                row = session.get(StoredDocument, path)
                return _to_snapshot(row) if row else None
        except SQLAlchemyError as e:
            raise TransientStoreError(str(e)) from e

    def query(self, query: Query) -> list[DocumentSnapshot]:
        self._check_access("list", query.collection)
        stmt = select(StoredDocument)
        if query.group:
            stmt = stmt.where(StoredDocument.collection_id == query.collection)
        else:
            stmt = stmt.where(StoredDocument.collection_path == _normalize(query.collection))
        try:
            with Session(self._engine) as session:
                snapshots = [_to_snapshot(row) for row in session.exec(stmt).all()]
        except SQLAlchemyError as e:
            raise TransientStoreError(str(e)) from e
        return _run_query(snapshots, query)

    # --- Writes ---

    def _apply(self, ops: list[tuple[str, str, Optional[dict], bool]]) -> None:
        now = self._clock()
        try:
            with self._write_lock, Session(self._engine) as session:
                for kind, path, data, merge in ops:
                    path = _normalize(path)
                    self._check_access("delete" if kind == "delete" else "write", path)
                    row = session.get(StoredDocument, path)

                    if kind == "delete":
                        if row is not None:
                            session.delete(row)
                            session.flush()
                        continue

                    if kind == "update" and row is None:
                        raise NotFoundError(f"No document to update: {path}")

                    if row is None:
                        row = StoredDocument.for_path(path)
                        current = {}
                    else:
                        current = json.loads(row.data) if merge else {}

                    current.update(_encode(_resolve_server_values(data or {}, now)))
                    row.data = json.dumps(current)
                    row.update_time = now
                    session.add(row)
                    session.flush()
                session.commit()
        except SQLAlchemyError as e:
            raise TransientStoreError(str(e)) from e

        self._notify()

    # --- Live subscriptions ---

    def subscribe(
        self,
        target: SubscriptionTarget,
        callback: Callable[[Any], None],
        on_error: Optional[Callable[[Exception], None]] = None,
    ) -> Subscription:
        if isinstance(target, str) and not is_document_path(target):
            raise ValueError(f"Not a document path: {target}")

        listener: Optional[_Listener] = None

        def close(subscription: Subscription) -> None:
            with self._listeners_lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)
            # Waits for an in-flight delivery to finish
            with listener.lock:
                pass

        subscription = Subscription(close)
        listener = _Listener(target, callback, on_error, subscription)
        with self._listeners_lock:
            self._listeners.append(listener)
        self._deliver(listener)
        return subscription

    @property
    def listener_count(self) -> int:
        with self._listeners_lock:
            return len(self._listeners)

    def _notify(self) -> None:
        with self._listeners_lock:
            listeners = list(self._listeners)
        for listener in listeners:
            self._deliver(listener)

    def _deliver(self, listener: _Listener) -> None:
        with listener.lock:
            if not listener.subscription.active:
                return
            target = listener.target
            try:
                result = self.get(target) if isinstance(target, str) else self.query(target)
            except FbopError as e:
                logger.warning("Subscription on %s closed: %s", _describe(target), e)
                listener.subscription.unsubscribe()
                if listener.on_error:
                    listener.on_error(e)
                return

            if listener.last is not _UNSET and result == listener.last:
                return
            listener.last = result
            try:
                listener.callback(result)
            except Exception:
                logger.exception("Subscription callback failed for %s", _describe(target))


def _describe(target: SubscriptionTarget) -> str:
    if isinstance(target, str):
        return target
    return f"{'group:' if target.group else ''}{target.collection}"
