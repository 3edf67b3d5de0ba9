"""Children and their transactions.

Balances are never stored: a child's balance is the sum of its
transaction amounts, in integer cents.
"""

import logging
from datetime import datetime
from typing import Callable, Iterable, Optional

from fbop.errors import NotFoundError
from fbop.models.child import Child, ChildWithBalance, Transaction
from fbop.store import SERVER_TIMESTAMP, DocumentStore, Subscription, collection, paths

logger = logging.getLogger(__name__)


def _check_amount(amount) -> int:
    # bool is an int subclass; floats would lose cents
    if isinstance(amount, bool) or not isinstance(amount, int):
        raise ValueError("Amount must be an integer number of cents")
    return amount


# --- Children ---

def create_child(store: DocumentStore, family_id: str, name: str) -> Child:
    path = store.add(paths.children(family_id), {"name": name, "created_at": SERVER_TIMESTAMP})
    return Child.from_snapshot(store.get(path))


def get_child(store: DocumentStore, family_id: str, child_id: str) -> Child:
    snapshot = store.get(paths.child(family_id, child_id))
    if snapshot is None:
        raise NotFoundError("Child not found")
    return Child.from_snapshot(snapshot)


def list_children(store: DocumentStore, family_id: str) -> list[Child]:
    query = collection(paths.children(family_id)).order_by("created_at")
    return [Child.from_snapshot(s) for s in store.query(query)]


def observe_children(
    store: DocumentStore,
    family_id: str,
    callback: Callable[[list[Child]], None],
    on_error: Optional[Callable[[Exception], None]] = None,
) -> Subscription:
    return store.subscribe(
        collection(paths.children(family_id)).order_by("created_at"),
        lambda snapshots: callback([Child.from_snapshot(s) for s in snapshots]),
        on_error,
    )


def update_child(store: DocumentStore, family_id: str, child_id: str, name: str) -> None:
    store.update(paths.child(family_id, child_id), {"name": name})


def delete_child(store: DocumentStore, family_id: str, child_id: str) -> None:
    # TODO: transactions and device grants under the child are left behind; needs a cascade sweep
    store.delete(paths.child(family_id, child_id))
    logger.info("Child %s deleted from family %s", child_id, family_id)


# --- Transactions ---

def create_transaction(
    store: DocumentStore,
    family_id: str,
    child_id: str,
    amount: int,
    description: str,
    date: datetime,
) -> Transaction:
    """Record a deposit (amount >= 0) or withdrawal (amount < 0)."""
    path = store.add(
        paths.transactions(family_id, child_id),
        {
            "amount": _check_amount(amount),
            "description": description,
            "date": date,
            "created_at": SERVER_TIMESTAMP,
            "modified_at": SERVER_TIMESTAMP,
        },
    )
    return Transaction.from_snapshot(store.get(path))


def update_transaction(
    store: DocumentStore,
    family_id: str,
    child_id: str,
    transaction_id: str,
    amount: int,
    description: str,
    date: datetime,
) -> None:
    store.update(
        paths.transaction(family_id, child_id, transaction_id),
        {
            "amount": _check_amount(amount),
            "description": description,
            "date": date,
            "modified_at": SERVER_TIMESTAMP,
        },
    )


def delete_transaction(store: DocumentStore, family_id: str, child_id: str, transaction_id: str) -> None:
    store.delete(paths.transaction(family_id, child_id, transaction_id))


def _transactions_query(family_id: str, child_id: str):
    return collection(paths.transactions(family_id, child_id)).order_by("date", descending=True)


def list_transactions(store: DocumentStore, family_id: str, child_id: str) -> list[Transaction]:
    """Transactions, most recent effective date first."""
    return [Transaction.from_snapshot(s) for s in store.query(_transactions_query(family_id, child_id))]


def observe_transactions(
    store: DocumentStore,
    family_id: str,
    child_id: str,
    callback: Callable[[list[Transaction]], None],
    on_error: Optional[Callable[[Exception], None]] = None,
) -> Subscription:
    return store.subscribe(
        _transactions_query(family_id, child_id),
        lambda snapshots: callback([Transaction.from_snapshot(s) for s in snapshots]),
        on_error,
    )


# --- Balance ---

def compute_balance(transactions: Iterable[Transaction]) -> int:
    return sum(tx.amount for tx in transactions)


def get_child_with_balance(store: DocumentStore, family_id: str, child_id: str) -> ChildWithBalance:
    child = get_child(store, family_id, child_id)
    transactions = list_transactions(store, family_id, child_id)
    return ChildWithBalance(child=child, balance=compute_balance(transactions), transactions=transactions)
