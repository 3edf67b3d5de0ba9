"""Family, parent membership, children and transaction tests."""

from datetime import timedelta

import pytest

from fbop.errors import NotFoundError, PartialBatchFailureError, PermissionDeniedError, UnauthenticatedError
from fbop.services import child_service, device_service, family_service, invite_service
from fbop.store import paths
from fbop.store.sql import SqlDocumentStore

from tests.conftest import T0


@pytest.fixture
def family(store, owner):
    return family_service.create_family(store, owner, "The Pigs")


# --- Families ---

def test_create_family(store, family, owner):
    assert family.name == "The Pigs"
    assert family.owner_uid == owner.uid
    assert family.created_at == T0

    parents = family_service.list_parents(store, family.id)
    assert [(p.uid, p.email) for p in parents] == [(owner.uid, "mom@example.com")]
    assert family_service.is_parent(store, family.id, owner)


def test_create_family_requires_principal(store):
    with pytest.raises(UnauthenticatedError):
        family_service.create_family(store, None, "The Pigs")


def test_get_missing_family(store):
    with pytest.raises(NotFoundError):
        family_service.get_family(store, "nope")


def test_update_family_name(store, family):
    received = []
    with family_service.observe_family(store, family.id, received.append):
        family_service.update_family_name(store, family.id, "The Hogs")
    assert [f.name for f in received] == ["The Pigs", "The Hogs"]


def test_find_existing_family(store, family, owner, other_parent):
    assert family_service.find_existing_family(store, owner) == family.id
    assert family_service.find_existing_family(store, other_parent) is None


def test_find_existing_family_requires_principal(store):
    with pytest.raises(UnauthenticatedError):
        family_service.find_existing_family(store, None)


def test_remove_parent(store, family, owner, other_parent):
    invite = invite_service.create_invite(store, family.id, owner, now=T0)
    invite_service.join_family(store, family.id, invite.code, other_parent, now=T0)

    family_service.remove_parent(store, family.id, other_parent.uid)
    assert not family_service.is_parent(store, family.id, other_parent)


def test_owner_cannot_be_removed(store, family, owner):
    with pytest.raises(PermissionDeniedError):
        family_service.remove_parent(store, family.id, owner.uid)
    assert family_service.is_parent(store, family.id, owner)


def test_only_owner_deletes_family(store, family, other_parent):
    with pytest.raises(PermissionDeniedError):
        family_service.delete_family(store, other_parent, family.id)
    assert family_service.get_family(store, family.id)


def test_delete_family_cascades_in_order(engine, clock, owner, other_parent, kid_device):
    deleted = []

    def record_deletes(operation, path):
        if operation == "delete":
            deleted.append(path)
        return True

    store = SqlDocumentStore(engine, clock=clock, access_policy=record_deletes)
    family = family_service.create_family(store, owner, "The Pigs")
    invite = invite_service.create_invite(store, family.id, owner, now=T0)
    invite_service.join_family(store, family.id, invite.code, other_parent, now=T0)
    child = child_service.create_child(store, family.id, "Ann")
    child_service.create_transaction(store, family.id, child.id, 500, "Allowance", T0)
    device_service.register_device(store, family.id, child.id, kid_device, "Pixel 8", "QZ4K8MNP")
    deleted.clear()

    family_service.delete_family(store, owner, family.id)

    def position(prefix):
        return next(i for i, path in enumerate(deleted) if path.startswith(prefix))

    assert deleted[-1] == paths.family(family.id)
    assert deleted[-2] == paths.parent(family.id, owner.uid)
    assert position(paths.transactions(family.id, child.id)) < position(paths.child(family.id, child.id) + "/devices")
    assert position(paths.device(family.id, child.id, kid_device.uid)) < deleted.index(paths.child(family.id, child.id))
    assert deleted.index(paths.child(family.id, child.id)) < deleted.index(paths.parent(family.id, other_parent.uid))
    assert deleted.index(paths.parent(family.id, other_parent.uid)) < position(paths.family_invites(family.id))

    with pytest.raises(NotFoundError):
        family_service.get_family(store, family.id)
    assert family_service.list_parents(store, family.id) == []
    assert child_service.list_children(store, family.id) == []


# --- Children ---

def test_children_in_creation_order(store, clock, family):
    child_service.create_child(store, family.id, "Ann")
    clock.advance(seconds=1)
    child_service.create_child(store, family.id, "Ben")

    assert [c.name for c in child_service.list_children(store, family.id)] == ["Ann", "Ben"]


def test_update_and_delete_child(store, family):
    child = child_service.create_child(store, family.id, "Ann")
    child_service.update_child(store, family.id, child.id, "Annie")
    assert child_service.get_child(store, family.id, child.id).name == "Annie"

    child_service.delete_child(store, family.id, child.id)
    with pytest.raises(NotFoundError):
        child_service.get_child(store, family.id, child.id)


def test_observe_children(store, family):
    received = []
    subscription = child_service.observe_children(store, family.id, received.append)
    child_service.create_child(store, family.id, "Ann")
    subscription.unsubscribe()
    child_service.create_child(store, family.id, "Ben")

    assert [[c.name for c in children] for children in received] == [[], ["Ann"]]


# --- Transactions and balance ---

def test_balance_is_sum_of_transactions(store, family):
    child = child_service.create_child(store, family.id, "Ann")
    child_service.create_transaction(store, family.id, child.id, 500, "Allowance", T0)
    child_service.create_transaction(store, family.id, child.id, -200, "Candy", T0 + timedelta(days=1))

    result = child_service.get_child_with_balance(store, family.id, child.id)
    assert result.balance == 300
    assert [tx.description for tx in result.transactions] == ["Candy", "Allowance"]
    assert [tx.is_deposit for tx in result.transactions] == [False, True]


def test_balance_with_no_transactions(store, family):
    child = child_service.create_child(store, family.id, "Ann")
    assert child_service.get_child_with_balance(store, family.id, child.id).balance == 0


@pytest.mark.parametrize("amount", [1.5, True, "500"])
def test_amount_must_be_integer_cents(store, family, amount):
    child = child_service.create_child(store, family.id, "Ann")
    with pytest.raises(ValueError):
        child_service.create_transaction(store, family.id, child.id, amount, "Bad", T0)
    assert child_service.list_transactions(store, family.id, child.id) == []


def test_update_transaction_sets_modified_at(store, clock, family):
    child = child_service.create_child(store, family.id, "Ann")
    tx = child_service.create_transaction(store, family.id, child.id, 500, "Allowance", T0)
    assert tx.created_at == tx.modified_at == T0

    later = clock.advance(hours=2)
    child_service.update_transaction(store, family.id, child.id, tx.id, 700, "Bigger allowance", T0)

    updated = child_service.list_transactions(store, family.id, child.id)[0]
    assert (updated.amount, updated.created_at, updated.modified_at) == (700, T0, later)


def test_delete_transaction(store, family):
    child = child_service.create_child(store, family.id, "Ann")
    tx = child_service.create_transaction(store, family.id, child.id, 500, "Allowance", T0)
    child_service.delete_transaction(store, family.id, child.id, tx.id)
    assert child_service.get_child_with_balance(store, family.id, child.id).balance == 0


def test_observe_transactions(store, family):
    child = child_service.create_child(store, family.id, "Ann")
    balances = []
    with child_service.observe_transactions(
        store, family.id, child.id, lambda txs: balances.append(child_service.compute_balance(txs))
    ):
        child_service.create_transaction(store, family.id, child.id, 500, "Allowance", T0)
        child_service.create_transaction(store, family.id, child.id, -150, "Comic", T0)
    assert balances == [0, 500, 350]


def test_delete_family_reports_partial_failure(engine, clock, owner):
    def no_invite_deletes(operation, path):
        return not (operation == "delete" and f"/{paths.INVITES}/" in path)

    store = SqlDocumentStore(engine, clock=clock, access_policy=no_invite_deletes)
    family = family_service.create_family(store, owner, "The Pigs")
    child = child_service.create_child(store, family.id, "Ann")
    invite_service.create_invite(store, family.id, owner, now=T0)

    with pytest.raises(PartialBatchFailureError):
        family_service.delete_family(store, owner, family.id)

    # Children went first; the owner keeps the family to retry
    with pytest.raises(NotFoundError):
        child_service.get_child(store, family.id, child.id)
    assert family_service.is_parent(store, family.id, owner)
    assert family_service.get_family(store, family.id)


def test_delete_family_failing_first_step_raises_cause(engine, clock, owner):
    def no_deletes(operation, path):
        return operation != "delete"

    store = SqlDocumentStore(engine, clock=clock, access_policy=no_deletes)
    family = family_service.create_family(store, owner, "The Pigs")

    with pytest.raises(PermissionDeniedError):
        family_service.delete_family(store, owner, family.id)
    assert family_service.get_family(store, family.id)
