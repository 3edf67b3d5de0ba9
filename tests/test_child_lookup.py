"""Child lookup code tests."""

from datetime import timedelta

import pytest

from fbop.errors import ExpiredError, NotFoundError
from fbop.services import lookup_service
from fbop.store import paths

from tests.conftest import T0


def test_create_child_lookup(store):
    lookup = lookup_service.create_child_lookup(store, "F1", "C1", now=T0)

    assert lookup.expires_at == T0 + timedelta(hours=1)
    assert len(lookup.lookup_code) == 8
    assert store.get(paths.child_lookup(lookup.lookup_code)).data == {
        "family_id": "F1",
        "child_id": "C1",
        "expires_at": lookup.expires_at,
    }


def test_lookup_is_repeatable(store):
    lookup = lookup_service.create_child_lookup(store, "F1", "C1", now=T0)

    for minutes in (1, 30, 59):
        found = lookup_service.lookup_child(store, lookup.lookup_code.lower(), now=T0 + timedelta(minutes=minutes))
        assert (found.family_id, found.child_id) == ("F1", "C1")


def test_lookup_expired(store):
    lookup = lookup_service.create_child_lookup(store, "F1", "C1", now=T0)
    with pytest.raises(ExpiredError):
        lookup_service.lookup_child(store, lookup.lookup_code, now=T0 + timedelta(minutes=61))


def test_lookup_missing(store):
    with pytest.raises(NotFoundError):
        lookup_service.lookup_child(store, "QZ4K8MNP", now=T0)


def test_lookup_incomplete_record(store):
    store.set(paths.child_lookup("QZ4K8MNP"), {"family_id": "F1", "expires_at": T0 + timedelta(hours=1)})
    with pytest.raises(NotFoundError):
        lookup_service.lookup_child(store, "QZ4K8MNP", now=T0)


def test_new_code_leaves_old_code_valid(store):
    first = lookup_service.create_child_lookup(store, "F1", "C1", now=T0)
    second = lookup_service.create_child_lookup(store, "F1", "C1", now=T0 + timedelta(minutes=10))

    assert first.lookup_code != second.lookup_code
    assert lookup_service.lookup_child(store, first.lookup_code, now=T0 + timedelta(minutes=20)).child_id == "C1"
    assert lookup_service.lookup_child(store, second.lookup_code, now=T0 + timedelta(minutes=20)).child_id == "C1"
