"""Onboarding flow tests: kid pairing, parent join and reconnect."""

from datetime import timedelta

import pytest

from fbop.errors import ExpiredError
from fbop.models.config import AppMode
from fbop.services import device_service, family_service, invite_service, lookup_service, pairing_service
from fbop.services.auth_service import AuthSession
from fbop.services.config_service import ConfigRepository

from tests.conftest import T0


@pytest.fixture
def config(tmp_path):
    return ConfigRepository(tmp_path / "config.json")


@pytest.fixture
def family(store, owner):
    return family_service.create_family(store, owner, "The Pigs")


def test_pair_kid_device(store, family, config):
    lookup = lookup_service.create_child_lookup(store, family.id, "C1", now=T0)
    auth = AuthSession()

    pairing_service.pair_kid_device(store, auth, config, lookup.lookup_code, "Pixel 8", now=T0)

    assert auth.is_signed_in
    assert device_service.check_device_access(store, family.id, "C1", auth.current_principal)
    app_config = config.get_config()
    assert (app_config.mode, app_config.child_id, app_config.lookup_code) == (AppMode.KID, "C1", lookup.lookup_code)


def test_pair_with_expired_code(store, family, config):
    lookup = lookup_service.create_child_lookup(store, family.id, "C1", now=T0)
    with pytest.raises(ExpiredError):
        pairing_service.pair_kid_device(
            store, AuthSession(), config, lookup.lookup_code, "Pixel 8", now=T0 + timedelta(hours=2)
        )
    assert config.get_config().mode == AppMode.NOT_CONFIGURED


def test_resume_kid_session(store, clock, family, config):
    lookup = lookup_service.create_child_lookup(store, family.id, "C1", now=T0)
    auth = AuthSession()
    pairing_service.pair_kid_device(store, auth, config, lookup.lookup_code, "Pixel 8", now=T0)

    later = clock.advance(days=3)
    assert pairing_service.resume_kid_session(store, auth, config)
    assert device_service.list_devices(store, family.id, "C1")[0].last_accessed_at == later


def test_resume_after_revoke_clears_config(store, family, config):
    lookup = lookup_service.create_child_lookup(store, family.id, "C1", now=T0)
    auth = AuthSession()
    pairing_service.pair_kid_device(store, auth, config, lookup.lookup_code, "Pixel 8", now=T0)

    device_service.revoke_device(store, family.id, "C1", auth.current_principal.uid)

    assert not pairing_service.resume_kid_session(store, auth, config)
    assert config.get_config().mode == AppMode.NOT_CONFIGURED


def test_resume_without_kid_mode(store, config):
    assert not pairing_service.resume_kid_session(store, AuthSession(), config)


def test_join_family_with_code(store, family, owner, other_parent, config):
    invite = invite_service.create_invite(store, family.id, owner, now=T0)
    auth = AuthSession(other_parent)

    assert pairing_service.join_family_with_code(store, auth, config, invite.code.lower(), now=T0) == family.id
    assert family_service.is_parent(store, family.id, other_parent)
    assert config.get_config().mode == AppMode.PARENT


def test_reconnect_parent(store, family, owner, config):
    assert pairing_service.reconnect_parent(store, AuthSession(owner), config) == family.id
    assert config.get_config().family_id == family.id


def test_reconnect_without_family(store, other_parent, config):
    assert pairing_service.reconnect_parent(store, AuthSession(other_parent), config) is None
    assert config.get_config().mode == AppMode.NOT_CONFIGURED
