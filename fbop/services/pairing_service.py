"""Device-side onboarding flows: kid pairing, parent join and reconnect.

These tie the protocol services to the device's auth session and local
config, the way the app's setup screens drive them.
"""

import logging
from datetime import datetime
from typing import Optional

from fbop.models.codes import ChildLookup
from fbop.models.config import AppMode
from fbop.services import device_service, family_service, invite_service, lookup_service
from fbop.services.auth_service import AuthSession
from fbop.services.config_service import ConfigRepository
from fbop.store import DocumentStore
from fbop.utils.codes import normalize_code

logger = logging.getLogger(__name__)


def pair_kid_device(
    store: DocumentStore,
    auth: AuthSession,
    config: ConfigRepository,
    code: str,
    device_name: str,
    now: Optional[datetime] = None,
) -> ChildLookup:
    """Redeem a child lookup code and register this device for the child."""
    principal = auth.ensure_signed_in()
    lookup = lookup_service.lookup_child(store, code, now)
    device_service.register_device(
        store, lookup.family_id, lookup.child_id, principal, device_name, lookup.lookup_code
    )
    config.set_kid_mode(lookup.family_id, lookup.child_id, lookup.lookup_code)
    return lookup


def resume_kid_session(store: DocumentStore, auth: AuthSession, config: ConfigRepository) -> bool:
    """Start-of-session check for a paired kid device.

    Returns False, and clears local config so the device must pair
    again, when access has been revoked.
    """
    app_config = config.get_config()
    if app_config.mode != AppMode.KID or not app_config.family_id or not app_config.child_id:
        return False

    principal = auth.ensure_signed_in()
    if not device_service.check_device_access(store, app_config.family_id, app_config.child_id, principal):
        logger.info("Device %s no longer has access to child %s", principal.uid, app_config.child_id)
        config.clear()
        return False

    device_service.touch_device(store, app_config.family_id, app_config.child_id, principal)
    return True


def join_family_with_code(
    store: DocumentStore,
    auth: AuthSession,
    config: ConfigRepository,
    code: str,
    now: Optional[datetime] = None,
) -> str:
    """Join the family an invite code points at. Returns the family id."""
    principal = auth.ensure_signed_in()
    code = normalize_code(code)
    family_id = invite_service.lookup_invite_code(store, code, now)
    invite_service.join_family(store, family_id, code, principal, now)
    config.set_parent_mode(family_id)
    return family_id


def reconnect_parent(store: DocumentStore, auth: AuthSession, config: ConfigRepository) -> Optional[str]:
    """Restore parent mode for a principal who already belongs to a family."""
    family_id = family_service.find_existing_family(store, auth.current_principal)
    if family_id:
        config.set_parent_mode(family_id)
    return family_id
