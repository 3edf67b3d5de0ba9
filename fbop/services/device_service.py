"""Device access registry: which kid devices may read which child.

Each grant is a document under the child keyed by the device principal's
uid, so re-registering overwrites instead of duplicating. Grants never
expire; a parent revokes them by deleting the document.
"""

import logging
from typing import Callable, Optional

from fbop.errors import FbopError
from fbop.models.device import DeviceAccess
from fbop.services._common import require_principal
from fbop.services.auth_service import Principal
from fbop.store import SERVER_TIMESTAMP, DocumentStore, Subscription, collection, paths

logger = logging.getLogger(__name__)


def register_device(
    store: DocumentStore,
    family_id: str,
    child_id: str,
    principal: Optional[Principal],
    device_name: str,
    lookup_code: str,
) -> None:
    """Grant ``principal``'s device read access to a child (upsert)."""
    principal = require_principal(principal)
    store.set(
        paths.device(family_id, child_id, principal.uid),
        {
            "uid": principal.uid,
            "device_name": device_name,
            "lookup_code": lookup_code,
            "registered_at": SERVER_TIMESTAMP,
            "last_accessed_at": SERVER_TIMESTAMP,
        },
    )
    logger.info("Device %s (%s) registered for child %s/%s", principal.uid, device_name, family_id, child_id)


def check_device_access(
    store: DocumentStore,
    family_id: str,
    child_id: str,
    principal: Optional[Principal],
) -> bool:
    if principal is None:
        return False
    return store.get(paths.device(family_id, child_id, principal.uid)) is not None


def touch_device(
    store: DocumentStore,
    family_id: str,
    child_id: str,
    principal: Optional[Principal],
) -> None:
    """Refresh ``last_accessed_at``. Failures are logged, never raised."""
    if principal is None:
        logger.warning("Cannot update last access for %s/%s: not signed in", family_id, child_id)
        return
    try:
        store.update(
            paths.device(family_id, child_id, principal.uid),
            {"last_accessed_at": SERVER_TIMESTAMP},
        )
    except FbopError as e:
        logger.warning("Failed to update last access for device %s: %s", principal.uid, e)


def _devices_query(family_id: str, child_id: str):
    return collection(paths.devices(family_id, child_id)).order_by("registered_at", descending=True)


def list_devices(store: DocumentStore, family_id: str, child_id: str) -> list[DeviceAccess]:
    """Registered devices, newest registration first."""
    return [DeviceAccess.from_snapshot(s) for s in store.query(_devices_query(family_id, child_id))]


def observe_devices(
    store: DocumentStore,
    family_id: str,
    child_id: str,
    callback: Callable[[list[DeviceAccess]], None],
    on_error: Optional[Callable[[Exception], None]] = None,
) -> Subscription:
    return store.subscribe(
        _devices_query(family_id, child_id),
        lambda snapshots: callback([DeviceAccess.from_snapshot(s) for s in snapshots]),
        on_error,
    )


def revoke_device(store: DocumentStore, family_id: str, child_id: str, device_uid: str) -> None:
    store.delete(paths.device(family_id, child_id, device_uid))
    logger.info("Device %s revoked for child %s/%s", device_uid, family_id, child_id)


def watch_device_access(
    store: DocumentStore,
    family_id: str,
    child_id: str,
    principal: Principal,
    on_revoked: Callable[[], None],
) -> Subscription:
    """Observe this device's own grant and call ``on_revoked`` once when it is gone.

    Losing read permission counts as revocation too.
    """
    fired = False

    def report() -> None:
        nonlocal fired
        if not fired:
            fired = True
            on_revoked()

    def on_snapshot(snapshot) -> None:
        if snapshot is None:
            report()
            if subscription is not None:
                subscription.unsubscribe()

    def on_error(error: Exception) -> None:
        report()

    subscription: Optional[Subscription] = None
    subscription = store.subscribe(
        paths.device(family_id, child_id, principal.uid), on_snapshot, on_error
    )
    if fired:
        # Already gone at subscribe time
        subscription.unsubscribe()
    return subscription
