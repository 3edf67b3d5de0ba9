"""Family and parent membership operations."""

import logging
from typing import Callable, Optional

from fbop.errors import FbopError, NotFoundError, PartialBatchFailureError, PermissionDeniedError
from fbop.models.family import Family, Parent
from fbop.services._common import require_principal
from fbop.services.auth_service import Principal
from fbop.store import SERVER_TIMESTAMP, DocumentStore, Subscription, collection, collection_group, paths

logger = logging.getLogger(__name__)


def create_family(store: DocumentStore, principal: Optional[Principal], name: str) -> Family:
    """Create a family owned by ``principal``, who becomes its first parent."""
    principal = require_principal(principal)
    family_id = store.new_id()

    with store.batch() as batch:
        batch.set(
            paths.family(family_id),
            {"name": name, "owner_uid": principal.uid, "created_at": SERVER_TIMESTAMP},
        )
        batch.set(
            paths.parent(family_id, principal.uid),
            {"uid": principal.uid, "email": principal.email or "", "joined_at": SERVER_TIMESTAMP},
        )

    logger.info("Family %s created by %s", family_id, principal.uid)
    return get_family(store, family_id)


def get_family(store: DocumentStore, family_id: str) -> Family:
    snapshot = store.get(paths.family(family_id))
    if snapshot is None:
        raise NotFoundError("Family not found")
    return Family.from_snapshot(snapshot)


def observe_family(
    store: DocumentStore,
    family_id: str,
    callback: Callable[[Optional[Family]], None],
    on_error: Optional[Callable[[Exception], None]] = None,
) -> Subscription:
    return store.subscribe(
        paths.family(family_id),
        lambda snapshot: callback(Family.from_snapshot(snapshot) if snapshot else None),
        on_error,
    )


def update_family_name(store: DocumentStore, family_id: str, name: str) -> None:
    store.update(paths.family(family_id), {"name": name})


def delete_family(store: DocumentStore, principal: Optional[Principal], family_id: str) -> None:
    """Delete a family and everything under it. Owner only.

    Order matters: parent membership gates access to children, so the
    owner's own membership is removed only after everything else, and
    the family document last.

    Raises PartialBatchFailureError if some documents were deleted before
    a later deletion failed; the family is then left partly removed.
    """
    principal = require_principal(principal)
    family = get_family(store, family_id)
    if family.owner_uid != principal.uid:
        raise PermissionDeniedError("Only the owner can delete a family")

    deleted = 0

    def delete(path: str) -> None:
        nonlocal deleted
        store.delete(path)
        deleted += 1

    try:
        for child in store.query(collection(paths.children(family_id))):
            for tx in store.query(collection(paths.transactions(family_id, child.id))):
                delete(tx.path)
            for device in store.query(collection(paths.devices(family_id, child.id))):
                delete(device.path)
            delete(child.path)

        for parent in store.query(collection(paths.parents(family_id))):
            if parent.id != principal.uid:
                delete(parent.path)

        for invite in store.query(collection(paths.family_invites(family_id))):
            delete(invite.path)

        delete(paths.parent(family_id, principal.uid))
        delete(paths.family(family_id))
    except FbopError as e:
        if not deleted:
            raise
        logger.error("Deleting family %s stopped after %d document(s): %s", family_id, deleted, e)
        raise PartialBatchFailureError(
            f"Family {family_id} was only partly deleted ({deleted} documents): {e.message}"
        ) from e

    logger.info("Family %s deleted by %s", family_id, principal.uid)


# --- Parents ---

def list_parents(store: DocumentStore, family_id: str) -> list[Parent]:
    return [Parent.from_snapshot(s) for s in store.query(collection(paths.parents(family_id)))]


def observe_parents(
    store: DocumentStore,
    family_id: str,
    callback: Callable[[list[Parent]], None],
    on_error: Optional[Callable[[Exception], None]] = None,
) -> Subscription:
    return store.subscribe(
        collection(paths.parents(family_id)),
        lambda snapshots: callback([Parent.from_snapshot(s) for s in snapshots]),
        on_error,
    )


def is_parent(store: DocumentStore, family_id: str, principal: Optional[Principal]) -> bool:
    if principal is None:
        return False
    return store.get(paths.parent(family_id, principal.uid)) is not None


def find_existing_family(store: DocumentStore, principal: Optional[Principal]) -> Optional[str]:
    """Family id the principal is already a parent of, if any (reconnect flow)."""
    principal = require_principal(principal)
    matches = store.query(collection_group(paths.PARENTS).where("uid", "==", principal.uid).limit(1))
    if not matches:
        return None
    family_id = matches[0].parent_document_id
    if family_id is None:
        raise NotFoundError("Unexpected document path structure")
    return family_id


def remove_parent(store: DocumentStore, family_id: str, parent_uid: str) -> None:
    """Remove a parent. The owner's membership can only go with the family."""
    family = get_family(store, family_id)
    if parent_uid == family.owner_uid:
        raise PermissionDeniedError("The family owner cannot be removed")
    store.delete(paths.parent(family_id, parent_uid))
    logger.info("Parent %s removed from family %s", parent_uid, family_id)
