"""Parent invite codes: mint, look up, consume.

An invite is written twice in one batch: an audit copy under the family
and a lookup copy at ``inviteCodes/{code}`` so a joining parent can find
the family from the code alone. Consuming deletes only the lookup copy;
the audit copy is left to the expiry sweep or family deletion.
"""

import logging
from datetime import datetime, timedelta
from typing import Optional

from fbop.config import settings
from fbop.errors import ExpiredError, FbopError, NotFoundError
from fbop.models.codes import Invite
from fbop.models.family import Parent
from fbop.services._common import is_expired, require_principal, resolve_now
from fbop.services.auth_service import Principal
from fbop.store import SERVER_TIMESTAMP, DocumentStore, collection, paths
from fbop.utils.codes import generate_code, normalize_code

logger = logging.getLogger(__name__)


def create_invite(
    store: DocumentStore,
    family_id: str,
    issuer: Optional[Principal],
    now: Optional[datetime] = None,
) -> Invite:
    """Mint a 24h invite code for ``family_id``."""
    issuer = require_principal(issuer)
    now = resolve_now(now)

    # Collisions are not checked: a clashing code overwrites the older lookup copy
    code = generate_code(settings.invite_code_length, settings.code_alphabet)
    invite = Invite(
        id=store.new_id(),
        code=code,
        family_id=family_id,
        created_by=issuer.uid,
        expires_at=now + timedelta(seconds=settings.invite_expire_seconds),
    )

    with store.batch() as batch:
        batch.set(f"{paths.family_invites(family_id)}/{invite.id}", invite.to_document())
        batch.set(
            paths.invite_code(code),
            {"family_id": family_id, "expires_at": invite.expires_at},
        )

    logger.info("Invite %s created for family %s by %s", code, family_id, issuer.uid)
    return invite


def lookup_invite_code(store: DocumentStore, code: str, now: Optional[datetime] = None) -> str:
    """Return the family bound to a live invite code.

    Raises NotFoundError if the code does not exist (or was consumed),
    ExpiredError if it is past its expiry.
    """
    now = resolve_now(now)
    snapshot = store.get(paths.invite_code(normalize_code(code)))
    if snapshot is None:
        raise NotFoundError("Invalid invite code")

    if is_expired(snapshot.get("expires_at"), now):
        raise ExpiredError("Invite code has expired")

    family_id = snapshot.get("family_id")
    if not family_id:
        raise NotFoundError("Invalid invite code")
    return family_id


def join_family(
    store: DocumentStore,
    family_id: str,
    code: str,
    principal: Optional[Principal],
    now: Optional[datetime] = None,
) -> Parent:
    """Consume an invite: add ``principal`` as a parent, then retire the code.

    The two writes are separate. If the membership lands but the code
    deletion fails, the failure is logged and the join still succeeds;
    the code expires and is swept later.
    """
    principal = require_principal(principal)
    code = normalize_code(code)

    if lookup_invite_code(store, code, now) != family_id:
        raise NotFoundError("Invalid invite code")

    parent = Parent(uid=principal.uid, email=principal.email or "", invite_code=code)
    document = parent.to_document()
    document["joined_at"] = SERVER_TIMESTAMP
    store.set(paths.parent(family_id, principal.uid), document)

    try:
        store.delete(paths.invite_code(code))
    except FbopError as e:
        logger.warning(
            "Principal %s joined family %s but invite %s was not deleted: %s",
            principal.uid, family_id, code, e,
        )

    logger.info("Principal %s joined family %s", principal.uid, family_id)
    snapshot = store.get(paths.parent(family_id, principal.uid))
    return Parent.from_snapshot(snapshot) if snapshot else parent


def list_family_invites(store: DocumentStore, family_id: str) -> list[Invite]:
    """Audit copies of invites issued for a family."""
    query = collection(paths.family_invites(family_id)).order_by("expires_at", descending=True)
    return [Invite.from_snapshot(s) for s in store.query(query)]
