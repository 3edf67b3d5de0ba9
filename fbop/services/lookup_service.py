"""Child lookup codes: short-lived codes a kid device scans to find its child.

Unlike invites, a lookup code is not consumed: any number of devices may
redeem it until it expires, and minting a new code for the same child
leaves older codes valid.
"""

import logging
from datetime import datetime, timedelta
from typing import Optional

from fbop.config import settings
from fbop.errors import ExpiredError, NotFoundError
from fbop.models.codes import ChildLookup
from fbop.services._common import is_expired, resolve_now
from fbop.store import DocumentStore, paths
from fbop.utils.codes import generate_code, normalize_code

logger = logging.getLogger(__name__)


def create_child_lookup(
    store: DocumentStore,
    family_id: str,
    child_id: str,
    now: Optional[datetime] = None,
) -> ChildLookup:
    """Mint a 1h lookup code bound to one child."""
    now = resolve_now(now)
    lookup = ChildLookup(
        lookup_code=generate_code(settings.lookup_code_length, settings.code_alphabet),
        family_id=family_id,
        child_id=child_id,
        expires_at=now + timedelta(seconds=settings.lookup_expire_seconds),
    )
    store.set(paths.child_lookup(lookup.lookup_code), lookup.to_document())
    logger.info("Lookup code %s created for child %s/%s", lookup.lookup_code, family_id, child_id)
    return lookup


def lookup_child(store: DocumentStore, code: str, now: Optional[datetime] = None) -> ChildLookup:
    """Resolve a lookup code. Raises NotFoundError or ExpiredError."""
    now = resolve_now(now)
    snapshot = store.get(paths.child_lookup(normalize_code(code)))
    if snapshot is None:
        raise NotFoundError("Invalid code")

    if is_expired(snapshot.get("expires_at"), now):
        raise ExpiredError("Code has expired")

    if not snapshot.get("family_id") or not snapshot.get("child_id"):
        raise NotFoundError("Invalid code")
    return ChildLookup.from_snapshot(snapshot)
