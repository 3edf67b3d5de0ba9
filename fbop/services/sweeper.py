"""Weekly cleanup of expired invite and child lookup codes.

Scans the top-level ``inviteCodes`` and ``childLookup`` collections and
the per-family ``invites`` audit copies, deleting up to ``limit``
expired documents from each. Every collection gets its own batch so a
failure in one does not block the others. Device grants, memberships and
transactions carry no expiry and are never touched.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger

from fbop.config import settings
from fbop.errors import FbopError
from fbop.services._common import resolve_now
from fbop.store import MAX_BATCH_OPERATIONS, DocumentStore, Query, collection, collection_group, paths

logger = logging.getLogger(__name__)

CLEANUP_JOB_ID = "cleanup_expired_codes"


@dataclass
class SweepResult:
    invite_codes: int = 0
    child_lookups: int = 0
    family_invites: int = 0

    @property
    def total(self) -> int:
        return self.invite_codes + self.child_lookups + self.family_invites


def _delete_expired(store: DocumentStore, query: Query, name: str) -> int:
    try:
        expired = store.query(query)
        if not expired:
            return 0
        with store.batch() as batch:
            for snapshot in expired:
                batch.delete(snapshot.path)
        return len(expired)
    except FbopError as e:
        logger.error("Cleanup of %s failed: %s", name, e)
        return 0


def cleanup_expired_codes(
    store: DocumentStore,
    now: Optional[datetime] = None,
    limit: Optional[int] = None,
) -> SweepResult:
    """Delete expired codes. Safe to run repeatedly."""
    now = resolve_now(now)
    limit = min(limit or settings.cleanup_limit, MAX_BATCH_OPERATIONS)

    def expired(query: Query) -> Query:
        return query.where("expires_at", "<", now).limit(limit)

    result = SweepResult(
        invite_codes=_delete_expired(store, expired(collection(paths.INVITE_CODES)), paths.INVITE_CODES),
        child_lookups=_delete_expired(store, expired(collection(paths.CHILD_LOOKUP)), paths.CHILD_LOOKUP),
        family_invites=_delete_expired(store, expired(collection_group(paths.INVITES)), paths.INVITES),
    )

    if result.total > 0:
        logger.info("Deleted %d expired code(s)", result.total)
    else:
        logger.info("No expired codes to clean up")
    return result


def run_scheduled_cleanup() -> None:
    """Entry point for the weekly trigger."""
    from fbop.database import store

    cleanup_expired_codes(store)


class CleanupScheduler:
    """Runs the expired code cleanup on a cron schedule in a background thread."""

    def __init__(
        self,
        day_of_week: str = settings.cleanup_day_of_week,
        hour: int = settings.cleanup_hour,
        minute: int = settings.cleanup_minute,
    ):
        self.scheduler = BackgroundScheduler(timezone="UTC")
        self._trigger = CronTrigger(day_of_week=day_of_week, hour=hour, minute=minute, timezone="UTC")

    def start(self) -> None:
        self.scheduler.add_job(
            run_scheduled_cleanup,
            trigger=self._trigger,
            id=CLEANUP_JOB_ID,
            replace_existing=True,
            coalesce=True,
            max_instances=1,
        )
        if not self.scheduler.running:
            self.scheduler.start()
        logger.info("Cleanup scheduler started")

    def stop(self) -> None:
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
        logger.info("Cleanup scheduler stopped")

    @property
    def next_run_time(self) -> Optional[datetime]:
        job = self.scheduler.get_job(CLEANUP_JOB_ID)
        return job.next_run_time if job else None


def main() -> None:
    """Console entry point: run one cleanup against the configured database."""
    from fbop.database import init_db

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    init_db()
    run_scheduled_cleanup()


if __name__ == "__main__":
    main()
