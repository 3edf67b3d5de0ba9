"""Helpers shared by the protocol services."""

from datetime import datetime, timezone
from typing import Optional

from fbop.errors import UnauthenticatedError


def resolve_now(now: Optional[datetime]) -> datetime:
    """Caller-supplied time, or the local clock. Naive values are taken as UTC."""
    if now is None:
        return datetime.now(timezone.utc)
    if now.tzinfo is None:
        return now.replace(tzinfo=timezone.utc)
    return now


def require_principal(principal):
    if principal is None:
        raise UnauthenticatedError("Not signed in")
    return principal


def is_expired(expires_at: Optional[datetime], now: datetime) -> bool:
    if expires_at is None:
        return False
    if expires_at.tzinfo is None:
        expires_at = expires_at.replace(tzinfo=timezone.utc)
    return expires_at < now
