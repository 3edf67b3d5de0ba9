"""Invite and child lookup code models."""

from datetime import datetime
from typing import ClassVar

from fbop.models.base import DocumentModel


class Invite(DocumentModel):
    """Parent invite; ``id`` is the audit copy's id under the family."""

    id: str = ""
    code: str
    family_id: str
    created_by: str
    expires_at: datetime


class ChildLookup(DocumentModel):
    id_field: ClassVar[str] = "lookup_code"

    lookup_code: str
    family_id: str
    child_id: str
    expires_at: datetime
