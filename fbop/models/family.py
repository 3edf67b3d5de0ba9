"""Family and parent membership models."""

from datetime import datetime
from typing import ClassVar, Optional

from fbop.models.base import DocumentModel


class Family(DocumentModel):
    id: str = ""
    name: str = ""
    owner_uid: str = ""
    created_at: Optional[datetime] = None


class Parent(DocumentModel):
    """A principal's parent-role membership in a family, keyed by uid."""

    id_field: ClassVar[str] = "uid"

    uid: str = ""
    email: str = ""
    invite_code: Optional[str] = None  # set for parents who joined by invite
    joined_at: Optional[datetime] = None

    def to_document(self) -> dict:
        # uid is kept in the body too, for collection group lookups
        return self.model_dump()
