"""Base class for entities mapped onto documents."""

from typing import ClassVar

from pydantic import BaseModel

from fbop.store.base import DocumentSnapshot


class DocumentModel(BaseModel):
    # Field holding the document id; it is not written into the document body
    id_field: ClassVar[str] = "id"

    @classmethod
    def from_snapshot(cls, snapshot: DocumentSnapshot):
        data = {k: v for k, v in snapshot.data.items() if k in cls.model_fields}
        data[cls.id_field] = snapshot.id
        return cls(**data)

    def to_document(self) -> dict:
        return self.model_dump(exclude={self.id_field})
