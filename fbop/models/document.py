"""Raw document storage model."""

from datetime import datetime, timezone

from sqlmodel import Field, SQLModel


class StoredDocument(SQLModel, table=True):
    __tablename__ = "documents"

    path: str = Field(primary_key=True)  # e.g. families/F1/children/C1
    collection_path: str = Field(index=True)  # e.g. families/F1/children
    collection_id: str = Field(index=True)  # e.g. children
    data: str = Field(default="{}")  # JSON, timestamps tagged
    update_time: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def for_path(cls, path: str) -> "StoredDocument":
        parts = path.split("/")
        return cls(
            path=path,
            collection_path="/".join(parts[:-1]),
            collection_id=parts[-2],
        )
