"""Database connection and document store initialization."""

from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, create_engine

from fbop.config import settings
from fbop.store.sql import SqlDocumentStore

# Import all table models so SQLModel registers them
import fbop.models.document  # noqa: F401


def make_engine(url: str | None = None, echo: bool = False):
    """Create an engine; ``sqlite://`` gives a shared in-memory database."""
    url = url or f"sqlite:///{settings.db_path}"
    kwargs = {"echo": echo, "connect_args": {"check_same_thread": False}}
    if url == "sqlite://":
        kwargs["poolclass"] = StaticPool
    return create_engine(url, **kwargs)


engine = make_engine(echo=settings.debug)
store = SqlDocumentStore(engine)


def init_db(target_engine=None) -> None:
    """Create all tables and enable WAL mode."""
    target_engine = target_engine or engine
    SQLModel.metadata.create_all(target_engine)

    # Enable WAL mode for better concurrent read performance
    if target_engine.url.database:
        with target_engine.connect() as conn:
            conn.exec_driver_sql("PRAGMA journal_mode=WAL")
            conn.exec_driver_sql("PRAGMA synchronous=NORMAL")
            conn.commit()


def get_store() -> SqlDocumentStore:
    """FastAPI dependency: the process-wide document store."""
    return store
