"""Test setup: point the app at temp dirs before anything imports it."""

import os
import tempfile
from datetime import datetime, timedelta, timezone

os.environ["FBOP_DATA_DIR"] = tempfile.mkdtemp()
os.environ["FBOP_DB_PATH"] = os.path.join(os.environ["FBOP_DATA_DIR"], "test.db")
os.environ["FBOP_LOCAL_CONFIG_PATH"] = os.path.join(os.environ["FBOP_DATA_DIR"], "config.json")
os.environ["FBOP_CLEANUP_ENABLED"] = "false"

import pytest  # noqa: E402

from fbop.database import init_db, make_engine  # noqa: E402
from fbop.services.auth_service import Principal  # noqa: E402
from fbop.store.sql import SqlDocumentStore  # noqa: E402

T0 = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


class FakeClock:
    def __init__(self, now: datetime = T0):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def engine():
    engine = make_engine("sqlite://")
    init_db(engine)
    return engine


@pytest.fixture
def store(engine, clock):
    return SqlDocumentStore(engine, clock=clock)


@pytest.fixture
def owner():
    return Principal(uid="owner-uid", email="mom@example.com", anonymous=False)


@pytest.fixture
def other_parent():
    return Principal(uid="dad-uid", email="dad@example.com", anonymous=False)


@pytest.fixture
def kid_device():
    return Principal(uid="D1")
