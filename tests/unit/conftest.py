"""Shared test fixtures."""

import sqlite3

import pytest

from mononote.core.database.schema import migrate_schema
from mononote.core.database.store import SqliteNoteStore
from tests.unit.fakes import FakeClock, FakeRemoteStore


@pytest.fixture
def clock() -> FakeClock:
    """A millisecond clock that only moves when told to."""
    return FakeClock(start=1_000)


@pytest.fixture
def store(clock: FakeClock) -> SqliteNoteStore:
    """Return an empty in-memory note store on the fake clock."""
    conn = sqlite3.connect(":memory:", check_same_thread=False)
    migrate_schema(conn)
    return SqliteNoteStore(conn, clock=clock)


@pytest.fixture
def remote(clock: FakeClock) -> FakeRemoteStore:
    return FakeRemoteStore(clock=clock)
