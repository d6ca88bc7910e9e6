"""Tests for the SQLite note store."""

from pathlib import Path

import pytest

from mononote.core.database.store import SqliteNoteStore, open_database
from mononote.exceptions import NoteNameTakenError, NoteNotFoundError
from mononote.models.document import Doc, Paragraph, Text
from mononote.models.note import SyncStatus
from mononote.protocols import NoteStoreProtocol
from tests.unit.fakes import FakeClock

HELLO = Doc(content=(Paragraph(content=(Text("hello"),)),))


def test_store_satisfies_protocol(store: SqliteNoteStore) -> None:
    assert isinstance(store, NoteStoreProtocol)


def test_add_and_get_roundtrip_content(store: SqliteNoteStore, clock: FakeClock) -> None:
    note_id = store.add(name="a", content=HELLO)
    note = store.get(note_id)
    assert note is not None
    assert note.name == "a"
    assert note.content == HELLO
    assert note.last_modified == clock.now
    assert note.sync_status is SyncStatus.PENDING
    assert note.remote_id is None


def test_get_missing_returns_none(store: SqliteNoteStore) -> None:
    assert store.get(42) is None


def test_add_duplicate_name_raises(store: SqliteNoteStore) -> None:
    store.add(name="a", content=Doc())
    with pytest.raises(NoteNameTakenError):
        store.add(name="a", content=Doc())


def test_update_content_stamps_last_modified(store: SqliteNoteStore, clock: FakeClock) -> None:
    note_id = store.add(name="a", content=Doc())
    clock.advance(50)
    store.update(note_id, content=HELLO)
    note = store.get(note_id)
    assert note is not None
    assert note.content == HELLO
    assert note.last_modified == clock.now


def test_settle_update_keeps_last_modified(store: SqliteNoteStore, clock: FakeClock) -> None:
    note_id = store.add(name="a", content=Doc())
    before = clock.now
    clock.advance(50)
    store.update(note_id, settle=True, content=HELLO, sync_status=SyncStatus.SYNCED)
    note = store.get(note_id)
    assert note is not None
    assert note.last_modified == before
    assert note.sync_status is SyncStatus.SYNCED


def test_cursor_update_is_not_an_edit(store: SqliteNoteStore, clock: FakeClock) -> None:
    note_id = store.add(name="a", content=Doc())
    before = clock.now
    clock.advance(50)
    store.update(note_id, cursor=7)
    note = store.get(note_id)
    assert note is not None
    assert note.cursor == 7
    assert note.last_modified == before


def test_update_rename_to_taken_name_raises(store: SqliteNoteStore) -> None:
    store.add(name="a", content=Doc())
    b = store.add(name="b", content=Doc())
    with pytest.raises(NoteNameTakenError):
        store.update(b, name="a")


def test_update_unknown_field_raises(store: SqliteNoteStore) -> None:
    note_id = store.add(name="a", content=Doc())
    with pytest.raises(ValueError, match="Cannot update"):
        store.update(note_id, colour="red")


def test_update_missing_note_raises(store: SqliteNoteStore) -> None:
    with pytest.raises(NoteNotFoundError):
        store.update(99, cursor=1)


def test_indexed_lookups(store: SqliteNoteStore) -> None:
    a = store.add(name="a", content=Doc(), remote_id="id:1", sync_status=SyncStatus.SYNCED)
    b = store.add(name="b", content=Doc())
    assert store.find_by_name("b").id == b  # type: ignore[union-attr]
    assert store.find_by_remote_id("id:1").id == a  # type: ignore[union-attr]
    assert store.find_by_remote_id("id:2") is None
    assert [n.id for n in store.list_by_status(SyncStatus.PENDING)] == [b]
    assert [n.id for n in store.list_linked()] == [a]


def test_list_recent_orders_by_last_opened_and_hides_tombstones(store: SqliteNoteStore) -> None:
    store.add(name="never", content=Doc())
    store.add(name="old", content=Doc(), last_opened=10)
    store.add(name="new", content=Doc(), last_opened=20)
    store.add(name="gone", content=Doc(), last_opened=30, sync_status=SyncStatus.PENDING_DELETE)
    assert [n.name for n in store.list_recent()] == ["new", "old", "never"]


def test_delete_removes_note(store: SqliteNoteStore) -> None:
    note_id = store.add(name="a", content=Doc())
    store.delete(note_id)
    assert store.get(note_id) is None


def test_open_database_persists_to_disk(tmp_path: Path) -> None:
    path = tmp_path / "notes.db"
    conn = open_database(path)
    SqliteNoteStore(conn).add(name="kept", content=HELLO)
    conn.close()

    conn = open_database(path)
    note = SqliteNoteStore(conn).find_by_name("kept")
    assert note is not None
    assert note.content == HELLO
    conn.close()
