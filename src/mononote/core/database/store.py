"""SQLite-backed note store."""

import json
import sqlite3
import threading
from collections.abc import Callable
from pathlib import Path
from typing import Any

from loguru import logger

from mononote.core.database.schema import get_metadata, migrate_schema, set_metadata
from mononote.exceptions import NoteNameTakenError, NoteNotFoundError
from mononote.models.document import Doc, document_from_dict, node_to_dict
from mononote.models.note import NoteRecord, SyncStatus, now_ms

_COLUMNS = (
    "id, name, content, cursor, last_modified, last_opened, "
    "remote_id, sync_status, last_synced_at"
)

_UPDATABLE = {
    "name",
    "content",
    "cursor",
    "last_modified",
    "last_opened",
    "remote_id",
    "sync_status",
    "last_synced_at",
}

# Writes to these fields count as edits and stamp last_modified.
_EDIT_FIELDS = {"name", "content"}


def open_database(path: Path | str) -> sqlite3.Connection:
    """Open (creating if needed) the notes database at path."""
    conn = sqlite3.connect(str(path), check_same_thread=False)
    migrate_schema(conn)
    return conn


def _encode_content(content: Doc) -> str:
    return json.dumps(node_to_dict(content), separators=(",", ":"), ensure_ascii=False)


def _row_to_note(row: tuple[Any, ...]) -> NoteRecord:
    (note_id, name, content, cursor, last_modified, last_opened,
     remote_id, sync_status, last_synced_at) = row
    return NoteRecord(
        id=note_id,
        name=name,
        content=document_from_dict(json.loads(content)),
        cursor=cursor,
        last_modified=last_modified,
        last_opened=last_opened,
        remote_id=remote_id,
        sync_status=SyncStatus(sync_status),
        last_synced_at=last_synced_at,
    )


class SqliteNoteStore:
    """Note store over a single SQLite connection.

    Every method holds the store's lock, so one store can be shared between
    the editing thread, debounce timers and the background sync loop.
    """

    def __init__(self, conn: sqlite3.Connection, *, clock: Callable[[], int] = now_ms) -> None:
        self.conn = conn
        self._clock = clock
        self._lock = threading.RLock()

    def add(
        self,
        *,
        name: str,
        content: Doc,
        cursor: int = 0,
        last_modified: int | None = None,
        last_opened: int | None = None,
        remote_id: str | None = None,
        sync_status: SyncStatus = SyncStatus.PENDING,
        last_synced_at: int | None = None,
    ) -> int:
        with self._lock:
            try:
                cur = self.conn.execute(
                    """INSERT INTO notes
                       (name, content, cursor, last_modified, last_opened,
                        remote_id, sync_status, last_synced_at)
                       VALUES (?, ?, ?, ?, ?, ?, ?, ?)""",
                    (
                        name,
                        _encode_content(content),
                        cursor,
                        self._clock() if last_modified is None else last_modified,
                        last_opened,
                        remote_id,
                        sync_status.value,
                        last_synced_at,
                    ),
                )
            except sqlite3.IntegrityError as e:
                self.conn.rollback()
                raise NoteNameTakenError(name) from e
            self.conn.commit()
            note_id = cur.lastrowid
        logger.debug("Added note {} ({!r})", note_id, name)
        return note_id  # type: ignore[return-value]

    def get(self, note_id: int) -> NoteRecord | None:
        with self._lock:
            row = self.conn.execute(
                f"SELECT {_COLUMNS} FROM notes WHERE id = ?", (note_id,)
            ).fetchone()
        return _row_to_note(row) if row else None

    def update(self, note_id: int, *, settle: bool = False, **fields: Any) -> None:
        """Merge fields into a note.

        Args:
            note_id: The note to change.
            settle: The write records a sync outcome; never stamps last_modified.
            **fields: NoteRecord attributes to set.
        """
        unknown = fields.keys() - _UPDATABLE
        if unknown:
            msg = f"Cannot update note fields: {sorted(unknown)!r}"
            raise ValueError(msg)
        if not fields:
            return
        if not settle and "last_modified" not in fields and fields.keys() & _EDIT_FIELDS:
            fields["last_modified"] = self._clock()

        values: list[Any] = []
        for key, value in fields.items():
            if key == "content":
                value = _encode_content(value)
            elif key == "sync_status":
                value = SyncStatus(value).value
            values.append(value)
        assignments = ", ".join(f"{key} = ?" for key in fields)

        with self._lock:
            try:
                cur = self.conn.execute(
                    f"UPDATE notes SET {assignments} WHERE id = ?", (*values, note_id)
                )
            except sqlite3.IntegrityError as e:
                self.conn.rollback()
                raise NoteNameTakenError(fields.get("name", "")) from e
            self.conn.commit()
        if cur.rowcount == 0:
            msg = f"No note with id {note_id}"
            raise NoteNotFoundError(msg)

    def find_by_name(self, name: str) -> NoteRecord | None:
        with self._lock:
            row = self.conn.execute(
                f"SELECT {_COLUMNS} FROM notes WHERE name = ?", (name,)
            ).fetchone()
        return _row_to_note(row) if row else None

    def find_by_remote_id(self, remote_id: str) -> NoteRecord | None:
        with self._lock:
            row = self.conn.execute(
                f"SELECT {_COLUMNS} FROM notes WHERE remote_id = ? LIMIT 1", (remote_id,)
            ).fetchone()
        return _row_to_note(row) if row else None

    def list_by_status(self, status: SyncStatus) -> list[NoteRecord]:
        with self._lock:
            rows = self.conn.execute(
                f"SELECT {_COLUMNS} FROM notes WHERE sync_status = ? ORDER BY id",
                (SyncStatus(status).value,),
            ).fetchall()
        return [_row_to_note(r) for r in rows]

    def list_linked(self) -> list[NoteRecord]:
        with self._lock:
            rows = self.conn.execute(
                f"SELECT {_COLUMNS} FROM notes WHERE remote_id IS NOT NULL ORDER BY id"
            ).fetchall()
        return [_row_to_note(r) for r in rows]

    def list_recent(self) -> list[NoteRecord]:
        """Live notes, most recently opened first; never-opened notes last."""
        with self._lock:
            rows = self.conn.execute(
                f"SELECT {_COLUMNS} FROM notes WHERE sync_status != ? "
                "ORDER BY last_opened IS NULL, last_opened DESC, last_modified DESC",
                (SyncStatus.PENDING_DELETE.value,),
            ).fetchall()
        return [_row_to_note(r) for r in rows]

    def delete(self, note_id: int) -> None:
        with self._lock:
            self.conn.execute("DELETE FROM notes WHERE id = ?", (note_id,))
            self.conn.commit()
        logger.debug("Deleted note {}", note_id)

    def get_metadata(self, key: str) -> str | None:
        with self._lock:
            return get_metadata(self.conn, key)

    def set_metadata(self, key: str, value: str) -> None:
        with self._lock:
            set_metadata(self.conn, key, value)
