"""Note operations used by the editing surface and the CLI."""

from loguru import logger

from mononote.core.sync.state import SyncEvent, transition
from mononote.exceptions import NoteNameTakenError, NoteNotFoundError
from mononote.models.document import EMPTY_DOC, Doc
from mononote.models.note import NoteRecord, SyncStatus, now_ms
from mononote.protocols import NoteStoreProtocol


def create_note(store: NoteStoreProtocol, name: str) -> NoteRecord:
    """Create an empty, not yet uploaded note.

    Raises:
        NoteNameTakenError: A note with this name already exists.
    """
    if store.find_by_name(name) is not None:
        raise NoteNameTakenError(name)
    note_id = store.add(name=name, content=EMPTY_DOC, sync_status=SyncStatus.PENDING)
    logger.info("Created note {!r}", name)
    return _require(store, note_id)


def open_note(store: NoteStoreProtocol, name: str) -> NoteRecord | None:
    """Look up a note by name and record that it was opened."""
    note = store.find_by_name(name)
    if note is None or note.sync_status is SyncStatus.PENDING_DELETE:
        return None
    store.update(note.id, last_opened=now_ms())
    return store.get(note.id)


def list_notes(store: NoteStoreProtocol) -> list[NoteRecord]:
    return store.list_recent()


def save_content(store: NoteStoreProtocol, note_id: int, content: Doc) -> None:
    """Store edited content and mark the note for upload."""
    note = _require(store, note_id)
    status = transition(note.sync_status, SyncEvent.EDIT, linked=note.is_linked)
    store.update(note_id, content=content, sync_status=status)


def save_cursor(store: NoteStoreProtocol, note_id: int, cursor: int) -> None:
    # Cursor moves are not edits.
    store.update(note_id, cursor=cursor)


def delete_note(store: NoteStoreProtocol, note_id: int) -> bool:
    """Delete a note, or tombstone it until its remote copy is deleted.

    Returns:
        True if the record was removed right away.
    """
    note = _require(store, note_id)
    status = transition(note.sync_status, SyncEvent.DELETE, linked=note.is_linked)
    if status is None:
        store.delete(note_id)
        logger.info("Deleted note {!r}", note.name)
        return True
    store.update(note_id, settle=True, sync_status=status)
    logger.info("Marked {!r} for deletion", note.name)
    return False


def _require(store: NoteStoreProtocol, note_id: int) -> NoteRecord:
    note = store.get(note_id)
    if note is None:
        msg = f"No note with id {note_id}"
        raise NoteNotFoundError(msg)
    return note
