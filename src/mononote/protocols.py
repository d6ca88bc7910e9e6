"""Protocols for the stores the sync engine reconciles."""

from typing import Any, Protocol, runtime_checkable

from mononote.models.document import Doc
from mononote.models.note import NoteRecord, RemoteFile, SyncStatus


@runtime_checkable
class NoteStoreProtocol(Protocol):
    """Protocol for the local note store."""

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
        """Insert a note and return its id."""
        ...

    def get(self, note_id: int) -> NoteRecord | None:
        """Return the note with this id, or None."""
        ...

    def update(self, note_id: int, *, settle: bool = False, **fields: Any) -> None:
        """Merge fields into a note.

        Content and name writes stamp ``last_modified`` unless ``settle`` is
        set, which marks the write as recording a sync outcome.
        """
        ...

    def find_by_name(self, name: str) -> NoteRecord | None:
        """Return the note with this name, or None."""
        ...

    def find_by_remote_id(self, remote_id: str) -> NoteRecord | None:
        """Return the note linked to this remote file, or None."""
        ...

    def list_by_status(self, status: SyncStatus) -> list[NoteRecord]:
        """Return all notes in the given sync state."""
        ...

    def list_linked(self) -> list[NoteRecord]:
        """Return all notes that have a remote copy."""
        ...

    def list_recent(self) -> list[NoteRecord]:
        """Return live notes, most recently opened first."""
        ...

    def delete(self, note_id: int) -> None:
        """Remove a note record."""
        ...


@runtime_checkable
class RemoteStoreProtocol(Protocol):
    """Protocol for remote file stores notes are mirrored to."""

    def is_authorized(self) -> bool:
        """Whether the store can currently be used."""
        ...

    def list_files(self) -> list[RemoteFile]:
        """List every file and folder under the store's root."""
        ...

    def upload(self, target: str, content: str) -> RemoteFile:
        """Create a file at a path (``/...``) or overwrite a file by id."""
        ...

    def download(self, path: str) -> str:
        """Return the text of the file at path."""
        ...

    def move(self, file_id: str, new_path: str) -> None:
        """Move a file to a new path, keeping its id."""
        ...

    def delete(self, file_id: str) -> None:
        """Delete a file by id."""
        ...
