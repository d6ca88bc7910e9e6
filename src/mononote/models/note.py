"""Note records and remote file descriptors."""

import time
from dataclasses import dataclass
from enum import Enum

from mononote.models.document import EMPTY_DOC, Doc


def now_ms() -> int:
    return int(time.time() * 1000)


class SyncStatus(str, Enum):
    """Persisted sync state of a note.

    A note without a ``remote_id`` has never been uploaded; its status is
    ``PENDING`` and deleting it bypasses the tombstone.
    """

    SYNCED = "synced"
    PENDING = "pending"
    PENDING_RENAME = "pending-rename"
    PENDING_DELETE = "pending-delete"


@dataclass(frozen=True)
class NoteRecord:
    """A single note as stored locally."""

    id: int
    name: str
    content: Doc = EMPTY_DOC
    cursor: int = 0
    last_modified: int = 0
    last_opened: int | None = None
    remote_id: str | None = None
    sync_status: SyncStatus = SyncStatus.PENDING
    last_synced_at: int | None = None

    @property
    def is_linked(self) -> bool:
        return self.remote_id is not None


@dataclass(frozen=True)
class RemoteFile:
    """A file or folder entry in the remote store."""

    id: str
    path: str
    name: str
    last_modified: int = 0
    is_folder: bool = False


def remote_path(name: str) -> str:
    """Remote path a note with this name is stored under."""
    return f"/{name}.md"


def note_name(remote_file: RemoteFile) -> str:
    """Note name for a remote markdown file."""
    return remote_file.name.removesuffix(".md")
