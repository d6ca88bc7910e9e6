"""Per-note sync state machine."""

from enum import Enum
from typing import assert_never

from mononote.models.note import SyncStatus


class SyncEvent(str, Enum):
    """Things that happen to a note, locally or during a sync."""

    EDIT = "edit"  # content changed locally
    RENAME = "rename"  # name changed locally
    DELETE = "delete"  # user asked to delete the note
    SETTLE = "settle"  # upload, download, move or merge succeeded
    REMOTE_GONE = "remote_gone"  # remote copy missing from the listing
    REMOTE_DELETED = "remote_deleted"  # remote copy deleted on our behalf


def transition(status: SyncStatus, event: SyncEvent, *, linked: bool) -> SyncStatus | None:
    """Return the status a note moves to, or None when the record must be removed.

    Args:
        status: Current status.
        event: What happened.
        linked: Whether the note has a remote copy.
    """
    # A tombstone only ever leaves by being removed.
    if status is SyncStatus.PENDING_DELETE:
        if event in (SyncEvent.REMOTE_GONE, SyncEvent.REMOTE_DELETED):
            return None
        return status

    match event:
        case SyncEvent.EDIT:
            return SyncStatus.PENDING
        case SyncEvent.RENAME:
            # Unsynced content has to be uploaded anyway, and the upload
            # puts the file under the new name.
            if not linked or status is SyncStatus.PENDING:
                return SyncStatus.PENDING
            return SyncStatus.PENDING_RENAME
        case SyncEvent.DELETE:
            return SyncStatus.PENDING_DELETE if linked else None
        case SyncEvent.SETTLE:
            return SyncStatus.SYNCED
        case SyncEvent.REMOTE_GONE:
            # Local edits outlive a remote delete: the note is re-uploaded.
            if status is SyncStatus.SYNCED:
                return None
            return SyncStatus.PENDING
        case SyncEvent.REMOTE_DELETED:
            return None
        case _:
            assert_never(event)
