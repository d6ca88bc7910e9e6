"""Change detection and conflict merging for remote files.

When both copies of a note changed since the last sync, nothing is
discarded: the remote text is appended to the local document under a
``# Conflict`` header for the user to sort out.
"""

from datetime import UTC, datetime
from enum import Enum

from mononote.core.markdown.parse import markdown_to_document
from mononote.models.document import Doc
from mononote.models.note import NoteRecord, RemoteFile


class RemoteChange(str, Enum):
    """How a listed remote file relates to its local note."""

    UNCHANGED = "unchanged"  # nothing new remotely since the last sync
    UPDATED = "updated"  # only the remote copy changed
    CONFLICT = "conflict"  # both copies changed


def classify_remote_change(local: NoteRecord, remote_file: RemoteFile) -> RemoteChange:
    """Compare timestamps against the note's last sync.

    Args:
        local: The note linked to remote_file.
        remote_file: The remote file as listed.
    """
    last_sync = local.last_synced_at or 0
    if remote_file.last_modified <= last_sync:
        return RemoteChange.UNCHANGED
    if local.last_modified > last_sync:
        return RemoteChange.CONFLICT
    return RemoteChange.UPDATED


def _format_timestamp(ms: int) -> str:
    return datetime.fromtimestamp(ms / 1000, tz=UTC).isoformat(timespec="seconds")


def conflict_header(local_modified: int, remote_modified: int) -> str:
    return (
        "# Conflict\n"
        f"Local update: {_format_timestamp(local_modified)}\n"
        f"Remote update: {_format_timestamp(remote_modified)}\n"
        "---\n"
    )


def merge_conflict(local: NoteRecord, remote_file: RemoteFile, remote_markdown: str) -> Doc:
    """Local content, then the conflict header, then the remote content."""
    header = conflict_header(local.last_modified, remote_file.last_modified)
    remote = markdown_to_document(header + remote_markdown)
    return Doc(content=local.content.content + remote.content)
