"""Reconcile the local note store with a remote file store.

A full pass runs five steps in order: upload pending notes, apply pending
renames, download remote changes, apply local deletions, apply remote
deletions. Within a step every note is attempted; if any failed, the step
raises and the rest of the pass is skipped until the next trigger.
"""

import threading
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from typing import cast

from loguru import logger

from mononote.core.markdown.parse import markdown_to_document
from mononote.core.markdown.render import document_to_markdown
from mononote.core.sync.conflict import RemoteChange, classify_remote_change, merge_conflict
from mononote.core.sync.state import SyncEvent, transition
from mononote.exceptions import (
    NoteNameTakenError,
    NoteNotFoundError,
    RemoteFileExistsError,
    RemoteFileNotFoundError,
    SyncStepError,
)
from mononote.models.note import NoteRecord, RemoteFile, SyncStatus, note_name, now_ms, remote_path
from mononote.protocols import NoteStoreProtocol, RemoteStoreProtocol


@dataclass
class SyncReport:
    """What one reconciliation pass did."""

    uploaded: int = 0
    renamed: int = 0
    downloaded: int = 0
    created: int = 0
    merged: int = 0
    deleted_remote: int = 0
    deleted_local: int = 0
    error: str | None = None
    failures: list[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.error is None

    def summary(self) -> str:
        return (
            f"{self.uploaded} uploaded, {self.renamed} renamed, {self.created} new, "
            f"{self.downloaded} updated, {self.merged} merged, "
            f"{self.deleted_remote} deleted remotely, {self.deleted_local} deleted locally"
        )


class SyncEngine:
    """Sync notes between a note store and a remote store.

    At most one full pass runs at a time per engine; single-note operations
    are not excluded and may interleave with a pass.
    """

    def __init__(
        self,
        store: NoteStoreProtocol,
        remote: RemoteStoreProtocol,
        *,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self._store = store
        self._remote = remote
        self._clock = clock
        self._pass_lock = threading.Lock()

    @property
    def in_progress(self) -> bool:
        return self._pass_lock.locked()

    def sync_all(self, refresh: Callable[[], None] | None = None) -> SyncReport | None:
        """Run one full reconciliation pass.

        Args:
            refresh: Called once after remote content replaced or merged into
                any local note, so an open editor can reload it.

        Returns:
            The pass report, or None when sync is disabled or a pass is
            already running.
        """
        if not self._remote.is_authorized():
            logger.debug("Remote store not authorized, sync disabled")
            return None
        if not self._pass_lock.acquire(blocking=False):
            logger.debug("Sync already in progress, skipping")
            return None

        report = SyncReport()
        try:
            self._upload_pending(report)
            self._apply_pending_renames(report)
            listed_at = self._clock()
            remote_ids = self._download_remote_changes(report, refresh)
            self._apply_local_deletions(report)
            self._apply_remote_deletions(report, remote_ids, listed_at)
        except SyncStepError as e:
            report.error = str(e)
            report.failures.extend(e.failures)
            logger.warning("Sync pass stopped at {}", e)
        except Exception as e:
            report.error = f"{type(e).__name__}: {e}"
            logger.exception("Sync pass failed")
        finally:
            self._pass_lock.release()

        if report.success:
            logger.info("Sync complete: {}", report.summary())
        return report

    # --- Single-note operations ---

    def sync_note(self, note_id: int) -> None:
        """Mark a note pending and upload it right away."""
        note = self._store.get(note_id)
        if note is None:
            logger.debug("Note {} vanished before sync", note_id)
            return
        # Edits never remove a note.
        status = cast(
            SyncStatus, transition(note.sync_status, SyncEvent.EDIT, linked=note.is_linked)
        )
        self._store.update(note_id, settle=True, sync_status=status)
        if status is not SyncStatus.PENDING or not self._remote.is_authorized():
            return
        note = self._store.get(note_id)
        if note is not None:
            self._upload_note(note)

    def rename_note(self, note_id: int, new_name: str) -> None:
        """Rename a note and move its remote copy right away.

        Raises:
            NoteNotFoundError: No note has this id.
            NoteNameTakenError: Another note already has new_name.
        """
        note = self._store.get(note_id)
        if note is None:
            msg = f"No note with id {note_id}"
            raise NoteNotFoundError(msg)
        if note.name == new_name:
            return
        other = self._store.find_by_name(new_name)
        if other is not None and other.id != note_id:
            raise NoteNameTakenError(new_name)

        status = cast(
            SyncStatus, transition(note.sync_status, SyncEvent.RENAME, linked=note.is_linked)
        )
        self._store.update(note_id, name=new_name, sync_status=status)
        if status is not SyncStatus.PENDING_RENAME or not self._remote.is_authorized():
            return
        note = self._store.get(note_id)
        if note is not None:
            self._move_note(note)

    def sync_delete_note(self, note_id: int) -> None:
        """Delete a tombstoned note's remote copy, then the note itself."""
        note = self._store.get(note_id)
        if note is None:
            return
        if note.is_linked and not self._remote.is_authorized():
            logger.debug("Remote store not authorized, keeping tombstone for {!r}", note.name)
            return
        self._delete_remote_note(note)

    # --- Per-note actions ---

    def _upload_note(self, note: NoteRecord) -> None:
        markdown = document_to_markdown(note.content)
        path = remote_path(note.name)
        if note.remote_id is None:
            uploaded = self._upload_new(path, markdown)
        else:
            try:
                uploaded = self._remote.upload(note.remote_id, markdown)
            except RemoteFileNotFoundError:
                logger.info("Remote copy of {!r} is gone, uploading it again", note.name)
                uploaded = self._upload_new(path, markdown)
            else:
                # Renamed while content was pending: the file keeps its old name.
                if uploaded.name.casefold() != f"{note.name}.md".casefold():
                    self._remote.move(uploaded.id, path)
        logger.debug("Uploaded {!r} as {}", note.name, uploaded.id)
        self._settle(note, remote_id=uploaded.id)

    def _upload_new(self, path: str, markdown: str) -> RemoteFile:
        try:
            return self._remote.upload(path, markdown)
        except RemoteFileExistsError as e:
            # Retried every pass until the user renames one of the two.
            msg = f"a remote file already exists at {path}; rename the note to sync it"
            raise RemoteFileExistsError(msg) from e

    def _move_note(self, note: NoteRecord) -> None:
        if note.remote_id is None:
            msg = f"Note {note.name!r} has no remote copy to move"
            raise ValueError(msg)
        try:
            self._remote.move(note.remote_id, remote_path(note.name))
        except RemoteFileNotFoundError:
            logger.info("Remote copy of {!r} is gone, it will be uploaded again", note.name)
            self._unlink(note)
            return
        logger.debug("Moved {!r} to {}", note.name, remote_path(note.name))
        self._settle(note)

    def _delete_remote_note(self, note: NoteRecord) -> None:
        if note.remote_id is not None:
            try:
                self._remote.delete(note.remote_id)
            except RemoteFileNotFoundError:
                logger.debug("Remote copy of {!r} was already deleted", note.name)
        self._apply_remote_event(note, SyncEvent.REMOTE_DELETED)
        logger.debug("Deleted {!r}", note.name)

    def _settle(
        self,
        snapshot: NoteRecord,
        *,
        pulled: tuple[RemoteFile, str] | None = None,
        **fields: object,
    ) -> None:
        """Record a successful sync step for a note.

        If the note was edited after snapshot was read, it keeps its pending
        status so the edit is uploaded by a later sync. Remote text pulled in
        by the step is then merged below the edit instead of replacing it.

        Args:
            snapshot: The note as read when the step started.
            pulled: The remote file and its downloaded markdown, for downloads.
            **fields: Note fields the step produced.
        """
        current = self._store.get(snapshot.id)
        if current is None:
            logger.debug("Note {!r} was deleted during sync", snapshot.name)
            return
        if current.last_modified != snapshot.last_modified or current.name != snapshot.name:
            status = current.sync_status
            fields.pop("last_modified", None)
            if pulled is not None and current.content != snapshot.content:
                remote_file, markdown = pulled
                logger.warning("{!r} edited during download, keeping both versions", current.name)
                fields["content"] = merge_conflict(current, remote_file, markdown)
        else:
            status = transition(current.sync_status, SyncEvent.SETTLE, linked=True)
        self._store.update(
            snapshot.id,
            settle=True,
            sync_status=status,
            last_synced_at=self._clock(),
            **fields,
        )

    def _unlink(self, note: NoteRecord) -> None:
        self._apply_remote_event(note, SyncEvent.REMOTE_GONE)

    def _apply_remote_event(self, note: NoteRecord, event: SyncEvent) -> None:
        """Drop the remote link, or the whole note when nothing local is left."""
        status = transition(note.sync_status, event, linked=True)
        if status is None:
            self._store.delete(note.id)
            return
        self._store.update(note.id, settle=True, remote_id=None, sync_status=status)

    # --- Pass steps ---

    def _each(
        self, step: str, notes: Iterable[NoteRecord], action: Callable[[NoteRecord], None]
    ) -> int:
        """Apply action to every note, then raise if any of them failed."""
        done = 0
        failures: list[str] = []
        for note in notes:
            try:
                action(note)
            except RemoteFileExistsError as e:
                failures.append(f"{note.name}: {e}")
                logger.error("{} failed for {!r}: {}", step, note.name, e)
            except Exception:
                failures.append(note.name)
                logger.exception("{} failed for {!r}", step, note.name)
            else:
                done += 1
        if failures:
            raise SyncStepError(step, failures)
        return done

    def _upload_pending(self, report: SyncReport) -> None:
        pending = self._store.list_by_status(SyncStatus.PENDING)
        report.uploaded += self._each("upload", pending, self._upload_note)

    def _apply_pending_renames(self, report: SyncReport) -> None:
        renames = [n for n in self._store.list_by_status(SyncStatus.PENDING_RENAME) if n.is_linked]
        report.renamed += self._each("rename", renames, self._move_note)

    def _download_remote_changes(
        self, report: SyncReport, refresh: Callable[[], None] | None
    ) -> set[str]:
        listing = self._remote.list_files()
        remote_ids = {f.id for f in listing}
        files = [f for f in listing if not f.is_folder and f.name.endswith(".md")]

        changed = False
        failures: list[str] = []
        for remote_file in files:
            try:
                changed |= self._sync_remote_file(remote_file, report)
            except Exception:
                failures.append(remote_file.path)
                logger.exception("download failed for {}", remote_file.path)

        if changed and refresh is not None:
            refresh()
        if failures:
            raise SyncStepError("download", failures)
        return remote_ids

    def _sync_remote_file(self, remote_file: RemoteFile, report: SyncReport) -> bool:
        """Bring one remote file into the store. Returns True if a note's content changed."""
        local = self._store.find_by_remote_id(remote_file.id)
        if local is None:
            self._download_new_file(remote_file)
            report.created += 1
            return False
        if local.sync_status is SyncStatus.PENDING_DELETE:
            return False

        change = classify_remote_change(local, remote_file)
        if change is RemoteChange.UNCHANGED:
            return False

        markdown = self._remote.download(remote_file.path)
        if change is RemoteChange.CONFLICT:
            logger.warning("Conflict on {!r}, keeping both versions", local.name)
            content = merge_conflict(local, remote_file, markdown)
            self._settle(
                local,
                pulled=(remote_file, markdown),
                content=content,
                last_modified=max(local.last_modified, remote_file.last_modified),
            )
            report.merged += 1
        else:
            self._settle(
                local,
                pulled=(remote_file, markdown),
                content=markdown_to_document(markdown),
                last_modified=remote_file.last_modified,
            )
            report.downloaded += 1
        logger.debug("Pulled {!r} ({})", local.name, change.value)
        return True

    def _download_new_file(self, remote_file: RemoteFile) -> None:
        markdown = self._remote.download(remote_file.path)
        name = note_name(remote_file)
        self._store.add(
            name=name,
            content=markdown_to_document(markdown),
            last_modified=remote_file.last_modified,
            remote_id=remote_file.id,
            sync_status=SyncStatus.SYNCED,
            last_synced_at=self._clock(),
        )
        logger.debug("Downloaded new note {!r}", name)

    def _apply_local_deletions(self, report: SyncReport) -> None:
        tombstones = self._store.list_by_status(SyncStatus.PENDING_DELETE)
        report.deleted_remote += self._each("delete", tombstones, self._delete_remote_note)

    def _apply_remote_deletions(
        self, report: SyncReport, remote_ids: set[str], listed_at: int
    ) -> None:
        # Notes settled after the listing was taken are not in it yet.
        gone = [
            n
            for n in self._store.list_linked()
            if n.remote_id not in remote_ids and (n.last_synced_at or 0) < listed_at
        ]
        for note in gone:
            logger.info("{!r} was deleted remotely", note.name)
        self._each("remote delete", gone, self._unlink)
        report.deleted_local += sum(
            1 for n in gone if transition(n.sync_status, SyncEvent.REMOTE_GONE, linked=True) is None
        )
