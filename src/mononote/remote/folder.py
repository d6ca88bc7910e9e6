"""Remote store backed by a local directory, e.g. a folder synced by another tool."""

import os
from pathlib import Path

from loguru import logger

from mononote.exceptions import RemoteFileExistsError, RemoteFileNotFoundError, RemoteStoreError
from mononote.models.note import RemoteFile


class FolderRemoteStore:
    """Files under root, identified by inode number so ids survive renames."""

    def __init__(self, root: Path) -> None:
        self.root = root.resolve()

    def is_authorized(self) -> bool:
        return self.root.is_dir()

    def _resolve(self, path: str) -> Path:
        full = (self.root / path.lstrip("/")).resolve()
        if not full.is_relative_to(self.root):
            msg = f"Path escapes the store root: {path!r}"
            raise RemoteStoreError(msg)
        return full

    def _to_remote_file(self, path: Path) -> RemoteFile:
        st = path.stat()
        return RemoteFile(
            id=str(st.st_ino),
            path="/" + path.relative_to(self.root).as_posix(),
            name=path.name,
            last_modified=st.st_mtime_ns // 1_000_000,
            is_folder=path.is_dir(),
        )

    def _find(self, file_id: str) -> Path:
        for path in self.root.rglob("*"):
            if str(path.stat().st_ino) == file_id:
                return path
        msg = f"No file with id {file_id}"
        raise RemoteFileNotFoundError(msg)

    def list_files(self) -> list[RemoteFile]:
        return [self._to_remote_file(p) for p in sorted(self.root.rglob("*"))]

    def upload(self, target: str, content: str) -> RemoteFile:
        if target.startswith("/"):
            path = self._resolve(target)
            if path.exists():
                msg = f"Upload conflict: {target!r} already exists"
                raise RemoteFileExistsError(msg)
            path.parent.mkdir(parents=True, exist_ok=True)
        else:
            path = self._find(target)
        path.write_text(content, encoding="utf-8")
        logger.debug("Wrote {}", path)
        return self._to_remote_file(path)

    def download(self, path: str) -> str:
        full = self._resolve(path)
        try:
            return full.read_text(encoding="utf-8")
        except FileNotFoundError as e:
            raise RemoteFileNotFoundError(path) from e

    def move(self, file_id: str, new_path: str) -> None:
        source = self._find(file_id)
        dest = self._resolve(new_path)
        # Case-only renames are the same file on case-insensitive filesystems.
        if dest.exists() and not os.path.samefile(source, dest):
            msg = f"Move conflict: {new_path!r} already exists"
            raise RemoteFileExistsError(msg)
        dest.parent.mkdir(parents=True, exist_ok=True)
        source.rename(dest)
        logger.debug("Moved {} to {}", source, dest)

    def delete(self, file_id: str) -> None:
        path = self._find(file_id)
        if path.is_dir():
            msg = f"Refusing to delete folder {path}"
            raise RemoteStoreError(msg)
        path.unlink()
