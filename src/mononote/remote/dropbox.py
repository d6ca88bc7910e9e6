"""Dropbox remote store over the HTTP API v2."""

import json
from datetime import datetime
from typing import Any

import requests
from loguru import logger

from mononote.config import (
    DROPBOX_API_URL,
    DROPBOX_CONTENT_URL,
    DROPBOX_ROOT,
    REQUEST_TIMEOUT,
    TOKEN_FILES,
)
from mononote.exceptions import RemoteFileExistsError, RemoteFileNotFoundError, RemoteStoreError
from mononote.models.note import RemoteFile


def _load_token() -> str | None:
    for token_path in TOKEN_FILES:
        try:
            token = token_path.read_text(encoding="utf-8").strip()
        except FileNotFoundError:
            continue
        if token:
            logger.debug("Dropbox token from {!r}", str(token_path))
            return token
    logger.debug("No Dropbox token found, was looking at {!r}", [str(p) for p in TOKEN_FILES])
    return None


def _parse_timestamp(value: str) -> int:
    """Dropbox ``server_modified`` (``2024-01-02T03:04:05Z``) to epoch ms."""
    return int(datetime.fromisoformat(value.replace("Z", "+00:00")).timestamp() * 1000)


class DropboxRemoteStore:
    """Notes stored as ``.md`` files in a Dropbox app folder.

    Without an access token the store reports itself unauthorized and the
    sync engine leaves everything pending.
    """

    def __init__(self, *, token: str | None = None, root: str = DROPBOX_ROOT) -> None:
        self.token = token if token is not None else _load_token()
        self.root = root.rstrip("/")
        self.sess = requests.Session()
        if self.token:
            self.sess.headers["Authorization"] = f"Bearer {self.token}"

    def is_authorized(self) -> bool:
        return bool(self.token)

    def _full_path(self, path: str) -> str:
        return self.root + path

    def _relative_path(self, path_display: str) -> str:
        if self.root and path_display.lower().startswith(self.root.lower()):
            return path_display[len(self.root):]
        return path_display

    def _check(self, endpoint: str, r: requests.Response) -> None:
        if r.status_code == 409:
            try:
                summary = r.json().get("error_summary", "")
            except ValueError:
                summary = r.text
            if "not_found" in summary:
                msg = f"{endpoint}: {summary}"
                raise RemoteFileNotFoundError(msg)
            if "conflict" in summary:
                msg = f"{endpoint}: {summary}"
                raise RemoteFileExistsError(msg)
            msg = f"Dropbox call failed: {endpoint!r} -> {summary!r}"
            raise RemoteStoreError(msg)
        r.raise_for_status()

    def call(self, endpoint: str, args: dict[str, Any]) -> dict[str, Any]:
        """Invoke an RPC endpoint, return json."""
        logger.debug("Making request: {!r} {}", endpoint, repr(args)[:64])
        r = self.sess.post(f"{DROPBOX_API_URL}/{endpoint}", json=args, timeout=REQUEST_TIMEOUT)
        self._check(endpoint, r)
        rv: dict[str, Any] = r.json()
        return rv

    def content_call(self, endpoint: str, args: dict[str, Any], data: bytes = b"") -> requests.Response:
        """Invoke a content endpoint; arguments travel in a header."""
        logger.debug("Making content request: {!r} {}", endpoint, repr(args)[:64])
        r = self.sess.post(
            f"{DROPBOX_CONTENT_URL}/{endpoint}",
            headers={
                "Dropbox-API-Arg": json.dumps(args),
                "Content-Type": "application/octet-stream",
            },
            data=data,
            timeout=REQUEST_TIMEOUT,
        )
        self._check(endpoint, r)
        return r

    def _to_remote_file(self, entry: dict[str, Any]) -> RemoteFile:
        is_folder = entry[".tag"] == "folder"
        return RemoteFile(
            id=entry["id"],
            path=self._relative_path(entry.get("path_display") or entry["path_lower"]),
            name=entry["name"],
            last_modified=0 if is_folder else _parse_timestamp(entry["server_modified"]),
            is_folder=is_folder,
        )

    def list_files(self) -> list[RemoteFile]:
        result = self.call("files/list_folder", {"path": self.root, "recursive": True})
        entries = list(result["entries"])
        while result.get("has_more"):
            result = self.call("files/list_folder/continue", {"cursor": result["cursor"]})
            entries.extend(result["entries"])
        # Deleted entries only show up when include_deleted is set.
        return [self._to_remote_file(e) for e in entries if e[".tag"] in ("file", "folder")]

    def upload(self, target: str, content: str) -> RemoteFile:
        if target.startswith("/"):
            args = {"path": self._full_path(target), "mode": "add", "autorename": False}
        else:
            args = {"path": target, "mode": "overwrite"}
        r = self.content_call("files/upload", args, content.encode("utf-8"))
        return self._to_remote_file({".tag": "file", **r.json()})

    def download(self, path: str) -> str:
        r = self.content_call("files/download", {"path": self._full_path(path)})
        return r.content.decode("utf-8")

    def move(self, file_id: str, new_path: str) -> None:
        self.call(
            "files/move_v2",
            {"from_path": file_id, "to_path": self._full_path(new_path), "autorename": False},
        )

    def delete(self, file_id: str) -> None:
        self.call("files/delete_v2", {"path": file_id})
