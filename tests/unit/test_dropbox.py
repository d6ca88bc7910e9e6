"""Tests for DropboxRemoteStore, the HTTP client over the Dropbox API."""

import json
from pathlib import Path
from typing import Any
from unittest.mock import MagicMock, patch

import pytest
import requests

from mononote.exceptions import RemoteFileExistsError, RemoteFileNotFoundError, RemoteStoreError
from mononote.protocols import RemoteStoreProtocol
from mononote.remote.dropbox import DropboxRemoteStore


@pytest.fixture
def store_with_mock_session(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> tuple[DropboxRemoteStore, MagicMock]:
    """Create a DropboxRemoteStore with a real token file and mocked requests.Session."""
    token_file = tmp_path / "token.txt"
    token_file.write_text("test-token\n")
    monkeypatch.setattr("mononote.remote.dropbox.TOKEN_FILES", [token_file])

    with patch("mononote.remote.dropbox.requests.Session") as mock_session_cls:
        mock_session = MagicMock()
        mock_session_cls.return_value = mock_session
        store = DropboxRemoteStore()

    return store, mock_session


def _make_response(data: Any = None, *, status_code: int = 200, content: bytes = b"") -> MagicMock:
    """Create a mock HTTP response with given JSON data."""
    response = MagicMock()
    response.status_code = status_code
    response.json.return_value = data
    response.text = json.dumps(data)
    response.content = content
    return response


FILE_ENTRY = {
    ".tag": "file",
    "id": "id:abc",
    "name": "Ideas.md",
    "path_display": "/Ideas.md",
    "path_lower": "/ideas.md",
    "server_modified": "2024-01-02T03:04:05Z",
}


def test_reads_token_from_first_found_file(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    """The access token comes from the first existing token file."""
    token_file = tmp_path / "token.txt"
    token_file.write_text("my-secret-token\n")
    monkeypatch.setattr(
        "mononote.remote.dropbox.TOKEN_FILES", [tmp_path / "missing.txt", token_file]
    )

    with patch("mononote.remote.dropbox.requests.Session"):
        store = DropboxRemoteStore()

    assert store.token == "my-secret-token"
    assert store.is_authorized()


def test_missing_token_means_unauthorized(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Without a token file the store reports itself unauthorized instead of failing."""
    monkeypatch.setattr("mononote.remote.dropbox.TOKEN_FILES", [tmp_path / "a.txt"])

    with patch("mononote.remote.dropbox.requests.Session"):
        store = DropboxRemoteStore()

    assert not store.is_authorized()


def test_store_satisfies_protocol(
    store_with_mock_session: tuple[DropboxRemoteStore, MagicMock],
) -> None:
    store, _ = store_with_mock_session
    assert isinstance(store, RemoteStoreProtocol)


def test_list_files_follows_cursor(
    store_with_mock_session: tuple[DropboxRemoteStore, MagicMock],
) -> None:
    """Listing pages through list_folder/continue until has_more is false."""
    store, mock_session = store_with_mock_session
    folder = {".tag": "folder", "id": "id:dir", "name": "sub", "path_display": "/sub"}
    deleted = {".tag": "deleted", "name": "old.md", "path_display": "/old.md"}
    mock_session.post.side_effect = [
        _make_response({"entries": [folder], "has_more": True, "cursor": "c1"}),
        _make_response({"entries": [FILE_ENTRY, deleted], "has_more": False, "cursor": "c2"}),
    ]

    files = store.list_files()

    assert [f.id for f in files] == ["id:dir", "id:abc"]
    assert files[0].is_folder
    assert files[1].path == "/Ideas.md"
    assert files[1].name == "Ideas.md"
    assert files[1].last_modified == 1704164645000
    first, second = mock_session.post.call_args_list
    assert first[0][0].endswith("/files/list_folder")
    assert first[1]["json"] == {"path": "", "recursive": True}
    assert second[0][0].endswith("/files/list_folder/continue")
    assert second[1]["json"] == {"cursor": "c1"}


def test_upload_to_path_uses_add_mode(
    store_with_mock_session: tuple[DropboxRemoteStore, MagicMock],
) -> None:
    store, mock_session = store_with_mock_session
    mock_session.post.return_value = _make_response(
        {k: v for k, v in FILE_ENTRY.items() if k != ".tag"}
    )

    uploaded = store.upload("/Ideas.md", "# Ideas")

    assert uploaded.id == "id:abc"
    args, kwargs = mock_session.post.call_args
    assert args[0].endswith("/files/upload")
    assert json.loads(kwargs["headers"]["Dropbox-API-Arg"]) == {
        "path": "/Ideas.md",
        "mode": "add",
        "autorename": False,
    }
    assert kwargs["data"] == b"# Ideas"


def test_upload_by_id_overwrites(
    store_with_mock_session: tuple[DropboxRemoteStore, MagicMock],
) -> None:
    store, mock_session = store_with_mock_session
    mock_session.post.return_value = _make_response(
        {k: v for k, v in FILE_ENTRY.items() if k != ".tag"}
    )

    store.upload("id:abc", "text")

    kwargs = mock_session.post.call_args[1]
    assert json.loads(kwargs["headers"]["Dropbox-API-Arg"]) == {"path": "id:abc", "mode": "overwrite"}


def test_download_returns_text(
    store_with_mock_session: tuple[DropboxRemoteStore, MagicMock],
) -> None:
    store, mock_session = store_with_mock_session
    mock_session.post.return_value = _make_response(content="héllo".encode())

    assert store.download("/Ideas.md") == "héllo"
    kwargs = mock_session.post.call_args[1]
    assert json.loads(kwargs["headers"]["Dropbox-API-Arg"]) == {"path": "/Ideas.md"}


def test_root_prefixes_paths() -> None:
    """A configured root folder is added to outgoing paths and stripped from listed ones."""
    with patch("mononote.remote.dropbox.requests.Session") as mock_session_cls:
        mock_session = MagicMock()
        mock_session_cls.return_value = mock_session
        store = DropboxRemoteStore(token="t", root="/Notes")
    entry = {**FILE_ENTRY, "path_display": "/Notes/Ideas.md"}
    mock_session.post.return_value = _make_response({"entries": [entry], "has_more": False})

    files = store.list_files()
    store.move("id:abc", "/Renamed.md")

    assert files[0].path == "/Ideas.md"
    assert mock_session.post.call_args_list[0][1]["json"]["path"] == "/Notes"
    assert mock_session.post.call_args[1]["json"]["to_path"] == "/Notes/Renamed.md"


def test_move_and_delete_use_file_id(
    store_with_mock_session: tuple[DropboxRemoteStore, MagicMock],
) -> None:
    store, mock_session = store_with_mock_session
    mock_session.post.return_value = _make_response({"metadata": {}})

    store.move("id:abc", "/New.md")
    store.delete("id:abc")

    move_call, delete_call = mock_session.post.call_args_list
    assert move_call[0][0].endswith("/files/move_v2")
    assert move_call[1]["json"] == {"from_path": "id:abc", "to_path": "/New.md", "autorename": False}
    assert delete_call[0][0].endswith("/files/delete_v2")
    assert delete_call[1]["json"] == {"path": "id:abc"}


def test_not_found_error_raises_remote_file_not_found(
    store_with_mock_session: tuple[DropboxRemoteStore, MagicMock],
) -> None:
    store, mock_session = store_with_mock_session
    mock_session.post.return_value = _make_response(
        {"error_summary": "path_lookup/not_found/.."}, status_code=409
    )

    with pytest.raises(RemoteFileNotFoundError):
        store.delete("id:gone")


def test_path_conflict_raises_remote_file_exists(
    store_with_mock_session: tuple[DropboxRemoteStore, MagicMock],
) -> None:
    store, mock_session = store_with_mock_session
    mock_session.post.return_value = _make_response(
        {"error_summary": "path/conflict/file/.."}, status_code=409
    )

    with pytest.raises(RemoteFileExistsError, match="conflict"):
        store.upload("/Ideas.md", "x")


def test_other_api_error_raises_remote_store_error(
    store_with_mock_session: tuple[DropboxRemoteStore, MagicMock],
) -> None:
    store, mock_session = store_with_mock_session
    mock_session.post.return_value = _make_response(
        {"error_summary": "path/insufficient_space/.."}, status_code=409
    )

    with pytest.raises(RemoteStoreError, match="insufficient_space") as exc_info:
        store.upload("/Ideas.md", "x")
    assert not isinstance(exc_info.value, (RemoteFileNotFoundError, RemoteFileExistsError))


def test_http_error_propagates(
    store_with_mock_session: tuple[DropboxRemoteStore, MagicMock],
) -> None:
    store, mock_session = store_with_mock_session
    response = _make_response(status_code=401)
    response.raise_for_status.side_effect = requests.HTTPError("401 Unauthorized")
    mock_session.post.return_value = response

    with pytest.raises(requests.HTTPError):
        store.list_files()
