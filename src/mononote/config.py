"""Configuration constants for mono-notes."""

import os
from pathlib import Path

# Dropbox access token location. First file found is used.
TOKEN_FILES: list[Path] = [
    Path("~/.config/mono-notes-token.txt").expanduser(),
    Path("~/.config/secret/mono-notes-token.txt").expanduser(),
    Path(f"/run/user/{os.getuid()}/mono-notes-token"),
]

# Directory with the notes database. First directory which is found is used.
DATA_DIRECTORIES: list[Path] = [
    Path("~/.local/share/mono-notes").expanduser(),
    Path("~/.mono-notes").expanduser(),
]

DATABASE_FILENAME = "notes.db"

DROPBOX_API_URL = "https://api.dropboxapi.com/2"
DROPBOX_CONTENT_URL = "https://content.dropboxapi.com/2"

# Folder inside the app's Dropbox space that holds the notes ("" is the app root).
DROPBOX_ROOT = ""

# Seconds before a Dropbox request is abandoned.
REQUEST_TIMEOUT = 30

# Quiet period before a content, cursor or name edit is saved.
DEBOUNCE_SECONDS = 0.5

# Minimum seconds between two scheduled reconciliation passes.
SYNC_INTERVAL = 60


def resolve_data_directory() -> Path:
    """Return the first existing data directory, or the preferred one if none exists."""
    for candidate in DATA_DIRECTORIES:
        if candidate.is_dir():
            return candidate
    return DATA_DIRECTORIES[0]
