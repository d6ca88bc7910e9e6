"""Local-first markdown notes with Dropbox sync."""

from mononote.core.markdown.parse import markdown_to_document
from mononote.core.markdown.render import document_to_markdown
from mononote.core.sync.engine import SyncEngine, SyncReport
from mononote.protocols import NoteStoreProtocol, RemoteStoreProtocol

__all__ = [
    "NoteStoreProtocol",
    "RemoteStoreProtocol",
    "SyncEngine",
    "SyncReport",
    "document_to_markdown",
    "markdown_to_document",
]
