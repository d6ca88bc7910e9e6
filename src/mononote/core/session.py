"""Debounced saving for a note open in an editor.

Each kind of edit (content, cursor, name) has its own timer, so a cursor
move never delays or cancels a pending content save.
"""

import threading
from collections.abc import Callable
from typing import Any

from loguru import logger

from mononote.config import DEBOUNCE_SECONDS
from mononote.core.notes import save_content, save_cursor
from mononote.core.sync.engine import SyncEngine
from mononote.models.document import Doc
from mononote.protocols import NoteStoreProtocol


class Debouncer:
    """Call a function once calls have stopped for delay seconds.

    Only the arguments of the latest call are used.
    """

    def __init__(self, callback: Callable[..., Any], delay: float) -> None:
        self._callback = callback
        self._delay = delay
        self._lock = threading.Lock()
        self._timer: threading.Timer | None = None
        self._args: tuple[Any, ...] = ()

    @property
    def pending(self) -> bool:
        with self._lock:
            return self._timer is not None

    def __call__(self, *args: Any) -> None:
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            self._args = args
            self._timer = threading.Timer(self._delay, self._fire)
            self._timer.daemon = True
            self._timer.start()

    def cancel(self) -> None:
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None

    def flush(self) -> None:
        """Run a pending call now, on the calling thread."""
        with self._lock:
            if self._timer is None:
                return
            self._timer.cancel()
        self._fire()

    def _fire(self) -> None:
        with self._lock:
            if self._timer is None:
                return
            self._timer = None
            args = self._args
        try:
            self._callback(*args)
        except Exception:
            logger.exception("Debounced call to {} failed", getattr(self._callback, "__name__", self._callback))


class EditingSession:
    """Save edits to one note after the editor goes quiet."""

    def __init__(
        self,
        store: NoteStoreProtocol,
        engine: SyncEngine,
        note_id: int,
        *,
        delay: float = DEBOUNCE_SECONDS,
    ) -> None:
        self.store = store
        self.engine = engine
        self.note_id = note_id
        self._content = Debouncer(self._save_content, delay)
        self._cursor = Debouncer(self._save_cursor, delay)
        self._name = Debouncer(self._save_name, delay)

    def content_changed(self, content: Doc) -> None:
        self._content(content)

    def cursor_moved(self, cursor: int) -> None:
        self._cursor(cursor)

    def name_changed(self, name: str) -> None:
        self._name(name)

    def close(self) -> None:
        """Write out every pending save."""
        for channel in (self._content, self._cursor, self._name):
            channel.flush()

    def _save_content(self, content: Doc) -> None:
        save_content(self.store, self.note_id, content)
        self.engine.sync_note(self.note_id)

    def _save_cursor(self, cursor: int) -> None:
        save_cursor(self.store, self.note_id, cursor)

    def _save_name(self, name: str) -> None:
        name = name.strip()
        if not name:
            logger.debug("Ignoring empty name for note {}", self.note_id)
            return
        self.engine.rename_note(self.note_id, name)
