"""Periodic sync: run a full pass when the cooldown has expired."""

import threading
import time
from collections.abc import Callable

from loguru import logger

from mononote.config import SYNC_INTERVAL
from mononote.core.database.store import SqliteNoteStore
from mononote.core.sync.engine import SyncEngine, SyncReport

LAST_SYNC_KEY = "last_sync_at"


def is_sync_due(store: SqliteNoteStore, interval: int) -> bool:
    """Check if a full sync should run based on interval.

    Args:
        store: Note store holding the last sync time.
        interval: Minimum seconds between full syncs.

    Returns:
        True if a sync should be performed.
    """
    last_sync = store.get_metadata(LAST_SYNC_KEY)
    if last_sync is None:
        return True
    return (time.time() - int(last_sync)) >= interval


def maybe_sync_all(
    store: SqliteNoteStore,
    engine: SyncEngine,
    *,
    interval: int = SYNC_INTERVAL,
    refresh: Callable[[], None] | None = None,
) -> SyncReport | None:
    """Run a full sync if the cooldown has expired.

    The cooldown is reset even when the pass fails, so a broken remote is
    not retried in a tight loop.
    """
    if not is_sync_due(store, interval):
        return None
    try:
        report = engine.sync_all(refresh)
    finally:
        store.set_metadata(LAST_SYNC_KEY, str(int(time.time())))
    return report


def run_periodic_sync(
    engine: SyncEngine,
    *,
    interval: float,
    stop_event: threading.Event,
    refresh: Callable[[], None] | None = None,
) -> None:
    """Run full syncs every interval seconds until stop_event is set."""
    logger.info("Syncing every {}s", interval)
    while not stop_event.is_set():
        report = engine.sync_all(refresh)
        if report is not None and not report.success:
            logger.warning("Sync failed: {}", report.error)
        if stop_event.wait(interval):
            break
    logger.info("Periodic sync stopped")
