# workers/catalog_fetch_worker.py
import logging
from typing import Any, Callable, Optional

from PySide6.QtCore import QObject, QThread, Signal, Slot

from catalog_cache import EntityCache

logger = logging.getLogger(__name__)


class CatalogFetchWorker(QObject):
    """
    A QObject worker that performs one catalog fetch in a separate thread.
    """

    fetch_completed = Signal(int, object)
    fetch_failed = Signal(int, str)
    finished = Signal()

    def __init__(self, seq: int, fetch_fn: Callable[[], Any]):
        super().__init__()
        self._seq = seq
        self._fetch_fn = fetch_fn

    @Slot()
    def run(self):
        logger.info(f"CatalogFetchWorker started for request #{self._seq}")
        try:
            payload = self._fetch_fn()
            self.fetch_completed.emit(self._seq, payload)
        except Exception as e:
            logger.error(f"Catalog fetch #{self._seq} failed: {e}")
            self.fetch_failed.emit(self._seq, str(e))
        finally:
            self.finished.emit()


def start_background_fetch(
    cache: EntityCache,
    force: bool = False,
    parent: Optional[QObject] = None,
) -> Optional[QThread]:
    """
    Runs a cache fetch on a new QThread and reports back to the cache on
    the cache's own thread. Returns None when nothing needs fetching or no
    user is signed in. Keep a reference to the returned thread, or pass a
    parent, until it has finished.
    """
    if not force and cache.is_fresh:
        return None
    seq = cache.begin_fetch()
    if seq is None:
        return None

    thread = QThread(parent)
    worker = CatalogFetchWorker(seq, cache.fetch_fn)
    worker.moveToThread(thread)

    worker.fetch_completed.connect(cache.complete_fetch)
    worker.fetch_failed.connect(cache.fail_fetch)
    worker.finished.connect(thread.quit)
    thread.started.connect(worker.run)
    thread.finished.connect(worker.deleteLater)
    # Keep the worker alive until the thread is done with it.
    thread.worker = worker

    thread.start()
    return thread
