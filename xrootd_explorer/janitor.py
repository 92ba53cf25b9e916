"""
Background sweeper for the listing cache.

Expired listings are normally dropped when read; the janitor also removes
the ones nobody asks for again, so memory does not grow between requests.
"""

import logging
import threading

from .cache import ListingCache

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL_SECONDS = 15 * 60


class CacheJanitor:
    """Runs ListingCache.cleanup() on a fixed period in a daemon thread."""

    def __init__(self, cache: ListingCache, interval_seconds: float = DEFAULT_INTERVAL_SECONDS):
        self.cache = cache
        self.interval_seconds = interval_seconds
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self._lock = threading.Lock()

    @property
    def is_running(self) -> bool:
        thread = self._thread
        return thread is not None and thread.is_alive()

    def start(self) -> None:
        """Start the sweep thread. Calling start on a running janitor is a no-op."""
        with self._lock:
            if self.is_running:
                return
            self._stop_event.clear()
            self._thread = threading.Thread(
                target=self._run, name="cache-janitor", daemon=True
            )
            self._thread.start()
        logger.info("Cache janitor started (interval %ss)", self.interval_seconds)

    def stop(self, timeout: float | None = 5.0) -> None:
        """Signal the sweep thread to exit and wait for it."""
        with self._lock:
            thread = self._thread
            self._thread = None
        if thread is None:
            return
        self._stop_event.set()
        thread.join(timeout)
        logger.info("Cache janitor stopped")

    def run_once(self) -> int:
        """Perform a single sweep and return the number of evicted listings."""
        removed = self.cache.cleanup()
        if removed:
            logger.debug("Cache janitor removed %d expired listings", removed)
        return removed

    def _run(self) -> None:
        while not self._stop_event.wait(self.interval_seconds):
            try:
                self.run_once()
            except Exception as e:
                logger.warning("Cache sweep failed: %s", e)
