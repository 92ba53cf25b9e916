import logging
import threading
import time
from dataclasses import dataclass

from .models import DirectoryEntry

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 60 * 60
DEFAULT_MAX_ENTRIES = 1000


@dataclass
class CacheEntry:
    entries: list[DirectoryEntry]
    cached_at: float


@dataclass
class CacheStats:
    size: int
    max_entries: int
    ttl_seconds: float
    hits: int = 0
    misses: int = 0

    @property
    def hit_rate(self) -> float | None:
        total = self.hits + self.misses
        if total == 0:
            return None
        return self.hits / total

    def to_dict(self) -> dict:
        return {
            "size": self.size,
            "max_entries": self.max_entries,
            "ttl_seconds": self.ttl_seconds,
            "hits": self.hits,
            "misses": self.misses,
            "hit_rate": self.hit_rate,
        }


class ListingCache:
    """
    Cache for single-directory listings, keyed by resolved path.

    Thread-safe, bounded and time-expiring. Expired records are dropped lazily
    on read and in bulk by cleanup(). When full, the record written longest
    ago is evicted; reads never refresh a record's timestamp, so eviction
    follows write order rather than access order.
    """

    def __init__(
        self, ttl_seconds: float = DEFAULT_TTL_SECONDS, max_entries: int = DEFAULT_MAX_ENTRIES
    ):
        if max_entries < 1:
            raise ValueError(f"max_entries must be at least 1, got {max_entries}")
        self.ttl_seconds = ttl_seconds
        self.max_entries = max_entries
        self._cache: dict[str, CacheEntry] = {}
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0

    def __len__(self) -> int:
        with self._lock:
            return len(self._cache)

    def _is_expired(self, entry: CacheEntry, now: float) -> bool:
        return now - entry.cached_at > self.ttl_seconds

    def get(self, path: str) -> list[DirectoryEntry] | None:
        """
        Retrieve a directory listing if cached and not expired.

        Args:
            path: The resolved directory path to look up.

        Returns:
            The cached listing, or None if absent or expired.
        """
        with self._lock:
            entry = self._cache.get(path)
            if entry is None:
                self._misses += 1
                return None
            if self._is_expired(entry, time.time()):
                # Entry expired, remove it
                del self._cache[path]
                self._misses += 1
                return None
            self._hits += 1
            return entry.entries

    def put(self, path: str, entries: list[DirectoryEntry]) -> None:
        """
        Cache a directory listing.

        When the cache is full one record is evicted first, even if the path
        is already cached.

        Args:
            path: The resolved directory path.
            entries: The directory listing to cache.
        """
        with self._lock:
            if len(self._cache) >= self.max_entries:
                self._evict_oldest()
            self._cache[path] = CacheEntry(entries=list(entries), cached_at=time.time())

    set = put

    def _evict_oldest(self) -> None:
        """Remove the record with the oldest write time. Caller must hold lock."""
        oldest_key = None
        oldest_time = None
        for key, entry in self._cache.items():
            if oldest_time is None or entry.cached_at < oldest_time:
                oldest_key = key
                oldest_time = entry.cached_at
        if oldest_key is not None:
            del self._cache[oldest_key]
            logger.debug("Evicted cached listing for %s", oldest_key)

    def invalidate(self, path: str) -> None:
        """
        Invalidate cache for a specific path.

        Args:
            path: The directory path to invalidate.
        """
        with self._lock:
            self._cache.pop(path, None)

    def clear(self) -> None:
        """Drop every cached listing."""
        with self._lock:
            self._cache.clear()

    def cleanup(self) -> int:
        """
        Remove every expired record.

        Returns:
            Number of records removed.
        """
        with self._lock:
            now = time.time()
            expired = [k for k, entry in self._cache.items() if self._is_expired(entry, now)]
            for key in expired:
                del self._cache[key]
        return len(expired)

    def stats(self) -> CacheStats:
        with self._lock:
            return CacheStats(
                size=len(self._cache),
                max_entries=self.max_entries,
                ttl_seconds=self.ttl_seconds,
                hits=self._hits,
                misses=self._misses,
            )
