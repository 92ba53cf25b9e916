"""
Sandboxed, cached query engine over a remote directory service.

XRootDExplorer is the surface a front-end talks to: every operation takes a
logical path, resolves it inside the base directory, and answers from the
listing cache or the remote service.
"""

from __future__ import annotations

import logging
from datetime import datetime
from functools import wraps

from . import aggregation, hierarchy
from .cache import DEFAULT_MAX_ENTRIES, DEFAULT_TTL_SECONDS, CacheStats, ListingCache
from .config import AppConfig
from .errors import NotFound, RemoteReadError, RemoteStatError
from .janitor import DEFAULT_INTERVAL_SECONDS, CacheJanitor
from .models import (
    Campaign,
    Dataset,
    DatasetDiscovery,
    DirectoryEntry,
    DirectoryStatistics,
    FileFilter,
    FileInfo,
    RecentChangesSummary,
    SearchResult,
)
from .remote_client import RemoteClient
from .sandbox import PathSandbox
from .walker import DirectoryWalker

logger = logging.getLogger(__name__)

DEFAULT_RECO_PATH = "RECO"


def operation(fn):
    """Decorator for engine operations - logs the outcome of each call."""
    name = fn.__name__

    @wraps(fn)
    def wrapper(self, *args, **kwargs):
        try:
            result = fn(self, *args, **kwargs)
            logger.debug("%s: OK", name)
            return result
        except Exception as exc:
            logger.debug("%s: FAIL - %s", name, exc)
            raise

    return wrapper


def create_client(config: AppConfig) -> RemoteClient:
    """Build the remote client selected by config.protocol."""
    if config.protocol == "sftp":
        from .sftp_client import SFTPClient

        return SFTPClient(config.ssh, config.connection)

    from .xrdfs_client import XRDFSClient

    return XRDFSClient(config.xrootd, config.connection)


class XRootDExplorer:
    """
    Read-only explorer confined to a base directory.

    Owns the sandbox, the listing cache and its janitor. Only directory
    listings are cached; stat and read calls always go to the remote service.
    """

    def __init__(
        self,
        client: RemoteClient,
        base_directory: str = "/",
        cache_enabled: bool = True,
        cache_ttl_seconds: float = DEFAULT_TTL_SECONDS,
        cache_max_entries: int = DEFAULT_MAX_ENTRIES,
        janitor_interval_seconds: float = DEFAULT_INTERVAL_SECONDS,
        start_janitor: bool = True,
    ):
        self.client = client
        self.sandbox = PathSandbox(base_directory)
        self.cache: ListingCache | None = None
        self.janitor: CacheJanitor | None = None

        if cache_enabled:
            self.cache = ListingCache(ttl_seconds=cache_ttl_seconds, max_entries=cache_max_entries)
            self.janitor = CacheJanitor(self.cache, janitor_interval_seconds)
            if start_janitor:
                self.janitor.start()

        self.walker = DirectoryWalker(client, self.cache)
        logger.info(
            "Explorer ready: base=%s cache=%s",
            self.sandbox.base_directory,
            "on" if cache_enabled else "off",
        )

    @classmethod
    def from_config(
        cls, config: AppConfig, client: RemoteClient | None = None, start_janitor: bool = True
    ) -> XRootDExplorer:
        """Build an explorer (and, unless given, its remote client) from AppConfig."""
        return cls(
            client if client is not None else create_client(config),
            base_directory=config.base_directory,
            cache_enabled=config.cache.enabled,
            cache_ttl_seconds=config.cache.ttl_seconds,
            cache_max_entries=config.cache.max_entries,
            start_janitor=start_janitor,
        )

    @property
    def base_directory(self) -> str:
        return self.sandbox.base_directory

    def close(self) -> None:
        """Stop the cache janitor. The remote client is left to its owner."""
        if self.janitor is not None:
            self.janitor.stop()

    def __enter__(self) -> XRootDExplorer:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def resolve(self, path: str) -> str:
        return self.sandbox.resolve(path)

    # Passthroughs

    @operation
    def list_directory(self, path: str, use_cache: bool = True) -> list[DirectoryEntry]:
        return self.walker.list(self.resolve(path), use_cache=use_cache)

    @operation
    def get_file_info(self, path: str) -> FileInfo:
        """
        Stat a path on the remote service (never cached).

        Raises:
            AccessDenied: If the path is outside the base directory.
            NotFound: If the path does not exist.
            RemoteStatError: For any other remote failure.
        """
        resolved = self.resolve(path)
        try:
            return self.client.get_file_info(resolved)
        except FileNotFoundError as e:
            raise NotFound(resolved, "stat", e) from e
        except OSError as e:
            raise RemoteStatError(resolved, e) from e

    @operation
    def read_file(self, path: str, start: int | None = None, end: int | None = None) -> bytes:
        """
        Read a whole file or the byte range [start, end) (never cached).

        Raises:
            AccessDenied: If the path is outside the base directory.
            NotFound: If the file does not exist.
            RemoteReadError: For any other remote failure.
        """
        resolved = self.resolve(path)
        offset = start or 0
        length = None if end is None else max(end - offset, 0)
        try:
            return self.client.read_file(resolved, offset, length)
        except FileNotFoundError as e:
            raise NotFound(resolved, "read", e) from e
        except OSError as e:
            raise RemoteReadError(resolved, e) from e

    @operation
    def file_exists(self, path: str) -> bool:
        """
        False only when the remote service says the path does not exist.

        Any other stat failure is raised as RemoteStatError instead of being
        reported as a missing path, so the CLI's ``exists`` command prints an
        error object for it rather than false.
        """
        try:
            self.get_file_info(path)
        except NotFound:
            return False
        return True

    # Aggregations

    @operation
    def get_directory_size(self, path: str) -> int:
        return aggregation.directory_size(self.walker, self.resolve(path))

    @operation
    def search_files(
        self,
        pattern: str,
        base_path: str = ".",
        recursive: bool = True,
        use_regex: bool = False,
    ) -> list[SearchResult]:
        return aggregation.search_files(
            self.walker, pattern, self.resolve(base_path), recursive, use_regex
        )

    @operation
    def get_statistics(self, path: str, recursive: bool = True) -> DirectoryStatistics:
        return aggregation.collect_statistics(self.walker, self.resolve(path), recursive)

    @operation
    def list_directory_filtered(
        self, path: str, file_filter: FileFilter | None = None, **filters
    ) -> list[DirectoryEntry]:
        """
        Single-level listing restricted by a FileFilter.

        Criteria may be passed as a FileFilter or as keyword arguments
        (extension, min_size, max_size, modified_after, modified_before,
        name_pattern).
        """
        if file_filter is None:
            file_filter = FileFilter(**filters)
        return aggregation.filter_listing(self.walker, self.resolve(path), file_filter)

    @operation
    def find_recent_files(
        self, path: str, hours: float = 24, recursive: bool = True, now: datetime | None = None
    ) -> list[SearchResult]:
        return aggregation.find_recent_files(
            self.walker, self.resolve(path), hours, recursive, now=now
        )

    @operation
    def summarize_recent_changes(
        self, path: str, hours: float = 24, now: datetime | None = None
    ) -> RecentChangesSummary:
        return aggregation.summarize_recent_changes(
            self.walker, self.resolve(path), hours, now=now
        )

    # Campaign/dataset discovery

    @operation
    def list_campaigns(self, reco_path: str = DEFAULT_RECO_PATH) -> list[Campaign]:
        return hierarchy.list_campaigns(self.walker, self.resolve(reco_path))

    @operation
    def discover_datasets(
        self, campaign: str, reco_path: str = DEFAULT_RECO_PATH
    ) -> DatasetDiscovery:
        campaign_path = self.resolve(f"{reco_path.rstrip('/')}/{campaign}")
        return hierarchy.discover_datasets(self.walker, campaign_path)

    def list_datasets(self, campaign: str, reco_path: str = DEFAULT_RECO_PATH) -> list[Dataset]:
        return self.discover_datasets(campaign, reco_path).datasets

    # Cache management

    def get_cache_stats(self) -> CacheStats | None:
        return self.cache.stats() if self.cache is not None else None

    def clear_cache(self) -> None:
        if self.cache is not None:
            self.cache.clear()
            logger.info("Listing cache cleared")

    def invalidate(self, path: str) -> None:
        """Drop the cached listing of one directory."""
        if self.cache is not None:
            self.cache.invalidate(self.resolve(path))
