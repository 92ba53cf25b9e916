from __future__ import annotations

import logging

from .cache import ListingCache
from .errors import NotFound, RemoteError, RemoteListError
from .models import DirectoryEntry
from .remote_client import RemoteClient

logger = logging.getLogger(__name__)


class DirectoryWalker:
    """
    Single-level listing primitive shared by every traversal.

    Consults the listing cache when asked to, otherwise lists exactly one
    directory on the remote service. Recursive callers pass use_cache=False
    for every level below the one the caller asked about.
    """

    def __init__(self, client: RemoteClient, cache: ListingCache | None = None):
        self.client = client
        self.cache = cache

    def list(self, path: str, use_cache: bool = True) -> list[DirectoryEntry]:
        """
        List a resolved directory path.

        Args:
            path: Sandbox-resolved absolute path.
            use_cache: Serve from and store into the listing cache.

        Returns:
            The directory's entries.

        Raises:
            NotFound: If the remote service reports the path does not exist.
            RemoteListError: For any other remote failure.
        """
        caching = use_cache and self.cache is not None
        if caching:
            cached = self.cache.get(path)
            if cached is not None:
                logger.debug("Cache hit for %s", path)
                return cached

        logger.debug("Listing %s on remote", path)
        try:
            entries = self.client.list_dir(path)
        except FileNotFoundError as e:
            raise NotFound(path, "list", e) from e
        except OSError as e:
            raise RemoteListError(path, e) from e

        if caching:
            self.cache.put(path, entries)
        return entries

    def try_list(self, path: str, use_cache: bool = True) -> list[DirectoryEntry] | None:
        """Like list(), but returns None when the remote service reports a failure."""
        try:
            return self.list(path, use_cache)
        except RemoteError as e:
            logger.debug("Listing %s failed: %s", path, e)
            return None
