"""
Recursive queries built on the directory walker.

Every function takes a sandbox-resolved path. The caller's own directory may
be served from the listing cache where noted; every level reached by descent
is listed fresh, so one scan never mixes cached and live subtrees below its
root. Traversal is depth-first and sequential with no visited set: the remote
hierarchy is assumed to be a tree. The first remote failure aborts the whole
query; partial results are discarded.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterator
from datetime import datetime, timedelta

from .errors import InvalidPattern
from .models import (
    DirectoryEntry,
    DirectoryStatistics,
    ExtensionTally,
    FileFilter,
    FileMarker,
    RecentChangesSummary,
    SearchResult,
    file_extension,
    local_time,
)
from .sandbox import PathSandbox
from .walker import DirectoryWalker

logger = logging.getLogger(__name__)

# Stand-in for entries the remote service reports without a timestamp
EPOCH = datetime(1970, 1, 1)


def glob_to_regex(pattern: str) -> re.Pattern:
    """
    Compile a filename glob into a regex meant for fullmatch().

    Only "*" (any run of characters) and "?" (one character) are special;
    everything else matches literally.
    """
    escaped = re.escape(pattern).replace(r"\*", ".*").replace(r"\?", ".")
    return re.compile(escaped, re.DOTALL)


def compile_regex(pattern: str) -> re.Pattern:
    try:
        return re.compile(pattern)
    except re.error as e:
        raise InvalidPattern(pattern, e) from e


def walk(
    walker: DirectoryWalker, path: str, recursive: bool = True, use_cache: bool = False
) -> Iterator[tuple[str, DirectoryEntry]]:
    """
    Yield (full_path, entry) for every entry below path, depth first.

    Each entry is yielded before its subtree is listed. Only the top-level
    listing honours use_cache.
    """
    for entry in walker.list(path, use_cache=use_cache):
        full_path = PathSandbox.join(path, entry.name)
        yield full_path, entry
        if recursive and entry.is_dir:
            yield from walk(walker, full_path, recursive=True, use_cache=False)


def _result(full_path: str, entry: DirectoryEntry) -> SearchResult:
    return SearchResult(
        path=full_path, size=entry.size or 0, mtime=entry.mtime, is_dir=entry.is_dir
    )


def directory_size(walker: DirectoryWalker, path: str) -> int:
    """Total bytes of every file below path."""
    return sum(
        entry.size or 0
        for _, entry in walk(walker, path, recursive=True, use_cache=True)
        if not entry.is_dir
    )


def search_files(
    walker: DirectoryWalker,
    pattern: str,
    path: str,
    recursive: bool = True,
    use_regex: bool = False,
) -> list[SearchResult]:
    """
    Find entries whose filename matches a glob or a regular expression.

    Glob search without recursion filters a single listing and reports files
    and directories alike; recursive glob search reports files only. Regex
    search uses the pattern verbatim (unanchored) and reports matching
    directories too, descending one level only when recursive is False.
    """
    if use_regex:
        regex = compile_regex(pattern)
        return [
            _result(full_path, entry)
            for full_path, entry in walk(walker, path, recursive=recursive)
            if regex.search(entry.name)
        ]

    matcher = glob_to_regex(pattern)
    if not recursive:
        return [
            _result(full_path, entry)
            for full_path, entry in walk(walker, path, recursive=False, use_cache=True)
            if matcher.fullmatch(entry.name)
        ]
    return [
        _result(full_path, entry)
        for full_path, entry in walk(walker, path, recursive=True)
        if not entry.is_dir and matcher.fullmatch(entry.name)
    ]


def collect_statistics(
    walker: DirectoryWalker, path: str, recursive: bool = True
) -> DirectoryStatistics:
    """Counts, sizes, per-extension totals and notable files below path."""
    stats = DirectoryStatistics()

    for full_path, entry in walk(walker, path, recursive=recursive):
        if entry.is_dir:
            stats.total_directories += 1
            continue

        size = entry.size or 0
        mtime = entry.mtime or EPOCH
        stats.total_files += 1
        stats.total_size += size
        ext = file_extension(entry.name)
        stats.size_by_extension.setdefault(ext, ExtensionTally()).add(size)

        # strict comparisons: ties keep the first file seen
        if stats.oldest_file is None or mtime < stats.oldest_file.mtime:
            stats.oldest_file = FileMarker(path=full_path, mtime=mtime)
        if stats.newest_file is None or mtime > stats.newest_file.mtime:
            stats.newest_file = FileMarker(path=full_path, mtime=mtime)
        if stats.largest_file is None or size > stats.largest_file.size:
            stats.largest_file = FileMarker(path=full_path, size=size)

    return stats


def matches_filter(entry: DirectoryEntry, file_filter: FileFilter) -> bool:
    """True when the entry satisfies every criterion set on the filter."""
    if file_filter.extension and not entry.name.endswith(file_filter.extension):
        return False

    size = entry.size or 0
    if file_filter.min_size is not None and size < file_filter.min_size:
        return False
    if file_filter.max_size is not None and size > file_filter.max_size:
        return False

    # entries without a timestamp pass the time filters
    after = local_time(file_filter.modified_after)
    before = local_time(file_filter.modified_before)
    if after and entry.mtime and entry.mtime < after:
        return False
    if before and entry.mtime and entry.mtime > before:
        return False

    if file_filter.name_pattern:
        return glob_to_regex(file_filter.name_pattern).fullmatch(entry.name) is not None
    return True


def filter_listing(
    walker: DirectoryWalker, path: str, file_filter: FileFilter
) -> list[DirectoryEntry]:
    """Single-level listing of path restricted to entries matching the filter."""
    return [entry for entry in walker.list(path) if matches_filter(entry, file_filter)]


def find_recent_files(
    walker: DirectoryWalker,
    path: str,
    hours: float = 24,
    recursive: bool = True,
    now: datetime | None = None,
) -> list[SearchResult]:
    """Files modified within the last ``hours`` hours, in traversal order."""
    cutoff = (local_time(now) or datetime.now()) - timedelta(hours=hours)
    logger.debug("Scanning %s for files modified since %s", path, cutoff.isoformat())
    return [
        _result(full_path, entry)
        for full_path, entry in walk(walker, path, recursive=recursive)
        if not entry.is_dir and (entry.mtime or EPOCH) >= cutoff
    ]


def summarize_recent_changes(
    walker: DirectoryWalker, path: str, hours: float = 24, now: datetime | None = None
) -> RecentChangesSummary:
    """Aggregate the recent files of a whole subtree, newest first."""
    recent = find_recent_files(walker, path, hours=hours, recursive=True, now=now)
    recent.sort(key=lambda r: r.mtime or EPOCH, reverse=True)

    summary = RecentChangesSummary(total_files_added=len(recent), recent_files=recent)
    for result in recent:
        summary.total_size_added += result.size

        ext = file_extension(result.name)
        summary.files_by_extension[ext] = summary.files_by_extension.get(ext, 0) + 1
        summary.size_by_extension[ext] = summary.size_by_extension.get(ext, 0) + result.size

        directory = result.parent
        summary.files_by_directory[directory] = summary.files_by_directory.get(directory, 0) + 1

    return summary
