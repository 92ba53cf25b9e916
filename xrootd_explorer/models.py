"""
Data types shared by the remote clients, the walker and the aggregation code.

All aggregate results are plain dataclasses computed per call. ``to_dict``
renders them with ISO-8601 timestamps for JSON output.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

NO_EXTENSION = "no-extension"


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def local_time(value: datetime | None) -> datetime | None:
    """
    Naive local time for any datetime.

    Listing timestamps carry no zone. Offset-qualified values, whether
    from callers or from remote output, are converted to local time and
    stripped so they compare with listing timestamps.
    """
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone().replace(tzinfo=None)


def file_extension(name: str) -> str:
    """Lowercase suffix after the last dot of a filename, or the no-extension bucket."""
    if "." not in name:
        return NO_EXTENSION
    return name.rsplit(".", 1)[1].lower()


@dataclass(frozen=True)
class DirectoryEntry:
    """One child of a listed directory, as reported by the remote service."""

    name: str
    is_dir: bool
    size: int | None = None
    mtime: datetime | None = None

    def __post_init__(self):
        object.__setattr__(self, "mtime", local_time(self.mtime))

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "is_dir": self.is_dir,
            "size": self.size,
            "mtime": _iso(self.mtime),
        }


@dataclass
class FileInfo:
    """Metadata for a single path (stat passthrough)."""

    path: str
    size: int
    mtime: datetime | None
    is_dir: bool
    permissions: str | None = None

    def __post_init__(self):
        self.mtime = local_time(self.mtime)

    def to_dict(self) -> dict[str, Any]:
        return {
            "path": self.path,
            "size": self.size,
            "mtime": _iso(self.mtime),
            "is_dir": self.is_dir,
            "permissions": self.permissions,
        }


@dataclass
class SearchResult:
    path: str
    size: int
    mtime: datetime | None
    is_dir: bool

    @property
    def name(self) -> str:
        return self.path.rsplit("/", 1)[-1]

    @property
    def parent(self) -> str:
        parent = self.path.rsplit("/", 1)[0]
        return parent or "/"

    def to_dict(self) -> dict[str, Any]:
        return {
            "path": self.path,
            "size": self.size,
            "mtime": _iso(self.mtime),
            "is_dir": self.is_dir,
        }


@dataclass
class ExtensionTally:
    count: int = 0
    size: int = 0

    def add(self, size: int) -> None:
        self.count += 1
        self.size += size


@dataclass
class FileMarker:
    """Pointer to a notable file found while collecting statistics."""

    path: str
    mtime: datetime | None = None
    size: int | None = None


@dataclass
class DirectoryStatistics:
    total_files: int = 0
    total_directories: int = 0
    total_size: int = 0
    size_by_extension: dict[str, ExtensionTally] = field(default_factory=dict)
    oldest_file: FileMarker | None = None
    newest_file: FileMarker | None = None
    largest_file: FileMarker | None = None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "total_files": self.total_files,
            "total_directories": self.total_directories,
            "total_size": self.total_size,
            "size_by_extension": {
                ext: {"count": tally.count, "size": tally.size}
                for ext, tally in self.size_by_extension.items()
            },
        }
        if self.oldest_file is not None:
            result["oldest_file"] = {
                "path": self.oldest_file.path,
                "mtime": _iso(self.oldest_file.mtime),
            }
        if self.newest_file is not None:
            result["newest_file"] = {
                "path": self.newest_file.path,
                "mtime": _iso(self.newest_file.mtime),
            }
        if self.largest_file is not None:
            result["largest_file"] = {
                "path": self.largest_file.path,
                "size": self.largest_file.size,
            }
        return result


@dataclass
class FileFilter:
    """Optional criteria for a filtered single-level listing."""

    extension: str | None = None
    min_size: int | None = None
    max_size: int | None = None
    modified_after: datetime | None = None
    modified_before: datetime | None = None
    name_pattern: str | None = None


@dataclass
class RecentChangesSummary:
    total_files_added: int = 0
    total_size_added: int = 0
    files_by_extension: dict[str, int] = field(default_factory=dict)
    size_by_extension: dict[str, int] = field(default_factory=dict)
    files_by_directory: dict[str, int] = field(default_factory=dict)
    recent_files: list[SearchResult] = field(default_factory=list)

    def latest(self, count: int) -> list[SearchResult]:
        """The ``count`` most recently modified files."""
        return self.recent_files[:count]

    def top_directories(self, count: int) -> list[tuple[str, int]]:
        """Directories with the most recent files, busiest first."""
        return Counter(self.files_by_directory).most_common(count)

    def to_dict(self, limit: int | None = None) -> dict[str, Any]:
        files = self.recent_files if limit is None else self.latest(limit)
        return {
            "total_files_added": self.total_files_added,
            "total_size_added": self.total_size_added,
            "files_by_extension": dict(self.files_by_extension),
            "size_by_extension": dict(self.size_by_extension),
            "files_by_directory": dict(self.files_by_directory),
            "recent_files": [f.to_dict() for f in files],
        }


@dataclass
class Campaign:
    name: str
    path: str
    mtime: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "path": self.path, "mtime": _iso(self.mtime)}


@dataclass
class Dataset:
    name: str
    path: str
    file_count: int | None = None
    total_size: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "path": self.path,
            "file_count": self.file_count,
            "total_size": self.total_size,
        }


LAYOUT_HIERARCHY = "hierarchy"
LAYOUT_FLAT = "flat"


@dataclass
class DatasetDiscovery:
    """Outcome of a dataset walk: the full convention or the flat fallback."""

    campaign_path: str
    datasets: list[Dataset]
    layout: str = LAYOUT_HIERARCHY

    @property
    def is_fallback(self) -> bool:
        return self.layout == LAYOUT_FLAT

    def to_dict(self) -> dict[str, Any]:
        return {
            "campaign_path": self.campaign_path,
            "layout": self.layout,
            "datasets": [d.to_dict() for d in self.datasets],
        }
