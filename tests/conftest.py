"""
Shared pytest fixtures for xrootd-explorer tests.
"""

from collections.abc import Generator
from datetime import datetime
from pathlib import Path

import pytest

from xrootd_explorer.config import CacheConfig, ConnectionConfig, XRootDConfig
from xrootd_explorer.explorer import XRootDExplorer
from xrootd_explorer.models import DirectoryEntry, FileInfo

MTIME = datetime(2024, 1, 15, 10, 30, 0)


class FakeRemote:
    """
    In-memory remote directory service.

    Built from nested dicts: a dict value is a directory, an int is a file
    size, and a (size, mtime) tuple is a file with an explicit timestamp.
    Every call is recorded in ``calls``; paths in ``failures`` raise the
    mapped exception.
    """

    def __init__(self, tree: dict | None = None, root: str = "/data"):
        self.listings: dict[str, list[DirectoryEntry]] = {}
        self.contents: dict[str, bytes] = {}
        self.failures: dict[str, Exception] = {}
        self.calls: list[tuple[str, str]] = []
        if tree is not None:
            self.add_tree(root, tree)

    def add_tree(self, path: str, tree: dict) -> None:
        entries = []
        for name, value in tree.items():
            child = f"{path.rstrip('/')}/{name}"
            if isinstance(value, dict):
                entries.append(DirectoryEntry(name=name, is_dir=True, size=4096, mtime=MTIME))
                self.add_tree(child, value)
            elif isinstance(value, tuple):
                size, mtime = value
                entries.append(DirectoryEntry(name=name, is_dir=False, size=size, mtime=mtime))
            else:
                entries.append(DirectoryEntry(name=name, is_dir=False, size=value, mtime=MTIME))
        self.listings[path] = entries

    def list_calls(self) -> list[str]:
        return [path for op, path in self.calls if op == "list_dir"]

    def connect(self) -> None:
        pass

    def disconnect(self) -> None:
        pass

    def _check(self, op: str, path: str) -> None:
        self.calls.append((op, path))
        if path in self.failures:
            raise self.failures[path]

    def list_dir(self, path: str) -> list[DirectoryEntry]:
        self._check("list_dir", path)
        if path not in self.listings:
            raise FileNotFoundError(f"No such file or directory: {path}")
        return list(self.listings[path])

    def get_file_info(self, path: str) -> FileInfo:
        self._check("get_file_info", path)
        if path in self.listings:
            return FileInfo(path=path, size=4096, mtime=MTIME, is_dir=True)
        parent, _, name = path.rpartition("/")
        for entry in self.listings.get(parent or "/", []):
            if entry.name == name:
                return FileInfo(
                    path=path, size=entry.size or 0, mtime=entry.mtime, is_dir=entry.is_dir
                )
        raise FileNotFoundError(f"No such file or directory: {path}")

    def read_file(self, path: str, offset: int = 0, length: int | None = None) -> bytes:
        self._check("read_file", path)
        if path not in self.contents:
            raise FileNotFoundError(f"No such file or directory: {path}")
        data = self.contents[path][offset:]
        return data if length is None else data[:length]


@pytest.fixture
def sample_tree() -> dict:
    """A small data area with nested directories and mixed extensions."""
    return {
        "reports": {
            "q1": {
                "summary.txt": 120,
                "numbers.csv": 300,
            },
        },
        "RECO": {
            "24.10.0": {
                "epic_craterlake": {
                    "DIS": {
                        "NC_10x100": {"rec_1.root": 1000, "rec_2.root": 1500},
                        "CC_18x275": {"rec_1.root": 2000},
                    },
                    "SIDIS": {
                        "pythia6": {"rec_1.root": 500},
                    },
                },
            },
            "24.09.1": {
                "epic_brycecanyon": {"DVCS": {"ep_10x100": {}}},
            },
            "README": 42,
        },
        "a.root": 10,
    }


@pytest.fixture
def fake_remote(sample_tree: dict) -> FakeRemote:
    """FakeRemote rooted at /data holding the sample tree."""
    return FakeRemote(sample_tree)


@pytest.fixture
def explorer(fake_remote: FakeRemote) -> Generator[XRootDExplorer, None, None]:
    """Explorer over the fake remote, sandboxed to /data, janitor not started."""
    engine = XRootDExplorer(fake_remote, base_directory="/data", start_janitor=False)
    yield engine
    engine.close()


@pytest.fixture
def xrootd_config() -> XRootDConfig:
    return XRootDConfig(server="root://test.xrootd.local")


@pytest.fixture
def conn_config() -> ConnectionConfig:
    """Creates a standard ConnectionConfig for testing."""
    return ConnectionConfig(
        timeout_seconds=30,
        retry_attempts=3,
        retry_delay_seconds=0,  # No delay in tests
    )


@pytest.fixture
def cache_config() -> CacheConfig:
    return CacheConfig(enabled=True, ttl_minutes=60, max_entries=1000)


@pytest.fixture
def tmp_config_file(tmp_path: Path) -> Generator[Path, None, None]:
    """
    Creates a temporary INI configuration file for config tests.

    Returns:
        Path to the temporary config file.
    """
    config_content = """[general]
protocol = xrootd
base_directory = /volatile/eic/EPIC/

[xrootd]
server = root://dtn-eic.jlab.org/
xrdfs_binary = /opt/xrootd/bin/xrdfs

[cache]
enabled = true
ttl_minutes = 30
max_entries = 500

[connection]
timeout_seconds = 45
retry_attempts = 5
retry_delay_seconds = 2

[logging]
level = DEBUG
file = test.log
console = false
"""
    config_path = tmp_path / "test_config.ini"
    config_path.write_text(config_content, encoding="utf-8")
    yield config_path


@pytest.fixture
def minimal_config_file(tmp_path: Path) -> Generator[Path, None, None]:
    """
    Creates a minimal INI configuration file with only required fields.

    Returns:
        Path to the temporary config file.
    """
    config_path = tmp_path / "minimal_config.ini"
    config_path.write_text("[xrootd]\nserver = root://minimal.server\n", encoding="utf-8")
    yield config_path
