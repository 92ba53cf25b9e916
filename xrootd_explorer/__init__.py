__version__ = "0.1.0"

# Public API exports
from .cache import CacheStats, ListingCache
from .config import (
    AppConfig,
    CacheConfig,
    ConnectionConfig,
    LogConfig,
    SSHConfig,
    XRootDConfig,
    load_config,
)
from .errors import (
    AccessDenied,
    ExplorerError,
    InvalidPattern,
    NotFound,
    RemoteError,
    RemoteListError,
    RemoteReadError,
    RemoteStatError,
)
from .explorer import XRootDExplorer, create_client
from .janitor import CacheJanitor
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
from .xrdfs_client import XRDFSClient


def get_sftp_client():
    """Lazy loader for SFTPClient.

    Returns the SFTPClient class, importing it on first use so that
    importing xrootd_explorer does not require paramiko to be importable.
    """
    from .sftp_client import SFTPClient

    return SFTPClient


__all__ = [
    "__version__",
    # Configuration
    "AppConfig",
    "XRootDConfig",
    "SSHConfig",
    "CacheConfig",
    "ConnectionConfig",
    "LogConfig",
    "load_config",
    # Engine
    "XRootDExplorer",
    "PathSandbox",
    "DirectoryWalker",
    "ListingCache",
    "CacheStats",
    "CacheJanitor",
    "create_client",
    # Clients
    "RemoteClient",
    "XRDFSClient",
    "get_sftp_client",
    # Models
    "Campaign",
    "Dataset",
    "DatasetDiscovery",
    "DirectoryEntry",
    "DirectoryStatistics",
    "FileFilter",
    "FileInfo",
    "RecentChangesSummary",
    "SearchResult",
    # Errors
    "ExplorerError",
    "AccessDenied",
    "InvalidPattern",
    "NotFound",
    "RemoteError",
    "RemoteListError",
    "RemoteStatError",
    "RemoteReadError",
]
