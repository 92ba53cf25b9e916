"""
XRootD client implementation driven by the xrdfs and xrdcp command-line tools.

Each call runs one command against the configured server and parses its
output into the same types SFTPClient returns.
"""

import logging
import re
import shutil
import subprocess
from datetime import datetime

from .config import ConnectionConfig, XRootDConfig
from .models import DirectoryEntry, FileInfo, local_time

logger = logging.getLogger(__name__)

MAX_ERROR = 1024  # Maximum length of command stderr kept in error messages
TIME_FORMAT = "%Y-%m-%d %H:%M:%S"

# drwxrwxr-x owner group size date time path
LS_LINE = re.compile(
    r"^([-d])([rwx-]{9})\s+(\S+)\s+(\S+)\s+(\d+)\s+"
    r"(\d{4}-\d{2}-\d{2}\s+\d{2}:\d{2}:\d{2})\s+(.+)$"
)
STAT_SIZE = re.compile(r"Size:\s+(\d+)")
STAT_MTIME = re.compile(r"(?:ModTime|MTime):\s+(.+)")
STAT_IS_DIR = re.compile(r"IsDir:\s+(true|false)", re.IGNORECASE)
STAT_FLAGS = re.compile(r"Flags:\s+(.+)")
STAT_MODE = re.compile(r"Mode:\s+(\S+)")

# XRootD error codes: kXR_NotAuthorized, kXR_NotFound
NOT_AUTHORIZED = "[3010]"
NOT_FOUND = "[3011]"


def parse_time(value: str) -> datetime | None:
    value = " ".join(value.split())
    try:
        return datetime.strptime(value, TIME_FORMAT)
    except ValueError:
        pass
    try:
        return local_time(datetime.fromisoformat(value))
    except ValueError:
        logger.debug("Unparseable timestamp: %r", value)
        return None


def parse_listing(output: str) -> list[DirectoryEntry]:
    """Parse ``xrdfs ls -l`` output into directory entries."""
    entries = []
    for line in output.splitlines():
        line = line.strip()
        if not line:
            continue

        match = LS_LINE.match(line)
        if match:
            kind, _perms, _owner, _group, size, date_str, full_path = match.groups()
            full_path = full_path.strip().rstrip("/")
            entries.append(
                DirectoryEntry(
                    name=full_path.rsplit("/", 1)[-1] or full_path,
                    is_dir=kind == "d",
                    size=int(size),
                    mtime=parse_time(date_str),
                )
            )
            continue

        # Unrecognized layout: keep the name, nothing else is reliable
        full_path = line.split()[-1].rstrip("/")
        name = full_path.rsplit("/", 1)[-1] or full_path
        if name:
            entries.append(DirectoryEntry(name=name, is_dir=False))
    return entries


def parse_stat(path: str, output: str) -> FileInfo:
    """Parse ``xrdfs stat`` output into a FileInfo."""
    size_match = STAT_SIZE.search(output)
    mtime_match = STAT_MTIME.search(output)
    is_dir_match = STAT_IS_DIR.search(output)
    flags_match = STAT_FLAGS.search(output)
    mode_match = STAT_MODE.search(output)

    if is_dir_match:
        is_dir = is_dir_match.group(1).lower() == "true"
    elif flags_match:
        is_dir = "IsDir" in flags_match.group(1)
    else:
        is_dir = False

    return FileInfo(
        path=path,
        size=int(size_match.group(1)) if size_match else 0,
        mtime=parse_time(mtime_match.group(1)) if mtime_match else None,
        is_dir=is_dir,
        permissions=mode_match.group(1) if mode_match else None,
    )


class XRDFSClient:
    """
    Read-only XRootD client that shells out to xrdfs/xrdcp.

    Keeps no connection of its own; every call is a separate command, so the
    client is safe to share between threads.
    """

    def __init__(self, xrootd_config: XRootDConfig, conn_config: ConnectionConfig):
        self.xrootd_config = xrootd_config
        self.conn_config = conn_config
        self.server = xrootd_config.server.rstrip("/")

    def connect(self) -> None:
        """Check that the command-line tools are installed."""
        for binary in (self.xrootd_config.xrdfs_binary, self.xrootd_config.xrdcp_binary):
            if shutil.which(binary) is None:
                raise ConnectionError(f"{binary} not found on PATH; install the XRootD client")
        logger.info("Using XRootD server %s", self.server)

    def disconnect(self) -> None:
        """Nothing to close; present for RemoteClient compatibility."""

    def url(self, path: str) -> str:
        """Full root:// URL for an absolute path."""
        return f"{self.server}/{path}"

    def _run(self, args: list[str], path: str) -> bytes:
        logger.debug("Running: %s", " ".join(args))
        try:
            result = subprocess.run(
                args, capture_output=True, timeout=self.conn_config.timeout_seconds
            )
        except FileNotFoundError as e:
            # The binary is missing, not the remote path
            raise OSError(f"{args[0]} not found: {e}") from e
        except subprocess.TimeoutExpired as e:
            raise TimeoutError(
                f"{args[0]} timed out after {self.conn_config.timeout_seconds}s"
            ) from e

        if result.returncode != 0:
            raise self._translate_error(result.stderr, path)
        return result.stdout

    def _translate_error(self, stderr: bytes, path: str) -> Exception:
        """Translate xrdfs/xrdcp failure output to standard Python exceptions."""
        message = stderr.decode("utf-8", errors="replace").strip()[:MAX_ERROR]
        lowered = message.lower()
        if NOT_FOUND in message or "no such file" in lowered:
            return FileNotFoundError(f"No such file or directory: {path}")
        if NOT_AUTHORIZED in message or "permission denied" in lowered:
            return PermissionError(f"Permission denied: {path}")
        return OSError(message or f"command failed for {path}")

    def list_dir(self, path: str) -> list[DirectoryEntry]:
        """List the immediate children of a directory."""
        output = self._run(
            [self.xrootd_config.xrdfs_binary, self.server, "ls", "-l", path], path
        )
        entries = parse_listing(output.decode("utf-8", errors="replace"))
        logger.debug("Listed %d entries in %s", len(entries), path)
        return entries

    def get_file_info(self, path: str) -> FileInfo:
        """Get metadata for a single file or directory."""
        output = self._run([self.xrootd_config.xrdfs_binary, self.server, "stat", path], path)
        return parse_stat(path, output.decode("utf-8", errors="replace"))

    def read_file(self, path: str, offset: int = 0, length: int | None = None) -> bytes:
        """Read bytes from a file, optionally a byte range, via xrdcp to stdout."""
        args = [self.xrootd_config.xrdcp_binary]
        if offset or length is not None:
            end = "" if length is None else str(offset + length)
            args += ["--range", f"{offset}:{end}"]
        args += [self.url(path), "-"]

        data = self._run(args, path)
        logger.debug("Read %d bytes from %s", len(data), path)
        return data
