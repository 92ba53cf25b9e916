"""
Read-only SFTP backend for data areas exported over SSH.

Maps paramiko's SFTPAttributes onto DirectoryEntry and FileInfo, and lets
the errno-carrying errors paramiko raises (FileNotFoundError for a missing
path, PermissionError for a forbidden one) reach the walker and explorer
unchanged, so the engine behaves the same over SFTP as over xrdfs.
"""

import logging
import os
import stat
import threading
import time
from datetime import datetime
from pathlib import Path

import paramiko

from .config import ConnectionConfig, SSHConfig
from .models import DirectoryEntry, FileInfo

logger = logging.getLogger(__name__)


class TrustOnFirstUsePolicy(paramiko.MissingHostKeyPolicy):
    """Record unknown host keys; refuse a key that differs from the recorded one."""

    def __init__(self, known_hosts: Path | None = None):
        self.known_hosts = known_hosts or Path.home() / ".ssh" / "known_hosts"

    def missing_host_key(self, client, hostname, key):
        host_keys = client.get_host_keys()
        recorded = (host_keys.lookup(hostname) or {}).get(key.get_name())
        if recorded is not None and recorded != key:
            raise paramiko.BadHostKeyException(hostname, key, recorded)

        logger.info("Recording %s host key for %s", key.get_name(), hostname)
        host_keys.add(hostname, key.get_name(), key)
        try:
            self.known_hosts.parent.mkdir(parents=True, exist_ok=True)
            host_keys.save(str(self.known_hosts))
        except OSError as e:
            logger.warning("Could not update %s: %s", self.known_hosts, e)


def entry_from_attributes(name: str, attr: paramiko.SFTPAttributes) -> DirectoryEntry:
    # st_mtime of 0 means the server did not report one
    return DirectoryEntry(
        name=name,
        is_dir=stat.S_ISDIR(attr.st_mode or 0),
        size=attr.st_size,
        mtime=datetime.fromtimestamp(attr.st_mtime) if attr.st_mtime else None,
    )


def info_from_attributes(path: str, attr: paramiko.SFTPAttributes) -> FileInfo:
    entry = entry_from_attributes(path.rsplit("/", 1)[-1], attr)
    return FileInfo(
        path=path,
        size=entry.size or 0,
        mtime=entry.mtime,
        is_dir=entry.is_dir,
        permissions=stat.filemode(attr.st_mode) if attr.st_mode else None,
    )


class SFTPClient:
    """
    RemoteClient over one SSH connection and its SFTP channel.

    Requests are serialized on a lock because a paramiko SFTP channel does
    not multiplex concurrent calls. The session opens on first use and is
    reopened when its transport drops; transport failures are retried up to
    ConnectionConfig.retry_attempts times, missing or forbidden paths never.
    """

    def __init__(self, ssh_config: SSHConfig, conn_config: ConnectionConfig):
        self.ssh_config = ssh_config
        self.conn_config = conn_config
        self._ssh: paramiko.SSHClient | None = None
        self._sftp: paramiko.SFTPClient | None = None
        self._lock = threading.Lock()

    def connect(self) -> None:
        """Open the session now instead of on the first request."""
        with self._lock:
            self._session()

    def disconnect(self) -> None:
        with self._lock:
            self._close()
        logger.debug("SFTP session to %s closed", self.ssh_config.host)

    def _auth_kwargs(self) -> dict:
        """Key file wins over password; with neither, agent and default keys are tried."""
        cfg = self.ssh_config
        kwargs = {"username": cfg.username, "allow_agent": cfg.use_agent, "look_for_keys": True}
        if cfg.key_file:
            kwargs["key_filename"] = os.path.expanduser(cfg.key_file)
            kwargs["passphrase"] = cfg.key_passphrase
        elif cfg.password:
            kwargs["password"] = cfg.password
            kwargs["look_for_keys"] = False
        return kwargs

    def _open(self) -> None:
        cfg = self.ssh_config
        policy = TrustOnFirstUsePolicy()
        ssh = paramiko.SSHClient()
        ssh.load_system_host_keys()
        if policy.known_hosts.exists():
            ssh.load_host_keys(str(policy.known_hosts))
        ssh.set_missing_host_key_policy(policy)

        logger.debug("Opening SFTP session to %s:%d", cfg.host, cfg.port)
        try:
            ssh.connect(
                cfg.host,
                port=cfg.port,
                timeout=self.conn_config.timeout_seconds,
                **self._auth_kwargs(),
            )
            sftp = ssh.open_sftp()
        except paramiko.AuthenticationException as e:
            ssh.close()
            raise PermissionError(f"SSH authentication failed for {cfg.host}: {e}") from e
        except (OSError, paramiko.SSHException) as e:
            ssh.close()
            raise ConnectionError(
                f"Could not open SFTP session to {cfg.host}:{cfg.port}: {e}"
            ) from e

        self._ssh, self._sftp = ssh, sftp
        logger.info("Connected to SFTP server %s:%d", cfg.host, cfg.port)

    def _close(self) -> None:
        for handle in (self._sftp, self._ssh):
            if handle is None:
                continue
            try:
                handle.close()
            except (OSError, paramiko.SSHException) as e:
                logger.debug("Error closing SFTP session: %s", e)
        self._sftp = None
        self._ssh = None

    def _session(self) -> paramiko.SFTPClient:
        """Live SFTP channel. Caller holds the lock."""
        transport = self._ssh.get_transport() if self._ssh is not None else None
        if self._sftp is None or transport is None or not transport.is_active():
            self._close()
            self._open()
        return self._sftp

    def _call(self, path: str, request):
        attempts = max(self.conn_config.retry_attempts, 1)
        for attempt in range(1, attempts + 1):
            with self._lock:
                try:
                    return request(self._session())
                except (FileNotFoundError, PermissionError):
                    raise
                except (OSError, paramiko.SSHException) as e:
                    failure = e
                    self._close()

            logger.warning(
                "SFTP request for %s failed (attempt %d/%d): %s", path, attempt, attempts, failure
            )
            if attempt < attempts:
                time.sleep(self.conn_config.retry_delay_seconds)

        raise OSError(
            f"SFTP request for {path} failed after {attempts} attempts: {failure}"
        ) from failure

    def list_dir(self, path: str) -> list[DirectoryEntry]:
        """List the immediate children of a directory."""

        def request(sftp: paramiko.SFTPClient) -> list[DirectoryEntry]:
            return [
                entry_from_attributes(attr.filename, attr)
                for attr in sftp.listdir_attr(path)
                if attr.filename not in (".", "..")
            ]

        entries = self._call(path, request)
        logger.debug("Listed %d entries in %s", len(entries), path)
        return entries

    def get_file_info(self, path: str) -> FileInfo:
        return self._call(path, lambda sftp: info_from_attributes(path, sftp.stat(path)))

    def read_file(self, path: str, offset: int = 0, length: int | None = None) -> bytes:
        """Read the whole file, or length bytes from offset."""

        def request(sftp: paramiko.SFTPClient) -> bytes:
            with sftp.open(path, "rb") as handle:
                if offset:
                    handle.seek(offset)
                return handle.read(length)

        data = self._call(path, request)
        logger.debug("Read %d bytes from %s", len(data), path)
        return data
