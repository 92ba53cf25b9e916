"""
Remote directory service protocol definition.

Defines the read-only interface that both XRDFSClient and SFTPClient
implement, allowing the explorer engine to work with either transport.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from .models import DirectoryEntry, FileInfo


@runtime_checkable
class RemoteClient(Protocol):
    """Protocol defining the remote directory service interface.

    Any class implementing these methods can back an XRootDExplorer,
    regardless of the underlying transport (xrdfs, SFTP, etc.).
    """

    def connect(self) -> None:
        """Establish connection to the remote server."""
        ...

    def disconnect(self) -> None:
        """Close connection to the remote server."""
        ...

    def list_dir(self, path: str) -> list[DirectoryEntry]:
        """List the immediate children of a directory.

        Args:
            path: Absolute remote path.

        Returns:
            List of DirectoryEntry objects, one per child.

        Raises:
            FileNotFoundError: If path does not exist.
            PermissionError: If access denied.
            OSError: For any other transport failure.
        """
        ...

    def get_file_info(self, path: str) -> FileInfo:
        """Get metadata for a single file or directory.

        Args:
            path: Absolute remote path.

        Returns:
            FileInfo object.

        Raises:
            FileNotFoundError: If path does not exist.
        """
        ...

    def read_file(self, path: str, offset: int = 0, length: int | None = None) -> bytes:
        """Read bytes from a file.

        Args:
            path: Absolute remote path.
            offset: Byte offset to start reading from.
            length: Number of bytes to read (None for rest of file).

        Returns:
            File content as bytes.
        """
        ...
