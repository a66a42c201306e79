"""Filesystem capability implementations, selected by URI scheme."""

from typing import Optional

from storediag.config import Configuration
from storediag.filesystem.base import FileStatus, FileSystem, FileSystemError
from storediag.filesystem.local import LocalFileSystem
from storediag.filesystem.s3 import S3FileSystem
from storediag.uri import StoreURI

FILESYSTEMS: dict[str, type[FileSystem]] = {
    "": LocalFileSystem,
    "file": LocalFileSystem,
    "s3a": S3FileSystem,
    "s3": S3FileSystem,
}


def get_filesystem(uri: StoreURI, configuration: Optional[Configuration] = None) -> FileSystem:
    """Create the filesystem for a store URI.

    Raises:
        FileSystemError: If no implementation handles the scheme or the
                         filesystem cannot be created.
        ConfigurationError: If a store option is malformed.
    """
    filesystem_class = FILESYSTEMS.get(uri.scheme)
    if filesystem_class is None:
        raise FileSystemError(f"No FileSystem for scheme \"{uri.scheme}\"")
    return filesystem_class(uri, configuration)


__all__ = [
    "FILESYSTEMS",
    "FileStatus",
    "FileSystem",
    "FileSystemError",
    "LocalFileSystem",
    "S3FileSystem",
    "get_filesystem",
]
