"""Filesystem capability interface used by the smoke test and listing tools."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import BinaryIO, Iterator, Optional

from storediag.config import Configuration
from storediag.uri import StoreURI


class FileSystemError(OSError):
    """Raised when a store operation fails for transport or permission reasons."""

    pass


@dataclass(frozen=True)
class FileStatus:
    """An entry returned by a listing."""

    path: str
    size: int = 0
    is_directory: bool = False


class FileSystem(ABC):
    """Abstract filesystem bound to a store URI.

    Paths are absolute within the store (``/dir/file``). All operations
    raise ``OSError`` (usually ``FileSystemError``) on failure.
    """

    def __init__(self, uri: StoreURI, configuration: Optional[Configuration] = None):
        self.uri = uri
        self.configuration = configuration if configuration is not None else Configuration()

    @abstractmethod
    def list(self, path: str) -> Iterator[FileStatus]:
        """Lazily list the immediate children of a directory."""
        pass

    @abstractmethod
    def list_files(self, path: str, recursive: bool = True) -> Iterator[FileStatus]:
        """Lazily list the files (not directories) under a path."""
        pass

    @abstractmethod
    def mkdirs(self, path: str) -> bool:
        """Create a directory and any missing parents."""
        pass

    @abstractmethod
    def create(self, path: str, overwrite: bool = True) -> BinaryIO:
        """Create a file, returning a writable binary stream.

        The data is only guaranteed to be visible once the stream is closed.
        """
        pass

    @abstractmethod
    def open(self, path: str) -> BinaryIO:
        """Open a file for reading."""
        pass

    @abstractmethod
    def delete(self, path: str, recursive: bool = False) -> bool:
        """Delete a file or directory.

        Returns:
            True if something was deleted, False if the path did not exist.
        """
        pass

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.uri.root})"
