"""Shared fixtures for storediag tests.

Provides an in-memory FileSystem whose operations can be made to fail.
"""

import io
import posixpath
from typing import BinaryIO, Iterator, Optional

import pytest

from storediag.config import Configuration
from storediag.filesystem import FileStatus, FileSystem
from storediag.uri import StoreURI


class _MemoryOutputStream(io.BytesIO):
    def __init__(self, filesystem: "MemoryFileSystem", path: str):
        super().__init__()
        self._filesystem = filesystem
        self._path = path

    def close(self) -> None:
        if not self.closed:
            self._filesystem.files[self._path] = self.getvalue()
        super().close()


class MemoryFileSystem(FileSystem):
    """In-memory FileSystem recording calls, with per-operation failures.

    Set ``failures[operation]`` or ``failures[(operation, path)]`` to an
    exception to make an operation raise. ``read_override`` replaces the
    data returned by ``open``; ``delete_result`` the result of deleting a file.
    """

    def __init__(self, uri: StoreURI, configuration: Optional[Configuration] = None):
        super().__init__(uri, configuration)
        self.files: dict[str, bytes] = {}
        self.directories: set[str] = {"/"}
        self.failures: dict = {}
        self.read_override: Optional[bytes] = None
        self.delete_result: Optional[bool] = None
        self.calls: list[tuple[str, str]] = []

    def _record(self, operation: str, path: str) -> None:
        self.calls.append((operation, path))
        failure = self.failures.get((operation, path), self.failures.get(operation))
        if failure is not None:
            raise failure

    def _children(self, path: str) -> Iterator[FileStatus]:
        for directory in sorted(self.directories):
            if directory != path and posixpath.dirname(directory) == path:
                yield FileStatus(path=directory, is_directory=True)
        for file_path, data in sorted(self.files.items()):
            if posixpath.dirname(file_path) == path:
                yield FileStatus(path=file_path, size=len(data))

    def list(self, path: str) -> Iterator[FileStatus]:
        self._record("list", path)
        if path not in self.directories:
            raise FileNotFoundError(path)
        return iter(list(self._children(path)))

    def list_files(self, path: str, recursive: bool = True) -> Iterator[FileStatus]:
        self._record("list_files", path)
        prefix = path.rstrip("/") + "/"
        for file_path, data in sorted(self.files.items()):
            if not file_path.startswith(prefix):
                continue
            if not recursive and posixpath.dirname(file_path) != path.rstrip("/"):
                continue
            yield FileStatus(path=file_path, size=len(data))

    def mkdirs(self, path: str) -> bool:
        self._record("mkdirs", path)
        while path not in self.directories:
            self.directories.add(path)
            path = posixpath.dirname(path)
        return True

    def create(self, path: str, overwrite: bool = True) -> BinaryIO:
        self._record("create", path)
        return _MemoryOutputStream(self, path)

    def open(self, path: str) -> BinaryIO:
        self._record("open", path)
        if path not in self.files:
            raise FileNotFoundError(path)
        data = self.read_override if self.read_override is not None else self.files[path]
        return io.BytesIO(data)

    def delete(self, path: str, recursive: bool = False) -> bool:
        self._record("delete", path)
        if self.delete_result is not None and path in self.files:
            return self.delete_result
        if path in self.files:
            del self.files[path]
            return True
        if path in self.directories:
            nested = [p for p in list(self.files) + list(self.directories) if p.startswith(path + "/")]
            if nested and not recursive:
                raise OSError(f"Directory {path} is not empty")
            for p in nested:
                self.files.pop(p, None)
                self.directories.discard(p)
            self.directories.discard(path)
            return True
        return False

    def count(self, operation: str) -> int:
        return sum(1 for op, _ in self.calls if op == operation)


@pytest.fixture
def memory_fs() -> MemoryFileSystem:
    """A fresh in-memory filesystem for ``mem://store/``."""
    return MemoryFileSystem(StoreURI.parse("mem://store/"))


@pytest.fixture
def memory_factory(memory_fs: MemoryFileSystem):
    """A filesystem factory that always returns ``memory_fs``."""

    def factory(uri: StoreURI, configuration: Configuration) -> FileSystem:
        return memory_fs

    return factory


@pytest.fixture
def fixed_name():
    """Scratch name factory producing a predictable directory name."""
    return lambda: "0000"
