"""Local filesystem implementation for ``file://`` URIs and bare paths."""

import os
import shutil
from pathlib import Path
from typing import BinaryIO, Iterator

from storediag.filesystem.base import FileStatus, FileSystem


class LocalFileSystem(FileSystem):
    """FileSystem over the local disk; store paths are OS paths."""

    def list(self, path: str) -> Iterator[FileStatus]:
        with os.scandir(path) as entries:
            for entry in entries:
                is_dir = entry.is_dir(follow_symlinks=False)
                size = 0 if is_dir else entry.stat(follow_symlinks=False).st_size
                yield FileStatus(path=entry.path, size=size, is_directory=is_dir)

    def list_files(self, path: str, recursive: bool = True) -> Iterator[FileStatus]:
        root = Path(path)
        if root.is_file():
            yield FileStatus(path=str(root), size=root.stat().st_size)
            return
        if not root.exists():
            raise FileNotFoundError(f"No such file or directory: {path}")

        if not recursive:
            for status in self.list(path):
                if not status.is_directory:
                    yield status
            return

        for dirpath, dirnames, filenames in os.walk(path):
            dirnames.sort()
            for name in sorted(filenames):
                file_path = os.path.join(dirpath, name)
                yield FileStatus(path=file_path, size=os.path.getsize(file_path))

    def mkdirs(self, path: str) -> bool:
        os.makedirs(path, exist_ok=True)
        return True

    def create(self, path: str, overwrite: bool = True) -> BinaryIO:
        Path(path).parent.mkdir(parents=True, exist_ok=True)
        return open(path, "wb" if overwrite else "xb")

    def open(self, path: str) -> BinaryIO:
        return open(path, "rb")

    def delete(self, path: str, recursive: bool = False) -> bool:
        target = Path(path)
        if not target.exists() and not target.is_symlink():
            return False
        if target.is_dir() and not target.is_symlink():
            if recursive:
                shutil.rmtree(target)
            else:
                target.rmdir()
        else:
            target.unlink()
        return True
