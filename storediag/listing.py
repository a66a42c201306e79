"""Listing of all files under a path, with timing and size totals."""

import logging
from dataclasses import dataclass
from typing import Callable, Optional

from storediag.filesystem import FileStatus, FileSystem
from storediag.timing import Duration

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class ListingSummary:
    """Totals of a file listing."""

    path: str
    files: int
    total_bytes: int
    elapsed_seconds: float
    first_entry_seconds: Optional[float] = None

    @property
    def millis_per_file(self) -> float:
        return self.elapsed_seconds * 1000 / self.files if self.files else 0.0

    @property
    def bytes_per_file(self) -> int:
        return self.total_bytes // self.files if self.files else 0


def list_files(
    filesystem: FileSystem,
    path: str,
    recursive: bool = True,
    on_entry: Optional[Callable[[int, FileStatus], None]] = None,
) -> ListingSummary:
    """List the files under ``path``.

    Args:
        filesystem: Filesystem to list
        path: Path within the store
        recursive: Descend into subdirectories
        on_entry: Called with the 1-based index and status of each file

    Returns:
        ListingSummary with file count, total size and timings.

    Raises:
        OSError: If the listing fails.
    """
    files = 0
    total_bytes = 0
    first_entry: Optional[float] = None

    with Duration(log, "Directory list %s", path) as duration:
        for status in filesystem.list_files(path, recursive=recursive):
            files += 1
            if files == 1:
                first_entry = duration.elapsed
                log.info("First listing: %.3fs", first_entry)
            total_bytes += status.size
            if on_entry:
                on_entry(files, status)

    return ListingSummary(
        path=path,
        files=files,
        total_bytes=total_bytes,
        elapsed_seconds=duration.elapsed,
        first_entry_seconds=first_entry,
    )
