"""End-to-end filesystem smoke test.

Runs a fixed sequence of operations against a disposable scratch
directory under the store root:

1. list-root             - list the root, count the entries
2. create-directory      - mkdirs dir-<uuid>
3. create-file           - write a marker payload to dir-<uuid>/file
4. list-directory        - list the scratch directory
5. read-file-and-verify  - read the file back, compare with the marker
6. delete-file           - delete the file
7. delete-directory      - recursive delete of the scratch directory

The first failure among stages 1-6 skips the rest of them. Stage 7 is
always attempted, from a ``finally`` block, and its outcome never changes
whether the smoke test passed.
"""

import logging
import uuid
from typing import Any, Callable, Iterable, Optional, Union

from storediag.config import Configuration, ConfigurationError
from storediag.filesystem import FileSystem, FileSystemError, get_filesystem
from storediag.models import CLEANUP_STAGE, ResultStatus, SmokeTestReport, StageResult
from storediag.timing import Duration
from storediag.uri import StoreURI

log = logging.getLogger(__name__)

LIST_ROOT = "list-root"
CREATE_DIRECTORY = "create-directory"
CREATE_FILE = "create-file"
LIST_DIRECTORY = "list-directory"
READ_FILE = "read-file-and-verify"
DELETE_FILE = "delete-file"
DELETE_DIRECTORY = CLEANUP_STAGE

SMOKE_TEST_STAGES = (
    LIST_ROOT,
    CREATE_DIRECTORY,
    CREATE_FILE,
    LIST_DIRECTORY,
    READ_FILE,
    DELETE_FILE,
    DELETE_DIRECTORY,
)

MARKER_PAYLOAD = b"Hello"
SCRATCH_FILE_NAME = "file"

FileSystemFactory = Callable[[StoreURI, Configuration], FileSystem]


class StageFailure(Exception):
    """A stage's operation completed but produced the wrong result."""

    pass


class ContentMismatch(StageFailure):
    """The file read back does not hold what was written."""

    def __init__(self, path: str, expected: bytes, actual: bytes):
        self.expected = expected.decode("utf-8", errors="replace")
        self.actual = actual.decode("utf-8", errors="replace")
        super().__init__(
            f"Expected {path} to contain the text {self.expected} "
            f"-but it has the text \"{self.actual}\""
        )


def count_entries(entries: Iterable[Any]) -> int:
    """Count a lazily produced listing without keeping it in memory."""
    return sum(1 for _ in entries)


class SmokeTestRunner:
    """Runs the smoke test stages against a store.

    Args:
        filesystem_factory: Creates the filesystem for a URI and configuration
        reporter: Optional reporter for per-stage callbacks
        name_factory: Produces the unique part of the scratch directory name
    """

    def __init__(
        self,
        filesystem_factory: FileSystemFactory = get_filesystem,
        reporter: Optional[Any] = None,
        name_factory: Callable[[], str] = lambda: str(uuid.uuid4()),
    ):
        self.filesystem_factory = filesystem_factory
        self.reporter = reporter
        self.name_factory = name_factory

    def run(self, configuration: Configuration, target: Union[str, StoreURI]) -> SmokeTestReport:
        """Run all stages against the store holding ``target``.

        Returns:
            SmokeTestReport with one StageResult per stage, in stage order.
        """
        store_uri = StoreURI.parse(target) if isinstance(target, str) else target

        try:
            filesystem = self.filesystem_factory(store_uri, configuration)
        except (FileSystemError, ConfigurationError) as e:
            log.error("Cannot bind filesystem for %s: %s", store_uri, e)
            stages = tuple(self._skipped(name) for name in SMOKE_TEST_STAGES)
            for stage in stages:
                self._notify(stage)
            return SmokeTestReport(
                target=str(store_uri),
                stages=stages,
                error_message=f"Cannot bind filesystem: {e}",
            )

        return self._run_stages(filesystem, store_uri)

    def _run_stages(self, fs: FileSystem, store_uri: StoreURI) -> SmokeTestReport:
        root = store_uri.root
        scratch = root.child(f"dir-{self.name_factory()}")
        file = scratch.child(SCRATCH_FILE_NAME)
        root_entries: Optional[int] = None

        def list_root() -> str:
            nonlocal root_entries
            root_entries = count_entries(fs.list(root.path))
            return f"{root} root entry count: {root_entries}"

        def create_directory() -> str:
            fs.mkdirs(scratch.path)
            return f"created {scratch}"

        def create_file() -> str:
            with fs.create(file.path, overwrite=True) as out:
                out.write(MARKER_PAYLOAD)
            return f"wrote {len(MARKER_PAYLOAD)} bytes to {file}"

        def list_directory() -> str:
            return f"{count_entries(fs.list(scratch.path))} entries in {scratch}"

        def read_file() -> str:
            with fs.open(file.path) as stream:
                data = stream.read()
            if data != MARKER_PAYLOAD:
                raise ContentMismatch(str(file), MARKER_PAYLOAD, data)
            return f"read {len(data)} bytes from {file}"

        def delete_file() -> str:
            if not fs.delete(file.path, recursive=False):
                raise StageFailure(f"{file} was not deleted")
            return f"deleted {file}"

        operations = (
            (LIST_ROOT, f"Listing {root}", list_root),
            (CREATE_DIRECTORY, f"Creating a directory {scratch}", create_directory),
            (CREATE_FILE, f"Creating a file {file}", create_file),
            (LIST_DIRECTORY, f"Listing {scratch}", list_directory),
            (READ_FILE, f"Reading a file {file}", read_file),
            (DELETE_FILE, f"Deleting file {file}", delete_file),
        )

        stages: list[StageResult] = []
        failed = False
        try:
            for name, description, operation in operations:
                if failed:
                    result = self._skipped(name)
                else:
                    result = self._run_stage(name, description, operation)
                    failed = result.status == ResultStatus.FAIL
                stages.append(result)
                self._notify(result)
        finally:
            cleanup = self._delete_scratch_directory(fs, scratch)
            stages.append(cleanup)
            self._notify(cleanup)

        return SmokeTestReport(
            target=str(store_uri),
            stages=tuple(stages),
            scratch_directory=str(scratch),
            root_entry_count=root_entries,
        )

    def _run_stage(self, name: str, description: str, operation: Callable[[], str]) -> StageResult:
        """Run one stage, turning I/O errors and bad results into a FAIL."""
        duration = Duration(log, description).start()
        try:
            detail = operation()
        except ContentMismatch as e:
            log.error("%s failed: %s", description, e)
            return StageResult(
                stage=name,
                status=ResultStatus.FAIL,
                elapsed_seconds=duration.finish(),
                error_message=str(e),
                expected=e.expected,
                actual=e.actual,
            )
        except (StageFailure, OSError) as e:
            log.error("%s failed: %s", description, e)
            return StageResult(
                stage=name,
                status=ResultStatus.FAIL,
                elapsed_seconds=duration.finish(),
                error_message=f"{type(e).__name__}: {e}",
            )
        return StageResult(
            stage=name,
            status=ResultStatus.PASS,
            elapsed_seconds=duration.finish(),
            detail=detail,
        )

    def _delete_scratch_directory(self, fs: FileSystem, scratch: StoreURI) -> StageResult:
        """Recursively delete the scratch directory; failures are only warned about."""
        duration = Duration(log, "Deleting directory %s", scratch).start()
        try:
            deleted = fs.delete(scratch.path, recursive=True)
        except Exception as e:
            log.warning("When deleting %s: %s", scratch, e, exc_info=True)
            return StageResult(
                stage=DELETE_DIRECTORY,
                status=ResultStatus.FAIL,
                elapsed_seconds=duration.finish(),
                error_message=f"{type(e).__name__}: {e}",
            )
        return StageResult(
            stage=DELETE_DIRECTORY,
            status=ResultStatus.PASS,
            elapsed_seconds=duration.finish(),
            detail=f"deleted {scratch}" if deleted else f"nothing to delete at {scratch}",
        )

    @staticmethod
    def _skipped(name: str) -> StageResult:
        return StageResult(stage=name, status=ResultStatus.SKIPPED)

    def _notify(self, stage: StageResult) -> None:
        if self.reporter:
            self.reporter.on_stage_complete(stage)
