"""Tests for the timed file listing."""

import pytest

from storediag.listing import ListingSummary, list_files


class TestListingSummary:
    """Tests for derived listing statistics."""

    def test_per_file_figures(self):
        """Averages are computed per file."""
        summary = ListingSummary(path="/", files=4, total_bytes=1000, elapsed_seconds=2.0)
        assert summary.millis_per_file == 500.0
        assert summary.bytes_per_file == 250

    def test_no_files(self):
        """Averages of an empty listing are zero."""
        summary = ListingSummary(path="/", files=0, total_bytes=0, elapsed_seconds=1.0)
        assert summary.millis_per_file == 0.0
        assert summary.bytes_per_file == 0


class TestListFiles:
    """Tests for list_files."""

    def test_counts_and_sizes(self, memory_fs):
        """Every file under the path is counted and sized."""
        memory_fs.files.update({"/data/a": b"12", "/data/sub/b": b"345", "/other/c": b"x"})

        summary = list_files(memory_fs, "/data")

        assert summary.files == 2
        assert summary.total_bytes == 5
        assert summary.first_entry_seconds is not None
        assert summary.elapsed_seconds >= summary.first_entry_seconds

    def test_not_recursive(self, memory_fs):
        """Non-recursive listing only sees the top level."""
        memory_fs.files.update({"/data/a": b"12", "/data/sub/b": b"345"})

        summary = list_files(memory_fs, "/data", recursive=False)

        assert summary.files == 1

    def test_entry_callback(self, memory_fs):
        """on_entry is called with a 1-based index for each file."""
        memory_fs.files.update({"/data/a": b"1", "/data/b": b"2"})
        seen = []

        list_files(memory_fs, "/data", on_entry=lambda i, status: seen.append((i, status.path)))

        assert seen == [(1, "/data/a"), (2, "/data/b")]

    def test_empty_listing(self, memory_fs):
        """An empty path has no first entry time."""
        summary = list_files(memory_fs, "/empty")

        assert summary.files == 0
        assert summary.first_entry_seconds is None

    def test_failure_propagates(self, memory_fs):
        """Listing errors reach the caller."""
        memory_fs.failures["list_files"] = PermissionError("denied")

        with pytest.raises(PermissionError):
            list_files(memory_fs, "/data")
