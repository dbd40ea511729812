"""
Tests for the mountpoint helpers.
"""

import os
import threading
import time
from pathlib import Path
from unittest.mock import patch

import pytest

from onedriver_launcher.mounts import (
    XDG_VOLUME_INFO,
    MountStatus,
    is_valid_mountpoint,
    list_known_mounts,
    read_account_name,
    wait_until_ready,
)
from onedriver_launcher.systemd import escape_path


class TestWaitUntilReady:
    def test_ready_immediately(self, tmp_path: Path) -> None:
        (tmp_path / XDG_VOLUME_INFO).write_text("Name=Jane Doe\n")
        assert wait_until_ready(tmp_path, timeout=1) is MountStatus.READY

    def test_missing_directory(self, tmp_path: Path) -> None:
        """A mountpoint that can't be opened returns without waiting."""
        start = time.monotonic()
        status = wait_until_ready(tmp_path / "missing", timeout=5)
        assert status is MountStatus.NOT_PRESENT
        assert time.monotonic() - start < 1

    def test_times_out(self, tmp_path: Path) -> None:
        """Without the volume info file the wait ends after the timeout."""
        start = time.monotonic()
        status = wait_until_ready(tmp_path, timeout=1)
        elapsed = time.monotonic() - start
        assert status is MountStatus.TIMED_OUT
        assert 0.5 < elapsed < 3

    def test_ready_once_file_appears(self, tmp_path: Path) -> None:
        timer = threading.Timer(
            0.3, lambda: (tmp_path / XDG_VOLUME_INFO).write_text("Name=x\n")
        )
        timer.start()
        try:
            start = time.monotonic()
            status = wait_until_ready(tmp_path, timeout=10)
            assert status is MountStatus.READY
            assert time.monotonic() - start < 5
        finally:
            timer.cancel()

    def test_default_timeout(self, tmp_path: Path) -> None:
        """None and -1 both mean 120 seconds, polled every 100ms."""
        for timeout in (None, -1):
            with patch("onedriver_launcher.mounts.time.sleep") as mock_sleep:
                status = wait_until_ready(tmp_path, timeout=timeout)
            assert status is MountStatus.TIMED_OUT
            assert mock_sleep.call_count == 120 * 10 - 1
            mock_sleep.assert_called_with(0.1)

    def test_cancelled(self, tmp_path: Path) -> None:
        cancel = threading.Event()
        cancel.set()
        status = wait_until_ready(tmp_path, timeout=10, cancel=cancel)
        assert status is MountStatus.CANCELLED

    def test_unused_cancel_event(self, tmp_path: Path) -> None:
        """An event that is never set does not change the outcome."""
        with patch("onedriver_launcher.mounts.time.sleep"):
            status = wait_until_ready(tmp_path, timeout=2, cancel=threading.Event())
        assert status is MountStatus.TIMED_OUT

    def test_zero_timeout(self, tmp_path: Path) -> None:
        assert wait_until_ready(tmp_path, timeout=0) is MountStatus.TIMED_OUT


class TestReadAccountName:
    def test_reads_name(self, tmp_path: Path) -> None:
        (tmp_path / XDG_VOLUME_INFO).write_text(
            "[Volume Info]\nName=Jane Doe\nIconFile=.onedriver.png\n"
        )
        assert read_account_name(tmp_path) == "Jane Doe"

    def test_single_line(self, tmp_path: Path) -> None:
        (tmp_path / XDG_VOLUME_INFO).write_text("Name=Jane Doe\n")
        assert read_account_name(str(tmp_path)) == "Jane Doe"

    def test_no_trailing_newline(self, tmp_path: Path) -> None:
        (tmp_path / XDG_VOLUME_INFO).write_text("Name=jane@example.com")
        assert read_account_name(tmp_path) == "jane@example.com"

    def test_crlf(self, tmp_path: Path) -> None:
        (tmp_path / XDG_VOLUME_INFO).write_bytes(b"Name=Jane Doe\r\n")
        assert read_account_name(tmp_path) == "Jane Doe"

    def test_empty_name(self, tmp_path: Path) -> None:
        (tmp_path / XDG_VOLUME_INFO).write_text("Name=\n")
        assert read_account_name(tmp_path) == ""

    def test_no_name_line(self, tmp_path: Path) -> None:
        (tmp_path / XDG_VOLUME_INFO).write_text("[Volume Info]\nIconFile=x.png\n")
        assert read_account_name(tmp_path) is None

    def test_empty_file(self, tmp_path: Path) -> None:
        (tmp_path / XDG_VOLUME_INFO).write_text("")
        assert read_account_name(tmp_path) is None

    def test_undecodable_name(self, tmp_path: Path) -> None:
        """Bytes that aren't UTF-8 are replaced instead of failing."""
        (tmp_path / XDG_VOLUME_INFO).write_bytes(b"Name=\xff\n")
        assert read_account_name(tmp_path) == "\ufffd"

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            read_account_name(tmp_path)


class TestIsValidMountpoint:
    def test_empty_directory(self, tmp_path: Path) -> None:
        assert is_valid_mountpoint(tmp_path) is True
        assert is_valid_mountpoint(str(tmp_path)) is True

    def test_directory_with_file(self, tmp_path: Path) -> None:
        (tmp_path / "file").write_text("data")
        assert is_valid_mountpoint(tmp_path) is False

    def test_directory_with_hidden_file(self, tmp_path: Path) -> None:
        (tmp_path / ".hidden").write_text("data")
        assert is_valid_mountpoint(tmp_path) is False

    def test_directory_with_subdirectory(self, tmp_path: Path) -> None:
        (tmp_path / "sub").mkdir()
        assert is_valid_mountpoint(tmp_path) is False

    def test_missing(self, tmp_path: Path) -> None:
        assert is_valid_mountpoint(tmp_path / "missing") is False

    def test_regular_file(self, tmp_path: Path) -> None:
        f = tmp_path / "file"
        f.write_text("data")
        assert is_valid_mountpoint(f) is False

    def test_empty_and_none(self) -> None:
        assert is_valid_mountpoint("") is False
        assert is_valid_mountpoint(None) is False


class TestListKnownMounts:
    def test_missing_cache_dir(self, tmp_path: Path) -> None:
        assert list_known_mounts(tmp_path / "missing") == []

    def test_empty_cache_dir(self, tmp_path: Path) -> None:
        assert list_known_mounts(tmp_path) == []

    def test_finds_existing_mount(self, tmp_path: Path) -> None:
        mountpoint = tmp_path / "mnt" / "My OneDrive"
        mountpoint.mkdir(parents=True)
        cache = tmp_path / "cache"
        (cache / escape_path(str(mountpoint))).mkdir(parents=True)

        assert list_known_mounts(cache) == [str(mountpoint)]

    def test_skips_vanished_mounts(self, tmp_path: Path) -> None:
        cache = tmp_path / "cache"
        (cache / escape_path(str(tmp_path / "gone"))).mkdir(parents=True)
        assert list_known_mounts(cache) == []

    def test_skips_entries_with_null_bytes(self, tmp_path: Path) -> None:
        """A name that unescapes to an impossible path is skipped."""
        cache = tmp_path / "cache"
        (cache / "home-a\\x00b").mkdir(parents=True)
        assert list_known_mounts(cache) == []

    def test_skips_symlinked_entries(self, tmp_path: Path) -> None:
        """Only real folders in the cache directory count."""
        mountpoint = tmp_path / "mnt"
        mountpoint.mkdir()
        cache = tmp_path / "cache"
        cache.mkdir()
        (cache / escape_path(str(mountpoint))).symlink_to(tmp_path)
        assert list_known_mounts(cache) == []

    def test_skips_mounts_that_are_files(self, tmp_path: Path) -> None:
        target = tmp_path / "afile"
        target.write_text("data")
        cache = tmp_path / "cache"
        (cache / escape_path(str(target))).mkdir(parents=True)
        assert list_known_mounts(cache) == []

    def test_skips_hidden_and_file_entries(self, tmp_path: Path) -> None:
        mountpoint = tmp_path / "mnt"
        mountpoint.mkdir()
        cache = tmp_path / "cache"
        cache.mkdir()
        (cache / ("." + escape_path(str(mountpoint)))).mkdir()
        (cache / escape_path(str(mountpoint))).write_text("not a dir")
        (cache / "auth_tokens.json").write_text("{}")

        assert list_known_mounts(cache) == []

    def test_many_mounts(self, tmp_path: Path) -> None:
        """There is no limit on how many mounts are returned."""
        cache = tmp_path / "cache"
        expected = set()
        for i in range(25):
            mountpoint = tmp_path / "mnt" / f"drive{i}"
            mountpoint.mkdir(parents=True)
            (cache / escape_path(str(mountpoint))).mkdir(parents=True)
            expected.add(str(mountpoint))

        assert set(list_known_mounts(cache)) == expected

    def test_default_cache_dir(self, tmp_path: Path) -> None:
        mountpoint = tmp_path / "OneDrive"
        mountpoint.mkdir()
        cache = tmp_path / "xdg" / "onedriver"
        (cache / escape_path(str(mountpoint))).mkdir(parents=True)

        with patch.dict(os.environ, {"XDG_CACHE_HOME": str(tmp_path / "xdg")}):
            assert list_known_mounts() == [str(mountpoint)]
