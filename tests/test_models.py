"""Tests for models and constants modules."""

import os
import stat
from dataclasses import FrozenInstanceError

import pytest

from src.fennotify.constants import (
    FILE_ATTRIB,
    FILE_DELETE,
    FILE_MODIFIED,
    describe_events,
)
from src.fennotify.models import Event, FileInfo, FileObj, Op


class TestOp:
    """Tests for Op enum."""

    def test_values(self):
        assert Op.CREATE.value == "create"
        assert Op.WRITE.value == "write"
        assert Op.REMOVE.value == "remove"
        assert Op.RENAME.value == "rename"
        assert Op.CHMOD.value == "chmod"

    def test_str(self):
        assert str(Op.WRITE) == "WRITE"


class TestEvent:
    """Tests for Event class."""

    def test_create_event(self):
        event = Event("/tmp/a.txt", Op.CREATE)
        assert event.path == "/tmp/a.txt"
        assert event.op == Op.CREATE

    def test_is_immutable(self):
        event = Event("/tmp/a.txt", Op.WRITE)
        with pytest.raises(FrozenInstanceError):
            event.path = "/tmp/b.txt"

    def test_equality(self):
        assert Event("/a", Op.WRITE) == Event("/a", Op.WRITE)
        assert Event("/a", Op.WRITE) != Event("/a", Op.CHMOD)

    def test_str(self):
        assert str(Event("/tmp/a.txt", Op.RENAME)) == "'/tmp/a.txt': RENAME"


class TestFileObj:
    """Tests for FileObj class."""

    def test_from_stat(self, tmp_path):
        path = tmp_path / "file.txt"
        path.write_text("hello")
        st = os.stat(path)
        
        fobj = FileObj.from_stat(str(path), st)
        
        assert fobj.name == str(path)
        assert fobj.atime == divmod(st.st_atime_ns, 1_000_000_000)
        assert fobj.mtime == divmod(st.st_mtime_ns, 1_000_000_000)
        assert fobj.ctime == divmod(st.st_ctime_ns, 1_000_000_000)
        assert 0 <= fobj.mtime[1] < 1_000_000_000

    def test_unchanged_snapshot(self, tmp_path):
        path = tmp_path / "file.txt"
        path.write_text("hello")
        st = os.stat(path)
        
        fobj = FileObj.from_stat(str(path), st)
        
        assert fobj.changed(st) == (False, False, False)

    def test_changed_mtime(self, tmp_path):
        path = tmp_path / "file.txt"
        path.write_text("hello")
        fobj = FileObj.from_stat(str(path), os.stat(path))
        
        st = os.stat(path)
        os.utime(path, ns=(st.st_atime_ns, st.st_mtime_ns + 5_000_000_000))
        
        _, mtime_changed, _ = fobj.changed(os.stat(path))
        assert mtime_changed is True

    def test_default_timestamps(self):
        fobj = FileObj("/a")
        assert fobj.atime == (0, 0)
        assert fobj.mtime == (0, 0)
        assert fobj.ctime == (0, 0)


class TestFileInfo:
    """Tests for FileInfo class."""

    def test_directory(self):
        assert FileInfo(stat.S_IFDIR | 0o755).is_dir is True

    def test_regular_file(self):
        assert FileInfo(stat.S_IFREG | 0o644).is_dir is False


class TestDescribeEvents:
    """Tests for describe_events."""

    def test_single(self):
        assert describe_events(FILE_DELETE) == "FILE_DELETE"

    def test_combined(self):
        assert describe_events(FILE_MODIFIED | FILE_ATTRIB) == "FILE_MODIFIED|FILE_ATTRIB"

    def test_unknown_bits(self):
        assert describe_events(0x800) == "0x800"

    def test_empty(self):
        assert describe_events(0) == "0"
