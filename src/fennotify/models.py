"""Data models for the fennotify package."""

import os
import stat
from dataclasses import dataclass
from enum import Enum
from typing import Any, Tuple


Timespec = Tuple[int, int]


class Op(Enum):
    """Portable file system operations reported to consumers."""
    CREATE = "create"
    WRITE = "write"
    REMOVE = "remove"
    RENAME = "rename"
    CHMOD = "chmod"

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class Event:
    """
    A single file system change.
    
    Attributes:
        path: Path of the affected file, as it was added (or as found in a
            watched directory)
        op: The operation that triggered the event
    """
    path: str
    op: Op

    def __str__(self) -> str:
        return f"{self.path!r}: {self.op}"


def _split_ns(ns: int) -> Timespec:
    return divmod(ns, 1_000_000_000)


@dataclass(frozen=True)
class FileObj:
    """
    Registration handle for one watched path, mirroring ``struct file_obj``.
    
    The timestamps are a snapshot taken when the path was (re-)associated.
    The port compares them with the current ones and reports a change
    immediately if they already differ.
    
    Attributes:
        name: Path being watched
        atime: Last access time as (seconds, nanoseconds)
        mtime: Last modification time as (seconds, nanoseconds)
        ctime: Last status change time as (seconds, nanoseconds)
    """
    name: str
    atime: Timespec = (0, 0)
    mtime: Timespec = (0, 0)
    ctime: Timespec = (0, 0)

    @classmethod
    def from_stat(cls, name: str, st: os.stat_result) -> "FileObj":
        """Build a handle from a stat snapshot."""
        return cls(
            name=name,
            atime=_split_ns(st.st_atime_ns),
            mtime=_split_ns(st.st_mtime_ns),
            ctime=_split_ns(st.st_ctime_ns),
        )

    def changed(self, st: os.stat_result) -> Tuple[bool, bool, bool]:
        """Return which of (atime, mtime, ctime) differ from ``st``."""
        return (
            self.atime != _split_ns(st.st_atime_ns),
            self.mtime != _split_ns(st.st_mtime_ns),
            self.ctime != _split_ns(st.st_ctime_ns),
        )


@dataclass(frozen=True)
class FileInfo:
    """User payload associated with a registration: the cached file mode."""
    mode: int

    @property
    def is_dir(self) -> bool:
        return stat.S_ISDIR(self.mode)


@dataclass(frozen=True)
class PortEvent:
    """
    A notification retrieved from an event port.
    
    Attributes:
        events: Event bitmask (FILE_* constants for PORT_SOURCE_FILE)
        source: Event source (PORT_SOURCE_* constant)
        object: The associated object; a FileObj for PORT_SOURCE_FILE
        user: The user payload given at association time
    """
    events: int
    source: int
    object: Any
    user: Any = None
