"""
fennotify

A file system change notifier built on the Solaris/illumos File Event
Notification (FEN) facility exposed through event ports.

Features:
- Watch files and directories (one level deep)
- Portable events: CREATE, WRITE, REMOVE, RENAME, CHMOD
- Automatic re-association of FEN's one-shot registrations
- Synthetic CREATE events for new directory entries
- Stat-polling port emulation where event ports are unavailable
"""

from .models import (
    Op,
    Event,
    FileObj,
    FileInfo,
    PortEvent,
)

from .config import WatcherConfig

from .exceptions import (
    WatcherError,
    PortError,
    PortCreationError,
    AlreadyClosedError,
    StatError,
    NotFoundError,
    NotWatchedError,
    UnknownEventError,
    UnexpectedSourceError,
    ChannelError,
    ChannelClosedError,
)

from .channel import Channel
from .watch_table import WatchTable
from .translator import Verdict, translate
from .ports import EventPort, PollingEventPort, SolarisEventPort, create_port
from .watcher import Watcher


__all__ = [
    # Models
    "Op",
    "Event",
    "FileObj",
    "FileInfo",
    "PortEvent",
    # Config
    "WatcherConfig",
    # Exceptions
    "WatcherError",
    "PortError",
    "PortCreationError",
    "AlreadyClosedError",
    "StatError",
    "NotFoundError",
    "NotWatchedError",
    "UnknownEventError",
    "UnexpectedSourceError",
    "ChannelError",
    "ChannelClosedError",
    # Components
    "Channel",
    "WatchTable",
    "Verdict",
    "translate",
    "EventPort",
    "PollingEventPort",
    "SolarisEventPort",
    "create_port",
    # Engine
    "Watcher",
]

__version__ = "0.1.0"
