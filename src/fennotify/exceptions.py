"""Custom exceptions for the fennotify package."""

from typing import Optional


class WatcherError(Exception):
    """Base exception for all watcher errors."""
    pass


class PortError(WatcherError):
    """An event port call failed."""

    def __init__(self, message: str, errno: Optional[int] = None):
        super().__init__(message)
        self.errno = errno


class PortCreationError(PortError):
    """The event port could not be created."""
    pass


class AlreadyClosedError(WatcherError):
    """Operation attempted on a closed watcher."""
    pass


class StatError(WatcherError):
    """Metadata lookup for a path failed."""

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message)
        self.path = path


class NotFoundError(StatError):
    """Path does not exist."""
    pass


class NotWatchedError(WatcherError):
    """Path is not currently being watched."""
    pass


class UnknownEventError(WatcherError):
    """Event bitmask carries none of the recognized bits."""

    def __init__(self, message: str, events: int = 0):
        super().__init__(message)
        self.events = events


class UnexpectedSourceError(WatcherError):
    """Notification came from a source other than PORT_SOURCE_FILE."""
    pass


class ChannelError(WatcherError):
    """Error related to an output channel."""
    pass


class ChannelClosedError(ChannelError):
    """Channel is closed and fully drained."""
    pass
