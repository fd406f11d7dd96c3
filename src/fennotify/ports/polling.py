"""Stat-polling emulation of FEN event ports for platforms without them."""

import errno
import logging
import os
import queue
import threading
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from watchdog.utils import BaseThread
from watchdog.utils.dirsnapshot import DirectorySnapshot

from ..constants import (
    FILE_ACCESS,
    FILE_ATTRIB,
    FILE_DELETE,
    FILE_MODIFIED,
    FILE_NOFOLLOW,
    FILE_RENAME_FROM,
    FILE_RENAME_TO,
    PORT_SOURCE_FILE,
    PORT_SOURCE_USER,
    describe_events,
)
from ..exceptions import PortCreationError, PortError
from ..models import FileObj, PortEvent
from .base import EventPort

logger = logging.getLogger(__name__)

_CLOSED = object()


@dataclass
class _Association:
    fobj: FileObj
    events: int
    user: Any
    inode: Tuple[int, int]

    def stat(self) -> os.stat_result:
        if self.events & FILE_NOFOLLOW:
            return os.lstat(self.fobj.name)
        return os.stat(self.fobj.name)


class _Poller(BaseThread):
    """Background thread rescanning the associations of one port."""

    def __init__(self, port: "PollingEventPort", interval: float):
        super().__init__()
        self.name = "fennotify-poller"
        self._port = port
        self._interval = interval

    def run(self):
        logger.debug("Poller started")
        while not self.stopped_event.wait(self._interval):
            try:
                self._port.scan()
            except OSError:
                logger.exception("Polling scan failed")
        logger.debug("Poller stopped")


class PollingEventPort(EventPort):
    """
    Event port emulated by periodically stat-ing every association.
    
    Keeps FEN's contract: associations are one-shot, an association made
    with an out-of-date FileObj fires immediately, and FILE_DELETE,
    FILE_RENAME_FROM and FILE_RENAME_TO are reported whatever the mask.
    
    Renames are told apart from deletions by looking the vanished inode
    up in the parent directory; a file moved to another directory is
    therefore reported as FILE_DELETE.
    """

    def __init__(self, interval: float = 0.1):
        """
        Create the port and start polling.
        
        Args:
            interval: Seconds between scans
            
        Raises:
            PortCreationError: If the poller thread cannot be started
        """
        self.interval = interval
        self._lock = threading.Lock()
        self._closed = False
        self._associations: Dict[int, _Association] = {}
        self._pending: "queue.Queue[Any]" = queue.Queue()
        
        self._poller = _Poller(self, interval)
        try:
            self._poller.start()
        except RuntimeError as e:
            raise PortCreationError(f"cannot start poller: {e}") from e

    def associate(self, source: int, obj: Any, events: int, user: Any = None) -> None:
        if source != PORT_SOURCE_FILE:
            raise PortError(f"unsupported event source: {source}", errno=errno.EINVAL)
        if self.closed:
            raise PortError("port is closed", errno=errno.EBADF)
        
        candidate = _Association(obj, events, user, (0, 0))
        try:
            st = candidate.stat()
        except OSError as e:
            raise PortError(f"port_associate {obj.name}: {e.strerror}", errno=e.errno) from e
        assoc = _Association(obj, events, user, (st.st_ino, st.st_dev))
        
        fired = self._changes(assoc, st)
        with self._lock:
            if self._closed:
                raise PortError("port is closed", errno=errno.EBADF)
            if fired:
                self._associations.pop(id(obj), None)
                self._deliver(assoc, fired)
            else:
                self._associations[id(obj)] = assoc

    def dissociate(self, source: int, obj: Any) -> None:
        with self._lock:
            assoc = self._associations.pop(id(obj), None)
        if assoc is None:
            raise PortError(f"{obj.name} is not associated", errno=errno.ENOENT)

    def get(self, timeout: Optional[float] = None) -> PortEvent:
        try:
            item = self._pending.get(timeout=timeout)
        except queue.Empty:
            raise PortError("port_get: timer expired", errno=errno.ETIME)
        
        if item is _CLOSED:
            self._pending.put(_CLOSED)
            raise PortError("port_get: port is closed", errno=errno.EBADF)
        return item

    def send(self, events: int, user: Any = None) -> None:
        if self.closed:
            raise PortError("port is closed", errno=errno.EBADF)
        self._pending.put(PortEvent(events, PORT_SOURCE_USER, None, user))

    def close(self) -> None:
        with self._lock:
            if self._closed:
                return
            self._closed = True
            self._associations.clear()
            self._pending.put(_CLOSED)
        
        self._poller.stop()
        if self._poller is not threading.current_thread():
            self._poller.join()

    @property
    def closed(self) -> bool:
        with self._lock:
            return self._closed

    def associated(self) -> List[FileObj]:
        """Objects currently associated, in association order."""
        with self._lock:
            return [assoc.fobj for assoc in self._associations.values()]

    def scan(self) -> int:
        """
        Check every association once and fire the ones that changed.
        
        Returns:
            Number of events delivered
        """
        with self._lock:
            candidates = list(self._associations.items())
        
        delivered = 0
        for key, assoc in candidates:
            events = self._poll(assoc)
            if not events:
                continue
            with self._lock:
                if self._associations.get(key) is not assoc:
                    continue
                del self._associations[key]
                self._deliver(assoc, events)
                delivered += 1
        return delivered

    def _poll(self, assoc: _Association) -> int:
        try:
            st = assoc.stat()
        except OSError:
            return self._vanished(assoc)
        
        if (st.st_ino, st.st_dev) != assoc.inode:
            return FILE_RENAME_TO
        return self._changes(assoc, st)

    def _vanished(self, assoc: _Association) -> int:
        name = assoc.fobj.name
        parent = os.path.dirname(name) or os.curdir
        try:
            snapshot = DirectorySnapshot(parent, recursive=False, stat=os.lstat)
        except OSError:
            return FILE_DELETE
        
        moved_to = snapshot.path(assoc.inode)
        if moved_to is not None and moved_to != name:
            return FILE_RENAME_FROM
        return FILE_DELETE

    @staticmethod
    def _changes(assoc: _Association, st: os.stat_result) -> int:
        atime, mtime, ctime = assoc.fobj.changed(st)
        events = 0
        if mtime and assoc.events & FILE_MODIFIED:
            events |= FILE_MODIFIED
        if ctime and assoc.events & FILE_ATTRIB:
            events |= FILE_ATTRIB
        if atime and assoc.events & FILE_ACCESS:
            events |= FILE_ACCESS
        return events

    def _deliver(self, assoc: _Association, events: int) -> None:
        logger.debug(f"Firing {describe_events(events)} for {assoc.fobj.name}")
        self._pending.put(PortEvent(events, PORT_SOURCE_FILE, assoc.fobj, assoc.user))
