"""Watcher engine: keeps paths associated with an event port and reports changes."""

import errno
import logging
import os
import stat
import threading
from typing import Callable, List, Optional, Tuple

from .channel import Channel
from .config import WatcherConfig
from .constants import FILE_NOFOLLOW, PORT_SOURCE_FILE, describe_events
from .exceptions import (
    AlreadyClosedError,
    NotFoundError,
    NotWatchedError,
    PortError,
    StatError,
    UnexpectedSourceError,
    UnknownEventError,
    WatcherError,
)
from .models import Event, FileInfo, FileObj, Op, PortEvent
from .ports import EventPort, create_port
from .translator import translate
from .watch_table import WatchTable

logger = logging.getLogger(__name__)

PathHandler = Callable[[str, os.stat_result], None]


class Watcher:
    """
    Watches a set of files and directories, delivering events to a channel.
    
    Directories are watched one level deep: adding a directory associates
    the directory and each of its direct children. Changes are read from
    ``events`` and failures from ``errors``; both channels are closed
    once the watcher has been closed and the reader thread has exited.
    
    FEN associations are one-shot, so every notification that should not
    end the watch is followed by a fresh association of the same path.
    """

    def __init__(
        self,
        config: Optional[WatcherConfig] = None,
        port: Optional[EventPort] = None,
    ):
        """
        Create the event port and start the reader thread.
        
        Args:
            config: Watcher configuration
            port: Event port to use instead of the one selected by config
            
        Raises:
            PortCreationError: If the event port cannot be created
        """
        self.config = config or WatcherConfig()
        self._port = port if port is not None else create_port(self.config)
        self._table = WatchTable()
        self._mask = self.config.watch_mask()
        
        send_poll = self.config.send_poll_ms / 1000.0
        self.events = Channel("events", self.config.event_buffer, send_poll)
        self.errors = Channel("errors", self.config.event_buffer, send_poll)
        
        self._done = threading.Event()
        self._close_lock = threading.Lock()
        self._reader = threading.Thread(
            target=self._read_events,
            name="fennotify-reader",
            daemon=True,
        )
        self._reader.start()

    @classmethod
    def open(
        cls,
        config: Optional[WatcherConfig] = None,
        port: Optional[EventPort] = None,
    ) -> "Watcher":
        """Create a watcher that is ready to accept paths."""
        return cls(config=config, port=port)

    @property
    def closed(self) -> bool:
        """Whether close() has been called."""
        return self._done.is_set()

    def add(self, path: str) -> None:
        """
        Start watching a file or directory (non-recursively).
        
        Args:
            path: File or directory to watch
            
        Raises:
            AlreadyClosedError: If the watcher is closed
            NotFoundError: If the path does not exist
            StatError: If the path or a child cannot be inspected
            PortError: If an association fails
        """
        if self.closed:
            raise AlreadyClosedError("watcher already closed")
        
        st = self._stat(path)
        try:
            if stat.S_ISDIR(st.st_mode):
                self._handle_directory(path, st, self._associate_file)
            else:
                self._associate_file(path, st)
        except PortError as e:
            # The port was closed under us by a concurrent close().
            if self.closed:
                raise AlreadyClosedError("watcher already closed") from e
            raise

    def remove(self, path: str) -> None:
        """
        Stop watching a file or directory (non-recursively).
        
        Args:
            path: File or directory previously added
            
        Raises:
            AlreadyClosedError: If the watcher is closed
            NotWatchedError: If the path is not being watched
            NotFoundError: If the path does not exist anymore
            StatError: If the path or a child cannot be inspected
            PortError: If a dissociation fails
        """
        if self.closed:
            raise AlreadyClosedError("watcher already closed")
        if not self._table.get(path):
            raise NotWatchedError(f"can't remove non-existent watch for: {path}")
        
        st = self._stat(path)
        try:
            if stat.S_ISDIR(st.st_mode):
                self._handle_directory(path, st, self._dissociate_file)
            else:
                self._dissociate_file(path, st)
        except PortError as e:
            # The port was closed under us by a concurrent close().
            if self.closed:
                raise AlreadyClosedError("watcher already closed") from e
            raise

    def close(self) -> None:
        """
        Stop watching everything and close the channels.
        
        Safe to call more than once and from several threads; only the
        first call tears the watcher down. Teardown failures are logged,
        never raised.
        """
        with self._close_lock:
            if self._done.is_set():
                return
            self._done.set()
        
        logger.debug("Closing watcher")
        try:
            self._port.close()
        except (PortError, OSError) as e:
            logger.warning(f"Error closing event port: {e}")
        
        if threading.current_thread() is not self._reader:
            self._reader.join(self.config.close_timeout)
            if self._reader.is_alive():
                logger.warning("Reader thread did not stop in time")
        
        self._table.clear()

    def watched(self, path: str) -> bool:
        """Whether ``path`` is currently being watched."""
        return self._table.get(path)

    def watch_list(self) -> List[str]:
        """Paths currently being watched."""
        return self._table.paths()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

    def __repr__(self) -> str:
        state = "closed" if self.closed else "open"
        return f"<Watcher {state} watches={len(self._table)}>"

    # Reader thread

    def _read_events(self) -> None:
        """Drain the event port until the watcher is closed."""
        logger.debug("Reader started")
        try:
            while True:
                try:
                    pevent = self._port.get()
                except PortError as e:
                    if self._done.is_set():
                        return
                    if not self._send_error(e):
                        return
                    if self._port.closed:
                        return
                    continue
                
                if pevent.source != PORT_SOURCE_FILE:
                    error = UnexpectedSourceError(
                        f"event from unexpected source {pevent.source} received"
                    )
                    if not self._send_error(error):
                        return
                    continue
                
                try:
                    self._handle_event(pevent)
                except WatcherError as e:
                    if not self._send_error(e):
                        return
        finally:
            self.events.close()
            self.errors.close()
            logger.debug("Reader stopped")

    def _handle_event(self, pevent: PortEvent) -> None:
        fobj: FileObj = pevent.object
        path = fobj.name
        info = pevent.user
        mode = info.mode if isinstance(info, FileInfo) else 0
        
        # A registration replaced or removed since it was armed.
        watched = self._table.lookup(path) is fobj
        if not watched:
            logger.debug(f"Ignoring {describe_events(pevent.events)} for unwatched {path}")
            return
        
        try:
            verdict = translate(path, pevent.events, mode, watched)
        except UnknownEventError:
            self._table.discard(path, fobj)
            raise
        
        if verdict.unwatch:
            self._table.discard(path, fobj)
        
        st = None
        if verdict.rescan:
            # Snapshot before listing so entries created meanwhile fire again.
            st = self._restat(path, fobj)
            if st is None:
                return
            try:
                delivered = self._update_directory(path)
            except StatError:
                self._table.discard(path, fobj)
                raise
            if not delivered:
                return
        
        if verdict.event is not None and not self._send_event(verdict.event):
            return
        if not verdict.rearm:
            return
        
        if st is None:
            st = self._restat(path, fobj)
            if st is None:
                return
        self._rearm(path, st, fobj)

    def _restat(self, path: str, fobj: FileObj) -> Optional[os.stat_result]:
        """Stat ``path`` for a re-arm; None if it was removed meanwhile."""
        try:
            return self._stat(path)
        except StatError:
            if self._table.discard(path, fobj):
                raise
            return None

    def _update_directory(self, path: str) -> bool:
        """
        Watch children of ``path`` that are not watched yet.
        
        Removed children are not reported here; their own associations
        deliver FILE_DELETE.
        
        Returns:
            False if delivery was abandoned because the watcher is closing
        """
        for child, st in self._list_children(path):
            if self._table.get(child):
                continue
            
            try:
                self._associate_file(child, st)
            except WatcherError as e:
                if not self._send_error(e):
                    return False
            if not self._send_event(Event(child, Op.CREATE)):
                return False
        return True

    def _send_event(self, event: Event) -> bool:
        sent = self.events.send(event, self._done)
        if not sent:
            logger.debug(f"Dropped {event}: watcher is closing")
        return sent

    def _send_error(self, error: Exception) -> bool:
        sent = self.errors.send(error, self._done)
        if sent:
            logger.debug(f"Watcher error: {error}")
        else:
            logger.debug(f"Dropped error {error!r}: watcher is closing")
        return sent

    # Associations

    def _handle_directory(self, path: str, st: os.stat_result, handler: PathHandler) -> None:
        # Children first, then the directory itself.
        for child, child_st in self._list_children(path):
            handler(child, child_st)
        handler(path, st)

    def _associate_file(self, path: str, st: os.stat_result) -> None:
        fobj = self._registration(path, st)
        previous = self._table.put(path, fobj)
        if previous is not None:
            self._release(previous)
        self._arm(path, fobj, st)

    def _rearm(self, path: str, st: os.stat_result, stale: FileObj) -> None:
        try:
            fobj = self._registration(path, st)
        except StatError:
            if self._table.discard(path, stale):
                raise
            return
        if not self._table.replace(path, stale, fobj):
            logger.debug(f"Not re-arming {path}: removed or replaced meanwhile")
            return
        self._arm(path, fobj, st)

    def _arm(self, path: str, fobj: FileObj, st: os.stat_result) -> None:
        try:
            self._port.associate(PORT_SOURCE_FILE, fobj, self._mask, FileInfo(st.st_mode))
        except PortError:
            self._table.discard(path, fobj)
            raise
        
        # remove() may have run between the table update and the association.
        if self._table.lookup(path) is not fobj:
            self._release(fobj)
            return
        logger.debug(f"Associated {path}")

    def _registration(self, path: str, st: os.stat_result) -> FileObj:
        """
        Build the handle for ``path``.
        
        With FILE_NOFOLLOW the port compares the snapshot with the link
        itself, so a symlink is snapshotted with lstat even when ``st``
        describes its target.
        """
        if self._mask & FILE_NOFOLLOW and not stat.S_ISLNK(st.st_mode) and os.path.islink(path):
            st = self._stat(path, follow=False)
        return FileObj.from_stat(path, st)

    def _dissociate_file(self, path: str, st: os.stat_result) -> None:
        fobj = self._table.remove(path)
        if fobj is None:
            return
        self._release(fobj, strict=True)
        logger.debug(f"Dissociated {path}")

    def _release(self, fobj: FileObj, strict: bool = False) -> None:
        try:
            self._port.dissociate(PORT_SOURCE_FILE, fobj)
        except PortError as e:
            # ENOENT: the association already fired and is gone.
            if e.errno == errno.ENOENT:
                return
            if strict:
                raise
            logger.debug(f"Could not release {fobj.name}: {e}")

    # Metadata

    def _stat(self, path: str, follow: bool = True) -> os.stat_result:
        try:
            if follow:
                return os.stat(path)
            return os.lstat(path)
        except FileNotFoundError as e:
            raise NotFoundError(f"{path}: no such file or directory", path=path) from e
        except OSError as e:
            raise StatError(f"stat {path}: {e.strerror}", path=path) from e

    def _list_children(self, path: str) -> List[Tuple[str, os.stat_result]]:
        """Direct children of ``path`` with their metadata, sorted by name."""
        try:
            with os.scandir(path) as it:
                entries = sorted(it, key=lambda entry: entry.name)
        except FileNotFoundError as e:
            raise NotFoundError(f"{path}: no such file or directory", path=path) from e
        except OSError as e:
            raise StatError(f"readdir {path}: {e.strerror}", path=path) from e
        
        children = []
        for entry in entries:
            child = os.path.join(path, entry.name)
            try:
                st = entry.stat(follow_symlinks=self.config.follow_symlinks)
            except FileNotFoundError:
                continue
            except OSError as e:
                raise StatError(f"stat {child}: {e.strerror}", path=child) from e
            children.append((child, st))
        return children
