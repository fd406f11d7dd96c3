"""Closeable output channel delivering events and errors to the consumer."""

import queue
import threading
import time
from typing import Any, Iterator, List, Optional

from .exceptions import ChannelClosedError


_CLOSED = object()


class Channel:
    """
    FIFO channel between the reader thread and a consumer.
    
    Features:
    - Unbounded by default, optionally bounded
    - Sends are abandoned, not retried, once the ``done`` event is set
    - Closed exactly once; consumers drain what is left and then see
      ChannelClosedError (or the end of iteration)
    - Thread-safe operations
    """

    def __init__(self, name: str, maxsize: int = 0, poll_interval: float = 0.05):
        """
        Initialize the channel.
        
        Args:
            name: Name used in log and error messages
            maxsize: Maximum number of pending items (0 = unbounded)
            poll_interval: Seconds between re-checks of ``done`` while a
                bounded channel is full
        """
        self.name = name
        self.maxsize = maxsize
        self._poll_interval = poll_interval
        self._queue: "queue.Queue[Any]" = queue.Queue()
        self._lock = threading.Lock()
        self._closed = False

    def send(self, item: Any, done: Optional[threading.Event] = None) -> bool:
        """
        Deliver an item to the consumer.
        
        Args:
            item: Item to deliver
            done: Cancellation signal; once set the send is abandoned
            
        Returns:
            True if the item was enqueued, False if the send was abandoned
            because ``done`` is set or the channel is closed
        """
        while True:
            if done is not None and done.is_set():
                return False
            
            with self._lock:
                if self._closed:
                    return False
                if not self.maxsize or self._queue.qsize() < self.maxsize:
                    self._queue.put_nowait(item)
                    return True
            
            if done is not None:
                done.wait(self._poll_interval)
            else:
                time.sleep(self._poll_interval)

    def get(self, block: bool = True, timeout: Optional[float] = None) -> Any:
        """
        Remove and return the next item.
        
        Args:
            block: Whether to wait for an item
            timeout: Maximum seconds to wait when blocking
            
        Returns:
            The next item
            
        Raises:
            queue.Empty: If no item arrived in time
            ChannelClosedError: If the channel is closed and drained
        """
        item = self._queue.get(block, timeout)
        if item is _CLOSED:
            # Leave the marker for other consumers.
            self._queue.put_nowait(_CLOSED)
            raise ChannelClosedError(f"{self.name} channel is closed")
        return item

    def drain(self) -> List[Any]:
        """Return every item available right now without blocking."""
        items = []
        while True:
            try:
                items.append(self.get(block=False))
            except (queue.Empty, ChannelClosedError):
                return items

    def close(self) -> bool:
        """
        Close the channel.
        
        Returns:
            True if this call closed the channel, False if already closed
        """
        with self._lock:
            if self._closed:
                return False
            self._closed = True
            self._queue.put_nowait(_CLOSED)
            return True

    @property
    def closed(self) -> bool:
        """Whether close() has been called."""
        with self._lock:
            return self._closed

    def qsize(self) -> int:
        """Number of items waiting to be consumed."""
        with self._lock:
            size = self._queue.qsize()
            return size - 1 if self._closed and size else size

    def __iter__(self) -> Iterator[Any]:
        while True:
            try:
                yield self.get()
            except ChannelClosedError:
                return

    def __repr__(self) -> str:
        state = "closed" if self.closed else "open"
        return f"<Channel {self.name} {state} pending={self.qsize()}>"
