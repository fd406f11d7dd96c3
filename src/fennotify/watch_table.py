"""Thread-safe mapping from watched paths to their registration handles."""

import threading
from typing import Dict, List, Optional

from .models import FileObj


class WatchTable:
    """
    Thread-safe table of watched paths.
    
    The lock is held only for the dictionary operation itself so that
    port and stat calls on one thread never stall another.
    """

    def __init__(self):
        """Initialize an empty table."""
        self._watches: Dict[str, FileObj] = {}
        self._lock = threading.Lock()

    def put(self, path: str, fobj: FileObj) -> Optional[FileObj]:
        """
        Record ``fobj`` as the registration for ``path``.
        
        Args:
            path: Watched path
            fobj: Registration handle, replacing any previous one
            
        Returns:
            The registration that was replaced, or None
        """
        with self._lock:
            previous = self._watches.get(path)
            self._watches[path] = fobj
            return previous

    def get(self, path: str) -> bool:
        """
        Check whether a path is watched.
        
        Args:
            path: Path to check
            
        Returns:
            True if the path is in the table
        """
        with self._lock:
            return path in self._watches

    def lookup(self, path: str) -> Optional[FileObj]:
        """Return the registration for ``path``, or None."""
        with self._lock:
            return self._watches.get(path)

    def remove(self, path: str) -> Optional[FileObj]:
        """
        Remove a path from the table.
        
        Args:
            path: Path to remove
            
        Returns:
            The registration that was removed, or None if not watched
        """
        with self._lock:
            return self._watches.pop(path, None)

    def replace(self, path: str, expected: FileObj, fobj: FileObj) -> bool:
        """
        Swap the registration for ``path`` only if it is still ``expected``.
        
        Args:
            path: Watched path
            expected: Registration the caller last saw
            fobj: New registration
            
        Returns:
            True if the entry was replaced, False if the path was removed
            or registered again in the meantime
        """
        with self._lock:
            if self._watches.get(path) is not expected:
                return False
            self._watches[path] = fobj
            return True

    def discard(self, path: str, fobj: FileObj) -> bool:
        """
        Remove ``path`` only if it is still registered with ``fobj``.
        
        Returns:
            True if the entry was removed
        """
        with self._lock:
            if self._watches.get(path) is fobj:
                del self._watches[path]
                return True
            return False

    def paths(self) -> List[str]:
        """Get a snapshot of the watched paths."""
        with self._lock:
            return list(self._watches)

    def clear(self) -> int:
        """
        Drop every entry.
        
        Returns:
            Number of entries removed
        """
        with self._lock:
            count = len(self._watches)
            self._watches.clear()
            return count

    def __contains__(self, path: str) -> bool:
        return self.get(path)

    def __len__(self) -> int:
        with self._lock:
            return len(self._watches)
