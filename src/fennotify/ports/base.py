"""
Base event port interface.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional

from ..models import PortEvent


class EventPort(ABC):
    """
    Abstract event port, the kernel facility wrapped by the watcher.
    
    File associations are one-shot: once an event has been retrieved for
    an object, the object is no longer associated and must be associated
    again to receive further events.
    
    Implementations must make a get() blocked in another thread fail with
    PortError promptly when close() is called.
    """

    @abstractmethod
    def associate(self, source: int, obj: Any, events: int, user: Any = None) -> None:
        """
        Associate an object with the port.
        
        Args:
            source: Event source (PORT_SOURCE_FILE for file objects)
            obj: Object to associate (a FileObj for PORT_SOURCE_FILE)
            events: Bitmask of events of interest
            user: Payload returned with the event
            
        Raises:
            PortError: If the association fails
        """
        pass

    @abstractmethod
    def dissociate(self, source: int, obj: Any) -> None:
        """
        Remove an association.
        
        Raises:
            PortError: If the object is not associated or the call fails
        """
        pass

    @abstractmethod
    def get(self, timeout: Optional[float] = None) -> PortEvent:
        """
        Retrieve the next event, blocking until one is available.
        
        Args:
            timeout: Maximum seconds to wait (None = forever)
            
        Returns:
            The retrieved event
            
        Raises:
            PortError: If the port is closed, the wait timed out (errno
                ETIME) or the call fails
        """
        pass

    @abstractmethod
    def send(self, events: int, user: Any = None) -> None:
        """Post a user-defined event (PORT_SOURCE_USER) to the port."""
        pass

    @abstractmethod
    def close(self) -> None:
        """Close the port. Safe to call more than once."""
        pass

    @property
    @abstractmethod
    def closed(self) -> bool:
        """Whether close() has been called."""
        pass

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
