"""
Event port implementations for the fennotify package.
"""

import logging
import sys
from typing import Optional

from ..config import WatcherConfig
from ..exceptions import PortCreationError
from .base import EventPort
from .polling import PollingEventPort
from .solaris import SolarisEventPort

logger = logging.getLogger(__name__)

__all__ = [
    "EventPort",
    "PollingEventPort",
    "SolarisEventPort",
    "create_port",
    "has_event_ports",
]


def has_event_ports() -> bool:
    """Whether the running platform provides native event ports."""
    return sys.platform.startswith("sunos")


def create_port(config: Optional[WatcherConfig] = None) -> EventPort:
    """
    Create the event port selected by the configuration.
    
    Args:
        config: Watcher configuration (backend and polling interval)
        
    Returns:
        A ready event port
        
    Raises:
        PortCreationError: If the port cannot be created
    """
    config = config or WatcherConfig()
    backend = config.backend
    if backend == "auto":
        backend = "fen" if has_event_ports() else "polling"
    
    logger.debug(f"Creating {backend} event port")
    if backend == "fen":
        return SolarisEventPort()
    if backend == "polling":
        return PollingEventPort(interval=config.poll_interval_ms / 1000.0)
    raise PortCreationError(f"unknown backend: {config.backend!r}")
