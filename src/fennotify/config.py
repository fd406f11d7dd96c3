"""Configuration for the fennotify package."""

import os
from dataclasses import dataclass
from typing import Optional

from .constants import FILE_ATTRIB, FILE_MODIFIED, FILE_NOFOLLOW


BACKENDS = ("auto", "fen", "polling")


@dataclass
class WatcherConfig:
    """
    Configuration options for the watcher.
    
    Attributes:
        backend: Event port implementation: "fen" for native event ports,
            "polling" for the stat-polling emulation, "auto" to pick FEN
            on Solaris/illumos and polling elsewhere
        poll_interval_ms: Interval between scans of the polling backend
        event_buffer: Capacity of the events and errors channels (0 = unbounded)
        send_poll_ms: How often a blocked send on a full channel re-checks
            whether the watcher is closing
        close_timeout: Seconds close() waits for the reader thread (None = forever)
        follow_symlinks: Whether associations follow symbolic links
    """
    backend: str = "auto"
    poll_interval_ms: int = 100
    event_buffer: int = 0
    send_poll_ms: int = 50
    close_timeout: Optional[float] = None
    follow_symlinks: bool = False

    def __post_init__(self):
        if self.backend not in BACKENDS:
            raise ValueError(f"backend must be one of {BACKENDS}: {self.backend!r}")
        if self.poll_interval_ms <= 0:
            raise ValueError(f"poll_interval_ms must be positive: {self.poll_interval_ms}")
        if self.event_buffer < 0:
            raise ValueError(f"event_buffer must not be negative: {self.event_buffer}")
        if self.send_poll_ms <= 0:
            raise ValueError(f"send_poll_ms must be positive: {self.send_poll_ms}")

    def watch_mask(self) -> int:
        """Event mask used for every association."""
        mask = FILE_MODIFIED | FILE_ATTRIB
        if not self.follow_symlinks:
            mask |= FILE_NOFOLLOW
        return mask

    @classmethod
    def from_env(cls, prefix: str = "FENNOTIFY_") -> "WatcherConfig":
        """
        Build a configuration from environment variables.
        
        Recognized variables (with the default prefix): FENNOTIFY_BACKEND,
        FENNOTIFY_POLL_INTERVAL_MS, FENNOTIFY_EVENT_BUFFER and
        FENNOTIFY_FOLLOW_SYMLINKS. Unset variables keep their defaults.
        """
        kwargs = {}
        
        backend = os.environ.get(f"{prefix}BACKEND")
        if backend:
            kwargs["backend"] = backend.strip().lower()
        
        for key in ("poll_interval_ms", "event_buffer"):
            value = os.environ.get(f"{prefix}{key.upper()}")
            if value:
                kwargs[key] = int(value)
        
        follow = os.environ.get(f"{prefix}FOLLOW_SYMLINKS")
        if follow:
            kwargs["follow_symlinks"] = follow.strip().lower() in ("1", "true", "yes", "on")
        
        return cls(**kwargs)
