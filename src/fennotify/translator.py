"""Translation of raw FEN notifications into portable events."""

import stat
from dataclasses import dataclass
from typing import Optional

from .constants import (
    FILE_ATTRIB,
    FILE_DELETE,
    FILE_MODIFIED,
    FILE_RENAME_FROM,
    FILE_RENAME_TO,
    describe_events,
)
from .exceptions import UnknownEventError
from .models import Event, Op


@dataclass(frozen=True)
class Verdict:
    """
    What the engine must do with one notification.
    
    Attributes:
        event: Event to deliver, if any
        unwatch: Drop the path from the watch table
        rearm: Re-associate the path so it keeps being watched
        rescan: Re-list the directory and pick up new children
    """
    event: Optional[Event] = None
    unwatch: bool = False
    rearm: bool = False
    rescan: bool = False


def translate(path: str, events: int, mode: int, watched: bool) -> Verdict:
    """
    Decide how to react to a notification for ``path``.
    
    The cases are checked in a fixed order and the first match wins, so a
    bitmask carrying several bits is resolved by that precedence:
    modified, attrib, delete, rename-to, rename-from.
    
    A FILE_RENAME_TO means the watched name now refers to something that
    was renamed over it. The event cannot name the source, so it is
    reported as a Remove of the old file (and only if that file was being
    watched). FILE_RENAME_FROM means the watched file moved away, reported
    as a Rename of its old name.
    
    Args:
        path: Path recovered from the registration handle
        events: Event bitmask from the port
        mode: File mode cached when the path was associated
        watched: Whether the path is currently in the watch table
        
    Returns:
        The verdict to apply
        
    Raises:
        UnknownEventError: If none of the recognized bits is set
    """
    if events & FILE_MODIFIED:
        if stat.S_ISDIR(mode):
            return Verdict(rearm=True, rescan=True)
        return Verdict(event=Event(path, Op.WRITE), rearm=True)
    
    if events & FILE_ATTRIB:
        return Verdict(event=Event(path, Op.CHMOD), rearm=True)
    
    if events & FILE_DELETE:
        return Verdict(event=Event(path, Op.REMOVE), unwatch=True)
    
    if events & FILE_RENAME_TO:
        event = Event(path, Op.REMOVE) if watched else None
        return Verdict(event=event, unwatch=True)
    
    if events & FILE_RENAME_FROM:
        return Verdict(event=Event(path, Op.RENAME), unwatch=True)
    
    raise UnknownEventError(
        f"unknown event {describe_events(events)} received for {path}",
        events=events,
    )
