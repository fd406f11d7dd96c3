"""Event port and FEN constants (see port_create(3C) and port_associate(3C))."""

# Event sources
PORT_SOURCE_AIO = 1
PORT_SOURCE_TIMER = 2
PORT_SOURCE_USER = 3
PORT_SOURCE_FD = 4
PORT_SOURCE_ALERT = 5
PORT_SOURCE_MQ = 6
PORT_SOURCE_FILE = 7

# Events requested on association
FILE_ACCESS = 0x00000001
FILE_MODIFIED = 0x00000002
FILE_ATTRIB = 0x00000004
FILE_TRUNC = 0x00100000
FILE_NOFOLLOW = 0x10000000

# Exception events, delivered whether requested or not
FILE_DELETE = 0x00000010
FILE_RENAME_TO = 0x00000020
FILE_RENAME_FROM = 0x00000040
UNMOUNTED = 0x20000000
MOUNTEDOVER = 0x40000000

FILE_EXCEPTION = UNMOUNTED | FILE_DELETE | FILE_RENAME_TO | FILE_RENAME_FROM | MOUNTEDOVER

DEFAULT_WATCH_MASK = FILE_MODIFIED | FILE_ATTRIB | FILE_NOFOLLOW

_EVENT_NAMES = (
    (FILE_ACCESS, "FILE_ACCESS"),
    (FILE_MODIFIED, "FILE_MODIFIED"),
    (FILE_ATTRIB, "FILE_ATTRIB"),
    (FILE_TRUNC, "FILE_TRUNC"),
    (FILE_DELETE, "FILE_DELETE"),
    (FILE_RENAME_TO, "FILE_RENAME_TO"),
    (FILE_RENAME_FROM, "FILE_RENAME_FROM"),
    (UNMOUNTED, "UNMOUNTED"),
    (MOUNTEDOVER, "MOUNTEDOVER"),
    (FILE_NOFOLLOW, "FILE_NOFOLLOW"),
)


def describe_events(events: int) -> str:
    """Render an event bitmask as ``FILE_MODIFIED|FILE_ATTRIB`` for logging."""
    names = [name for bit, name in _EVENT_NAMES if events & bit]
    leftover = events
    for bit, _ in _EVENT_NAMES:
        leftover &= ~bit
    if leftover:
        names.append(hex(leftover))
    return "|".join(names) if names else "0"
