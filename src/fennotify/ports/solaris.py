"""Native event ports (Solaris/illumos) through ctypes."""

import ctypes
import ctypes.util
import errno
import logging
import os
import threading
from typing import Any, Dict, Optional

from ..constants import PORT_SOURCE_FILE, PORT_SOURCE_USER
from ..exceptions import PortCreationError, PortError
from ..models import FileInfo, FileObj, PortEvent
from .base import EventPort

logger = logging.getLogger(__name__)


class _Timespec(ctypes.Structure):
    _fields_ = [
        ("tv_sec", ctypes.c_long),
        ("tv_nsec", ctypes.c_long),
    ]


class _FileObj(ctypes.Structure):
    _fields_ = [
        ("fo_atime", _Timespec),
        ("fo_mtime", _Timespec),
        ("fo_ctime", _Timespec),
        ("fo_pad", ctypes.c_size_t * 3),
        ("fo_name", ctypes.c_char_p),
    ]


class _PortEvent(ctypes.Structure):
    _fields_ = [
        ("portev_events", ctypes.c_int),
        ("portev_source", ctypes.c_ushort),
        ("portev_pad", ctypes.c_ushort),
        ("portev_object", ctypes.c_size_t),
        ("portev_user", ctypes.c_void_p),
    ]


class _Registration:
    """C-side memory of one association, kept alive until it is consumed."""

    def __init__(self, fobj: FileObj, user: Any):
        self.fobj = fobj
        self.user = user
        self.name = os.fsencode(fobj.name)
        self.c_obj = _FileObj()
        self.c_obj.fo_name = self.name
        for field, (sec, nsec) in (
            ("fo_atime", fobj.atime),
            ("fo_mtime", fobj.mtime),
            ("fo_ctime", fobj.ctime),
        ):
            ts = getattr(self.c_obj, field)
            ts.tv_sec = sec
            ts.tv_nsec = nsec
        mode = user.mode if isinstance(user, FileInfo) else 0
        self.c_mode = ctypes.c_uint(mode)

    @property
    def address(self) -> int:
        return ctypes.addressof(self.c_obj)


def _load_libc() -> ctypes.CDLL:
    libc = ctypes.CDLL(ctypes.util.find_library("c"), use_errno=True)
    
    libc.port_create.argtypes = []
    libc.port_create.restype = ctypes.c_int
    libc.port_associate.argtypes = [
        ctypes.c_int, ctypes.c_int, ctypes.c_size_t, ctypes.c_int, ctypes.c_void_p,
    ]
    libc.port_associate.restype = ctypes.c_int
    libc.port_dissociate.argtypes = [ctypes.c_int, ctypes.c_int, ctypes.c_size_t]
    libc.port_dissociate.restype = ctypes.c_int
    libc.port_get.argtypes = [
        ctypes.c_int, ctypes.POINTER(_PortEvent), ctypes.POINTER(_Timespec),
    ]
    libc.port_get.restype = ctypes.c_int
    libc.port_send.argtypes = [ctypes.c_int, ctypes.c_int, ctypes.c_void_p]
    libc.port_send.restype = ctypes.c_int
    return libc


def _port_error(call: str) -> PortError:
    err = ctypes.get_errno()
    return PortError(f"{call}: {os.strerror(err)}", errno=err)


class SolarisEventPort(EventPort):
    """
    Event port backed by port_create(3C).
    
    The C file_obj and the user payload handed to the kernel must stay
    valid while associated, so both are owned by a registration kept
    here until the event for it is retrieved or it is dissociated.
    """

    def __init__(self):
        """
        Create the port.
        
        Raises:
            PortCreationError: If event ports are unavailable or
                port_create fails
        """
        try:
            self._libc = _load_libc()
        except (OSError, AttributeError) as e:
            raise PortCreationError(f"event ports are not available: {e}") from e
        
        fd = self._libc.port_create()
        if fd < 0:
            err = ctypes.get_errno()
            raise PortCreationError(f"port_create: {os.strerror(err)}", errno=err)
        
        self._fd = fd
        self._lock = threading.Lock()
        self._closed = False
        self._by_address: Dict[int, _Registration] = {}
        self._by_object: Dict[int, _Registration] = {}
        self._user_payloads: Dict[int, Any] = {}
        logger.debug(f"Created event port fd={fd}")

    def associate(self, source: int, obj: Any, events: int, user: Any = None) -> None:
        if source != PORT_SOURCE_FILE:
            raise PortError(f"unsupported event source: {source}", errno=errno.EINVAL)
        
        reg = _Registration(obj, user)
        with self._lock:
            if self._closed:
                raise PortError("port is closed", errno=errno.EBADF)
            self._by_address[reg.address] = reg
            self._by_object[id(obj)] = reg
        
        rc = self._libc.port_associate(
            self._fd,
            PORT_SOURCE_FILE,
            reg.address,
            events,
            ctypes.cast(ctypes.byref(reg.c_mode), ctypes.c_void_p),
        )
        if rc < 0:
            error = _port_error(f"port_associate {obj.name}")
            self._forget(reg)
            raise error

    def dissociate(self, source: int, obj: Any) -> None:
        with self._lock:
            reg = self._by_object.get(id(obj))
        if reg is None:
            raise PortError(f"{obj.name} is not associated", errno=errno.ENOENT)
        
        rc = self._libc.port_dissociate(self._fd, source, reg.address)
        error = _port_error(f"port_dissociate {obj.name}") if rc < 0 else None
        self._forget(reg)
        if error is not None:
            raise error

    def get(self, timeout: Optional[float] = None) -> PortEvent:
        pe = _PortEvent()
        ts = None
        if timeout is not None:
            sec, frac = divmod(timeout, 1.0)
            ts = ctypes.byref(_Timespec(int(sec), int(frac * 1_000_000_000)))
        
        while True:
            rc = self._libc.port_get(self._fd, ctypes.byref(pe), ts)
            if rc == 0:
                break
            if ctypes.get_errno() == errno.EINTR and not self.closed:
                continue
            raise _port_error("port_get")
        
        if pe.portev_source == PORT_SOURCE_FILE:
            with self._lock:
                reg = self._by_address.pop(pe.portev_object, None)
                if reg is not None:
                    self._by_object.pop(id(reg.fobj), None)
            if reg is None:
                raise PortError(
                    f"event for unknown object {pe.portev_object:#x}",
                    errno=errno.ENOENT,
                )
            return PortEvent(pe.portev_events, pe.portev_source, reg.fobj, reg.user)
        
        if pe.portev_source == PORT_SOURCE_USER:
            with self._lock:
                _, user = self._user_payloads.pop(pe.portev_user or 0, (None, None))
            return PortEvent(pe.portev_events, pe.portev_source, pe.portev_object, user)
        
        return PortEvent(pe.portev_events, pe.portev_source, pe.portev_object, pe.portev_user)

    def send(self, events: int, user: Any = None) -> None:
        token = ctypes.c_int(0)
        key = ctypes.addressof(token)
        with self._lock:
            self._user_payloads[key] = (token, user)
        
        if self._libc.port_send(self._fd, events, ctypes.c_void_p(key)) < 0:
            with self._lock:
                self._user_payloads.pop(key, None)
            raise _port_error("port_send")

    def close(self) -> None:
        with self._lock:
            if self._closed:
                return
            self._closed = True
        
        os.close(self._fd)
        logger.debug(f"Closed event port fd={self._fd}")

    @property
    def closed(self) -> bool:
        with self._lock:
            return self._closed

    def _forget(self, reg: _Registration) -> None:
        with self._lock:
            self._by_address.pop(reg.address, None)
            if self._by_object.get(id(reg.fobj)) is reg:
                del self._by_object[id(reg.fobj)]
