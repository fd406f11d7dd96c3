"""Tests for event port selection."""

import pytest

from src.fennotify.config import WatcherConfig
from src.fennotify.exceptions import PortCreationError
from src.fennotify.ports import (
    PollingEventPort,
    SolarisEventPort,
    create_port,
    has_event_ports,
)
from src.fennotify.watcher import Watcher


class TestCreatePort:
    """Tests for create_port function."""

    def test_polling_backend(self):
        port = create_port(WatcherConfig(backend="polling", poll_interval_ms=250))
        try:
            assert isinstance(port, PollingEventPort)
            assert port.interval == 0.25
        finally:
            port.close()

    def test_auto_backend(self, monkeypatch):
        monkeypatch.setattr("src.fennotify.ports.has_event_ports", lambda: False)
        port = create_port(WatcherConfig(backend="auto"))
        try:
            assert isinstance(port, PollingEventPort)
        finally:
            port.close()

    def test_auto_backend_prefers_fen(self, monkeypatch):
        created = []
        
        class _FakeSolarisPort:
            def __init__(self):
                created.append(self)
        
        monkeypatch.setattr("src.fennotify.ports.has_event_ports", lambda: True)
        monkeypatch.setattr("src.fennotify.ports.SolarisEventPort", _FakeSolarisPort)
        
        port = create_port(WatcherConfig())
        
        assert created == [port]

    def test_default_config(self, monkeypatch):
        monkeypatch.setattr("src.fennotify.ports.has_event_ports", lambda: False)
        port = create_port()
        try:
            assert isinstance(port, PollingEventPort)
        finally:
            port.close()

    @pytest.mark.skipif(has_event_ports(), reason="event ports are available")
    def test_fen_unavailable(self):
        with pytest.raises(PortCreationError):
            create_port(WatcherConfig(backend="fen"))

    @pytest.mark.skipif(has_event_ports(), reason="event ports are available")
    def test_watcher_open_fails_without_port(self):
        with pytest.raises(PortCreationError):
            Watcher.open(WatcherConfig(backend="fen"))


@pytest.mark.skipif(not has_event_ports(), reason="requires Solaris/illumos event ports")
class TestSolarisEventPort:
    """Tests for SolarisEventPort, run only where event ports exist."""

    def test_send_and_get(self):
        with SolarisEventPort() as port:
            port.send(7, user="payload")
            event = port.get(timeout=1)
            assert event.events == 7
            assert event.user == "payload"

    def test_close_is_idempotent(self):
        port = SolarisEventPort()
        port.close()
        port.close()
        assert port.closed is True
