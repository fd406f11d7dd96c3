"""Tests for channel module."""

import queue
import threading
import time

import pytest

from src.fennotify.channel import Channel
from src.fennotify.exceptions import ChannelClosedError


class TestChannel:
    """Tests for Channel class."""

    def test_send_get(self):
        channel = Channel("test")
        assert channel.send("a") is True
        assert channel.get(timeout=1) == "a"

    def test_fifo_order(self):
        channel = Channel("test")
        for i in range(5):
            channel.send(i)
        
        assert [channel.get(timeout=1) for _ in range(5)] == [0, 1, 2, 3, 4]

    def test_get_timeout(self):
        channel = Channel("test")
        with pytest.raises(queue.Empty):
            channel.get(timeout=0.05)

    def test_get_nonblocking_empty(self):
        channel = Channel("test")
        with pytest.raises(queue.Empty):
            channel.get(block=False)

    def test_qsize(self):
        channel = Channel("test")
        channel.send(1)
        channel.send(2)
        assert channel.qsize() == 2

    def test_close_after_drain(self):
        channel = Channel("test")
        channel.send(1)
        channel.close()
        
        assert channel.get(timeout=1) == 1
        with pytest.raises(ChannelClosedError):
            channel.get(timeout=1)
        # Still closed for every later reader
        with pytest.raises(ChannelClosedError):
            channel.get(timeout=1)

    def test_close_is_idempotent(self):
        channel = Channel("test")
        assert channel.close() is True
        assert channel.close() is False
        assert channel.closed is True

    def test_qsize_after_close(self):
        channel = Channel("test")
        channel.send(1)
        channel.close()
        assert channel.qsize() == 1
        
        channel.get(timeout=1)
        assert channel.qsize() == 0

    def test_send_after_close(self):
        channel = Channel("test")
        channel.close()
        assert channel.send("late") is False

    def test_send_abandoned_when_done(self):
        channel = Channel("test")
        done = threading.Event()
        done.set()
        
        assert channel.send("x", done) is False
        assert channel.qsize() == 0

    def test_iteration_stops_on_close(self):
        channel = Channel("test")
        for i in range(3):
            channel.send(i)
        channel.close()
        
        assert list(channel) == [0, 1, 2]

    def test_drain(self):
        channel = Channel("test")
        channel.send("a")
        channel.send("b")
        channel.close()
        
        assert channel.drain() == ["a", "b"]
        assert channel.drain() == []

    def test_get_blocks_until_close(self):
        channel = Channel("test")
        errors = []
        
        def consumer():
            try:
                channel.get(timeout=5)
            except ChannelClosedError as e:
                errors.append(e)
        
        thread = threading.Thread(target=consumer)
        thread.start()
        time.sleep(0.05)
        channel.close()
        thread.join(timeout=2)
        
        assert not thread.is_alive()
        assert len(errors) == 1


class TestBoundedChannel:
    """Tests for Channel with a capacity."""

    def test_send_waits_for_room(self):
        channel = Channel("test", maxsize=1, poll_interval=0.01)
        channel.send(1)
        done = threading.Event()
        results = []
        
        thread = threading.Thread(target=lambda: results.append(channel.send(2, done)))
        thread.start()
        time.sleep(0.05)
        assert results == []
        
        assert channel.get(timeout=1) == 1
        thread.join(timeout=2)
        
        assert results == [True]
        assert channel.get(timeout=1) == 2

    def test_blocked_send_abandoned_on_done(self):
        channel = Channel("test", maxsize=1, poll_interval=0.01)
        channel.send(1)
        done = threading.Event()
        results = []
        
        thread = threading.Thread(target=lambda: results.append(channel.send(2, done)))
        thread.start()
        time.sleep(0.05)
        done.set()
        thread.join(timeout=2)
        
        assert not thread.is_alive()
        assert results == [False]
        assert channel.qsize() == 1

    def test_blocked_send_abandoned_on_close(self):
        channel = Channel("test", maxsize=1, poll_interval=0.01)
        channel.send(1)
        results = []
        
        thread = threading.Thread(target=lambda: results.append(channel.send(2)))
        thread.start()
        time.sleep(0.05)
        channel.close()
        thread.join(timeout=2)
        
        assert results == [False]
