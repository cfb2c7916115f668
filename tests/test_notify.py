"""Tests for the readiness handshake.

A real AF_UNIX datagram socket stands in for systemd's notify socket.
"""

from __future__ import annotations

import socket
import tempfile
from pathlib import Path

import pytest
from conftest import FakeCgroupHost

from unitbridge.notify import ContainerExitedError, notify_ready
from unitbridge.types import NotificationState

PID = 4321
OWN = 100


@pytest.fixture
def notify_socket():
    # sun_path is ~108 bytes; keep the path short
    with tempfile.TemporaryDirectory(prefix="ub") as tmp:
        path = str(Path(tmp) / "n.sock")
        server = socket.socket(socket.AF_UNIX, socket.SOCK_DGRAM)
        server.bind(path)
        server.setblocking(False)
        try:
            yield path, server
        finally:
            server.close()


def _received(server: socket.socket) -> list[bytes]:
    messages = []
    while True:
        try:
            messages.append(server.recv(4096))
        except BlockingIOError:
            return messages


class DyingHost(FakeCgroupHost):
    """Process is alive for the first liveness check only."""

    def __init__(self) -> None:
        super().__init__({PID: {}})
        self.checks = 0

    def pid_exists(self, pid: int) -> bool:
        self.checks += 1
        return self.checks == 1


class TestNotifyReady:
    def test_sends_mainpid_then_ready(self, notify_socket):
        path, server = notify_socket
        notify_ready(NotificationState(path, PID), FakeCgroupHost({PID: {}}), own_pid=OWN)
        assert _received(server) == [b"MAINPID=4321", b"READY=1"]

    def test_delegated_skips_ready(self, notify_socket):
        path, server = notify_socket
        state = NotificationState(path, PID, delegated=True)
        notify_ready(state, FakeCgroupHost({PID: {}}), own_pid=OWN)
        assert _received(server) == [b"MAINPID=4321"]

    def test_no_socket_is_noop(self):
        notify_ready(NotificationState(None, PID), FakeCgroupHost({PID: {}}), own_pid=OWN)

    def test_dead_pid_fails_before_sending(self, notify_socket):
        path, server = notify_socket
        with pytest.raises(ContainerExitedError) as exc_info:
            notify_ready(NotificationState(path, PID), FakeCgroupHost(), own_pid=OWN)
        assert exc_info.value.pid == PID
        assert _received(server) == []

    def test_dead_pid_fails_even_without_socket(self):
        with pytest.raises(ContainerExitedError):
            notify_ready(NotificationState(None, PID), FakeCgroupHost(), own_pid=OWN)

    def test_death_during_handshake_hands_mainpid_back(self, notify_socket):
        path, server = notify_socket
        with pytest.raises(ContainerExitedError, match="before notification completed"):
            notify_ready(NotificationState(path, PID), DyingHost(), own_pid=OWN)
        messages = _received(server)
        assert messages == [b"MAINPID=4321", b"MAINPID=100"]
        assert b"READY=1" not in messages

    def test_unreachable_socket_raises_oserror(self, tmp_path):
        with pytest.raises(OSError):
            notify_ready(
                NotificationState(str(tmp_path / "missing.sock"), PID),
                FakeCgroupHost({PID: {}}),
                own_pid=OWN,
            )
