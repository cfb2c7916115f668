"""Supervisor readiness handshake over $NOTIFY_SOCKET.

systemd only trusts MAINPID/READY from processes it can see, and the
container's main process is not one it forked. We tell it the real main pid,
then declare readiness — unless the workload speaks the protocol itself.

The pid can die between "engine says running" and our datagram landing, so
liveness is checked on both sides of the MAINPID write. The second check
cannot close the window completely; it only keeps systemd from waiting on a
pid that is already gone.
"""

from __future__ import annotations

import os
import socket

from unitbridge.cgroups import CgroupHost
from unitbridge.logger import logger
from unitbridge.types import NotificationState


class ContainerExitedError(Exception):
    """The container's main process exited before notification completed."""

    def __init__(self, pid: int) -> None:
        super().__init__(f"Container pid {pid} exited before notification completed")
        self.pid = pid


def _socket_address(path: str) -> str:
    # "@name" is systemd's spelling of the abstract namespace
    if path.startswith("@"):
        return "\0" + path[1:]
    return path


def notify_ready(
    state: NotificationState,
    host: CgroupHost,
    own_pid: int | None = None,
) -> None:
    """Send ``MAINPID=<pid>`` and, unless delegated, ``READY=1``.

    Raises:
        ContainerExitedError: the pid was dead before or right after MAINPID.
        OSError: the socket could not be reached or written.
    """
    pid = state.main_pid
    if not host.pid_exists(pid):
        raise ContainerExitedError(pid)

    if not state.socket_path:
        logger.debug("No notify socket, skipping readiness handshake")
        return

    if own_pid is None:
        own_pid = os.getpid()

    with socket.socket(socket.AF_UNIX, socket.SOCK_DGRAM) as sock:
        sock.connect(_socket_address(state.socket_path))
        sock.sendall(f"MAINPID={pid}".encode())

        if not host.pid_exists(pid):
            # Hand MAINPID back to ourselves so systemd sees us exit instead
            sock.sendall(f"MAINPID={own_pid}".encode())
            raise ContainerExitedError(pid)

        if state.delegated:
            logger.info("Sent MAINPID, readiness left to the container", pid=pid)
            return

        sock.sendall(b"READY=1")
        logger.info("Notified supervisor", pid=pid)
