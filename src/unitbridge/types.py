"""Data models for unitbridge."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

# controller name (e.g. "cpu", "name=systemd", "" for the v2 unified tree) → path
ProcessMembership = dict[str, str]


class ReconciliationOutcome(Enum):
    """How the container behind a handle came to be running."""

    LAUNCHED = "launched"  # fresh `run`
    REATTACHED = "reattached"  # named container was already running
    RECREATED = "recreated"  # stale stopped container removed, then `run`
    RESTARTED = "restarted"  # stopped container started in place


@dataclass
class ContainerHandle:
    """The one object threaded through resolve → migrate → notify → finalize.

    Filled in as resolution proceeds; only usable downstream once ``pid > 0``.
    """

    id: str = ""
    name: str | None = None
    pid: int = 0
    running: bool = False


@dataclass(frozen=True)
class MigrationRequest:
    caller: ProcessMembership
    target: ProcessMembership
    controllers: list[str] | None = None  # None = every controller of the target


@dataclass(frozen=True)
class NotificationState:
    socket_path: str | None
    main_pid: int
    delegated: bool = False  # workload sends READY=1 itself


@dataclass
class RunOptions:
    """Everything one invocation needs, after CLI parsing and arg splitting."""

    run_args: list[str] = field(default_factory=list)
    name: str | None = None
    remove: bool = False
    detach: bool = False
    logs: bool = True
    notify: bool = False
    inherit_env: bool = False
    cgroups: list[str] | None = None  # None = all
    pid_file: str | None = None
    notify_socket: str | None = None
