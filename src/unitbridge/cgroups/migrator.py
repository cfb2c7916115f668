"""Move a process's cgroup siblings into our own cgroup leaves.

The supervisor only accounts for processes it forked. After the engine starts
a container elsewhere in the hierarchy, every pid filed under the container's
path is written into the matching path of the calling process, controller by
controller.

Both memberships must be snapshotted before the first write: a membership
goes stale the moment anything moves.
"""

from __future__ import annotations

import os

from unitbridge.cgroups._host import CgroupHost
from unitbridge.cgroups.inspector import membership_of
from unitbridge.logger import logger
from unitbridge.types import MigrationRequest

HIERARCHY_ROOT = "/"


def select_controllers(request: MigrationRequest) -> list[str]:
    """Controllers worth migrating, in request order.

    With no explicit list, every controller the target belongs to is a
    candidate. A candidate survives only if both sides have it, the paths
    differ, and the target is not parked at the hierarchy root.
    """
    if request.controllers:
        candidates = list(request.controllers)
    else:
        candidates = list(request.target)

    selected: list[str] = []
    for controller in candidates:
        caller_path = request.caller.get(controller)
        target_path = request.target.get(controller)
        if caller_path is None or target_path is None:
            continue
        if caller_path == target_path or target_path == HIERARCHY_ROOT:
            continue
        selected.append(controller)
    return selected


def migrate(request: MigrationRequest, host: CgroupHost) -> bool:
    """Write every live pid under the target's paths into the caller's paths.

    Returns whether anything moved. Pids that exit between listing and
    writing are skipped. Any read or write failure propagates as OSError;
    pids already moved stay moved.
    """
    moved = False
    for controller in select_controllers(request):
        caller_path = request.caller[controller]
        target_path = request.target[controller]

        for entry in host.list_procs(controller, target_path):
            try:
                pid = int(entry)
            except ValueError:
                continue

            if not host.pid_exists(pid):
                continue

            logger.info(
                "Moving pid",
                pid=pid,
                controller=controller or "unified",
                dest=str(host.procs_path(controller, caller_path)),
            )
            host.write_proc(controller, caller_path, entry)
            moved = True

    return moved


def migrate_pid(
    pid: int,
    host: CgroupHost,
    controllers: list[str] | None = None,
    own_pid: int | None = None,
) -> bool:
    """Snapshot our membership and *pid*'s, then migrate *pid*'s cgroups to us."""
    caller = membership_of(own_pid if own_pid is not None else os.getpid(), host)
    target = membership_of(pid, host)
    return migrate(MigrationRequest(caller=caller, target=target, controllers=controllers), host)
