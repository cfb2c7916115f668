"""The per-invocation pipeline: resolve → migrate → notify → pid-file → finalize.

Each step runs once. Nothing is retried and nothing is rolled back: once a
pid has been moved or a pid file written, later failures leave it in place.
Errors carry the handle (``exc.handle``) when one exists, so the caller can
still report which container and pid were involved.
"""

from __future__ import annotations

from dataclasses import dataclass

from unitbridge.cgroups import CgroupHost, migrate_pid
from unitbridge.config import Settings
from unitbridge.engine import ContainerEngine
from unitbridge.lifecycle import finalize, write_pid_file
from unitbridge.logger import container_context, logger
from unitbridge.notify import notify_ready
from unitbridge.resolver import resolve_container
from unitbridge.types import (
    ContainerHandle,
    NotificationState,
    ReconciliationOutcome,
    RunOptions,
)


@dataclass
class BridgeResult:
    handle: ContainerHandle
    outcome: ReconciliationOutcome
    moved: bool


async def run_bridge(
    options: RunOptions,
    engine: ContainerEngine,
    host: CgroupHost,
    settings: Settings,
    own_pid: int | None = None,
) -> BridgeResult:
    """Run one container under the calling unit and, unless detached, outlive it."""
    handle, outcome = await resolve_container(options, engine)

    try:
        with container_context(handle):
            moved = migrate_pid(handle.pid, host, controllers=options.cgroups, own_pid=own_pid)
            if not moved:
                logger.debug("No cgroup membership to move", pid=handle.pid)

            notify_ready(
                NotificationState(
                    socket_path=options.notify_socket,
                    main_pid=handle.pid,
                    delegated=options.notify,
                ),
                host,
                own_pid=own_pid,
            )

            write_pid_file(options.pid_file, handle.pid)

            await finalize(handle, options, engine, settings.lifecycle)
    except Exception as exc:
        exc.handle = handle  # type: ignore[attr-defined]
        raise

    return BridgeResult(handle=handle, outcome=outcome, moved=moved)
