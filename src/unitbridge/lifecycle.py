"""End-of-life handling once the handle is resolved, migrated and announced.

Provides:
  - write_pid_file() — persist the container's main pid as decimal text
  - start_log_stream() — fire-and-forget task piping container output to ours
  - keep_alive() — poll the engine until the container stops
  - teardown() — force-remove the container when --rm was requested
  - finalize() — the above, in order, for attached invocations
"""

from __future__ import annotations

import asyncio
import contextlib
from pathlib import Path

from unitbridge.config import LifecycleConfig
from unitbridge.engine import ContainerEngine
from unitbridge.logger import logger
from unitbridge.types import ContainerHandle, RunOptions


def write_pid_file(path: str | Path | None, pid: int) -> bool:
    """Write *pid* to *path*. No trailing newline. Returns whether a file was written."""
    if not path or pid <= 0:
        return False
    Path(path).write_text(str(pid))
    logger.debug("Wrote pid file", path=str(path), pid=pid)
    return True


def _log_stream_done(task: asyncio.Task[None]) -> None:
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.warning("Log streaming stopped", err=str(exc))


def start_log_stream(engine: ContainerEngine, container_id: str) -> asyncio.Task[None]:
    """Spawn the log follower. Its failure is logged, never raised to the caller."""
    task = asyncio.create_task(engine.stream_logs(container_id), name="unitbridge-logs")
    task.add_done_callback(_log_stream_done)
    return task


async def keep_alive(engine: ContainerEngine, container_id: str, interval: float) -> None:
    """Return once the engine reports the container not running.

    Plain polling: no timeout, no event subscription.
    """
    while await engine.is_running(container_id):
        await asyncio.sleep(interval)
    logger.info("Container stopped", id=container_id[:12])


async def teardown(engine: ContainerEngine, handle: ContainerHandle, options: RunOptions) -> bool:
    """Force-remove the container if removal-on-exit was requested."""
    if not options.remove:
        return False
    await engine.remove(handle.id, force=True)
    return True


async def _drain(task: asyncio.Task[None], timeout: float) -> None:
    """Give the log follower a moment to flush, then cancel it."""
    done, _ = await asyncio.wait({task}, timeout=timeout)
    if task not in done:
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task


async def finalize(
    handle: ContainerHandle,
    options: RunOptions,
    engine: ContainerEngine,
    config: LifecycleConfig,
) -> None:
    """Block on the container's lifetime, streaming logs, then tear down.

    Detached invocations return immediately. Keep-alive only runs when there
    is something to wait for: logs to stream or a container to remove.
    """
    if options.detach:
        return

    log_task = start_log_stream(engine, handle.id) if options.logs else None
    try:
        if options.logs or options.remove:
            await keep_alive(engine, handle.id, config.poll_interval_seconds)
        await teardown(engine, handle, options)
    finally:
        if log_task is not None:
            await _drain(log_task, config.log_drain_seconds)
