"""Named-container reconciliation — reuse, restart, recreate, or launch.

Decision table for a given name::

    engine has no such container   → launch (with that name)
    exists, running                → reattach to its id/pid, spawn nothing
    exists, stopped, --rm given    → force-remove, then launch fresh so a
                                     changed command line is honoured
    exists, stopped, no --rm       → start it in place, re-inspect

Without a name every invocation launches.
"""

from __future__ import annotations

from unitbridge.engine import ContainerEngine
from unitbridge.logger import logger
from unitbridge.types import ContainerHandle, ReconciliationOutcome, RunOptions


class ResolutionError(Exception):
    """Container lookup/launch produced no usable pid."""

    def __init__(self, message: str, handle: ContainerHandle | None = None) -> None:
        super().__init__(message)
        self.handle = handle


async def _lookup_named(
    options: RunOptions, engine: ContainerEngine, handle: ContainerHandle
) -> ReconciliationOutcome | None:
    """Reconcile with an existing container of the same name.

    Fills *handle* and returns the outcome when the existing container is
    reused; returns None when a launch is still needed.
    """
    name = options.name
    assert name is not None
    existing = await engine.inspect(name)
    if existing is None:
        logger.debug("No existing container", name=name)
        return None

    if existing.running:
        handle.id = existing.id
        handle.pid = existing.pid
        handle.running = True
        logger.info("Reattaching to running container", name=name, id=existing.id[:12])
        return ReconciliationOutcome.REATTACHED

    if options.remove:
        logger.info("Removing stale stopped container", name=name, id=existing.id[:12])
        await engine.remove(existing.id, force=True)
        return ReconciliationOutcome.RECREATED

    handle.id = existing.id
    await engine.start(existing.id)
    restarted = await engine.inspect(name)
    if restarted is None:
        raise ResolutionError(f"container {name} vanished after start", handle=handle)
    handle.id = restarted.id
    handle.pid = restarted.pid
    handle.running = restarted.running
    return ReconciliationOutcome.RESTARTED


async def _launch(options: RunOptions, engine: ContainerEngine, handle: ContainerHandle) -> None:
    handle.id = await engine.launch(options.run_args)
    state = await engine.inspect(handle.id)
    if state is None:
        raise ResolutionError(f"Failed to find container {handle.id}", handle=handle)
    handle.pid = state.pid
    handle.running = state.running


async def resolve_container(
    options: RunOptions, engine: ContainerEngine
) -> tuple[ContainerHandle, ReconciliationOutcome]:
    """Produce a handle with a live pid, reusing a named container where possible.

    Raises:
        ResolutionError: the container resolved but its pid is not positive.
        EngineError: any engine failure, unmodified.
    """
    handle = ContainerHandle(name=options.name)
    outcome: ReconciliationOutcome | None = None

    if options.name:
        outcome = await _lookup_named(options, engine, handle)

    if not handle.id:
        await _launch(options, engine, handle)
        if outcome is None:
            outcome = ReconciliationOutcome.LAUNCHED

    if handle.pid <= 0:
        raise ResolutionError(
            f"Failed to launch container {handle.id or options.name}, pid is {handle.pid}",
            handle=handle,
        )

    logger.info(
        "Container resolved",
        id=handle.id[:12],
        pid=handle.pid,
        outcome=outcome.value,
    )
    return handle, outcome
