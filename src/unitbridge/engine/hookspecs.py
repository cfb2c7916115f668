"""Pluggy hook specifications for unitbridge engine providers."""

from __future__ import annotations

from typing import Any

import pluggy

from unitbridge.config import EngineConfig

hookspec = pluggy.HookspecMarker("unitbridge")
hookimpl = pluggy.HookimplMarker("unitbridge")


class UnitbridgeSpec:
    """Hook specifications for unitbridge plugins."""

    @hookspec
    def unitbridge_container_engine(self, config: EngineConfig) -> Any | None:
        """Provide a container engine implementation.

        Engine plugins return an object with:
            - name (str): engine identifier matched against ``[engine].name``
            - async inspect(ref) -> ContainerState | None
            - async start(ref), async remove(ref, force=True)
            - async launch(run_args) -> container id
            - async stream_logs(ref), async is_running(ref) -> bool

        Returns:
            Engine object, or None if this plugin doesn't provide one.
        """
