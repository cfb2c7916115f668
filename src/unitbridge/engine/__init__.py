"""Container engine selection with plugin-extensible providers.

Docker and podman are built in. Other engines can be provided by plugins
registered under the ``unitbridge`` entry-point group.

Usage:
    from unitbridge.engine import get_engine

    engine = get_engine(get_settings())
    state = await engine.inspect("web")
"""

from __future__ import annotations

import pluggy

from unitbridge.config import Settings
from unitbridge.engine.hookspecs import UnitbridgeSpec
from unitbridge.engine.plugins import DockerEnginePlugin, PodmanEnginePlugin
from unitbridge.engine.runtime import (
    CliContainerEngine,
    ContainerEngine,
    ContainerState,
    EngineError,
)
from unitbridge.logger import logger

__all__ = [
    "CliContainerEngine",
    "ContainerEngine",
    "ContainerState",
    "EngineError",
    "get_engine",
    "get_plugin_manager",
]


def get_plugin_manager() -> pluggy.PluginManager:
    """Plugin manager with built-in engines plus any entry-point plugins."""
    pm = pluggy.PluginManager("unitbridge")
    pm.add_hookspecs(UnitbridgeSpec)
    pm.register(DockerEnginePlugin(), name="builtin-docker")
    pm.register(PodmanEnginePlugin(), name="builtin-podman")

    discovered = pm.load_setuptools_entrypoints("unitbridge")
    if discovered:
        logger.debug("Discovered third-party plugins", count=discovered)
    return pm


def get_engine(settings: Settings, pm: pluggy.PluginManager | None = None) -> ContainerEngine:
    """Pick the engine whose name matches ``settings.engine.name``."""
    pm = pm or get_plugin_manager()
    wanted = settings.engine.name
    available: list[str] = []
    for engine in pm.hook.unitbridge_container_engine(config=settings.engine):
        if engine is None:
            continue
        name = str(getattr(engine, "name", "")).lower()
        if name == wanted:
            logger.debug("Container engine selected", engine=name)
            return engine
        available.append(name)
    raise EngineError(f"Unknown container engine {wanted!r} (available: {sorted(available)})")
