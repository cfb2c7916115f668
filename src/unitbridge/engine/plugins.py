"""Built-in engine providers: docker and podman CLIs."""

from __future__ import annotations

from typing import Any

from unitbridge.config import EngineConfig
from unitbridge.engine.hookspecs import hookimpl
from unitbridge.engine.runtime import CliContainerEngine


class DockerEnginePlugin:
    @hookimpl
    def unitbridge_container_engine(self, config: EngineConfig) -> Any | None:
        return CliContainerEngine(
            "docker",
            config.cli or "docker",
            host=config.host,
            timeout=config.timeout_seconds,
        )


class PodmanEnginePlugin:
    @hookimpl
    def unitbridge_container_engine(self, config: EngineConfig) -> Any | None:
        return CliContainerEngine(
            "podman",
            config.cli or "podman",
            host=config.host,
            host_flag="--url",
            timeout=config.timeout_seconds,
        )
