"""Centralized configuration — Pydantic BaseSettings with TOML + env sources.

Site-wide settings live in /etc/unitbridge/config.toml (optional). Environment
variables override the file using the ``UNITBRIDGE_`` prefix and ``__`` as the
nested delimiter (e.g. ``UNITBRIDGE_LIFECYCLE__POLL_INTERVAL_SECONDS=0.5``).

Priority (highest wins): init args > env vars > config.toml

Usage::

    from unitbridge.config import get_settings

    s = get_settings()
    print(s.cgroup.root)
    print(s.engine.name)
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    TomlConfigSettingsSource,
)

CONFIG_FILE = "/etc/unitbridge/config.toml"

# ---------------------------------------------------------------------------
# Sub-models (each maps to a [section] in config.toml)
# ---------------------------------------------------------------------------


class _StrictModel(BaseModel):
    """Base for all config sub-models — reject unknown keys so typos fail loudly."""

    model_config = {"extra": "forbid"}


class CgroupConfig(_StrictModel):
    root: Path = Path("/sys/fs/cgroup")
    proc_root: Path = Path("/proc")
    procs_file: str = "cgroup.procs"


class EngineConfig(_StrictModel):
    name: str = "docker"  # "docker" | "podman" | plugin engine name
    cli: str | None = None  # executable override; defaults to the engine's own
    host: str | None = None  # daemon endpoint, passed as --host
    timeout_seconds: int = 60  # one-shot CLI calls only, never the log stream

    @field_validator("name")
    @classmethod
    def normalize_name(cls, v: str) -> str:
        return v.strip().lower()


class LifecycleConfig(_StrictModel):
    poll_interval_seconds: float = 1.0
    log_drain_seconds: float = 2.0

    @field_validator("poll_interval_seconds")
    @classmethod
    def positive_interval(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("poll_interval_seconds must be positive")
        return v

    @field_validator("log_drain_seconds")
    @classmethod
    def clamp_drain(cls, v: float) -> float:
        return max(0.0, v)


class LoggingConfig(_StrictModel):
    level: str = "INFO"

    @field_validator("level")
    @classmethod
    def normalize_level(cls, v: str) -> str:
        return v.upper()


# ---------------------------------------------------------------------------
# Root Settings
# ---------------------------------------------------------------------------


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        toml_file=CONFIG_FILE,
        env_prefix="UNITBRIDGE_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    cgroup: CgroupConfig = CgroupConfig()
    engine: EngineConfig = EngineConfig()
    lifecycle: LifecycleConfig = LifecycleConfig()
    logging: LoggingConfig = LoggingConfig()

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Priority: init > env vars > config.toml."""
        return (
            init_settings,
            env_settings,
            TomlConfigSettingsSource(settings_cls),
        )


_settings: Settings | None = None


def get_settings() -> Settings:
    """Lazy singleton — first call reads env and config.toml."""
    global _settings  # noqa: PLW0603
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Drop the cached Settings. Tests only."""
    global _settings  # noqa: PLW0603
    _settings = None
