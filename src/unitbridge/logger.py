"""Structured logging singleton.

Reads LOG_LEVEL from os.environ directly: the logger must exist before
Settings loads so that config errors are themselves logged.

Everything goes to stderr: stdout carries the workload's own output when
logs are streamed. Once a container is resolved, ``container_context`` binds
its id and pid so every later line names the container it is about.
"""

from __future__ import annotations

import logging
import os
import re
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import structlog

from unitbridge.types import ContainerHandle

SHORT_ID_LEN = 12
_FULL_ID = re.compile(r"^[0-9a-f]{64}$")
_ID_KEYS = ("id", "container")


def _shorten_container_ids(
    _logger: Any, _method: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    """Render 64-hex engine ids the way `docker ps` does."""
    for key in _ID_KEYS:
        value = event_dict.get(key)
        if isinstance(value, str) and _FULL_ID.match(value):
            event_dict[key] = value[:SHORT_ID_LEN]
    return event_dict


def _setup_logging() -> structlog.stdlib.BoundLogger:
    level_name = os.environ.get("LOG_LEVEL", "INFO").upper()
    level = getattr(logging, level_name, logging.INFO)

    logging.basicConfig(level=level, format="%(message)s", stream=sys.stderr)

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.contextvars.merge_contextvars,
            _shorten_container_ids,
            structlog.stdlib.add_log_level,
            structlog.dev.set_exc_info,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    return structlog.get_logger("unitbridge")


logger = _setup_logging()


def set_level(level_name: str) -> None:
    """Apply a configured level after Settings has loaded."""
    level = getattr(logging, level_name.upper(), None)
    if isinstance(level, int):
        logging.getLogger().setLevel(level)


@contextmanager
def container_context(handle: ContainerHandle) -> Iterator[None]:
    """Bind the resolved container's id and pid to every log line in scope."""
    with structlog.contextvars.bound_contextvars(container=handle.id, container_pid=handle.pid):
        yield


def _uncaught_exception_handler(
    exc_type: type[BaseException],
    exc_value: BaseException,
    exc_tb: object,
) -> None:
    if issubclass(exc_type, KeyboardInterrupt):
        sys.__excepthook__(exc_type, exc_value, exc_tb)  # type: ignore[arg-type]
        return
    logger.critical("Uncaught exception", exc_info=(exc_type, exc_value, exc_tb))
    sys.exit(1)


sys.excepthook = _uncaught_exception_handler
