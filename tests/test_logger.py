"""Tests for the logging processors and container context."""

from __future__ import annotations

import structlog

from unitbridge.logger import _shorten_container_ids, container_context
from unitbridge.types import ContainerHandle

FULL_ID = "0123456789ab" + "c" * 52


class TestShortenContainerIds:
    def test_full_ids_are_shortened(self):
        event = _shorten_container_ids(None, "info", {"id": FULL_ID, "container": FULL_ID})
        assert event == {"id": "0123456789ab", "container": "0123456789ab"}

    def test_names_and_short_ids_untouched(self):
        event = {"container": "web", "id": "0123456789ab", "pid": 4321}
        assert _shorten_container_ids(None, "info", dict(event)) == event


class TestContainerContext:
    def test_binds_and_unbinds(self):
        handle = ContainerHandle(id=FULL_ID, pid=4321)
        with container_context(handle):
            bound = structlog.contextvars.get_contextvars()
            assert bound["container"] == FULL_ID
            assert bound["container_pid"] == 4321
        assert "container" not in structlog.contextvars.get_contextvars()
