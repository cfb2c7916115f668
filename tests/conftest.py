"""Shared test fixtures for unitbridge."""

from __future__ import annotations

from pathlib import Path

from unitbridge.engine import ContainerState

# ---------------------------------------------------------------------------
# Shared helpers (plain functions/classes, not fixtures — importable by test files)
# ---------------------------------------------------------------------------


def make_settings(**overrides):
    """Create a Settings object with sensible defaults for testing.

    Usage::

        s = make_settings()
        s = make_settings(lifecycle=LifecycleConfig(poll_interval_seconds=0.01))
    """
    from unitbridge.config import (
        CgroupConfig,
        EngineConfig,
        LifecycleConfig,
        LoggingConfig,
        Settings,
    )

    defaults = {
        "cgroup": CgroupConfig(),
        "engine": EngineConfig(),
        "lifecycle": LifecycleConfig(poll_interval_seconds=0.01, log_drain_seconds=0.1),
        "logging": LoggingConfig(),
    }
    defaults.update(overrides)
    return Settings.model_construct(**defaults)


class FakeCgroupHost:
    """In-memory cgroup hierarchy.

    ``memberships`` maps pid → {controller: path}. Writing a pid into a
    controller path moves it there, the way the kernel does.
    """

    def __init__(self, memberships: dict[int, dict[str, str]] | None = None) -> None:
        self.memberships: dict[int, dict[str, str]] = {
            pid: dict(m) for pid, m in (memberships or {}).items()
        }
        self.alive: set[int] = set(self.memberships)
        self.extra_listed: dict[tuple[str, str], list[str]] = {}
        self.writes: list[tuple[str, str, str]] = []
        self.fail_writes = False

    def read_membership_record(self, pid: int) -> str:
        if pid not in self.memberships or pid not in self.alive:
            raise FileNotFoundError(f"/proc/{pid}/cgroup")
        lines = [
            f"{i}:{controller}:{path}"
            for i, (controller, path) in enumerate(self.memberships[pid].items(), start=1)
        ]
        return "\n".join(lines) + "\n"

    def procs_path(self, controller: str, path: str) -> Path:
        return Path("/fake") / controller.removeprefix("name=") / path.lstrip("/") / "cgroup.procs"

    def list_procs(self, controller: str, path: str) -> list[str]:
        members = [
            str(pid) for pid, m in self.memberships.items() if m.get(controller) == path
        ]
        return members + self.extra_listed.get((controller, path), [])

    def write_proc(self, controller: str, path: str, pid: str) -> None:
        if self.fail_writes:
            raise PermissionError(f"cannot write {self.procs_path(controller, path)}")
        self.writes.append((controller, path, pid))
        self.memberships.setdefault(int(pid), {})[controller] = path

    def pid_exists(self, pid: int) -> bool:
        return pid in self.alive

    def kill(self, pid: int) -> None:
        self.alive.discard(pid)


class FakeEngine:
    """Scripted container engine.

    ``containers`` is keyed by both id and name. ``launch`` hands out ids
    ``new-1``, ``new-2``... with pids from ``launch_pids``. ``is_running``
    reports True for ``running_polls`` calls, then False.
    """

    name = "fake"

    def __init__(
        self,
        containers: list[ContainerState] | None = None,
        launch_pids: list[int] | None = None,
        running_polls: int = 0,
        restart_pid: int = 0,
    ) -> None:
        self.containers: dict[str, ContainerState] = {}
        for c in containers or []:
            self._store(c)
        self.launch_pids = list(launch_pids or [])
        self.running_polls = running_polls
        self.restart_pid = restart_pid
        self.calls: list[tuple] = []
        self.polls = 0
        self.log_error: Exception | None = None
        self.log_block = False

    def _store(self, c: ContainerState) -> None:
        self.containers[c.id] = c
        if c.name:
            self.containers[c.name] = c

    async def inspect(self, ref: str) -> ContainerState | None:
        self.calls.append(("inspect", ref))
        return self.containers.get(ref)

    async def start(self, ref: str) -> None:
        self.calls.append(("start", ref))
        c = self.containers[ref]
        self._store(ContainerState(id=c.id, name=c.name, running=True, pid=self.restart_pid))

    async def remove(self, ref: str, *, force: bool = True) -> None:
        self.calls.append(("remove", ref, force))
        c = self.containers.pop(ref, None)
        if c is not None:
            self.containers.pop(c.id, None)
            self.containers.pop(c.name, None)

    async def launch(self, run_args: list[str]) -> str:
        self.calls.append(("launch", list(run_args)))
        pid = self.launch_pids.pop(0) if self.launch_pids else 0
        cid = f"new-{sum(1 for call in self.calls if call[0] == 'launch')}"
        name = ""
        if "--name" in run_args:
            name = run_args[run_args.index("--name") + 1]
        self._store(ContainerState(id=cid, name=name, running=pid > 0, pid=pid))
        return cid

    async def stream_logs(self, ref: str) -> None:
        import asyncio

        self.calls.append(("logs", ref))
        if self.log_error is not None:
            raise self.log_error
        while self.log_block:
            await asyncio.sleep(0.01)

    async def is_running(self, ref: str) -> bool:
        self.polls += 1
        return self.polls <= self.running_polls

    def call_names(self) -> list[str]:
        return [call[0] for call in self.calls]
