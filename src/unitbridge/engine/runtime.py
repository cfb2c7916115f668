"""Container engine oracle — a docker-compatible CLI driven via subprocess.

One-shot commands run in a worker thread via ``asyncio.to_thread`` so the
log-stream task keeps flowing while we inspect and wait.
"""

from __future__ import annotations

import asyncio
import contextlib
import json
import subprocess
from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from unitbridge.logger import logger


class EngineError(RuntimeError):
    """The engine CLI failed. ``stderr`` is the engine's message, verbatim."""

    def __init__(self, message: str, *, returncode: int | None = None, stderr: str = "") -> None:
        super().__init__(message)
        self.returncode = returncode
        self.stderr = stderr


@dataclass(frozen=True)
class ContainerState:
    id: str
    name: str
    running: bool
    pid: int


@runtime_checkable
class ContainerEngine(Protocol):
    """What the resolver and finalizer need from a container engine."""

    name: str

    async def inspect(self, ref: str) -> ContainerState | None: ...
    async def start(self, ref: str) -> None: ...
    async def remove(self, ref: str, *, force: bool = True) -> None: ...
    async def launch(self, run_args: list[str]) -> str: ...
    async def stream_logs(self, ref: str) -> None: ...
    async def is_running(self, ref: str) -> bool: ...


def _is_missing(stderr: str) -> bool:
    # docker: "No such container: x" / "No such object: x"; podman: "no such container"
    return "no such" in stderr.lower()


def parse_inspect(stdout: str) -> ContainerState:
    """Parse ``inspect --format '{{json .}}'`` output.

    Raises:
        EngineError: the output is not a single container object.
    """
    try:
        data = json.loads(stdout)
    except json.JSONDecodeError as exc:
        raise EngineError(f"unparseable inspect output: {exc}") from exc
    if isinstance(data, list):
        # podman ignores --format for some versions and prints the array
        if not data:
            raise EngineError("inspect printed an empty list")
        data = data[0]
    if not isinstance(data, dict):
        raise EngineError(f"unexpected inspect output: {stdout.strip()[:80]}")
    state = data.get("State") or {}
    return ContainerState(
        id=data.get("Id") or data.get("ID") or "",
        name=(data.get("Name") or "").lstrip("/"),
        running=bool(state.get("Running")),
        pid=int(state.get("Pid") or 0),
    )


class CliContainerEngine:
    """Engine adapter for a docker-compatible CLI (docker, podman)."""

    def __init__(
        self,
        name: str,
        cli: str,
        *,
        host: str | None = None,
        host_flag: str = "--host",
        timeout: int = 60,
    ) -> None:
        self.name = name
        self.cli = cli
        self.host = host
        self.host_flag = host_flag
        self.timeout = timeout

    def _command(self, *args: str) -> list[str]:
        cmd = [self.cli]
        if self.host:
            cmd += [self.host_flag, self.host]
        cmd.extend(args)
        return cmd

    def _run_sync(self, *args: str, check: bool = True) -> subprocess.CompletedProcess[str]:
        """Run a CLI command (blocking — internal only)."""
        cmd = self._command(*args)
        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except (FileNotFoundError, subprocess.TimeoutExpired) as exc:
            raise EngineError(f"{self.cli} {args[0]} failed: {exc}") from exc
        if check and result.returncode != 0:
            raise EngineError(
                result.stderr.strip() or f"{self.cli} {args[0]} exited {result.returncode}",
                returncode=result.returncode,
                stderr=result.stderr,
            )
        return result

    async def _run(self, *args: str, check: bool = True) -> subprocess.CompletedProcess[str]:
        return await asyncio.to_thread(self._run_sync, *args, check=check)

    async def inspect(self, ref: str) -> ContainerState | None:
        """Inspect a container by id or name. None when the engine has no such container."""
        result = await self._run(
            "inspect", "--type", "container", "--format", "{{json .}}", ref, check=False
        )
        if result.returncode != 0:
            if _is_missing(result.stderr):
                return None
            raise EngineError(
                result.stderr.strip() or f"{self.cli} inspect exited {result.returncode}",
                returncode=result.returncode,
                stderr=result.stderr,
            )
        return parse_inspect(result.stdout)

    async def start(self, ref: str) -> None:
        await self._run("start", ref)
        logger.info("Started existing container", container=ref)

    async def remove(self, ref: str, *, force: bool = True) -> None:
        args = ["rm", "-f", ref] if force else ["rm", ref]
        await self._run(*args)
        logger.info("Removed container", container=ref)

    def _launch_sync(self, run_args: list[str]) -> str:
        # No timeout: `run` may pull an image first. Engine stderr goes straight to ours.
        cmd = self._command("run", *run_args)
        try:
            result = subprocess.run(cmd, stdout=subprocess.PIPE, text=True)
        except FileNotFoundError as exc:
            raise EngineError(f"{self.cli} run failed: {exc}") from exc
        if result.returncode != 0:
            raise EngineError(
                f"{self.cli} run exited {result.returncode}", returncode=result.returncode
            )
        lines = [line.strip() for line in result.stdout.splitlines() if line.strip()]
        if not lines:
            raise EngineError(f"{self.cli} run printed no container id")
        return lines[-1]

    async def launch(self, run_args: list[str]) -> str:
        """``run`` detached and return the container id it prints."""
        container_id = await asyncio.to_thread(self._launch_sync, run_args)
        logger.info("Launched container", id=container_id[:12])
        return container_id

    async def stream_logs(self, ref: str) -> None:
        """Follow the container's stdout/stderr into ours until it exits."""
        proc = await asyncio.create_subprocess_exec(*self._command("logs", "-f", ref))
        try:
            returncode = await proc.wait()
        except asyncio.CancelledError:
            if proc.returncode is None:
                with contextlib.suppress(ProcessLookupError):
                    proc.terminate()
                    await proc.wait()
            raise
        if returncode != 0:
            raise EngineError(f"{self.cli} logs exited {returncode}", returncode=returncode)

    async def is_running(self, ref: str) -> bool:
        state = await self.inspect(ref)
        return state is not None and state.running
