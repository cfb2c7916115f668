"""Filesystem capability behind the cgroup inspector and migrator.

Everything here touches kernel-owned pseudo-files, so nothing is cached and
nothing is locked: callers re-check ``pid_exists`` right before each write.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Protocol, runtime_checkable

from unitbridge.config import CgroupConfig


@runtime_checkable
class CgroupHost(Protocol):
    """Narrow read/write surface over /proc and the cgroup hierarchies."""

    def read_membership_record(self, pid: int) -> str: ...
    def list_procs(self, controller: str, path: str) -> list[str]: ...
    def write_proc(self, controller: str, path: str, pid: str) -> None: ...
    def pid_exists(self, pid: int) -> bool: ...
    def procs_path(self, controller: str, path: str) -> Path: ...


class HostCgroupFS:
    """Real kernel hierarchy: /proc/<pid>/cgroup and <root>/<controller>/<path>/cgroup.procs.

    The v2 unified tree (controller ``""``) lives at <root> on pure v2 hosts
    and at <root>/unified on hybrid ones.
    """

    def __init__(
        self,
        root: Path = Path("/sys/fs/cgroup"),
        proc_root: Path = Path("/proc"),
        procs_file: str = "cgroup.procs",
    ) -> None:
        self.root = Path(root)
        self.proc_root = Path(proc_root)
        self.procs_file = procs_file

    @classmethod
    def from_config(cls, cfg: CgroupConfig) -> HostCgroupFS:
        return cls(root=cfg.root, proc_root=cfg.proc_root, procs_file=cfg.procs_file)

    def read_membership_record(self, pid: int) -> str:
        return (self.proc_root / str(pid) / "cgroup").read_text()

    @property
    def unified_root(self) -> Path:
        hybrid = self.root / "unified"
        return hybrid if hybrid.is_dir() else self.root

    def procs_path(self, controller: str, path: str) -> Path:
        # systemd's named hierarchy shows up as "name=systemd" but mounts as "systemd"
        controller = controller.removeprefix("name=")
        base = self.root / controller if controller else self.unified_root
        return base / path.lstrip("/") / self.procs_file

    def list_procs(self, controller: str, path: str) -> list[str]:
        text = self.procs_path(controller, path).read_text()
        return [line.strip() for line in text.splitlines() if line.strip()]

    def write_proc(self, controller: str, path: str, pid: str) -> None:
        # One pid per write(2); the kernel rejects batched writes
        with open(self.procs_path(controller, path), "w") as f:
            f.write(pid)

    def pid_exists(self, pid: int) -> bool:
        return os.path.exists(self.proc_root / str(pid))
