"""Cgroup inspection and migration for processes started outside our unit."""

from unitbridge.cgroups._host import CgroupHost, HostCgroupFS
from unitbridge.cgroups.inspector import membership_of, parse_membership
from unitbridge.cgroups.migrator import migrate, migrate_pid, select_controllers

__all__ = [
    "CgroupHost",
    "HostCgroupFS",
    "membership_of",
    "migrate",
    "migrate_pid",
    "parse_membership",
    "select_controllers",
]
