"""Read a process's controller → path membership from /proc/<pid>/cgroup."""

from __future__ import annotations

from unitbridge.cgroups._host import CgroupHost
from unitbridge.types import ProcessMembership


def parse_membership(record: str) -> ProcessMembership:
    """Parse ``hierarchy-id:controller-list:path`` lines.

    Lines without all three fields are skipped. Only the first two colons
    split, so a path that itself contains ``:`` is kept whole. The cgroup v2
    unified line (``0::/x``) maps to the empty controller name.
    """
    membership: ProcessMembership = {}
    for line in record.splitlines():
        fields = line.split(":", 2)
        if len(fields) != 3:
            continue
        membership[fields[1]] = fields[2]
    return membership


def membership_of(pid: int, host: CgroupHost) -> ProcessMembership:
    """Fresh membership snapshot for *pid*.

    Raises OSError when the record is unreadable (process gone, or no
    permission). Not retried; callers decide whether that is transient.
    """
    return parse_membership(host.read_membership_record(pid))
