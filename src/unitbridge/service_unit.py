"""systemd unit generation and installation for a bridged container."""

from __future__ import annotations

import shlex
import shutil
import subprocess
from pathlib import Path

from unitbridge.logger import logger

DEFAULT_UNIT_DIR = Path("/etc/systemd/system")


def render_unit(
    argv: list[str],
    description: str,
    executable: str | None = None,
    requires: str | None = "docker.service",
) -> str:
    """Unit text whose ExecStart runs ``unitbridge <argv>`` as a notify service.

    NotifyAccess=all is required: MAINPID names the container's process,
    which is not the one systemd forked.
    """
    exe = executable or shutil.which("unitbridge") or "/usr/local/bin/unitbridge"
    exec_start = shlex.join([exe, *argv])
    deps = f"After={requires}\nRequires={requires}\n" if requires else ""
    return f"""\
[Unit]
Description={description}
{deps}
[Service]
Type=notify
NotifyAccess=all
ExecStart={exec_start}
Restart=always
RestartSec=10
TimeoutStartSec=0

[Install]
WantedBy=multi-user.target
"""


def install_unit(name: str, text: str, unit_dir: Path = DEFAULT_UNIT_DIR) -> bool:
    """Write ``<name>.service`` and reload systemd. Returns False if already up to date."""
    dest = unit_dir / f"{name}.service"
    if dest.exists() and dest.read_text() == text:
        return False
    dest.parent.mkdir(parents=True, exist_ok=True)
    dest.write_text(text)
    logger.info("Installed systemd unit", dest=str(dest))
    subprocess.run(["systemctl", "daemon-reload"], capture_output=True)
    return True
