"""Entry point for `python -m unitbridge` / `unitbridge`.

Subcommands:
    unitbridge [flags] run <engine run args>    Run a container as this unit's main process
    unitbridge [flags] unit <engine run args>   Print (or --install) a systemd unit for it

Flags must come before the subcommand; everything after it goes to the
engine's ``run`` untouched (apart from --rm and -d, see run_args).
"""

from __future__ import annotations

import argparse
import asyncio
import sys

from unitbridge.bridge import run_bridge
from unitbridge.cgroups import HostCgroupFS
from unitbridge.config import get_settings
from unitbridge.engine import EngineError, get_engine
from unitbridge.logger import logger, set_level
from unitbridge.notify import ContainerExitedError
from unitbridge.resolver import ResolutionError
from unitbridge.run_args import build_options
from unitbridge.service_unit import install_unit, render_unit


def _parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="unitbridge",
        description="Run a container as the main process of a systemd unit",
    )
    parser.add_argument("-p", "--pid-file", default=None, help="write the container pid here")
    parser.add_argument(
        "-l",
        "--logs",
        action=argparse.BooleanOptionalAction,
        default=True,
        help="stream container output (default: on)",
    )
    parser.add_argument(
        "-n",
        "--notify",
        action="store_true",
        help="pass NOTIFY_SOCKET into the container and let it send READY=1",
    )
    parser.add_argument(
        "-e", "--env", action="store_true", help="pass our environment into the container"
    )
    parser.add_argument(
        "-c",
        "--cgroups",
        action="append",
        default=None,
        help="cgroup controller to take over, repeatable, or 'all' (default: all)",
    )
    parser.add_argument(
        "--install", action="store_true", help="unit: write to /etc/systemd/system"
    )
    parser.add_argument("command", choices=["run", "unit"])
    parser.add_argument("args", nargs=argparse.REMAINDER)
    return parser


def _forwarded_flags(ns: argparse.Namespace) -> list[str]:
    """Our own flags, re-rendered for a unit's ExecStart line."""
    flags: list[str] = []
    if ns.pid_file:
        flags += ["--pid-file", ns.pid_file]
    if not ns.logs:
        flags.append("--no-logs")
    if ns.notify:
        flags.append("--notify")
    if ns.env:
        flags.append("--env")
    for cgroup in ns.cgroups or []:
        flags += ["--cgroups", cgroup]
    return flags


def _unit(ns: argparse.Namespace) -> None:
    s = get_settings()
    options = build_options(ns.args, environ={})
    name = options.name or "unitbridge-container"
    requires = "docker.service" if s.engine.name == "docker" else None
    text = render_unit(
        [*_forwarded_flags(ns), "run", *ns.args],
        description=f"{name} container",
        requires=requires,
    )
    if ns.install:
        install_unit(name, text)
    else:
        sys.stdout.write(text)


def _run(ns: argparse.Namespace) -> int:
    s = get_settings()
    set_level(s.logging.level)

    options = build_options(
        ns.args,
        pid_file=ns.pid_file,
        logs=ns.logs,
        notify=ns.notify,
        inherit_env=ns.env,
        cgroups=ns.cgroups,
    )
    host = HostCgroupFS.from_config(s.cgroup)

    try:
        engine = get_engine(s)
        asyncio.run(run_bridge(options, engine, host, s))
    except (ResolutionError, EngineError, ContainerExitedError, OSError) as exc:
        handle = getattr(exc, "handle", None)
        logger.error(
            "unitbridge failed",
            err=str(exc),
            error_type=type(exc).__name__,
            id=handle.id[:12] if handle and handle.id else None,
            pid=handle.pid if handle else None,
        )
        return 1
    return 0


def main(argv: list[str] | None = None) -> None:
    parser = _parser()
    ns = parser.parse_args(argv)
    if not ns.args:
        parser.error(f"{ns.command} needs the engine's run arguments (e.g. an image)")

    match ns.command:
        case "unit":
            _unit(ns)
        case _:
            sys.exit(_run(ns))


if __name__ == "__main__":
    main()
