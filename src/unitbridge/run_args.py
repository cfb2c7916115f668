"""Turn our flags plus the engine's ``run`` arguments into RunOptions.

The engine's own flags are passed through untouched except for a few we
must see or own:

  - ``--rm`` is removed: removal happens here after the container stops,
    because the engine would otherwise delete it before we can inspect it
  - ``-d`` is forced: we need the id printed by a detached run
  - ``--name`` is read (and kept) so a restart can find the same container
"""

from __future__ import annotations

import os
from collections.abc import Mapping

from unitbridge.types import RunOptions

_RM_FLAGS = frozenset({"-rm", "--rm"})
_DETACH_FLAGS = frozenset({"-d", "-detach", "--detach"})
_NAME_FLAGS = ("--name", "-name")
_ENV_SKIP = ("HOME=", "PATH=")


def split_run_args(args: list[str]) -> tuple[list[str], str | None, bool, bool]:
    """Return ``(run_args, name, remove, detach)``.

    ``detach`` reports whether the caller asked for ``-d`` themselves; the
    returned args always contain it.
    """
    run_args: list[str] = []
    name: str | None = None
    remove = False
    detach = False

    for i, arg in enumerate(args):
        if arg in _RM_FLAGS:
            remove = True
            continue
        if arg in _DETACH_FLAGS:
            detach = True
        elif arg.startswith(_NAME_FLAGS):
            flag, sep, value = arg.partition("=")
            if flag in _NAME_FLAGS:
                if sep:
                    name = value
                elif i + 1 < len(args):
                    name = args[i + 1]
        run_args.append(arg)

    if not detach:
        run_args.insert(0, "-d")

    return run_args, name or None, remove, detach


def _environment_args(
    options: RunOptions,
    environ: Mapping[str, str],
) -> list[str]:
    extra: list[str] = []
    if options.notify and options.notify_socket:
        sock = options.notify_socket
        extra += ["-e", f"NOTIFY_SOCKET={sock}", "-v", f"{sock}:{sock}"]
    else:
        options.notify = False

    if options.inherit_env:
        for key, value in environ.items():
            entry = f"{key}={value}"
            if not entry.startswith(_ENV_SKIP):
                extra += ["-e", entry]
    return extra


def build_options(
    args: list[str],
    *,
    pid_file: str | None = None,
    logs: bool = True,
    notify: bool = False,
    inherit_env: bool = False,
    cgroups: list[str] | None = None,
    environ: Mapping[str, str] | None = None,
) -> RunOptions:
    """Assemble RunOptions for one invocation.

    ``NOTIFY_SOCKET`` comes from *environ* (the process environment by
    default). Readiness delegation is dropped when there is no socket.
    """
    if environ is None:
        environ = os.environ

    run_args, name, remove, detach = split_run_args(args)

    selected = list(cgroups) if cgroups else None
    if selected is not None and "all" in selected:
        selected = None

    options = RunOptions(
        run_args=run_args,
        name=name,
        remove=remove,
        detach=detach,
        logs=logs,
        notify=notify,
        inherit_env=inherit_env,
        cgroups=selected,
        pid_file=pid_file or None,
        notify_socket=environ.get("NOTIFY_SOCKET") or None,
    )

    extra = _environment_args(options, environ)
    if extra:
        options.run_args = extra + options.run_args
    return options
