"""Compiler invoker: runs ``cargo``/``cross`` once per build target.

Each invocation is a blocking ``subprocess.run`` with no timeout; success is
defined solely by a zero exit status. Output is captured so a failing build
can be diagnosed from the :class:`~addinpack.exceptions.ToolchainError`
instead of being lost in the terminal scrollback.

Usage::

    command = build_command(target, Path("addin/Cargo.toml"), release=True)
    # ['cross', 'build', '--manifest-path', 'addin/Cargo.toml',
    #  '--target', 'x86_64-unknown-linux-gnu', '--release']
"""

from __future__ import annotations

import shlex
import shutil
import subprocess
from pathlib import Path
from typing import Callable, Iterable

from addinpack.exceptions import ToolchainError
from addinpack.models import BuildTarget
from addinpack.output import debug

Invoker = Callable[[BuildTarget, Path, bool], None]
"""Signature of a toolchain invoker: ``(target, manifest_path, release)``."""


def build_command(target: BuildTarget, manifest_path: Path, release: bool) -> list[str]:
    """Return the argument vector that builds *target*."""
    command = [
        target.toolchain,
        "build",
        "--manifest-path",
        str(manifest_path),
        "--target",
        target.triple,
    ]
    if release:
        command.append("--release")
    return command


def invoke_toolchain(target: BuildTarget, manifest_path: Path, release: bool) -> None:
    """Build *target* and wait for the toolchain to exit.

    Raises:
        ToolchainError: If the process cannot be spawned or exits non-zero.
            The error carries the command and the captured stdout/stderr.
    """
    command = build_command(target, manifest_path, release)
    debug(f"Running: {shlex.join(command)}")

    try:
        result = subprocess.run(
            command,
            capture_output=True,
            text=True,
            encoding="utf-8",
            errors="replace",
            check=False,
        )
    except OSError as exc:
        raise ToolchainError(
            f"Cannot run '{target.toolchain}' for {target.triple}: {exc}",
            command=command,
        ) from exc

    if result.stdout:
        debug(result.stdout.rstrip())
    if result.stderr:
        debug(result.stderr.rstrip())

    if result.returncode != 0:
        raise ToolchainError(
            f"'{target.toolchain} build' for {target.triple} exited with "
            f"status {result.returncode}",
            command=command,
            returncode=result.returncode,
            stdout=result.stdout or "",
            stderr=result.stderr or "",
        )


def check_toolchains(targets: Iterable[BuildTarget]) -> None:
    """Verify every toolchain command used by *targets* is on ``PATH``.

    Spawns nothing; runs before the stamp file or the bundle is touched.

    Raises:
        ToolchainError: Naming every missing command.
    """
    checked: set[str] = set()
    missing: list[str] = []
    for target in targets:
        if target.toolchain in checked:
            continue
        checked.add(target.toolchain)
        if shutil.which(target.toolchain) is None:
            missing.append(target.toolchain)
    if missing:
        raise ToolchainError(f"Toolchain not found on PATH: {', '.join(missing)}")
