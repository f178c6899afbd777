"""Locate compiled binaries and derive their archive entry names.

Cargo writes each build to ``<root>/target/<triple>/<mode>/<file>``, where the
file name depends on the target OS: ``common_addin.dll`` on Windows and
``libcommon_addin.so`` on Linux by default. That mapping is a naming policy
(``BundleConfig.package_names``), not something derived from the triple.

Inside the bundle every binary is renamed to
``<package-name>.<archos>.<timestamp>.<ext>``, e.g.
``libcommon_addin.linux64.20240506070809.so``.
"""

from __future__ import annotations

from pathlib import Path
from typing import Mapping

from addinpack.exceptions import ArtifactNotFoundError, ConfigError
from addinpack.models import BuildRun, BuildTarget, BundleConfig, CompiledArtifact
from addinpack.output import debug


def package_name(target: BuildTarget, package_names: Mapping[str, str]) -> str:
    """Return the file stem the toolchain produces for *target*."""
    try:
        return package_names[target.os]
    except KeyError:
        raise ConfigError(f"No package name configured for OS '{target.os}'") from None


def artifact_path(
    root: Path, target: BuildTarget, mode: str, package_names: Mapping[str, str]
) -> Path:
    """Return the conventional output path of *target*'s binary."""
    file_name = f"{package_name(target, package_names)}.{target.ext}"
    return root / "target" / target.triple / mode / file_name


def locate(
    root: Path, target: BuildTarget, mode: str, package_names: Mapping[str, str]
) -> Path:
    """Return the path of *target*'s compiled binary.

    Raises:
        ArtifactNotFoundError: If nothing exists at the conventional path.
    """
    path = artifact_path(root, target, mode, package_names)
    if not path.is_file():
        raise ArtifactNotFoundError(
            f"Expected {target.archos} binary not found at: {path}"
        )
    return path


def entry_name(
    target: BuildTarget, timestamp: str, package_names: Mapping[str, str]
) -> str:
    """Return the archive entry name for *target* built at *timestamp*."""
    return f"{package_name(target, package_names)}.{target.archos}.{timestamp}.{target.ext}"


def collect(run: BuildRun, target: BuildTarget, config: BundleConfig) -> CompiledArtifact:
    """Locate, read, and rename the binary the toolchain just built.

    Raises:
        ArtifactNotFoundError: If the binary is missing or unreadable.
    """
    path = locate(run.addin_root, target, run.mode, config.package_names)
    try:
        content = path.read_bytes()
    except OSError as exc:
        raise ArtifactNotFoundError(f"Cannot read binary {path}: {exc}") from exc

    name = entry_name(target, run.compact_timestamp, config.package_names)
    debug(f"Collected {path} ({len(content)} bytes) as {name}")
    return CompiledArtifact(
        target=target,
        entry_name=name,
        content=content,
        source_path=path,
    )
