"""Shared test fixtures for addinpack.

Provides reusable fixtures for building a fake add-in project tree, a fake
toolchain that drops binaries where cargo would, isolated config
environments, output state management, and running CLI commands. These
fixtures are automatically discovered by pytest and available to all test
modules without explicit imports.
"""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

import pytest

from addinpack.artifacts import artifact_path
from addinpack.catalog import default_config
from addinpack.exceptions import ToolchainError
from addinpack.models import BuildRun, BuildTarget, BundleConfig
from addinpack.output import OutputFormat, OutputManager, reset_output, set_output


FROZEN_TIME = datetime(2024, 5, 6, 7, 8, 9, 123456, tzinfo=timezone.utc)


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The OutputManager caches references to sys.stdout/sys.stderr at
    creation time.  When Typer's CliRunner redirects those streams during
    a test and the test finishes, the cached references become stale
    ("I/O operation on closed file").  Resetting forces a fresh manager
    to be created on next use.
    """
    yield
    reset_output()


# ---------------------------------------------------------------------------
# Add-in project fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def addin_root(tmp_path: Path) -> Path:
    """A minimal add-in project directory containing a Cargo.toml."""
    root = tmp_path / "addin"
    root.mkdir()
    (root / "Cargo.toml").write_text(
        '[package]\nname = "common_addin"\nversion = "0.1.0"\n', encoding="utf-8"
    )
    return root


@pytest.fixture
def bundle_config() -> BundleConfig:
    """The built-in four-target configuration."""
    return default_config()


@pytest.fixture
def make_run(addin_root: Path, tmp_path: Path, bundle_config: BundleConfig):
    """Factory for :class:`BuildRun` instances over the fake add-in tree."""

    def _make(
        output: Optional[Path] = None,
        release: bool = True,
        timestamp: datetime = FROZEN_TIME,
        targets: Optional[list[BuildTarget]] = None,
    ) -> BuildRun:
        return BuildRun(
            addin_root=addin_root,
            output=output or tmp_path / "dist" / "addin.zip",
            release=release,
            timestamp=timestamp,
            targets=targets if targets is not None else list(bundle_config.targets),
        )

    return _make


# ---------------------------------------------------------------------------
# Fake toolchain
# ---------------------------------------------------------------------------


class FakeToolchain:
    """Stands in for ``cargo``/``cross``: writes a binary where cargo would.

    Args:
        addin_root: Project root the binaries are written under.
        config: Supplies the package naming policy.
        fail_on: ``archos`` tag whose build exits non-zero.
        skip_output_on: ``archos`` tag whose build "succeeds" without
            producing a binary.
    """

    def __init__(
        self,
        addin_root: Path,
        config: BundleConfig,
        fail_on: Optional[str] = None,
        skip_output_on: Optional[str] = None,
    ) -> None:
        self.addin_root = addin_root
        self.config = config
        self.fail_on = fail_on
        self.skip_output_on = skip_output_on
        self.calls: list[tuple[str, Path, bool]] = []
        self.stamps_seen: list[Optional[str]] = []

    def __call__(self, target: BuildTarget, manifest_path: Path, release: bool) -> None:
        self.calls.append((target.archos, manifest_path, release))
        stamp = self.addin_root / self.config.stamp_filename
        self.stamps_seen.append(stamp.read_text() if stamp.is_file() else None)

        if target.archos == self.fail_on:
            raise ToolchainError(
                f"'{target.toolchain} build' for {target.triple} exited with status 101",
                command=[target.toolchain, "build"],
                returncode=101,
                stderr="error: could not compile `common_addin`",
            )
        if target.archos == self.skip_output_on:
            return

        mode = "release" if release else "debug"
        path = artifact_path(self.addin_root, target, mode, self.config.package_names)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(f"binary for {target.triple} ({mode})".encode())


@pytest.fixture
def fake_toolchain(addin_root: Path, bundle_config: BundleConfig) -> FakeToolchain:
    """A toolchain invoker that always succeeds."""
    return FakeToolchain(addin_root, bundle_config)


@pytest.fixture
def make_toolchain(addin_root: Path, bundle_config: BundleConfig):
    """Factory for a :class:`FakeToolchain` that fails or skips one target."""

    def _make(
        fail_on: Optional[str] = None, skip_output_on: Optional[str] = None
    ) -> FakeToolchain:
        return FakeToolchain(
            addin_root, bundle_config, fail_on=fail_on, skip_output_on=skip_output_on
        )

    return _make


# ---------------------------------------------------------------------------
# Config isolation fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration to a temporary directory.

    Sets XDG_CONFIG_HOME and XDG_DATA_HOME to subdirectories of tmp_path
    so that tests never touch real user config, and clears the
    ADDINPACK_CONFIG and SOURCE_DATE_EPOCH environment variables.

    Returns:
        The tmp_path root directory for additional file creation.
    """
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    monkeypatch.setattr("addinpack.config._is_xdg_platform", lambda: True)
    for var in ["ADDINPACK_CONFIG", "SOURCE_DATE_EPOCH"]:
        monkeypatch.delenv(var, raising=False)
    return tmp_path


# ---------------------------------------------------------------------------
# Output fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def quiet_output() -> OutputManager:
    """Install a quiet PLAIN output manager for tests that don't check output."""
    output = OutputManager(format=OutputFormat.PLAIN, quiet=True)
    set_output(output)
    yield output
    reset_output()


# ---------------------------------------------------------------------------
# CLI runner fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def cli_runner():
    """Typer CLI test runner."""
    from typer.testing import CliRunner

    return CliRunner()
