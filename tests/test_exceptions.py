"""Tests for the exception hierarchy and its exit codes."""

from __future__ import annotations

import pytest

from addinpack import exit_codes
from addinpack.exceptions import (
    AddinpackError,
    ArtifactNotFoundError,
    BundleError,
    ConfigError,
    InvalidUsageError,
    StampError,
    ToolchainError,
)


@pytest.mark.parametrize(
    ("exc_type", "code"),
    [
        (AddinpackError, exit_codes.EXIT_GENERIC_FAILURE),
        (InvalidUsageError, exit_codes.EXIT_INVALID_USAGE),
        (ConfigError, exit_codes.EXIT_CONFIG_ERROR),
        (ToolchainError, exit_codes.EXIT_TOOLCHAIN_FAILURE),
        (ArtifactNotFoundError, exit_codes.EXIT_ARTIFACT_NOT_FOUND),
        (StampError, exit_codes.EXIT_STAMP_ERROR),
        (BundleError, exit_codes.EXIT_BUNDLE_ERROR),
    ],
)
def test_exit_code_per_category(exc_type, code) -> None:
    exc = exc_type("boom")
    assert exc.exit_code == code
    assert isinstance(exc, AddinpackError)
    assert str(exc) == "boom"


def test_exit_codes_are_distinct() -> None:
    codes = [
        exit_codes.EXIT_SUCCESS,
        exit_codes.EXIT_GENERIC_FAILURE,
        exit_codes.EXIT_INVALID_USAGE,
        exit_codes.EXIT_CONFIG_ERROR,
        exit_codes.EXIT_TOOLCHAIN_FAILURE,
        exit_codes.EXIT_ARTIFACT_NOT_FOUND,
        exit_codes.EXIT_STAMP_ERROR,
        exit_codes.EXIT_BUNDLE_ERROR,
    ]
    assert len(set(codes)) == len(codes)


def test_exit_code_override() -> None:
    assert BundleError("boom", exit_code=42).exit_code == 42


def test_toolchain_error_keeps_output() -> None:
    exc = ToolchainError(
        "cross failed",
        command=("cross", "build"),
        returncode=101,
        stdout="compiling",
        stderr="error: linker",
    )
    assert exc.command == ["cross", "build"]
    assert exc.returncode == 101
    assert exc.stdout == "compiling"
    assert exc.stderr == "error: linker"


def test_toolchain_error_defaults() -> None:
    exc = ToolchainError("Toolchain not found on PATH: cross")
    assert exc.command == []
    assert exc.returncode is None
    assert exc.stderr == ""
