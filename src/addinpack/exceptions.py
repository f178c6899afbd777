"""Exception hierarchy for addinpack.

All exceptions inherit from :class:`AddinpackError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`addinpack.exit_codes`.
The top-level error handler in :func:`addinpack.app.main` catches
``AddinpackError`` and exits with the appropriate code, while unexpected
exceptions produce a crash log and exit with :data:`EXIT_GENERIC_FAILURE`.

Every error is fatal to the run: there is no retry and no per-target
isolation.

Subclass hierarchy::

    AddinpackError (exit 1)
    +-- InvalidUsageError      (exit 2)
    +-- ConfigError            (exit 3)
    +-- ToolchainError         (exit 4)
    +-- ArtifactNotFoundError  (exit 5)
    +-- StampError             (exit 6)
    +-- BundleError            (exit 7)
"""

from __future__ import annotations

from typing import Optional, Sequence

from addinpack.exit_codes import (
    EXIT_ARTIFACT_NOT_FOUND,
    EXIT_BUNDLE_ERROR,
    EXIT_CONFIG_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_STAMP_ERROR,
    EXIT_TOOLCHAIN_FAILURE,
)


class AddinpackError(Exception):
    """Base exception for all addinpack errors.

    Every subclass sets a class-level ``exit_code`` corresponding to one of
    the constants in :mod:`addinpack.exit_codes`. The entry point catches
    this exception type and calls ``sys.exit(exc.exit_code)``.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidUsageError(AddinpackError):
    """Raised for invalid CLI arguments or a missing add-in manifest."""

    exit_code = EXIT_INVALID_USAGE


class ConfigError(AddinpackError):
    """Raised when a target configuration file is unreadable or fails validation."""

    exit_code = EXIT_CONFIG_ERROR


class ToolchainError(AddinpackError):
    """Raised when a toolchain invocation fails.

    Covers a toolchain command missing from ``PATH``, a spawn failure, and a
    non-zero exit status. The captured output is kept for diagnostics.

    Args:
        message: Human-readable error description.
        command: The argument vector that was (or would have been) run.
        returncode: Process exit status, or ``None`` if it never started.
        stdout: Captured standard output.
        stderr: Captured standard error.
    """

    exit_code = EXIT_TOOLCHAIN_FAILURE

    def __init__(
        self,
        message: str,
        command: Optional[Sequence[str]] = None,
        returncode: Optional[int] = None,
        stdout: str = "",
        stderr: str = "",
    ):
        super().__init__(message)
        self.command = list(command or [])
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr


class ArtifactNotFoundError(AddinpackError):
    """Raised when a compiled binary is absent or unreadable at its expected path."""

    exit_code = EXIT_ARTIFACT_NOT_FOUND


class StampError(AddinpackError):
    """Raised when the timestamp stamp file cannot be written or removed."""

    exit_code = EXIT_STAMP_ERROR


class BundleError(AddinpackError):
    """Raised when the output archive cannot be written or finalized."""

    exit_code = EXIT_BUNDLE_ERROR
