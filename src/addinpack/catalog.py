"""Target catalog: the built-in build targets and validated overrides.

The default catalog compiles the add-in for 32- and 64-bit Windows with
``cargo`` and for 32- and 64-bit Linux with ``cross``. Catalog order is
significant: it fixes the order of archive entries and of ``component``
elements in the descriptor, so it must never depend on anything but the
configuration itself.

A project can replace the catalog through a configuration file (see
:func:`addinpack.config.resolve_bundle_config`); :func:`load_catalog`
validates such a mapping against :class:`~addinpack.models.BundleConfig`.
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import ValidationError

from addinpack.exceptions import ConfigError
from addinpack.models import BuildTarget, BundleConfig


DEFAULT_PACKAGE_NAMES: dict[str, str] = {
    "Windows": "common_addin",
    "Linux": "libcommon_addin",
}

DEFAULT_TARGETS: tuple[BuildTarget, ...] = (
    BuildTarget(
        toolchain="cargo",
        triple="i686-pc-windows-msvc",
        arch="i386",
        os="Windows",
        archos="win32",
        ext="dll",
    ),
    BuildTarget(
        toolchain="cargo",
        triple="x86_64-pc-windows-msvc",
        arch="x86_64",
        os="Windows",
        archos="win64",
        ext="dll",
    ),
    BuildTarget(
        toolchain="cross",
        triple="i686-unknown-linux-gnu",
        arch="i386",
        os="Linux",
        archos="linux32",
        ext="so",
    ),
    BuildTarget(
        toolchain="cross",
        triple="x86_64-unknown-linux-gnu",
        arch="x86_64",
        os="Linux",
        archos="linux64",
        ext="so",
    ),
)


def default_targets() -> tuple[BuildTarget, ...]:
    """Return the built-in targets in catalog order."""
    return DEFAULT_TARGETS


def default_config() -> BundleConfig:
    """Return the configuration used when no configuration file is found."""
    return BundleConfig()


def load_catalog(data: Optional[dict[str, Any]], source: str = "<config>") -> BundleConfig:
    """Validate a raw configuration mapping into a :class:`BundleConfig`.

    Keys left out of *data* keep their built-in defaults, so a file that only
    sets ``bundle_name`` still builds the standard four targets.

    Args:
        data: Parsed configuration (from JSON or YAML), or ``None`` for an
            empty file.
        source: Where *data* came from, used in error messages.

    Returns:
        The validated configuration.

    Raises:
        ConfigError: If *data* is not a mapping or fails validation.
    """
    if data is None:
        return default_config()
    if not isinstance(data, dict):
        raise ConfigError(
            f"Invalid target configuration at {source}: expected a mapping, "
            f"got {type(data).__name__}"
        )
    try:
        return BundleConfig.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid target configuration at {source}: {exc}") from exc
