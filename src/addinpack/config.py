"""Configuration management with XDG paths and precedence resolution.

This module handles all configuration for addinpack:

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.addinpack/`` on macOS and Windows. See :func:`get_config_dir` and
  :func:`get_data_dir`.
* **Target configuration** -- an optional JSON or YAML file replacing the
  built-in target catalog, validated into a
  :class:`~addinpack.models.BundleConfig`. See :func:`load_config_file`.
* **Precedence resolution** -- :func:`resolve_bundle_config` picks the
  configuration file from the environment, the add-in project, or the user
  config directory.
* **Build timestamp** -- :func:`resolve_timestamp` honours
  ``SOURCE_DATE_EPOCH`` so bundles can be reproduced byte for byte.
"""

from __future__ import annotations

import json
import os
import platform
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

import yaml

from addinpack.catalog import default_config, load_catalog
from addinpack.exceptions import ConfigError
from addinpack.models import BundleConfig

_APP_NAME = "addinpack"
_GLOBAL_CONFIG_FILENAME = "targets.json"
_PROJECT_CONFIG_FILENAMES = ("addinpack.json", "addinpack.yaml", "addinpack.yml")
_CONFIG_ENV_VAR = "ADDINPACK_CONFIG"
_SOURCE_DATE_EPOCH_ENV_VAR = "SOURCE_DATE_EPOCH"


# --- Directories ---


def _is_xdg_platform() -> bool:
    """Linux and the BSDs follow the XDG base directory layout."""
    system = platform.system()
    return system == "Linux" or system.endswith("BSD")


def _app_dir(env_var: str, default_segments: tuple[str, ...], fallback: tuple[str, ...]) -> Path:
    """Return (and create) the addinpack directory under an XDG base.

    *env_var* overrides ``~/<default_segments>`` on XDG platforms; elsewhere
    the directory is ``~/.addinpack/<fallback>``.
    """
    if _is_xdg_platform():
        base = os.environ.get(env_var) or Path.home().joinpath(*default_segments)
        path = Path(base) / _APP_NAME
    else:
        path = Path.home().joinpath(f".{_APP_NAME}", *fallback)
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_config_dir() -> Path:
    """Where the user-wide ``targets.json`` lives.

    ``$XDG_CONFIG_HOME/addinpack`` (default ``~/.config/addinpack``) on
    Linux/BSD, ``~/.addinpack`` on macOS and Windows.
    """
    return _app_dir("XDG_CONFIG_HOME", (".config",), ())


def get_data_dir() -> Path:
    """Where crash logs are written.

    ``$XDG_DATA_HOME/addinpack`` (default ``~/.local/share/addinpack``) on
    Linux/BSD, ``~/.addinpack/logs`` on macOS and Windows.
    """
    return _app_dir("XDG_DATA_HOME", (".local", "share"), ("logs",))


# --- Target configuration files ---


def _parse_content(content: str, path: Path) -> Any:
    """Parse configuration text as JSON or YAML depending on the file suffix.

    Unknown suffixes try JSON first and fall back to YAML, which also
    accepts JSON documents.
    """
    suffix = path.suffix.lower()
    try:
        if suffix == ".json":
            return json.loads(content)
        if suffix in (".yaml", ".yml"):
            return yaml.safe_load(content)
        try:
            return json.loads(content)
        except json.JSONDecodeError:
            return yaml.safe_load(content)
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        raise ConfigError(f"Invalid target configuration at {path}: {exc}") from exc


def load_config_file(path: Path) -> BundleConfig:
    """Load and validate a target configuration file.

    Args:
        path: A ``.json``, ``.yaml`` or ``.yml`` file.

    Returns:
        The validated :class:`~addinpack.models.BundleConfig`.

    Raises:
        ConfigError: If the file is missing, unreadable, malformed, or fails
            validation.
    """
    if not path.is_file():
        raise ConfigError(f"Target configuration not found: {path}")
    try:
        content = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Cannot read target configuration {path}: {exc}") from exc
    return load_catalog(_parse_content(content, path), source=str(path))


def find_project_config(addin_root: Path) -> Optional[Path]:
    """Return the first ``addinpack.{json,yaml,yml}`` inside *addin_root*, if any."""
    for name in _PROJECT_CONFIG_FILENAMES:
        candidate = addin_root / name
        if candidate.is_file():
            return candidate
    return None


def resolve_config_path(addin_root: Path) -> Optional[Path]:
    """Pick the configuration file to use, or ``None`` for the built-in catalog.

    Precedence (high to low):
        1. ``ADDINPACK_CONFIG`` environment variable
        2. Project config (``<addin_root>/addinpack.json|.yaml|.yml``)
        3. User config (``~/.config/addinpack/targets.json``)
        4. Built-in defaults
    """
    env_path = os.environ.get(_CONFIG_ENV_VAR)
    if env_path:
        return Path(env_path).expanduser()

    project_path = find_project_config(addin_root)
    if project_path is not None:
        return project_path

    global_path = get_config_dir() / _GLOBAL_CONFIG_FILENAME
    if global_path.is_file():
        return global_path
    return None


def resolve_bundle_config(addin_root: Path) -> tuple[BundleConfig, Optional[Path]]:
    """Resolve the effective bundle configuration for *addin_root*.

    Returns:
        A tuple of ``(config, source_path_or_None)``. ``None`` means the
        built-in catalog is in use.

    Raises:
        ConfigError: If the selected file cannot be loaded.
    """
    path = resolve_config_path(addin_root)
    if path is None:
        return default_config(), None
    return load_config_file(path), path


# --- Build timestamp ---


def resolve_timestamp(now: Optional[datetime] = None) -> datetime:
    """Return the UTC build timestamp for this run.

    ``SOURCE_DATE_EPOCH`` (seconds since the epoch) takes precedence so that
    repeated runs over identical artifacts produce identical bundles.

    Raises:
        ConfigError: If ``SOURCE_DATE_EPOCH`` is set but not an integer.
    """
    epoch = os.environ.get(_SOURCE_DATE_EPOCH_ENV_VAR)
    if epoch:
        try:
            return datetime.fromtimestamp(int(epoch), tz=timezone.utc)
        except (ValueError, OverflowError, OSError) as exc:
            raise ConfigError(
                f"Invalid {_SOURCE_DATE_EPOCH_ENV_VAR}: {epoch!r}"
            ) from exc
    if now is not None:
        return now.astimezone(timezone.utc) if now.tzinfo else now.replace(tzinfo=timezone.utc)
    return datetime.now(timezone.utc)
