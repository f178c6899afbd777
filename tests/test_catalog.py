"""Tests for addinpack.catalog — built-in targets and configuration validation."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from addinpack.catalog import (
    DEFAULT_PACKAGE_NAMES,
    default_config,
    default_targets,
    load_catalog,
)
from addinpack.exceptions import ConfigError
from addinpack.models import BuildTarget


def _target(**overrides: str) -> dict[str, str]:
    data = {
        "toolchain": "cargo",
        "triple": "aarch64-pc-windows-msvc",
        "arch": "aarch64",
        "os": "Windows",
        "archos": "winarm64",
        "ext": "dll",
    }
    data.update(overrides)
    return data


class TestDefaultTargets:
    def test_catalog_order(self) -> None:
        assert [t.archos for t in default_targets()] == [
            "win32",
            "win64",
            "linux32",
            "linux64",
        ]

    def test_toolchains(self) -> None:
        assert [t.toolchain for t in default_targets()] == ["cargo", "cargo", "cross", "cross"]

    def test_triples(self) -> None:
        assert [t.triple for t in default_targets()] == [
            "i686-pc-windows-msvc",
            "x86_64-pc-windows-msvc",
            "i686-unknown-linux-gnu",
            "x86_64-unknown-linux-gnu",
        ]

    def test_arch_os_and_ext(self) -> None:
        targets = default_targets()
        assert [t.arch for t in targets] == ["i386", "x86_64", "i386", "x86_64"]
        assert [t.os for t in targets] == ["Windows", "Windows", "Linux", "Linux"]
        assert [t.ext for t in targets] == ["dll", "dll", "so", "so"]

    def test_is_stable_across_calls(self) -> None:
        assert default_targets() == default_targets()

    def test_targets_are_immutable(self) -> None:
        with pytest.raises(ValidationError):
            default_targets()[0].archos = "win16"  # type: ignore[misc]


class TestDefaultConfig:
    def test_defaults(self) -> None:
        config = default_config()
        assert config.targets == list(default_targets())
        assert config.package_names == DEFAULT_PACKAGE_NAMES
        assert config.bundle_name == "CommonAddin"
        assert config.namespace == "http://v8.1c.ru/8.2/addin/bundle"
        assert config.descriptor_name == "manifest.xml"
        assert config.stamp_filename == "compilation_timestamp.txt"
        assert config.manifest_filename == "Cargo.toml"


class TestLoadCatalog:
    def test_none_returns_defaults(self) -> None:
        assert load_catalog(None) == default_config()

    def test_empty_mapping_returns_defaults(self) -> None:
        assert load_catalog({}) == default_config()

    def test_partial_override_keeps_default_targets(self) -> None:
        config = load_catalog({"bundle_name": "MyAddin"})
        assert config.bundle_name == "MyAddin"
        assert config.targets == list(default_targets())

    def test_custom_targets(self) -> None:
        config = load_catalog({"targets": [_target()]})
        assert config.targets == [BuildTarget(**_target())]

    def test_not_a_mapping(self) -> None:
        with pytest.raises(ConfigError, match="expected a mapping"):
            load_catalog(["win32"], source="addinpack.yaml")  # type: ignore[arg-type]

    def test_empty_target_list(self) -> None:
        with pytest.raises(ConfigError, match="at least one build target"):
            load_catalog({"targets": []})

    def test_duplicate_archos(self) -> None:
        with pytest.raises(ConfigError, match="duplicate archos tags: winarm64"):
            load_catalog(
                {"targets": [_target(), _target(triple="thumbv7a-pc-windows-msvc")]}
            )

    def test_duplicate_triple(self) -> None:
        with pytest.raises(ConfigError, match="duplicate target triples"):
            load_catalog({"targets": [_target(), _target(archos="other")]})

    def test_os_without_package_name(self) -> None:
        with pytest.raises(ConfigError, match="no package name configured for OS: Darwin"):
            load_catalog({"targets": [_target(os="Darwin")]})

    def test_extension_with_dot(self) -> None:
        with pytest.raises(ConfigError, match="must not start with"):
            load_catalog({"targets": [_target(ext=".dll")]})

    def test_blank_field(self) -> None:
        with pytest.raises(ConfigError, match="must not be empty"):
            load_catalog({"targets": [_target(toolchain=" ")]})

    def test_unknown_top_level_key(self) -> None:
        with pytest.raises(ConfigError, match="target"):
            load_catalog({"target": [_target()]}, source="addinpack.json")

    def test_unknown_target_key(self) -> None:
        with pytest.raises(ConfigError, match="extension"):
            load_catalog({"targets": [_target(extension="dll")]})

    def test_error_names_source(self) -> None:
        with pytest.raises(ConfigError, match="addinpack.json"):
            load_catalog({"targets": "nope"}, source="addinpack.json")
