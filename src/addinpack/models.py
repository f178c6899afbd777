"""Canonical Pydantic models shared across all addinpack modules.

This is the single source of truth for data shapes in the project. Every other
module imports from here rather than defining its own models. The models fall
into two groups:

**Configuration models** -- loaded from the built-in catalog or a target
configuration file:
    :class:`BuildTarget` and :class:`BundleConfig`.

**Run models** -- created per invocation and passed between pipeline stages:
    :class:`RunState`, :class:`BuildRun`, :class:`CompiledArtifact`,
    :class:`BundleEntry`, and :class:`BundleResult`.

All models use Pydantic v2. :class:`BuildTarget` is frozen so a catalog entry
cannot be mutated once loaded.
"""

from __future__ import annotations

import enum
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


COMPACT_TIMESTAMP_FORMAT = "%Y%m%d%H%M%S"
STAMP_TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%S.%fZ"


def _default_targets() -> list["BuildTarget"]:
    from addinpack.catalog import default_targets

    return list(default_targets())


def _default_package_names() -> dict[str, str]:
    from addinpack.catalog import DEFAULT_PACKAGE_NAMES

    return dict(DEFAULT_PACKAGE_NAMES)


# --- Configuration models ---


class BuildTarget(BaseModel):
    """One OS/architecture combination the add-in is compiled for.

    Example::

        BuildTarget(
            toolchain="cross",
            triple="x86_64-unknown-linux-gnu",
            arch="x86_64",
            os="Linux",
            archos="linux64",
            ext="so",
        )
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    toolchain: str = Field(description="Toolchain command, e.g. cargo or cross")
    triple: str = Field(description="Target triple passed to --target")
    arch: str = Field(description="CPU architecture tag written to the descriptor")
    os: str = Field(description="OS tag written to the descriptor")
    archos: str = Field(description="Combined tag used in archive entry names")
    ext: str = Field(description="Binary file extension without the leading dot")

    @field_validator("toolchain", "triple", "arch", "os", "archos", "ext")
    @classmethod
    def check_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be empty")
        return value

    @field_validator("ext")
    @classmethod
    def check_extension(cls, value: str) -> str:
        if value.startswith("."):
            raise ValueError(f"extension must not start with '.': {value!r}")
        return value


class BundleConfig(BaseModel):
    """Validated target configuration list plus bundle naming settings.

    Every field has a default reproducing the built-in catalog, so an empty
    configuration file yields the standard four-target bundle. Validation
    rejects configurations whose archive entry names could collide or whose
    targets have no naming policy.

    See Also:
        :func:`~addinpack.catalog.load_catalog`: Build one from a raw mapping.
    """

    model_config = ConfigDict(extra="forbid")

    targets: list[BuildTarget] = Field(default_factory=_default_targets)
    package_names: dict[str, str] = Field(
        default_factory=_default_package_names,
        description="OS tag -> binary file stem produced by the toolchain",
    )
    bundle_name: str = "CommonAddin"
    namespace: str = "http://v8.1c.ru/8.2/addin/bundle"
    descriptor_name: str = "manifest.xml"
    stamp_filename: str = "compilation_timestamp.txt"
    manifest_filename: str = "Cargo.toml"

    @model_validator(mode="after")
    def check_targets(self) -> "BundleConfig":
        if not self.targets:
            raise ValueError("at least one build target is required")

        archos_tags = [t.archos for t in self.targets]
        duplicates = sorted({tag for tag in archos_tags if archos_tags.count(tag) > 1})
        if duplicates:
            raise ValueError(f"duplicate archos tags: {', '.join(duplicates)}")

        triples = [t.triple for t in self.targets]
        duplicates = sorted({tr for tr in triples if triples.count(tr) > 1})
        if duplicates:
            raise ValueError(f"duplicate target triples: {', '.join(duplicates)}")

        missing = sorted({t.os for t in self.targets if t.os not in self.package_names})
        if missing:
            raise ValueError(f"no package name configured for OS: {', '.join(missing)}")
        return self


# --- Run models ---


class RunState(str, enum.Enum):
    """States of a bundle run, in the order a successful run visits them."""

    START = "start"
    STAMPING = "stamping"
    BUILDING = "building"
    LOCATED = "located"
    ARCHIVED = "archived"
    ALL_DONE = "all_done"
    DESCRIPTOR_SEALED = "descriptor_sealed"
    UNSTAMPED = "unstamped"
    BUNDLE_FINALIZED = "bundle_finalized"
    ABORTED = "aborted"


class BuildRun(BaseModel):
    """Parameters of a single invocation of the tool.

    ``timestamp`` is normalised to UTC; a naive datetime is taken to already
    be UTC. Both timestamp renderings derive from it so the stamp file and
    the archive entry names always agree.
    """

    addin_root: Path
    output: Path
    release: bool = False
    timestamp: datetime
    targets: list[BuildTarget]
    manifest_filename: str = "Cargo.toml"

    @field_validator("timestamp")
    @classmethod
    def normalize_timestamp(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    @property
    def mode(self) -> str:
        """Toolchain profile directory name: ``release`` or ``debug``."""
        return "release" if self.release else "debug"

    @property
    def compact_timestamp(self) -> str:
        """Timestamp for archive entry names, e.g. ``20240506070809``."""
        return self.timestamp.strftime(COMPACT_TIMESTAMP_FORMAT)

    @property
    def stamp_timestamp(self) -> str:
        """Microsecond ISO-8601 timestamp, e.g. ``2024-05-06T07:08:09.123456Z``."""
        return self.timestamp.strftime(STAMP_TIMESTAMP_FORMAT)

    @property
    def manifest_path(self) -> Path:
        return self.addin_root / self.manifest_filename


class CompiledArtifact(BaseModel):
    """A compiled binary read from disk, ready to be archived.

    Only ever built by :func:`~addinpack.artifacts.collect` after the
    toolchain reported success and the file was found.
    """

    target: BuildTarget
    entry_name: str
    content: bytes
    source_path: Path

    @property
    def size(self) -> int:
        return len(self.content)


class BundleEntry(BaseModel):
    """Summary of one archived binary, reported after a successful run."""

    name: str
    os: str
    arch: str
    size: int

    def as_row(self) -> list[str]:
        return [self.name, self.os, self.arch, str(self.size)]


class BundleResult(BaseModel):
    """Outcome of a successful run."""

    output: Path
    entries: list[BundleEntry] = Field(default_factory=list)
    descriptor_name: str = "manifest.xml"

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json")
