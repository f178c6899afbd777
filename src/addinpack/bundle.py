"""Streaming bundle writer with atomic publication.

The bundle is a deflate-compressed zip archive. Entries are streamed into a
temporary file next to the destination; only :meth:`BundleWriter.finalize`
writes the central directory and renames the temporary file over the
destination. An aborted run therefore never leaves a truncated archive at
the output path, and an existing bundle there is left untouched.

Every entry gets the same metadata (Unix ``0o755`` regular-file permissions
and a timestamp fixed by the caller) so that identical inputs produce a
byte-identical archive.

Usage::

    with BundleWriter(Path("dist/addin.zip"), timestamp=run.timestamp) as bundle:
        bundle.add("common_addin.win64.20240506070809.dll", data)
        bundle.add("manifest.xml", descriptor_bytes)
        bundle.finalize()
"""

from __future__ import annotations

import os
import stat
import tempfile
import zipfile
from datetime import datetime
from pathlib import Path
from types import TracebackType
from typing import IO, Optional

from addinpack.exceptions import BundleError
from addinpack.output import debug

ENTRY_PERMISSIONS = 0o755

# Zip timestamps cannot represent anything before 1980.
_ZIP_EPOCH = (1980, 1, 1, 0, 0, 0)
_UNIX_SYSTEM = 3


def _zip_date_time(timestamp: Optional[datetime]) -> tuple[int, int, int, int, int, int]:
    if timestamp is None:
        return _ZIP_EPOCH
    date_time = (
        timestamp.year,
        timestamp.month,
        timestamp.day,
        timestamp.hour,
        timestamp.minute,
        timestamp.second,
    )
    return max(date_time, _ZIP_EPOCH)


def _current_umask() -> int:
    mask = os.umask(0)
    os.umask(mask)
    return mask


class BundleWriter:
    """Append-only zip sink published atomically on :meth:`finalize`.

    Args:
        destination: Final path of the bundle.
        timestamp: Modification time stored on every entry. ``None`` stores
            the zip epoch (1980-01-01).
    """

    def __init__(
        self,
        destination: Path,
        timestamp: Optional[datetime] = None,
    ) -> None:
        self._destination = destination
        self._date_time = _zip_date_time(timestamp)
        self._file: Optional[IO[bytes]] = None
        self._zip: Optional[zipfile.ZipFile] = None
        self._tmp_path: Optional[Path] = None
        self._names: list[str] = []
        self._finalized = False

    # ------------------------------------------------------------------ #
    # Context manager
    # ------------------------------------------------------------------ #

    def __enter__(self) -> "BundleWriter":
        self.open()
        return self

    def __exit__(
        self,
        exc_type: Optional[type[BaseException]],
        exc: Optional[BaseException],
        tb: Optional[TracebackType],
    ) -> None:
        if not self._finalized:
            self.abort()

    # ------------------------------------------------------------------ #
    # Public API
    # ------------------------------------------------------------------ #

    @property
    def destination(self) -> Path:
        return self._destination

    @property
    def temp_path(self) -> Optional[Path]:
        """The in-progress file, or ``None`` when not open."""
        return self._tmp_path

    @property
    def entry_names(self) -> list[str]:
        return list(self._names)

    @property
    def is_finalized(self) -> bool:
        return self._finalized

    def open(self) -> None:
        """Create the temporary archive next to the destination.

        Raises:
            BundleError: If the writer is already open or the file cannot
                be created.
        """
        if self._zip is not None or self._finalized:
            raise BundleError("Bundle writer is already open")
        parent = self._destination.parent
        try:
            parent.mkdir(parents=True, exist_ok=True)
            self._file = tempfile.NamedTemporaryFile(
                mode="w+b",
                dir=parent,
                prefix=f".{self._destination.name}.",
                suffix=".tmp",
                delete=False,
            )
            self._tmp_path = Path(self._file.name)
            self._zip = zipfile.ZipFile(
                self._file,
                mode="w",
                compression=zipfile.ZIP_DEFLATED,
            )
        except OSError as exc:
            self.abort()
            raise BundleError(f"Cannot create bundle next to {self._destination}: {exc}") from exc
        debug(f"Writing bundle to temporary file: {self._tmp_path}")

    def add(self, name: str, data: bytes) -> None:
        """Write one entry.

        Raises:
            BundleError: If the writer is not open, already finalized, the
                name was used before, or the write fails.
        """
        if self._finalized:
            raise BundleError(f"Cannot add '{name}': bundle is already finalized")
        if self._zip is None:
            raise BundleError(f"Cannot add '{name}': bundle is not open")
        if name in self._names:
            raise BundleError(f"Duplicate bundle entry: {name}")

        info = zipfile.ZipInfo(name, date_time=self._date_time)
        info.compress_type = zipfile.ZIP_DEFLATED
        info.create_system = _UNIX_SYSTEM
        info.external_attr = (stat.S_IFREG | ENTRY_PERMISSIONS) << 16
        try:
            self._zip.writestr(info, data)
        except (OSError, ValueError) as exc:
            raise BundleError(f"Cannot write '{name}' to bundle: {exc}") from exc
        self._names.append(name)
        debug(f"Added bundle entry: {name} ({len(data)} bytes)")

    def finalize(self) -> Path:
        """Write the central directory and move the archive into place.

        Returns:
            The destination path.

        Raises:
            BundleError: If called twice, before :meth:`open`, or if closing
                or renaming fails. On failure the destination is untouched.
        """
        if self._finalized:
            raise BundleError("Bundle is already finalized")
        if self._zip is None or self._file is None or self._tmp_path is None:
            raise BundleError("Bundle is not open")
        try:
            self._zip.close()
            self._zip = None
            self._file.flush()
            os.fsync(self._file.fileno())
            self._file.close()
            self._file = None
            os.chmod(self._tmp_path, 0o666 & ~_current_umask())
            os.replace(self._tmp_path, self._destination)
        except OSError as exc:
            self.abort()
            raise BundleError(f"Cannot finalize bundle {self._destination}: {exc}") from exc
        self._tmp_path = None
        self._finalized = True
        debug(f"Finalized bundle: {self._destination}")
        return self._destination

    def abort(self) -> None:
        """Discard the in-progress archive. Safe to call more than once."""
        if self._zip is not None:
            try:
                self._zip.close()
            except (OSError, ValueError):
                pass
            self._zip = None
        if self._file is not None:
            self._file.close()
            self._file = None
        if self._tmp_path is not None:
            try:
                os.unlink(self._tmp_path)
            except OSError:
                pass
            debug(f"Discarded incomplete bundle: {self._tmp_path}")
            self._tmp_path = None
