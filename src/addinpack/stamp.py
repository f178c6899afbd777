"""Build timestamp stamp file written into the add-in source tree.

The add-in's own build script reads ``compilation_timestamp.txt`` to embed
the build time into the compiled binary. The file must exist while the
toolchain runs and must be gone once the run ends.

:func:`stamped` is the entry point used by the pipeline: it writes the stamp
before the first target is compiled and removes it on every exit path,
including a failed toolchain invocation or Ctrl-C.
"""

from __future__ import annotations

from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterator

from addinpack.exceptions import StampError
from addinpack.models import STAMP_TIMESTAMP_FORMAT
from addinpack.output import debug

DEFAULT_STAMP_FILENAME = "compilation_timestamp.txt"


def format_stamp(time: datetime) -> str:
    """Render *time* as microsecond-precision ISO-8601 in UTC with a ``Z`` suffix."""
    if time.tzinfo is None:
        time = time.replace(tzinfo=timezone.utc)
    return time.astimezone(timezone.utc).strftime(STAMP_TIMESTAMP_FORMAT)


def stamp_path(root: Path, filename: str = DEFAULT_STAMP_FILENAME) -> Path:
    return root / filename


def begin_stamp(
    root: Path, time: datetime, filename: str = DEFAULT_STAMP_FILENAME
) -> Path:
    """Write the build timestamp into ``<root>/<filename>``.

    Returns:
        The path of the written stamp file.

    Raises:
        StampError: If the file cannot be written.
    """
    path = stamp_path(root, filename)
    try:
        path.write_bytes(format_stamp(time).encode("utf-8"))
    except OSError as exc:
        raise StampError(f"Cannot write stamp file {path}: {exc}") from exc
    debug(f"Wrote stamp file: {path}")
    return path


def end_stamp(root: Path, filename: str = DEFAULT_STAMP_FILENAME) -> None:
    """Delete the stamp file.

    Raises:
        StampError: If the file is missing or cannot be removed.
    """
    path = stamp_path(root, filename)
    try:
        path.unlink()
    except OSError as exc:
        raise StampError(f"Cannot remove stamp file {path}: {exc}") from exc
    debug(f"Removed stamp file: {path}")


@contextmanager
def stamped(
    root: Path, time: datetime, filename: str = DEFAULT_STAMP_FILENAME
) -> Iterator[Path]:
    """Keep the stamp file on disk for the duration of the ``with`` block.

    On a clean exit a removal failure raises :class:`StampError`. When the
    block is already failing, the stamp is removed if still present and the
    original exception propagates unchanged.
    """
    path = begin_stamp(root, time, filename)
    try:
        yield path
    except BaseException:
        try:
            path.unlink(missing_ok=True)
        except OSError as exc:
            debug(f"Could not remove stamp file {path} after failure: {exc}")
        raise
    end_stamp(root, filename)
