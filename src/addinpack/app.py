"""Typer application and CLI entry point for addinpack.

The CLI is a single command::

    addinpack --addin ./my-addin --out dist/my-addin.zip --release

It resolves the target configuration, checks that every toolchain is
installed, runs the :class:`~addinpack.pipeline.BundlePipeline`, and prints
the archived entries to stdout.

The :func:`main` function is the console-script entry point declared in
``pyproject.toml``. It installs signal handlers and invokes the Typer app.
:class:`~addinpack.exceptions.AddinpackError` instances exit with their own
code; any other exception is written to a crash log under the data
directory.

See Also:
    :mod:`addinpack.config`: Target configuration resolution.
    :mod:`addinpack.output`: Output formatting initialised in
    :func:`bundle_command`.
"""

from __future__ import annotations

import signal
import sys
import traceback
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING, Any

import typer

from addinpack import __version__
from addinpack.exit_codes import EXIT_GENERIC_FAILURE

if TYPE_CHECKING:
    from addinpack.exceptions import ToolchainError


app = typer.Typer(
    name="addinpack",
    help="Build a native add-in for every target and pack it into one bundle.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"addinpack {__version__}")
        raise typer.Exit()


def _report_toolchain_failure(exc: ToolchainError) -> None:
    """Print the tail of a failed toolchain's captured output."""
    from addinpack.output import tail

    tail(exc.stderr, 20, as_error=True)
    tail(exc.stdout, 10)


@app.command(no_args_is_help=True)
def bundle_command(
    addin: Path = typer.Option(
        ..., "--addin", "-a",
        metavar="ADDIN_PATH",
        help="Root directory of the add-in project (contains Cargo.toml).",
    ),
    out: Path = typer.Option(
        ..., "--out", "-o",
        metavar="OUT",
        help="Path of the bundle archive to produce.",
    ),
    release: bool = typer.Option(
        False, "--release", "-r",
        help="Build in release mode instead of debug.",
    ),
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    json_output: bool = typer.Option(
        False, "--json", help="Print the bundle contents as JSON."
    ),
    plain_output: bool = typer.Option(
        False, "--plain", help="Print the bundle contents as plain text."
    ),
    no_color: bool = typer.Option(
        False, "--no-color", help="Disable color output."
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Suppress non-essential output."
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Show toolchain commands and output."
    ),
) -> None:
    """Compile the add-in for every target and write the bundle.

    Each target is built with its toolchain, the binaries are renamed to
    ``<package>.<archos>.<timestamp>.<ext>`` and archived together with a
    generated ``manifest.xml``. The bundle only appears at OUT once every
    target has built successfully.
    """
    from addinpack.config import resolve_bundle_config, resolve_timestamp
    from addinpack.exceptions import (
        AddinpackError,
        InvalidUsageError,
        ToolchainError,
    )
    from addinpack.models import BuildRun
    from addinpack.output import (
        OutputFormat,
        OutputManager,
        error,
        info,
        print_json,
        print_table,
        set_output,
        success,
        suggest,
        warning,
    )
    from addinpack.pipeline import run_bundle
    from addinpack.toolchain import check_toolchains

    fmt = OutputFormat.AUTO
    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN

    set_output(
        OutputManager(format=fmt, no_color=no_color, quiet=quiet, verbose=verbose)
    )

    addin_root = addin.expanduser().resolve()
    output_path = out.expanduser().resolve()

    try:
        if not addin_root.is_dir():
            raise InvalidUsageError(f"Add-in directory not found: {addin_root}")
        if output_path.is_dir():
            raise InvalidUsageError(f"Output path is a directory: {output_path}")
        if output_path.exists():
            warning(f"Replacing existing bundle: {output_path}")

        config, config_path = resolve_bundle_config(addin_root)
        if config_path is not None:
            info(f"Using target configuration: {config_path}")

        check_toolchains(config.targets)

        run = BuildRun(
            addin_root=addin_root,
            output=output_path,
            release=release,
            timestamp=resolve_timestamp(),
            targets=config.targets,
            manifest_filename=config.manifest_filename,
        )
        info(
            f"Building {len(run.targets)} target(s) in {run.mode} mode "
            f"(timestamp {run.compact_timestamp})"
        )
        result = run_bundle(run, config)
    except ToolchainError as exc:
        error(str(exc))
        _report_toolchain_failure(exc)
        if exc.returncode is None:
            suggest("Install the missing toolchain (e.g. 'cargo install cross').")
        raise typer.Exit(code=exc.exit_code)
    except AddinpackError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code)

    if fmt == OutputFormat.JSON:
        print_json(result.to_dict())
    else:
        print_table(
            ["entry", "os", "arch", "size"],
            [entry.as_row() for entry in result.entries],
            title=result.output.name,
        )
    success(f"Bundle written: {result.output}")


def _setup_signal_handlers() -> None:
    """Exit with status 130 on Ctrl-C.

    ``SystemExit`` unwinds through the pipeline, so the stamp file and the
    temporary bundle are still removed.
    """

    def _on_sigint(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)

    signal.signal(signal.SIGINT, _on_sigint)


def _write_crash_log(exc: Exception) -> Path:
    """Save the traceback of *exc* under ``<data_dir>/logs`` and return its path."""
    from addinpack.config import get_data_dir

    logs_dir = get_data_dir() / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)
    log_path = logs_dir / f"crash-{datetime.now():%Y%m%d-%H%M%S}.log"
    header = f"addinpack {__version__}: {type(exc).__name__}: {exc}\n\n"
    log_path.write_text(header + "".join(traceback.format_exception(exc)))
    return log_path


def main() -> None:
    """Console-script entry point; always ends in ``SystemExit``."""
    from addinpack.exceptions import AddinpackError
    from addinpack.output import error

    _setup_signal_handlers()
    try:
        app()
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)
    except AddinpackError as exc:
        error(str(exc))
        sys.exit(exc.exit_code)
    except Exception as exc:
        log_path = _write_crash_log(exc)
        error(f"Unexpected error. Debug log: {log_path}")
        sys.exit(EXIT_GENERIC_FAILURE)


if __name__ == "__main__":
    main()
