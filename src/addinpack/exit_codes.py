"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific failure category and is referenced by the
corresponding :class:`~addinpack.exceptions.AddinpackError` subclass.
CI scripts can inspect the exit code to tell a broken toolchain from a
missing artifact without parsing stderr.

Example::

    $ addinpack --addin ./my-addin --out bundle.zip --release
    $ echo $?
    4   # EXIT_TOOLCHAIN_FAILURE -- cargo/cross exited non-zero
"""

EXIT_SUCCESS = 0
"""The bundle was written and finalized."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments or a missing add-in manifest."""

EXIT_CONFIG_ERROR = 3
"""The target configuration file could not be parsed or validated."""

EXIT_TOOLCHAIN_FAILURE = 4
"""A toolchain command was missing, could not be spawned, or exited non-zero."""

EXIT_ARTIFACT_NOT_FOUND = 5
"""A compiled binary was not found at its conventional output path."""

EXIT_STAMP_ERROR = 6
"""The timestamp stamp file could not be written or removed."""

EXIT_BUNDLE_ERROR = 7
"""The output archive could not be written or finalized."""
