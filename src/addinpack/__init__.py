"""addinpack -- Build a native add-in for several platforms and pack it into one bundle.

The add-in (a Cargo project) is compiled once per build target with ``cargo``
or ``cross``. Each resulting binary is renamed to
``<package>.<archos>.<timestamp>.<ext>`` and stored, together with a generated
``manifest.xml`` descriptor, in a single zip archive that the host
application's native-module loader understands.

Typical usage::

    addinpack --addin ./my-addin --out dist/my-addin.zip --release

Modules:
    app: Typer application and CLI entry point.
    pipeline: Orchestrates stamping, building, collecting and archiving.
    catalog: Built-in build targets and configuration validation.
    toolchain: Runs the external toolchain per target.
    artifacts: Locates and renames compiled binaries.
    stamp: Transient build timestamp file in the add-in tree.
    descriptor: ``manifest.xml`` generation.
    bundle: Atomic zip writer.
    models: Pydantic models shared across the package.
    config: XDG-aware configuration discovery.
    exceptions: Exception hierarchy with exit-code mapping.
    exit_codes: Numeric exit codes following clig.dev conventions.
    output: stdout/stderr formatting system with Rich support.
"""

__version__ = "0.1.0"
