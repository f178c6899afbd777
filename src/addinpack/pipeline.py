"""Multi-target build orchestration and bundle assembly.

:class:`BundlePipeline` runs one bundle build from start to finish:

1. Open the bundle writer (temporary file beside the destination).
2. Write the stamp file into the add-in tree.
3. For each target, in catalog order: run the toolchain, locate and rename
   the binary, append it to the bundle and the descriptor.
4. Seal the descriptor, remove the stamp file.
5. Write the descriptor as the last entry and finalize the bundle.

Targets are processed strictly one after another. Any error aborts the run:
the stamp file is removed, the temporary archive is discarded, and the
exception propagates to the caller. The run's progress is tracked as a
:class:`~addinpack.models.RunState`.
"""

from __future__ import annotations

from typing import Optional

from addinpack.artifacts import collect
from addinpack.bundle import BundleWriter
from addinpack.descriptor import Descriptor
from addinpack.exceptions import InvalidUsageError
from addinpack.models import (
    BuildRun,
    BuildTarget,
    BundleConfig,
    BundleEntry,
    BundleResult,
    RunState,
)
from addinpack.output import debug, info, progress
from addinpack.stamp import stamped
from addinpack.toolchain import Invoker, invoke_toolchain


class BundlePipeline:
    """Builds every target of *run* and assembles the bundle.

    Args:
        run: Parameters of this invocation.
        config: Naming and descriptor settings.
        invoker: Callable that builds one target; defaults to
            :func:`~addinpack.toolchain.invoke_toolchain`.
    """

    def __init__(
        self,
        run: BuildRun,
        config: BundleConfig,
        invoker: Invoker = invoke_toolchain,
    ) -> None:
        self.run_params = run
        self.config = config
        self._invoker = invoker
        self._state = RunState.START
        self._current: Optional[BuildTarget] = None
        self.history: list[tuple[RunState, Optional[str]]] = [(RunState.START, None)]

    @property
    def state(self) -> RunState:
        return self._state

    def _transition(self, state: RunState, target: Optional[BuildTarget] = None) -> None:
        self._state = state
        self._current = target
        archos = target.archos if target is not None else None
        self.history.append((state, archos))
        debug(f"State: {state.value}" + (f" ({archos})" if archos else ""))

    def run(self) -> BundleResult:
        """Execute the run.

        Returns:
            The :class:`~addinpack.models.BundleResult` describing the
            finalized bundle.

        Raises:
            AddinpackError: Any failure; the state is left at
                :attr:`RunState.ABORTED`.
        """
        if self._state is not RunState.START:
            raise RuntimeError("A pipeline can only be run once")
        try:
            return self._run()
        except BaseException:
            failed = self._current.archos if self._current is not None else None
            self._transition(RunState.ABORTED)
            if failed:
                debug(f"Run aborted while processing {failed}")
            raise

    def _run(self) -> BundleResult:
        run = self.run_params
        config = self.config

        if not run.manifest_path.is_file():
            raise InvalidUsageError(f"Add-in manifest not found: {run.manifest_path}")

        entries: list[BundleEntry] = []
        descriptor = Descriptor(config.bundle_name, config.namespace)
        total = len(run.targets)

        with BundleWriter(run.output, timestamp=run.timestamp) as bundle:
            self._transition(RunState.STAMPING)
            with stamped(run.addin_root, run.timestamp, config.stamp_filename):
                for index, target in enumerate(run.targets, start=1):
                    self._transition(RunState.BUILDING, target)
                    info(f"[{index}/{total}] Building {target.archos} ({target.triple})...")
                    self._invoker(target, run.manifest_path, run.release)

                    artifact = collect(run, target, config)
                    self._transition(RunState.LOCATED, target)

                    bundle.add(artifact.entry_name, artifact.content)
                    descriptor.add(artifact)
                    entries.append(
                        BundleEntry(
                            name=artifact.entry_name,
                            os=target.os,
                            arch=target.arch,
                            size=artifact.size,
                        )
                    )
                    self._transition(RunState.ARCHIVED, target)
                    progress(f"Archived {artifact.entry_name}")

                self._transition(RunState.ALL_DONE)
                manifest = descriptor.seal()
                self._transition(RunState.DESCRIPTOR_SEALED)
            self._transition(RunState.UNSTAMPED)

            bundle.add(config.descriptor_name, manifest)
            bundle.finalize()
            self._transition(RunState.BUNDLE_FINALIZED)

        return BundleResult(
            output=run.output,
            entries=entries,
            descriptor_name=config.descriptor_name,
        )


def run_bundle(
    run: BuildRun,
    config: BundleConfig,
    invoker: Invoker = invoke_toolchain,
) -> BundleResult:
    """Convenience wrapper: build and assemble the bundle for *run*."""
    return BundlePipeline(run, config, invoker=invoker).run()
