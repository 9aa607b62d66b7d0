"""
Runner — top-level orchestration: vendored sources → built archives → link directives.

State machine (strictly forward, no retries):

    Start → Staged → Validated → UnwindBuilt | UnwindSkipped
          → ProfilerBuilt | ProfilerSkipped → DirectivesEmitted → Done

Any ``VendorBuildError`` moves the pipeline to ``Failed`` and is
re-raised; nothing after the failing stage runs.
"""
from __future__ import annotations

import argparse
import logging
import sys
from enum import Enum, unique
from pathlib import Path
from typing import IO, Callable, List, Optional

from vendor_build.config import BuildSettings, load_settings
from vendor_build.core.autotools import BuiltArtifact
from vendor_build.core.directives import LinkDirective, emit_link_directives
from vendor_build.core.flags import CompilerFlags
from vendor_build.core.presence import validate_presence
from vendor_build.core.process import StepResult, StepRunner
from vendor_build.core.profiler import ProfilerBuilder
from vendor_build.core.staging import stage_sources
from vendor_build.core.unwind import UnwindBuilder
from vendor_build.errors import (
    ConfigurationError,
    MissingDependencyError,
    SubBuildError,
    UnreachableConfigurationError,
    VendorBuildError,
)
from vendor_build.io.schema import (
    ArtifactModel,
    BuildReceipt,
    DirectiveModel,
    FailureModel,
    FlagsModel,
    StepModel,
    now_iso,
)
from vendor_build.io.writer import emit_directives, write_receipt
from vendor_build.policy.features import (
    BuildConfiguration,
    Component,
    Disabled,
    Enabled,
    require_enabled,
)
from vendor_build.policy.profile import BuildProfile

logger = logging.getLogger(__name__)


@unique
class PipelineState(str, Enum):
    START = "Start"
    STAGED = "Staged"
    VALIDATED = "Validated"
    UNWIND_BUILT = "UnwindBuilt"
    UNWIND_SKIPPED = "UnwindSkipped"
    PROFILER_BUILT = "ProfilerBuilt"
    PROFILER_SKIPPED = "ProfilerSkipped"
    DIRECTIVES_EMITTED = "DirectivesEmitted"
    DONE = "Done"
    FAILED = "Failed"


# ── Conversion helpers ───────────────────────────────────────────────────────

def _step_model(r: StepResult) -> StepModel:
    return StepModel(
        component=r.component,
        stage=r.stage.value,
        argv=list(r.argv),
        cwd=str(r.cwd),
        exit_code=r.exit_code,
        duration_ms=r.duration_ms,
        stdout_path=str(r.stdout_path) if r.stdout_path else None,
        stderr_path=str(r.stderr_path) if r.stderr_path else None,
        error=r.error,
    )


def _artifact_model(a: BuiltArtifact) -> ArtifactModel:
    return ArtifactModel(
        component=a.component,
        build_dir=str(a.build_dir),
        lib_dir=str(a.lib_dir),
        static_lib=a.static_lib,
        runtime_dylibs=list(a.runtime_dylibs),
    )


def _directive_model(d: LinkDirective) -> DirectiveModel:
    return DirectiveModel(
        kind=d.kind.value,
        link_kind=d.link_kind.value,
        value=d.value,
        rendered=d.render(),
    )


def _failure_model(state: PipelineState, e: VendorBuildError) -> FailureModel:
    failure = FailureModel(state=state.value, error=e.kind, message=str(e))
    if isinstance(e, SubBuildError):
        failure.component = e.component
        failure.stage = e.stage
        failure.exit_status = e.exit_status
    elif isinstance(e, MissingDependencyError):
        failure.path = e.path
    return failure


# ── Orchestrator ─────────────────────────────────────────────────────────────

class Orchestrator:
    """
    Sequences one run: stage → validate → unwinder → profiler → directives.

    Collaborators are injectable so tests can substitute the step runner
    or observe the emitter.

    Args:
        settings: Environment-derived settings (OUT_DIR is required).
        config: Feature switches; defaults to the ones in *settings*.
        profile: Component build knobs; defaults to ``BuildProfile.v0()``.
        runner: Step runner; defaults to a ``StepRunner`` logging under
            ``settings.log_dir``.
        emitter: Directive emitter.
        output: Stream the directives are written to once computed
            (the outer build reads stdout); None keeps them in memory only.
        fmt: Directive rendering, ``cargo`` or ``json``.
    """

    def __init__(
        self,
        settings: BuildSettings,
        config: Optional[BuildConfiguration] = None,
        profile: Optional[BuildProfile] = None,
        runner: Optional[StepRunner] = None,
        emitter: Callable[..., List[LinkDirective]] = emit_link_directives,
        output: Optional[IO[str]] = None,
        fmt: str = "cargo",
    ):
        self.settings = settings
        self.config = config or BuildConfiguration.from_settings(settings)
        self.profile = profile or BuildProfile.v0()
        self.base_flags = CompilerFlags.from_settings(settings)
        self._runner = runner
        self.emitter = emitter
        self.output = output
        self.fmt = fmt

        self.state = PipelineState.START
        self.transitions: List[PipelineState] = [PipelineState.START]
        self.failure: Optional[FailureModel] = None

        self.scratch_root: Optional[Path] = None
        self.unwind: Optional[BuiltArtifact] = None
        self.profiler: Optional[BuiltArtifact] = None
        self.directives: List[LinkDirective] = []
        self.started_at = now_iso()
        self.finished_at: Optional[str] = None

    @property
    def runner(self) -> StepRunner:
        if self._runner is None:
            self._runner = StepRunner(self.settings.log_dir)
        return self._runner

    def _advance(self, state: PipelineState) -> None:
        logger.info("%s -> %s", self.state.value, state.value)
        self.state = state
        self.transitions.append(state)

    # -----------------------------------------------------------------
    # Run
    # -----------------------------------------------------------------

    def run(self) -> List[LinkDirective]:
        """Run the whole pipeline; returns the link directives."""
        try:
            self._run()
        except VendorBuildError as e:
            logger.error("Failed in state %s: %s", self.state.value, e)
            self.failure = _failure_model(self.state, e)
            self._advance(PipelineState.FAILED)
            raise
        finally:
            self.finished_at = now_iso()
        return self.directives

    def _run(self) -> None:
        out_dir = self.settings.OUT_DIR
        if out_dir is None:
            raise ConfigurationError(
                "OUT_DIR is not set; it names where the scratch tree is created"
            )

        # ── Step 1: private copy of third_party/ ─────────────────────────
        self.scratch_root = stage_sources(self.settings.third_party_root, out_dir)
        self._advance(PipelineState.STAGED)

        # ── Step 2: vendored checkouts present (un-staged location) ──────
        required = []
        for component in self.config.enabled_components():
            subdir = require_enabled(self.config.switch(component, self.profile), component).subdir
            required.append(f"{self.settings.THIRD_PARTY_DIR}/{subdir}")
        validate_presence(self.settings.SOURCE_ROOT, required)
        self._advance(PipelineState.VALIDATED)

        # ── Step 3: unwinder first, profiler may link against it ─────────
        switch = self.config.switch(Component.UNWINDER, self.profile)
        if isinstance(switch, Enabled):
            self.unwind = UnwindBuilder(
                switch,
                self.profile,
                self.base_flags,
                self.runner,
                jobs=self.settings.JOBS,
                keep_going=self.settings.KEEP_GOING,
            ).build(self.scratch_root)
            self._advance(PipelineState.UNWIND_BUILT)
        elif isinstance(switch, Disabled):
            self._advance(PipelineState.UNWIND_SKIPPED)
        else:
            raise UnreachableConfigurationError(f"Unknown switch {switch!r}")

        # ── Step 4: profiler ─────────────────────────────────────────────
        switch = self.config.switch(Component.PROFILER, self.profile)
        if isinstance(switch, Enabled):
            self.profiler = ProfilerBuilder(
                switch,
                self.profile,
                self.base_flags,
                self.runner,
                jobs=self.settings.JOBS,
                keep_going=self.settings.KEEP_GOING,
                unwind=self.unwind,
            ).build(self.scratch_root)
            self._advance(PipelineState.PROFILER_BUILT)
        elif isinstance(switch, Disabled):
            self._advance(PipelineState.PROFILER_SKIPPED)
        else:
            raise UnreachableConfigurationError(f"Unknown switch {switch!r}")

        # ── Step 5: link directives ──────────────────────────────────────
        self.directives = self.emitter(self.config, unwind=self.unwind, profiler=self.profiler)
        if self.output is not None:
            emit_directives(self.directives, self.output, fmt=self.fmt)
        self._advance(PipelineState.DIRECTIVES_EMITTED)
        self._advance(PipelineState.DONE)

    # -----------------------------------------------------------------
    # Receipt
    # -----------------------------------------------------------------

    def receipt(self) -> BuildReceipt:
        steps = self._runner.results if self._runner is not None else []
        return BuildReceipt(
            profile_id=self.profile.profile_id,
            features=self.config.feature_names(),
            base_flags=FlagsModel(
                cflags=self.base_flags.cflags,
                cxxflags=self.base_flags.cxxflags,
                cppflags=self.base_flags.cppflags,
                ldflags=self.base_flags.ldflags,
            ),
            jobs=self.settings.JOBS,
            keep_going=self.settings.KEEP_GOING,
            source_root=str(self.settings.SOURCE_ROOT),
            scratch_root=str(self.scratch_root) if self.scratch_root else None,
            transitions=[s.value for s in self.transitions],
            final_state=self.state.value,
            failure=self.failure,
            steps=[_step_model(r) for r in steps],
            artifacts=[_artifact_model(a) for a in (self.unwind, self.profiler) if a],
            directives=[_directive_model(d) for d in self.directives],
            started_at=self.started_at,
            finished_at=self.finished_at,
        )


# ── Public API ───────────────────────────────────────────────────────────────

def run_vendor_build(
    settings: BuildSettings,
    config: Optional[BuildConfiguration] = None,
    runner: Optional[StepRunner] = None,
    write: bool = True,
    output: Optional[IO[str]] = None,
    fmt: str = "cargo",
) -> Orchestrator:
    """
    Run the pipeline and (unless *write* is False) write the receipt to
    OUT_DIR, on success and on failure alike.  Directives are written to
    *output* inside the pipeline, before the run reaches Done.

    Returns the finished orchestrator; a failure re-raises after the
    receipt is written.
    """
    orchestrator = Orchestrator(
        settings, config=config, runner=runner, output=output, fmt=fmt
    )
    try:
        orchestrator.run()
    finally:
        if write and settings.OUT_DIR is not None:
            try:
                path = write_receipt(orchestrator.receipt(), settings.OUT_DIR)
                logger.info("Receipt written to %s", path)
            except OSError as e:
                logger.warning("Could not write receipt to %s: %s", settings.OUT_DIR, e)
    return orchestrator


# ── CLI ──────────────────────────────────────────────────────────────────────

def main(argv: Optional[List[str]] = None) -> int:
    """CLI entry point for vendor_build."""
    parser = argparse.ArgumentParser(
        description="vendor_build — build vendored libunwind / gperftools and print link directives",
    )
    parser.add_argument(
        "--features",
        default=None,
        help="Comma-separated features (static_unwind, static_gperftools); "
             "overrides the environment",
    )
    parser.add_argument("--source-root", type=Path, default=None,
                        help="Repository root holding third_party/")
    parser.add_argument("--out-dir", type=Path, default=None,
                        help="Scratch / output directory (default: $OUT_DIR)")
    parser.add_argument("-j", "--jobs", type=int, default=None,
                        help="make job count (default: CPU count)")
    parser.add_argument("--no-keep-going", action="store_true",
                        help="Stop make at the first failing unit")
    parser.add_argument("--format", choices=["cargo", "json"], default="cargo",
                        help="Directive output format")
    parser.add_argument("--no-receipt", action="store_true",
                        help="Do not write vendor_build_receipt.json")
    parser.add_argument("-v", "--verbose", action="store_true",
                        help="Enable verbose logging")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        settings = load_settings(
            SOURCE_ROOT=args.source_root,
            OUT_DIR=args.out_dir,
            JOBS=args.jobs,
            KEEP_GOING=False if args.no_keep_going else None,
        )
        config = None
        if args.features is not None:
            config = BuildConfiguration.from_features(args.features.split(","))
    except ConfigurationError as e:
        print(f"error: {e}", file=sys.stderr)
        return 2

    try:
        run_vendor_build(
            settings,
            config=config,
            write=not args.no_receipt,
            output=sys.stdout,
            fmt=args.format,
        )
    except VendorBuildError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
