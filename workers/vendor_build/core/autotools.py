"""
Autotools — the shared bootstrap → configure → make chain.

Steps run strictly in sequence inside the component subtree of the
staged tree.  The first step that exits non-zero (or cannot be spawned)
raises ``SubBuildError``; no later step runs and no artifact is produced.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List

from vendor_build.core.flags import CompilerFlags
from vendor_build.core.process import BuildStage, StepResult, StepRunner, tail
from vendor_build.errors import SubBuildError
from vendor_build.policy.profile import BuildProfile, ComponentProfile

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BuiltArtifact:
    """A component whose ``make`` step succeeded."""
    component: str
    build_dir: Path
    lib_subdir: str                 # relative to build_dir
    static_lib: str
    include_subdir: str = "include"
    runtime_dylibs: tuple = ()

    @property
    def lib_dir(self) -> Path:
        return self.build_dir / self.lib_subdir

    @property
    def include_dir(self) -> Path:
        return self.build_dir / self.include_subdir


class AutotoolsBuilder:
    """
    Runs the autotools chain for one vendored component.

    Subclasses decide which flags the component is configured with by
    overriding ``effective_flags``.
    """

    def __init__(
        self,
        component: ComponentProfile,
        profile: BuildProfile,
        base_flags: CompilerFlags,
        runner: StepRunner,
        jobs: int,
        keep_going: bool = True,
    ):
        self.component = component
        self.profile = profile
        self.base_flags = base_flags
        self.runner = runner
        self.jobs = max(1, int(jobs))
        self.keep_going = keep_going

    # -----------------------------------------------------------------
    # Flags and command lines
    # -----------------------------------------------------------------

    def effective_flags(self) -> CompilerFlags:
        return self.base_flags.with_pic(self.profile.pic_flag)

    def configure_argv(self, flags: CompilerFlags) -> List[str]:
        return (
            list(self.profile.configure_cmd)
            + list(self.component.configure_flags)
            + flags.as_configure_args()
        )

    def make_argv(self) -> List[str]:
        argv = list(self.profile.make_cmd) + [f"-j{self.jobs}"]
        if self.keep_going:
            argv.append("--keep-going")
        return argv

    # -----------------------------------------------------------------
    # Build
    # -----------------------------------------------------------------

    def source_dir(self, staged_root: Path) -> Path:
        return Path(staged_root) / self.component.subdir

    def build(self, staged_root: Path) -> BuiltArtifact:
        """Bootstrap, configure and compile; return the built artifact."""
        src = self.source_dir(staged_root)
        flags = self.effective_flags()
        env = flags.as_env()

        logger.info("Building %s in %s", self.component.name, src)
        self._step(BuildStage.BOOTSTRAP, list(self.profile.bootstrap_cmd), src, env)
        self._step(BuildStage.CONFIGURE, self.configure_argv(flags), src, env)
        self._step(BuildStage.COMPILE, self.make_argv(), src, env)

        artifact = BuiltArtifact(
            component=self.component.name,
            build_dir=src,
            lib_subdir=self.component.lib_subdir,
            static_lib=self.component.static_lib,
            include_subdir=self.component.include_subdir,
            runtime_dylibs=tuple(self.component.runtime_dylibs),
        )
        logger.info("Built %s (%s)", self.component.name, artifact.lib_dir)
        return artifact

    def _step(
        self,
        stage: BuildStage,
        argv: List[str],
        cwd: Path,
        env: Dict[str, str],
    ) -> StepResult:
        result = self.runner.run(self.component.name, stage, argv, cwd, env)
        if not result.ok:
            logger.error(
                "%s %s failed (exit %d)", self.component.name, stage.value, result.exit_code
            )
            raise SubBuildError(
                component=self.component.name,
                stage=stage.value,
                exit_status=result.exit_code,
                stderr_log=result.stderr_path,
                detail=result.error or tail(result.stderr_path),
            )
        return result
