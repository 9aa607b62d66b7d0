"""
Profiler — builds the vendored gperftools (CPU profiler only).

When libunwind was built in the same run, configure is pointed at it
with ``-I<unwind>/include`` and ``-L<unwind>/src/.libs`` so gperftools
picks up the fresh archive instead of a system copy.
"""
from __future__ import annotations

import logging
from typing import Optional

from vendor_build.core.autotools import AutotoolsBuilder, BuiltArtifact
from vendor_build.core.flags import CompilerFlags
from vendor_build.core.process import StepRunner
from vendor_build.policy.features import Component, ComponentSwitch, require_enabled
from vendor_build.policy.profile import BuildProfile

logger = logging.getLogger(__name__)


class ProfilerBuilder(AutotoolsBuilder):
    """gperftools: CPU profiler only; heap profiling, heap checking and debugalloc are disabled."""

    def __init__(
        self,
        switch: ComponentSwitch,
        profile: BuildProfile,
        base_flags: CompilerFlags,
        runner: StepRunner,
        jobs: int,
        keep_going: bool = True,
        unwind: Optional[BuiltArtifact] = None,
    ):
        super().__init__(
            require_enabled(switch, Component.PROFILER),
            profile,
            base_flags,
            runner,
            jobs,
            keep_going,
        )
        self.unwind = unwind

    def effective_flags(self) -> CompilerFlags:
        flags = super().effective_flags()
        if self.unwind is None:
            return flags
        logger.info("Linking %s against %s", self.component.name, self.unwind.build_dir)
        return flags.with_include(self.unwind.include_dir).with_library_dir(
            self.unwind.lib_dir
        )
