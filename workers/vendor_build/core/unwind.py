"""
Unwinder — builds the vendored libunwind as a static PIC archive.
"""
from __future__ import annotations

from vendor_build.core.autotools import AutotoolsBuilder
from vendor_build.core.flags import CompilerFlags
from vendor_build.core.process import StepRunner
from vendor_build.policy.features import Component, ComponentSwitch, require_enabled
from vendor_build.policy.profile import BuildProfile


class UnwindBuilder(AutotoolsBuilder):
    """libunwind: shared output and the debug-info subsystems are disabled."""

    def __init__(
        self,
        switch: ComponentSwitch,
        profile: BuildProfile,
        base_flags: CompilerFlags,
        runner: StepRunner,
        jobs: int,
        keep_going: bool = True,
    ):
        super().__init__(
            require_enabled(switch, Component.UNWINDER),
            profile,
            base_flags,
            runner,
            jobs,
            keep_going,
        )
