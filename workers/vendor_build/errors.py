"""
Errors — every failure in the pipeline is fatal and surfaces one of these.

There is no local recovery: the orchestrator records the failure, writes
the receipt, and re-raises.
"""
from __future__ import annotations

from pathlib import Path
from typing import Optional

SUBMODULE_REMEDY = (
    "You need to run `git submodule update --init --recursive` "
    "first to build the project."
)


class VendorBuildError(Exception):
    """Base exception for vendored dependency builds."""

    kind = "VendorBuildError"


class ConfigurationError(VendorBuildError):
    """Settings are unusable (missing OUT_DIR, unknown feature, ...)."""

    kind = "ConfigurationError"


class StagingError(VendorBuildError):
    """The scratch copy of the vendored sources could not be completed."""

    kind = "StagingError"


class MissingDependencyError(VendorBuildError):
    """A required vendored directory is absent or empty."""

    kind = "MissingDependencyError"

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"Can't find library {path}. {SUBMODULE_REMEDY}")


class SubBuildError(VendorBuildError):
    """A bootstrap, configure, or compile step exited non-zero."""

    kind = "SubBuildError"

    def __init__(
        self,
        component: str,
        stage: str,
        exit_status: int,
        stderr_log: Optional[Path] = None,
        detail: str = "",
    ):
        self.component = component
        self.stage = stage
        self.exit_status = exit_status
        self.stderr_log = stderr_log
        message = f"{component}: {stage} step failed with exit status {exit_status}"
        if stderr_log is not None:
            message += f" (see {stderr_log})"
        if detail:
            message += f"\n{detail}"
        super().__init__(message)


class UnreachableConfigurationError(VendorBuildError):
    """A disabled component's code path was reached; indicates an orchestrator bug."""

    kind = "UnreachableConfigurationError"
