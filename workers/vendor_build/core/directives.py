"""
Directives — link instructions for the outer build.

Pure: takes the built artifacts, returns an ordered list.  Order follows
build order (unwinder first) so the profiler's reference to libunwind
symbols resolves.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, unique
from typing import List, Optional

from vendor_build.core.autotools import BuiltArtifact
from vendor_build.errors import UnreachableConfigurationError
from vendor_build.policy.features import BuildConfiguration


@unique
class DirectiveKind(str, Enum):
    LINK_LIB = "rustc-link-lib"
    LINK_SEARCH = "rustc-link-search"


@unique
class LinkKind(str, Enum):
    STATIC = "static"
    DYNAMIC = "dylib"
    NATIVE = "native"       # search-path kind


@dataclass(frozen=True)
class LinkDirective:
    kind: DirectiveKind
    link_kind: LinkKind
    value: str              # library name or search path

    def render(self) -> str:
        return f"cargo:{self.kind.value}={self.link_kind.value}={self.value}"


def static_lib(name: str) -> LinkDirective:
    return LinkDirective(DirectiveKind.LINK_LIB, LinkKind.STATIC, name)


def dynamic_lib(name: str) -> LinkDirective:
    return LinkDirective(DirectiveKind.LINK_LIB, LinkKind.DYNAMIC, name)


def search_path(path) -> LinkDirective:
    return LinkDirective(DirectiveKind.LINK_SEARCH, LinkKind.NATIVE, str(path))


def _artifact_directives(artifact: BuiltArtifact) -> List[LinkDirective]:
    directives = [static_lib(artifact.static_lib), search_path(artifact.lib_dir)]
    directives.extend(dynamic_lib(name) for name in artifact.runtime_dylibs)
    return directives


def emit_link_directives(
    config: BuildConfiguration,
    unwind: Optional[BuiltArtifact] = None,
    profiler: Optional[BuiltArtifact] = None,
) -> List[LinkDirective]:
    """
    Directives for every enabled component.

    An enabled component without an artifact, or an artifact for a
    disabled component, means the orchestrator skipped or ran a builder
    it should not have.
    """
    pairs = (
        ("unwinder", config.build_unwinder, unwind),
        ("profiler", config.build_profiler, profiler),
    )
    directives: List[LinkDirective] = []
    for name, enabled, artifact in pairs:
        if enabled and artifact is None:
            raise UnreachableConfigurationError(f"{name} enabled but not built")
        if not enabled and artifact is not None:
            raise UnreachableConfigurationError(f"{name} built while disabled")
        if artifact is not None:
            directives.extend(_artifact_directives(artifact))
    return directives
