"""
Features — which optional components a run builds.

Each optional component is a closed variant: ``Enabled(profile)`` or
``Disabled()``.  The orchestrator branches on the variant; builders only
ever accept ``Enabled`` and treat anything else as an invariant breach.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, unique
from typing import Iterable, Union

from vendor_build.errors import ConfigurationError, UnreachableConfigurationError
from vendor_build.policy.profile import BuildProfile, ComponentProfile


@unique
class Component(str, Enum):
    UNWINDER = "unwinder"
    PROFILER = "profiler"


# Feature names as spelled by the outer build, plus short aliases
FEATURE_NAMES = {
    "static_unwind": Component.UNWINDER,
    "static_gperftools": Component.PROFILER,
    "unwinder": Component.UNWINDER,
    "profiler": Component.PROFILER,
}


@dataclass(frozen=True)
class Enabled:
    profile: ComponentProfile


@dataclass(frozen=True)
class Disabled:
    pass


ComponentSwitch = Union[Enabled, Disabled]


def require_enabled(switch: ComponentSwitch, component: Component) -> ComponentProfile:
    """Unwrap an ``Enabled`` switch or fail loudly."""
    if not isinstance(switch, Enabled):
        raise UnreachableConfigurationError(
            f"{component.value} builder invoked while the component is disabled"
        )
    return switch.profile


@dataclass(frozen=True)
class BuildConfiguration:
    """Feature switches, fixed for the duration of one run."""

    build_profiler: bool = False
    build_unwinder: bool = False

    @classmethod
    def from_settings(cls, settings) -> "BuildConfiguration":
        return cls(
            build_profiler=settings.BUILD_PROFILER,
            build_unwinder=settings.BUILD_UNWINDER,
        )

    @classmethod
    def from_features(cls, names: Iterable[str]) -> "BuildConfiguration":
        """Parse feature names (``static_unwind``, ``static_gperftools``, ...)."""
        selected = set()
        for raw in names:
            name = raw.strip()
            if not name:
                continue
            if name not in FEATURE_NAMES:
                known = ", ".join(sorted(FEATURE_NAMES))
                raise ConfigurationError(
                    f"Unknown feature {name!r} (known: {known})"
                )
            selected.add(FEATURE_NAMES[name])
        return cls(
            build_profiler=Component.PROFILER in selected,
            build_unwinder=Component.UNWINDER in selected,
        )

    def switch(self, component: Component, profile: BuildProfile) -> ComponentSwitch:
        if component == Component.UNWINDER:
            return Enabled(profile.unwinder) if self.build_unwinder else Disabled()
        return Enabled(profile.profiler) if self.build_profiler else Disabled()

    def enabled_components(self) -> list[Component]:
        """Enabled components in build order (unwinder first)."""
        order = []
        if self.build_unwinder:
            order.append(Component.UNWINDER)
        if self.build_profiler:
            order.append(Component.PROFILER)
        return order

    def feature_names(self) -> list[str]:
        names = []
        if self.build_unwinder:
            names.append("static_unwind")
        if self.build_profiler:
            names.append("static_gperftools")
        return names
