"""
Profile — per-component build knobs for the vendored dependencies.

The profile holds every autotools flag, directory name, and library name
so that the builders contain no opinions.  Supporting a new vendored
revision is a profile change, not a code change.
"""
from dataclasses import dataclass, field
from typing import Tuple


@dataclass(frozen=True)
class ComponentProfile:
    """How one vendored autotools project is built and linked."""

    # Identity
    name: str                      # component name used in logs / receipt
    subdir: str                    # directory under third_party/

    # configure
    configure_flags: Tuple[str, ...]

    # Outputs, relative to the component's build directory
    static_lib: str                # library name without lib prefix / .a suffix
    lib_subdir: str
    include_subdir: str = "include"

    # Runtime libraries the static archive needs at link time
    runtime_dylibs: Tuple[str, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class BuildProfile:
    """The autotools chain and the two vendored components."""

    profile_id: str

    unwinder: ComponentProfile
    profiler: ComponentProfile

    # Commands, run inside the component subtree
    bootstrap_cmd: Tuple[str, ...] = ("./autogen.sh",)
    configure_cmd: Tuple[str, ...] = ("./configure",)
    make_cmd: Tuple[str, ...] = ("make",)

    pic_flag: str = "-fPIC"

    @classmethod
    def v0(cls) -> "BuildProfile":
        """The locked v0 profile: static, position-independent archives."""
        return cls(
            profile_id="linux-autotools-static-pic",
            unwinder=ComponentProfile(
                name="libunwind",
                subdir="libunwind",
                configure_flags=(
                    "--disable-shared",
                    "--disable-minidebuginfo",
                    "--disable-zlibdebuginfo",
                ),
                static_lib="unwind",
                lib_subdir="src/.libs",
            ),
            profiler=ComponentProfile(
                name="gperftools",
                subdir="gperftools",
                configure_flags=(
                    "--disable-heap-profiler",
                    "--disable-heap-checker",
                    "--disable-debugalloc",
                    "--disable-shared",
                ),
                static_lib="profiler",
                lib_subdir=".libs",
                runtime_dylibs=("stdc++",),
            ),
        )
