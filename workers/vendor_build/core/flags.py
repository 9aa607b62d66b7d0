"""
Compiler flags — immutable value object threaded into each builder.

Builders derive their own effective flags from a shared base; nothing
here reads or writes ``os.environ``.
"""
from __future__ import annotations

from dataclasses import dataclass, replace
from pathlib import Path
from typing import Dict, List


def _append(flags: str, flag: str) -> str:
    if flag in flags.split():
        return flags
    return f"{flags} {flag}".strip()


@dataclass(frozen=True)
class CompilerFlags:
    cflags: str = ""
    cxxflags: str = ""
    cppflags: str = ""
    ldflags: str = ""

    @classmethod
    def from_settings(cls, settings) -> "CompilerFlags":
        return cls(
            cflags=settings.CFLAGS.strip(),
            cxxflags=settings.CXXFLAGS.strip(),
            cppflags=settings.CPPFLAGS.strip(),
            ldflags=settings.LDFLAGS.strip(),
        )

    def with_pic(self, pic_flag: str = "-fPIC") -> "CompilerFlags":
        """Add the position-independent-code flag to C and C++ flags."""
        return replace(
            self,
            cflags=_append(self.cflags, pic_flag),
            cxxflags=_append(self.cxxflags, pic_flag),
        )

    def with_include(self, directory: Path) -> "CompilerFlags":
        return replace(self, cppflags=_append(self.cppflags, f"-I{directory}"))

    def with_library_dir(self, directory: Path) -> "CompilerFlags":
        return replace(self, ldflags=_append(self.ldflags, f"-L{directory}"))

    def as_env(self) -> Dict[str, str]:
        """Environment overlay for a sub-build step."""
        env = {"CFLAGS": self.cflags, "CXXFLAGS": self.cxxflags}
        if self.cppflags:
            env["CPPFLAGS"] = self.cppflags
        if self.ldflags:
            env["LDFLAGS"] = self.ldflags
        return env

    def as_configure_args(self) -> List[str]:
        """``VAR=value`` arguments for ./configure (preprocessor + linker only)."""
        args = []
        if self.cppflags:
            args.append(f"CPPFLAGS={self.cppflags}")
        if self.ldflags:
            args.append(f"LDFLAGS={self.ldflags}")
        return args
