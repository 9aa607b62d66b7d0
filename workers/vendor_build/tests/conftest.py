"""
Shared pytest fixtures for vendor_build tests.

All fixtures are pure-Python: no autotools, no compiler.  Toolchain
steps are replaced by ``RecordingRunner``, which records every argv /
cwd / env it is handed and can be told to fail one (component, stage).
"""
import textwrap
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import pytest

from vendor_build.config import load_settings
from vendor_build.core.process import BuildStage, StepResult, StepRunner

SETTINGS_ENV_VARS = (
    "CFLAGS", "CXXFLAGS", "CPPFLAGS", "LDFLAGS", "OUT_DIR",
    "VENDOR_SOURCE_ROOT", "VENDOR_THIRD_PARTY_DIR", "VENDOR_BUILD_LOG_DIR",
    "VENDOR_BUILD_PROFILER", "VENDOR_BUILD_UNWINDER",
    "CARGO_FEATURE_STATIC_GPERFTOOLS", "CARGO_FEATURE_STATIC_UNWIND",
    "VENDOR_BUILD_JOBS", "VENDOR_BUILD_KEEP_GOING",
)

AUTOGEN_SH = textwrap.dedent("""\
    #!/bin/sh
    autoreconf -fi
""")


class RecordingRunner(StepRunner):
    """StepRunner double: records calls, spawns nothing."""

    def __init__(self, log_dir: Path, fail: Optional[Tuple[str, BuildStage, int]] = None):
        super().__init__(log_dir, base_env={})
        self.fail = fail
        self.calls: List[Dict] = []

    def run(self, component, stage, argv, cwd, env=None) -> StepResult:
        self.calls.append({
            "component": component,
            "stage": stage,
            "argv": list(argv),
            "cwd": Path(cwd),
            "env": dict(env or {}),
        })
        exit_code = 0
        if self.fail is not None and self.fail[:2] == (component, stage):
            exit_code = self.fail[2]
        result = StepResult(
            component=component,
            stage=stage,
            argv=list(argv),
            cwd=Path(cwd),
            exit_code=exit_code,
            duration_ms=0,
        )
        self.results.append(result)
        return result

    def calls_for(self, component: str) -> List[Dict]:
        return [c for c in self.calls if c["component"] == component]

    def call(self, component: str, stage: BuildStage) -> Dict:
        matches = [c for c in self.calls_for(component) if c["stage"] == stage]
        assert len(matches) == 1, f"expected one {component}/{stage.value} call"
        return matches[0]


def _populate(component_dir: Path) -> None:
    component_dir.mkdir(parents=True, exist_ok=True)
    (component_dir / "autogen.sh").write_text(AUTOGEN_SH)
    (component_dir / "configure.ac").write_text("AC_INIT([vendored], [1.0])\n")
    (component_dir / "include").mkdir(exist_ok=True)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    """Isolate settings from the caller's environment and any .env file."""
    for name in SETTINGS_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def repo(tmp_path) -> Path:
    """A checkout with both vendored dependencies present."""
    root = tmp_path / "repo"
    _populate(root / "third_party" / "libunwind")
    (root / "third_party" / "libunwind" / "include" / "libunwind.h").write_text("/* unwind */\n")
    _populate(root / "third_party" / "gperftools")
    (root / "third_party" / "gperftools" / "include" / "profiler.h").write_text("/* profiler */\n")
    return root


@pytest.fixture
def out_dir(tmp_path) -> Path:
    return tmp_path / "out"


@pytest.fixture
def make_settings(repo, out_dir):
    """Factory for settings rooted at the fixture checkout."""
    def _make(**overrides):
        values = {"SOURCE_ROOT": repo, "OUT_DIR": out_dir, "JOBS": 4}
        values.update(overrides)
        return load_settings(**values)
    return _make


@pytest.fixture
def recording_runner(out_dir) -> RecordingRunner:
    return RecordingRunner(out_dir / "logs")


@pytest.fixture
def runner_factory(out_dir):
    """Build a RecordingRunner, optionally failing (component, stage, exit_code)."""
    def _make(fail=None) -> RecordingRunner:
        return RecordingRunner(out_dir / "logs", fail=fail)
    return _make
