"""
Process — run one toolchain step synchronously and record its outcome.

stdout of this process is reserved for link directives, so child output
goes to per-step log files instead of being inherited.
"""
from __future__ import annotations

import logging
import os
import subprocess
import time
from dataclasses import dataclass
from enum import Enum, unique
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Sequence

logger = logging.getLogger(__name__)


@unique
class BuildStage(str, Enum):
    BOOTSTRAP = "bootstrap"
    CONFIGURE = "configure"
    COMPILE = "compile"


@dataclass(frozen=True)
class StepResult:
    """Outcome of a single spawned step."""
    component: str
    stage: BuildStage
    argv: List[str]
    cwd: Path
    exit_code: int           # -1 if the process could not be spawned
    duration_ms: int
    stdout_path: Optional[Path] = None
    stderr_path: Optional[Path] = None
    error: Optional[str] = None   # spawn / log-file failure text

    @property
    def ok(self) -> bool:
        return self.exit_code == 0


class StepRunner:
    """
    Spawns steps and waits for them.  No timeout: a step runs to
    completion or failure.

    Args:
        log_dir: Directory for ``<component>.<stage>.stdout|stderr``.
        base_env: Environment the overlays are applied to
            (defaults to ``os.environ``).
    """

    def __init__(self, log_dir: Path, base_env: Optional[Mapping[str, str]] = None):
        self.log_dir = Path(log_dir)
        self.base_env = dict(os.environ if base_env is None else base_env)
        self.results: List[StepResult] = []

    def run(
        self,
        component: str,
        stage: BuildStage,
        argv: Sequence[str],
        cwd: Path,
        env: Optional[Dict[str, str]] = None,
    ) -> StepResult:
        stdout_path: Optional[Path] = self.log_dir / f"{component}.{stage.value}.stdout"
        stderr_path: Optional[Path] = self.log_dir / f"{component}.{stage.value}.stderr"
        error = None

        full_env = dict(self.base_env)
        if env:
            full_env.update(env)

        logger.debug("RUN [%s/%s]: %s (cwd=%s)", component, stage.value, " ".join(argv), cwd)

        t0 = time.monotonic()
        try:
            self.log_dir.mkdir(parents=True, exist_ok=True)
            with open(stdout_path, "w") as out, open(stderr_path, "w") as err:
                try:
                    proc = subprocess.run(
                        list(argv),
                        cwd=str(cwd),
                        env=full_env,
                        stdout=out,
                        stderr=err,
                        stdin=subprocess.DEVNULL,
                    )
                    exit_code = proc.returncode
                except OSError as e:
                    exit_code = -1
                    error = f"failed to spawn {argv[0]}: {e}"
                    err.write(error + "\n")
        except OSError as e:
            # No usable log files: the step is never spawned
            exit_code = -1
            error = f"cannot write step logs under {self.log_dir}: {e}"
            stdout_path = stderr_path = None
        duration = int((time.monotonic() - t0) * 1000)

        result = StepResult(
            component=component,
            stage=stage,
            argv=list(argv),
            cwd=Path(cwd),
            exit_code=exit_code,
            duration_ms=duration,
            stdout_path=stdout_path,
            stderr_path=stderr_path,
            error=error,
        )
        self.results.append(result)
        return result


def tail(path: Optional[Path], lines: int = 20) -> str:
    """Last *lines* lines of a log file, or '' if unreadable."""
    if path is None:
        return ""
    try:
        content = path.read_text(errors="replace").splitlines()
    except OSError:
        return ""
    return "\n".join(content[-lines:])
