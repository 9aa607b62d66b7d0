"""
Schema — Pydantic models for the build receipt.

One receipt per run, written whether the run succeeded or failed:
vendor_build_receipt.json in OUT_DIR.

Runtime contract fields (present in every receipt):
  package_name, builder_version, profile_id, schema_version.
"""
from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, Field

from vendor_build import BUILDER_VERSION, PACKAGE_NAME, SCHEMA_VERSION


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# ── Steps ────────────────────────────────────────────────────────────────────

class StepModel(BaseModel):
    """One spawned toolchain step."""
    component: str
    stage: str               # bootstrap | configure | compile
    argv: List[str]
    cwd: str
    exit_code: int
    duration_ms: int
    stdout_path: Optional[str] = None
    stderr_path: Optional[str] = None
    error: Optional[str] = None


# ── Outputs ──────────────────────────────────────────────────────────────────

class ArtifactModel(BaseModel):
    component: str
    build_dir: str
    lib_dir: str
    static_lib: str
    runtime_dylibs: List[str] = Field(default_factory=list)


class DirectiveModel(BaseModel):
    kind: str                # rustc-link-lib | rustc-link-search
    link_kind: str           # static | dylib | native
    value: str
    rendered: str


class FlagsModel(BaseModel):
    cflags: str = ""
    cxxflags: str = ""
    cppflags: str = ""
    ldflags: str = ""


class FailureModel(BaseModel):
    """Why the run reached Failed."""
    state: str               # state the pipeline was in when it failed
    error: str               # exception class kind
    message: str
    component: Optional[str] = None
    stage: Optional[str] = None
    exit_status: Optional[int] = None
    path: Optional[str] = None


# ── Receipt ──────────────────────────────────────────────────────────────────

class BuildReceipt(BaseModel):
    """vendor_build_receipt.json"""

    package_name: str = PACKAGE_NAME
    builder_version: str = BUILDER_VERSION
    schema_version: str = SCHEMA_VERSION
    profile_id: str

    features: List[str] = Field(default_factory=list)
    base_flags: FlagsModel = Field(default_factory=FlagsModel)
    jobs: int
    keep_going: bool = True

    source_root: str
    scratch_root: Optional[str] = None

    transitions: List[str] = Field(default_factory=list)
    final_state: str
    failure: Optional[FailureModel] = None

    steps: List[StepModel] = Field(default_factory=list)
    artifacts: List[ArtifactModel] = Field(default_factory=list)
    directives: List[DirectiveModel] = Field(default_factory=list)

    started_at: str = Field(default_factory=now_iso)
    finished_at: Optional[str] = None
