"""
Build configuration
"""
import os
from pathlib import Path
from typing import Optional

from pydantic import AliasChoices, Field, ValidationError
from pydantic_settings import BaseSettings

from vendor_build.errors import ConfigurationError


class BuildSettings(BaseSettings):
    """Settings read once per run from the environment"""

    # Compiler flags handed to every sub-build
    CFLAGS: str = ""
    CXXFLAGS: str = ""
    CPPFLAGS: str = ""
    LDFLAGS: str = ""

    # Layout
    OUT_DIR: Optional[Path] = None
    SOURCE_ROOT: Path = Field(
        default_factory=Path.cwd,
        validation_alias="VENDOR_SOURCE_ROOT",
    )
    THIRD_PARTY_DIR: str = Field(
        default="third_party",
        validation_alias="VENDOR_THIRD_PARTY_DIR",
    )
    LOG_DIR: Optional[Path] = Field(
        default=None,
        validation_alias="VENDOR_BUILD_LOG_DIR",
    )

    # Feature switches (the outer build exports CARGO_FEATURE_*)
    BUILD_PROFILER: bool = Field(
        default=False,
        validation_alias=AliasChoices(
            "VENDOR_BUILD_PROFILER", "CARGO_FEATURE_STATIC_GPERFTOOLS"
        ),
    )
    BUILD_UNWINDER: bool = Field(
        default=False,
        validation_alias=AliasChoices(
            "VENDOR_BUILD_UNWINDER", "CARGO_FEATURE_STATIC_UNWIND"
        ),
    )

    # make
    JOBS: int = Field(
        default_factory=lambda: os.cpu_count() or 1,
        validation_alias="VENDOR_BUILD_JOBS",
    )
    KEEP_GOING: bool = Field(
        default=True,
        validation_alias="VENDOR_BUILD_KEEP_GOING",
    )

    @property
    def third_party_root(self) -> Path:
        """Un-staged vendored source root"""
        return self.SOURCE_ROOT / self.THIRD_PARTY_DIR

    @property
    def log_dir(self) -> Optional[Path]:
        """Per-step log directory (defaults under OUT_DIR)"""
        if self.LOG_DIR is not None:
            return self.LOG_DIR
        if self.OUT_DIR is not None:
            return self.OUT_DIR / "logs"
        return None

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"


def load_settings(**overrides) -> BuildSettings:
    """
    Read settings from the environment, then apply explicit overrides
    (command-line values). Overrides of None are ignored.

    Raises ``ConfigurationError`` when an environment value does not
    parse (e.g. a non-numeric VENDOR_BUILD_JOBS).
    """
    try:
        settings = BuildSettings()
    except ValidationError as e:
        fields = ", ".join(
            ".".join(str(p) for p in err["loc"]) for err in e.errors()
        )
        raise ConfigurationError(f"Invalid build settings ({fields}): {e}") from e
    update = {k: v for k, v in overrides.items() if v is not None}
    if update:
        settings = settings.model_copy(update=update)
    return settings
