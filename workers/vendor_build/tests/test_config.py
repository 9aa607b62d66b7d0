"""
test_config — settings and feature switches.

  - Feature switches come from VENDOR_BUILD_* or the outer build's CARGO_FEATURE_*.
  - --features names map onto the same switches; unknown names are rejected.
  - Switches are a closed Enabled / Disabled variant.
"""
from pathlib import Path

import pytest

from vendor_build.config import BuildSettings, load_settings
from vendor_build.errors import ConfigurationError
from vendor_build.policy.features import (
    BuildConfiguration,
    Component,
    Disabled,
    Enabled,
)
from vendor_build.policy.profile import BuildProfile


class TestBuildSettings:

    def test_defaults(self):
        s = BuildSettings()

        assert s.BUILD_PROFILER is False
        assert s.BUILD_UNWINDER is False
        assert s.KEEP_GOING is True
        assert s.JOBS >= 1
        assert s.THIRD_PARTY_DIR == "third_party"
        assert s.OUT_DIR is None
        assert s.log_dir is None

    def test_cargo_feature_env(self, monkeypatch):
        monkeypatch.setenv("CARGO_FEATURE_STATIC_UNWIND", "1")
        monkeypatch.setenv("CARGO_FEATURE_STATIC_GPERFTOOLS", "1")

        config = BuildConfiguration.from_settings(BuildSettings())

        assert config == BuildConfiguration(build_profiler=True, build_unwinder=True)

    def test_vendor_env_and_flags(self, monkeypatch, tmp_path):
        monkeypatch.setenv("VENDOR_BUILD_UNWINDER", "true")
        monkeypatch.setenv("CFLAGS", "-O2")
        monkeypatch.setenv("OUT_DIR", str(tmp_path))
        monkeypatch.setenv("VENDOR_BUILD_JOBS", "3")

        s = BuildSettings()

        assert s.BUILD_UNWINDER is True
        assert s.BUILD_PROFILER is False
        assert s.CFLAGS == "-O2"
        assert s.OUT_DIR == tmp_path
        assert s.JOBS == 3
        assert s.log_dir == tmp_path / "logs"

    def test_overrides_win_over_env(self, monkeypatch, tmp_path):
        monkeypatch.setenv("OUT_DIR", "/elsewhere")

        s = load_settings(OUT_DIR=tmp_path, JOBS=None)

        assert s.OUT_DIR == tmp_path

    def test_third_party_root(self, tmp_path):
        s = load_settings(SOURCE_ROOT=tmp_path)

        assert s.third_party_root == tmp_path / "third_party"

    def test_explicit_log_dir(self, monkeypatch, tmp_path):
        monkeypatch.setenv("VENDOR_BUILD_LOG_DIR", str(tmp_path / "logs"))

        assert BuildSettings().log_dir == Path(tmp_path / "logs")


class TestBuildConfiguration:

    @pytest.mark.parametrize(
        "names, profiler, unwinder",
        [
            ([], False, False),
            (["static_unwind"], False, True),
            (["static_gperftools"], True, False),
            (["static_gperftools", "static_unwind"], True, True),
            (["profiler", " unwinder ", ""], True, True),
        ],
    )
    def test_from_features(self, names, profiler, unwinder):
        config = BuildConfiguration.from_features(names)

        assert config.build_profiler is profiler
        assert config.build_unwinder is unwinder

    def test_unknown_feature(self):
        with pytest.raises(ConfigurationError):
            BuildConfiguration.from_features(["static_jemalloc"])

    def test_build_order(self):
        config = BuildConfiguration(build_profiler=True, build_unwinder=True)

        assert config.enabled_components() == [Component.UNWINDER, Component.PROFILER]
        assert config.feature_names() == ["static_unwind", "static_gperftools"]

    def test_switch_variants(self):
        profile = BuildProfile.v0()
        config = BuildConfiguration(build_unwinder=True)

        unwind = config.switch(Component.UNWINDER, profile)
        assert isinstance(unwind, Enabled)
        assert unwind.profile.subdir == "libunwind"
        assert isinstance(config.switch(Component.PROFILER, profile), Disabled)

    def test_frozen(self):
        config = BuildConfiguration()

        with pytest.raises(AttributeError):
            config.build_profiler = True


class TestLoadSettings:

    def test_invalid_env_value_is_configuration_error(self, monkeypatch):
        monkeypatch.setenv("VENDOR_BUILD_JOBS", "many")

        with pytest.raises(ConfigurationError) as exc:
            load_settings()

        assert "VENDOR_BUILD_JOBS" in str(exc.value)

    def test_invalid_feature_flag_value(self, monkeypatch):
        monkeypatch.setenv("CARGO_FEATURE_STATIC_UNWIND", "maybe")

        with pytest.raises(ConfigurationError):
            load_settings()
