"""Tests for target resolution."""

from pathlib import Path

import pytest

from exe_stitcher.errors import ConfigurationError, TargetResolutionError
from exe_stitcher.target import (
    Platform,
    normalize_arch,
    normalize_platform,
    resolve_target,
    runtime_version,
)


class TestRuntimeVersion:
    """Tests for runtime_version."""

    def test_reads_version_from_binary_name(self):
        assert runtime_version(Path("/cache/fetched-v18.5.0-linux-x64")) == "v18.5.0"

    @pytest.mark.parametrize(
        "name",
        ["node", "fetched-18.5.0-linux-x64", "fetched-v18.5-linux-x64", "fetched-latest-linux-x64"],
    )
    def test_rejects_malformed_version(self, name):
        with pytest.raises(ConfigurationError, match="runtime version"):
            runtime_version(Path(name))


class TestResolveTarget:
    """Tests for resolve_target."""

    def test_infers_platform_and_arch(self, tmp_path):
        target = resolve_target(
            binary_path=tmp_path / "fetched-v16.16.0-macos-arm64",
            output=tmp_path / "out",
        )

        assert target.platform is Platform.MACOS
        assert target.arch == "arm64"
        assert target.output == tmp_path / "out"
        assert target.fabricator is None

    def test_overrides_win(self, tmp_path):
        target = resolve_target(
            binary_path=tmp_path / "custom-runtime",
            output=tmp_path / "out.exe",
            platform_override="windows",
            arch_override="amd64",
        )

        assert target.platform is Platform.WIN
        assert target.arch == "x64"

    def test_missing_platform(self, tmp_path):
        with pytest.raises(TargetResolutionError, match="--platform"):
            resolve_target(binary_path=tmp_path / "node", output=tmp_path / "out")

    def test_missing_arch(self, tmp_path):
        with pytest.raises(TargetResolutionError, match="--arch"):
            resolve_target(binary_path=tmp_path / "fetched-v18.5.0-linux", output=tmp_path / "out")


def test_normalize_platform_aliases():
    assert normalize_platform("darwin") is Platform.MACOS
    assert normalize_platform("Linux") is Platform.LINUX
    assert normalize_platform("alpine") is Platform.ALPINE


def test_normalize_platform_unknown():
    with pytest.raises(TargetResolutionError):
        normalize_platform("plan9")


def test_normalize_arch():
    assert normalize_arch("aarch64") == "arm64"
    assert normalize_arch("armv7l") == "armv7"
    with pytest.raises(TargetResolutionError):
        normalize_arch("mips")
