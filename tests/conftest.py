"""Shared fixtures for exe-stitcher tests."""

import logging
from pathlib import Path

import pytest

from exe_stitcher.placeholders import MARKERS
from exe_stitcher.target import Platform, Target

from stubs import StubFabricator, StubResolver


BINARY_NAME = "fetched-v18.5.0-linux-x64"


def make_baseline() -> bytes:
    """Build a fake runtime binary holding every marker once."""
    parts = [b"\x7fELF" + b"\x00" * 12]
    for marker in MARKERS:
        parts.append(marker.pattern)
        parts.append(b"\xcc" * 8)
    parts.append(b"\x90" * 16)
    return b"".join(parts)


@pytest.fixture(autouse=True)
def _restore_logger():
    """Undo the CLI's logger configuration so caplog keeps working."""
    logger = logging.getLogger("exe_stitcher")
    handlers = list(logger.handlers)
    level = logger.level
    propagate = logger.propagate
    yield
    logger.handlers[:] = handlers
    logger.setLevel(level)
    logger.propagate = propagate


@pytest.fixture
def baseline() -> bytes:
    return make_baseline()


@pytest.fixture
def baseline_path(tmp_path, baseline) -> Path:
    path = tmp_path / "bin" / BINARY_NAME
    path.parent.mkdir()
    path.write_bytes(baseline)
    return path


@pytest.fixture
def target(tmp_path, baseline_path) -> Target:
    return Target(
        binary_path=baseline_path,
        platform=Platform.LINUX,
        arch="x64",
        output=tmp_path / "dist" / "app",
        fabricator="fabricator-handle",
    )


@pytest.fixture
def stub_resolver() -> StubResolver:
    return StubResolver()


@pytest.fixture
def stub_fabricator() -> StubFabricator:
    return StubFabricator()
