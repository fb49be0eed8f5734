"""Tests for snapshot path normalization."""

from pathlib import PurePosixPath

import pytest

from exe_stitcher.snapshot import (
    Slash,
    StoreKind,
    inside_snapshot,
    is_native_addon,
    snapshot_root,
    snapshotify,
)


class TestSnapshotify:
    """Tests for snapshotify."""

    def test_posix_path(self):
        assert snapshotify("/app/index.js", "/") == "/snapshot/app/index.js"

    def test_windows_path(self):
        assert snapshotify("C:\\app\\index.js", "\\") == "C:\\snapshot\\app\\index.js"

    def test_windows_drive_is_fixed(self):
        assert snapshotify("d:/app/index.js", Slash.WINDOWS) == "C:\\snapshot\\app\\index.js"

    def test_posix_policy_strips_drive(self):
        assert snapshotify("C:\\app\\index.js", Slash.POSIX) == "/snapshot/app/index.js"

    def test_windows_policy_on_posix_path(self):
        assert snapshotify("/app/a.js", Slash.WINDOWS) == "C:\\snapshot\\app\\a.js"

    def test_collapses_separators_and_dots(self):
        assert snapshotify("/app//lib/./x/../a.js/", "/") == "/snapshot/app/lib/a.js"

    def test_parent_never_climbs_above_root(self):
        assert snapshotify("/../../etc/passwd", "/") == "/snapshot/etc/passwd"

    def test_root(self):
        assert snapshotify("/", "/") == "/snapshot"
        assert snapshotify("C:\\", "\\") == "C:\\snapshot"

    def test_accepts_pure_paths(self):
        assert snapshotify(PurePosixPath("/app/a.js"), "/") == "/snapshot/app/a.js"

    @pytest.mark.parametrize(
        "path",
        [
            "/app/index.js",
            "/",
            "relative/file.js",
            "C:\\Users\\me\\app\\index.js",
            "/snapshot/app/index.js",
            "/snapshot/snapshot/x",
            "/app/../lib/./a.js",
            "C:/mixed\\seps/a.js",
        ],
    )
    @pytest.mark.parametrize("slash", ["/", "\\"])
    def test_idempotent(self, path, slash):
        once = snapshotify(path, slash)
        assert snapshotify(once, slash) == once

    def test_rejects_unknown_separator(self):
        with pytest.raises(ValueError):
            snapshotify("/app", ":")


def test_snapshot_root():
    assert snapshot_root("/") == "/snapshot"
    assert snapshot_root(Slash.WINDOWS) == "C:\\snapshot"


def test_inside_snapshot():
    assert inside_snapshot("/snapshot/app/a.js") is True
    assert inside_snapshot("C:\\snapshot\\app") is True
    assert inside_snapshot("/app/snapshot") is False


def test_is_native_addon():
    assert is_native_addon("/app/build/Release/addon.node") is True
    assert is_native_addon("/app/node.js") is False


def test_store_kind_values():
    assert [int(k) for k in StoreKind] == [0, 1, 2, 3]
