"""Tests for the virtual filesystem index."""

import json

from exe_stitcher.snapshot import StoreKind
from exe_stitcher.vfs import VirtualFilesystem


def test_record_advances_track():
    vfs = VirtualFilesystem("/")

    vfs.record("/app/a.js", StoreKind.CONTENT, 10)
    vfs.record("/app/b.js", StoreKind.BLOB, 5)

    assert vfs.track == 15
    assert vfs.to_dict() == {
        "/snapshot/app/a.js": {"1": [0, 10]},
        "/snapshot/app/b.js": {"0": [10, 5]},
    }


def test_one_path_several_kinds():
    vfs = VirtualFilesystem("/")

    vfs.record("/app/a.js", StoreKind.BLOB, 7)
    vfs.record("/app/a.js", StoreKind.STAT, 3)

    assert vfs.to_dict() == {"/snapshot/app/a.js": {"0": [0, 7], "3": [7, 3]}}


def test_zero_length_entry():
    vfs = VirtualFilesystem("/")

    vfs.record("/app/empty.txt", StoreKind.CONTENT, 0)
    vfs.record("/app/next.txt", StoreKind.CONTENT, 4)

    assert vfs.to_dict()["/snapshot/app/next.txt"] == {"1": [0, 4]}


def test_contains_normalizes():
    vfs = VirtualFilesystem("\\")
    vfs.record("C:\\app\\a.js", StoreKind.CONTENT, 1)

    assert "C:\\app\\a.js" in vfs
    assert "C:\\snapshot\\app\\a.js" in vfs
    assert "C:\\app\\b.js" not in vfs


def test_to_json_is_compact():
    vfs = VirtualFilesystem("/")
    vfs.record("/app/ä.js", StoreKind.CONTENT, 2)

    text = vfs.to_json()

    assert text == '{"/snapshot/app/ä.js":{"1":[0,2]}}'
    assert json.loads(text) == vfs.to_dict()
