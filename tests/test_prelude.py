"""Tests for prelude templating."""

from exe_stitcher.prelude import make_prelude, substitute_tokens, wrap_prelude


def test_substitutes_tokens():
    body = substitute_tokens(
        template="var vfs = %VIRTUAL_FILESYSTEM%; var entry = %DEFAULT_ENTRYPOINT%; var links = %SYMLINKS%;",
        vfs_json='{"/snapshot/a.js":{"1":[0,3]}}',
        entrypoint="/snapshot/a.js",
        symlinks={"/snapshot/l.js": "/snapshot/a.js"},
    )

    assert body == (
        'var vfs = {"/snapshot/a.js":{"1":[0,3]}}; '
        'var entry = "/snapshot/a.js"; '
        'var links = {"/snapshot/l.js":"/snapshot/a.js"};'
    )


def test_replaces_first_occurrence_only():
    body = substitute_tokens(
        template="%SYMLINKS% %SYMLINKS%",
        vfs_json="{}",
        entrypoint="/snapshot/a.js",
        symlinks={},
    )

    assert body == "{} %SYMLINKS%"


def test_replacement_is_literal():
    body = substitute_tokens(
        template="x = %DEFAULT_ENTRYPOINT%",
        vfs_json="{}",
        entrypoint="C:\\snapshot\\$&\\a.js",
        symlinks={},
    )

    assert body == 'x = "C:\\\\snapshot\\\\$&\\\\a.js"'


def test_windows_entrypoint_is_escaped():
    body = substitute_tokens(
        template="%DEFAULT_ENTRYPOINT%",
        vfs_json="{}",
        entrypoint="C:\\snapshot\\a.js",
        symlinks={},
    )

    assert body == '"C:\\\\snapshot\\\\a.js"'


def test_wrap_prelude():
    assert wrap_prelude("run(); // done") == (
        b"(function(process, require, console, EXECPATH_FD, PAYLOAD_POSITION, PAYLOAD_SIZE) "
        b"{ run(); // done\n})"
    )


def test_make_prelude_encodes_utf8():
    prelude = make_prelude(
        template="// ü %VIRTUAL_FILESYSTEM%",
        vfs_json="{}",
        entrypoint="/snapshot/a.js",
        symlinks={},
    )

    assert prelude.startswith(b"(function(")
    assert "// ü {}".encode("utf-8") in prelude
