"""Prelude templating.

The prelude is the bootstrap script the embedded runtime evaluates at startup.
Its template carries three tokens that are replaced with JSON, then the result
is wrapped in a function whose parameters the runtime supplies.
"""

from collections.abc import Mapping
import json


VIRTUAL_FILESYSTEM_TOKEN: str = "%VIRTUAL_FILESYSTEM%"
DEFAULT_ENTRYPOINT_TOKEN: str = "%DEFAULT_ENTRYPOINT%"
SYMLINKS_TOKEN: str = "%SYMLINKS%"

PRELUDE_PARAMETERS: tuple[str, ...] = (
    "process",
    "require",
    "console",
    "EXECPATH_FD",
    "PAYLOAD_POSITION",
    "PAYLOAD_SIZE",
)


def _to_json(value: object) -> str:
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False)


def substitute_tokens(
    *,
    template: str,
    vfs_json: str,
    entrypoint: str,
    symlinks: Mapping[str, str],
) -> str:
    """Replace the three prelude tokens.

    Only the first occurrence of each token is replaced and replacement text is
    inserted literally. Tokens are substituted in a fixed order, so text that
    one substitution inserts can be matched by a later token.

    :param template: Prelude template.
    :param vfs_json: Serialized virtual filesystem.
    :param entrypoint: Snapshot path of the default entry point.
    :param symlinks: Snapshot symlink table.
    :returns: Prelude body.
    """

    body: str = template.replace(VIRTUAL_FILESYSTEM_TOKEN, vfs_json, 1)
    body = body.replace(DEFAULT_ENTRYPOINT_TOKEN, _to_json(entrypoint), 1)
    body = body.replace(SYMLINKS_TOKEN, _to_json(dict(symlinks)), 1)
    return body


def wrap_prelude(body: str) -> bytes:
    """Wrap a prelude body in the bootstrap function header."""

    # Keep the newline: the body may end with a line comment.
    params: str = ", ".join(PRELUDE_PARAMETERS)
    return f"(function({params}) {{ {body}\n}})".encode("utf-8")


def make_prelude(
    *,
    template: str,
    vfs_json: str,
    entrypoint: str,
    symlinks: Mapping[str, str],
) -> bytes:
    """Build the final prelude segment."""

    return wrap_prelude(
        substitute_tokens(
            template=template,
            vfs_json=vfs_json,
            entrypoint=entrypoint,
            symlinks=symlinks,
        )
    )
