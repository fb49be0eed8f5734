"""Snapshot path helpers.

Every embedded item lives under a fixed virtual root inside the produced
executable. This module maps host paths into that path space:

- ``/snapshot`` when the target uses POSIX separators,
- ``C:\\snapshot`` when the target uses Windows separators.

Stripe paths, the entry point and both ends of every symlink go through
:func:`snapshotify` so they all share one path space.
"""

from enum import Enum, IntEnum
import pathlib
import re


class Slash(str, Enum):
    """Path separator policy of the target."""

    POSIX = "/"
    WINDOWS = "\\"


class StoreKind(IntEnum):
    """How a stripe's bytes are stored in the virtual filesystem.

    The integer values are the keys the prelude reads from the vfs map.
    """

    BLOB = 0
    CONTENT = 1
    LINKS = 2
    STAT = 3


SNAPSHOT_NAME: str = "snapshot"

_DRIVE_RE: re.Pattern[str] = re.compile(r"^[A-Za-z]:(?=[\\/]|$)")
_SEPARATORS_RE: re.Pattern[str] = re.compile(r"[\\/]+")


def _coerce_slash(slash: Slash | str) -> Slash:
    """Accept either a :class:`Slash` or its separator character.

    :param slash: Separator policy.
    :returns: The policy as an enum member.
    :raises ValueError: If the separator is neither ``/`` nor ``\\``.
    """

    if isinstance(slash, Slash):
        return slash
    return Slash(slash)


def _split_parts(path: str) -> list[str]:
    """Split a path on both separators and collapse it lexically.

    ``..`` never climbs above the root.
    """

    stripped: str = _DRIVE_RE.sub("", path, count=1)
    parts: list[str] = []
    for part in _SEPARATORS_RE.split(stripped):
        if part == "" or part == ".":
            continue
        if part == "..":
            if len(parts) > 0:
                parts.pop()
            continue
        parts.append(part)
    return parts


def snapshot_root(slash: Slash | str) -> str:
    """Return the virtual root for a separator policy."""

    if _coerce_slash(slash) is Slash.WINDOWS:
        return f"C:\\{SNAPSHOT_NAME}"
    return f"/{SNAPSHOT_NAME}"


def snapshotify(path: str | pathlib.PurePath, slash: Slash | str) -> str:
    """Map a host path to its canonical snapshot path.

    The function is idempotent: a path already inside the virtual root maps
    to itself (after separator normalization).

    :param path: Host path, absolute or relative, with either separator.
    :param slash: Separator policy of the target.
    :returns: Snapshot path, e.g. ``/snapshot/app/index.js``.
    """

    policy: Slash = _coerce_slash(slash)
    parts: list[str] = _split_parts(str(path))
    if len(parts) > 0 and parts[0] == SNAPSHOT_NAME:
        parts = parts[1:]

    root: str = snapshot_root(policy)
    if len(parts) == 0:
        return root
    return root + policy.value + policy.value.join(parts)


def inside_snapshot(path: str | pathlib.PurePath) -> bool:
    """Check if a path already lives under a virtual root."""

    parts: list[str] = _split_parts(str(path))
    return len(parts) > 0 and parts[0] == SNAPSHOT_NAME


def is_native_addon(path: str | pathlib.PurePath) -> bool:
    """Check if a file is a native addon module (``*.node``)."""

    return pathlib.PurePath(path).suffix == ".node"
