"""Target resolution helpers.

A target names the baseline runtime binary to rewrite, the platform and
architecture it runs on, and where the produced executable goes.

Baseline binaries are conventionally named ``<name>-v<version>-<platform>-<arch>``
(e.g. ``fetched-v18.5.0-linux-x64``). This module reads the runtime version
and, when not given explicitly, the platform and arch from that name.
"""

from dataclasses import dataclass
from enum import Enum
import pathlib
import re

from exe_stitcher.errors import ConfigurationError, TargetResolutionError


class Platform(str, Enum):
    """Platforms a baseline binary can be built for."""

    ALPINE = "alpine"
    FREEBSD = "freebsd"
    LINUX = "linux"
    LINUXSTATIC = "linuxstatic"
    MACOS = "macos"
    WIN = "win"


@dataclass(frozen=True, slots=True)
class Target:
    """Build target.

    :ivar binary_path: Baseline runtime binary to rewrite.
    :ivar platform: Platform of the baseline binary.
    :ivar arch: Normalized architecture name (e.g. ``x64``).
    :ivar output: Path of the produced executable.
    :ivar fabricator: Opaque handle passed through to the fabricator.
    """

    binary_path: pathlib.Path
    platform: Platform
    arch: str
    output: pathlib.Path
    fabricator: object | None = None


_VERSION_RE: re.Pattern[str] = re.compile(r"^v[0-9]+\.[0-9]+\.[0-9]+$")

_ARCH_MAP: dict[str, str] = {
    "x64": "x64",
    "x86_64": "x64",
    "amd64": "x64",
    "x86": "x86",
    "i386": "x86",
    "i686": "x86",
    "ia32": "x86",
    "arm64": "arm64",
    "aarch64": "arm64",
    "armv6": "armv6",
    "armv6l": "armv6",
    "armv7": "armv7",
    "armv7l": "armv7",
    "ppc64": "ppc64",
    "ppc64le": "ppc64",
    "s390x": "s390x",
}

_PLATFORM_ALIASES: dict[str, Platform] = {
    "darwin": Platform.MACOS,
    "osx": Platform.MACOS,
    "win32": Platform.WIN,
    "windows": Platform.WIN,
}


def runtime_version(binary_path: pathlib.Path) -> str:
    """Extract the runtime ABI version from a baseline binary name.

    :param binary_path: Baseline binary, e.g. ``fetched-v18.5.0-linux-x64``.
    :returns: Version string, e.g. ``v18.5.0``.
    :raises ConfigurationError: If the name does not carry a ``vX.Y.Z`` version.
    """

    fields: list[str] = pathlib.PurePath(binary_path).name.split("-")
    version: str = fields[1] if len(fields) >= 2 else ""
    if _VERSION_RE.match(version) is None:
        raise ConfigurationError(f"Couldn't find runtime version, instead got: {version!r}")
    return version


def normalize_platform(platform: str) -> Platform:
    """Map a platform name or common alias to a :class:`Platform`.

    :raises TargetResolutionError: If the platform is unknown.
    """

    lowered: str = platform.strip().lower()
    alias: Platform | None = _PLATFORM_ALIASES.get(lowered)
    if alias is not None:
        return alias
    try:
        return Platform(lowered)
    except ValueError as e:
        raise TargetResolutionError(f"Unsupported platform: {platform!r}") from e


def normalize_arch(arch: str) -> str:
    """Map an architecture name or common alias to its canonical spelling.

    :raises TargetResolutionError: If the arch is unknown.
    """

    canonical: str | None = _ARCH_MAP.get(arch.strip().lower())
    if canonical is None:
        raise TargetResolutionError(f"Unsupported arch: {arch!r}")
    return canonical


def resolve_target(
    *,
    binary_path: pathlib.Path,
    output: pathlib.Path,
    platform_override: str | None = None,
    arch_override: str | None = None,
    fabricator: object | None = None,
) -> Target:
    """Resolve user-supplied target arguments into a :class:`Target`.

    Platform and arch default to the fields encoded in the binary name.

    :param binary_path: Baseline runtime binary.
    :param output: Output path for the produced executable.
    :param platform_override: Optional explicit platform.
    :param arch_override: Optional explicit arch.
    :param fabricator: Optional fabricator handle for the target.
    :returns: Resolved target.
    :raises TargetResolutionError: If platform or arch cannot be resolved.
    """

    fields: list[str] = binary_path.name.split("-")

    platform_name: str | None = platform_override
    if platform_name is None:
        if len(fields) < 3:
            raise TargetResolutionError(
                f"Cannot infer platform from binary name {binary_path.name!r}; pass --platform."
            )
        platform_name = fields[2]

    arch_name: str | None = arch_override
    if arch_name is None:
        if len(fields) < 4:
            raise TargetResolutionError(
                f"Cannot infer arch from binary name {binary_path.name!r}; pass --arch."
            )
        arch_name = fields[3]

    return Target(
        binary_path=binary_path,
        platform=normalize_platform(platform_name),
        arch=normalize_arch(arch_name),
        output=output,
        fabricator=fabricator,
    )
