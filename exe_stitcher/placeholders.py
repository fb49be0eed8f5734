"""Marker discovery in baseline binaries.

Supported baseline binaries are built with five literal byte sequences in
their data section. Each one reserves room for a value that is only known once
the output has been written: the bakery table, and the position and size of
the payload and the prelude.
"""

from dataclasses import dataclass

from exe_stitcher.errors import PlaceholderNotFoundError


BAKERY: str = "BAKERY"
PAYLOAD_POSITION: str = "PAYLOAD_POSITION"
PAYLOAD_SIZE: str = "PAYLOAD_SIZE"
PRELUDE_POSITION: str = "PRELUDE_POSITION"
PRELUDE_SIZE: str = "PRELUDE_SIZE"


@dataclass(frozen=True, slots=True)
class Placeholder:
    """A marker found in the baseline binary.

    :ivar name: Marker name (e.g. ``PAYLOAD_SIZE``).
    :ivar position: Byte offset of the marker in the baseline binary.
    :ivar size: Reserved capacity in bytes (the marker's own length).
    :ivar fill: Byte used to right-pad a value to ``size``.
    """

    name: str
    position: int
    size: int
    fill: bytes


@dataclass(frozen=True, slots=True)
class MarkerSpec:
    """The literal byte pattern that reserves a placeholder."""

    name: str
    pattern: bytes
    fill: bytes


MARKERS: tuple[MarkerSpec, ...] = (
    MarkerSpec(name=BAKERY, pattern=b"\0" + b"// BAKERY " * 20, fill=b"\0"),
    MarkerSpec(name=PAYLOAD_POSITION, pattern=b"// PAYLOAD_POSITION //", fill=b" "),
    MarkerSpec(name=PAYLOAD_SIZE, pattern=b"// PAYLOAD_SIZE //", fill=b" "),
    MarkerSpec(name=PRELUDE_POSITION, pattern=b"// PRELUDE_POSITION //", fill=b" "),
    MarkerSpec(name=PRELUDE_SIZE, pattern=b"// PRELUDE_SIZE //", fill=b" "),
)


def discover_placeholder(binary: bytes, marker: MarkerSpec) -> Placeholder:
    """Find the first occurrence of a marker.

    :param binary: Baseline binary contents.
    :param marker: Marker to look for.
    :returns: The located placeholder.
    :raises PlaceholderNotFoundError: If the marker is absent.
    """

    position: int = binary.find(marker.pattern)
    if position < 0:
        raise PlaceholderNotFoundError(
            f"Placeholder for {marker.name} not found; the baseline binary is not supported."
        )
    return Placeholder(
        name=marker.name,
        position=position,
        size=len(marker.pattern),
        fill=marker.fill,
    )


def discover_placeholders(binary: bytes) -> dict[str, Placeholder]:
    """Locate all five markers in a baseline binary.

    :param binary: Baseline binary contents.
    :returns: Placeholders keyed by marker name, in patch order.
    :raises PlaceholderNotFoundError: If any marker is absent.
    """

    return {marker.name: discover_placeholder(binary, marker) for marker in MARKERS}
