"""In-place patching of the produced executable's marker regions."""

from collections.abc import Mapping, Sequence
import logging
import pathlib

from exe_stitcher.errors import PlaceholderNotFoundError, PlaceholderOverflowError
from exe_stitcher.placeholders import MARKERS, Placeholder


def make_bakery_value(bakes: Sequence[str]) -> bytes:
    """Encode the bakery table.

    Each name is NUL-terminated and the table ends with one more NUL. An empty
    list encodes to no bytes; the padding then fills the region with NULs.

    :param bakes: Ordered identifiers.
    :returns: Encoded table (unpadded).
    """

    if len(bakes) == 0:
        return b""
    parts: list[bytes] = []
    for bake in bakes:
        parts.append(bake.encode("utf-8"))
        parts.append(b"\0")
    parts.append(b"\0")
    return b"".join(parts)


def encode_placeholder_value(placeholder: Placeholder, value: bytes | str | int) -> bytes:
    """Encode a value and pad it to the placeholder's capacity.

    Numbers are written as decimal text.

    :param placeholder: Target placeholder.
    :param value: Value to write.
    :returns: Exactly ``placeholder.size`` bytes.
    :raises PlaceholderOverflowError: If the value does not fit.
    """

    raw: bytes
    if isinstance(value, bytes):
        raw = value
    elif isinstance(value, int):
        raw = str(value).encode("ascii")
    else:
        raw = value.encode("utf-8")

    if len(raw) > placeholder.size:
        raise PlaceholderOverflowError(
            f"Value for {placeholder.name} needs {len(raw)} bytes; "
            f"the placeholder holds {placeholder.size}."
        )
    return raw + placeholder.fill * (placeholder.size - len(raw))


def inject_placeholders(
    *,
    output_path: pathlib.Path,
    placeholders: Mapping[str, Placeholder],
    values: Mapping[str, bytes | str | int],
    logger: logging.Logger | None = None,
) -> None:
    """Write the computed values into the output's marker regions.

    All values are encoded before the file is touched, so an overflow leaves
    the output unpatched. The writes then run in marker order and the first
    failing write aborts the rest.

    :param output_path: Fully written output file.
    :param placeholders: Located placeholders.
    :param values: Value per marker name.
    :param logger: Optional logger for debug output.
    :raises PlaceholderNotFoundError: If a placeholder or value is missing.
    :raises PlaceholderOverflowError: If a value does not fit.
    """

    if logger is None:
        logger = logging.getLogger("exe_stitcher")

    patches: list[tuple[Placeholder, bytes]] = []
    for marker in MARKERS:
        placeholder: Placeholder | None = placeholders.get(marker.name)
        if placeholder is None:
            raise PlaceholderNotFoundError(f"Placeholder for {marker.name} not found")
        if marker.name not in values:
            raise PlaceholderNotFoundError(f"No value to inject into {marker.name}")
        patches.append((placeholder, encode_placeholder_value(placeholder, values[marker.name])))

    with open(output_path, "r+b") as f:
        for placeholder, data in patches:
            if logger.isEnabledFor(logging.DEBUG) is True:
                logger.debug(
                    f"exe-stitcher: patching {placeholder.name} at {placeholder.position} "
                    f"({placeholder.size} bytes)"
                )
            f.seek(placeholder.position)
            f.write(data)
