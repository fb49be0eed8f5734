"""Stripe and backpack value types.

A backpack is what the walker hands to the producer: the prelude template, the
default entry point and an ordered tuple of stripes. The same backpack may
back several targets, so nothing in here is ever mutated by a build.
"""

from dataclasses import dataclass
import pathlib

from exe_stitcher.errors import ConfigurationError
from exe_stitcher.snapshot import StoreKind


@dataclass(frozen=True, slots=True)
class Stripe:
    """One unit of embedded content.

    :ivar snap: Host path of the item; normalized into a snapshot path by the producer.
    :ivar store: Storage kind of the item.
    :ivar buffer: In-memory content (exclusive with ``file``).
    :ivar file: File to stream from disk (exclusive with ``buffer``).
    :ivar skip: Set on a per-build copy when the stripe contributes no bytes.
    """

    snap: str
    store: StoreKind
    buffer: bytes | None = None
    file: pathlib.Path | None = None
    skip: bool = False

    def __post_init__(self) -> None:
        if (self.buffer is None) == (self.file is None):
            raise ConfigurationError(
                f"Stripe {self.snap!r} must carry exactly one of buffer and file."
            )
        if self.file is not None and not isinstance(self.file, pathlib.Path):
            object.__setattr__(self, "file", pathlib.Path(self.file))


@dataclass(frozen=True, slots=True)
class Backpack:
    """Everything the producer embeds besides the baseline binary.

    :ivar prelude: Prelude template with the three substitution tokens.
    :ivar entrypoint: Host path of the default entry point.
    :ivar stripes: Ordered stripes.
    """

    prelude: str
    entrypoint: str
    stripes: tuple[Stripe, ...]
