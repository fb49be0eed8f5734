"""Executable producer.

The producer writes the output executable as an ordered series of segments:

- the baseline runtime binary, verbatim,
- an empty checkpoint marking where the payload starts,
- one segment per stripe (the payload),
- the prelude.

Segments come from a generator. The pump writes one segment at a time straight
to the output file and sends the number of bytes it wrote back into the
generator, which uses it to build the virtual filesystem index. Once the file
is closed, the positions and sizes are patched into the baseline binary's
marker regions.

Fabricator failures and unresolved native addons only degrade the stripe
concerned. Any ``OSError`` aborts the build and leaves the partial output in
place.
"""

from collections.abc import Generator, Mapping, Sequence
from dataclasses import dataclass, replace
import logging
import pathlib
import time
from typing import BinaryIO

from exe_stitcher.backpack import Backpack, Stripe
from exe_stitcher.errors import ConfigurationError, FabricatorError, NativeAddonError
from exe_stitcher.fabricator import Fabricator, NullFabricator, fabricate_twice
from exe_stitcher.native import AddonResolver, PrebuildInstallResolver
from exe_stitcher.patcher import inject_placeholders, make_bakery_value
from exe_stitcher.placeholders import (
    BAKERY,
    PAYLOAD_POSITION,
    PAYLOAD_SIZE,
    PRELUDE_POSITION,
    PRELUDE_SIZE,
    Placeholder,
    discover_placeholders,
)
from exe_stitcher.prelude import make_prelude
from exe_stitcher.snapshot import Slash, StoreKind, is_native_addon, snapshotify
from exe_stitcher.target import Target
from exe_stitcher.vfs import VirtualFilesystem


Segment = bytes | pathlib.Path

_CHUNK_SIZE: int = 1024 * 1024


@dataclass(frozen=True, slots=True)
class ProducerResult:
    """Values computed while producing an executable.

    :ivar payload_position: Offset of the payload (length of the baseline binary).
    :ivar payload_size: Total bytes of all non-skipped stripes.
    :ivar prelude_position: Offset of the prelude.
    :ivar prelude_size: Bytes of the wrapped prelude.
    :ivar vfs: Serialized virtual filesystem index.
    :ivar skipped: Snapshot paths of stripes that contributed no bytes.
    """

    payload_position: int
    payload_size: int
    prelude_position: int
    prelude_size: int
    vfs: dict[str, dict[str, list[int]]]
    skipped: tuple[str, ...]


def _same_path(a: pathlib.Path, b: pathlib.Path) -> bool:
    return pathlib.Path(a).resolve() == pathlib.Path(b).resolve()


def _pump(segment: Segment, out: BinaryIO) -> int:
    """Write one segment to the output.

    :param segment: In-memory bytes or a file to copy.
    :param out: Output stream.
    :returns: Number of bytes written.
    """

    if not isinstance(segment, pathlib.Path):
        out.write(segment)
        return len(segment)

    written: int = 0
    with open(segment, "rb") as f:
        while True:
            chunk: bytes = f.read(_CHUNK_SIZE)
            if len(chunk) == 0:
                break
            out.write(chunk)
            written += len(chunk)
    return written


class StreamAssembler:
    """Produces the segments of one build, in order.

    An assembler is single-use. Stripes are read from the backpack's tuple and
    never modified; per-build state lives on copies.
    """

    def __init__(
        self,
        *,
        binary: bytes,
        backpack: Backpack,
        bakes: Sequence[str],
        slash: Slash | str,
        target: Target,
        sym_links: Mapping[str, str],
        fabricator: Fabricator,
        resolver: AddonResolver,
        logger: logging.Logger,
        strict: bool = False,
    ) -> None:
        self._binary: bytes = binary
        self._prelude_template: str = backpack.prelude
        self._stripes: tuple[Stripe, ...] = tuple(backpack.stripes)
        self._bakes: tuple[str, ...] = tuple(bakes)
        self._slash: Slash | str = slash
        self._target: Target = target
        self._fabricator: Fabricator = fabricator
        self._resolver: AddonResolver = resolver
        self._logger: logging.Logger = logger
        self._strict: bool = strict

        self._entrypoint: str = snapshotify(backpack.entrypoint, slash)
        self._sym_links: dict[str, str] = {
            snapshotify(source, slash): snapshotify(dest, slash) for source, dest in sym_links.items()
        }
        self._vfs: VirtualFilesystem = VirtualFilesystem(slash)
        self._skipped: list[str] = []

        self.payload_position: int | None = None
        self.payload_size: int | None = None
        self.prelude_position: int | None = None
        self.prelude_size: int | None = None

    @property
    def vfs(self) -> VirtualFilesystem:
        return self._vfs

    @property
    def sym_links(self) -> dict[str, str]:
        return dict(self._sym_links)

    def check_stripes(self) -> None:
        """Validate every file stripe before any byte is written.

        :raises ConfigurationError: If a stripe is unusable.
        """

        for stripe in self._stripes:
            if stripe.file is not None:
                self._check_file_stripe(stripe)

    def _check_file_stripe(self, stripe: Stripe) -> None:
        assert stripe.file is not None
        if _same_path(stripe.file, self._target.output) is True:
            raise ConfigurationError(f"Trying to take executable into executable: {stripe.file}")
        if stripe.store != StoreKind.CONTENT:
            raise ConfigurationError(
                f"File stripe {stripe.file} must use CONTENT storage, got {StoreKind(stripe.store).name}"
            )

    def stream_into(self, out: BinaryIO) -> None:
        """Drive the segment generator until it is exhausted.

        :param out: Output stream, opened for binary writing.
        """

        segments: Generator[Segment, int, None] = self.segments()
        try:
            segment: Segment = next(segments)
            while True:
                measured: int = _pump(segment, out)
                segment = segments.send(measured)
        except StopIteration:
            pass
        finally:
            segments.close()

    def segments(self) -> Generator[Segment, int, None]:
        """Yield segments in output order.

        The caller must send the byte count written for each segment.
        """

        self.payload_position = yield self._binary
        yield b""

        for stripe in self._stripes:
            stripe, segment = self._resolve_stripe(stripe)
            measured: int = yield segment
            if stripe.skip is True:
                self._skipped.append(snapshotify(stripe.snap, self._slash))
                continue
            self._vfs.record(stripe.snap, stripe.store, measured)

        self.payload_size = self._vfs.track
        self.prelude_position = self.payload_position + self.payload_size
        prelude: bytes = make_prelude(
            template=self._prelude_template,
            vfs_json=self._vfs.to_json(),
            entrypoint=self._entrypoint,
            symlinks=self._sym_links,
        )
        self.prelude_size = yield prelude

    def _resolve_stripe(self, stripe: Stripe) -> tuple[Stripe, Segment]:
        """Pick the bytes to stream for a stripe.

        :returns: The stripe (a skipped copy if it contributes nothing) and its segment.
        :raises ConfigurationError: If a file stripe is unusable.
        """

        if stripe.skip is True:
            return stripe, b""

        if stripe.buffer is not None:
            if stripe.store == StoreKind.BLOB:
                snap: str = snapshotify(stripe.snap, self._slash)
                try:
                    return stripe, fabricate_twice(
                        self._fabricator,
                        self._bakes,
                        self._target.fabricator,
                        snap,
                        stripe.buffer,
                    )
                except FabricatorError as e:
                    if self._strict is True:
                        raise
                    self._logger.warning(f"exe-stitcher: {e}")
                    return replace(stripe, skip=True), b""
            return stripe, stripe.buffer

        assert stripe.file is not None
        self._check_file_stripe(stripe)
        if is_native_addon(stripe.file) is True:
            platform_file: pathlib.Path | None = self._resolver.resolve(stripe.file, self._target)
            if platform_file is not None and platform_file.exists() is True:
                if self._logger.isEnabledFor(logging.DEBUG) is True:
                    self._logger.debug(f"exe-stitcher: using {platform_file} for {stripe.file}")
                return stripe, platform_file
            if self._strict is True:
                raise NativeAddonError(
                    f"Could not resolve native addon {stripe.file} for "
                    f"{self._target.platform.value}-{self._target.arch}"
                )
        return stripe, stripe.file

    def result(self) -> ProducerResult:
        """Return the computed values once streaming has completed."""

        if (
            self.payload_position is None
            or self.payload_size is None
            or self.prelude_position is None
            or self.prelude_size is None
        ):
            raise RuntimeError("StreamAssembler.result() called before streaming completed.")
        return ProducerResult(
            payload_position=self.payload_position,
            payload_size=self.payload_size,
            prelude_position=self.prelude_position,
            prelude_size=self.prelude_size,
            vfs=self._vfs.to_dict(),
            skipped=tuple(self._skipped),
        )


def produce(
    *,
    backpack: Backpack,
    bakes: Sequence[str],
    slash: Slash | str,
    target: Target,
    sym_links: Mapping[str, str],
    fabricator: Fabricator | None = None,
    resolver: AddonResolver | None = None,
    logger: logging.Logger | None = None,
    strict: bool = False,
) -> ProducerResult:
    """Produce a self-contained executable for a target.

    :param backpack: Prelude template, entry point and stripes.
    :param bakes: Bakery identifiers.
    :param slash: Separator policy of the target.
    :param target: Build target.
    :param sym_links: Host symlink table (source to destination).
    :param fabricator: Fabricator for BLOB stripes; BLOBs are skipped without one.
    :param resolver: Native addon resolver; defaults to :class:`PrebuildInstallResolver`.
    :param logger: Optional logger for build progress output.
    :param strict: Fail the build instead of skipping stripes that cannot be fabricated
        or whose native addon cannot be resolved.
    :returns: The values written into the marker regions.
    :raises ConfigurationError: If the inputs cannot produce an executable.
    :raises PlaceholderOverflowError: If a computed value does not fit its marker.
    :raises OSError: If reading an input or writing the output fails.
    """

    if logger is None:
        logger = logging.getLogger("exe_stitcher")
    if fabricator is None:
        fabricator = NullFabricator()
    if resolver is None:
        resolver = PrebuildInstallResolver(logger=logger)

    t_total0: float = time.perf_counter()
    logger.info(f"exe-stitcher: binary={target.binary_path}")
    logger.info(f"exe-stitcher: output={target.output}")
    logger.info(f"exe-stitcher: target={target.platform.value}-{target.arch}")

    binary: bytes = target.binary_path.read_bytes()
    placeholders: dict[str, Placeholder] = discover_placeholders(binary)
    if logger.isEnabledFor(logging.DEBUG) is True:
        for placeholder in placeholders.values():
            logger.debug(
                f"exe-stitcher: placeholder {placeholder.name} at {placeholder.position} "
                f"({placeholder.size} bytes)"
            )

    assembler: StreamAssembler = StreamAssembler(
        binary=binary,
        backpack=backpack,
        bakes=bakes,
        slash=slash,
        target=target,
        sym_links=sym_links,
        fabricator=fabricator,
        resolver=resolver,
        logger=logger,
        strict=strict,
    )
    assembler.check_stripes()

    target.output.parent.mkdir(parents=True, exist_ok=True)
    t_stream0: float = time.perf_counter()
    with open(target.output, "wb") as out:
        assembler.stream_into(out)
    t_stream1: float = time.perf_counter()
    result: ProducerResult = assembler.result()
    logger.info(
        f"exe-stitcher: streamed {len(backpack.stripes)} stripes "
        f"(payload {result.payload_size / (1024 * 1024):.1f} MiB, "
        f"{len(result.skipped)} skipped) in {t_stream1 - t_stream0:.2f}s"
    )

    inject_placeholders(
        output_path=target.output,
        placeholders=placeholders,
        values={
            BAKERY: make_bakery_value(bakes),
            PAYLOAD_POSITION: result.payload_position,
            PAYLOAD_SIZE: result.payload_size,
            PRELUDE_POSITION: result.prelude_position,
            PRELUDE_SIZE: result.prelude_size,
        },
        logger=logger,
    )

    t_total1: float = time.perf_counter()
    logger.info(f"exe-stitcher: done in {t_total1 - t_total0:.2f}s")
    return result
