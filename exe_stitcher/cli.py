"""Command line interface for exe-stitcher."""

import argparse
import logging
import pathlib
import sys

from exe_stitcher.backpack import Backpack, Stripe
from exe_stitcher.errors import ProducerError
from exe_stitcher.native import PrebuildInstallResolver
from exe_stitcher.producer import ProducerResult, produce
from exe_stitcher.snapshot import Slash, StoreKind
from exe_stitcher.target import Platform, Target, resolve_target


def _configure_logging(*, verbose: int, quiet: int) -> logging.Logger:
    """Configure the exe-stitcher logger.

    :param verbose: Verbosity count (0+).
    :param quiet: Quietness count (0+).
    :returns: Configured logger.
    """

    level: int = logging.INFO
    if quiet >= 2:
        level = logging.ERROR
    elif quiet >= 1:
        level = logging.WARNING
    elif verbose >= 1:
        level = logging.DEBUG

    logger: logging.Logger = logging.getLogger("exe_stitcher")
    logger.setLevel(level)
    logger.propagate = False

    handler: logging.Handler = logging.StreamHandler(stream=sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter("%(message)s"))

    logger.handlers.clear()
    logger.addHandler(handler)
    return logger


def _parse_symlink(value: str) -> tuple[str, str]:
    """Parse a ``SRC=DST`` symlink argument."""

    source, sep, dest = value.partition("=")
    if sep == "" or source == "" or dest == "":
        raise argparse.ArgumentTypeError(f"Expected SRC=DST, got {value!r}")
    return source, dest


def main(argv: list[str] | None = None) -> int:
    """Run the exe-stitcher CLI.

    :param argv: Optional argv list (excluding program name).
    :returns: Exit code.
    """

    parser: argparse.ArgumentParser = argparse.ArgumentParser(
        prog="exe-stitcher",
        description="Append an application payload and prelude to a runtime binary.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    p_produce = subparsers.add_parser(
        "produce",
        help="Produce a self-contained executable.",
    )
    p_produce.add_argument(
        "binary",
        type=pathlib.Path,
        help="Baseline runtime binary (e.g. fetched-v18.5.0-linux-x64).",
    )
    p_produce.add_argument(
        "files",
        type=pathlib.Path,
        nargs="+",
        help="Files to embed; each is stored under its absolute path in the snapshot.",
    )
    p_produce.add_argument(
        "-o",
        "--output",
        type=pathlib.Path,
        required=True,
        help="Output path for the produced executable.",
    )
    p_produce.add_argument(
        "--prelude",
        type=pathlib.Path,
        required=True,
        help="Prelude template file.",
    )
    p_produce.add_argument(
        "--entry",
        type=pathlib.Path,
        default=None,
        help="Default entry point. Defaults to the first embedded file.",
    )
    p_produce.add_argument(
        "--platform",
        type=str,
        default=None,
        help="Target platform (alpine, freebsd, linux, linuxstatic, macos, win). "
        "Defaults to the platform in the binary name.",
    )
    p_produce.add_argument(
        "--arch",
        type=str,
        default=None,
        help="Target arch (e.g. x64, arm64). Defaults to the arch in the binary name.",
    )
    p_produce.add_argument(
        "--bake",
        action="append",
        default=[],
        help="Identifier to add to the bakery table. May be repeated.",
    )
    p_produce.add_argument(
        "--symlink",
        type=_parse_symlink,
        action="append",
        default=[],
        help="Symlink to record as SRC=DST. May be repeated.",
    )
    p_produce.add_argument(
        "--slash",
        choices=[s.value for s in Slash],
        default=None,
        help="Separator policy of the target. Defaults to '\\' for win targets, '/' otherwise.",
    )
    p_produce.add_argument(
        "--prebuild-install",
        type=str,
        default=None,
        help="prebuild-install executable used to fetch native addons.",
    )
    p_produce.add_argument(
        "--strict",
        action="store_true",
        help="Fail instead of skipping stripes that cannot be fabricated or resolved.",
    )
    p_produce.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Enable verbose logging. Pass multiple times for more detail.",
    )
    p_produce.add_argument(
        "-q",
        "--quiet",
        action="count",
        default=0,
        help="Reduce logging. Pass multiple times to suppress more output.",
    )

    ns = parser.parse_args(argv)
    if ns.command == "produce":
        logger: logging.Logger = _configure_logging(verbose=ns.verbose, quiet=ns.quiet)
        try:
            target: Target = resolve_target(
                binary_path=ns.binary,
                output=ns.output,
                platform_override=ns.platform,
                arch_override=ns.arch,
            )
            slash: Slash
            if ns.slash is not None:
                slash = Slash(ns.slash)
            elif target.platform is Platform.WIN:
                slash = Slash.WINDOWS
            else:
                slash = Slash.POSIX

            files: list[pathlib.Path] = [p.absolute() for p in ns.files]
            entry: pathlib.Path = ns.entry.absolute() if ns.entry is not None else files[0]
            backpack: Backpack = Backpack(
                prelude=ns.prelude.read_text(encoding="utf-8"),
                entrypoint=str(entry),
                stripes=tuple(Stripe(snap=str(p), store=StoreKind.CONTENT, file=p) for p in files),
            )
            result: ProducerResult = produce(
                backpack=backpack,
                bakes=ns.bake,
                slash=slash,
                target=target,
                sym_links=dict(ns.symlink),
                resolver=PrebuildInstallResolver(tool=ns.prebuild_install, logger=logger),
                logger=logger,
                strict=ns.strict,
            )
        except (ProducerError, OSError) as e:
            logger.error(f"exe-stitcher: error: {e}")
            return 1

        logger.info(
            f"exe-stitcher: payload at {result.payload_position} ({result.payload_size} bytes), "
            f"prelude at {result.prelude_position} ({result.prelude_size} bytes)"
        )
        return 0

    raise AssertionError(f"Unhandled command: {ns.command}")
