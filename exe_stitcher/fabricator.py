"""Fabricator collaborator interface.

A fabricator turns BLOB buffers into what the target runtime loads, typically
by compiling source to bytecode inside a runtime of the target's version. It
runs outside this package; the producer only sees this interface.
"""

from collections.abc import Sequence
from typing import Protocol

from exe_stitcher.errors import FabricatorError


class Fabricator(Protocol):
    """Transforms a BLOB buffer for a target."""

    def fabricate(
        self,
        bakes: Sequence[str],
        fabricator: object | None,
        snap: str,
        body: bytes,
    ) -> bytes:
        """Return the transformed buffer.

        :param bakes: Bakery identifiers of the build.
        :param fabricator: Target-specific fabricator handle.
        :param snap: Snapshot path of the buffer.
        :param body: Buffer to transform.
        :raises FabricatorError: If the buffer cannot be transformed.
        """
        ...


class NullFabricator:
    """Fabricator used when none is configured; every BLOB is rejected."""

    def fabricate(
        self,
        bakes: Sequence[str],
        fabricator: object | None,
        snap: str,
        body: bytes,
    ) -> bytes:
        raise FabricatorError(f"No fabricator configured; cannot fabricate {snap}")


def fabricate_twice(
    fabricator: Fabricator,
    bakes: Sequence[str],
    handle: object | None,
    snap: str,
    body: bytes,
) -> bytes:
    """Fabricate a buffer, retrying once on failure.

    A freshly started fabricator can fail its first compile, so one failure is
    not conclusive.

    :raises FabricatorError: If the second attempt fails too.
    """

    try:
        return fabricator.fabricate(bakes, handle, snap, body)
    except FabricatorError:
        return fabricator.fabricate(bakes, handle, snap, body)
