"""Virtual filesystem index built while the payload is streamed."""

import json

from exe_stitcher.snapshot import Slash, StoreKind, snapshotify


class VirtualFilesystem:
    """Maps snapshot paths to byte ranges of the payload.

    Each path holds one ``[start, length]`` range per store kind. ``start`` is
    relative to the payload start; :attr:`track` is the running payload size.
    """

    def __init__(self, slash: Slash | str) -> None:
        self._slash: Slash | str = slash
        self._entries: dict[str, dict[StoreKind, tuple[int, int]]] = {}
        self._track: int = 0

    @property
    def track(self) -> int:
        return self._track

    def record(self, snap: str, store: StoreKind, length: int) -> None:
        """Record a streamed segment and advance the track.

        :param snap: Host or snapshot path of the stripe.
        :param store: Storage kind of the stripe.
        :param length: Bytes streamed for the segment.
        """

        path: str = snapshotify(snap, self._slash)
        self._entries.setdefault(path, {})[StoreKind(store)] = (self._track, length)
        self._track += length

    def __contains__(self, snap: object) -> bool:
        if not isinstance(snap, str):
            return False
        return snapshotify(snap, self._slash) in self._entries

    def to_dict(self) -> dict[str, dict[str, list[int]]]:
        """Return the index in its serialized shape (store kinds as string keys)."""

        out: dict[str, dict[str, list[int]]] = {}
        for path, stores in self._entries.items():
            out[path] = {str(int(kind)): [start, length] for kind, (start, length) in stores.items()}
        return out

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), separators=(",", ":"), ensure_ascii=False)
