"""Restartable walks over length-prefixed sub-block sequences.

CEA-861 data blocks use a one-byte header (tag in bits 7:5, payload length
in bits 4:0); DisplayID data blocks use a three-byte header (tag, revision,
payload length). Both are walked the same way: one bounds check per step,
stopping at the end of the region.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator


@dataclass(frozen=True)
class Record:
    """One sub-block inside a region of an extension block."""

    offset: int
    tag: int
    length: int
    raw: bytes
    header_size: int
    truncated: bool = False

    @property
    def payload(self) -> bytes:
        return self.raw[self.header_size:]


@dataclass(frozen=True)
class CeaDataBlockWalk:
    """Iterable over CEA data blocks in ``block[start:end]``."""

    block: bytes
    start: int
    end: int

    def __iter__(self) -> Iterator[Record]:
        offset = self.start
        while offset < self.end:
            header = self.block[offset]
            length = header & 0x1F
            stop = offset + 1 + length
            truncated = stop > self.end
            yield Record(
                offset=offset,
                tag=(header & 0xE0) >> 5,
                length=length,
                raw=bytes(self.block[offset:min(stop, self.end)]),
                header_size=1,
                truncated=truncated,
            )
            if truncated:
                return
            offset = stop


@dataclass(frozen=True)
class DisplayIdBlockWalk:
    """Iterable over DisplayID data blocks in ``block[start:end]``.

    A zero-length block ends the walk.
    """

    block: bytes
    start: int
    end: int

    def __iter__(self) -> Iterator[Record]:
        offset = self.start
        while offset + 3 <= self.end:
            tag = self.block[offset]
            length = self.block[offset + 2]
            if length == 0:
                return
            stop = offset + 3 + length
            truncated = stop > self.end
            yield Record(
                offset=offset,
                tag=tag,
                length=length,
                raw=bytes(self.block[offset:min(stop, self.end)]),
                header_size=3,
                truncated=truncated,
            )
            if truncated:
                return
            offset = stop
