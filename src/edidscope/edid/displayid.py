"""DisplayID extension block decode (DisplayID 1.x carried inside EDID).

Layout: tag 0x70, then the DisplayID section header (version, payload
length, product type, extension count), the data blocks and a section
checksum covering everything after the EDID tag byte.

References: VESA DisplayID 1.3 §2, §4.2 (Type 1 timing), §4.16 (tiled display)
"""

from __future__ import annotations

import struct
from dataclasses import dataclass

from edidscope.core.checksum import verify_checksum
from edidscope.core.context import DecodeContext
from edidscope.core.records import DisplayIdBlockWalk, Record
from edidscope.edid.types import DISPLAYID_BLOCK_NAMES, EDID_PAGE_SIZE, DisplayIdBlockType
from edidscope.utils.logging import get_logger

logger = get_logger(__name__)

_SECTION_START = 1
_DATA_START = 5
TYPE1_TIMING_SIZE = 20
_TILED_DISPLAY_MIN_LENGTH = 8

_ASPECTS = ("1:1", "5:4", "4:3", "15:9", "16:9", "16:10", "64:27", "256:135")
_STEREO = ("", "stereo", "user action", "reserved")


@dataclass(frozen=True)
class Type1Timing:
    """A DisplayID Type 1 detailed timing (20 bytes, little-endian fields)."""

    pixclk_10khz: int
    options: int
    ha: int
    hbl: int
    hso: int
    hspw: int
    va: int
    vbl: int
    vso: int
    vspw: int
    hsync_positive: bool
    vsync_positive: bool

    @property
    def aspect(self) -> str:
        index = self.options & 0x0F
        return _ASPECTS[index] if index < len(_ASPECTS) else "undefined"

    @property
    def stereo(self) -> str:
        return _STEREO[(self.options >> 5) & 0x03]

    @property
    def preferred(self) -> bool:
        return bool(self.options & 0x80)


def parse_type1_timing(x: bytes) -> Type1Timing:
    """Unpack one 20-byte Type 1 detailed timing record."""
    ha, hbl, hso_raw, hspw, va, vbl, vso_raw, vspw = struct.unpack_from("<8H", x, 4)
    return Type1Timing(
        pixclk_10khz=x[0] | (x[1] << 8) | (x[2] << 16),
        options=x[3],
        ha=ha,
        hbl=hbl,
        hso=hso_raw & 0x7FFF,
        hspw=hspw,
        va=va,
        vbl=vbl,
        vso=vso_raw & 0x7FFF,
        vspw=vspw,
        hsync_positive=bool(hso_raw & 0x8000),
        vsync_positive=bool(vso_raw & 0x8000),
    )


def parse_displayid(ctx: DecodeContext, block: bytes) -> bool:
    """Decode a DisplayID extension block.

    Returns:
        True if the extension is non-conformant (bad section checksum).
    """
    version = block[1]
    length = block[2]
    ext_count = block[4]
    ctx.emit(f"Length {length}, version {version}, extension count {ext_count}")

    # The section checksum byte follows the data blocks. A declared length
    # that runs past the page cannot be checksummed.
    checksum_end = _DATA_START + length + 1
    if checksum_end > EDID_PAGE_SIZE:
        ctx.emit(f"DisplayID section length {length} overruns the extension block")
        valid = False
    else:
        checksum = verify_checksum(block[_SECTION_START:checksum_end])
        ctx.emit(checksum.describe())
        valid = checksum.valid
    ctx.state.has_valid_displayid_checksum = ctx.state.has_valid_displayid_checksum and valid

    data_end = min(_DATA_START + length, EDID_PAGE_SIZE - 1)
    for record in DisplayIdBlockWalk(block, _DATA_START, data_end):
        if record.truncated:
            ctx.emit(
                f"DisplayID data block 0x{record.tag:x} at offset {record.offset} "
                f"overruns the section"
            )
            break
        _decode_data_block(ctx, record)

    logger.debug("displayid_extension", version=version, length=length, checksum_valid=valid)
    return not valid


def _decode_data_block(ctx: DecodeContext, record: Record) -> None:
    if record.tag == DisplayIdBlockType.TYPE1_TIMING:
        payload = record.payload
        for start in range(0, len(payload) - TYPE1_TIMING_SIZE + 1, TYPE1_TIMING_SIZE):
            _type1_timing(ctx, payload[start:start + TYPE1_TIMING_SIZE])
    elif record.tag == DisplayIdBlockType.TILED_DISPLAY:
        _tiled_display(ctx, record.payload)
    elif record.tag in DISPLAYID_BLOCK_NAMES:
        ctx.emit(DISPLAYID_BLOCK_NAMES[record.tag])
    else:
        ctx.emit(f"Unknown displayid data block 0x{record.tag:x}")


def _type1_timing(ctx: DecodeContext, x: bytes) -> None:
    t = parse_type1_timing(x)
    ctx.emit(
        f"Type 1 detailed timing: aspect: {t.aspect}, "
        f"{'Preferred ' if t.preferred else ''} {t.stereo}"
    )
    ctx.emit(f"Detailed mode: Clock {t.pixclk_10khz / 100:.3f} MHz, 0 mm x 0 mm")
    ctx.emit(f"               {t.ha:4d} {t.ha + t.hso:4d} {t.ha + t.hso + t.hspw:4d} {t.ha + t.hbl:4d}")
    ctx.emit(f"               {t.va:4d} {t.va + t.vso:4d} {t.va + t.vso + t.vspw:4d} {t.va + t.vbl:4d}")
    ctx.emit(
        f"               {'+' if t.hsync_positive else '-'}hsync "
        f"{'+' if t.vsync_positive else '-'}vsync"
    )


def _tiled_display(ctx: DecodeContext, p: bytes) -> None:
    if len(p) < _TILED_DISPLAY_MIN_LENGTH:
        ctx.emit(f"tiled display block: too short ({len(p)} bytes)")
        return
    capabilities = p[0]
    num_v_tile = (p[1] & 0x0F) | (p[3] & 0x30)
    num_h_tile = (p[1] >> 4) | ((p[3] >> 2) & 0x30)
    tile_v_location = (p[2] & 0x0F) | ((p[3] & 0x03) << 4)
    tile_h_location = (p[2] >> 4) | (((p[3] >> 2) & 0x03) << 4)
    tile_width, tile_height = struct.unpack_from("<2H", p, 4)
    ctx.emit(f"tiled display block: capabilities 0x{capabilities:08x}")
    ctx.emit(f"num horizontal tiles {num_h_tile + 1}, num vertical tiles {num_v_tile + 1}")
    ctx.emit(f"tile location ({tile_h_location}, {tile_v_location})")
    ctx.emit(f"tile dimensions ({tile_width + 1}, {tile_height + 1})")
