"""CEA-861 extension block decode.

Layout: tag 0x02, revision, DTD offset, flags byte, then (revision 3) a
collection of tagged data blocks up to the DTD offset, then 18-byte
detailed timing descriptors, then the block checksum.

References: CTA-861-G §7.5, HDMI 1.4b §8.3.2, HDMI 2.0 §10.3.2
"""

from __future__ import annotations

from typing import Callable

from edidscope.core.bitfield import decode_fields, define_field
from edidscope.core.checksum import verify_checksum
from edidscope.core.context import DecodeContext
from edidscope.core.records import CeaDataBlockWalk, Record
from edidscope.edid.descriptors import decode_detailed_descriptor
from edidscope.edid.modes import VideoMode, lookup_hdmi_vic, lookup_vic
from edidscope.edid.types import (
    DETAILED_DESCRIPTOR_SIZE,
    EDID_PAGE_SIZE,
    OUI_HDMI,
    OUI_HDMI_FORUM,
    CeaDataBlockTag,
    CeaExtendedTag,
)
from edidscope.utils.logging import get_logger

logger = get_logger(__name__)

_HEADER_SIZE = 4

_AUDIO_FORMATS = (
    "RESERVED",
    "Linear PCM",
    "AC-3",
    "MPEG 1 (Layers 1 & 2)",
    "MPEG 1 Layer 3 (MP3)",
    "MPEG2 (multichannel)",
    "AAC",
    "DTS",
    "ATRAC",
    "One Bit Audio",
    "Dolby Digital+",
    "DTS-HD",
    "MAT (MLP)",
    "DST",
    "WMA Pro",
    "RESERVED",
)
_AUDIO_FORMAT_LPCM = 1
# Formats 2..8 carry a maximum bit rate in the third SAD byte
_AUDIO_FORMAT_MAX_BITRATE = 8

_SAMPLE_RATES = (
    (0x40, "192"), (0x20, "176.4"), (0x10, "96"), (0x08, "88.2"),
    (0x04, "48"), (0x02, "44.1"), (0x01, "32"),
)
_SAMPLE_SIZES = ((0x04, "24"), (0x02, "20"), (0x01, "16"))

_SPEAKERS = (
    "FL/FR", "LFE", "FC", "RL/RR", "RC", "FLC/FRC",
    "RLC/RRC", "FLW/FRW", "FLH/FRH", "TC", "FCH",
)

_COLORIMETRY = (
    "xvYCC601", "xvYCC709", "sYCC601", "AdobeYCC601",
    "AdobeRGB", "BT2020cYCC", "BT2020YCC", "BT2020RGB",
)

_EOTFS = (
    "Traditional gamma - SDR luminance range",
    "Traditional gamma - HDR luminance range",
    "SMPTE ST2084",
)
_EOTF_BITS = 6
_STATIC_METADATA_BITS = 8

_SCAN_BEHAVIOUR = (
    (1, "Always Overscanned"),
    (2, "Always Underscanned"),
    (3, "Supports both over- and underscan"),
)

VCDB_FIELDS = (
    define_field("YCbCr quantization", 7, 7, (0, "No Data"), (1, "Selectable (via AVI YQ)")),
    define_field("RGB quantization", 6, 6, (0, "No Data"), (1, "Selectable (via AVI Q)")),
    define_field("PT scan behaviour", 4, 5, (0, "No Data"), *_SCAN_BEHAVIOUR),
    define_field("IT scan behaviour", 2, 3, (0, "IT video formats not supported"), *_SCAN_BEHAVIOUR),
    define_field("CE scan behaviour", 0, 1, (0, "CE video formats not supported"), *_SCAN_BEHAVIOUR),
)

_EXTENDED_NAMES: dict[int, str] = {
    CeaExtendedTag.VIDEO_CAPABILITY: "video capability data block",
    CeaExtendedTag.VENDOR_VIDEO: "vendor-specific video data block",
    CeaExtendedTag.VESA_DISPLAY_DEVICE: "VESA video display device information data block",
    CeaExtendedTag.VESA_VIDEO: "VESA video data block",
    CeaExtendedTag.HDMI_VIDEO: "HDMI video data block",
    CeaExtendedTag.COLORIMETRY: "Colorimetry data block",
    CeaExtendedTag.HDR_STATIC_METADATA: "HDR static metadata data block",
    CeaExtendedTag.VIDEO_FORMAT_PREFERENCE: "Video format preference data block",
    CeaExtendedTag.YCBCR420_VIDEO: "YCbCr 4:2:0 video data block",
    CeaExtendedTag.YCBCR420_CAPABILITY_MAP: "YCbCr 4:2:0 capability map data block",
    CeaExtendedTag.MISC_AUDIO: "CEA miscellaneous audio fields",
    CeaExtendedTag.VENDOR_AUDIO: "Vendor-specific audio data block",
    CeaExtendedTag.HDMI_AUDIO: "HDMI audio data block",
    CeaExtendedTag.INFOFRAME: "InfoFrame data block",
}

_RESERVED_VIDEO_TAGS = range(6, 13)
_RESERVED_AUDIO_TAGS = range(19, 32)


def _observe_mode(ctx: DecodeContext, mode: VideoMode) -> None:
    ctx.state.observed.observe(
        vert_freq_hz=mode.refresh,
        hor_freq_hz=mode.hor_freq_hz,
        pixclk_khz=mode.pixclk_khz,
    )


def parse_cea(ctx: DecodeContext, block: bytes) -> bool:
    """Decode a CEA-861 extension block.

    Returns:
        True if the extension is non-conformant, including a broken
        block checksum.
    """
    state = ctx.state
    revision = block[1]
    dtd_offset = block[2]
    flags = block[3]
    nonconformant = False

    if revision >= 1:
        if revision == 1 and flags != 0:
            nonconformant = True
        if dtd_offset >= _HEADER_SIZE:
            nonconformant |= _decode_cea_body(ctx, block, revision, dtd_offset, flags)

    checksum = verify_checksum(block[:EDID_PAGE_SIZE])
    ctx.emit(checksum.describe())
    state.has_valid_cea_checksum = state.has_valid_cea_checksum and checksum.valid
    state.has_cea861 = True
    state.nonconformant_cea861_640x480 = (
        not state.has_cea861_vic_1 and not state.has_640x480p60_est_timing
    )
    logger.debug("cea_extension", revision=revision, dtd_offset=dtd_offset,
                 nonconformant=nonconformant, checksum_valid=checksum.valid)
    return nonconformant or not checksum.valid


def _decode_cea_body(ctx: DecodeContext, block: bytes, revision: int, dtd_offset: int, flags: int) -> bool:
    nonconformant = False
    if revision < 3:
        ctx.emit(f"{(dtd_offset - _HEADER_SIZE) // 8} 8-byte timing descriptors")
    else:
        ctx.emit(f"{dtd_offset - _HEADER_SIZE} bytes of CEA data")
        nonconformant = decode_data_block_collection(ctx, block, _HEADER_SIZE, dtd_offset)

    if revision >= 2:
        if flags & 0x80:
            ctx.emit("Underscans PC formats by default")
        if flags & 0x40:
            ctx.emit("Basic audio support")
        if flags & 0x20:
            ctx.emit("Supports YCbCr 4:4:4")
        if flags & 0x10:
            ctx.emit("Supports YCbCr 4:2:2")
        ctx.emit(f"{flags & 0x0F} native detailed modes")

    offset = dtd_offset
    while offset + DETAILED_DESCRIPTOR_SIZE < EDID_PAGE_SIZE - 1:
        if block[offset]:
            decode_detailed_descriptor(ctx, block[offset:offset + DETAILED_DESCRIPTOR_SIZE],
                                       in_extension=True)
        offset += DETAILED_DESCRIPTOR_SIZE
    return nonconformant


def decode_data_block_collection(ctx: DecodeContext, block: bytes, start: int, end: int) -> bool:
    """Walk the data blocks in ``block[start:end]``.

    Returns:
        True if a data block is malformed enough to make the extension
        non-conformant.
    """
    nonconformant = False
    previous_was_hdmi_vsdb = False
    for record in CeaDataBlockWalk(block, start, end):
        if record.truncated:
            ctx.emit(
                f"  Data block at offset {record.offset} (tag {record.tag}, length "
                f"{record.length}) overruns the data block collection"
            )
            return True

        is_hdmi_vsdb = False
        if record.tag == CeaDataBlockTag.AUDIO:
            ctx.emit("  Audio data block")
            nonconformant |= not _audio_block(ctx, record)
        elif record.tag == CeaDataBlockTag.VIDEO:
            ctx.emit("  Video data block")
            _decode_svds(ctx, record.payload)
        elif record.tag == CeaDataBlockTag.VENDOR_SPECIFIC:
            is_hdmi_vsdb = _vendor_block(ctx, record, previous_was_hdmi_vsdb)
        elif record.tag == CeaDataBlockTag.SPEAKER_ALLOCATION:
            ctx.emit("  Speaker allocation data block")
            _speaker_allocation(ctx, record)
        elif record.tag == CeaDataBlockTag.VESA_DTC:
            ctx.emit("  VESA DTC data block")
        elif record.tag == CeaDataBlockTag.EXTENDED:
            _extended_block(ctx, record)
        else:
            ctx.emit(f"  Unknown tag {record.tag}, length {record.length} (raw {record.raw[0]:02x})")
        previous_was_hdmi_vsdb = is_hdmi_vsdb
    return nonconformant


def _audio_block(ctx: DecodeContext, record: Record) -> bool:
    if record.length % 3:
        ctx.emit(f"Broken CEA audio block length {record.length}")
        return False

    sads = record.payload
    for i in range(0, len(sads), 3):
        fmt = (sads[i] & 0x78) >> 3
        ctx.emit(f"    {_AUDIO_FORMATS[fmt]}, max channels {(sads[i] & 0x07) + 1}")
        rates = "".join(f" {name}" for bit, name in _SAMPLE_RATES if sads[i + 1] & bit)
        ctx.emit(f"    Supported sample rates (kHz):{rates}")
        if fmt == _AUDIO_FORMAT_LPCM:
            sizes = "".join(f" {name}" for bit, name in _SAMPLE_SIZES if sads[i + 2] & bit)
            ctx.emit(f"    Supported sample sizes (bits):{sizes}")
        elif fmt <= _AUDIO_FORMAT_MAX_BITRATE:
            ctx.emit(f"    Maximum bit rate: {sads[i + 2] * 8} kHz")
    return True


def _decode_svds(ctx: DecodeContext, svds: bytes) -> None:
    """Short video descriptors: VIC with the native flag in bit 7.

    VICs 65..127 have no native bit; 129..192 are native VICs 1..64 and
    193 and above are plain 8-bit VICs.
    """
    for svd in svds:
        if svd & 0x7F == 0:
            continue
        if (svd - 1) & 0x40:
            vic, native = svd, False
        else:
            vic, native = svd & 0x7F, bool(svd & 0x80)

        mode = lookup_vic(vic)
        if mode is None:
            name = "Unknown mode"
        else:
            name = mode.name
            _observe_mode(ctx, mode)

        ctx.emit(f"    VIC {vic:3d} {name}{' (native)' if native else ''}")
        if vic == 1:
            ctx.state.has_cea861_vic_1 = True


def _vendor_block(ctx: DecodeContext, record: Record, previous_was_hdmi_vsdb: bool) -> bool:
    """Decode a vendor-specific data block. Returns True for the HDMI VSDB."""
    raw = record.raw
    if record.length < 3:
        ctx.emit(f"  Vendor-specific data block, length {record.length} too short for an OUI")
        return False

    oui = (raw[3] << 16) | (raw[2] << 8) | raw[1]
    if oui == OUI_HDMI:
        ctx.emit(f"  Vendor-specific data block, OUI {oui:06x} (HDMI)")
        _hdmi_vsdb(ctx, raw)
        return True
    if oui == OUI_HDMI_FORUM:
        ctx.emit(f"  Vendor-specific data block, OUI {oui:06x} (HDMI Forum)")
        if not previous_was_hdmi_vsdb:
            ctx.state.nonconformant_hf_vsdb_position = True
        _hdmi_forum_vsdb(ctx, raw)
        return False
    ctx.emit(f"  Vendor-specific data block, OUI {oui:06x}")
    return False


def _hdmi_vsdb(ctx: DecodeContext, raw: bytes) -> None:
    length = len(raw) - 1
    if length < 5:
        ctx.emit("    HDMI VSDB is too short for a source physical address")
        return
    ctx.emit(
        f"    Source physical address {raw[4] >> 4}.{raw[4] & 0x0F}.{raw[5] >> 4}.{raw[5] & 0x0F}"
    )

    if length > 5:
        for bit, name in ((0x80, "Supports_AI"), (0x40, "DC_48bit"), (0x20, "DC_36bit"),
                          (0x10, "DC_30bit"), (0x08, "DC_Y444"), (0x01, "DVI_Dual")):
            if raw[6] & bit:
                ctx.emit(f"    {name}")
    if length > 6:
        ctx.emit(f"    Maximum TMDS clock: {raw[7] * 5}MHz")
    if length <= 7:
        return

    flags = raw[8]
    pos = 9
    if flags & 0x80:
        if pos + 2 > len(raw):
            return _hdmi_truncated(ctx)
        ctx.emit(f"    Video latency: {raw[pos]}")
        ctx.emit(f"    Audio latency: {raw[pos + 1]}")
        pos += 2
    if flags & 0x40:
        if pos + 2 > len(raw):
            return _hdmi_truncated(ctx)
        ctx.emit(f"    Interlaced video latency: {raw[pos]}")
        ctx.emit(f"    Interlaced audio latency: {raw[pos + 1]}")
        pos += 2
    if flags & 0x20:
        _hdmi_video_details(ctx, raw, pos)


def _hdmi_truncated(ctx: DecodeContext) -> None:
    ctx.emit("    HDMI VSDB field runs past the end of the block")


def _hdmi_video_details(ctx: DecodeContext, raw: bytes, pos: int) -> None:
    if pos + 2 > len(raw):
        return _hdmi_truncated(ctx)

    ctx.emit("    Extended HDMI video details:")
    present = raw[pos]
    if present & 0x80:
        ctx.emit("      3D present")
    multi = present & 0x60
    formats = mask = False
    if multi == 0x20:
        ctx.emit("      All advertised VICs are 3D-capable")
        formats = True
    elif multi == 0x40:
        ctx.emit("      3D-capable-VIC mask present")
        formats = mask = True
    image_size = present & 0x18
    if image_size == 0x08:
        ctx.emit("      Base EDID image size is aspect ratio")
    elif image_size == 0x10:
        ctx.emit("      Base EDID image size is in units of 1cm")
    elif image_size == 0x18:
        ctx.emit("      Base EDID image size is in units of 5cm")

    len_vic = (raw[pos + 1] & 0xE0) >> 5
    len_3d = raw[pos + 1] & 0x1F
    pos += 2

    if pos + len_vic > len(raw):
        return _hdmi_truncated(ctx)
    for vic in raw[pos:pos + len_vic]:
        mode = lookup_hdmi_vic(vic)
        if mode is None:
            ctx.emit(f"      HDMI VIC {vic} Unknown mode")
        else:
            ctx.emit(f"      HDMI VIC {vic} {mode.name}")
            _observe_mode(ctx, mode)
    pos += len_vic

    if not len_3d:
        return
    end = pos + len_3d
    if end > len(raw):
        return _hdmi_truncated(ctx)

    if formats:
        if pos + 2 > end:
            return _hdmi_truncated(ctx)
        hi, lo = raw[pos], raw[pos + 1]
        if hi & 0x80:
            ctx.emit("      3D: Side-by-side (half, quincunx)")
        if hi & 0x01:
            ctx.emit("      3D: Side-by-side (half, horizontal)")
        for bit, name in ((0x40, "Top-and-bottom"), (0x20, "L + depth + gfx + gfx-depth"),
                          (0x10, "L + depth"), (0x08, "Side-by-side (full)"),
                          (0x04, "Line-alternative"), (0x02, "Field-alternative"),
                          (0x01, "Frame-packing")):
            if lo & bit:
                ctx.emit(f"      3D: {name}")
        pos += 2
    if mask:
        if pos + 2 > end:
            return _hdmi_truncated(ctx)
        hi, lo = raw[pos], raw[pos + 1]
        indices = [i for i in range(8) if lo & (1 << i)] + [i + 8 for i in range(8) if hi & (1 << i)]
        ctx.emit("      3D VIC indices:" + "".join(f" {i}" for i in indices))
        pos += 2

    while pos < end:
        entry = raw[pos]
        structure = entry & 0x0F
        has_detail = structure > 7
        if has_detail and pos + 1 >= end:
            return _hdmi_truncated(ctx)
        if structure == 0:
            kind = "frame packing"
        elif structure == 6:
            kind = "top-and-bottom"
        elif structure == 8 and raw[pos + 1] >> 4 == 1:
            kind = "side-by-side (half, horizontal)"
        else:
            kind = "unknown"
        ctx.emit(f"      VIC index {entry >> 4} supports {kind}")
        pos += 2 if has_detail else 1


def _hdmi_forum_vsdb(ctx: DecodeContext, raw: bytes) -> None:
    if len(raw) < 8:
        ctx.emit("    HDMI Forum VSDB is too short")
        return
    ctx.emit(f"    Version: {raw[4]}")
    if raw[5]:
        ctx.emit(f"    Maximum TMDS Character Rate: {raw[5] * 5}MHz")
    for bit, name in ((0x80, "SCDC Present"), (0x40, "SCDC Read Request Capable"),
                      (0x08, "Supports scrambling for <= 340 Mcsc"),
                      (0x04, "Supports 3D Independent View signaling"),
                      (0x02, "Supports 3D Dual View signaling"),
                      (0x01, "Supports 3D OSD Disparity signaling")):
        if raw[6] & bit:
            ctx.emit(f"    {name}")
    for bit, depth in ((0x04, 16), (0x02, 12), (0x01, 10)):
        if raw[7] & bit:
            ctx.emit(f"    Supports {depth}-bits/component Deep Color 4:2:0 Pixel Encoding")


def _speaker_allocation(ctx: DecodeContext, record: Record) -> None:
    if record.length < 3:
        return
    raw = record.raw
    sad = raw[1] | (raw[2] << 8)
    speakers = "".join(f" {name}" for i, name in enumerate(_SPEAKERS) if sad & (1 << i))
    ctx.emit(f"    Speaker map:{speakers}")


def _extended_block(ctx: DecodeContext, record: Record) -> None:
    if record.length < 1:
        ctx.emit("  Extended tag: missing")
        return
    tag = record.raw[1]
    name = _EXTENDED_NAMES.get(tag)
    if name is None:
        if tag in _RESERVED_VIDEO_TAGS:
            name = f"Reserved video block ({tag:02x})"
        elif tag in _RESERVED_AUDIO_TAGS:
            name = f"Reserved audio block ({tag:02x})"
        else:
            name = f"Unknown ({tag:02x})"
    ctx.emit(f"  Extended tag: {name}")

    handler = _EXTENDED_DECODERS.get(tag)
    if handler is not None:
        handler(ctx, record)


def _video_capability(ctx: DecodeContext, record: Record) -> None:
    if record.length >= 2:
        ctx.emit_all(decode_fields(VCDB_FIELDS, record.raw[2], "    "))


def _colorimetry(ctx: DecodeContext, record: Record) -> None:
    if record.length < 2:
        return
    for i, name in enumerate(_COLORIMETRY):
        if record.raw[2] & (1 << i):
            ctx.emit(f"    {name}")


def _hdr_static_metadata(ctx: DecodeContext, record: Record) -> None:
    raw = record.raw
    if record.length >= 3:
        ctx.emit("    Electro optical transfer functions:")
        for i in range(_EOTF_BITS):
            if raw[2] & (1 << i):
                ctx.emit(f"      {_EOTFS[i] if i < len(_EOTFS) else 'Unknown'}")
        ctx.emit("    Supported static metadata descriptors:")
        for i in range(_STATIC_METADATA_BITS):
            if raw[3] & (1 << i):
                ctx.emit(f"      Static metadata type {i + 1}")
    if record.length >= 4:
        ctx.emit(f"    Desired content max luminance: {raw[4]}")
    if record.length >= 5:
        ctx.emit(f"    Desired content max frame-average luminance: {raw[5]}")
    if record.length >= 6:
        ctx.emit(f"    Desired content min luminance: {raw[6]}")


def _video_format_preference(ctx: DecodeContext, record: Record) -> None:
    for svr in record.raw[2:]:
        if 0 < svr < 128 or 192 < svr < 254:
            mode = lookup_vic(svr)
            ctx.emit(f"    VIC {svr:02d} {mode.name if mode else 'Unknown mode'}")
        elif 128 < svr < 145:
            ctx.emit(f"    DTD number {svr - 128:02d}")


def _ycbcr420_video(ctx: DecodeContext, record: Record) -> None:
    _decode_svds(ctx, record.raw[2:])


_EXTENDED_DECODERS: dict[int, Callable[[DecodeContext, Record], None]] = {
    CeaExtendedTag.VIDEO_CAPABILITY: _video_capability,
    CeaExtendedTag.COLORIMETRY: _colorimetry,
    CeaExtendedTag.HDR_STATIC_METADATA: _hdr_static_metadata,
    CeaExtendedTag.VIDEO_FORMAT_PREFERENCE: _video_format_preference,
    CeaExtendedTag.YCBCR420_VIDEO: _ycbcr420_video,
}
