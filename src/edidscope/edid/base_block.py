"""Base (block 0) EDID decode.

Fields are read at fixed offsets in on-wire order; the four 18-byte slots
are handed to the detailed descriptor decoder.

References: VESA E-EDID 1.4 §3.3 - §3.11
"""

from __future__ import annotations

import struct

from edidscope.core.checksum import verify_checksum
from edidscope.core.context import DecodeContext
from edidscope.edid.descriptors import decode_detailed_descriptor
from edidscope.edid.modes import ESTABLISHED_TIMINGS, EST_640X480_60_INDEX
from edidscope.edid.standard_timing import decode_standard_timing
from edidscope.edid.types import (
    BASE_BLOCK_SECTIONS,
    DETAILED_DESCRIPTOR_SIZE,
    EDID_HEADER,
    EDID_PAGE_SIZE,
    MAX_KNOWN_REVISION,
    OFFSET_CHROMA,
    OFFSET_DESCRIPTORS,
    OFFSET_ESTABLISHED,
    OFFSET_EXTENSION_COUNT,
    OFFSET_FEATURES,
    OFFSET_GAMMA,
    OFFSET_HSIZE,
    OFFSET_INPUT,
    OFFSET_PRODUCT,
    OFFSET_REVISION,
    OFFSET_SERIAL,
    OFFSET_STANDARD,
    OFFSET_VENDOR,
    OFFSET_VERSION,
    OFFSET_VSIZE,
    OFFSET_WEEK,
    OFFSET_YEAR,
    SRGB_CHROMATICITY,
)
from edidscope.utils.logging import get_logger

logger = get_logger(__name__)

_YEAR_BASE = 1990
# Year offsets below 0x10 (before 2006) are rejected under every revision
_MIN_YEAR_OFFSET = 0x10
_MAX_WEEK = 54
_MODEL_YEAR_WEEK = 0xFF

_DIGITAL_INTERFACES = {
    0x00: "Digital interface is not defined",
    0x01: "DVI interface",
    0x02: "HDMI-a interface",
    0x03: "HDMI-b interface",
    0x04: "MDDI interface",
    0x05: "DisplayPort interface",
}

_ANALOG_VOLTAGES = {
    0: "0.7/0.3",
    1: "0.714/0.286",
    2: "1.0/0.4",
    3: "0.7/0.7",
}

_ANALOG_COLOR_TYPES = {
    0x00: "Monochrome or grayscale display",
    0x08: "RGB color display",
    0x10: "Non-RGB color display",
    0x18: "Undefined display color type",
}


def manufacturer_name(vendor: bytes) -> str:
    """Unpack the three 5-bit letters of the vendor ID ('A' == 1)."""
    (packed,) = struct.unpack(">H", bytes(vendor[:2]))
    return "".join(chr(((packed >> shift) & 0x1F) + ord("@")) for shift in (10, 5, 0))


def format_breakdown(block: bytes) -> list[str]:
    """Hex dump of the base block split into its named sections."""
    lines = ["Extracted contents:"]
    for name, start, end in BASE_BLOCK_SECTIONS:
        raw = "".join(f" {b:02x}" for b in block[start:end + 1])
        lines.append(f"{name + ':':<16}{raw}")
    lines.append("")
    return lines


def parse_revision(block: bytes) -> tuple[int | None, bool]:
    """Return the effective claimed minor revision and whether it was clamped.

    Only EDID major version 1 is understood; anything else claims nothing.
    """
    if block[OFFSET_VERSION] != 1:
        return None, False
    revision = block[OFFSET_REVISION]
    if revision > MAX_KNOWN_REVISION:
        return MAX_KNOWN_REVISION, True
    return revision, False


def decode_base_block(ctx: DecodeContext, block: bytes) -> None:
    """Decode the 128-byte base block, recording its conformance facts."""
    state = ctx.state

    if bytes(block[:len(EDID_HEADER)]) != EDID_HEADER:
        ctx.emit("No header found")
        state.has_valid_header = False

    _decode_vendor(ctx, block)

    revision, clamped = parse_revision(block)
    state.claimed_revision = revision
    logger.debug("edid_revision", version=block[OFFSET_VERSION], revision=block[OFFSET_REVISION],
                 effective=revision)

    _decode_date(ctx, block)

    ctx.emit(f"EDID version: {block[OFFSET_VERSION]}.{block[OFFSET_REVISION]}")
    if clamped:
        ctx.emit(f"Claims > 1.{MAX_KNOWN_REVISION}, assuming 1.{MAX_KNOWN_REVISION} conformance")

    analog = _decode_display_parameters(ctx, block)
    _decode_image_size(ctx, block)
    _decode_features(ctx, block, analog)
    _decode_chromaticity(ctx, block)

    ctx.emit("Established timings supported:")
    for i, mode in enumerate(ESTABLISHED_TIMINGS):
        if block[OFFSET_ESTABLISHED + i // 8] & (1 << (7 - i % 8)):
            ctx.emit(f"  {mode.label}")
            state.observed.observe(
                vert_freq_hz=mode.refresh,
                hor_freq_hz=mode.hor_freq_hz,
                pixclk_khz=mode.pixclk_khz,
            )
    state.has_640x480p60_est_timing = bool(
        block[OFFSET_ESTABLISHED] & (1 << (7 - EST_640X480_60_INDEX))
    )

    ctx.emit("Standard timings supported:")
    for i in range(8):
        offset = OFFSET_STANDARD + i * 2
        decode_standard_timing(ctx, block[offset], block[offset + 1])

    valid = True
    for slot_index, offset in enumerate(OFFSET_DESCRIPTORS):
        slot = bytes(block[offset:offset + DETAILED_DESCRIPTOR_SIZE])
        valid &= decode_detailed_descriptor(ctx, slot, in_extension=False)
        if slot_index == 0 and state.has_preferred_timing and not state.did_detailed_timing:
            state.has_preferred_timing = False
    state.has_valid_detailed_blocks = valid

    if block[OFFSET_EXTENSION_COUNT]:
        ctx.emit(f"Has {block[OFFSET_EXTENSION_COUNT]} extension blocks")

    checksum = verify_checksum(block[:EDID_PAGE_SIZE])
    ctx.emit(checksum.describe())
    state.has_valid_checksum = checksum.valid


def _decode_vendor(ctx: DecodeContext, block: bytes) -> None:
    name = manufacturer_name(block[OFFSET_VENDOR:OFFSET_VENDOR + 2])
    ctx.state.manufacturer_name_well_formed = all("A" <= c <= "Z" for c in name)

    (product,) = struct.unpack_from("<H", block, OFFSET_PRODUCT)
    (serial,) = struct.unpack_from("<I", block, OFFSET_SERIAL)
    ctx.emit(f"Manufacturer: {name} Model {product:x} Serial Number {serial}")
    ctx.state.has_serial_number = serial != 0


def _decode_date(ctx: DecodeContext, block: bytes) -> None:
    state = ctx.state
    week = block[OFFSET_WEEK]
    year_offset = block[OFFSET_YEAR]
    year = year_offset + _YEAR_BASE

    state.has_valid_week = week <= _MAX_WEEK or week == _MODEL_YEAR_WEEK
    if not state.has_valid_week:
        return

    if year_offset < _MIN_YEAR_OFFSET:
        return
    # Model years may name a year not yet reached
    if week != _MODEL_YEAR_WEEK and year > ctx.options.current_year:
        return
    state.has_valid_year = True

    if week == _MODEL_YEAR_WEEK:
        ctx.emit(f"Model year {year}")
    elif week == 0:
        ctx.emit(f"Made in {year}")
    else:
        ctx.emit(f"Made week {week} of {year}")


def _decode_display_parameters(ctx: DecodeContext, block: bytes) -> bool:
    """Report the video input definition byte. Returns True for analog input."""
    state = ctx.state
    value = block[OFFSET_INPUT]

    if not value & 0x80:
        ctx.emit(f"Analog display, Input voltage level: {_ANALOG_VOLTAGES[(value & 0x60) >> 5]} V")
        if ctx.claims(4):
            if value & 0x10:
                ctx.emit("Blank-to-black setup/pedestal")
            else:
                ctx.emit("Blank level equals black level")
        elif value & 0x10:
            ctx.emit("Configurable signal levels")
        sync = [
            name for bit, name in ((0x08, "Separate"), (0x04, "Composite"),
                                   (0x02, "SyncOnGreen"), (0x01, "Serration"))
            if value & bit
        ]
        ctx.emit(f"Sync: {' '.join(sync)}")
        return True

    ctx.emit("Digital display")
    nonconformant = 0
    if ctx.claims(4):
        mask = 0
        depth = value & 0x70
        if depth == 0x00:
            ctx.emit("Color depth is undefined")
        elif depth == 0x70:
            nonconformant = 1
        else:
            ctx.emit(f"{(depth >> 3) + 4} bits per primary color channel")

        interface = _DIGITAL_INTERFACES.get(value & 0x0F)
        if interface is None:
            nonconformant = 1
        else:
            ctx.emit(interface)
    elif ctx.claims(2):
        mask = 0x7E
        if value & 0x01:
            ctx.emit("DFP 1.x compatible TMDS")
    else:
        mask = 0x7F

    if not nonconformant:
        nonconformant = value & mask
    state.nonconformant_digital_display = nonconformant
    return False


def _decode_image_size(ctx: DecodeContext, block: bytes) -> None:
    h_cm, v_cm = block[OFFSET_HSIZE], block[OFFSET_VSIZE]
    if h_cm and v_cm:
        ctx.emit(f"Maximum image size: {h_cm} cm x {v_cm} cm")
    elif ctx.claims(4) and h_cm:
        ctx.emit(f"Aspect ratio is {(h_cm + 99) / 100:f} (landscape)")
    elif ctx.claims(4) and v_cm:
        ctx.emit(f"Aspect ratio is {100 / (v_cm + 99):f} (portrait)")
    else:
        ctx.emit("Image size is variable")

    gamma = block[OFFSET_GAMMA]
    if gamma == 0xFF:
        if ctx.claims(4):
            ctx.emit("Gamma is defined in an extension block")
        else:
            ctx.emit("Gamma: 1.0")
    else:
        ctx.emit(f"Gamma: {(gamma + 100) / 100:.2f}")


def _decode_features(ctx: DecodeContext, block: bytes, analog: bool) -> None:
    state = ctx.state
    features = block[OFFSET_FEATURES]

    if features & 0xE0:
        levels = [name for bit, name in ((0x80, "Standby"), (0x40, "Suspend"), (0x20, "Off"))
                  if features & bit]
        ctx.emit("DPMS levels: " + " ".join(levels))

    if analog:
        ctx.emit(_ANALOG_COLOR_TYPES[features & 0x18])
    else:
        formats = "RGB 4:4:4"
        if features & 0x08:
            formats += ", YCrCb 4:4:4"
        if features & 0x10:
            formats += ", YCrCb 4:2:2"
        ctx.emit(f"Supported color formats: {formats}")

    if features & 0x04:
        ctx.emit("Default (sRGB) color space is primary color space")
        chroma = bytes(block[OFFSET_CHROMA:OFFSET_CHROMA + len(SRGB_CHROMATICITY)])
        state.nonconformant_srgb_chromaticity = chroma != SRGB_CHROMATICITY
    if features & 0x02:
        ctx.emit("First detailed timing is preferred timing")
        state.has_preferred_timing = True
    if features & 0x01:
        if ctx.claims(4):
            ctx.emit("Display is continuous frequency")
        else:
            ctx.emit("Supports GTF timings within operating range")


def _chroma_value(high: int, low_bits: int) -> str:
    value = (high << 2) | (low_bits & 0x03)
    return f"0.{value * 10000 // 1024:04d}"


def _decode_chromaticity(ctx: DecodeContext, block: bytes) -> None:
    lo_rg = block[OFFSET_CHROMA]
    lo_bw = block[OFFSET_CHROMA + 1]
    hi = block[OFFSET_CHROMA + 2:OFFSET_CHROMA + 10]
    points = (
        ("Red:  ", hi[0], lo_rg >> 6, hi[1], lo_rg >> 4),
        ("Green:", hi[2], lo_rg >> 2, hi[3], lo_rg),
        ("Blue: ", hi[4], lo_bw >> 6, hi[5], lo_bw >> 4),
        ("White:", hi[6], lo_bw >> 2, hi[7], lo_bw),
    )
    ctx.emit("Display x,y Chromaticity:")
    for name, x_hi, x_lo, y_hi, y_lo in points:
        ctx.emit(f"  {name} {_chroma_value(x_hi, x_lo)}, {_chroma_value(y_hi, y_lo)}")
