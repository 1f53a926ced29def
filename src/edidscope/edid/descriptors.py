"""18-byte detailed descriptor decode: detailed timings and display descriptors.

A slot whose first two bytes are zero is a display (monitor) descriptor
tagged by byte 3; anything else is a detailed timing descriptor.

References: VESA E-EDID 1.4 §3.10, VESA CVT 1.2 §3.4 (3-byte codes)
"""

from __future__ import annotations

import struct
from dataclasses import dataclass
from enum import StrEnum
from typing import Callable

from edidscope.compliance.models import MonitorRanges
from edidscope.core.context import DecodeContext
from edidscope.core.strings import extract_string
from edidscope.edid.modes import ESTABLISHED_TIMINGS_III
from edidscope.edid.standard_timing import decode_standard_timing
from edidscope.edid.types import DETAILED_DESCRIPTOR_SIZE, MonitorDescriptorTag
from edidscope.utils.logging import get_logger

logger = get_logger(__name__)

_STRING_LENGTH = 13

_SYNC_METHODS: dict[int, str] = {
    0: " analog composite",
    1: " bipolar analog composite",
    2: " digital composite",
    3: "",
}

_STEREO_MODES: dict[int, str] = {
    0x20: "field sequential L/R",
    0x40: "field sequential R/L",
    0x21: "interleaved right even",
    0x41: "interleaved left even",
    0x60: "four way interleaved",
    0x61: "side by side interleaved",
}

_CVT_ASPECTS: dict[int, tuple[int, int, str]] = {
    0x00: (4, 3, "4:3"),
    0x04: (16, 9, "16:9"),
    0x08: (16, 10, "16:10"),
    0x0C: (15, 9, "15:9"),
}

_CVT_PREFERRED_REFRESH = ("50", "60", "75", "85")

_RANGE_PREFERRED_ASPECTS = ("4:3", "16:9", "16:10", "5:4", "15:9")

# More than 9.75 MHz of correction, in 0.25 MHz steps
_EXCESSIVE_DOTCLOCK_CORRECTION = 40


class DescriptorKind(StrEnum):
    """Discriminant of an 18-byte descriptor slot."""
    TIMING = "timing"
    MONITOR = "monitor"


class RangeClass(StrEnum):
    """Display range limits descriptor class (byte 10)."""
    DEFAULT_GTF = "GTF"
    BARE_LIMITS = "bare limits"
    SECONDARY_GTF = "GTF with secondary curve"
    CVT = "CVT"
    INVALID = "invalid"


_RANGE_CLASSES: dict[int, RangeClass] = {
    0x00: RangeClass.DEFAULT_GTF,
    0x01: RangeClass.BARE_LIMITS,
    0x02: RangeClass.SECONDARY_GTF,
    0x04: RangeClass.CVT,
}


@dataclass(frozen=True)
class NumericTiming:
    """A decoded detailed timing descriptor."""

    pixclk_khz: int
    ha: int
    hbl: int
    hso: int
    hspw: int
    hborder: int
    va: int
    vbl: int
    vso: int
    vspw: int
    vborder: int
    h_size_mm: int
    v_size_mm: int
    flags: int

    @property
    def h_total(self) -> int:
        return self.ha + self.hbl

    @property
    def v_total(self) -> int:
        return self.va + self.vbl

    @property
    def refresh_hz(self) -> int | None:
        total = self.h_total * self.v_total
        if total == 0:
            return None
        return (self.pixclk_khz * 1000) // total

    @property
    def hor_freq_hz(self) -> int | None:
        if self.h_total == 0:
            return None
        return (self.pixclk_khz * 1000) // self.h_total

    @property
    def interlaced(self) -> bool:
        return bool(self.flags & 0x80)

    @property
    def sync_method(self) -> str:
        return _SYNC_METHODS[(self.flags & 0x18) >> 3]

    @property
    def hsync_polarity(self) -> str:
        return "+" if self.flags & 0x02 else "-"

    @property
    def vsync_polarity(self) -> str:
        return "+" if self.flags & 0x04 else "-"

    @property
    def stereo(self) -> str:
        return _STEREO_MODES.get(self.flags & 0x61, "")


@dataclass(frozen=True)
class MonitorDescriptor:
    """A display descriptor: tag byte plus the 13-byte payload."""

    tag: int
    raw: bytes

    @property
    def payload(self) -> bytes:
        return self.raw[5:DETAILED_DESCRIPTOR_SIZE]


def classify_descriptor(slot: bytes) -> DescriptorKind:
    """Zero pixel clock bytes mark a display descriptor."""
    if slot[0] == 0 and slot[1] == 0:
        return DescriptorKind.MONITOR
    return DescriptorKind.TIMING


def parse_numeric_timing(x: bytes) -> NumericTiming:
    """Reassemble the packed 12-bit fields of a detailed timing descriptor."""
    return NumericTiming(
        pixclk_khz=(x[0] + (x[1] << 8)) * 10,
        ha=x[2] + ((x[4] & 0xF0) << 4),
        hbl=x[3] + ((x[4] & 0x0F) << 8),
        hso=x[8] + ((x[11] & 0xC0) << 2),
        hspw=x[9] + ((x[11] & 0x30) << 4),
        hborder=x[15],
        va=x[5] + ((x[7] & 0xF0) << 4),
        vbl=x[6] + ((x[7] & 0x0F) << 8),
        vso=(x[10] >> 4) + ((x[11] & 0x0C) << 2),
        vspw=(x[10] & 0x0F) + ((x[11] & 0x03) << 4),
        vborder=x[16],
        h_size_mm=x[12] + ((x[14] & 0xF0) << 4),
        v_size_mm=x[13] + ((x[14] & 0x0F) << 8),
        flags=x[17],
    )


def parse_detailed_descriptor(slot: bytes) -> NumericTiming | MonitorDescriptor:
    """Decode a slot into its variant without touching conformance state."""
    slot = bytes(slot[:DETAILED_DESCRIPTOR_SIZE])
    if classify_descriptor(slot) == DescriptorKind.MONITOR:
        return MonitorDescriptor(tag=slot[3], raw=slot)
    return parse_numeric_timing(slot)


def decode_detailed_descriptor(ctx: DecodeContext, slot: bytes, in_extension: bool) -> bool:
    """Decode one 18-byte slot, report it and update conformance state.

    Args:
        ctx: Decode context for this run.
        slot: The 18 descriptor bytes.
        in_extension: True when the slot lives in an extension block, where
            the base block ordering rule does not apply.

    Returns:
        True if the slot holds valid data.
    """
    descriptor = parse_detailed_descriptor(slot)
    if isinstance(descriptor, MonitorDescriptor):
        return _decode_monitor_descriptor(ctx, descriptor)
    return _decode_numeric_timing(ctx, descriptor, in_extension)


def _decode_numeric_timing(ctx: DecodeContext, t: NumericTiming, in_extension: bool) -> bool:
    state = ctx.state
    if state.seen_non_detailed_descriptor and not in_extension:
        state.has_valid_descriptor_ordering = False

    state.did_detailed_timing = True

    ctx.emit(
        f"Detailed mode: Clock {t.pixclk_khz / 1000:.3f} MHz, "
        f"{t.h_size_mm} mm x {t.v_size_mm} mm"
    )
    ctx.emit(
        f"               {t.ha:4d} {t.ha + t.hso:4d} {t.ha + t.hso + t.hspw:4d} "
        f"{t.h_total:4d} hborder {t.hborder}"
    )
    ctx.emit(
        f"               {t.va:4d} {t.va + t.vso:4d} {t.va + t.vso + t.vspw:4d} "
        f"{t.v_total:4d} vborder {t.vborder}"
    )
    ctx.emit(
        f"               {t.hsync_polarity}hsync {t.vsync_polarity}vsync"
        f"{t.sync_method}{' interlaced' if t.interlaced else ''} {t.stereo}"
    )

    refresh = t.refresh_hz
    if refresh is None:
        ctx.emit("Detailed mode has a zero horizontal or vertical total")
        logger.debug("detailed_timing_zero_total", ha=t.ha, hbl=t.hbl, va=t.va, vbl=t.vbl)
        return False

    state.observed.observe(
        vert_freq_hz=refresh,
        hor_freq_hz=t.hor_freq_hz,
        pixclk_khz=t.pixclk_khz,
    )
    return True


def _decode_monitor_descriptor(ctx: DecodeContext, d: MonitorDescriptor) -> bool:
    state = ctx.state
    x = d.raw

    if x[2] != 0:
        ctx.emit(f"Monitor descriptor block has byte 2 nonzero (0x{x[2]:02x})")
        state.has_valid_descriptor_pad = False
    if x[3] != MonitorDescriptorTag.RANGE_LIMITS and x[4] != 0:
        ctx.emit(f"Monitor descriptor block has byte 4 nonzero (0x{x[4]:02x})")
        state.has_valid_descriptor_pad = False

    state.seen_non_detailed_descriptor = True

    if d.tag <= MonitorDescriptorTag.MANUFACTURER_MAX:
        ctx.emit(f"Manufacturer-specified data, tag {d.tag}")
        return True

    handler = _MONITOR_DECODERS.get(d.tag)
    if handler is None:
        ctx.emit(f"Unknown monitor description type {d.tag}")
        return False
    return handler(ctx, x)


def _dummy(ctx: DecodeContext, x: bytes) -> bool:
    ctx.emit("Dummy block")
    if any(x[5:DETAILED_DESCRIPTOR_SIZE]):
        ctx.state.has_valid_dummy_block = False
    return True


def _established_timings_iii(ctx: DecodeContext, x: bytes) -> bool:
    ctx.emit("Established timings III:")
    for i, mode in enumerate(ESTABLISHED_TIMINGS_III):
        if x[6 + i // 8] & (1 << (7 - i % 8)):
            ctx.emit(f"  {mode.label}")
            ctx.state.observed.observe(
                vert_freq_hz=mode.refresh,
                hor_freq_hz=mode.hor_freq_hz,
                pixclk_khz=mode.pixclk_khz,
            )
    return True


def _cvt_codes(ctx: DecodeContext, x: bytes) -> bool:
    ctx.emit("CVT 3-byte code descriptor:")
    if x[5] != 0x01:
        ctx.emit(f"    Unsupported CVT code version {x[5]}")
        ctx.state.has_valid_cvt = False
        return False
    valid = True
    for i in range(4):
        start = 6 + i * 3
        valid &= decode_cvt_code(ctx, x[start:start + 3], first=(i == 0))
    ctx.state.has_valid_cvt &= valid
    return valid


def decode_cvt_code(ctx: DecodeContext, code: bytes, first: bool) -> bool:
    """Decode one CVT 3-byte timing code.

    An all-zero code is an unused slot, except in the first position.
    """
    if not first and not any(code):
        return True

    height = (code[0] | ((code[1] & 0xF0) << 4)) + 1
    height *= 2
    ratio_w, ratio_h, ratio = _CVT_ASPECTS[code[1] & 0x0C]
    width = height * ratio_w // ratio_h

    valid = not (code[1] & 0x03) and not (code[2] & 0x80) and bool(code[2] & 0x1F)
    if not valid:
        ctx.emit("    (broken)")
        return False

    rates = [(0x10, 50), (0x08, 60), (0x04, 75), (0x02, 85)]
    supported = [hz for bit, hz in rates if code[2] & bit]
    reduced = bool(code[2] & 0x01)
    preferred_index = (code[2] & 0x60) >> 5
    preferred_rb = "RB" if preferred_index == 1 and reduced else ""

    listed = "".join(f"{hz} " for hz in supported) + ("60RB " if reduced else "")
    ctx.emit(
        f"    {width}x{height} @ ( {listed}) Hz {ratio} "
        f"({_CVT_PREFERRED_REFRESH[preferred_index]}{preferred_rb} preferred)"
    )
    if supported:
        ctx.state.observed.observe(vert_freq_hz=min(supported))
        ctx.state.observed.observe(vert_freq_hz=max(supported))
    return True


def _color_management(ctx: DecodeContext, x: bytes) -> bool:
    ctx.emit("Color management data:")
    ctx.emit(f"  Version:  {x[5]}")
    red_a3, red_a2, green_a3, green_a2, blue_a3, blue_a2 = struct.unpack_from("<6h", x, 6)
    ctx.emit(f"  Red a3:   {red_a3 / 100:.2f}")
    ctx.emit(f"  Red a2:   {red_a2 / 100:.2f}")
    ctx.emit(f"  Green a3: {green_a3 / 100:.2f}")
    ctx.emit(f"  Green a2: {green_a2 / 100:.2f}")
    ctx.emit(f"  Blue a3:  {blue_a3 / 100:.2f}")
    ctx.emit(f"  Blue a2:  {blue_a2 / 100:.2f}")
    return True


def _more_standard_timings(ctx: DecodeContext, x: bytes) -> bool:
    ctx.emit("More standard timings:")
    for i in range(6):
        decode_standard_timing(ctx, x[5 + i * 2], x[6 + i * 2])
    return True


def _white_point(index: int, low: int, x_hi: int, y_hi: int, gamma: int) -> str:
    w_x = (x_hi << 2) | ((low >> 2) & 0x03)
    w_y = (y_hi << 2) | (low & 0x03)
    line = f"  Index: {index} White: 0.{w_x * 10000 // 1024:04d}, 0.{w_y * 10000 // 1024:04d}"
    if gamma == 0xFF:
        return line + " Gamma: is defined in an extension block"
    return line + f" Gamma: {(gamma + 100) / 100:.2f}"


def _color_point(ctx: DecodeContext, x: bytes) -> bool:
    ctx.emit("Color point:")
    ctx.emit(_white_point(x[5], x[6], x[7], x[8], x[9]))
    if x[10] != 0:
        ctx.emit(_white_point(x[10], x[11], x[12], x[13], x[14]))
    return True


def _monitor_name(ctx: DecodeContext, x: bytes) -> bool:
    state = ctx.state
    state.has_name_descriptor = True
    if not ctx.names.feed(x[5:DETAILED_DESCRIPTOR_SIZE]):
        state.name_descriptor_continued = True
        ctx.emit("Monitor name continued in another descriptor (ignored)")
        return True

    state.name_descriptor_terminated = ctx.names.terminated
    if not ctx.names.valid_termination:
        state.has_valid_string_termination = False
    ctx.emit(f"Monitor name: {ctx.names.name}")
    return True


def _range_limits(ctx: DecodeContext, x: bytes) -> bool:
    state = ctx.state
    state.has_range_descriptor = True
    claims_1_4 = ctx.claims(4)

    v_min_offset = v_max_offset = h_min_offset = h_max_offset = 0
    if claims_1_4:
        # A minimum offset only applies together with its maximum offset
        if x[4] & 0x02:
            v_max_offset = 255
            if x[4] & 0x01:
                v_min_offset = 255
        if x[4] & 0x04:
            h_max_offset = 255
            if x[4] & 0x03:
                h_min_offset = 255
    elif x[4]:
        state.has_valid_range_descriptor = False

    range_class = _RANGE_CLASSES.get(x[10], RangeClass.INVALID)
    if range_class == RangeClass.INVALID:
        state.has_valid_range_descriptor = False
    elif range_class in (RangeClass.BARE_LIMITS, RangeClass.CVT) and not claims_1_4:
        state.has_valid_range_descriptor = False

    min_v = x[5] + v_min_offset
    max_v = x[6] + v_max_offset
    min_h = x[7] + h_min_offset
    max_h = x[8] + h_max_offset
    if min_v > max_v or min_h > max_h:
        state.has_valid_range_descriptor = False

    line = f"Monitor ranges ({range_class.value}): {min_v}-{max_v}Hz V, {min_h}-{max_h}kHz H"
    max_pixclk_khz: int | None = None
    if x[9]:
        max_pixclk_khz = x[9] * 10000
        line += f", max dotclock {x[9] * 10}MHz"
    elif not claims_1_4:
        state.has_valid_max_dotclock = False
    ctx.emit(line)

    state.monitor_ranges = MonitorRanges(
        min_vert_freq_hz=min_v,
        max_vert_freq_hz=max_v,
        min_hor_freq_hz=min_h * 1000,
        max_hor_freq_hz=max_h * 1000,
        max_pixclk_khz=max_pixclk_khz,
    )

    if range_class == RangeClass.CVT:
        _cvt_range_limits(ctx, x)

    # At most one range descriptor is expected, so the cumulative flag is
    # also this descriptor's validity.
    return state.has_valid_range_descriptor


def _cvt_range_limits(ctx: DecodeContext, x: bytes) -> None:
    state = ctx.state
    ctx.emit(f"CVT version {(x[11] & 0xF0) >> 4}.{x[11] & 0x0F}")

    if x[12] & 0xFC:
        raw_offset = (x[12] & 0xFC) >> 2
        ctx.emit(f"Real max dotclock: {x[9] * 10 - raw_offset * 0.25:.2f}MHz")
        if raw_offset >= _EXCESSIVE_DOTCLOCK_CORRECTION:
            state.warning_excessive_dotclock_correction = True

    max_h_pixels = (((x[12] & 0x03) << 8) | x[13]) * 8
    if max_h_pixels:
        ctx.emit(f"Max active pixels per line: {max_h_pixels}")

    aspects = [
        name for bit, name in ((0x80, "4:3"), (0x40, "16:9"), (0x20, "16:10"), (0x10, "5:4"), (0x08, "15:9"))
        if x[14] & bit
    ]
    ctx.emit(f"Supported aspect ratios: {' '.join(aspects)}")
    if x[14] & 0x07:
        state.has_valid_range_descriptor = False

    preferred = (x[15] & 0xE0) >> 5
    if preferred < len(_RANGE_PREFERRED_ASPECTS):
        ctx.emit(f"Preferred aspect ratio: {_RANGE_PREFERRED_ASPECTS[preferred]}")
    else:
        ctx.emit("Preferred aspect ratio: (broken)")

    if x[15] & 0x08:
        ctx.emit("Supports CVT standard blanking")
    if x[15] & 0x10:
        ctx.emit("Supports CVT reduced blanking")
    if x[15] & 0x07:
        state.has_valid_range_descriptor = False

    if x[16] & 0xF0:
        ctx.emit("Supported display scaling:")
        for bit, name in ((0x80, "Horizontal shrink"), (0x40, "Horizontal stretch"),
                          (0x20, "Vertical shrink"), (0x10, "Vertical stretch")):
            if x[16] & bit:
                ctx.emit(f"    {name}")
    if x[16] & 0x0F:
        state.has_valid_range_descriptor = False

    if x[17]:
        ctx.emit(f"Preferred vertical refresh: {x[17]} Hz")
    else:
        state.warning_zero_preferred_refresh = True


def _ascii_string(ctx: DecodeContext, x: bytes) -> bool:
    text, valid = extract_string(x[5:], _STRING_LENGTH)
    if not valid:
        ctx.state.has_valid_string_termination = False
    ctx.emit(f"ASCII string: {text}")
    return True


def _serial_string(ctx: DecodeContext, x: bytes) -> bool:
    text, valid = extract_string(x[5:], _STRING_LENGTH)
    if not valid:
        ctx.state.has_valid_string_termination = False
    ctx.emit(f"Serial number: {text}")
    ctx.state.has_serial_string = True
    return True


_MONITOR_DECODERS: dict[int, Callable[[DecodeContext, bytes], bool]] = {
    MonitorDescriptorTag.DUMMY: _dummy,
    MonitorDescriptorTag.ESTABLISHED_III: _established_timings_iii,
    MonitorDescriptorTag.CVT_CODES: _cvt_codes,
    MonitorDescriptorTag.COLOR_MANAGEMENT: _color_management,
    MonitorDescriptorTag.STANDARD_TIMINGS: _more_standard_timings,
    MonitorDescriptorTag.COLOR_POINT: _color_point,
    MonitorDescriptorTag.NAME: _monitor_name,
    MonitorDescriptorTag.RANGE_LIMITS: _range_limits,
    MonitorDescriptorTag.ASCII_STRING: _ascii_string,
    MonitorDescriptorTag.SERIAL_STRING: _serial_string,
}
