"""Standard timing (2-byte) decode, E-EDID 1.4 §3.9."""

from __future__ import annotations

from dataclasses import dataclass

from edidscope.core.context import DecodeContext
from edidscope.edid.modes import find_established

UNUSED_STANDARD_TIMING = (0x01, 0x01)


@dataclass(frozen=True)
class StandardTiming:
    width: int
    height: int
    refresh: int
    ratio_w: int
    ratio_h: int
    hor_freq_hz: int | None = None
    pixclk_khz: int | None = None

    @property
    def label(self) -> str:
        return f"{self.width}x{self.height}@{self.refresh}Hz {self.ratio_w}:{self.ratio_h}"


def parse_standard_timing(b1: int, b2: int, claims_1_3: bool) -> StandardTiming | None:
    """Decode a standard timing pair without touching conformance state.

    Returns None for the unused (0x01, 0x01) pair and for ``b1 == 0``.
    """
    if (b1, b2) == UNUSED_STANDARD_TIMING or b1 == 0:
        return None

    width = (b1 + 31) * 8
    aspect = (b2 >> 6) & 0x03
    if aspect == 0:
        # 1:1 before EDID 1.3, 16:10 from 1.3 on
        if claims_1_3:
            ratio_w, ratio_h = 16, 10
            height = width * 10 // 16
        else:
            ratio_w, ratio_h = 1, 1
            height = width
    elif aspect == 1:
        ratio_w, ratio_h = 4, 3
        height = width * 3 // 4
    elif aspect == 2:
        ratio_w, ratio_h = 5, 4
        height = width * 4 // 5
    else:
        ratio_w, ratio_h = 16, 9
        height = width * 9 // 16
    refresh = 60 + (b2 & 0x3F)

    mode = find_established(width, height, refresh, ratio_w, ratio_h)
    return StandardTiming(
        width=width,
        height=height,
        refresh=refresh,
        ratio_w=ratio_w,
        ratio_h=ratio_h,
        hor_freq_hz=mode.hor_freq_hz if mode else None,
        pixclk_khz=mode.pixclk_khz if mode else None,
    )


def decode_standard_timing(ctx: DecodeContext, b1: int, b2: int) -> StandardTiming | None:
    """Decode one standard timing pair, report it and track its frequencies."""
    if (b1, b2) == UNUSED_STANDARD_TIMING:
        return None
    if b1 == 0:
        ctx.emit("non-conformant standard timing (0 horiz)")
        ctx.state.has_valid_standard_timings = False
        return None

    timing = parse_standard_timing(b1, b2, ctx.claims(3))
    if timing is None:
        return None
    ctx.emit(f"  {timing.label}")
    ctx.state.observed.observe(
        vert_freq_hz=timing.refresh,
        hor_freq_hz=timing.hor_freq_hz,
        pixclk_khz=timing.pixclk_khz,
    )
    return timing
