"""Static timing catalogs: Established Timings I/II and III, CEA-861 VICs, HDMI VICs.

References:
  - VESA E-EDID 1.4, Table 3.18 (Established Timings I & II)
  - VESA E-EDID 1.4, Table 3.30 (Established Timings III)
  - CTA-861, Table 3 (Video Identification Codes)
  - HDMI 1.4b, Table 8-13 (HDMI VICs)
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class EstablishedMode:
    """An entry of the bitmap-indexed Established Timings catalogs."""

    width: int
    height: int
    refresh: int
    ratio_w: int
    ratio_h: int
    hor_freq_hz: int
    pixclk_khz: int
    interlaced: bool = False
    reduced_blanking: bool = False

    @property
    def label(self) -> str:
        ilace = "i" if self.interlaced else ""
        rb = "RB " if self.reduced_blanking else ""
        return f"{self.width}x{self.height}{ilace}@{self.refresh}Hz {rb}{self.ratio_w}:{self.ratio_h}"

    def matches(self, width: int, height: int, refresh: int, ratio_w: int, ratio_h: int) -> bool:
        return (
            self.width == width
            and self.height == height
            and self.refresh == refresh
            and self.ratio_w == ratio_w
            and self.ratio_h == ratio_h
        )


@dataclass(frozen=True)
class VideoMode:
    """An entry of a VIC-indexed catalog."""

    name: str
    refresh: int
    hor_freq_hz: int
    pixclk_khz: int


_E = EstablishedMode

# Bit order: byte 0x23 bit 7..0, byte 0x24 bit 7..0, byte 0x25 bit 7.
ESTABLISHED_TIMINGS: tuple[EstablishedMode, ...] = (
    _E(720, 400, 70, 9, 5, 31469, 28320),
    _E(720, 400, 88, 9, 5, 39500, 35500),
    _E(640, 480, 60, 4, 3, 31469, 25175),
    _E(640, 480, 67, 4, 3, 35000, 30240),
    _E(640, 480, 72, 4, 3, 37900, 31500),
    _E(640, 480, 75, 4, 3, 37500, 31500),
    _E(800, 600, 56, 4, 3, 35200, 36000),
    _E(800, 600, 60, 4, 3, 37900, 40000),
    _E(800, 600, 72, 4, 3, 48100, 50000),
    _E(800, 600, 75, 4, 3, 46900, 49500),
    _E(832, 624, 75, 4, 3, 49726, 57284),
    _E(1024, 768, 87, 4, 3, 35522, 44900, interlaced=True),
    _E(1024, 768, 60, 4, 3, 48400, 65000),
    _E(1024, 768, 70, 4, 3, 56500, 75000),
    _E(1024, 768, 75, 4, 3, 60000, 78750),
    _E(1280, 1024, 75, 5, 4, 80000, 135000),
    _E(1152, 870, 75, 192, 145, 67500, 108000),
)

# Bit order: descriptor byte 6 bit 7..0 through byte 11 bit 4.
ESTABLISHED_TIMINGS_III: tuple[EstablishedMode, ...] = (
    _E(640, 350, 85, 64, 35, 37900, 31500),
    _E(640, 400, 85, 16, 10, 37900, 31500),
    _E(720, 400, 85, 9, 5, 37900, 35500),
    _E(640, 480, 85, 4, 3, 43300, 36000),
    _E(848, 480, 60, 53, 30, 31000, 33750),
    _E(800, 600, 85, 4, 3, 53700, 56250),
    _E(1024, 768, 85, 4, 3, 68700, 94500),
    _E(1152, 864, 75, 4, 3, 67500, 108000),
    _E(1280, 768, 60, 5, 3, 47400, 68250, reduced_blanking=True),
    _E(1280, 768, 60, 5, 3, 47800, 79500),
    _E(1280, 768, 75, 5, 3, 60300, 102250),
    _E(1280, 768, 85, 5, 3, 68600, 117500),
    _E(1280, 960, 60, 4, 3, 60000, 108000),
    _E(1280, 960, 85, 4, 3, 85900, 148500),
    _E(1280, 1024, 60, 5, 4, 64000, 108000),
    _E(1280, 1024, 85, 5, 4, 91100, 157500),
    _E(1360, 768, 60, 85, 48, 47700, 85500),
    _E(1440, 900, 60, 16, 10, 55500, 88750, reduced_blanking=True),
    _E(1440, 900, 60, 16, 10, 65300, 121750),
    _E(1440, 900, 75, 16, 10, 82300, 156000),
    _E(1440, 900, 85, 16, 10, 93900, 179500),
    _E(1400, 1050, 60, 4, 3, 64700, 101000, reduced_blanking=True),
    _E(1400, 1050, 60, 4, 3, 65300, 121750),
    _E(1400, 1050, 75, 4, 3, 82300, 156000),
    _E(1400, 1050, 85, 4, 3, 93900, 179500),
    _E(1680, 1050, 60, 16, 10, 64700, 119000, reduced_blanking=True),
    _E(1680, 1050, 60, 16, 10, 65300, 146250),
    _E(1680, 1050, 75, 16, 10, 82300, 187000),
    _E(1680, 1050, 85, 16, 10, 93900, 214750),
    _E(1600, 1200, 60, 4, 3, 75000, 162000),
    _E(1600, 1200, 65, 4, 3, 81300, 175500),
    _E(1600, 1200, 70, 4, 3, 87500, 189000),
    _E(1600, 1200, 75, 4, 3, 93800, 202500),
    _E(1600, 1200, 85, 4, 3, 106300, 229500),
    _E(1792, 1344, 60, 4, 3, 83600, 204750),
    _E(1792, 1344, 75, 4, 3, 106300, 261000),
    _E(1856, 1392, 60, 4, 3, 86300, 218250),
    _E(1856, 1392, 75, 4, 3, 112500, 288000),
    _E(1920, 1200, 60, 16, 10, 74000, 154000, reduced_blanking=True),
    _E(1920, 1200, 60, 16, 10, 74600, 193250),
    _E(1920, 1200, 75, 16, 10, 94000, 245250),
    _E(1920, 1200, 85, 16, 10, 107200, 281250),
    _E(1920, 1440, 60, 4, 3, 90000, 234000),
    _E(1920, 1440, 75, 4, 3, 112500, 297000),
)

_V = VideoMode

# Index 0 is VIC 1.
CEA_MODES: tuple[VideoMode, ...] = (
    _V("640x480@60Hz 4:3", 60, 31469, 25175),
    _V("720x480@60Hz 4:3", 60, 31469, 27000),
    _V("720x480@60Hz 16:9", 60, 31469, 27000),
    _V("1280x720@60Hz 16:9", 60, 45000, 74250),
    _V("1920x1080i@60Hz 16:9", 60, 33750, 74250),
    _V("1440x480i@60Hz 4:3", 60, 15734, 27000),
    _V("1440x480i@60Hz 16:9", 60, 15734, 27000),
    _V("1440x240@60Hz 4:3", 60, 15734, 27000),
    _V("1440x240@60Hz 16:9", 60, 15734, 27000),
    _V("2880x480i@60Hz 4:3", 60, 15734, 54000),
    # VIC 11
    _V("2880x480i@60Hz 16:9", 60, 15734, 54000),
    _V("2880x240@60Hz 4:3", 60, 15734, 54000),
    _V("2880x240@60Hz 16:9", 60, 15734, 54000),
    _V("1440x480@60Hz 4:3", 60, 31469, 54000),
    _V("1440x480@60Hz 16:9", 60, 31469, 54000),
    _V("1920x1080@60Hz 16:9", 60, 67500, 148500),
    _V("720x576@50Hz 4:3", 50, 31250, 27000),
    _V("720x576@50Hz 16:9", 50, 31250, 27000),
    _V("1280x720@50Hz 16:9", 50, 37500, 74250),
    _V("1920x1080i@50Hz 16:9", 50, 28125, 74250),
    # VIC 21
    _V("1440x576i@50Hz 4:3", 50, 15625, 27000),
    _V("1440x576i@50Hz 16:9", 50, 15625, 27000),
    _V("1440x288@50Hz 4:3", 50, 15625, 27000),
    _V("1440x288@50Hz 16:9", 50, 15625, 27000),
    _V("2880x576i@50Hz 4:3", 50, 15625, 54000),
    _V("2880x576i@50Hz 16:9", 50, 15625, 54000),
    _V("2880x288@50Hz 4:3", 50, 15625, 54000),
    _V("2880x288@50Hz 16:9", 50, 15625, 54000),
    _V("1440x576@50Hz 4:3", 50, 31250, 54000),
    _V("1440x576@50Hz 16:9", 50, 31250, 54000),
    # VIC 31
    _V("1920x1080@50Hz 16:9", 50, 56250, 148500),
    _V("1920x1080@24Hz 16:9", 24, 27000, 74250),
    _V("1920x1080@25Hz 16:9", 25, 28125, 74250),
    _V("1920x1080@30Hz 16:9", 30, 33750, 74250),
    _V("2880x480@60Hz 4:3", 60, 31469, 108000),
    _V("2880x480@60Hz 16:9", 60, 31469, 108000),
    _V("2880x576@50Hz 4:3", 50, 31250, 108000),
    _V("2880x576@50Hz 16:9", 50, 31250, 108000),
    _V("1920x1080i@50Hz 16:9", 50, 31250, 72000),
    _V("1920x1080i@100Hz 16:9", 100, 56250, 148500),
    # VIC 41
    _V("1280x720@100Hz 16:9", 100, 75000, 148500),
    _V("720x576@100Hz 4:3", 100, 62500, 54000),
    _V("720x576@100Hz 16:9", 100, 62500, 54000),
    _V("1440x576@100Hz 4:3", 100, 31250, 54000),
    _V("1440x576@100Hz 16:9", 100, 31250, 54000),
    _V("1920x1080i@120Hz 16:9", 120, 67500, 148500),
    _V("1280x720@120Hz 16:9", 120, 90000, 148500),
    _V("720x480@120Hz 4:3", 120, 62937, 54000),
    _V("720x480@120Hz 16:9", 120, 62937, 54000),
    _V("1440x480i@120Hz 4:3", 120, 31469, 54000),
    # VIC 51
    _V("1440x480i@120Hz 16:9", 120, 31469, 54000),
    _V("720x576@200Hz 4:3", 200, 125000, 108000),
    _V("720x576@200Hz 16:9", 200, 125000, 108000),
    _V("1440x576i@200Hz 4:3", 200, 62500, 108000),
    _V("1440x576i@200Hz 16:9", 200, 62500, 108000),
    _V("720x480@240Hz 4:3", 240, 125874, 108000),
    _V("720x480@240Hz 16:9", 240, 125874, 108000),
    _V("1440x480i@240Hz 4:3", 240, 62937, 108000),
    _V("1440x480i@240Hz 16:9", 240, 62937, 108000),
    _V("1280x720@24Hz 16:9", 24, 18000, 59400),
    # VIC 61
    _V("1280x720@25Hz 16:9", 25, 18750, 74250),
    _V("1280x720@30Hz 16:9", 30, 22500, 74250),
    _V("1920x1080@120Hz 16:9", 120, 135000, 297000),
    _V("1920x1080@100Hz 16:9", 100, 112500, 297000),
    _V("1280x720@24Hz 64:27", 24, 18000, 59400),
    _V("1280x720@25Hz 64:27", 25, 18750, 74250),
    _V("1280x720@30Hz 64:27", 30, 22500, 74250),
    _V("1280x720@50Hz 64:27", 50, 37500, 74250),
    _V("1280x720@60Hz 64:27", 60, 45000, 74250),
    _V("1280x720@100Hz 64:27", 100, 75000, 148500),
    # VIC 71
    _V("1280x720@120Hz 64:27", 120, 91000, 148500),
    _V("1920x1080@24Hz 64:27", 24, 27000, 74250),
    _V("1920x1080@25Hz 64:27", 25, 28125, 74250),
    _V("1920x1080@30Hz 64:27", 30, 33750, 74250),
    _V("1920x1080@50Hz 64:27", 50, 56250, 148500),
    _V("1920x1080@60Hz 64:27", 60, 67500, 148500),
    _V("1920x1080@100Hz 64:27", 100, 112500, 297000),
    _V("1920x1080@120Hz 64:27", 120, 135000, 297000),
    _V("1680x720@24Hz 64:27", 24, 18000, 59400),
    _V("1680x720@25Hz 64:27", 25, 18750, 59400),
    # VIC 81
    _V("1680x720@30Hz 64:27", 30, 22500, 59400),
    _V("1680x720@50Hz 64:27", 50, 37500, 82500),
    _V("1680x720@60Hz 64:27", 60, 45000, 99000),
    _V("1680x720@100Hz 64:27", 100, 82500, 165000),
    _V("1680x720@120Hz 64:27", 120, 99000, 198000),
    _V("2560x1080@24Hz 64:27", 24, 26400, 99000),
    _V("2560x1080@25Hz 64:27", 25, 28125, 90000),
    _V("2560x1080@30Hz 64:27", 30, 33750, 118800),
    _V("2560x1080@50Hz 64:27", 50, 56250, 185625),
    _V("2560x1080@60Hz 64:27", 60, 66000, 198000),
    # VIC 91
    _V("2560x1080@100Hz 64:27", 100, 125000, 371250),
    _V("2560x1080@120Hz 64:27", 120, 150000, 495000),
    _V("3840x2160@24Hz 16:9", 24, 54000, 297000),
    _V("3840x2160@25Hz 16:9", 25, 56250, 297000),
    _V("3840x2160@30Hz 16:9", 30, 67500, 297000),
    _V("3840x2160@50Hz 16:9", 50, 112500, 594000),
    _V("3840x2160@60Hz 16:9", 60, 135000, 594000),
    _V("4096x2160@24Hz 256:135", 24, 54000, 297000),
    _V("4096x2160@25Hz 256:135", 25, 56250, 297000),
    _V("4096x2160@30Hz 256:135", 30, 67500, 297000),
    # VIC 101
    _V("4096x2160@50Hz 256:135", 50, 112500, 594000),
    _V("4096x2160@60Hz 256:135", 60, 135000, 594000),
    _V("3840x2160@24Hz 64:27", 24, 54000, 297000),
    _V("3840x2160@25Hz 64:27", 25, 56250, 297000),
    _V("3840x2160@30Hz 64:27", 30, 67500, 297000),
    _V("3840x2160@50Hz 64:27", 50, 112500, 594000),
    _V("3840x2160@60Hz 64:27", 60, 135000, 594000),
)

# Index 0 is HDMI VIC 1.
HDMI_MODES: tuple[VideoMode, ...] = (
    _V("3840x2160@30Hz 16:9", 30, 67500, 297000),
    _V("3840x2160@25Hz 16:9", 25, 56250, 297000),
    _V("3840x2160@24Hz 16:9", 24, 54000, 297000),
    _V("4096x2160@24Hz 256:135", 24, 54000, 297000),
)

# Index in ESTABLISHED_TIMINGS of 640x480@60Hz (byte 0x23 bit 5).
EST_640X480_60_INDEX = 2


def lookup_vic(vic: int) -> VideoMode | None:
    """Resolve a CEA Video Identification Code (1-based)."""
    if 1 <= vic <= len(CEA_MODES):
        return CEA_MODES[vic - 1]
    return None


def lookup_hdmi_vic(vic: int) -> VideoMode | None:
    """Resolve an HDMI VIC (1-based) from the HDMI vendor block."""
    if 1 <= vic <= len(HDMI_MODES):
        return HDMI_MODES[vic - 1]
    return None


def find_established(
    width: int, height: int, refresh: int, ratio_w: int, ratio_h: int
) -> EstablishedMode | None:
    """Find an exact match in Established Timings I/II, then III."""
    for catalog in (ESTABLISHED_TIMINGS, ESTABLISHED_TIMINGS_III):
        for mode in catalog:
            if mode.matches(width, height, refresh, ratio_w, ratio_h):
                return mode
    return None
