"""Unit tests for the static timing catalogs and standard timings."""

from __future__ import annotations

from edidscope.core.context import DecodeContext
from edidscope.edid.modes import (
    ESTABLISHED_TIMINGS,
    EST_640X480_60_INDEX,
    find_established,
    lookup_hdmi_vic,
    lookup_vic,
)
from edidscope.edid.standard_timing import decode_standard_timing, parse_standard_timing


class TestCatalogs:
    """Test VIC and established timing lookups."""

    def test_vic_1_and_16(self):
        assert lookup_vic(1).name == "640x480@60Hz 4:3"
        mode = lookup_vic(16)
        assert mode.name == "1920x1080@60Hz 16:9"
        assert (mode.refresh, mode.hor_freq_hz, mode.pixclk_khz) == (60, 67500, 148500)

    def test_vic_out_of_range(self):
        assert lookup_vic(0) is None
        assert lookup_vic(200) is None

    def test_hdmi_vic(self):
        assert lookup_hdmi_vic(1).name == "3840x2160@30Hz 16:9"
        assert lookup_hdmi_vic(5) is None

    def test_640x480_bit_index(self):
        mode = ESTABLISHED_TIMINGS[EST_640X480_60_INDEX]
        assert (mode.width, mode.height, mode.refresh) == (640, 480, 60)

    def test_interlaced_label(self):
        labels = [m.label for m in ESTABLISHED_TIMINGS]
        assert "1024x768i@87Hz 4:3" in labels

    def test_find_established_falls_back_to_iii(self):
        mode = find_established(1280, 1024, 60, 5, 4)
        assert mode is not None
        assert mode.hor_freq_hz == 64000
        assert mode.pixclk_khz == 108000

    def test_find_established_miss(self):
        assert find_established(1234, 567, 60, 4, 3) is None


class TestStandardTiming:
    """Test two-byte standard timing decode."""

    def test_5_4_timing(self):
        timing = parse_standard_timing(0x81, 0x80, claims_1_3=True)
        assert timing.label == "1280x1024@60Hz 5:4"
        assert timing.hor_freq_hz == 64000

    def test_aspect_zero_before_1_3(self):
        timing = parse_standard_timing(0xD1, 0x00, claims_1_3=False)
        assert (timing.width, timing.height) == (1920, 1920)
        assert (timing.ratio_w, timing.ratio_h) == (1, 1)

    def test_aspect_zero_from_1_3(self):
        timing = parse_standard_timing(0xD1, 0x00, claims_1_3=True)
        assert (timing.width, timing.height) == (1920, 1200)
        assert timing.label == "1920x1200@60Hz 16:10"

    def test_16_9_refresh_offset(self):
        timing = parse_standard_timing(0xD1, 0xCF, claims_1_3=True)
        assert timing.label == "1920x1080@75Hz 16:9"
        assert timing.hor_freq_hz is None

    def test_unused_pair(self):
        assert parse_standard_timing(0x01, 0x01, claims_1_3=True) is None

    def test_decode_reports_and_observes(self):
        ctx = DecodeContext()
        ctx.state.claimed_revision = 3
        decode_standard_timing(ctx, 0xD1, 0xCF)
        assert ctx.lines == ["  1920x1080@75Hz 16:9"]
        assert ctx.state.observed.max_vert_freq_hz == 75
        assert ctx.state.observed.max_hor_freq_hz is None

    def test_zero_horizontal_is_flagged(self):
        ctx = DecodeContext()
        assert decode_standard_timing(ctx, 0x00, 0x40) is None
        assert ctx.lines == ["non-conformant standard timing (0 horiz)"]
        assert ctx.state.has_valid_standard_timings is False

    def test_unused_pair_is_silent(self):
        ctx = DecodeContext()
        decode_standard_timing(ctx, 0x01, 0x01)
        assert ctx.lines == []
        assert ctx.state.has_valid_standard_timings is True
