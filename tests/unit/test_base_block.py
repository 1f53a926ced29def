"""Unit tests for base block decode."""

from __future__ import annotations

import pytest

from edidscope.core.context import DecodeContext
from edidscope.edid.base_block import (
    decode_base_block,
    format_breakdown,
    manufacturer_name,
    parse_revision,
)
from edidscope.models.configuration import DecodeOptions


def _decode(block: bytes, current_year: int = 2026) -> DecodeContext:
    ctx = DecodeContext(options=DecodeOptions(current_year=current_year))
    decode_base_block(ctx, bytes(block))
    return ctx


class TestIdentity:
    """Test vendor, revision and the hex breakdown."""

    def test_manufacturer_name(self):
        assert manufacturer_name(bytes((0x04, 0x43))) == "ABC"
        assert manufacturer_name(bytes((0x10, 0xAC))) == "DEL"

    def test_parse_revision(self, factory):
        assert parse_revision(factory.base_block(revision=3)) == (3, False)
        assert parse_revision(factory.base_block(revision=7)) == (4, True)

    def test_unknown_major_version(self, factory):
        block = factory.base_block()
        block[18] = 2
        assert parse_revision(block) == (None, False)

    def test_breakdown_sections(self, conformant_edid):
        lines = format_breakdown(conformant_edid)
        assert lines[0] == "Extracted contents:"
        assert lines[1] == "header:          00 ff ff ff ff ff ff 00"
        assert lines[-3] == "extensions:      00"
        assert lines[-1] == ""
        assert len(lines) == 15

    def test_vendor_line(self, conformant_edid):
        ctx = _decode(conformant_edid)
        assert ctx.lines[0] == "Manufacturer: ABC Model 1234 Serial Number 0"
        assert ctx.state.manufacturer_name_well_formed is True
        assert ctx.state.has_serial_number is False

    def test_garbage_vendor(self, factory):
        ctx = _decode(factory.base_block(vendor=bytes((0x00, 0x00))))
        assert ctx.state.manufacturer_name_well_formed is False

    def test_missing_header(self, factory):
        ctx = _decode(factory.base_block(header=bytes(8)))
        assert ctx.lines[0] == "No header found"
        assert ctx.state.has_valid_header is False


class TestDate:
    """Test week and year of manufacture rules."""

    def test_made_week(self, conformant_edid):
        ctx = _decode(conformant_edid)
        assert "Made week 10 of 2015" in ctx.lines
        assert ctx.state.has_valid_week is True
        assert ctx.state.has_valid_year is True

    def test_model_year(self, factory):
        ctx = _decode(factory.base_block(week=0xFF))
        assert "Model year 2015" in ctx.lines

    def test_week_zero(self, factory):
        ctx = _decode(factory.base_block(week=0))
        assert "Made in 2015" in ctx.lines

    @pytest.mark.parametrize("week,valid", [(54, True), (55, False), (0xFE, False)])
    def test_week_bounds(self, factory, week, valid):
        ctx = _decode(factory.base_block(week=week))
        assert ctx.state.has_valid_week is valid

    def test_future_year(self, factory):
        ctx = _decode(factory.base_block(year=2030), current_year=2026)
        assert ctx.state.has_valid_year is False
        assert not any(line.startswith("Made week") for line in ctx.lines)

    @pytest.mark.parametrize("revision", [3, 4])
    def test_pre_2006_year_rejected(self, factory, revision):
        assert _decode(factory.base_block(revision=revision, year=2005)).state.has_valid_year is False
        assert _decode(factory.base_block(revision=revision, year=2006)).state.has_valid_year is True

    def test_future_model_year(self, factory):
        ctx = _decode(factory.base_block(week=0xFF, year=2028), current_year=2026)
        assert ctx.state.has_valid_year is True
        assert "Model year 2028" in ctx.lines


class TestDisplayParameters:
    """Test the video input byte and feature support."""

    def test_digital_1_3(self, conformant_edid):
        ctx = _decode(conformant_edid)
        assert "Digital display" in ctx.lines
        assert ctx.state.nonconformant_digital_display == 0

    def test_digital_garbage_1_3(self, factory):
        ctx = _decode(factory.base_block(input_byte=0x85))
        assert ctx.state.nonconformant_digital_display == 0x04

    def test_dfp_bit_allowed_from_1_2(self, factory):
        ctx = _decode(factory.base_block(revision=2, input_byte=0x81))
        assert "DFP 1.x compatible TMDS" in ctx.lines
        assert ctx.state.nonconformant_digital_display == 0

    def test_dfp_bit_garbage_before_1_2(self, factory):
        ctx = _decode(factory.base_block(revision=1, input_byte=0x81))
        assert ctx.state.nonconformant_digital_display == 0x01

    def test_digital_1_4_interface(self, factory):
        ctx = _decode(factory.base_block(revision=4, input_byte=0xA5))
        assert "8 bits per primary color channel" in ctx.lines
        assert "DisplayPort interface" in ctx.lines
        assert ctx.state.nonconformant_digital_display == 0

    def test_digital_1_4_reserved_depth(self, factory):
        ctx = _decode(factory.base_block(revision=4, input_byte=0xF5))
        assert ctx.state.nonconformant_digital_display == 1

    def test_analog(self, factory):
        ctx = _decode(factory.base_block(input_byte=0x0E, features=0x0A))
        assert "Analog display, Input voltage level: 0.7/0.3 V" in ctx.lines
        assert "Sync: Separate Composite SyncOnGreen" in ctx.lines
        assert "RGB color display" in ctx.lines

    def test_image_size_and_gamma(self, conformant_edid):
        ctx = _decode(conformant_edid)
        assert "Maximum image size: 52 cm x 32 cm" in ctx.lines
        assert "Gamma: 2.20" in ctx.lines

    def test_srgb_chromaticity_match(self, factory):
        ctx = _decode(factory.base_block(features=0x0E))
        assert "Default (sRGB) color space is primary color space" in ctx.lines
        assert ctx.state.nonconformant_srgb_chromaticity is False

    def test_srgb_chromaticity_mismatch(self, factory):
        block = factory.base_block(features=0x0E)
        block[0x1B] ^= 0x01
        ctx = _decode(block)
        assert ctx.state.nonconformant_srgb_chromaticity is True

    def test_chromaticity_lines(self, conformant_edid):
        ctx = _decode(conformant_edid)
        start = ctx.lines.index("Display x,y Chromaticity:")
        assert ctx.lines[start + 1] == "  Red:   0.6396, 0.3300"
        assert ctx.lines[start + 4] == "  White: 0.3125, 0.3291"


class TestTimingsAndDescriptors:
    """Test timing sections and the descriptor slots."""

    def test_established_640x480(self, conformant_edid):
        ctx = _decode(conformant_edid)
        assert "  640x480@60Hz 4:3" in ctx.lines
        assert ctx.state.has_640x480p60_est_timing is True

    def test_no_established_640x480(self, factory):
        ctx = _decode(factory.base_block(established=(0x00, 0x00, 0x00)))
        assert ctx.state.has_640x480p60_est_timing is False

    def test_standard_timings(self, conformant_edid):
        ctx = _decode(conformant_edid)
        assert "  1280x1024@60Hz 5:4" in ctx.lines

    def test_preferred_timing(self, conformant_edid):
        ctx = _decode(conformant_edid)
        assert "First detailed timing is preferred timing" in ctx.lines
        assert ctx.state.has_preferred_timing is True

    def test_preferred_bit_without_detailed_timing(self, factory):
        descriptors = [
            factory.range_descriptor(),
            factory.name_descriptor(),
            factory.dummy_descriptor(),
            factory.dummy_descriptor(),
        ]
        ctx = _decode(factory.base_block(descriptors=descriptors))
        assert ctx.state.has_preferred_timing is False

    def test_garbage_slot(self, factory):
        descriptors = [
            factory.dtd_1080p,
            factory.range_descriptor(),
            factory.name_descriptor(),
            factory.monitor_descriptor(0x11),
        ]
        ctx = _decode(factory.base_block(descriptors=descriptors))
        assert ctx.state.has_valid_detailed_blocks is False

    def test_extension_count_and_checksum(self, factory):
        ctx = _decode(factory.base_block(extensions=2))
        assert "Has 2 extension blocks" in ctx.lines
        assert ctx.lines[-1].endswith("(valid)")
        assert ctx.state.has_valid_checksum is True

    def test_broken_checksum(self, conformant_edid):
        block = bytearray(conformant_edid)
        block[127] = (block[127] + 1) & 0xFF
        ctx = _decode(block)
        assert "(should be" in ctx.lines[-1]
        assert ctx.state.has_valid_checksum is False

    def test_revision_clamped(self, factory):
        ctx = _decode(factory.base_block(revision=9))
        assert "EDID version: 1.9" in ctx.lines
        assert "Claims > 1.4, assuming 1.4 conformance" in ctx.lines
        assert ctx.state.claimed_revision == 4
