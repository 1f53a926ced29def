"""End-to-end tests for decode_edid."""

from __future__ import annotations

import pytest

from edidscope.compliance.models import Verdict
from edidscope.edid.decoder import decode_edid
from edidscope.exceptions import EdidInputError
from edidscope.models.configuration import DecodeOptions

OPTIONS = DecodeOptions(current_year=2026)

HDMI_VSDB = bytes((0x03, 0x0C, 0x00, 0x10, 0x00))
HF_VSDB = bytes((0xD8, 0x5D, 0xC4, 0x01, 0x00, 0x00, 0x00))


class TestBaseBlockOnly:
    """Test single-block EDIDs."""

    def test_conformant(self, conformant_edid):
        result = decode_edid(conformant_edid, OPTIONS)
        assert result.conformant is True
        assert result.report.verdict == Verdict.PASS
        assert result.lines[0] == "Extracted contents:"
        assert result.lines[-1] == "EDID conforms to the rules for its claimed revision"
        assert result.manufacturer == "ABC"
        assert result.monitor_name == "TEST MONITOR"
        assert result.block_count == 1
        assert result.text.endswith("\n")
        assert "Monitor ranges (GTF): 50-75Hz V, 30-83kHz H, max dotclock 160MHz" in result.lines

    def test_observed_ranges(self, conformant_edid):
        observed = decode_edid(conformant_edid, OPTIONS).state.observed
        assert (observed.min_vert_freq_hz, observed.max_vert_freq_hz) == (60, 60)
        assert (observed.min_hor_freq_hz, observed.max_hor_freq_hz) == (31469, 67500)
        assert observed.max_pixclk_khz == 148500

    def test_without_breakdown(self, conformant_edid):
        options = DecodeOptions(current_year=2026, include_breakdown=False)
        result = decode_edid(conformant_edid, options)
        assert result.lines[0] == "Manufacturer: ABC Model 1234 Serial Number 0"

    def test_broken_checksum(self, conformant_edid):
        data = bytearray(conformant_edid)
        data[127] = (data[127] + 1) & 0xFF
        result = decode_edid(bytes(data), OPTIONS)
        assert result.conformant is False
        assert any(line.startswith("Checksum: 0x") and "(should be 0x" in line for line in result.lines)
        assert "EDID block does not conform at all!" in result.lines
        assert "\tBlock has broken checksum" in result.lines

    def test_unterminated_name(self, factory):
        descriptors = [
            factory.dtd_1080p,
            factory.range_descriptor(),
            factory.name_descriptor("TEST MONITOR", terminator=b"\x01"),
            factory.dummy_descriptor(),
        ]
        result = decode_edid(bytes(factory.base_block(descriptors=descriptors)), OPTIONS)
        assert result.state.has_valid_string_termination is False
        assert result.conformant is False
        assert "EDID block does NOT conform to EDID 1.3!" in result.lines
        assert "\tName descriptor not terminated with a newline" in result.lines
        assert "\tDetailed block string not properly terminated" in result.lines

    def test_timing_outside_declared_ranges(self, factory):
        descriptors = [
            factory.dtd_1080p,
            factory.range_descriptor(min_v=50, max_v=59),
            factory.name_descriptor(),
            factory.dummy_descriptor(),
        ]
        result = decode_edid(bytes(factory.base_block(descriptors=descriptors)), OPTIONS)
        assert result.conformant is False
        assert "One or more of the timings is out of range of the Monitor Ranges:" in result.lines
        assert "  Vertical Freq: 60 - 60 Hz" in result.lines

    def test_edid_1_0_with_monitor_descriptors(self, factory):
        result = decode_edid(bytes(factory.base_block(revision=0)), OPTIONS)
        assert "EDID block does NOT conform to EDID 1.0!" in result.lines
        assert "\tHas descriptor blocks other than detailed timings" in result.lines

    def test_too_short(self):
        with pytest.raises(EdidInputError, match="at least 128"):
            decode_edid(bytes(127))


class TestExtensions:
    """Test extension dispatch and block accounting."""

    def test_cea_extension(self, factory):
        cea = factory.cea_block(factory.data_block(2, bytes((0x90, 0x01))), flags=0x40)
        result = decode_edid(factory.edid(cea), OPTIONS)
        assert result.conformant is True
        assert result.block_count == 2
        start = result.lines.index("CEA extension block")
        assert result.lines[start - 1] == ""
        assert result.lines[start + 1] == "Extension version: 3"
        assert result.state.has_cea861 is True

    def test_hf_vsdb_not_after_hdmi_vsdb(self, factory):
        cea = factory.cea_block(factory.data_block(3, HF_VSDB))
        result = decode_edid(factory.edid(cea), OPTIONS)
        assert result.state.nonconformant_hf_vsdb_position is True
        assert result.report.verdict == Verdict.FAIL
        assert "\tHDMI Forum VSDB did not immediately follow the HDMI VSDB" in result.lines

    def test_hf_vsdb_after_hdmi_vsdb(self, factory):
        blocks = factory.data_block(3, HDMI_VSDB) + factory.data_block(3, HF_VSDB)
        result = decode_edid(factory.edid(factory.cea_block(blocks)), OPTIONS)
        assert result.conformant is True

    def test_cea_without_640x480(self, factory):
        cea = factory.cea_block(factory.data_block(2, bytes((0x90,))))
        result = decode_edid(factory.edid(cea, established=(0x00, 0x00, 0x00)), OPTIONS)
        assert result.state.nonconformant_cea861_640x480 is True
        assert result.conformant is False

    def test_cea_broken_checksum(self, factory):
        cea = factory.cea_block()
        cea[127] ^= 0xFF
        result = decode_edid(factory.edid(cea), OPTIONS)
        assert result.state.nonconformant_extensions == 1
        assert "\tHas 1 nonconformant extension block(s)" in result.lines
        assert "CEA extension block has broken checksum" in result.lines

    def test_displayid_extension(self, factory):
        displayid = factory.displayid_block(bytes((0x00, 0x00, 0x01, 0x01)))
        result = decode_edid(factory.edid(displayid), OPTIONS)
        assert "DisplayID extension block" in result.lines
        assert "Product ID block" in result.lines
        assert result.conformant is True

    def test_unknown_extension_is_not_flagged(self, factory):
        block = bytearray(128)
        block[0] = 0x10
        result = decode_edid(factory.edid(block), OPTIONS)
        assert "VTB extension block" in result.lines
        assert result.state.nonconformant_extensions == 0
        assert result.conformant is True

    def test_declared_extension_missing(self, factory):
        result = decode_edid(bytes(factory.base_block(extensions=1)), OPTIONS)
        assert "Extension count 1 does not match the 0 extension blocks present" in result.lines
        assert result.report.verdict == Verdict.WARN
        assert result.conformant is True
        assert result.block_count == 1
        assert result.declared_extensions == 1

    def test_undeclared_extension_is_skipped(self, factory):
        data = bytes(factory.base_block()) + bytes(factory.cea_block())
        result = decode_edid(data, OPTIONS)
        assert "CEA extension block" not in result.lines
        assert result.state.warning_extension_count_mismatch is True

    def test_trailing_partial_block(self, conformant_edid):
        result = decode_edid(conformant_edid + bytes(10), OPTIONS)
        assert result.state.warning_trailing_bytes is True
        assert result.state.warning_extension_count_mismatch is False
        assert "Warning: Input ends with a partial block, which was ignored" in result.lines
        assert result.conformant is True

    def test_serial_number_and_string(self, factory):
        descriptors = [
            factory.dtd_1080p,
            factory.range_descriptor(),
            factory.name_descriptor(),
            factory.string_descriptor(0xFF, "SN0001"),
        ]
        data = bytes(factory.base_block(descriptors=descriptors, serial=1234))
        assert decode_edid(data, OPTIONS).conformant is False

        coupled = DecodeOptions(current_year=2026, couple_serial_rule_to_cea=True)
        assert decode_edid(data, coupled).conformant is True
