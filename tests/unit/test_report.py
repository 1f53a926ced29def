"""Unit tests for the standalone HTML conformance report."""

from __future__ import annotations

from edidscope.compliance.report import generate_report
from edidscope.edid.decoder import decode_edid
from edidscope.models.configuration import DecodeOptions

OPTIONS = DecodeOptions(current_year=2026)


class TestGenerateReport:
    """Test report sections for passing and failing EDIDs."""

    def test_passing_report(self, conformant_edid):
        html = generate_report(decode_edid(conformant_edid, OPTIONS), source="panel.bin")
        assert html.startswith("<!DOCTYPE html>")
        assert "<title>EDID Conformance Report - TEST MONITOR</title>" in html
        assert "PASS" in html
        assert "panel.bin" in html
        assert "Base Structure" not in html

    def test_failing_report_lists_issues(self, conformant_edid):
        data = bytearray(conformant_edid)
        data[127] = (data[127] + 1) & 0xFF
        html = generate_report(decode_edid(bytes(data), OPTIONS))
        assert "FAIL" in html
        assert "Base Structure" in html
        assert "Block has broken checksum" in html

    def test_listing_is_escaped(self, factory):
        descriptors = [
            factory.dtd_1080p,
            factory.range_descriptor(),
            factory.name_descriptor("<b>&</b>"),
            factory.dummy_descriptor(),
        ]
        result = decode_edid(bytes(factory.base_block(descriptors=descriptors)), OPTIONS)
        html = generate_report(result)
        assert "<b>&</b>" not in html
        assert "&lt;b&gt;&amp;&lt;/b&gt;" in html

    def test_range_chart_present(self, conformant_edid):
        html = generate_report(decode_edid(conformant_edid, OPTIONS))
        assert "observed 60 - 60, declared 50 - 75" in html
