"""Unit tests for EDID input extraction."""

from __future__ import annotations

import pytest

from edidscope.core.extract import extract_edid
from edidscope.exceptions import EdidExtractError, EdidScopeError


def _hex_lines(data: bytes) -> list[str]:
    text = data.hex()
    return [text[i:i + 32] for i in range(0, len(text), 32)]


class TestHexAndBinary:
    """Test plain hex dumps and raw binary input."""

    def test_binary_passthrough(self, conformant_edid):
        assert extract_edid(conformant_edid) == conformant_edid

    def test_single_line_hex(self, conformant_edid):
        assert extract_edid(conformant_edid.hex().encode()) == conformant_edid

    def test_hex_with_line_breaks(self, conformant_edid):
        text = "\n".join(_hex_lines(conformant_edid)) + "\n"
        assert extract_edid(text.encode()) == conformant_edid

    def test_uppercase_hex(self, conformant_edid):
        assert extract_edid(conformant_edid.hex().upper().encode()) == conformant_edid

    def test_odd_digit_count_is_rejected(self):
        with pytest.raises(EdidExtractError, match="Malformed hex"):
            extract_edid(b"0" * 33)


class TestXrandr:
    """Test xrandr --verbose property output."""

    def test_edid_property(self, conformant_edid):
        body = "".join(f"\t\t{line}\n" for line in _hex_lines(conformant_edid))
        text = (
            "HDMI-1 connected primary 1920x1080+0+0\n"
            "\tEDID: \n"
            f"{body}"
            "\tBroadcast RGB: Automatic \n"
        )
        assert extract_edid(text.encode()) == conformant_edid

    def test_space_indented_edid_data(self, conformant_edid):
        body = "".join(f"{' ' * 16}{line}\n" for line in _hex_lines(conformant_edid))
        text = "  EDID_DATA:\n" + body + "  other: 1\n"
        assert extract_edid(text.encode()) == conformant_edid

    def test_marker_without_data(self):
        with pytest.raises(EdidExtractError, match="no hex data"):
            extract_edid(b"\tEDID: \n\tBroadcast RGB: Automatic\n")


class TestXorgLog:
    """Test Xorg log extraction."""

    def test_log_lines(self, conformant_edid):
        prefix = "[    12.345] (II) modeset(0): "
        lines = [f"{prefix}EDID (in hex):"]
        lines += [f"{prefix}\t{line}" for line in _hex_lines(conformant_edid)]
        lines.append(f"{prefix}Printing DDC gathered Modelines:")
        text = "[    12.300] (II) Loading module\n" + "\n".join(lines) + "\n"
        assert extract_edid(text.encode()) == conformant_edid


class TestFallbackAndRejectedInput:
    """Test unrecognised inputs."""

    def test_empty_input(self):
        with pytest.raises(EdidExtractError, match="empty"):
            extract_edid(b"")

    def test_error_hierarchy(self):
        with pytest.raises(EdidScopeError):
            extract_edid(b"")

    def test_unrecognised_text_is_taken_as_binary(self):
        assert extract_edid(b"hello, this is not an EDID\n") == b"hello, this is not an EDID\n"

    def test_zeroed_header_is_taken_as_binary(self, factory):
        block = factory.base_block(header=bytes(8))
        assert extract_edid(bytes(block)) == bytes(block)

    def test_xorg_marker_without_data(self):
        with pytest.raises(EdidExtractError, match="no hex lines"):
            extract_edid(b"(II) modeset(0): EDID (in hex):\n(II) modeset(0): Printing DDC gathered Modelines:\n")
