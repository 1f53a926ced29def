"""Unit tests for descriptor string extraction."""

from __future__ import annotations

from edidscope.core.strings import extract_string


class TestExtractString:
    """Test printable prefix copy and terminator checks."""

    def test_newline_then_spaces(self):
        assert extract_string(b"MONITOR\n     ", 13) == ("MONITOR", True)

    def test_inner_spaces_kept(self):
        assert extract_string(b"TEST MONITOR\n", 13) == ("TEST MONITOR", True)

    def test_unterminated_full_field(self):
        assert extract_string(b"ABCDEFGHIJKLM", 13) == ("ABCDEFGHIJKLM", True)

    def test_length_limit(self):
        assert extract_string(b"ABCDEF", 3) == ("ABC", True)

    def test_control_byte_stops_copy(self):
        assert extract_string(b"AB\x01CD", 5) == ("AB", False)

    def test_text_after_newline_is_invalid(self):
        assert extract_string(b"AB\nCD", 5) == ("AB", False)

    def test_zero_padding_is_invalid(self):
        assert extract_string(b"AB\n\x00\x00", 5) == ("AB", False)

    def test_accepts_memoryview(self):
        data = memoryview(b"xxNAME\n")
        assert extract_string(data[2:], 5) == ("NAME", True)
