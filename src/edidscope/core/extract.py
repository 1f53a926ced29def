"""Input acquisition: turn a file's contents into EDID bytes.

Recognised inputs, tried in this order:
  - ``xrandr --verbose`` output (``EDID:`` or ``EDID_DATA:`` property
    followed by indented lines of 16 hex bytes)
  - a plain hex dump (at least 32 leading hex digits, whitespace ignored)
  - raw binary (non-ASCII within the first 8 bytes)
  - an Xorg log (``EDID (in hex):`` followed by ``(II)`` lines of hex)
  - otherwise the contents are taken as binary, so an EDID with a
    damaged header still reaches the decoder
"""

from __future__ import annotations

import re
import string

from edidscope.exceptions import EdidExtractError
from edidscope.utils.logging import get_logger

logger = get_logger(__name__)

_XRANDR_MARKERS = (b"EDID_DATA:", b"EDID:")
_XRANDR_LINE = re.compile(r"^(?: {16}|\t\t)([0-9a-fA-F]{32})\s*$")
_HEX_PREFIX_LEN = 32
_BINARY_SNIFF_LEN = 8
_XORG_MARKER = "EDID (in hex):"
_XORG_LINE = re.compile(r"\(II\).*?:(?: \t|\s{5})\s*([0-9a-fA-F]{32})")
_HEX_DIGITS = frozenset(string.hexdigits)


def extract_edid(raw: bytes) -> bytes:
    """Extract EDID bytes from the contents of an input file.

    Raises:
        EdidExtractError: If ``raw`` is empty, or names an xrandr or Xorg
            EDID property that holds no hex data.
    """
    if not raw:
        raise EdidExtractError("Input is empty")

    for marker in _XRANDR_MARKERS:
        start = raw.find(marker)
        if start != -1:
            logger.debug("input_format", format="xrandr", marker=marker.decode())
            return _extract_xrandr(raw[start + len(marker):].decode("ascii", errors="replace"))

    prefix = raw[:_HEX_PREFIX_LEN].decode("ascii", errors="replace")
    if len(prefix) == _HEX_PREFIX_LEN and all(c in _HEX_DIGITS for c in prefix):
        logger.debug("input_format", format="hex")
        return _extract_hex(raw.decode("ascii", errors="replace"))

    if any(b > 0x7F for b in raw[:_BINARY_SNIFF_LEN]):
        logger.debug("input_format", format="binary", size=len(raw))
        return raw

    text = raw.decode("ascii", errors="replace")
    if _XORG_MARKER in text:
        logger.debug("input_format", format="xorg")
        return _extract_xorg(text)

    logger.debug("input_format", format="binary", size=len(raw))
    return raw


def _extract_xrandr(text: str) -> bytes:
    lines = text.splitlines()[1:]
    out = bytearray()
    for line in lines:
        match = _XRANDR_LINE.match(line)
        if match is None:
            break
        out += bytes.fromhex(match.group(1))
    if not out:
        raise EdidExtractError("xrandr EDID property holds no hex data")
    return bytes(out)


def _extract_hex(text: str) -> bytes:
    digits = re.sub(r"\s+", "", text)
    try:
        return bytes.fromhex(digits)
    except ValueError as e:
        raise EdidExtractError(f"Malformed hex dump: {e}") from e


def _extract_xorg(text: str) -> bytes:
    start = text.index(_XORG_MARKER) + len(_XORG_MARKER)
    out = bytearray()
    for line in text[start:].splitlines()[1:]:
        match = _XORG_LINE.search(line)
        if match is None:
            if out:
                break
            continue
        out += bytes.fromhex(match.group(1))
    if not out:
        raise EdidExtractError("Xorg log has an EDID marker but no hex lines")
    return bytes(out)
