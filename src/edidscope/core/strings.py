"""Descriptor string extraction with termination checks.

Descriptor strings are graphic ASCII, optionally terminated by a single
newline (0x0A) and then padded with spaces (0x20) to the field length.
"""

from __future__ import annotations

_NEWLINE = 0x0A
_SPACE = 0x20


def _is_graphic(byte: int) -> bool:
    return 0x21 <= byte <= 0x7E


def extract_string(data: bytes | memoryview, length: int) -> tuple[str, bool]:
    """Copy the printable prefix of ``data[:length]`` and check its terminator.

    Spaces before the newline are copied verbatim. After the newline only
    spaces are allowed. At the first violation the partial string built so
    far is returned together with ``False``.

    Returns:
        ``(text, valid_termination)``
    """
    out: list[str] = []
    seen_newline = False
    for byte in bytes(data[:length]):
        if _is_graphic(byte) and not seen_newline:
            out.append(chr(byte))
        elif not seen_newline:
            if byte == _NEWLINE:
                seen_newline = True
            elif byte == _SPACE:
                out.append(" ")
            else:
                return "".join(out), False
        elif byte != _SPACE:
            return "".join(out), False
    return "".join(out), True
