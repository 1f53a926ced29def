"""Modulo-256 block checksum used by the base block and extension blocks."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class ChecksumResult:
    """Outcome of a block checksum verification."""

    value: int
    expected: int
    valid: bool

    def describe(self) -> str:
        if self.valid:
            return f"Checksum: 0x{self.value:x} (valid)"
        return f"Checksum: 0x{self.value:x} (should be 0x{self.expected:x})"


def verify_checksum(block: bytes | memoryview) -> ChecksumResult:
    """Verify that all bytes of ``block`` sum to zero modulo 256.

    The last byte is the checksum; ``expected`` is the value it should
    hold for the preceding bytes.
    """
    if len(block) == 0:
        return ChecksumResult(value=0, expected=0, valid=False)
    check = block[-1]
    partial = sum(block[:-1]) & 0xFF
    expected = -partial & 0xFF
    return ChecksumResult(value=check, expected=expected, valid=(check + partial) & 0xFF == 0)
