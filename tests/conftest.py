"""Pytest configuration and shared fixtures."""

from __future__ import annotations

import pytest
import structlog

from edidscope.edid.types import EDID_HEADER, SRGB_CHROMATICITY

# Vendor "ABC": letters packed 5 bits each, 'A' == 1
VENDOR_ABC = bytes((0x04, 0x43))

# 1920x1080@60 (148.5 MHz), 521 x 293 mm, digital separate sync +h +v
DTD_1080P = bytes((
    0x02, 0x3A, 0x80, 0x18, 0x71, 0x38, 0x2D, 0x40,
    0x58, 0x2C, 0x45, 0x00, 0x09, 0x25, 0x21, 0x00,
    0x00, 0x1E,
))


def fix_checksum(block: bytearray) -> bytearray:
    """Set byte 127 so that the block sums to zero."""
    block[127] = -sum(block[:127]) & 0xFF
    return block


class EdidFactory:
    """Builders for synthetic EDID blocks."""

    dtd_1080p = DTD_1080P

    @staticmethod
    def monitor_descriptor(tag: int, payload: bytes = b"", byte4: int = 0) -> bytes:
        body = bytes(payload[:13]).ljust(13, b"\x00")
        return bytes((0x00, 0x00, 0x00, tag, byte4)) + body

    def name_descriptor(self, name: str = "TEST MONITOR", terminator: bytes = b"\n") -> bytes:
        text = (name.encode("ascii") + terminator).ljust(13, b" ")[:13]
        return self.monitor_descriptor(0xFC, text)

    def string_descriptor(self, tag: int, text: str) -> bytes:
        raw = (text.encode("ascii") + b"\n").ljust(13, b" ")[:13]
        return self.monitor_descriptor(tag, raw)

    def range_descriptor(
        self,
        min_v: int = 50,
        max_v: int = 75,
        min_h: int = 30,
        max_h: int = 83,
        max_clock_10mhz: int = 16,
        range_class: int = 0x00,
        offsets: int = 0,
        extra: bytes = b"\n      ",
    ) -> bytes:
        payload = bytes((min_v, max_v, min_h, max_h, max_clock_10mhz, range_class)) + extra
        return self.monitor_descriptor(0xFD, payload, byte4=offsets)

    def dummy_descriptor(self) -> bytes:
        return self.monitor_descriptor(0x10)

    def base_block(
        self,
        revision: int = 3,
        descriptors: list[bytes] | None = None,
        features: int = 0x0A,
        input_byte: int = 0x80,
        week: int = 10,
        year: int = 2015,
        serial: int = 0,
        extensions: int = 0,
        established: tuple[int, int, int] = (0x20, 0x00, 0x00),
        standard: list[tuple[int, int]] | None = None,
        vendor: bytes = VENDOR_ABC,
        header: bytes = EDID_HEADER,
    ) -> bytearray:
        """A base block that conforms to EDID 1.3 unless told otherwise."""
        if descriptors is None:
            descriptors = [
                DTD_1080P,
                self.range_descriptor(),
                self.name_descriptor(),
                self.dummy_descriptor(),
            ]
        if standard is None:
            # 1280x1024@60 5:4, rest unused
            standard = [(0x81, 0x80)] + [(0x01, 0x01)] * 7

        block = bytearray(128)
        block[0:8] = header
        block[8:10] = vendor
        block[10:12] = (0x1234).to_bytes(2, "little")
        block[12:16] = serial.to_bytes(4, "little")
        block[16] = week
        block[17] = year - 1990
        block[18] = 1
        block[19] = revision
        block[20] = input_byte
        block[21] = 52
        block[22] = 32
        block[23] = 120
        block[24] = features
        block[25:35] = SRGB_CHROMATICITY
        block[35:38] = bytes(established)
        for i, (b1, b2) in enumerate(standard):
            block[38 + i * 2] = b1
            block[39 + i * 2] = b2
        for i, desc in enumerate(descriptors):
            block[54 + i * 18:72 + i * 18] = desc
        block[126] = extensions
        return fix_checksum(block)

    @staticmethod
    def data_block(tag: int, payload: bytes) -> bytes:
        """A CEA data block with a one-byte tag/length header."""
        return bytes(((tag << 5) | len(payload),)) + payload

    def cea_block(
        self,
        data_blocks: bytes = b"",
        revision: int = 3,
        flags: int = 0x00,
        dtds: list[bytes] | None = None,
    ) -> bytearray:
        block = bytearray(128)
        block[0] = 0x02
        block[1] = revision
        block[2] = 4 + len(data_blocks)
        block[3] = flags
        block[4:4 + len(data_blocks)] = data_blocks
        offset = 4 + len(data_blocks)
        for dtd in dtds or []:
            block[offset:offset + 18] = dtd
            offset += 18
        return fix_checksum(block)

    @staticmethod
    def displayid_block(data_blocks: bytes = b"", version: int = 0x12) -> bytearray:
        """A DisplayID extension with a valid section checksum."""
        block = bytearray(128)
        block[0] = 0x70
        block[1] = version
        block[2] = len(data_blocks)
        block[3] = 0x00
        block[4] = 0x00
        block[5:5 + len(data_blocks)] = data_blocks
        end = 5 + len(data_blocks)
        block[end] = -sum(block[1:end]) & 0xFF
        return fix_checksum(block)

    def edid(self, *extensions: bytearray, **base_kwargs) -> bytes:
        """Base block plus extension blocks, with the extension count set."""
        base = self.base_block(extensions=len(extensions), **base_kwargs)
        return bytes(base) + b"".join(bytes(e) for e in extensions)


@pytest.fixture
def factory() -> EdidFactory:
    """Provide builders for synthetic EDID data."""
    return EdidFactory()


@pytest.fixture
def conformant_edid(factory: EdidFactory) -> bytes:
    """A single-block EDID 1.3 that passes every rule."""
    return bytes(factory.base_block())


@pytest.fixture(autouse=True)
def _reset_structlog():
    """Drop logging configuration bound to streams of a finished test."""
    yield
    structlog.reset_defaults()
