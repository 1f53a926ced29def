"""EDID layout constants, tags and extension identifiers.

References: VESA E-EDID 1.4, CTA-861, VESA DisplayID 1.3
"""

from __future__ import annotations

from enum import IntEnum

EDID_PAGE_SIZE = 128

EDID_HEADER = b"\x00\xff\xff\xff\xff\xff\xff\x00"

DETAILED_DESCRIPTOR_SIZE = 18

# Base block offsets (E-EDID 1.4 §3)
OFFSET_VENDOR = 0x08
OFFSET_PRODUCT = 0x0A
OFFSET_SERIAL = 0x0C
OFFSET_WEEK = 0x10
OFFSET_YEAR = 0x11
OFFSET_VERSION = 0x12
OFFSET_REVISION = 0x13
OFFSET_INPUT = 0x14
OFFSET_HSIZE = 0x15
OFFSET_VSIZE = 0x16
OFFSET_GAMMA = 0x17
OFFSET_FEATURES = 0x18
OFFSET_CHROMA = 0x19
OFFSET_ESTABLISHED = 0x23
OFFSET_STANDARD = 0x26
OFFSET_DESCRIPTORS = (0x36, 0x48, 0x5A, 0x6C)
OFFSET_EXTENSION_COUNT = 0x7E

# Highest minor revision whose rules are known; newer ones are clamped.
MAX_KNOWN_REVISION = 4

# (name, first byte, last byte) of the base block hex breakdown
BASE_BLOCK_SECTIONS: tuple[tuple[str, int, int], ...] = (
    ("header", 0, 7),
    ("serial number", 8, 17),
    ("version", 18, 19),
    ("basic params", 20, 24),
    ("chroma info", 25, 34),
    ("established", 35, 37),
    ("standard", 38, 53),
    ("descriptor 1", 54, 71),
    ("descriptor 2", 72, 89),
    ("descriptor 3", 90, 107),
    ("descriptor 4", 108, 125),
    ("extensions", 126, 126),
    ("checksum", 127, 127),
)

# sRGB primaries packed as base block bytes 0x19..0x22
SRGB_CHROMATICITY = bytes((0xEE, 0x91, 0xA3, 0x54, 0x4C, 0x99, 0x26, 0x0F, 0x50, 0x54))


class ExtensionTag(IntEnum):
    """Extension block tags (byte 0 of an extension block)."""

    CEA = 0x02
    VTB = 0x10
    DI = 0x40
    LS = 0x50
    DPVL = 0x60
    DISPLAYID = 0x70
    BLOCK_MAP = 0xF0
    MANUFACTURER = 0xFF


EXTENSION_NAMES: dict[int, str] = {
    ExtensionTag.CEA: "CEA extension block",
    ExtensionTag.VTB: "VTB extension block",
    ExtensionTag.DI: "DI extension block",
    ExtensionTag.LS: "LS extension block",
    ExtensionTag.DPVL: "DPVL extension block",
    ExtensionTag.DISPLAYID: "DisplayID extension block",
    ExtensionTag.BLOCK_MAP: "Block map",
    ExtensionTag.MANUFACTURER: "Manufacturer-specific extension block",
}


class MonitorDescriptorTag(IntEnum):
    """Display descriptor tags (byte 3 of a monitor descriptor)."""

    MANUFACTURER_MAX = 0x0F
    DUMMY = 0x10
    ESTABLISHED_III = 0xF7
    CVT_CODES = 0xF8
    COLOR_MANAGEMENT = 0xF9
    STANDARD_TIMINGS = 0xFA
    COLOR_POINT = 0xFB
    NAME = 0xFC
    RANGE_LIMITS = 0xFD
    ASCII_STRING = 0xFE
    SERIAL_STRING = 0xFF


class CeaDataBlockTag(IntEnum):
    """CEA-861 data block type tags (bits 7:5 of the block header)."""

    AUDIO = 1
    VIDEO = 2
    VENDOR_SPECIFIC = 3
    SPEAKER_ALLOCATION = 4
    VESA_DTC = 5
    EXTENDED = 7


class CeaExtendedTag(IntEnum):
    """CEA-861 extended data block tags (byte 1 of an extended block)."""

    VIDEO_CAPABILITY = 0x00
    VENDOR_VIDEO = 0x01
    VESA_DISPLAY_DEVICE = 0x02
    VESA_VIDEO = 0x03
    HDMI_VIDEO = 0x04
    COLORIMETRY = 0x05
    HDR_STATIC_METADATA = 0x06
    VIDEO_FORMAT_PREFERENCE = 0x0D
    YCBCR420_VIDEO = 0x0E
    YCBCR420_CAPABILITY_MAP = 0x0F
    MISC_AUDIO = 0x10
    VENDOR_AUDIO = 0x11
    HDMI_AUDIO = 0x12
    INFOFRAME = 0x20


OUI_HDMI = 0x000C03
OUI_HDMI_FORUM = 0xC45DD8


class DisplayIdBlockType(IntEnum):
    """DisplayID 1.x data block type tags."""

    PRODUCT_ID = 0x00
    DISPLAY_PARAMETERS = 0x01
    COLOR_CHARACTERISTICS = 0x02
    TYPE1_TIMING = 0x03
    TYPE2_TIMING = 0x04
    TYPE3_TIMING = 0x05
    TYPE4_TIMING = 0x06
    VESA_TIMING = 0x07
    CEA_TIMING = 0x08
    TIMING_RANGE = 0x09
    SERIAL_NUMBER = 0x0A
    ASCII_STRING = 0x0B
    DISPLAY_DEVICE = 0x0C
    POWER_SEQUENCING = 0x0D
    TRANSFER_CHARACTERISTICS = 0x0E
    DISPLAY_INTERFACE = 0x0F
    STEREO_INTERFACE = 0x10
    TILED_DISPLAY = 0x12


DISPLAYID_BLOCK_NAMES: dict[int, str] = {
    DisplayIdBlockType.PRODUCT_ID: "Product ID block",
    DisplayIdBlockType.DISPLAY_PARAMETERS: "Display Parameters block",
    DisplayIdBlockType.COLOR_CHARACTERISTICS: "Color characteristics block",
    DisplayIdBlockType.TYPE2_TIMING: "Type 2 detailed timing",
    DisplayIdBlockType.TYPE3_TIMING: "Type 3 short timing",
    DisplayIdBlockType.TYPE4_TIMING: "Type 4 DMT timing",
    DisplayIdBlockType.VESA_TIMING: "VESA DMT timing block",
    DisplayIdBlockType.CEA_TIMING: "CEA timing block",
    DisplayIdBlockType.TIMING_RANGE: "Video timing range",
    DisplayIdBlockType.SERIAL_NUMBER: "Product serial number",
    DisplayIdBlockType.ASCII_STRING: "GP ASCII string",
    DisplayIdBlockType.DISPLAY_DEVICE: "Display device data",
    DisplayIdBlockType.POWER_SEQUENCING: "Interface power sequencing",
    DisplayIdBlockType.TRANSFER_CHARACTERISTICS: "Transfer characteristics",
    DisplayIdBlockType.DISPLAY_INTERFACE: "Display interface",
    DisplayIdBlockType.STEREO_INTERFACE: "Stereo display interface",
}
