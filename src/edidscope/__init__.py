"""edidscope - EDID decoder and conformance checker."""

__version__ = "0.1.0"
