"""Exception hierarchy for edidscope.

Malformed descriptor content is never raised; it is recorded as a
conformance flag. Exceptions are reserved for input that cannot be
turned into an EDID byte buffer at all.
"""

from __future__ import annotations


class EdidScopeError(Exception):
    """Base exception for all edidscope errors."""

    def __init__(self, message: str, offset: int | None = None) -> None:
        self.offset = offset
        super().__init__(message)


class EdidInputError(EdidScopeError):
    """The byte buffer is too short to hold a base block."""


class EdidExtractError(EdidScopeError):
    """No EDID could be extracted from the supplied text or binary input."""
