"""User-facing decode configuration."""

from __future__ import annotations

import datetime

from pydantic import BaseModel, Field


def _this_year() -> int:
    return datetime.date.today().year


class DecodeOptions(BaseModel):
    """Options for a single decode run."""

    current_year: int = Field(default_factory=_this_year, ge=1990, le=9999)
    # Only flag "serial number and serial string both set" when a CEA
    # extension is present, matching historic edid-decode output.
    couple_serial_rule_to_cea: bool = False
    include_breakdown: bool = True
