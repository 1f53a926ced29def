"""EDID decode API endpoints."""

from __future__ import annotations

import base64
import binascii

from fastapi import APIRouter, HTTPException
from fastapi.responses import HTMLResponse
from pydantic import BaseModel, Field, model_validator

from edidscope.core.extract import extract_edid
from edidscope.edid.decoder import decode_edid
from edidscope.exceptions import EdidScopeError
from edidscope.models.configuration import DecodeOptions
from edidscope.models.result import DecodeResult
from edidscope.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(tags=["edid"])


class DecodeRequest(BaseModel):
    """EDID input as text (hex dump, xrandr or Xorg log) or base64 binary."""

    text: str | None = None
    data_base64: str | None = None
    current_year: int | None = Field(None, ge=1990, le=9999)
    couple_serial_rule_to_cea: bool = False
    include_breakdown: bool = True

    @model_validator(mode="after")
    def _one_source(self) -> DecodeRequest:
        if (self.text is None) == (self.data_base64 is None):
            raise ValueError("Provide exactly one of 'text' or 'data_base64'")
        return self

    def options(self) -> DecodeOptions:
        values: dict[str, object] = {
            "couple_serial_rule_to_cea": self.couple_serial_rule_to_cea,
            "include_breakdown": self.include_breakdown,
        }
        if self.current_year is not None:
            values["current_year"] = self.current_year
        return DecodeOptions(**values)


def _run_decode(body: DecodeRequest) -> DecodeResult:
    try:
        if body.text is not None:
            data = extract_edid(body.text.encode("ascii", errors="replace"))
        else:
            data = base64.b64decode(body.data_base64 or "", validate=True)
        return decode_edid(data, body.options())
    except binascii.Error as e:
        raise HTTPException(status_code=400, detail=f"Invalid base64 data: {e}") from e
    except EdidScopeError as e:
        logger.info("decode_rejected", error=str(e))
        raise HTTPException(status_code=400, detail=str(e)) from e


@router.post("/edid/decode")
async def decode(body: DecodeRequest) -> dict:
    """Decode an EDID and return the report lines and verdict."""
    result = _run_decode(body)
    return {"conformant": result.conformant, **result.model_dump(mode="json")}


@router.post("/edid/report")
async def report(body: DecodeRequest) -> HTMLResponse:
    """Decode an EDID and return a standalone HTML conformance report."""
    from edidscope.compliance.report import generate_report

    result = _run_decode(body)
    html_content = generate_report(result, source="api")
    name = (result.monitor_name or result.manufacturer or "edid").strip().replace(" ", "_")
    return HTMLResponse(
        content=html_content,
        headers={
            "Content-Disposition": f'attachment; filename="edid-report-{name}.html"',
        },
    )
