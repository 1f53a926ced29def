"""Structured result of a decode run."""

from __future__ import annotations

from pydantic import BaseModel, Field

from edidscope.compliance.models import ConformanceReport, ConformanceState


class DecodeResult(BaseModel):
    """Report lines, the final verdict and the state it was computed from."""

    lines: list[str] = Field(default_factory=list)
    report: ConformanceReport
    state: ConformanceState
    block_count: int = 1
    declared_extensions: int = 0
    manufacturer: str = ""
    monitor_name: str | None = None

    @property
    def conformant(self) -> bool:
        return self.report.conformant

    @property
    def text(self) -> str:
        return "\n".join(self.lines) + "\n"
