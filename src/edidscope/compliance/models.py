"""Pydantic models for conformance tracking and the final verdict."""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, Field


class Verdict(StrEnum):
    """Rule or overall verdict."""
    PASS = "pass"
    FAIL = "fail"
    WARN = "warn"


class RuleScope(StrEnum):
    """Which family of rules an issue belongs to."""
    EDID_1_3 = "edid_1_3"
    EDID_1_2 = "edid_1_2"
    EDID_1_0 = "edid_1_0"
    ALWAYS = "always"
    RANGE = "range"
    EXTENSION = "extension"
    WARNING = "warning"


SCOPE_DISPLAY_NAMES: dict[RuleScope, str] = {
    RuleScope.EDID_1_3: "EDID 1.3",
    RuleScope.EDID_1_2: "EDID 1.2",
    RuleScope.EDID_1_0: "EDID 1.0",
    RuleScope.ALWAYS: "Base Structure",
    RuleScope.RANGE: "Monitor Ranges",
    RuleScope.EXTENSION: "Extension Blocks",
    RuleScope.WARNING: "Warnings",
}


class ObservedRanges(BaseModel):
    """Extremes of every timing decoded during the pass."""

    min_vert_freq_hz: int | None = None
    max_vert_freq_hz: int | None = None
    min_hor_freq_hz: int | None = None
    max_hor_freq_hz: int | None = None
    max_pixclk_khz: int | None = None

    def observe(
        self,
        vert_freq_hz: int | None = None,
        hor_freq_hz: int | None = None,
        pixclk_khz: int | None = None,
    ) -> None:
        if vert_freq_hz is not None:
            self.min_vert_freq_hz = _min(self.min_vert_freq_hz, vert_freq_hz)
            self.max_vert_freq_hz = _max(self.max_vert_freq_hz, vert_freq_hz)
        if hor_freq_hz is not None:
            self.min_hor_freq_hz = _min(self.min_hor_freq_hz, hor_freq_hz)
            self.max_hor_freq_hz = _max(self.max_hor_freq_hz, hor_freq_hz)
        if pixclk_khz is not None:
            self.max_pixclk_khz = _max(self.max_pixclk_khz, pixclk_khz)


class MonitorRanges(BaseModel):
    """Bounds declared by the display range limits descriptor."""

    min_vert_freq_hz: int
    max_vert_freq_hz: int
    min_hor_freq_hz: int
    max_hor_freq_hz: int
    max_pixclk_khz: int | None = None


class ConformanceState(BaseModel):
    """Mutable flags collected by every decoder during a single pass.

    Defaults are permissive: a flag starts in the state that does not fail
    any rule unless the matching decoder sets it otherwise.
    """

    claimed_revision: int | None = None

    # Base block identity and structure
    has_valid_header: bool = True
    has_valid_checksum: bool = True
    manufacturer_name_well_formed: bool = False
    has_valid_week: bool = False
    has_valid_year: bool = False
    has_serial_number: bool = False
    has_serial_string: bool = False
    nonconformant_digital_display: int = 0
    nonconformant_srgb_chromaticity: bool = False
    has_preferred_timing: bool = False
    has_640x480p60_est_timing: bool = False
    has_valid_standard_timings: bool = True

    # Detailed descriptors
    did_detailed_timing: bool = False
    seen_non_detailed_descriptor: bool = False
    has_valid_detailed_blocks: bool = True
    has_valid_descriptor_ordering: bool = True
    has_valid_descriptor_pad: bool = True
    has_valid_dummy_block: bool = True
    has_valid_cvt: bool = True
    has_valid_string_termination: bool = True
    has_name_descriptor: bool = False
    name_descriptor_terminated: bool = False
    name_descriptor_continued: bool = False
    has_range_descriptor: bool = False
    has_valid_range_descriptor: bool = True
    has_valid_max_dotclock: bool = True

    # Extensions
    nonconformant_extensions: int = 0
    has_cea861: bool = False
    has_cea861_vic_1: bool = False
    has_valid_cea_checksum: bool = True
    has_valid_displayid_checksum: bool = True
    nonconformant_hf_vsdb_position: bool = False
    nonconformant_cea861_640x480: bool = False

    # Warnings
    warning_excessive_dotclock_correction: bool = False
    warning_zero_preferred_refresh: bool = False
    warning_extension_count_mismatch: bool = False
    warning_trailing_bytes: bool = False

    observed: ObservedRanges = Field(default_factory=ObservedRanges)
    monitor_ranges: MonitorRanges | None = None

    def claims(self, revision: int) -> bool:
        """True if the EDID claims version 1.``revision`` or newer."""
        return self.claimed_revision is not None and self.claimed_revision >= revision


class ConformanceIssue(BaseModel):
    """One unmet rule, reported with the verdict."""

    rule_id: str
    scope: RuleScope
    verdict: Verdict
    message: str
    details: list[str] = Field(default_factory=list)


class ConformanceReport(BaseModel):
    """Final verdict computed once the decode pass has completed."""

    verdict: Verdict = Verdict.PASS
    claimed_revision: int | None = None
    issues: list[ConformanceIssue] = Field(default_factory=list)
    rules_checked: int = 0
    lines: list[str] = Field(default_factory=list)

    @property
    def conformant(self) -> bool:
        return self.verdict != Verdict.FAIL

    @property
    def fail_count(self) -> int:
        return sum(1 for i in self.issues if i.verdict == Verdict.FAIL)

    @property
    def warn_count(self) -> int:
        return sum(1 for i in self.issues if i.verdict == Verdict.WARN)

    def by_scope(self, scope: RuleScope) -> list[ConformanceIssue]:
        return [i for i in self.issues if i.scope == scope]


def _min(current: int | None, value: int) -> int:
    return value if current is None else min(current, value)


def _max(current: int | None, value: int) -> int:
    return value if current is None else max(current, value)
