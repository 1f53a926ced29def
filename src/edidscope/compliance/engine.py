"""Final conformance verdict.

Rules are evaluated once, after every block has been decoded, against the
ConformanceState the decoders filled in. Each rule is a row in a table:
identifier, scope, failure predicate and report message. Revision-gated
scopes are mutually exclusive (1.3 rules, else 1.2, else 1.0); the
remaining scopes always apply.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

from edidscope.compliance.models import (
    ConformanceIssue,
    ConformanceReport,
    ConformanceState,
    RuleScope,
    Verdict,
)
from edidscope.models.configuration import DecodeOptions
from edidscope.utils.logging import get_logger

logger = get_logger(__name__)

Predicate = Callable[[ConformanceState, DecodeOptions], bool]
Message = Callable[[ConformanceState], str]


@dataclass(frozen=True)
class Rule:
    """A single conformance rule. ``failed`` returns True when violated."""

    rule_id: str
    scope: RuleScope
    failed: Predicate
    message: Message | str

    def describe(self, state: ConformanceState) -> str:
        return self.message if isinstance(self.message, str) else self.message(state)


def _serial_conflict(state: ConformanceState, options: DecodeOptions) -> bool:
    if not (state.has_serial_number and state.has_serial_string):
        return False
    return state.has_cea861 or not options.couple_serial_rule_to_cea


def _name_not_terminated(state: ConformanceState, options: DecodeOptions) -> bool:
    return state.has_name_descriptor and not state.name_descriptor_terminated


RULES: tuple[Rule, ...] = (
    # EDID 1.3 and newer
    Rule("srgb_chromaticity", RuleScope.EDID_1_3,
         lambda s, o: s.nonconformant_srgb_chromaticity,
         "sRGB is signaled, but the chromaticities do not match"),
    Rule("digital_display_1_3", RuleScope.EDID_1_3,
         lambda s, o: bool(s.nonconformant_digital_display),
         lambda s: f"Digital display field contains garbage: {s.nonconformant_digital_display:x}"),
    Rule("cea861_640x480", RuleScope.EDID_1_3,
         lambda s, o: s.nonconformant_cea861_640x480,
         "Required 640x480p60 timings are missing in the established timings "
         "and/or in the SVD list (VIC 1)"),
    Rule("hf_vsdb_position", RuleScope.EDID_1_3,
         lambda s, o: s.nonconformant_hf_vsdb_position,
         "HDMI Forum VSDB did not immediately follow the HDMI VSDB"),
    Rule("name_descriptor_missing", RuleScope.EDID_1_3,
         lambda s, o: not s.has_name_descriptor,
         "Missing name descriptor"),
    Rule("name_descriptor_terminated_1_3", RuleScope.EDID_1_3,
         _name_not_terminated,
         "Name descriptor not terminated with a newline"),
    Rule("preferred_timing", RuleScope.EDID_1_3,
         lambda s, o: not s.has_preferred_timing,
         "Missing preferred timing"),
    Rule("range_descriptor_missing", RuleScope.EDID_1_3,
         lambda s, o: not s.has_range_descriptor,
         "Missing monitor ranges"),
    Rule("descriptor_padding", RuleScope.EDID_1_3,
         lambda s, o: not s.has_valid_descriptor_pad,
         "Invalid descriptor block padding"),
    Rule("string_termination", RuleScope.EDID_1_3,
         lambda s, o: not s.has_valid_string_termination,
         "Detailed block string not properly terminated"),

    # EDID 1.2
    Rule("digital_display_1_2", RuleScope.EDID_1_2,
         lambda s, o: bool(s.nonconformant_digital_display),
         lambda s: f"Digital display field contains garbage: {s.nonconformant_digital_display:x}"),
    Rule("name_descriptor_terminated_1_2", RuleScope.EDID_1_2,
         _name_not_terminated,
         "Name descriptor not terminated with a newline"),

    # EDID 1.0 and 1.1
    Rule("monitor_descriptors_1_0", RuleScope.EDID_1_0,
         lambda s, o: s.seen_non_detailed_descriptor,
         "Has descriptor blocks other than detailed timings"),

    # Independent of the claimed revision
    Rule("extensions", RuleScope.ALWAYS,
         lambda s, o: s.nonconformant_extensions > 0,
         lambda s: f"Has {s.nonconformant_extensions} nonconformant extension block(s)"),
    Rule("header", RuleScope.ALWAYS,
         lambda s, o: not s.has_valid_header,
         "Missing or corrupt EDID header"),
    Rule("checksum", RuleScope.ALWAYS,
         lambda s, o: not s.has_valid_checksum,
         "Block has broken checksum"),
    Rule("cvt_codes", RuleScope.ALWAYS,
         lambda s, o: not s.has_valid_cvt,
         "Broken 3-byte CVT blocks"),
    Rule("year", RuleScope.ALWAYS,
         lambda s, o: not s.has_valid_year,
         "Bad year of manufacture"),
    Rule("week", RuleScope.ALWAYS,
         lambda s, o: not s.has_valid_week,
         "Bad week of manufacture"),
    Rule("serial_conflict", RuleScope.ALWAYS,
         _serial_conflict,
         "Both the serial number and the serial string are set"),
    Rule("detailed_blocks", RuleScope.ALWAYS,
         lambda s, o: not s.has_valid_detailed_blocks,
         "Detailed blocks filled with garbage"),
    Rule("dummy_block", RuleScope.ALWAYS,
         lambda s, o: not s.has_valid_dummy_block,
         "Dummy block filled with garbage"),
    Rule("manufacturer_name", RuleScope.ALWAYS,
         lambda s, o: not s.manufacturer_name_well_formed,
         "Manufacturer name field contains garbage"),
    Rule("descriptor_ordering", RuleScope.ALWAYS,
         lambda s, o: not s.has_valid_descriptor_ordering,
         "Invalid detailed timing descriptor ordering"),
    Rule("range_descriptor", RuleScope.ALWAYS,
         lambda s, o: not s.has_valid_range_descriptor,
         "Range descriptor contains garbage"),
    Rule("max_dotclock", RuleScope.ALWAYS,
         lambda s, o: not s.has_valid_max_dotclock,
         "Range descriptor does not set max dotclock"),
    Rule("standard_timings", RuleScope.ALWAYS,
         lambda s, o: not s.has_valid_standard_timings,
         "Standard timing with zero horizontal resolution"),
    Rule("name_continued", RuleScope.ALWAYS,
         lambda s, o: s.name_descriptor_continued,
         "Name descriptor continued in a second descriptor slot"),

    # Per-extension checksums, reported in their own sections
    Rule("cea_checksum", RuleScope.EXTENSION,
         lambda s, o: not s.has_valid_cea_checksum,
         "CEA extension block has broken checksum"),
    Rule("displayid_checksum", RuleScope.EXTENSION,
         lambda s, o: not s.has_valid_displayid_checksum,
         "DisplayID extension block has broken checksum"),

    # Warnings never affect the verdict
    Rule("excessive_dotclock_correction", RuleScope.WARNING,
         lambda s, o: s.warning_excessive_dotclock_correction,
         "CVT block corrects dotclock by more than 9.75MHz"),
    Rule("zero_preferred_refresh", RuleScope.WARNING,
         lambda s, o: s.warning_zero_preferred_refresh,
         "CVT block does not set preferred refresh rate"),
    Rule("extension_count_mismatch", RuleScope.WARNING,
         lambda s, o: s.warning_extension_count_mismatch,
         "Declared extension count does not match the available data"),
    Rule("trailing_bytes", RuleScope.WARNING,
         lambda s, o: s.warning_trailing_bytes,
         "Input ends with a partial block, which was ignored"),
)

_HEADLINES: dict[RuleScope, str] = {
    RuleScope.EDID_1_3: "EDID block does NOT conform to EDID 1.3!",
    RuleScope.EDID_1_2: "EDID block does NOT conform to EDID 1.2!",
    RuleScope.EDID_1_0: "EDID block does NOT conform to EDID 1.0!",
    RuleScope.ALWAYS: "EDID block does not conform at all!",
}


def revision_scope(state: ConformanceState) -> RuleScope | None:
    """Pick the single revision-gated rule family that applies."""
    if state.claims(3):
        return RuleScope.EDID_1_3
    if state.claims(2):
        return RuleScope.EDID_1_2
    if state.claimed_revision is not None:
        return RuleScope.EDID_1_0
    return None


def check_ranges(state: ConformanceState) -> ConformanceIssue | None:
    """Compare every observed timing extreme against the monitor range limits.

    Skipped when no valid range descriptor was seen. Axes that never
    received an observation are not compared, and the pixel clock is only
    compared when the descriptor declares a maximum.
    """
    limits = state.monitor_ranges
    if limits is None or not state.has_valid_range_descriptor:
        return None

    obs = state.observed
    out_of_range = (
        (obs.min_vert_freq_hz is not None and obs.min_vert_freq_hz < limits.min_vert_freq_hz)
        or (obs.max_vert_freq_hz is not None and obs.max_vert_freq_hz > limits.max_vert_freq_hz)
        or (obs.min_hor_freq_hz is not None and obs.min_hor_freq_hz < limits.min_hor_freq_hz)
        or (obs.max_hor_freq_hz is not None and obs.max_hor_freq_hz > limits.max_hor_freq_hz)
        or (
            limits.max_pixclk_khz is not None
            and obs.max_pixclk_khz is not None
            and obs.max_pixclk_khz > limits.max_pixclk_khz
        )
    )
    if not out_of_range:
        return None

    def _span(low: int | None, high: int | None) -> str:
        return f"{'-' if low is None else low} - {'-' if high is None else high}"

    clock = "-" if obs.max_pixclk_khz is None else f"{obs.max_pixclk_khz / 1000:.3f}"
    return ConformanceIssue(
        rule_id="monitor_ranges",
        scope=RuleScope.RANGE,
        verdict=Verdict.FAIL,
        message="One or more of the timings is out of range of the Monitor Ranges:",
        details=[
            f"Vertical Freq: {_span(obs.min_vert_freq_hz, obs.max_vert_freq_hz)} Hz",
            f"Horizontal Freq: {_span(obs.min_hor_freq_hz, obs.max_hor_freq_hz)} Hz",
            f"Maximum Clock: {clock} MHz",
        ],
    )


def evaluate(state: ConformanceState, options: DecodeOptions | None = None) -> ConformanceReport:
    """Evaluate every applicable rule and build the verdict report."""
    options = options or DecodeOptions()
    applicable = {revision_scope(state), RuleScope.ALWAYS, RuleScope.EXTENSION, RuleScope.WARNING}

    issues: list[ConformanceIssue] = []
    checked = 0
    for rule in RULES:
        if rule.scope not in applicable:
            continue
        checked += 1
        if not rule.failed(state, options):
            continue
        issues.append(ConformanceIssue(
            rule_id=rule.rule_id,
            scope=rule.scope,
            verdict=Verdict.WARN if rule.scope == RuleScope.WARNING else Verdict.FAIL,
            message=rule.describe(state),
        ))

    if state.monitor_ranges is not None and state.has_valid_range_descriptor:
        checked += 1
    range_issue = check_ranges(state)
    if range_issue is not None:
        issues.append(range_issue)

    if any(i.verdict == Verdict.FAIL for i in issues):
        verdict = Verdict.FAIL
    elif issues:
        verdict = Verdict.WARN
    else:
        verdict = Verdict.PASS

    report = ConformanceReport(
        verdict=verdict,
        claimed_revision=state.claimed_revision,
        issues=issues,
        rules_checked=checked,
    )
    report.lines = format_verdict(report)
    logger.debug("conformance_evaluated", verdict=verdict.value,
                failures=report.fail_count, warnings=report.warn_count)
    return report


def format_verdict(report: ConformanceReport) -> list[str]:
    """Render the verdict as report lines, grouped by rule family."""
    lines: list[str] = []
    for scope in (RuleScope.EDID_1_3, RuleScope.EDID_1_2, RuleScope.EDID_1_0):
        failed = report.by_scope(scope)
        if failed:
            lines.append(_HEADLINES[scope])
            lines.extend(f"\t{issue.message}" for issue in failed)

    for issue in report.by_scope(RuleScope.RANGE):
        lines.append(issue.message)
        lines.extend(f"  {detail}" for detail in issue.details)

    failed = report.by_scope(RuleScope.ALWAYS)
    if failed:
        lines.append(_HEADLINES[RuleScope.ALWAYS])
        lines.extend(f"\t{issue.message}" for issue in failed)

    for issue in report.by_scope(RuleScope.EXTENSION):
        lines.append(issue.message)

    lines.extend(f"Warning: {issue.message}" for issue in report.by_scope(RuleScope.WARNING))

    if report.conformant:
        lines.append("EDID conforms to the rules for its claimed revision")
    return lines
