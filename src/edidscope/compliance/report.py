"""Standalone HTML conformance report generator.

Produces a self-contained HTML file with inline CSS and SVG charts.
No external dependencies required to view the report.
"""

from __future__ import annotations

import html

from edidscope import __version__
from edidscope.compliance.models import (
    SCOPE_DISPLAY_NAMES,
    ConformanceIssue,
    MonitorRanges,
    ObservedRanges,
    RuleScope,
)
from edidscope.models.result import DecodeResult

# Dark theme colours
_BG = "#0d1117"
_BG2 = "#161b22"
_TEXT = "#e6edf3"
_TEXT2 = "#8b949e"
_BORDER = "#30363d"
_CYAN = "#00d4ff"
_GREEN = "#3fb950"
_RED = "#f85149"
_YELLOW = "#d29922"
_GRAY = "#484f58"

_VERDICT_COLORS: dict[str, str] = {
    "pass": _GREEN,
    "fail": _RED,
    "warn": _YELLOW,
}

_SECTION_ORDER = (
    RuleScope.EDID_1_3,
    RuleScope.EDID_1_2,
    RuleScope.EDID_1_0,
    RuleScope.ALWAYS,
    RuleScope.RANGE,
    RuleScope.EXTENSION,
    RuleScope.WARNING,
)


def generate_report(result: DecodeResult, source: str = "") -> str:
    """Generate a complete standalone HTML conformance report."""
    sections = [
        _header(result, source),
        _executive_summary(result),
    ]

    for scope in _SECTION_ORDER:
        issues = result.report.by_scope(scope)
        if issues:
            sections.append(_scope_section(scope, issues))

    if result.state.monitor_ranges is not None:
        sections.append(_range_chart(result.state.observed, result.state.monitor_ranges))

    sections.append(_decode_listing(result))
    sections.append(_footer(result))

    body = "\n".join(sections)
    title = result.monitor_name or result.manufacturer
    return f"""<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="UTF-8">
<meta name="viewport" content="width=device-width, initial-scale=1.0">
<title>EDID Conformance Report - {_esc(title)}</title>
{_css()}
</head>
<body>
{body}
</body>
</html>"""


def _css() -> str:
    return f"""<style>
* {{ margin: 0; padding: 0; box-sizing: border-box; }}
body {{
    background: {_BG};
    color: {_TEXT};
    font-family: 'JetBrains Mono', 'Consolas', 'Courier New', monospace;
    font-size: 14px;
    line-height: 1.6;
    padding: 32px;
    max-width: 1200px;
    margin: 0 auto;
}}
h1 {{ color: {_CYAN}; font-size: 24px; margin-bottom: 8px; }}
h2 {{ color: {_TEXT}; font-size: 18px; margin: 24px 0 12px 0; border-bottom: 1px solid {_BORDER}; padding-bottom: 6px; }}
.card {{
    background: {_BG2};
    border: 1px solid {_BORDER};
    border-radius: 8px;
    padding: 20px;
    margin-bottom: 16px;
}}
.info-table {{ width: 100%; border-collapse: collapse; margin: 8px 0; }}
.info-table td {{ padding: 4px 12px 4px 0; }}
.info-table td:first-child {{ color: {_TEXT2}; white-space: nowrap; width: 160px; }}
.results-table {{ width: 100%; border-collapse: collapse; margin: 8px 0; }}
.results-table th {{
    text-align: left; padding: 8px 12px;
    background: {_BG}; color: {_TEXT2};
    border-bottom: 2px solid {_BORDER};
    font-size: 12px; text-transform: uppercase;
}}
.results-table td {{
    padding: 6px 12px;
    border-bottom: 1px solid {_BORDER};
    font-size: 13px;
}}
.verdict-badge {{
    display: inline-block; padding: 2px 10px;
    border-radius: 12px; font-size: 12px;
    font-weight: bold; text-transform: uppercase;
}}
.summary-bar {{ display: flex; gap: 16px; flex-wrap: wrap; margin: 12px 0; }}
.summary-stat {{
    display: flex; flex-direction: column;
    align-items: center; min-width: 80px;
}}
.summary-stat .value {{ font-size: 28px; font-weight: bold; }}
.summary-stat .label {{ font-size: 11px; color: {_TEXT2}; text-transform: uppercase; }}
.chart-container {{ margin: 12px 0; }}
pre.listing {{ white-space: pre-wrap; font-size: 12px; color: {_TEXT2}; }}
.footer {{
    margin-top: 32px; padding-top: 16px;
    border-top: 1px solid {_BORDER};
    color: {_TEXT2}; font-size: 12px;
    text-align: center;
}}
</style>"""


def _header(result: DecodeResult, source: str) -> str:
    revision = result.report.claimed_revision
    claimed = f"1.{revision}" if revision is not None else "unknown"
    return f"""<div class="card">
<h1>EDID Conformance Report</h1>
<table class="info-table">
<tr><td>Manufacturer</td><td>{_esc(result.manufacturer)}</td></tr>
<tr><td>Monitor Name</td><td>{_esc(result.monitor_name or "-")}</td></tr>
<tr><td>Claimed Revision</td><td>{_esc(claimed)}</td></tr>
<tr><td>Blocks Decoded</td><td>{result.block_count} (extension count {result.declared_extensions})</td></tr>
<tr><td>Source</td><td>{_esc(source or "-")}</td></tr>
</table>
</div>"""


def _executive_summary(result: DecodeResult) -> str:
    report = result.report
    verdict_color = _VERDICT_COLORS.get(report.verdict.value, _GRAY)
    total = report.rules_checked
    passed = max(total - report.fail_count - report.warn_count, 0)

    bar_width = 600
    segments = []
    offset = 0.0
    for count, color in [
        (passed, _GREEN),
        (report.warn_count, _YELLOW),
        (report.fail_count, _RED),
    ]:
        if count > 0 and total > 0:
            w = (count / total) * bar_width
            segments.append(f'<rect x="{offset}" y="0" width="{w}" height="20" fill="{color}" rx="2"/>')
            offset += w

    svg_bar = f"""<svg width="{bar_width}" height="20" class="chart-container">
{''.join(segments)}
</svg>"""

    return f"""<div class="card">
<h2>Executive Summary</h2>
<div class="summary-bar">
    <div class="summary-stat">
        <span class="value" style="color: {verdict_color}">{report.verdict.value.upper()}</span>
        <span class="label">Overall</span>
    </div>
    <div class="summary-stat">
        <span class="value" style="color: {_GREEN}">{passed}</span>
        <span class="label">Pass</span>
    </div>
    <div class="summary-stat">
        <span class="value" style="color: {_RED}">{report.fail_count}</span>
        <span class="label">Fail</span>
    </div>
    <div class="summary-stat">
        <span class="value" style="color: {_YELLOW}">{report.warn_count}</span>
        <span class="label">Warn</span>
    </div>
    <div class="summary-stat">
        <span class="value" style="color: {_TEXT2}">{total}</span>
        <span class="label">Rules</span>
    </div>
</div>
{svg_bar}
</div>"""


def _scope_section(scope: RuleScope, issues: list[ConformanceIssue]) -> str:
    rows = []
    for issue in issues:
        v_color = _VERDICT_COLORS.get(issue.verdict.value, _GRAY)
        details = "<br>".join(_esc(d) for d in issue.details)
        rows.append(f"""<tr>
<td>{_esc(issue.rule_id)}</td>
<td><span class="verdict-badge" style="background: {v_color}20; color: {v_color}">{issue.verdict.value.upper()}</span></td>
<td>{_esc(issue.message)}</td>
<td style="color: {_TEXT2}">{details}</td>
</tr>""")

    return f"""<div class="card">
<h2>{_esc(SCOPE_DISPLAY_NAMES[scope])}</h2>
<table class="results-table">
<thead><tr>
<th>Rule</th><th>Verdict</th><th>Message</th><th>Details</th>
</tr></thead>
<tbody>
{''.join(rows)}
</tbody>
</table>
</div>"""


def _range_chart(observed: ObservedRanges, limits: MonitorRanges) -> str:
    """SVG bars of the observed timing span against the declared limits."""
    axes = [
        ("Vertical (Hz)", observed.min_vert_freq_hz, observed.max_vert_freq_hz,
         limits.min_vert_freq_hz, limits.max_vert_freq_hz),
        ("Horizontal (Hz)", observed.min_hor_freq_hz, observed.max_hor_freq_hz,
         limits.min_hor_freq_hz, limits.max_hor_freq_hz),
    ]
    if limits.max_pixclk_khz is not None:
        axes.append(("Pixel clock (kHz)", 0 if observed.max_pixclk_khz is not None else None,
                     observed.max_pixclk_khz, 0, limits.max_pixclk_khz))

    chart_width = 600
    label_width = 140
    bar_height = 22
    row_height = 3 * bar_height
    avail_width = chart_width - label_width - 20
    chart_height = len(axes) * row_height + 20

    rows = []
    for i, (name, obs_lo, obs_hi, lim_lo, lim_hi) in enumerate(axes):
        scale_max = max(v for v in (obs_hi, lim_hi, 1) if v is not None) * 1.1
        y = 10 + i * row_height

        def _x(value: int) -> float:
            return label_width + (value / scale_max) * avail_width

        rows.append(
            f'<text x="0" y="{y + 15}" fill="{_TEXT2}" font-size="11">{_esc(name)}</text>'
            f'<rect x="{_x(lim_lo)}" y="{y}" width="{_x(lim_hi) - _x(lim_lo)}" '
            f'height="{bar_height}" fill="{_CYAN}40" rx="3"/>'
        )
        if obs_lo is not None and obs_hi is not None:
            inside = lim_lo <= obs_lo and obs_hi <= lim_hi
            color = _GREEN if inside else _RED
            rows.append(
                f'<rect x="{_x(obs_lo)}" y="{y + 6}" width="{max(_x(obs_hi) - _x(obs_lo), 2)}" '
                f'height="{bar_height - 12}" fill="{color}" rx="2"/>'
                f'<text x="{label_width}" y="{y + bar_height + 14}" fill="{_TEXT}" font-size="11">'
                f'observed {obs_lo} - {obs_hi}, declared {lim_lo} - {lim_hi}</text>'
            )

    return f"""<div class="card">
<h2>Monitor Ranges</h2>
<svg width="{chart_width}" height="{chart_height}" class="chart-container">
{''.join(rows)}
</svg>
</div>"""


def _decode_listing(result: DecodeResult) -> str:
    return f"""<div class="card">
<h2>Decoded Contents</h2>
<pre class="listing">{_esc(result.text)}</pre>
</div>"""


def _footer(result: DecodeResult) -> str:
    return f"""<div class="footer">
Generated by edidscope {_esc(__version__)} | {_esc(result.manufacturer)} | {result.block_count} block(s)
</div>"""


def _esc(text: str) -> str:
    """HTML-escape a string."""
    return html.escape(str(text))
