"""Report renderers: JSON, Markdown, and a Rich console view."""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING

from principia.engine.scoring import health_description
from principia.engine.serialize import report_to_dict
from principia.models import SEVERITY_ORDER, ComplianceStatus, TrendDirection
from principia.rules.severity import severity_display_name

if TYPE_CHECKING:
    from pathlib import Path

    from principia.models import AuditReport

logger = logging.getLogger(__name__)

_DIRECTION_ARROWS: dict[TrendDirection, str] = {
    TrendDirection.IMPROVING: "↑",
    TrendDirection.DECLINING: "↓",
    TrendDirection.STABLE: "→",
}

_SEVERITY_STYLES: dict[str, str] = {
    "critical": "bold red",
    "high": "red",
    "medium": "yellow",
    "low": "dim",
}

_LABEL_STYLES: dict[str, str] = {
    "Excellent": "bold green",
    "Good": "green",
    "Fair": "yellow",
    "Poor": "bold red",
}

# Per-severity cap on violations listed in the Markdown detail section.
MAX_LISTED_PER_SEVERITY = 50


def _signed(value: float, fmt: str = "d") -> str:
    return f"{value:+{fmt}}"


# ---------------------------------------------------------------------------
# JSON
# ---------------------------------------------------------------------------


def format_json(report: AuditReport) -> str:
    return json.dumps(report_to_dict(report), ensure_ascii=False, indent=2)


# ---------------------------------------------------------------------------
# Markdown
# ---------------------------------------------------------------------------


def format_markdown(report: AuditReport) -> str:
    """Render *report* as a Markdown document suitable for PR comments."""
    run = report.run
    s = report.summary
    lines: list[str] = []

    lines.append("# Compliance Audit Report")
    lines.append("")
    lines.append(f"- **Run:** `{run.id}` ({run.timestamp.isoformat()})")
    lines.append(f"- **Ruleset:** {run.ruleset_version}")
    lines.append(f"- **Branch:** {run.branch} @ `{run.commit[:12]}`")
    lines.append(f"- **Duration:** {run.duration_ms:.0f} ms")
    lines.append("")

    lines.append("## Summary")
    lines.append("")
    lines.append(f"**Health score: {s.health_score}/100** ({health_description(s.health_score)})")
    lines.append("")
    lines.append("| Metric | Value |")
    lines.append("|--------|-------|")
    lines.append(f"| Files analyzed | {s.files_analyzed} |")
    lines.append(f"| Total violations | {s.total_violations} |")
    for sev in SEVERITY_ORDER:
        lines.append(f"| {severity_display_name(sev)} | {s.severity_counts.get(sev)} |")
    lines.append(f"| Files with errors | {s.files_with_errors} |")
    lines.append(f"| Analyzer faults | {s.analyzer_faults} |")
    lines.append(f"| Lowest compliance | {s.top_violated_principle} |")
    lines.append(f"| Highest compliance | {s.top_compliant_principle} |")
    lines.append("")

    if report.trend is not None:
        t = report.trend
        lines.append("## Trend")
        lines.append("")
        note = " (approximate: runs used different rules or weights)" if t.approximate else ""
        lines.append(
            f"{_DIRECTION_ARROWS[t.direction]} **{t.direction.value}**{note}: "
            f"score {_signed(t.health_score_delta)} vs `{t.previous_run_id}` "
            f"({t.previous_health_score}), violations {_signed(t.violation_delta)}"
        )
        lines.append("")

    lines.append("## Principles")
    lines.append("")
    lines.append("| Principle | Weight | Checks | Passed | Violations | Compliance | Change |")
    lines.append("|-----------|-------:|-------:|-------:|-----------:|-----------:|-------:|")
    for p in run.principles:
        if not p.enabled:
            lines.append(f"| {p.principle_name} | {p.weight:.2f} | - | - | - | not evaluated | |")
            continue
        change = ""
        if report.trend is not None and p.principle_id in report.trend.principle_deltas:
            change = _signed(report.trend.principle_deltas[p.principle_id], ".1f")
        lines.append(
            f"| {p.principle_name} | {p.weight:.2f} | {p.total_checks} | {p.passed_checks} "
            f"| {p.failed_checks} | {p.compliance_percentage:.1f}% | {change} |"
        )
    lines.append("")

    if report.recommendations:
        lines.append("## Recommendations")
        lines.append("")
        for idx, rec in enumerate(report.recommendations, start=1):
            lines.append(f"{idx}. {rec}")
        lines.append("")

    if s.total_violations:
        lines.append("## Violations")
        lines.append("")
        for sev in SEVERITY_ORDER:
            found = report.violations_by_severity.get(sev, ())
            if not found:
                continue
            lines.append(f"### {severity_display_name(sev)} ({len(found)})")
            lines.append("")
            for v in found[:MAX_LISTED_PER_SEVERITY]:
                lines.append(f"- `{v.file_path}:{v.line}` **{v.rule_id}**: {v.message}")
            if len(found) > MAX_LISTED_PER_SEVERITY:
                lines.append(f"- ... and {len(found) - MAX_LISTED_PER_SEVERITY} more")
            lines.append("")

    errored = [f for f in report.violations_by_file.values() if f.status is ComplianceStatus.ERROR]
    if errored or report.diagnostics:
        lines.append("## Diagnostics")
        lines.append("")
        for f in errored:
            lines.append(f"- `{f.file_path}`: could not be analyzed ({f.error})")
        for d in report.diagnostics:
            if d.kind == "parse_error":
                continue
            where = f" `{d.file_path}`" if d.file_path else ""
            lines.append(f"- {d.kind}{where}: {d.message}")
        lines.append("")

    return "\n".join(lines)


# ---------------------------------------------------------------------------
# Console (Rich)
# ---------------------------------------------------------------------------


def format_console(report: AuditReport, *, width: int = 100, color: bool = True) -> str:
    """Render *report* for a terminal and return the captured text."""
    from io import StringIO

    from rich.console import Console
    from rich.table import Table
    from rich.text import Text

    buf = StringIO()
    console = Console(file=buf, force_terminal=color, no_color=not color, width=width)
    s = report.summary

    console.print()
    console.rule("[bold]Compliance Audit[/bold]", style="blue")
    console.print()

    score = Text()
    score.append("  Health Score: ", style="bold")
    score.append(f"{s.health_score}", style=_LABEL_STYLES.get(s.health_label, "bold"))
    score.append(" / 100  ", style="bold")
    score.append(s.health_label, style=_LABEL_STYLES.get(s.health_label, ""))
    if report.trend is not None:
        t = report.trend
        score.append(
            f"   {_DIRECTION_ARROWS[t.direction]} {_signed(t.health_score_delta)}"
            + (" (approx.)" if t.approximate else ""),
            style="dim",
        )
    console.print(score)
    console.print(
        f"  Files: [bold]{s.files_analyzed}[/]   Violations: [bold]{s.total_violations}[/]   "
        f"Errors: [bold]{s.files_with_errors}[/]   Analyzer faults: [bold]{s.analyzer_faults}[/]"
    )
    console.print()

    table = Table(show_header=True, box=None, padding=(0, 1))
    table.add_column("Principle", style="cyan")
    table.add_column("Weight", justify="right")
    table.add_column("Checks", justify="right")
    table.add_column("Violations", justify="right")
    table.add_column("Compliance", justify="right")
    for p in report.run.principles:
        if not p.enabled:
            table.add_row(p.principle_name, f"{p.weight:.2f}", "-", "-", "skipped")
            continue
        table.add_row(
            p.principle_name,
            f"{p.weight:.2f}",
            str(p.total_checks),
            str(p.failed_checks),
            f"{p.compliance_percentage:.1f}%",
        )
    console.print(table)
    console.print()

    counts = Text("  ")
    for sev in SEVERITY_ORDER:
        counts.append(
            f"{severity_display_name(sev)}: {s.severity_counts.get(sev)}  ",
            style=_SEVERITY_STYLES[sev.value],
        )
    console.print(counts)

    if report.recommendations:
        console.print()
        console.rule("Top Recommendations", style="dim")
        for idx, rec in enumerate(report.recommendations, start=1):
            console.print(f"  {idx}. {rec}", markup=False)
    console.print()

    return buf.getvalue()


# ---------------------------------------------------------------------------
# Files
# ---------------------------------------------------------------------------

_FILE_RENDERERS = {
    "json": (format_json, "json"),
    "markdown": (format_markdown, "md"),
}


def write_reports(report: AuditReport, output_dir: Path, formats: tuple[str, ...]) -> list[Path]:
    """Write the file-based formats of *report* into *output_dir*.

    ``console`` is not a file format and is skipped here.  Returns the
    written paths.
    """
    written: list[Path] = []
    targets = [f for f in formats if f in _FILE_RENDERERS]
    if not targets:
        return written
    output_dir.mkdir(parents=True, exist_ok=True)
    for fmt in targets:
        render, ext = _FILE_RENDERERS[fmt]
        path = output_dir / f"audit-{report.run.id}.{ext}"
        path.write_text(render(report) + "\n", encoding="utf-8")
        logger.debug("Wrote %s report to %s", fmt, path)
        written.append(path)
    return written
