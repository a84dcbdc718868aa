"""Report assembly: summary, per-file and per-severity indexes, recommendations."""

from __future__ import annotations

from collections import defaultdict
from typing import TYPE_CHECKING

from principia.engine.scoring import health_label, highest_compliance, lowest_compliance
from principia.models import (
    SEVERITY_ORDER,
    AuditReport,
    AuditSummary,
    ComplianceStatus,
    SeverityCount,
    Violation,
)

if TYPE_CHECKING:
    from collections.abc import Sequence

    from principia.models import AuditRun, Diagnostic, FileAnalysis, Severity, TrendData

MAX_RECOMMENDATIONS = 10


def build_recommendations(
    violations: Sequence[Violation], limit: int = MAX_RECOMMENDATIONS
) -> tuple[str, ...]:
    """Group violations by rule and rank the groups.

    Ranking: most severe first, then most occurrences, then rule id.
    """
    groups: dict[str, list[Violation]] = defaultdict(list)
    for v in violations:
        groups[v.rule_id].append(v)

    def rank(item: tuple[str, list[Violation]]) -> tuple[int, int, str]:
        rule_id, found = item
        worst = min(v.severity.rank for v in found)
        return (worst, -len(found), rule_id)

    lines: list[str] = []
    for rule_id, found in sorted(groups.items(), key=rank)[:limit]:
        worst = min(found, key=lambda v: v.severity.rank).severity
        files = len({v.file_path for v in found})
        noun = "occurrence" if len(found) == 1 else "occurrences"
        file_noun = "file" if files == 1 else "files"
        lines.append(
            f"[{worst.value.upper()}] {rule_id}: {len(found)} {noun} in {files} {file_noun}. "
            f"{found[0].remediation.description}"
        )
    return tuple(lines)


def assemble_report(
    run: AuditRun,
    files: Sequence[FileAnalysis],
    diagnostics: Sequence[Diagnostic] = (),
    trend: TrendData | None = None,
) -> AuditReport:
    """Build the format-agnostic :class:`AuditReport` for *run*."""
    violations = run.violations
    by_severity: dict[Severity, tuple[Violation, ...]] = {
        sev: tuple(v for v in violations if v.severity is sev) for sev in SEVERITY_ORDER
    }
    by_file = {f.file_path: f for f in sorted(files, key=lambda f: f.file_path)}

    summary = AuditSummary(
        health_score=run.health_score,
        health_label=health_label(run.health_score),
        files_analyzed=run.files_analyzed,
        total_violations=run.total_violations,
        severity_counts=SeverityCount.from_violations(violations),
        top_violated_principle=lowest_compliance(run.principles),
        top_compliant_principle=highest_compliance(run.principles),
        files_with_errors=sum(1 for f in files if f.status is ComplianceStatus.ERROR),
        analyzer_faults=sum(1 for d in diagnostics if d.kind == "analyzer_fault"),
    )

    return AuditReport(
        run=run,
        summary=summary,
        violations_by_file=by_file,
        violations_by_severity=by_severity,
        recommendations=build_recommendations(violations),
        trend=trend,
        diagnostics=tuple(diagnostics),
    )
