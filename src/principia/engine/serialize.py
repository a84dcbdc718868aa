"""JSON-safe (de)serialization of audit reports.

Used both for the ``json`` report format and for the history store, so
``report_from_dict(report_to_dict(r))`` must reproduce *r*.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from principia.models import (
    SEVERITY_ORDER,
    AuditConfig,
    AuditReport,
    AuditRun,
    AuditSummary,
    ComplianceStatus,
    Diagnostic,
    FileAnalysis,
    PrincipleCompliance,
    Remediation,
    Severity,
    SeverityCount,
    TrendData,
    TrendDirection,
    Violation,
)

REPORT_SCHEMA_VERSION = 1

# ---------------------------------------------------------------------------
# To dict
# ---------------------------------------------------------------------------


def violation_to_dict(v: Violation) -> dict[str, Any]:
    return {
        "id": v.id,
        "file_path": v.file_path,
        "line": v.line,
        "end_line": v.end_line,
        "column": v.column,
        "principle_id": v.principle_id,
        "rule_id": v.rule_id,
        "severity": v.severity.value,
        "message": v.message,
        "remediation": {
            "description": v.remediation.description,
            "doc_reference": v.remediation.doc_reference,
            "example": v.remediation.example,
            "auto_fix_available": v.remediation.auto_fix_available,
            "estimated_effort": v.remediation.estimated_effort,
        },
        "snippet": v.snippet,
    }


def severity_count_to_dict(c: SeverityCount) -> dict[str, int]:
    return {
        "critical": c.critical,
        "high": c.high,
        "medium": c.medium,
        "low": c.low,
        "total": c.total,
    }


def config_to_dict(c: AuditConfig) -> dict[str, Any]:
    return {
        "ruleset_version": c.ruleset_version,
        "include": list(c.include),
        "exclude": list(c.exclude),
        "severity_overrides": {k: v.value for k, v in sorted(c.severity_overrides.items())},
        "report_formats": list(c.report_formats),
        "principles": list(c.principles) if c.principles is not None else None,
        "principle_weights": (
            dict(sorted(c.principle_weights.items())) if c.principle_weights is not None else None
        ),
        "output_dir": c.output_dir,
    }


def principle_to_dict(p: PrincipleCompliance) -> dict[str, Any]:
    return {
        "principle_id": p.principle_id,
        "principle_name": p.principle_name,
        "total_checks": p.total_checks,
        "passed_checks": p.passed_checks,
        "failed_checks": p.failed_checks,
        "compliance_percentage": p.compliance_percentage,
        "weight": p.weight,
        "enabled": p.enabled,
        "violations": [violation_to_dict(v) for v in p.violations],
    }


def run_to_dict(run: AuditRun) -> dict[str, Any]:
    return {
        "id": run.id,
        "timestamp": run.timestamp.isoformat(),
        "ruleset_version": run.ruleset_version,
        "branch": run.branch,
        "commit": run.commit,
        "files_analyzed": run.files_analyzed,
        "total_violations": run.total_violations,
        "health_score": run.health_score,
        "duration_ms": run.duration_ms,
        "config": config_to_dict(run.config),
        "principles": [principle_to_dict(p) for p in run.principles],
    }


def file_analysis_to_dict(f: FileAnalysis) -> dict[str, Any]:
    return {
        "file_path": f.file_path,
        "line_count": f.line_count,
        "status": f.status.value,
        "error": f.error,
        "principles_affected": list(f.principles_affected),
        "severity_counts": severity_count_to_dict(f.severity_counts),
        "violation_ids": [v.id for v in f.violations],
    }


def trend_to_dict(t: TrendData) -> dict[str, Any]:
    return {
        "previous_run_id": t.previous_run_id,
        "previous_timestamp": t.previous_timestamp.isoformat(),
        "previous_ruleset_version": t.previous_ruleset_version,
        "previous_health_score": t.previous_health_score,
        "previous_total_violations": t.previous_total_violations,
        "health_score_delta": t.health_score_delta,
        "violation_delta": t.violation_delta,
        "principle_deltas": dict(t.principle_deltas),
        "direction": t.direction.value,
        "approximate": t.approximate,
    }


def report_to_dict(report: AuditReport) -> dict[str, Any]:
    """Serialize *report* to a JSON-safe dict.

    Violations are stored once, under their principle; the per-file and
    per-severity indexes refer to them by id.
    """
    s = report.summary
    return {
        "schema_version": REPORT_SCHEMA_VERSION,
        "run": run_to_dict(report.run),
        "summary": {
            "health_score": s.health_score,
            "health_label": s.health_label,
            "files_analyzed": s.files_analyzed,
            "total_violations": s.total_violations,
            "severity_counts": severity_count_to_dict(s.severity_counts),
            "top_violated_principle": s.top_violated_principle,
            "top_compliant_principle": s.top_compliant_principle,
            "files_with_errors": s.files_with_errors,
            "analyzer_faults": s.analyzer_faults,
        },
        "violations_by_file": [
            file_analysis_to_dict(f) for _, f in sorted(report.violations_by_file.items())
        ],
        "violations_by_severity": {
            sev.value: [v.id for v in report.violations_by_severity.get(sev, ())]
            for sev in SEVERITY_ORDER
        },
        "trend": trend_to_dict(report.trend) if report.trend is not None else None,
        "recommendations": list(report.recommendations),
        "diagnostics": [
            {
                "kind": d.kind,
                "message": d.message,
                "file_path": d.file_path,
                "principle_id": d.principle_id,
            }
            for d in report.diagnostics
        ],
    }


# ---------------------------------------------------------------------------
# From dict
# ---------------------------------------------------------------------------


def violation_from_dict(data: dict[str, Any]) -> Violation:
    rem = data["remediation"]
    return Violation(
        id=data["id"],
        file_path=data["file_path"],
        line=int(data["line"]),
        end_line=data.get("end_line"),
        column=data.get("column"),
        principle_id=data["principle_id"],
        rule_id=data["rule_id"],
        severity=Severity(data["severity"]),
        message=data["message"],
        remediation=Remediation(
            description=rem["description"],
            doc_reference=rem.get("doc_reference"),
            example=rem.get("example"),
            auto_fix_available=bool(rem.get("auto_fix_available", False)),
            estimated_effort=rem.get("estimated_effort"),
        ),
        snippet=data.get("snippet"),
    )


def _severity_count_from_dict(data: dict[str, Any]) -> SeverityCount:
    return SeverityCount(
        critical=int(data["critical"]),
        high=int(data["high"]),
        medium=int(data["medium"]),
        low=int(data["low"]),
    )


def config_from_dict(data: dict[str, Any]) -> AuditConfig:
    principles = data.get("principles")
    weights = data.get("principle_weights")
    return AuditConfig(
        ruleset_version=data["ruleset_version"],
        include=tuple(data.get("include", ())),
        exclude=tuple(data.get("exclude", ())),
        severity_overrides={
            k: Severity(v) for k, v in data.get("severity_overrides", {}).items()
        },
        report_formats=tuple(data.get("report_formats", ())),
        principles=tuple(principles) if principles is not None else None,
        principle_weights={k: float(v) for k, v in weights.items()} if weights is not None else None,
        output_dir=data.get("output_dir", "audit-reports"),
    )


def run_from_dict(data: dict[str, Any]) -> AuditRun:
    principles = tuple(
        PrincipleCompliance(
            principle_id=p["principle_id"],
            principle_name=p["principle_name"],
            total_checks=int(p["total_checks"]),
            passed_checks=int(p["passed_checks"]),
            failed_checks=int(p["failed_checks"]),
            compliance_percentage=float(p["compliance_percentage"]),
            violations=tuple(violation_from_dict(v) for v in p["violations"]),
            weight=float(p["weight"]),
            enabled=bool(p.get("enabled", True)),
        )
        for p in data["principles"]
    )
    return AuditRun(
        id=data["id"],
        timestamp=datetime.fromisoformat(data["timestamp"]),
        ruleset_version=data["ruleset_version"],
        branch=data["branch"],
        commit=data["commit"],
        files_analyzed=int(data["files_analyzed"]),
        total_violations=int(data["total_violations"]),
        health_score=int(data["health_score"]),
        principles=principles,
        duration_ms=float(data["duration_ms"]),
        config=config_from_dict(data["config"]),
    )


def _take(pending: dict[str, list[Violation]], vid: str) -> Violation:
    found = pending.get(vid)
    if not found:
        msg = f"file index refers to unknown violation {vid!r}"
        raise ValueError(msg)
    return found.pop(0)


def report_from_dict(data: dict[str, Any]) -> AuditReport:
    """Rebuild an :class:`AuditReport` from :func:`report_to_dict` output.

    Raises ``KeyError``/``ValueError``/``TypeError`` on malformed input.
    """
    if not isinstance(data, dict):
        msg = f"report must be a mapping, got {type(data).__name__}"
        raise ValueError(msg)  # noqa: TRY004
    version = data.get("schema_version")
    if version != REPORT_SCHEMA_VERSION:
        msg = f"unsupported report schema version {version!r}"
        raise ValueError(msg)

    run = run_from_dict(data["run"])
    # Ids can repeat (same rule, same line); consume them in stored order.
    pending: dict[str, list[Violation]] = {}
    for v in run.violations:
        pending.setdefault(v.id, []).append(v)

    files: dict[str, FileAnalysis] = {}
    for f in data["violations_by_file"]:
        violations = tuple(_take(pending, vid) for vid in f["violation_ids"])
        files[f["file_path"]] = FileAnalysis(
            file_path=f["file_path"],
            line_count=int(f["line_count"]),
            violations=violations,
            status=ComplianceStatus(f["status"]),
            principles_affected=tuple(f["principles_affected"]),
            severity_counts=_severity_count_from_dict(f["severity_counts"]),
            error=f.get("error"),
        )

    by_severity = {
        sev: tuple(v for v in run.violations if v.severity is sev) for sev in SEVERITY_ORDER
    }

    s = data["summary"]
    summary = AuditSummary(
        health_score=int(s["health_score"]),
        health_label=s["health_label"],
        files_analyzed=int(s["files_analyzed"]),
        total_violations=int(s["total_violations"]),
        severity_counts=_severity_count_from_dict(s["severity_counts"]),
        top_violated_principle=s["top_violated_principle"],
        top_compliant_principle=s["top_compliant_principle"],
        files_with_errors=int(s["files_with_errors"]),
        analyzer_faults=int(s["analyzer_faults"]),
    )

    trend: TrendData | None = None
    t = data.get("trend")
    if t is not None:
        trend = TrendData(
            previous_run_id=t["previous_run_id"],
            previous_timestamp=datetime.fromisoformat(t["previous_timestamp"]),
            previous_ruleset_version=t["previous_ruleset_version"],
            previous_health_score=int(t["previous_health_score"]),
            previous_total_violations=int(t["previous_total_violations"]),
            health_score_delta=int(t["health_score_delta"]),
            violation_delta=int(t["violation_delta"]),
            principle_deltas={k: float(v) for k, v in t["principle_deltas"].items()},
            direction=TrendDirection(t["direction"]),
            approximate=bool(t.get("approximate", False)),
        )

    return AuditReport(
        run=run,
        summary=summary,
        violations_by_file=files,
        violations_by_severity=by_severity,
        recommendations=tuple(data.get("recommendations", ())),
        trend=trend,
        diagnostics=tuple(
            Diagnostic(
                kind=d["kind"],
                message=d["message"],
                file_path=d.get("file_path"),
                principle_id=d.get("principle_id"),
            )
            for d in data.get("diagnostics", ())
        ),
    )
