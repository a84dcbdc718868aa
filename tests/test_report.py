"""Tests for report assembly, serialization, and rendering."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import TYPE_CHECKING

import pytest
from conftest import make_run, make_violation

from principia.engine.report import assemble_report, build_recommendations
from principia.engine.serialize import report_from_dict, report_to_dict
from principia.engine.trend import compare_runs
from principia.models import (
    ComplianceStatus,
    Diagnostic,
    FileAnalysis,
    Severity,
    SeverityCount,
)
from principia.reporting import format_console, format_json, format_markdown, write_reports

if TYPE_CHECKING:
    from pathlib import Path

    from principia.models import AuditReport


def _files(run) -> list[FileAnalysis]:
    by_path: dict[str, list] = {}
    for v in run.violations:
        by_path.setdefault(v.file_path, []).append(v)
    files = [
        FileAnalysis(
            file_path=path,
            line_count=40,
            violations=tuple(vs),
            status=ComplianceStatus.VIOLATIONS,
            principles_affected=tuple(sorted({v.principle_id for v in vs})),
            severity_counts=SeverityCount.from_violations(vs),
        )
        for path, vs in by_path.items()
    ]
    files.append(
        FileAnalysis(
            file_path="app/broken.tsx",
            line_count=3,
            violations=(),
            status=ComplianceStatus.ERROR,
            principles_affected=(),
            severity_counts=SeverityCount(),
            error="syntax error at line 1",
        )
    )
    return files


@pytest.fixture()
def report() -> AuditReport:
    prev = make_run(
        run_id="2026-02-28-120000",
        timestamp=datetime(2026, 2, 28, 12, tzinfo=timezone.utc),
        health_score=70,
    )
    run = make_run(
        run_id="2026-03-01-120000",
        timestamp=datetime(2026, 3, 1, 12, tzinfo=timezone.utc),
        compliance={"principle-1-design-system": (10, 3), "principle-4-accessibility": (4, 1)},
    )
    diagnostics = [
        Diagnostic(kind="parse_error", message="syntax error at line 1", file_path="app/broken.tsx"),
        Diagnostic(
            kind="analyzer_fault",
            message="boom",
            file_path="app/index.tsx",
            principle_id="principle-5-performance",
        ),
    ]
    return assemble_report(run, _files(run), diagnostics, compare_runs(run, prev))


class TestAssembleReport:
    def test_summary(self, report: AuditReport) -> None:
        s = report.summary
        assert s.total_violations == 4
        assert s.severity_counts.total == 4
        assert s.files_with_errors == 1
        assert s.analyzer_faults == 1
        # 0.2 * 70 + 0.1 * 75 + 0.7 * 100 = 91.5
        assert s.health_score == 92
        assert s.health_label == "Excellent"
        assert s.top_violated_principle == "Design System Adherence"

    def test_every_severity_key_present(self, report: AuditReport) -> None:
        assert set(report.violations_by_severity) == set(Severity)
        assert len(report.violations_by_severity[Severity.HIGH]) == 4
        assert report.violations_by_severity[Severity.CRITICAL] == ()

    def test_files_sorted(self, report: AuditReport) -> None:
        assert list(report.violations_by_file) == sorted(report.violations_by_file)

    def test_principle_results(self, report: AuditReport) -> None:
        assert report.principle_results == report.run.principles


class TestRecommendations:
    def test_ranked_by_severity_then_count_then_rule(self) -> None:
        vs = [
            make_violation(line=1, rule_id="b-rule", severity=Severity.MEDIUM),
            make_violation(line=2, rule_id="b-rule", severity=Severity.MEDIUM),
            make_violation(line=3, rule_id="a-rule", severity=Severity.MEDIUM),
            make_violation(line=4, rule_id="z-rule", severity=Severity.CRITICAL),
            make_violation(line=5, rule_id="c-rule", severity=Severity.MEDIUM),
        ]
        recs = build_recommendations(vs)
        assert [r.split(":")[0] for r in recs] == [
            "[CRITICAL] z-rule",
            "[MEDIUM] b-rule",
            "[MEDIUM] a-rule",
            "[MEDIUM] c-rule",
        ]
        assert "2 occurrences in 1 file" in recs[1]

    def test_capped_at_ten(self) -> None:
        vs = [make_violation(line=i, rule_id=f"rule-{i:02d}") for i in range(15)]
        assert len(build_recommendations(vs)) == 10

    def test_empty(self) -> None:
        assert build_recommendations([]) == ()


class TestSerialization:
    def test_round_trip(self, report: AuditReport) -> None:
        data = json.loads(json.dumps(report_to_dict(report)))
        restored = report_from_dict(data)
        assert restored.run == report.run
        assert restored.summary == report.summary
        assert restored.trend == report.trend
        assert restored.diagnostics == report.diagnostics
        assert restored.recommendations == report.recommendations
        assert restored.violations_by_file == report.violations_by_file
        assert restored.violations_by_severity == report.violations_by_severity

    def test_rejects_unknown_schema(self, report: AuditReport) -> None:
        data = report_to_dict(report)
        data["schema_version"] = 99
        with pytest.raises(ValueError, match="schema version"):
            report_from_dict(data)

    def test_rejects_non_mapping(self) -> None:
        with pytest.raises(ValueError, match="mapping"):
            report_from_dict([])  # type: ignore[arg-type]

    def test_rejects_dangling_violation_ids(self, report: AuditReport) -> None:
        data = json.loads(json.dumps(report_to_dict(report)))
        entry = next(f for f in data["violations_by_file"] if f["violation_ids"])
        entry["violation_ids"] = entry["violation_ids"] * 2
        with pytest.raises(ValueError, match="unknown violation"):
            report_from_dict(data)


class TestRenderers:
    def test_json_is_parseable(self, report: AuditReport) -> None:
        data = json.loads(format_json(report))
        assert data["summary"]["health_score"] == report.summary.health_score
        assert set(data["violations_by_severity"]) == {"critical", "high", "medium", "low"}

    def test_markdown_sections(self, report: AuditReport) -> None:
        md = format_markdown(report)
        assert md.startswith("# Compliance Audit Report")
        assert f"**Health score: {report.summary.health_score}/100**" in md
        assert "## Trend" in md
        assert "## Recommendations" in md
        assert "app/broken.tsx" in md
        assert "analyzer_fault" in md

    def test_markdown_marks_skipped_principles(self, report: AuditReport) -> None:
        from dataclasses import replace

        principles = tuple(
            replace(p, enabled=False) if p.principle_id.endswith("performance") else p
            for p in report.run.principles
        )
        skipped = replace(report, run=replace(report.run, principles=principles))
        assert "not evaluated" in format_markdown(skipped)

    def test_console(self, report: AuditReport) -> None:
        out = format_console(report, color=False)
        assert "Health Score" in out
        assert "Design System Adherence" in out

    def test_write_reports(self, report: AuditReport, tmp_path: Path) -> None:
        written = write_reports(report, tmp_path / "out", ("markdown", "json", "console"))
        assert sorted(p.suffix for p in written) == [".json", ".md"]
        for path in written:
            assert path.name.startswith("audit-2026-03-01-120000")
            assert path.read_text(encoding="utf-8")
