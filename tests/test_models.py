"""Tests for principia.models — data model invariants."""

from __future__ import annotations

from dataclasses import replace

import pytest
from conftest import make_run, make_violation

from principia.models import (
    AuditRun,
    PrincipleCompliance,
    Severity,
    SeverityCount,
    compliance_percentage,
    make_violation_id,
    sort_violations,
)


class TestSeverity:
    def test_rank_order(self) -> None:
        ranks = [s.rank for s in (Severity.CRITICAL, Severity.HIGH, Severity.MEDIUM, Severity.LOW)]
        assert ranks == [0, 1, 2, 3]

    def test_parse_case_insensitive(self) -> None:
        assert Severity.parse("HIGH") is Severity.HIGH
        assert Severity.parse(" low ") is Severity.LOW
        assert Severity.parse(Severity.MEDIUM) is Severity.MEDIUM

    def test_parse_unknown(self) -> None:
        with pytest.raises(ValueError, match="invalid severity"):
            Severity.parse("urgent")


class TestViolationId:
    def test_deterministic(self) -> None:
        assert make_violation_id("app/a.tsx", 12, "hooks-in-loops") == "app/a.tsx:12:hooks-in-loops"

    def test_same_input_same_id(self) -> None:
        assert make_violation().id == make_violation().id


class TestSortViolations:
    def test_severity_then_path_then_line(self) -> None:
        low = make_violation("a.tsx", 1, severity=Severity.LOW)
        crit_b = make_violation("b.tsx", 5, severity=Severity.CRITICAL)
        crit_a2 = make_violation("a.tsx", 9, severity=Severity.CRITICAL)
        crit_a1 = make_violation("a.tsx", 3, severity=Severity.CRITICAL)
        ordered = sort_violations([low, crit_b, crit_a2, crit_a1])
        assert ordered == (crit_a1, crit_a2, crit_b, low)


class TestSeverityCount:
    def test_total_is_sum(self) -> None:
        c = SeverityCount(critical=1, high=2, medium=3, low=4)
        assert c.total == 10

    def test_from_violations(self) -> None:
        vs = [
            make_violation(severity=Severity.HIGH),
            make_violation(line=2, severity=Severity.HIGH),
            make_violation(line=3, severity=Severity.LOW),
        ]
        c = SeverityCount.from_violations(vs)
        assert (c.critical, c.high, c.medium, c.low, c.total) == (0, 2, 0, 1, 3)
        assert c.get(Severity.HIGH) == 2


class TestPrincipleCompliance:
    def test_zero_checks_is_fully_compliant(self) -> None:
        assert compliance_percentage(0, 0) == 100.0
        p = PrincipleCompliance.build("p", "P", 0.5, 0, [])
        assert p.compliance_percentage == 100.0

    def test_build_derives_counts(self) -> None:
        vs = [make_violation(line=i) for i in range(1, 3)]
        p = PrincipleCompliance.build("p", "P", 0.5, 10, vs)
        assert p.failed_checks == 2
        assert p.passed_checks == 8
        assert p.passed_checks + p.failed_checks == p.total_checks
        assert p.compliance_percentage == pytest.approx(80.0)

    def test_failed_must_match_violations(self) -> None:
        with pytest.raises(ValueError, match="failed_checks"):
            PrincipleCompliance(
                principle_id="p",
                principle_name="P",
                total_checks=5,
                passed_checks=4,
                failed_checks=1,
                compliance_percentage=80.0,
                violations=(),
                weight=0.1,
            )

    def test_passed_plus_failed_must_match_total(self) -> None:
        with pytest.raises(ValueError, match="total"):
            PrincipleCompliance(
                principle_id="p",
                principle_name="P",
                total_checks=5,
                passed_checks=5,
                failed_checks=1,
                compliance_percentage=80.0,
                violations=(make_violation(),),
                weight=0.1,
            )

    def test_more_violations_than_checks_rejected(self) -> None:
        with pytest.raises(ValueError):
            PrincipleCompliance.build("p", "P", 0.5, 1, [make_violation(line=1), make_violation(line=2)])


class TestAuditRun:
    def test_has_seven_principles(self) -> None:
        run = make_run()
        assert len(run.principles) == 7

    def test_total_violations_must_match(self) -> None:
        run = make_run(compliance={"principle-2-type-safety": (4, 2)})
        assert run.total_violations == 2
        with pytest.raises(ValueError, match="total_violations"):
            AuditRun(
                id=run.id,
                timestamp=run.timestamp,
                ruleset_version=run.ruleset_version,
                branch=run.branch,
                commit=run.commit,
                files_analyzed=run.files_analyzed,
                total_violations=5,
                health_score=run.health_score,
                principles=run.principles,
                duration_ms=run.duration_ms,
                config=run.config,
            )

    def test_principle_count_must_match_ruleset(self) -> None:
        run = make_run()
        with pytest.raises(ValueError, match="7 principles"):
            replace(run, principles=run.principles[:5])

    def test_retired_ruleset_keeps_its_principles(self) -> None:
        run = make_run(ruleset_version="0.9.0")
        assert len(replace(run, principles=run.principles[:5]).principles) == 5

    def test_principle_lookup(self) -> None:
        run = make_run()
        p = run.principle("principle-4-accessibility")
        assert p is not None
        assert p.principle_name == "Accessibility"
        assert run.principle("nope") is None
