"""Audit data model: violations, per-principle compliance, runs, and reports.

Every record is a frozen dataclass.  A run is assembled once and never
mutated afterwards; the next run supersedes it in the history store.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable
    from datetime import datetime

# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


class Severity(enum.Enum):
    """Impact classification of a single violation."""

    CRITICAL = "critical"  # can crash or misbehave at runtime
    HIGH = "high"  # breaks a core flow
    MEDIUM = "medium"  # maintainability / performance debt
    LOW = "low"  # cosmetic or documentation gap

    @property
    def rank(self) -> int:
        """Sort rank, most severe first (critical = 0)."""
        return _SEVERITY_RANKS[self]

    @classmethod
    def parse(cls, value: str | Severity) -> Severity:
        """Parse a case-insensitive severity name.

        Raises ``ValueError`` for unknown names.
        """
        if isinstance(value, Severity):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            valid = [s.value for s in cls]
            msg = f"invalid severity '{value}', must be one of {valid}"
            raise ValueError(msg) from None


_SEVERITY_RANKS: dict[Severity, int] = {
    Severity.CRITICAL: 0,
    Severity.HIGH: 1,
    Severity.MEDIUM: 2,
    Severity.LOW: 3,
}

SEVERITY_ORDER: tuple[Severity, ...] = (
    Severity.CRITICAL,
    Severity.HIGH,
    Severity.MEDIUM,
    Severity.LOW,
)


class ComplianceStatus(enum.Enum):
    """Per-file status."""

    COMPLIANT = "compliant"
    VIOLATIONS = "violations"
    ERROR = "error"  # no syntax tree could be produced


class TrendDirection(enum.Enum):
    """Qualitative direction of the health score between two runs."""

    IMPROVING = "improving"
    DECLINING = "declining"
    STABLE = "stable"


VALID_REPORT_FORMATS: frozenset[str] = frozenset({"markdown", "json", "console"})

# ---------------------------------------------------------------------------
# Findings
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Remediation:
    """Guidance attached to a violation.  Never consulted by scoring."""

    description: str
    doc_reference: str | None = None
    example: str | None = None
    auto_fix_available: bool = False
    estimated_effort: str | None = None


def make_violation_id(file_path: str, line: int, rule_id: str) -> str:
    """Return the deterministic id ``{file}:{line}:{rule}`` for a finding."""
    return f"{file_path}:{line}:{rule_id}"


@dataclass(frozen=True)
class Violation:
    """One concrete finding in one file."""

    id: str
    file_path: str
    line: int
    principle_id: str
    rule_id: str
    severity: Severity
    message: str
    remediation: Remediation
    end_line: int | None = None
    column: int | None = None
    snippet: str | None = None


def violation_sort_key(v: Violation) -> tuple[int, str, int, int, str, str]:
    """Committed ordering: severity rank, then file path, then line."""
    return (v.severity.rank, v.file_path, v.line, v.column or 0, v.rule_id, v.message)


def sort_violations(violations: Iterable[Violation]) -> tuple[Violation, ...]:
    return tuple(sorted(violations, key=violation_sort_key))


@dataclass(frozen=True)
class SeverityCount:
    """Violation counts per severity bucket."""

    critical: int = 0
    high: int = 0
    medium: int = 0
    low: int = 0

    @property
    def total(self) -> int:
        return self.critical + self.high + self.medium + self.low

    def get(self, severity: Severity) -> int:
        return int(getattr(self, severity.value))

    @classmethod
    def from_violations(cls, violations: Iterable[Violation]) -> SeverityCount:
        counts = dict.fromkeys(SEVERITY_ORDER, 0)
        for v in violations:
            counts[v.severity] += 1
        return cls(
            critical=counts[Severity.CRITICAL],
            high=counts[Severity.HIGH],
            medium=counts[Severity.MEDIUM],
            low=counts[Severity.LOW],
        )


# ---------------------------------------------------------------------------
# Per-principle and per-file rollups
# ---------------------------------------------------------------------------


def compliance_percentage(passed_checks: int, total_checks: int) -> float:
    """Return ``passed / total * 100``; 100.0 when nothing was checked."""
    if total_checks == 0:
        return 100.0
    return passed_checks / total_checks * 100.0


@dataclass(frozen=True)
class PrincipleCompliance:
    """One principle's result within a run.

    Invariants (checked on construction):

    - ``failed_checks == len(violations)``
    - ``passed_checks + failed_checks == total_checks``
    - ``compliance_percentage == passed_checks / total_checks * 100``
    """

    principle_id: str
    principle_name: str
    total_checks: int
    passed_checks: int
    failed_checks: int
    compliance_percentage: float
    violations: tuple[Violation, ...]
    weight: float
    enabled: bool = True

    def __post_init__(self) -> None:
        if self.failed_checks != len(self.violations):
            msg = (
                f"{self.principle_id}: failed_checks ({self.failed_checks}) "
                f"!= number of violations ({len(self.violations)})"
            )
            raise ValueError(msg)
        if self.passed_checks + self.failed_checks != self.total_checks:
            msg = (
                f"{self.principle_id}: passed ({self.passed_checks}) + failed "
                f"({self.failed_checks}) != total ({self.total_checks})"
            )
            raise ValueError(msg)
        if self.passed_checks < 0:
            msg = f"{self.principle_id}: passed_checks must be non-negative"
            raise ValueError(msg)

    @classmethod
    def build(
        cls,
        principle_id: str,
        principle_name: str,
        weight: float,
        total_checks: int,
        violations: Iterable[Violation],
        *,
        enabled: bool = True,
    ) -> PrincipleCompliance:
        """Derive passed/failed counts and the percentage from raw totals."""
        ordered = sort_violations(violations)
        failed = len(ordered)
        passed = total_checks - failed
        return cls(
            principle_id=principle_id,
            principle_name=principle_name,
            total_checks=total_checks,
            passed_checks=passed,
            failed_checks=failed,
            compliance_percentage=compliance_percentage(passed, total_checks),
            violations=ordered,
            weight=weight,
            enabled=enabled,
        )


@dataclass(frozen=True)
class FileAnalysis:
    """Per-file rollup."""

    file_path: str
    line_count: int
    violations: tuple[Violation, ...]
    status: ComplianceStatus
    principles_affected: tuple[str, ...]
    severity_counts: SeverityCount
    error: str | None = None


@dataclass(frozen=True)
class Diagnostic:
    """An informational entry for a recovered fault."""

    kind: str  # parse_error | analyzer_fault | history_error | trend_approximate
    message: str
    file_path: str | None = None
    principle_id: str | None = None


# ---------------------------------------------------------------------------
# Run-level records
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class AuditConfig:
    """Resolved configuration for one run.  Immutable once a run starts."""

    ruleset_version: str = "1.0.0"
    include: tuple[str, ...] = ()
    exclude: tuple[str, ...] = ()
    severity_overrides: dict[str, Severity] = field(default_factory=dict)
    report_formats: tuple[str, ...] = ("markdown", "json")
    principles: tuple[str, ...] | None = None  # None = every principle
    principle_weights: dict[str, float] | None = None  # None = ruleset defaults
    output_dir: str = "audit-reports"


@dataclass(frozen=True)
class AuditRun:
    """One completed execution of the auditor."""

    id: str
    timestamp: datetime
    ruleset_version: str
    branch: str
    commit: str
    files_analyzed: int
    total_violations: int
    health_score: int
    principles: tuple[PrincipleCompliance, ...]
    duration_ms: float
    config: AuditConfig

    def __post_init__(self) -> None:
        from principia.rules.catalog import RULESETS

        # Runs stored under retired rulesets keep whatever principles they had.
        ruleset = RULESETS.get(self.ruleset_version)
        if ruleset is not None and len(self.principles) != len(ruleset.principles):
            msg = (
                f"ruleset {self.ruleset_version} has {len(ruleset.principles)} principles, "
                f"run has {len(self.principles)} principle results"
            )
            raise ValueError(msg)
        expected = sum(len(p.violations) for p in self.principles)
        if self.total_violations != expected:
            msg = (
                f"total_violations ({self.total_violations}) != sum of principle "
                f"violations ({expected})"
            )
            raise ValueError(msg)

    def principle(self, principle_id: str) -> PrincipleCompliance | None:
        for p in self.principles:
            if p.principle_id == principle_id:
                return p
        return None

    @property
    def violations(self) -> tuple[Violation, ...]:
        return sort_violations(v for p in self.principles for v in p.violations)


@dataclass(frozen=True)
class TrendData:
    """Comparison against the most recent prior run.

    ``approximate`` is set when the two runs used different ruleset versions,
    principle selections, or weights; ``principle_deltas`` only covers
    principle ids evaluated in both.
    """

    previous_run_id: str
    previous_timestamp: datetime
    previous_ruleset_version: str
    previous_health_score: int
    previous_total_violations: int
    health_score_delta: int
    violation_delta: int
    principle_deltas: dict[str, float]
    direction: TrendDirection
    approximate: bool = False


@dataclass(frozen=True)
class AuditSummary:
    """Executive summary derived from a run."""

    health_score: int
    health_label: str
    files_analyzed: int
    total_violations: int
    severity_counts: SeverityCount
    top_violated_principle: str
    top_compliant_principle: str
    files_with_errors: int
    analyzer_faults: int


@dataclass(frozen=True)
class AuditReport:
    """Complete, persistable, format-agnostic output of a run."""

    run: AuditRun
    summary: AuditSummary
    violations_by_file: dict[str, FileAnalysis]
    violations_by_severity: dict[Severity, tuple[Violation, ...]]
    recommendations: tuple[str, ...]
    trend: TrendData | None = None
    diagnostics: tuple[Diagnostic, ...] = ()

    @property
    def principle_results(self) -> tuple[PrincipleCompliance, ...]:
        return self.run.principles
