"""Analyzer orchestrator: run every enabled analyzer over every resolved file.

Each file is analyzed independently into its own result slot; per-principle
totals are reduced only after every slot is filled, in path order, so the
outcome does not depend on the order in which workers finish.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING

from principia.models import (
    ComplianceStatus,
    Diagnostic,
    FileAnalysis,
    PrincipleCompliance,
    SeverityCount,
    Violation,
    sort_violations,
)
from principia.syntax.tree import ParseFailure, parse_source

if TYPE_CHECKING:
    from collections.abc import Callable, Collection, Sequence
    from pathlib import Path

    from principia.engine.analyzer import Analyzer
    from principia.rules.severity import SeverityModel
    from principia.syntax.tree import SyntaxTree

    TreeProvider = Callable[[str, bytes], "SyntaxTree | ParseFailure"]

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class FileResult:
    """Everything one file contributed to the run."""

    analysis: FileAnalysis
    checks: dict[str, int]  # principle_id -> checkable units examined
    diagnostics: tuple[Diagnostic, ...]


@dataclass(frozen=True)
class OrchestrationResult:
    """Aggregated output of the analysis phase."""

    files: tuple[FileAnalysis, ...]  # sorted by path
    principles: tuple[PrincipleCompliance, ...]  # ruleset order
    diagnostics: tuple[Diagnostic, ...]

    @property
    def files_with_errors(self) -> int:
        return sum(1 for f in self.files if f.status is ComplianceStatus.ERROR)

    @property
    def analyzer_faults(self) -> int:
        return sum(1 for d in self.diagnostics if d.kind == "analyzer_fault")


# ---------------------------------------------------------------------------
# Per-file analysis
# ---------------------------------------------------------------------------


def _error_result(rel_path: str, reason: str, line_count: int) -> FileResult:
    logger.info("Cannot analyze %s: %s", rel_path, reason)
    analysis = FileAnalysis(
        file_path=rel_path,
        line_count=line_count,
        violations=(),
        status=ComplianceStatus.ERROR,
        principles_affected=(),
        severity_counts=SeverityCount(),
        error=reason,
    )
    diagnostic = Diagnostic(kind="parse_error", message=reason, file_path=rel_path)
    return FileResult(analysis=analysis, checks={}, diagnostics=(diagnostic,))


def _count_lines(source: bytes) -> int:
    return len(source.decode("utf-8", errors="replace").splitlines())


def _apply_severity(violations: Sequence[Violation], model: SeverityModel) -> list[Violation]:
    resolved: list[Violation] = []
    for v in violations:
        severity = model.severity_of(v.rule_id)
        resolved.append(v if severity is v.severity else replace(v, severity=severity))
    return resolved


def analyze_file(
    project_root: Path,
    rel_path: str,
    analyzers: Sequence[Analyzer],
    model: SeverityModel,
    provider: TreeProvider = parse_source,
) -> FileResult:
    """Parse one file and run every analyzer over it.

    A file without a syntax tree yields an ``error`` analysis with zero
    checks.  An analyzer that raises contributes zero checks for this file
    and is reported as a diagnostic.
    """
    try:
        source = (project_root / rel_path).read_bytes()
    except OSError as exc:
        return _error_result(rel_path, f"cannot read file: {exc.strerror or exc}", 0)

    try:
        tree = provider(rel_path, source)
    except Exception as exc:  # noqa: BLE001
        return _error_result(rel_path, f"parser crashed: {exc}", _count_lines(source))
    if isinstance(tree, ParseFailure):
        return _error_result(rel_path, tree.reason, _count_lines(source))

    checks: dict[str, int] = {}
    violations: list[Violation] = []
    diagnostics: list[Diagnostic] = []

    for analyzer in analyzers:
        try:
            outcome = analyzer.analyze(tree)
        except Exception as exc:  # noqa: BLE001
            logger.warning(
                "Analyzer %s failed on %s: %s", analyzer.name, rel_path, exc, exc_info=True
            )
            diagnostics.append(
                Diagnostic(
                    kind="analyzer_fault",
                    message=f"{analyzer.name}: {type(exc).__name__}: {exc}",
                    file_path=rel_path,
                    principle_id=analyzer.principle_id,
                )
            )
            continue

        found = [
            v if v.principle_id == analyzer.principle_id
            else replace(v, principle_id=analyzer.principle_id)
            for v in outcome.violations
        ]
        # Every violation is a failed check, whatever the analyzer declared.
        examined = max(outcome.checks, len(found))
        checks[analyzer.principle_id] = checks.get(analyzer.principle_id, 0) + examined
        violations.extend(_apply_severity(found, model))

    ordered = sort_violations(violations)
    analysis = FileAnalysis(
        file_path=rel_path,
        line_count=tree.line_count,
        violations=ordered,
        status=ComplianceStatus.VIOLATIONS if ordered else ComplianceStatus.COMPLIANT,
        principles_affected=tuple(sorted({v.principle_id for v in ordered})),
        severity_counts=SeverityCount.from_violations(ordered),
    )
    return FileResult(analysis=analysis, checks=checks, diagnostics=tuple(diagnostics))


# ---------------------------------------------------------------------------
# Run over the file set
# ---------------------------------------------------------------------------


def _select_analyzers(
    analyzers: Sequence[Analyzer], model: SeverityModel, enabled: Collection[str]
) -> list[Analyzer]:
    known = set(model.ruleset.principle_ids)
    selected: list[Analyzer] = []
    for analyzer in analyzers:
        if analyzer.principle_id not in known:
            logger.warning(
                "Skipping analyzer %s: principle '%s' is not in ruleset %s",
                analyzer.name,
                analyzer.principle_id,
                model.ruleset.version,
            )
            continue
        if analyzer.principle_id in enabled:
            selected.append(analyzer)
    return selected


def _reduce(
    results: Sequence[FileResult], model: SeverityModel, enabled: Collection[str]
) -> tuple[PrincipleCompliance, ...]:
    checks = dict.fromkeys(model.ruleset.principle_ids, 0)
    found: dict[str, list[Violation]] = {pid: [] for pid in model.ruleset.principle_ids}
    for result in results:
        for pid, count in result.checks.items():
            checks[pid] += count
        for v in result.analysis.violations:
            found[v.principle_id].append(v)

    return tuple(
        PrincipleCompliance.build(
            principle_id=p.id,
            principle_name=p.name,
            weight=model.weight_of(p.id),
            total_checks=checks[p.id],
            violations=found[p.id],
            enabled=p.id in enabled,
        )
        for p in model.ruleset.principles
    )


def run_analyzers(
    project_root: Path,
    files: Sequence[str],
    analyzers: Sequence[Analyzer],
    model: SeverityModel,
    *,
    enabled: Collection[str] | None = None,
    provider: TreeProvider = parse_source,
    max_workers: int | None = None,
) -> OrchestrationResult:
    """Analyze *files* (relative to *project_root*) with the enabled analyzers.

    Parameters
    ----------
    enabled:
        Principle ids to evaluate.  ``None`` evaluates every principle in the
        model's ruleset.
    provider:
        Syntax tree provider; defaults to tree-sitter.
    max_workers:
        Thread count for per-file analysis.  ``None`` or ``1`` runs serially.

    Never raises for file- or analyzer-level problems; those are reported as
    diagnostics on the result.
    """
    enabled_ids = frozenset(model.ruleset.principle_ids if enabled is None else enabled)
    active = _select_analyzers(analyzers, model, enabled_ids)

    slots: dict[str, FileResult] = {}
    if max_workers is not None and max_workers > 1 and len(files) > 1:
        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            futures = {
                executor.submit(analyze_file, project_root, path, active, model, provider): path
                for path in files
            }
            for future in as_completed(futures):
                slots[futures[future]] = future.result()
    else:
        for path in files:
            slots[path] = analyze_file(project_root, path, active, model, provider)

    ordered = [slots[path] for path in sorted(slots)]
    diagnostics = tuple(d for r in ordered for d in r.diagnostics)

    return OrchestrationResult(
        files=tuple(r.analysis for r in ordered),
        principles=_reduce(ordered, model, enabled_ids),
        diagnostics=diagnostics,
    )
