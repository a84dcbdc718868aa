"""End-to-end audit run: config -> files -> analysis -> score -> trend -> report."""

from __future__ import annotations

import logging
import time
from datetime import datetime, timezone
from typing import TYPE_CHECKING

from principia.config import validate_config
from principia.engine.orchestrator import run_analyzers
from principia.engine.report import assemble_report
from principia.engine.scoring import health_score
from principia.engine.trend import track_trend
from principia.errors import HistoryError
from principia.files import resolve_files
from principia.git import current_branch, current_commit
from principia.models import AuditRun, Diagnostic
from principia.rules.severity import SeverityModel
from principia.syntax.tree import parse_source

if TYPE_CHECKING:
    from collections.abc import Sequence
    from pathlib import Path

    from principia.engine.analyzer import Analyzer
    from principia.engine.orchestrator import TreeProvider
    from principia.history import AuditHistoryStore
    from principia.models import AuditConfig, AuditReport

logger = logging.getLogger(__name__)

RUN_ID_FORMAT = "%Y-%m-%d-%H%M%S-%f"


def make_run_id(timestamp: datetime) -> str:
    """Time-derived run id, down to the microsecond."""
    return timestamp.strftime(RUN_ID_FORMAT)


def run_audit(
    project_root: Path,
    config: AuditConfig,
    *,
    analyzers: Sequence[Analyzer] | None = None,
    history: AuditHistoryStore | None = None,
    max_workers: int | None = None,
    now: datetime | None = None,
    provider: TreeProvider | None = None,
) -> AuditReport:
    """Audit *project_root* under *config* and return the report.

    Raises :class:`~principia.errors.ConfigError` for an invalid config and
    :class:`~principia.errors.FileSetError` when the file set cannot be
    resolved; both happen before any source file is read.  Every other
    fault is recovered and recorded as a diagnostic on the report.

    When *history* is given, the trend is computed against the most recent
    earlier run and the new report is appended to it.
    """
    validate_config(config)
    model = SeverityModel.from_config(config)

    started = time.perf_counter()
    timestamp = now if now is not None else datetime.now(timezone.utc)

    files = resolve_files(project_root, config.include, config.exclude)
    logger.info("Auditing %d files under %s", len(files), project_root)

    if analyzers is None:
        from principia.analyzers import default_analyzers

        analyzers = default_analyzers()

    result = run_analyzers(
        project_root,
        files,
        analyzers,
        model,
        enabled=config.principles,
        provider=provider if provider is not None else parse_source,
        max_workers=max_workers,
    )

    principles = result.principles
    run = AuditRun(
        id=make_run_id(timestamp),
        timestamp=timestamp,
        ruleset_version=model.ruleset.version,
        branch=current_branch(project_root),
        commit=current_commit(project_root),
        files_analyzed=len(result.files),
        total_violations=sum(len(p.violations) for p in principles),
        health_score=health_score(principles),
        principles=principles,
        duration_ms=(time.perf_counter() - started) * 1000.0,
        config=config,
    )

    diagnostics: list[Diagnostic] = list(result.diagnostics)
    trend = None
    if history is not None:
        trend, trend_diagnostics = track_trend(run, history)
        diagnostics.extend(trend_diagnostics)

    report = assemble_report(run, result.files, diagnostics, trend)

    if history is not None:
        try:
            history.append(report)
        except HistoryError as exc:
            logger.warning("Run %s was not recorded in history: %s", run.id, exc)
            report = assemble_report(
                run,
                result.files,
                [*diagnostics, Diagnostic(kind="history_error", message=str(exc))],
                trend,
            )

    logger.info(
        "Run %s: score %d, %d violations in %d files",
        run.id,
        run.health_score,
        run.total_violations,
        run.files_analyzed,
    )
    return report
