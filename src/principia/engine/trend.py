"""Trend tracker: compare a run against the most recent prior run."""

from __future__ import annotations

import logging
import math
from typing import TYPE_CHECKING, Protocol

from principia.errors import HistoryError
from principia.models import Diagnostic, TrendData, TrendDirection

if TYPE_CHECKING:
    from datetime import datetime

    from principia.models import AuditReport, AuditRun

logger = logging.getLogger(__name__)

# Score deltas within +/- this many points count as stable.
STABLE_THRESHOLD = 1


class HistoryReader(Protocol):
    """The part of the history store the trend tracker depends on."""

    def most_recent_before(self, timestamp: datetime) -> AuditReport | None: ...


def classify_direction(score_delta: float) -> TrendDirection:
    """``improving`` above +1, ``declining`` below -1, otherwise ``stable``."""
    if score_delta > STABLE_THRESHOLD:
        return TrendDirection.IMPROVING
    if score_delta < -STABLE_THRESHOLD:
        return TrendDirection.DECLINING
    return TrendDirection.STABLE


def _is_comparable(current: AuditRun, previous: AuditRun) -> bool:
    """Return True when per-principle deltas mean the same thing in both runs."""
    if current.ruleset_version != previous.ruleset_version:
        return False
    prev = {p.principle_id: p for p in previous.principles}
    cur = {p.principle_id: p for p in current.principles}
    if set(prev) != set(cur):
        return False
    for pid, p in cur.items():
        other = prev[pid]
        if p.enabled != other.enabled or not math.isclose(p.weight, other.weight, abs_tol=1e-9):
            return False
    return True


def compare_runs(current: AuditRun, previous: AuditRun) -> TrendData:
    """Compute the trend of *current* relative to *previous*.

    Per-principle deltas cover only principle ids evaluated in both runs.
    The result is marked ``approximate`` when the runs used different
    rulesets, principle sets, selections, or weights.
    """
    prev_by_id = {p.principle_id: p for p in previous.principles if p.enabled}
    principle_deltas: dict[str, float] = {}
    for p in current.principles:
        other = prev_by_id.get(p.principle_id)
        if other is None or not p.enabled:
            continue
        principle_deltas[p.principle_id] = p.compliance_percentage - other.compliance_percentage

    score_delta = current.health_score - previous.health_score
    return TrendData(
        previous_run_id=previous.id,
        previous_timestamp=previous.timestamp,
        previous_ruleset_version=previous.ruleset_version,
        previous_health_score=previous.health_score,
        previous_total_violations=previous.total_violations,
        health_score_delta=score_delta,
        violation_delta=current.total_violations - previous.total_violations,
        principle_deltas=principle_deltas,
        direction=classify_direction(score_delta),
        approximate=not _is_comparable(current, previous),
    )


def track_trend(
    current: AuditRun, history: HistoryReader
) -> tuple[TrendData | None, tuple[Diagnostic, ...]]:
    """Look up the most recent run before *current* and compare against it.

    Returns ``(None, ())`` when there is no prior run.  A history that cannot
    be read yields ``(None, (diagnostic,))`` instead of failing the run.
    """
    try:
        previous_report = history.most_recent_before(current.timestamp)
    except HistoryError as exc:
        logger.warning("Trend unavailable, history could not be read: %s", exc)
        diagnostic = Diagnostic(kind="history_error", message=f"trend unavailable: {exc}")
        return None, (diagnostic,)

    if previous_report is None:
        return None, ()

    previous = previous_report.run
    trend = compare_runs(current, previous)
    diagnostics: tuple[Diagnostic, ...] = ()
    if trend.approximate:
        logger.warning(
            "Trend vs run %s is approximate (ruleset %s -> %s)",
            previous.id,
            previous.ruleset_version,
            current.ruleset_version,
        )
        diagnostics = (
            Diagnostic(
                kind="trend_approximate",
                message=(
                    f"trend vs {previous.id} is approximate: ruleset "
                    f"{previous.ruleset_version} -> {current.ruleset_version}"
                ),
            ),
        )
    return trend, diagnostics
