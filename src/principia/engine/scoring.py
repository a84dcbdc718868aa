"""Health score calculator and related pure metrics.

Nothing here performs I/O or keeps state, so a stored run can be re-scored
with a different weight table at no cost.
"""

from __future__ import annotations

import math
from typing import TYPE_CHECKING

from principia.errors import ConfigError
from principia.rules.catalog import weight_problems

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from principia.models import AuditRun, PrincipleCompliance


def round_half_up(value: float) -> int:
    """Round to the nearest integer with halves going up (72.5 -> 73).

    A tiny tolerance absorbs float error from weighted sums such as
    ``0.15 * x`` landing just under the half.
    """
    return math.floor(value + 0.5 + 1e-9)


def health_score(
    principles: Sequence[PrincipleCompliance],
    weights: Mapping[str, float] | None = None,
) -> int:
    """Reduce per-principle compliance into one 0-100 score.

    Computes ``sum(compliance_i * weight_i)`` over enabled principles, using
    each record's own weight unless *weights* supplies one.  When only a
    subset of principles is enabled the sum is divided by their total weight,
    which is a no-op for a full table summing to 1.0.
    """
    weighted = 0.0
    total_weight = 0.0
    for p in principles:
        if not p.enabled:
            continue
        weight = p.weight if weights is None else weights.get(p.principle_id, 0.0)
        weighted += p.compliance_percentage * weight
        total_weight += weight

    if total_weight <= 0.0:
        return 0
    if math.isclose(total_weight, 1.0, abs_tol=1e-9):
        raw = weighted
    else:
        raw = weighted / total_weight
    return max(0, min(100, round_half_up(raw)))


def rescore(run: AuditRun, weights: Mapping[str, float]) -> int:
    """Replay the health score of a stored *run* under another weight table.

    Raises :class:`ConfigError` when *weights* is not a valid table for the
    run's principles.
    """
    problems = weight_problems(weights, [p.principle_id for p in run.principles])
    if problems:
        raise ConfigError(problems)
    return health_score(run.principles, weights)


def health_label(score: int) -> str:
    if score >= 90:
        return "Excellent"
    if score >= 75:
        return "Good"
    if score >= 60:
        return "Fair"
    return "Poor"


def health_description(score: int) -> str:
    descriptions = {
        "Excellent": "Excellent - minor issues only",
        "Good": "Good - some violations to address",
        "Fair": "Fair - significant violations present",
        "Poor": "Poor - critical issues require immediate attention",
    }
    return descriptions[health_label(score)]


def lowest_compliance(principles: Sequence[PrincipleCompliance]) -> str:
    """Name of the enabled principle with the lowest compliance (first on ties)."""
    candidates = [p for p in principles if p.enabled]
    if not candidates:
        return "N/A"
    return min(candidates, key=lambda p: p.compliance_percentage).principle_name


def highest_compliance(principles: Sequence[PrincipleCompliance]) -> str:
    """Name of the enabled principle with the highest compliance (first on ties)."""
    candidates = [p for p in principles if p.enabled]
    if not candidates:
        return "N/A"
    return max(candidates, key=lambda p: p.compliance_percentage).principle_name
