"""Tests for principia.engine.trend — comparison against the previous run."""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING

import pytest
from conftest import make_run

from principia.engine.report import assemble_report
from principia.engine.trend import classify_direction, compare_runs, track_trend
from principia.errors import HistoryError
from principia.models import TrendDirection

if TYPE_CHECKING:
    from principia.models import AuditReport, AuditRun

T0 = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


class ListHistory:
    """In-memory history reader."""

    def __init__(self, *runs: AuditRun) -> None:
        self.reports = [assemble_report(r, ()) for r in runs]
        self.calls = 0

    def most_recent_before(self, timestamp: datetime) -> AuditReport | None:
        self.calls += 1
        earlier = [r for r in self.reports if r.run.timestamp < timestamp]
        return max(earlier, key=lambda r: r.run.timestamp, default=None)


class BrokenHistory:
    def most_recent_before(self, timestamp: datetime) -> AuditReport | None:
        msg = "database is locked"
        raise HistoryError(msg)


class TestClassifyDirection:
    @pytest.mark.parametrize(
        ("delta", "direction"),
        [
            (5, TrendDirection.IMPROVING),
            (2, TrendDirection.IMPROVING),
            (1, TrendDirection.STABLE),
            (0, TrendDirection.STABLE),
            (-1, TrendDirection.STABLE),
            (-2, TrendDirection.DECLINING),
        ],
    )
    def test_thresholds(self, delta: int, direction: TrendDirection) -> None:
        assert classify_direction(delta) is direction


class TestCompareRuns:
    def test_improving(self) -> None:
        prev = make_run(run_id="prev", timestamp=T0, health_score=72)
        cur = make_run(run_id="cur", timestamp=T0 + timedelta(hours=1), health_score=77)
        trend = compare_runs(cur, prev)
        assert trend.health_score_delta == 5
        assert trend.direction is TrendDirection.IMPROVING
        assert trend.previous_run_id == "prev"
        assert not trend.approximate

    def test_stable_after_rounding(self) -> None:
        prev = make_run(run_id="prev", timestamp=T0, health_score=72)
        # 72.5 rounds to 73: a one-point move is noise.
        cur = make_run(run_id="cur", timestamp=T0 + timedelta(hours=1), health_score=73)
        assert compare_runs(cur, prev).direction is TrendDirection.STABLE

    def test_violation_and_principle_deltas(self) -> None:
        prev = make_run(timestamp=T0, compliance={"principle-2-type-safety": (10, 4)})
        cur = make_run(
            timestamp=T0 + timedelta(hours=1), compliance={"principle-2-type-safety": (10, 1)}
        )
        trend = compare_runs(cur, prev)
        assert trend.violation_delta == -3
        assert trend.principle_deltas["principle-2-type-safety"] == pytest.approx(30.0)
        assert trend.principle_deltas["principle-1-design-system"] == 0.0
        assert len(trend.principle_deltas) == 7

    def test_ruleset_change_is_approximate(self) -> None:
        prev = make_run(timestamp=T0, ruleset_version="0.9.0")
        cur = make_run(timestamp=T0 + timedelta(hours=1))
        trend = compare_runs(cur, prev)
        assert trend.approximate
        assert trend.previous_ruleset_version == "0.9.0"

    def test_deltas_only_for_shared_principles(self) -> None:
        prev = make_run(timestamp=T0, ruleset_version="0.9.0")
        prev = replace(
            prev,
            principles=prev.principles[:5],
        )
        cur = make_run(timestamp=T0 + timedelta(hours=1))
        trend = compare_runs(cur, prev)
        assert trend.approximate
        assert set(trend.principle_deltas) == {p.principle_id for p in prev.principles}

    def test_reweighting_is_approximate(self) -> None:
        prev = make_run(timestamp=T0)
        prev = replace(
            prev,
            principles=tuple(replace(p, weight=1 / 7) for p in prev.principles),
        )
        cur = make_run(timestamp=T0 + timedelta(hours=1))
        assert compare_runs(cur, prev).approximate


class TestTrackTrend:
    def test_no_history_means_no_trend(self) -> None:
        cur = make_run(timestamp=T0)
        trend, diagnostics = track_trend(cur, ListHistory())
        assert trend is None
        assert diagnostics == ()

    def test_uses_most_recent_prior_run(self) -> None:
        older = make_run(run_id="older", timestamp=T0 - timedelta(days=2), health_score=50)
        newer = make_run(run_id="newer", timestamp=T0 - timedelta(days=1), health_score=72)
        future = make_run(run_id="future", timestamp=T0 + timedelta(days=1), health_score=10)
        cur = make_run(run_id="cur", timestamp=T0, health_score=77)
        history = ListHistory(older, newer, future)

        trend, _ = track_trend(cur, history)
        assert trend is not None
        assert trend.previous_run_id == "newer"
        assert trend.health_score_delta == 5

    def test_fetched_fresh_on_every_call(self) -> None:
        history = ListHistory(make_run(run_id="a", timestamp=T0 - timedelta(days=1)))
        cur = make_run(run_id="cur", timestamp=T0)
        track_trend(cur, history)
        track_trend(cur, history)
        assert history.calls == 2

    def test_unreadable_history_is_recovered(self) -> None:
        trend, diagnostics = track_trend(make_run(timestamp=T0), BrokenHistory())
        assert trend is None
        assert [d.kind for d in diagnostics] == ["history_error"]
        assert "database is locked" in diagnostics[0].message

    def test_approximate_trend_reported(self) -> None:
        prev = make_run(run_id="prev", timestamp=T0 - timedelta(days=1), ruleset_version="0.9.0")
        trend, diagnostics = track_trend(make_run(timestamp=T0), ListHistory(prev))
        assert trend is not None
        assert trend.approximate
        assert [d.kind for d in diagnostics] == ["trend_approximate"]
