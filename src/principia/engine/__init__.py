"""Engine domain - orchestration, scoring, trend tracking, report assembly."""

from principia.engine.analyzer import AnalysisOutcome, Analyzer, OutcomeBuilder, build_violation
from principia.engine.auditor import make_run_id, run_audit
from principia.engine.orchestrator import (
    FileResult,
    OrchestrationResult,
    analyze_file,
    run_analyzers,
)
from principia.engine.report import assemble_report, build_recommendations
from principia.engine.scoring import (
    health_description,
    health_label,
    health_score,
    rescore,
    round_half_up,
)
from principia.engine.serialize import report_from_dict, report_to_dict
from principia.engine.trend import classify_direction, compare_runs, track_trend

__all__ = [
    "AnalysisOutcome",
    "Analyzer",
    "FileResult",
    "OrchestrationResult",
    "OutcomeBuilder",
    "analyze_file",
    "assemble_report",
    "build_recommendations",
    "build_violation",
    "classify_direction",
    "compare_runs",
    "health_description",
    "health_label",
    "health_score",
    "make_run_id",
    "report_from_dict",
    "report_to_dict",
    "rescore",
    "round_half_up",
    "run_analyzers",
    "track_trend",
]
