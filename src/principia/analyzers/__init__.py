"""Bundled rule analyzers, one per principle."""

from __future__ import annotations

from typing import TYPE_CHECKING

from principia.analyzers.accessibility import AccessibilityAnalyzer
from principia.analyzers.components import ComponentArchitectureAnalyzer
from principia.analyzers.design_system import DesignSystemAnalyzer
from principia.analyzers.documentation import DocumentationAnalyzer
from principia.analyzers.performance import PerformanceAnalyzer
from principia.analyzers.state import StateManagementAnalyzer
from principia.analyzers.type_safety import TypeSafetyAnalyzer

if TYPE_CHECKING:
    from principia.engine.analyzer import Analyzer
    from principia.rules.catalog import Ruleset


def default_analyzers(ruleset: Ruleset | None = None) -> list[Analyzer]:
    """Return one analyzer per principle, in principle order."""
    return [
        DesignSystemAnalyzer(ruleset),
        TypeSafetyAnalyzer(ruleset),
        ComponentArchitectureAnalyzer(ruleset),
        AccessibilityAnalyzer(ruleset),
        PerformanceAnalyzer(ruleset),
        StateManagementAnalyzer(ruleset),
        DocumentationAnalyzer(ruleset),
    ]


__all__ = [
    "AccessibilityAnalyzer",
    "ComponentArchitectureAnalyzer",
    "DesignSystemAnalyzer",
    "DocumentationAnalyzer",
    "PerformanceAnalyzer",
    "StateManagementAnalyzer",
    "TypeSafetyAnalyzer",
    "default_analyzers",
]
