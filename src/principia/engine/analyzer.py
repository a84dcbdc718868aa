"""Rule analyzer contract and helpers shared by analyzer implementations.

An analyzer is any object with a ``principle_id`` and a ``name`` and an
``analyze(tree)`` method returning an :class:`AnalysisOutcome`.  The
outcome carries both the violations and the number of checkable units the
analyzer examined, so compliance is measured against what was inspected
rather than against what failed.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from principia.models import Remediation, Violation, make_violation_id
from principia.rules.catalog import get_ruleset

if TYPE_CHECKING:
    from tree_sitter import Node as TSNode

    from principia.rules.catalog import Ruleset
    from principia.syntax.tree import SyntaxTree


@dataclass(frozen=True)
class AnalysisOutcome:
    """Result of one analyzer over one file."""

    violations: tuple[Violation, ...] = ()
    checks: int = 0


@runtime_checkable
class Analyzer(Protocol):
    """Capability implemented by every rule analyzer."""

    principle_id: str
    name: str

    def analyze(self, tree: SyntaxTree) -> AnalysisOutcome: ...


@dataclass
class OutcomeBuilder:
    """Accumulates checks and violations during a single ``analyze`` call."""

    checks: int = 0
    violations: list[Violation] = field(default_factory=list)

    def checked(self, count: int = 1) -> None:
        self.checks += count

    def add(self, violation: Violation) -> None:
        self.violations.append(violation)

    def build(self) -> AnalysisOutcome:
        return AnalysisOutcome(violations=tuple(self.violations), checks=self.checks)


def build_violation(
    tree: SyntaxTree,
    node: TSNode,
    *,
    principle_id: str,
    rule_id: str,
    message: str,
    ruleset: Ruleset | None = None,
) -> Violation:
    """Create a violation at *node* with remediation from the ruleset catalog.

    The severity is the rule's catalog default; per-run overrides are applied
    by the orchestrator.
    """
    if ruleset is None:
        ruleset = get_ruleset()
    rule = ruleset.rule(rule_id)
    if rule is None:
        msg = f"rule '{rule_id}' is not defined in ruleset {ruleset.version}"
        raise KeyError(msg)

    line = tree.line(node)
    end_line = tree.end_line(node)
    return Violation(
        id=make_violation_id(tree.path, line, rule_id),
        file_path=tree.path,
        line=line,
        end_line=end_line if end_line != line else None,
        column=tree.column(node),
        principle_id=principle_id,
        rule_id=rule_id,
        severity=rule.severity,
        message=message,
        remediation=Remediation(
            description=rule.remediation,
            doc_reference=rule.doc_reference,
            example=rule.example,
            auto_fix_available=False,
            estimated_effort=rule.effort,
        ),
        snippet=tree.snippet(node),
    )
