"""Shared helpers for the bundled rule analyzers."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import TYPE_CHECKING

from principia.engine.analyzer import AnalysisOutcome, OutcomeBuilder, build_violation
from principia.rules.catalog import get_ruleset

if TYPE_CHECKING:
    from tree_sitter import Node as TSNode

    from principia.rules.catalog import Ruleset
    from principia.syntax.tree import SyntaxTree

_COMPONENT_NAME_RE = re.compile(r"^[A-Z][A-Za-z0-9_]*$")
_HOOK_NAME_RE = re.compile(r"^use[A-Z][A-Za-z0-9_]*$")

_JSX_TYPES: frozenset[str] = frozenset({"jsx_element", "jsx_self_closing_element", "jsx_fragment"})
_FUNCTION_VALUE_TYPES: frozenset[str] = frozenset({"arrow_function", "function_expression", "function"})


@dataclass(frozen=True)
class Component:
    """A function that renders JSX and is named like a component."""

    name: str
    node: TSNode  # declaration to report at
    function: TSNode  # the function node itself


def is_hook_name(name: str | None) -> bool:
    return bool(name) and _HOOK_NAME_RE.match(name) is not None  # type: ignore[arg-type]


def is_async(node: TSNode) -> bool:
    """Return True for an ``async`` function node."""
    return any(child.type == "async" for child in node.children)


def renders_jsx(tree: SyntaxTree, node: TSNode) -> bool:
    return any(n.type in _JSX_TYPES for n in tree.walk(node))


def find_components(tree: SyntaxTree) -> list[Component]:
    """Return function declarations and ``const X = () => ...`` components."""
    found: list[Component] = []
    for node in tree.find("function_declaration", "variable_declarator"):
        name_node = node.child_by_field_name("name")
        if name_node is None:
            continue
        name = tree.text(name_node)
        if not _COMPONENT_NAME_RE.match(name):
            continue
        if node.type == "function_declaration":
            function = node
        else:
            value = node.child_by_field_name("value")
            if value is None or value.type not in _FUNCTION_VALUE_TYPES:
                continue
            function = value
        if renders_jsx(tree, function):
            found.append(Component(name=name, node=node, function=function))
    return found


def first_parameter(function: TSNode) -> TSNode | None:
    """First formal parameter of *function*, or ``None``."""
    params = function.child_by_field_name("parameters")
    if params is None:
        # Single bare arrow parameter: ``x => ...``
        return function.child_by_field_name("parameter")
    for child in params.named_children:
        if child.type != "comment":
            return child
    return None


class RuleAnalyzer:
    """Base class: holds the principle binding and builds catalog-backed violations."""

    principle_id: str = ""
    name: str = ""

    def __init__(self, ruleset: Ruleset | None = None) -> None:
        self.ruleset = ruleset if ruleset is not None else get_ruleset()

    def analyze(self, tree: SyntaxTree) -> AnalysisOutcome:
        out = OutcomeBuilder()
        self.check(tree, out)
        return out.build()

    def check(self, tree: SyntaxTree, out: OutcomeBuilder) -> None:
        raise NotImplementedError

    def report(
        self, out: OutcomeBuilder, tree: SyntaxTree, node: TSNode, rule_id: str, message: str
    ) -> None:
        out.add(
            build_violation(
                tree,
                node,
                principle_id=self.principle_id,
                rule_id=rule_id,
                message=message,
                ruleset=self.ruleset,
            )
        )
