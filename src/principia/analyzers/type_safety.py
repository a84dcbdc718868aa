"""Type safety: no ``any``, handled async errors, typed component props."""

from __future__ import annotations

from typing import TYPE_CHECKING

from principia.analyzers.base import RuleAnalyzer, find_components, first_parameter, is_async
from principia.rules.catalog import TYPE_SAFETY
from principia.syntax.tree import FUNCTION_TYPES

if TYPE_CHECKING:
    from tree_sitter import Node as TSNode

    from principia.engine.analyzer import OutcomeBuilder
    from principia.syntax.tree import SyntaxTree


def _await_is_guarded(tree: SyntaxTree, node: TSNode) -> bool:
    """True if a ``try`` sits between *node* and its enclosing function."""
    for a in tree.ancestors(node):
        if a.type == "try_statement":
            return True
        if a.type in FUNCTION_TYPES:
            return False
    return False


class TypeSafetyAnalyzer(RuleAnalyzer):
    principle_id = TYPE_SAFETY
    name = "type-safety"

    def check(self, tree: SyntaxTree, out: OutcomeBuilder) -> None:
        self._any_usage(tree, out)
        self._error_handling(tree, out)
        self._prop_interfaces(tree, out)

    def _any_usage(self, tree: SyntaxTree, out: OutcomeBuilder) -> None:
        # Every annotation and cast is a place where a type was chosen.
        out.checked(len(tree.find("type_annotation", "as_expression")))
        for node in tree.find("predefined_type"):
            if tree.text(node) == "any":
                self.report(out, tree, node, "any-type-usage", 'Type "any" bypasses type checking')

    def _error_handling(self, tree: SyntaxTree, out: OutcomeBuilder) -> None:
        for function in tree.find(*FUNCTION_TYPES):
            if not is_async(function):
                continue
            awaits = [
                a
                for a in tree.find("await_expression", within=function)
                if tree.enclosing_function(a) == function
            ]
            if not awaits:
                continue
            out.checked()
            unguarded = [a for a in awaits if not _await_is_guarded(tree, a)]
            if unguarded:
                self.report(
                    out,
                    tree,
                    unguarded[0],
                    "missing-error-handling",
                    f"Async function awaits without try/catch ({len(unguarded)} unguarded await(s))",
                )

    def _prop_interfaces(self, tree: SyntaxTree, out: OutcomeBuilder) -> None:
        for component in find_components(tree):
            param = first_parameter(component.function)
            if param is None:
                continue
            out.checked()
            pattern = param.child_by_field_name("pattern") or param
            typed = param.child_by_field_name("type") is not None
            if not typed and component.node.type == "variable_declarator":
                # const Card: React.FC<CardProps> = ({ title }) => ...
                typed = component.node.child_by_field_name("type") is not None
            if pattern.type == "object_pattern" and not typed:
                self.report(
                    out,
                    tree,
                    component.node,
                    "missing-interface",
                    f"Props of component {component.name} are not typed",
                )
