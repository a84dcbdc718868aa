"""Component architecture: hook discipline, safe text rendering, component size."""

from __future__ import annotations

from typing import TYPE_CHECKING

from principia.analyzers.base import RuleAnalyzer, find_components, is_hook_name
from principia.rules.catalog import COMPONENT_ARCHITECTURE

if TYPE_CHECKING:
    from tree_sitter import Node as TSNode

    from principia.engine.analyzer import OutcomeBuilder
    from principia.syntax.tree import SyntaxTree

MAX_COMPONENT_LINES = 200

_JSX_RESULT_TYPES: frozenset[str] = frozenset(
    {"jsx_element", "jsx_self_closing_element", "jsx_fragment"}
)


def _unwrap(node: TSNode | None) -> TSNode | None:
    while node is not None and node.type == "parenthesized_expression" and node.named_child_count:
        node = node.named_children[0]
    return node


class ComponentArchitectureAnalyzer(RuleAnalyzer):
    principle_id = COMPONENT_ARCHITECTURE
    name = "component-architecture"

    def check(self, tree: SyntaxTree, out: OutcomeBuilder) -> None:
        self._hooks_in_loops(tree, out)
        self._conditional_render(tree, out)
        self._text_fallback(tree, out)
        self._component_size(tree, out)

    def _hooks_in_loops(self, tree: SyntaxTree, out: OutcomeBuilder) -> None:
        for call in tree.find("call_expression"):
            name = tree.call_name(call)
            if not is_hook_name(name):
                continue
            out.checked()
            if tree.is_inside_loop(call):
                self.report(
                    out, tree, call, "hooks-in-loops", f"Hook {name}() is called inside a loop"
                )

    def _conditional_render(self, tree: SyntaxTree, out: OutcomeBuilder) -> None:
        for expr in tree.find("jsx_expression"):
            if expr.named_child_count != 1:
                continue
            inner = expr.named_children[0]
            if inner.type != "binary_expression":
                continue
            out.checked()
            operator = inner.child_by_field_name("operator")
            right = _unwrap(inner.child_by_field_name("right"))
            if (
                operator is not None
                and tree.text(operator) == "&&"
                and right is not None
                and right.type in _JSX_RESULT_TYPES
            ):
                self.report(
                    out,
                    tree,
                    inner,
                    "conditional-text-render",
                    "Conditional render with && can leak a falsy value as text",
                )

    def _text_fallback(self, tree: SyntaxTree, out: OutcomeBuilder) -> None:
        for element in tree.jsx_elements("Text"):
            if element.type != "jsx_element":
                continue
            for child in element.named_children:
                if child.type != "jsx_expression" or child.named_child_count != 1:
                    continue
                value = child.named_children[0]
                out.checked()
                text = tree.text(value)
                if value.type == "member_expression" and "?." in text:
                    self.report(
                        out,
                        tree,
                        child,
                        "missing-text-fallback",
                        f"{text} may be undefined inside <Text>; add a fallback",
                    )

    def _component_size(self, tree: SyntaxTree, out: OutcomeBuilder) -> None:
        for component in find_components(tree):
            out.checked()
            lines = tree.end_line(component.function) - tree.line(component.function) + 1
            if lines > MAX_COMPONENT_LINES:
                self.report(
                    out,
                    tree,
                    component.node,
                    "large-component",
                    f"Component {component.name} is {lines} lines (limit {MAX_COMPONENT_LINES})",
                )
