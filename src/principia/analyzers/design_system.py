"""Design system adherence: theme colors, no hex literals, memoized styles."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

from principia.analyzers.base import RuleAnalyzer, find_components
from principia.rules.catalog import DESIGN_SYSTEM

if TYPE_CHECKING:
    from tree_sitter import Node as TSNode

    from principia.engine.analyzer import OutcomeBuilder
    from principia.syntax.tree import SyntaxTree

_HEX_COLOR_RE = re.compile(r"^#(?:[0-9a-fA-F]{3,4}|[0-9a-fA-F]{6}|[0-9a-fA-F]{8})$")
_THEME_HOOKS: frozenset[str] = frozenset({"useColorScheme", "useThemeColors"})


def _string_value(tree: SyntaxTree, node: TSNode | None) -> str | None:
    """Unquoted value of a string literal (or ``{'...'}`` JSX expression)."""
    if node is None:
        return None
    if node.type == "jsx_expression" and node.named_child_count == 1:
        node = node.named_children[0]
    if node.type != "string":
        return None
    return tree.text(node)[1:-1]


class DesignSystemAnalyzer(RuleAnalyzer):
    principle_id = DESIGN_SYSTEM
    name = "design-system"

    def check(self, tree: SyntaxTree, out: OutcomeBuilder) -> None:
        self._theme_hooks(tree, out)
        self._hardcoded_colors(tree, out)
        self._memoized_styles(tree, out)

    def _theme_hooks(self, tree: SyntaxTree, out: OutcomeBuilder) -> None:
        for call in tree.find("call_expression"):
            name = tree.call_name(call)
            if name not in _THEME_HOOKS:
                continue
            out.checked()
            if name == "useColorScheme":
                self.report(
                    out,
                    tree,
                    call,
                    "missing-use-theme-colors",
                    "useColorScheme() used directly; use the useThemeColors hook instead",
                )

    def _hardcoded_colors(self, tree: SyntaxTree, out: OutcomeBuilder) -> None:
        # Style objects: { backgroundColor: '#fff' }
        for pair in tree.find("pair"):
            key = pair.child_by_field_name("key")
            if key is None or "color" not in tree.text(key).lower():
                continue
            out.checked()
            value = _string_value(tree, pair.child_by_field_name("value"))
            if value is not None and _HEX_COLOR_RE.match(value):
                self.report(
                    out,
                    tree,
                    pair,
                    "hardcoded-colors",
                    f"Hardcoded color '{value}' for {tree.text(key)}",
                )
        # JSX props: <Icon color="#000" />
        for element in tree.jsx_elements():
            for attr, value_node in tree.jsx_attributes(element).items():
                if "color" not in attr.lower():
                    continue
                out.checked()
                value = _string_value(tree, value_node)
                if value is not None and _HEX_COLOR_RE.match(value):
                    self.report(
                        out,
                        tree,
                        value_node,  # type: ignore[arg-type]
                        "hardcoded-colors",
                        f"Hardcoded color '{value}' for prop {attr}",
                    )

    def _memoized_styles(self, tree: SyntaxTree, out: OutcomeBuilder) -> None:
        component_spans = {
            (c.function.start_byte, c.function.end_byte) for c in find_components(tree)
        }
        for call in tree.find("call_expression"):
            if tree.call_name(call) != "StyleSheet.create":
                continue
            out.checked()
            # Module-level styles and style factories are created once.
            function = tree.enclosing_function(call)
            if function is None or (function.start_byte, function.end_byte) not in component_spans:
                continue
            memoized = any(
                tree.call_name(a) == "useMemo" for a in tree.ancestors(call)
            )
            if not memoized:
                self.report(
                    out,
                    tree,
                    call,
                    "missing-use-memo-styles",
                    "StyleSheet.create() runs on every render; wrap it in useMemo",
                )
