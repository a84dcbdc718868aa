"""Performance: optimized lists and stable render callbacks."""

from __future__ import annotations

from typing import TYPE_CHECKING

from principia.analyzers.base import RuleAnalyzer
from principia.rules.catalog import PERFORMANCE

if TYPE_CHECKING:
    from principia.engine.analyzer import OutcomeBuilder
    from principia.syntax.tree import SyntaxTree

_INLINE_FUNCTION_TYPES: frozenset[str] = frozenset({"arrow_function", "function_expression", "function"})


def _is_callback_prop(name: str) -> bool:
    if name.startswith("render"):
        return True
    return len(name) > 2 and name.startswith("on") and name[2].isupper()


class PerformanceAnalyzer(RuleAnalyzer):
    principle_id = PERFORMANCE
    name = "performance"

    def check(self, tree: SyntaxTree, out: OutcomeBuilder) -> None:
        for element in tree.jsx_elements("FlatList"):
            out.checked()
            if "keyExtractor" not in tree.jsx_attributes(element):
                self.report(
                    out,
                    tree,
                    element,
                    "missing-flatlist-optimization",
                    "FlatList has no keyExtractor",
                )

        for element in tree.jsx_elements():
            for prop, value in tree.jsx_attributes(element).items():
                if value is None or value.type != "jsx_expression" or not _is_callback_prop(prop):
                    continue
                out.checked()
                if value.named_child_count and value.named_children[0].type in _INLINE_FUNCTION_TYPES:
                    self.report(
                        out,
                        tree,
                        value,
                        "inline-render-functions",
                        f"Inline function for {prop} on <{tree.jsx_name(element)}>",
                    )
