"""State management: typed, persisted zustand stores."""

from __future__ import annotations

from typing import TYPE_CHECKING

from principia.analyzers.base import RuleAnalyzer
from principia.rules.catalog import STATE_MANAGEMENT

if TYPE_CHECKING:
    from tree_sitter import Node as TSNode

    from principia.engine.analyzer import OutcomeBuilder
    from principia.syntax.tree import SyntaxTree


def _has_type_arguments(call: TSNode) -> bool:
    return any(child.type == "type_arguments" for child in call.children)


class StateManagementAnalyzer(RuleAnalyzer):
    principle_id = STATE_MANAGEMENT
    name = "state-management"

    def check(self, tree: SyntaxTree, out: OutcomeBuilder) -> None:
        if not tree.imports_from("zustand"):
            return
        stores = [c for c in tree.find("call_expression") if tree.call_name(c) == "create"]
        if not stores:
            return

        for call in stores:
            out.checked()
            if not _has_type_arguments(call):
                self.report(
                    out,
                    tree,
                    call,
                    "missing-zustand-interface",
                    "create() called without a state type argument",
                )

        out.checked()
        persisted = any(tree.call_name(c) == "persist" for c in tree.find("call_expression"))
        if not persisted:
            self.report(
                out,
                tree,
                stores[0],
                "missing-persistence",
                "Store is not wrapped with the persist middleware",
            )
