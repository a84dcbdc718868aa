"""Testing & documentation: documented exports, guarded JSON parsing."""

from __future__ import annotations

from typing import TYPE_CHECKING

from principia.analyzers.base import RuleAnalyzer, find_components
from principia.rules.catalog import TESTING_DOCUMENTATION

if TYPE_CHECKING:
    from tree_sitter import Node as TSNode

    from principia.engine.analyzer import OutcomeBuilder
    from principia.syntax.tree import SyntaxTree


def _export_statement(tree: SyntaxTree, node: TSNode) -> TSNode | None:
    for a in tree.ancestors(node):
        if a.type == "export_statement":
            return a
        if a.type in ("program", "statement_block"):
            return None
    return None


def _has_jsdoc(tree: SyntaxTree, node: TSNode) -> bool:
    prev = node.prev_sibling
    return prev is not None and prev.type == "comment" and tree.text(prev).startswith("/**")


class DocumentationAnalyzer(RuleAnalyzer):
    principle_id = TESTING_DOCUMENTATION
    name = "testing-documentation"

    def check(self, tree: SyntaxTree, out: OutcomeBuilder) -> None:
        for component in find_components(tree):
            export = _export_statement(tree, component.node)
            if export is None:
                continue
            out.checked()
            if not _has_jsdoc(tree, export):
                self.report(
                    out,
                    tree,
                    export,
                    "missing-jsdoc",
                    f"Exported component {component.name} has no JSDoc comment",
                )

        for call in tree.find("call_expression"):
            if tree.call_name(call) != "JSON.parse":
                continue
            out.checked()
            if not tree.has_ancestor(call, "try_statement"):
                self.report(
                    out,
                    tree,
                    call,
                    "missing-defensive-coding",
                    "JSON.parse() outside try/catch",
                )
