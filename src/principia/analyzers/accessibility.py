"""Accessibility: labelled touch targets, haptic feedback, visible loading states."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

from principia.analyzers.base import RuleAnalyzer, is_async, renders_jsx
from principia.rules.catalog import ACCESSIBILITY
from principia.syntax.tree import FUNCTION_TYPES

if TYPE_CHECKING:
    from principia.engine.analyzer import OutcomeBuilder
    from principia.syntax.tree import SyntaxTree

INTERACTIVE_COMPONENTS: frozenset[str] = frozenset(
    {
        "TouchableOpacity",
        "TouchableHighlight",
        "TouchableWithoutFeedback",
        "Pressable",
        "Button",
    }
)

_LABEL_PROPS: frozenset[str] = frozenset({"accessibilityLabel", "aria-label"})
_LOADING_RE = re.compile(r"loading|pending|submitting|refreshing", re.IGNORECASE)
_IDENTIFIER_TYPES: tuple[str, ...] = (
    "identifier",
    "property_identifier",
    "shorthand_property_identifier",
    "shorthand_property_identifier_pattern",
)


class AccessibilityAnalyzer(RuleAnalyzer):
    principle_id = ACCESSIBILITY
    name = "accessibility"

    def check(self, tree: SyntaxTree, out: OutcomeBuilder) -> None:
        self._labels(tree, out)
        self._haptics(tree, out)
        self._loading_states(tree, out)

    def _labels(self, tree: SyntaxTree, out: OutcomeBuilder) -> None:
        for element in tree.jsx_elements(*INTERACTIVE_COMPONENTS):
            out.checked()
            if not _LABEL_PROPS & set(tree.jsx_attributes(element)):
                self.report(
                    out,
                    tree,
                    element,
                    "missing-accessibility-label",
                    f"<{tree.jsx_name(element)}> has no accessibilityLabel",
                )

    def _haptics(self, tree: SyntaxTree, out: OutcomeBuilder) -> None:
        pressables = [e for e in tree.jsx_elements() if "onPress" in tree.jsx_attributes(e)]
        if not pressables:
            return
        out.checked(len(pressables))
        uses_haptics = any(tree.text(n) == "Haptics" for n in tree.find("identifier"))
        if uses_haptics:
            return
        for element in pressables:
            self.report(
                out,
                tree,
                element,
                "missing-haptic-feedback",
                f"<{tree.jsx_name(element)}> onPress gives no haptic feedback",
            )

    def _loading_states(self, tree: SyntaxTree, out: OutcomeBuilder) -> None:
        async_functions = [f for f in tree.find(*FUNCTION_TYPES) if is_async(f)]
        if not async_functions or not renders_jsx(tree, tree.root):
            return
        out.checked()
        if tree.jsx_elements("ActivityIndicator"):
            return
        if any(_LOADING_RE.search(tree.text(n)) for n in tree.find(*_IDENTIFIER_TYPES)):
            return
        self.report(
            out,
            tree,
            async_functions[0],
            "missing-loading-states",
            "Screen performs async work but shows no loading state",
        )
