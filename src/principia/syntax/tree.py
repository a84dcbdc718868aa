"""Syntax tree provider: tree-sitter parsing behind a narrow query surface."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from tree_sitter import Language, Parser

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator

    from tree_sitter import Node as TSNode

# Node types that start a new iteration scope.
_LOOP_TYPES: frozenset[str] = frozenset({
    "for_statement",
    "for_in_statement",
    "while_statement",
    "do_statement",
})

# Array methods whose callback runs once per element.
_ITERATION_METHODS: frozenset[str] = frozenset({"map", "forEach", "filter", "flatMap", "reduce"})

FUNCTION_TYPES: frozenset[str] = frozenset({
    "function_declaration",
    "function_expression",
    "arrow_function",
    "method_definition",
    "generator_function_declaration",
})


# ---------------------------------------------------------------------------
# Language loading
# ---------------------------------------------------------------------------


def _load_typescript() -> Language:
    import tree_sitter_typescript as tstypescript

    return Language(tstypescript.language_typescript())


def _load_tsx() -> Language:
    import tree_sitter_typescript as tstypescript

    return Language(tstypescript.language_tsx())


# Extension -> loader function mapping.
_EXTENSION_LOADERS: dict[str, Callable[[], Language]] = {
    ".ts": _load_typescript,
    ".tsx": _load_tsx,
    ".js": _load_tsx,
    ".jsx": _load_tsx,
}

_LANG_CACHE: dict[str, Language] = {}


def get_language(extension: str) -> Language | None:
    """Return the grammar for *extension*, or ``None`` if unsupported."""
    if extension in _LANG_CACHE:
        return _LANG_CACHE[extension]
    loader = _EXTENSION_LOADERS.get(extension)
    if loader is None:
        return None
    language = loader()
    _LANG_CACHE[extension] = language
    return language


def supported_extensions() -> frozenset[str]:
    return frozenset(_EXTENSION_LOADERS)


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ParseFailure:
    """Structured parse failure: the file cannot be judged."""

    path: str
    reason: str
    line: int | None = None


class SyntaxTree:
    """A parsed source file with node/position queries.

    Nodes are opaque handles: analyzers only pass them back into this
    object's query methods.
    """

    def __init__(self, path: str, source: bytes, root: TSNode) -> None:
        self.path = path
        self.source = source
        self.root = root
        self._lines = source.decode("utf-8").splitlines()

    @property
    def line_count(self) -> int:
        return len(self._lines)

    # -- traversal -----------------------------------------------------------

    def walk(self, node: TSNode | None = None) -> Iterator[TSNode]:
        """Yield *node* (default: root) and every descendant in source order."""
        stack = [node if node is not None else self.root]
        while stack:
            current = stack.pop()
            yield current
            stack.extend(reversed(current.children))

    def find(self, *types: str, within: TSNode | None = None) -> list[TSNode]:
        """Return every descendant whose type is one of *types*."""
        wanted = frozenset(types)
        return [n for n in self.walk(within) if n.type in wanted]

    def ancestors(self, node: TSNode) -> Iterator[TSNode]:
        current = node.parent
        while current is not None:
            yield current
            current = current.parent

    def has_ancestor(self, node: TSNode, *types: str) -> bool:
        wanted = frozenset(types)
        return any(a.type in wanted for a in self.ancestors(node))

    def enclosing_function(self, node: TSNode) -> TSNode | None:
        for a in self.ancestors(node):
            if a.type in FUNCTION_TYPES:
                return a
        return None

    # -- positions -------------------------------------------------------------

    def text(self, node: TSNode) -> str:
        return node.text.decode("utf-8") if node.text else ""

    def line(self, node: TSNode) -> int:
        """1-based start line."""
        return node.start_point.row + 1

    def end_line(self, node: TSNode) -> int:
        return node.end_point.row + 1

    def column(self, node: TSNode) -> int:
        """1-based start column."""
        return node.start_point.column + 1

    def snippet(self, node: TSNode, before: int = 2, after: int = 2, max_lines: int = 10) -> str:
        """Source lines around *node* for report context, at most *max_lines*."""
        start = max(1, self.line(node) - before)
        end = min(self.line_count, self.end_line(node) + after, start + max_lines - 1)
        return "\n".join(self._lines[start - 1 : end])

    # -- TypeScript / JSX helpers ----------------------------------------------

    def call_name(self, node: TSNode) -> str | None:
        """Return the callee text of a ``call_expression`` (``useState``, ``StyleSheet.create``)."""
        if node.type != "call_expression":
            return None
        callee = node.child_by_field_name("function")
        if callee is None:
            return None
        return self.text(callee)

    def is_inside_loop(self, node: TSNode) -> bool:
        """Return True if *node* runs inside a loop body or an iteration callback."""
        for a in self.ancestors(node):
            if a.type in _LOOP_TYPES:
                return True
            if a.type == "call_expression":
                callee = a.child_by_field_name("function")
                if callee is not None and callee.type == "member_expression":
                    prop = callee.child_by_field_name("property")
                    if prop is not None and self.text(prop) in _ITERATION_METHODS:
                        return True
        return False

    def jsx_opening(self, node: TSNode) -> TSNode | None:
        """Return the tag-bearing node of a JSX element (opening or self-closing)."""
        if node.type == "jsx_self_closing_element":
            return node
        if node.type == "jsx_element":
            for child in node.named_children:
                if child.type == "jsx_opening_element":
                    return child
        if node.type == "jsx_opening_element":
            return node
        return None

    def jsx_name(self, node: TSNode) -> str | None:
        opening = self.jsx_opening(node)
        if opening is None:
            return None
        name = opening.child_by_field_name("name")
        if name is None:
            return None
        return self.text(name)

    def jsx_attributes(self, node: TSNode) -> dict[str, TSNode | None]:
        """Map attribute name -> value node (``None`` for bare boolean attributes)."""
        opening = self.jsx_opening(node)
        if opening is None:
            return {}
        attrs: dict[str, TSNode | None] = {}
        for child in opening.named_children:
            if child.type != "jsx_attribute":
                continue
            parts = child.named_children
            if not parts:
                continue
            value = parts[-1] if len(parts) > 1 else None
            attrs[self.text(parts[0])] = value
        return attrs

    def jsx_elements(self, *names: str) -> list[TSNode]:
        """Return JSX elements, optionally filtered by tag name."""
        elements = self.find("jsx_element", "jsx_self_closing_element")
        if not names:
            return elements
        wanted = frozenset(names)
        return [e for e in elements if self.jsx_name(e) in wanted]

    def imports_from(self, module: str) -> bool:
        """Return True if the file has an import whose source is *module*."""
        for stmt in self.find("import_statement"):
            source = stmt.child_by_field_name("source")
            if source is not None and self.text(source).strip("'\"") == module:
                return True
        return False


# ---------------------------------------------------------------------------
# Provider
# ---------------------------------------------------------------------------


def _first_error_line(root: TSNode) -> int | None:
    stack = [root]
    while stack:
        node = stack.pop()
        if node.type == "ERROR" or node.is_missing:
            return node.start_point.row + 1
        if node.has_error:
            stack.extend(reversed(node.children))
    return None


def parse_source(path: str, source: bytes) -> SyntaxTree | ParseFailure:
    """Parse *source* (the contents of *path*) into a :class:`SyntaxTree`.

    Returns a :class:`ParseFailure` when the extension is unsupported, the
    bytes are not UTF-8, or the tree contains syntax errors.
    """
    suffix = path[path.rfind(".") :] if "." in path else ""
    language = get_language(suffix)
    if language is None:
        return ParseFailure(path=path, reason=f"unsupported file type '{suffix or path}'")

    try:
        source.decode("utf-8")
    except UnicodeDecodeError as exc:
        return ParseFailure(path=path, reason=f"not valid UTF-8: {exc.reason}")

    parser = Parser(language)
    tree = parser.parse(source)
    if tree.root_node.has_error:
        line = _first_error_line(tree.root_node)
        where = f" at line {line}" if line is not None else ""
        return ParseFailure(path=path, reason=f"syntax error{where}", line=line)

    return SyntaxTree(path, source, tree.root_node)
