"""Tests for principia.syntax — tree-sitter provider and query surface."""

from __future__ import annotations

import pytest

from principia.syntax import ParseFailure, SyntaxTree, parse_source, supported_extensions


def _tree(source: str, path: str = "app/a.tsx") -> SyntaxTree:
    tree = parse_source(path, source.encode("utf-8"))
    assert isinstance(tree, SyntaxTree), tree
    return tree


class TestParseSource:
    def test_supported_extensions(self) -> None:
        assert supported_extensions() == {".ts", ".tsx", ".js", ".jsx"}

    def test_unsupported_extension(self) -> None:
        result = parse_source("README.md", b"# hi\n")
        assert isinstance(result, ParseFailure)
        assert "unsupported" in result.reason

    def test_syntax_error_reports_line(self) -> None:
        result = parse_source("app/b.tsx", b"const a = 1;\nexport function X( {\n  return <View>\n}\n")
        assert isinstance(result, ParseFailure)
        assert result.reason.startswith("syntax error")
        assert result.line is not None

    def test_invalid_utf8(self) -> None:
        result = parse_source("app/c.ts", b"const a = '\xff';\n")
        assert isinstance(result, ParseFailure)
        assert "UTF-8" in result.reason

    @pytest.mark.parametrize("path", ["x.ts", "x.tsx", "x.js", "x.jsx"])
    def test_plain_code_parses(self, path: str) -> None:
        assert isinstance(parse_source(path, b"export const a = 1;\n"), SyntaxTree)


class TestQueries:
    def test_positions_and_snippet(self) -> None:
        source = "".join(f"const v{i} = {i};\n" for i in range(20))
        tree = _tree(source, "a.ts")
        assert tree.line_count == 20
        decls = tree.find("lexical_declaration")
        node = decls[9]
        assert tree.line(node) == 10
        assert tree.column(node) == 1
        assert tree.snippet(node).splitlines() == [f"const v{i} = {i};" for i in range(7, 12)]

    def test_snippet_is_capped(self) -> None:
        body = "".join(f"  const v{i} = {i};\n" for i in range(30))
        tree = _tree(f"function big() {{\n{body}}}\n", "a.ts")
        node = tree.find("function_declaration")[0]
        assert len(tree.snippet(node).splitlines()) == 10

    def test_call_name_and_loops(self) -> None:
        tree = _tree(
            "for (const x of xs) { useA(); }\n"
            "xs.forEach(() => useB());\n"
            "useC();\n"
            "StyleSheet.create({});\n",
            "a.ts",
        )
        calls = {tree.call_name(c): c for c in tree.find("call_expression")}
        assert tree.is_inside_loop(calls["useA"])
        assert tree.is_inside_loop(calls["useB"])
        assert not tree.is_inside_loop(calls["useC"])
        assert "StyleSheet.create" in calls

    def test_jsx_helpers(self) -> None:
        tree = _tree(
            "const a = <Pressable onPress={go} accessibilityLabel=\"Go\" disabled>"
            "<Text>hi</Text></Pressable>;\n"
        )
        (pressable,) = tree.jsx_elements("Pressable")
        attrs = tree.jsx_attributes(pressable)
        assert set(attrs) == {"onPress", "accessibilityLabel", "disabled"}
        assert attrs["disabled"] is None
        assert tree.jsx_name(pressable) == "Pressable"
        assert len(tree.jsx_elements()) == 2

    def test_imports_and_ancestors(self) -> None:
        tree = _tree(
            "import { create } from 'zustand';\n"
            "try { JSON.parse(s); } catch {}\n",
            "a.ts",
        )
        assert tree.imports_from("zustand")
        assert not tree.imports_from("redux")
        (call,) = tree.find("call_expression")
        assert tree.has_ancestor(call, "try_statement")
        assert tree.enclosing_function(call) is None
