"""Syntax domain - tree-sitter backed syntax tree provider."""

from principia.syntax.tree import (
    FUNCTION_TYPES,
    ParseFailure,
    SyntaxTree,
    get_language,
    parse_source,
    supported_extensions,
)

__all__ = [
    "FUNCTION_TYPES",
    "ParseFailure",
    "SyntaxTree",
    "get_language",
    "parse_source",
    "supported_extensions",
]
