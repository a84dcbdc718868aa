"""Tests for principia.files — include/exclude resolution."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from principia.errors import FileSetError
from principia.files import expand_braces, matches_any, resolve_files

if TYPE_CHECKING:
    from pathlib import Path


class TestGlobs:
    def test_expand_braces(self) -> None:
        assert expand_braces("app/**/*.{ts,tsx}") == ["app/**/*.ts", "app/**/*.tsx"]
        assert expand_braces("plain.ts") == ["plain.ts"]

    @pytest.mark.parametrize(
        ("path", "pattern", "expected"),
        [
            ("app/index.tsx", "app/**/*.{ts,tsx}", True),
            ("app/(tabs)/home.tsx", "app/**/*.{ts,tsx}", True),
            ("app/a/b/c.ts", "app/**/*.ts", True),
            ("apps/index.tsx", "app/**/*.tsx", False),
            ("app/index.tsx", "app/*.tsx", True),
            ("app/sub/index.tsx", "app/*.tsx", False),
            ("x/y.test.ts", "**/*.test.ts", True),
            ("y.test.ts", "**/*.test.ts", True),
            ("node_modules/a/b.ts", "node_modules/**", True),
        ],
    )
    def test_matches(self, path: str, pattern: str, expected: bool) -> None:
        assert matches_any(path, [pattern]) is expected


class TestResolveFiles:
    def test_default_style_patterns(self, tmp_project: Path) -> None:
        files = resolve_files(
            tmp_project,
            ["app/**/*.{ts,tsx}", "utils/**/*.ts", "node_modules/**/*.ts"],
            ["node_modules/**"],
        )
        assert files == ["app/broken.tsx", "app/index.tsx", "utils/parse.ts"]

    def test_deduplicates_overlapping_includes(self, tmp_project: Path) -> None:
        files = resolve_files(tmp_project, ["app/**/*.tsx", "**/*.tsx"], [])
        assert files == ["app/broken.tsx", "app/index.tsx"]

    def test_exclude_wins(self, tmp_project: Path) -> None:
        files = resolve_files(tmp_project, ["**/*.tsx"], ["app/broken.tsx"])
        assert files == ["app/index.tsx"]

    def test_missing_root(self, tmp_path: Path) -> None:
        with pytest.raises(FileSetError, match="not a directory"):
            resolve_files(tmp_path / "nope", ["**/*.ts"], [])

    def test_empty_result_is_not_an_error(self, tmp_path: Path) -> None:
        assert resolve_files(tmp_path, ["**/*.ts"], []) == []
