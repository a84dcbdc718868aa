"""File set resolver: include/exclude glob patterns -> ordered relative paths."""

from __future__ import annotations

import os
import re
from functools import lru_cache
from typing import TYPE_CHECKING

from principia.errors import FileSetError

if TYPE_CHECKING:
    from collections.abc import Iterable
    from pathlib import Path

# Directories never worth descending into.
_ALWAYS_SKIP_DIRS: frozenset[str] = frozenset({".git", ".hg", ".svn", ".principia"})

_BRACE_RE = re.compile(r"\{([^{}]*)\}")


def expand_braces(pattern: str) -> list[str]:
    """Expand ``{a,b}`` alternatives: ``src/*.{ts,tsx}`` -> two patterns."""
    match = _BRACE_RE.search(pattern)
    if match is None:
        return [pattern]
    head, tail = pattern[: match.start()], pattern[match.end() :]
    expanded: list[str] = []
    for option in match.group(1).split(","):
        expanded.extend(expand_braces(head + option + tail))
    return expanded


@lru_cache(maxsize=256)
def _compile(pattern: str) -> re.Pattern[str]:
    """Translate one brace-free glob into an anchored regex.

    ``**/`` matches zero or more directories, ``**`` anything, ``*`` and
    ``?`` never cross a ``/``.
    """
    out: list[str] = []
    i = 0
    while i < len(pattern):
        if pattern.startswith("**/", i):
            out.append("(?:.*/)?")
            i += 3
        elif pattern.startswith("**", i):
            out.append(".*")
            i += 2
        elif pattern[i] == "*":
            out.append("[^/]*")
            i += 1
        elif pattern[i] == "?":
            out.append("[^/]")
            i += 1
        else:
            out.append(re.escape(pattern[i]))
            i += 1
    return re.compile("".join(out) + r"\Z")


def matches_any(rel_path: str, patterns: Iterable[str]) -> bool:
    """Return True if the POSIX relative path matches any glob in *patterns*."""
    for pattern in patterns:
        for single in expand_braces(pattern):
            if _compile(single).match(rel_path):
                return True
    return False


def resolve_files(root: Path, include: Iterable[str], exclude: Iterable[str]) -> list[str]:
    """Return the sorted, de-duplicated relative paths under *root* to audit.

    A path is selected when it matches at least one include pattern and no
    exclude pattern.

    Raises :class:`FileSetError` when *root* is not a readable directory.
    """
    if not root.is_dir():
        msg = f"project root '{root}' is not a directory"
        raise FileSetError(msg)

    include = tuple(include)
    exclude = tuple(exclude)
    selected: set[str] = set()

    def _on_error(exc: OSError) -> None:
        msg = f"cannot read '{exc.filename}': {exc.strerror}"
        raise FileSetError(msg) from exc

    for dirpath, dirnames, filenames in os.walk(root, onerror=_on_error):
        dirnames[:] = sorted(d for d in dirnames if d not in _ALWAYS_SKIP_DIRS)
        rel_dir = os.path.relpath(dirpath, root)
        for name in filenames:
            rel = name if rel_dir == "." else f"{rel_dir}/{name}"
            rel = rel.replace(os.sep, "/")
            if matches_any(rel, include) and not matches_any(rel, exclude):
                selected.add(rel)

    return sorted(selected)
