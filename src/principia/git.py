"""Source-control coordinates of the audited tree."""

from __future__ import annotations

import subprocess
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pathlib import Path

UNKNOWN = "unknown"


def _git(project_root: Path, *args: str) -> str:
    try:
        result = subprocess.run(
            ["git", *args],  # noqa: S607
            cwd=str(project_root),
            capture_output=True,
            text=True,
            timeout=10,
        )
    except (FileNotFoundError, NotADirectoryError, subprocess.TimeoutExpired):
        return UNKNOWN

    if result.returncode != 0:
        return UNKNOWN
    return result.stdout.strip() or UNKNOWN


def current_branch(project_root: Path) -> str:
    """Branch name, or ``"unknown"`` outside a git repository."""
    return _git(project_root, "rev-parse", "--abbrev-ref", "HEAD")


def current_commit(project_root: Path) -> str:
    """Full commit SHA of HEAD, or ``"unknown"``."""
    return _git(project_root, "rev-parse", "HEAD")
