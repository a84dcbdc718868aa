"""Exception hierarchy for the audit engine."""

from __future__ import annotations


class AuditError(Exception):
    """Base class for all principia errors."""


class ConfigError(AuditError):
    """Raised when the audit configuration is malformed or contradictory.

    Always raised before any source file is read.
    """

    def __init__(self, problems: list[str] | str) -> None:
        if isinstance(problems, str):
            problems = [problems]
        self.problems = list(problems)
        super().__init__("; ".join(self.problems))


class FileSetError(AuditError):
    """Raised when the set of files to audit cannot be resolved."""


class HistoryError(AuditError):
    """Raised when the audit history store cannot be read or written."""
