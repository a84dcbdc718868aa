"""Severity and weight model: rule -> severity, principle -> scoring weight."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from principia.errors import ConfigError
from principia.models import Severity
from principia.rules.catalog import get_ruleset, weight_problems

if TYPE_CHECKING:
    from collections.abc import Mapping

    from principia.models import AuditConfig
    from principia.rules.catalog import Ruleset

logger = logging.getLogger(__name__)

# Used when a rule id is missing from the catalog and has no override.
FALLBACK_SEVERITY = Severity.MEDIUM


@dataclass(frozen=True)
class SeverityModel:
    """Static lookups with per-run overrides.

    Build via :meth:`from_config` so the weight table is validated before
    any analysis starts.
    """

    ruleset: Ruleset
    overrides: dict[str, Severity] = field(default_factory=dict)
    weights: dict[str, float] = field(default_factory=dict)

    @classmethod
    def from_config(cls, config: AuditConfig, ruleset: Ruleset | None = None) -> SeverityModel:
        """Build the model for *config*.

        Raises :class:`ConfigError` when the effective weight table does not
        cover the ruleset's principles or does not sum to 1.0.
        """
        if ruleset is None:
            try:
                ruleset = get_ruleset(config.ruleset_version)
            except KeyError as exc:
                raise ConfigError(str(exc.args[0])) from exc

        weights = dict(ruleset.default_weights)
        if config.principle_weights is not None:
            weights = {pid: float(w) for pid, w in config.principle_weights.items()}
        problems = weight_problems(weights, ruleset.principle_ids)
        if problems:
            raise ConfigError(problems)

        for rule_id in sorted(config.severity_overrides):
            if ruleset.rule(rule_id) is None:
                logger.warning(
                    "Severity override for unknown rule '%s' (ruleset %s)",
                    rule_id,
                    ruleset.version,
                )

        return cls(ruleset=ruleset, overrides=dict(config.severity_overrides), weights=weights)

    def severity_of(self, rule_id: str) -> Severity:
        """Return the effective severity: override, then catalog default."""
        if rule_id in self.overrides:
            return self.overrides[rule_id]
        rule = self.ruleset.rule(rule_id)
        if rule is not None:
            return rule.severity
        logger.warning("Unknown rule id '%s', defaulting to %s", rule_id, FALLBACK_SEVERITY.value)
        return FALLBACK_SEVERITY

    def weight_of(self, principle_id: str) -> float:
        """Return the scoring weight of *principle_id* (0.0 when unknown)."""
        if self.weights:
            return self.weights.get(principle_id, 0.0)
        return self.ruleset.default_weights.get(principle_id, 0.0)


def parse_severity_overrides(raw: Mapping[str, object]) -> dict[str, Severity]:
    """Parse a ``rule_id -> severity name`` mapping.

    Raises :class:`ConfigError` listing every invalid entry.
    """
    parsed: dict[str, Severity] = {}
    problems: list[str] = []
    for rule_id, value in raw.items():
        try:
            parsed[str(rule_id)] = Severity.parse(value)  # type: ignore[arg-type]
        except ValueError as exc:
            problems.append(f"severity_overrides.{rule_id}: {exc}")
    if problems:
        raise ConfigError(problems)
    return parsed


def severity_display_name(severity: Severity) -> str:
    return severity.value.capitalize()
