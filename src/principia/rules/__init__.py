"""Rules domain - versioned ruleset catalog and the severity/weight model."""

from principia.rules.catalog import (
    DEFAULT_RULESET_VERSION,
    RULESETS,
    WEIGHT_EPSILON,
    PrincipleDef,
    RuleDef,
    Ruleset,
    all_rule_ids,
    get_rule,
    get_ruleset,
    rules_for_principle,
    weight_problems,
)
from principia.rules.severity import (
    SeverityModel,
    parse_severity_overrides,
    severity_display_name,
)

__all__ = [
    "DEFAULT_RULESET_VERSION",
    "RULESETS",
    "WEIGHT_EPSILON",
    "PrincipleDef",
    "RuleDef",
    "Ruleset",
    "SeverityModel",
    "all_rule_ids",
    "get_rule",
    "get_ruleset",
    "parse_severity_overrides",
    "rules_for_principle",
    "severity_display_name",
    "weight_problems",
]
