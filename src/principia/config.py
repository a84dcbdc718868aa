"""Audit configuration: defaults, ``.principia/config.yml``, validation.

Resolution order, lowest to highest precedence: built-in defaults, the
config file, then invocation overrides (CLI options).  The result is a
frozen :class:`~principia.models.AuditConfig`; :func:`validate_config`
rejects anything the engine could not honour before a single source file
is read.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any

import yaml

from principia.errors import ConfigError
from principia.models import VALID_REPORT_FORMATS, AuditConfig, Severity
from principia.rules.catalog import RULESETS, weight_problems
from principia.rules.severity import parse_severity_overrides

if TYPE_CHECKING:
    from collections.abc import Mapping

logger = logging.getLogger(__name__)

CONFIG_DIR = ".principia"
CONFIG_FILE = "config.yml"

DEFAULT_INCLUDE: tuple[str, ...] = (
    "app/**/*.{ts,tsx}",
    "components/**/*.{ts,tsx}",
    "services/**/*.ts",
    "store/**/*.ts",
    "hooks/**/*.ts",
    "utils/**/*.ts",
)

DEFAULT_EXCLUDE: tuple[str, ...] = (
    "node_modules/**",
    ".expo/**",
    "**/*.test.tsx",
    "**/*.test.ts",
    "constants/Colors.ts",
    "constants/Theme.ts",
    "scripts/**",
    "specs/**",
    ".specify/**",
)

DEFAULT_CONFIG = AuditConfig(
    include=DEFAULT_INCLUDE,
    exclude=DEFAULT_EXCLUDE,
)

KNOWN_KEYS: frozenset[str] = frozenset(
    {
        "ruleset_version",
        "include",
        "exclude",
        "severity_overrides",
        "report_formats",
        "principles",
        "principle_weights",
        "output_dir",
    }
)


def default_config_path(project_root: Path) -> Path:
    return project_root / CONFIG_DIR / CONFIG_FILE


def load_config_file(path: Path) -> dict[str, Any]:
    """Read a YAML config file into a plain mapping.

    An empty file yields ``{}``.  Raises :class:`ConfigError` for unreadable
    files, malformed YAML, or a top level that is not a mapping.
    """
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        msg = f"cannot read config file {path}: {exc}"
        raise ConfigError(msg) from exc
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        msg = f"malformed YAML in {path}: {exc}"
        raise ConfigError(msg) from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        msg = f"{path}: top level must be a mapping, got {type(data).__name__}"
        raise ConfigError(msg)
    return data


# ---------------------------------------------------------------------------
# Mapping -> AuditConfig
# ---------------------------------------------------------------------------


def _str_list(data: Mapping[str, Any], key: str, problems: list[str]) -> tuple[str, ...] | None:
    value = data[key]
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, (list, tuple)) or not all(isinstance(v, str) for v in value):
        problems.append(f"{key}: expected a list of strings")
        return None
    return tuple(value)


def _weights(data: Mapping[str, Any], problems: list[str]) -> dict[str, float] | None:
    value = data["principle_weights"]
    if value is None:
        return None
    if not isinstance(value, dict):
        problems.append("principle_weights: expected a mapping of principle id to weight")
        return None
    weights: dict[str, float] = {}
    for pid, w in value.items():
        if isinstance(w, bool) or not isinstance(w, (int, float)):
            problems.append(f"principle_weights.{pid}: expected a number, got {w!r}")
            continue
        weights[str(pid)] = float(w)
    return weights


def apply_mapping(base: AuditConfig, data: Mapping[str, Any]) -> AuditConfig:
    """Layer *data* (config-file shaped) over *base*.

    ``severity_overrides`` entries are merged; every other key replaces the
    base value.  Raises :class:`ConfigError` listing all type problems.
    """
    problems: list[str] = []
    fields: dict[str, Any] = {}

    for key in sorted(set(data) - KNOWN_KEYS):
        logger.warning("Ignoring unknown config key '%s'", key)

    if "ruleset_version" in data:
        fields["ruleset_version"] = str(data["ruleset_version"])
    for key in ("include", "exclude", "report_formats"):
        if key in data:
            parsed = _str_list(data, key, problems)
            if parsed is not None:
                fields[key] = parsed
    if "principles" in data:
        if data["principles"] is None:
            fields["principles"] = None
        else:
            parsed = _str_list(data, "principles", problems)
            if parsed is not None:
                fields["principles"] = parsed
    if "principle_weights" in data:
        weights = _weights(data, problems)
        if not problems:
            fields["principle_weights"] = weights
    if "severity_overrides" in data:
        raw = data["severity_overrides"] or {}
        if not isinstance(raw, dict):
            problems.append("severity_overrides: expected a mapping of rule id to severity")
        else:
            try:
                overrides = parse_severity_overrides(raw)
            except ConfigError as exc:
                problems.extend(exc.problems)
            else:
                fields["severity_overrides"] = {**base.severity_overrides, **overrides}
    if "output_dir" in data:
        if not isinstance(data["output_dir"], str) or not data["output_dir"]:
            problems.append("output_dir: expected a non-empty string")
        else:
            fields["output_dir"] = data["output_dir"]

    if problems:
        raise ConfigError(problems)

    values = {
        "ruleset_version": base.ruleset_version,
        "include": base.include,
        "exclude": base.exclude,
        "severity_overrides": dict(base.severity_overrides),
        "report_formats": base.report_formats,
        "principles": base.principles,
        "principle_weights": base.principle_weights,
        "output_dir": base.output_dir,
    }
    values.update(fields)
    return AuditConfig(**values)


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


def validate_config(config: AuditConfig) -> None:
    """Check *config* against the ruleset it names.

    Raises :class:`ConfigError` carrying every problem found.
    """
    problems: list[str] = []

    ruleset = RULESETS.get(config.ruleset_version)
    if ruleset is None:
        problems.append(
            f"ruleset_version: unknown version '{config.ruleset_version}' "
            f"(available: {', '.join(sorted(RULESETS))})"
        )

    if not config.include:
        problems.append("include: at least one pattern is required")

    for fmt in config.report_formats:
        if fmt not in VALID_REPORT_FORMATS:
            problems.append(
                f"report_formats: unknown format '{fmt}' "
                f"(valid: {', '.join(sorted(VALID_REPORT_FORMATS))})"
            )

    for rule_id, sev in config.severity_overrides.items():
        if not isinstance(sev, Severity):
            problems.append(f"severity_overrides.{rule_id}: invalid severity {sev!r}")

    if ruleset is not None:
        known = set(ruleset.principle_ids)
        if config.principles is not None:
            if not config.principles:
                problems.append("principles: the selection must not be empty")
            for pid in config.principles:
                if pid not in known:
                    problems.append(f"principles: unknown principle id '{pid}'")
        weights = ruleset.default_weights
        if config.principle_weights is not None:
            weights = config.principle_weights
            problems.extend(
                f"principle_weights: {p}"
                for p in weight_problems(config.principle_weights, ruleset.principle_ids)
            )
        selected = [
            pid
            for pid in (ruleset.principle_ids if config.principles is None else config.principles)
            if pid in known
        ]
        if selected and sum(weights.get(pid, 0.0) for pid in selected) <= 0.0:
            problems.append(
                "principles: the selected principles carry no scoring weight "
                f"({', '.join(selected)})"
            )

    if problems:
        raise ConfigError(problems)


def resolve_config(
    project_root: Path,
    config_path: Path | None = None,
    overrides: Mapping[str, Any] | None = None,
) -> AuditConfig:
    """Build the effective, validated configuration for *project_root*.

    When *config_path* is ``None`` the project's ``.principia/config.yml``
    is used if present.  An explicitly given path must exist.
    """
    config = DEFAULT_CONFIG
    if config_path is None:
        candidate = default_config_path(project_root)
        if candidate.is_file():
            config_path = candidate
    elif not Path(config_path).is_file():
        msg = f"config file not found: {config_path}"
        raise ConfigError(msg)

    if config_path is not None:
        logger.debug("Loading config from %s", config_path)
        config = apply_mapping(config, load_config_file(Path(config_path)))
    if overrides:
        config = apply_mapping(config, overrides)

    validate_config(config)
    return config
