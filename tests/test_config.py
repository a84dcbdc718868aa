"""Tests for principia.config — defaults, config file, overrides, validation."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
import yaml

from principia.config import (
    DEFAULT_CONFIG,
    DEFAULT_INCLUDE,
    apply_mapping,
    default_config_path,
    load_config_file,
    resolve_config,
    validate_config,
)
from principia.errors import ConfigError
from principia.models import AuditConfig, Severity
from principia.rules.catalog import RULESET_V1

if TYPE_CHECKING:
    from pathlib import Path


def _write_config(project: Path, data: object) -> Path:
    path = default_config_path(project)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(yaml.dump(data), encoding="utf-8")
    return path


class TestLoadConfigFile:
    def test_empty_file(self, tmp_path: Path) -> None:
        path = tmp_path / "c.yml"
        path.write_text("", encoding="utf-8")
        assert load_config_file(path) == {}

    def test_malformed_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "c.yml"
        path.write_text("include: [unclosed\n", encoding="utf-8")
        with pytest.raises(ConfigError, match="malformed YAML"):
            load_config_file(path)

    def test_non_mapping(self, tmp_path: Path) -> None:
        path = tmp_path / "c.yml"
        path.write_text("- a\n- b\n", encoding="utf-8")
        with pytest.raises(ConfigError, match="mapping"):
            load_config_file(path)


class TestResolveConfig:
    def test_defaults_without_file(self, tmp_path: Path) -> None:
        config = resolve_config(tmp_path)
        assert config == DEFAULT_CONFIG
        assert config.include == DEFAULT_INCLUDE
        assert config.report_formats == ("markdown", "json")

    def test_file_over_defaults(self, tmp_path: Path) -> None:
        _write_config(
            tmp_path,
            {
                "include": ["src/**/*.ts"],
                "severity_overrides": {"hardcoded-colors": "low"},
                "report_formats": ["json"],
            },
        )
        config = resolve_config(tmp_path)
        assert config.include == ("src/**/*.ts",)
        assert config.exclude == DEFAULT_CONFIG.exclude
        assert config.severity_overrides == {"hardcoded-colors": Severity.LOW}
        assert config.report_formats == ("json",)

    def test_overrides_over_file(self, tmp_path: Path) -> None:
        _write_config(
            tmp_path,
            {"include": ["src/**/*.ts"], "severity_overrides": {"hardcoded-colors": "low"}},
        )
        config = resolve_config(
            tmp_path,
            overrides={"include": ["lib/**/*.ts"], "severity_overrides": {"any-type-usage": "critical"}},
        )
        assert config.include == ("lib/**/*.ts",)
        assert config.severity_overrides == {
            "hardcoded-colors": Severity.LOW,
            "any-type-usage": Severity.CRITICAL,
        }

    def test_explicit_path_must_exist(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="not found"):
            resolve_config(tmp_path, tmp_path / "missing.yml")

    def test_explicit_path(self, tmp_path: Path) -> None:
        path = tmp_path / "custom.yml"
        path.write_text("output_dir: reports\n", encoding="utf-8")
        assert resolve_config(tmp_path, path).output_dir == "reports"

    def test_result_is_frozen(self, tmp_path: Path) -> None:
        config = resolve_config(tmp_path)
        with pytest.raises(AttributeError):
            config.include = ()  # type: ignore[misc]


class TestApplyMapping:
    def test_type_errors_collected(self) -> None:
        with pytest.raises(ConfigError) as excinfo:
            apply_mapping(
                DEFAULT_CONFIG,
                {
                    "include": 5,
                    "severity_overrides": {"a": "nope"},
                    "principle_weights": {"x": "heavy"},
                },
            )
        assert len(excinfo.value.problems) == 3

    def test_unknown_key_ignored(self) -> None:
        assert apply_mapping(DEFAULT_CONFIG, {"colour": "blue"}) == DEFAULT_CONFIG

    def test_single_string_is_a_list(self) -> None:
        config = apply_mapping(DEFAULT_CONFIG, {"include": "app/**/*.tsx"})
        assert config.include == ("app/**/*.tsx",)


class TestValidateConfig:
    def test_default_is_valid(self) -> None:
        validate_config(DEFAULT_CONFIG)

    def test_reports_every_problem(self) -> None:
        config = AuditConfig(
            include=(),
            report_formats=("pdf",),
            principles=("principle-9-unknown",),
        )
        with pytest.raises(ConfigError) as excinfo:
            validate_config(config)
        problems = excinfo.value.problems
        assert any("include" in p for p in problems)
        assert any("pdf" in p for p in problems)
        assert any("principle-9-unknown" in p for p in problems)

    def test_unknown_ruleset_version(self) -> None:
        with pytest.raises(ConfigError, match="ruleset_version"):
            validate_config(AuditConfig(ruleset_version="2.0.0", include=("**/*.ts",)))

    def test_weights_must_sum_to_one(self) -> None:
        weights = dict(RULESET_V1.default_weights)
        weights["principle-1-design-system"] = 0.25
        with pytest.raises(ConfigError, match="sum to 1.0"):
            validate_config(AuditConfig(include=("**/*.ts",), principle_weights=weights))

    def test_valid_custom_weights(self) -> None:
        weights = dict.fromkeys(RULESET_V1.principle_ids, 0.0)
        weights["principle-2-type-safety"] = 0.6
        weights["principle-3-component-architecture"] = 0.4
        validate_config(AuditConfig(include=("**/*.ts",), principle_weights=weights))

    def test_empty_principle_selection(self) -> None:
        with pytest.raises(ConfigError, match="must not be empty"):
            validate_config(AuditConfig(include=("**/*.ts",), principles=()))

    def test_selection_without_weight(self) -> None:
        weights = dict.fromkeys(RULESET_V1.principle_ids, 0.0)
        weights["principle-2-type-safety"] = 1.0
        config = AuditConfig(
            include=("**/*.ts",),
            principles=("principle-7-testing-documentation",),
            principle_weights=weights,
        )
        with pytest.raises(ConfigError, match="no scoring weight"):
            validate_config(config)
