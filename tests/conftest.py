"""Shared test fixtures for Principia."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING

import pytest

from principia.models import (
    AuditConfig,
    AuditRun,
    PrincipleCompliance,
    Remediation,
    Severity,
    Violation,
    make_violation_id,
)
from principia.rules.catalog import RULESET_V1

if TYPE_CHECKING:
    from pathlib import Path


def make_violation(
    file_path: str = "app/index.tsx",
    line: int = 1,
    rule_id: str = "hardcoded-colors",
    principle_id: str = "principle-1-design-system",
    severity: Severity = Severity.HIGH,
    message: str = "msg",
) -> Violation:
    return Violation(
        id=make_violation_id(file_path, line, rule_id),
        file_path=file_path,
        line=line,
        principle_id=principle_id,
        rule_id=rule_id,
        severity=severity,
        message=message,
        remediation=Remediation(description="fix it"),
    )


def make_run(
    *,
    run_id: str = "2026-01-01-000000",
    timestamp: datetime | None = None,
    compliance: dict[str, tuple[int, int]] | None = None,
    ruleset_version: str = "1.0.0",
    health_score: int | None = None,
) -> AuditRun:
    """Build a run over the v1 principles.

    *compliance* maps principle id -> (total_checks, violations); principles
    not listed get (0, 0).
    """
    from principia.engine.scoring import health_score as score_of

    compliance = compliance or {}
    principles = []
    for p in RULESET_V1.principles:
        total, failed = compliance.get(p.id, (0, 0))
        violations = [
            make_violation(line=i + 1, principle_id=p.id, rule_id=f"rule-{p.id[-4:]}")
            for i in range(failed)
        ]
        principles.append(
            PrincipleCompliance.build(p.id, p.name, p.weight, total, violations)
        )
    principles_t = tuple(principles)
    return AuditRun(
        id=run_id,
        timestamp=timestamp or datetime(2026, 1, 1, tzinfo=timezone.utc),
        ruleset_version=ruleset_version,
        branch="main",
        commit="abc123",
        files_analyzed=3,
        total_violations=sum(len(p.violations) for p in principles_t),
        health_score=score_of(principles_t) if health_score is None else health_score,
        principles=principles_t,
        duration_ms=12.5,
        config=AuditConfig(include=("app/**/*.tsx",)),
    )


@pytest.fixture()
def tmp_project(tmp_path: Path) -> Path:
    """Create a small React Native project with a few audited files."""
    app = tmp_path / "app"
    app.mkdir()
    (app / "index.tsx").write_text(
        "import React from 'react';\n"
        "import { Text, View } from 'react-native';\n"
        "\n"
        "/** Home screen. */\n"
        "export default function Home() {\n"
        "  return (\n"
        "    <View style={{ backgroundColor: '#ffffff' }}>\n"
        "      <Text>Hello</Text>\n"
        "    </View>\n"
        "  );\n"
        "}\n",
        encoding="utf-8",
    )
    (app / "broken.tsx").write_text(
        "export function Broken( {\n  return <View>\n}\n",
        encoding="utf-8",
    )
    utils = tmp_path / "utils"
    utils.mkdir()
    (utils / "parse.ts").write_text(
        "export function load(raw: string): unknown {\n"
        "  return JSON.parse(raw);\n"
        "}\n",
        encoding="utf-8",
    )
    node_modules = tmp_path / "node_modules" / "lib"
    node_modules.mkdir(parents=True)
    (node_modules / "index.ts").write_text("export const x: any = 1;\n", encoding="utf-8")
    return tmp_path
