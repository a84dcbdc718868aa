"""Principia CLI entry point."""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any

import click

from principia import __version__

EXIT_CONFIG_ERROR = 2


@click.group()
@click.version_option(version=__version__, prog_name="principia")
@click.option("--verbose", "-v", is_flag=True, help="Verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Minimal output (errors only).")
@click.pass_context
def main(ctx: click.Context, *, verbose: bool, quiet: bool) -> None:
    """Principia - architectural compliance auditor."""
    from principia.logging_config import setup_logging

    setup_logging(verbose=verbose, quiet=quiet)
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet


def _parse_assignments(values: tuple[str, ...], option: str) -> dict[str, str]:
    """Parse repeated ``KEY=VALUE`` options."""
    parsed: dict[str, str] = {}
    for item in values:
        key, sep, value = item.partition("=")
        if not sep or not key.strip() or not value.strip():
            msg = f"expected KEY=VALUE, got '{item}'"
            raise click.BadParameter(msg, param_hint=option)
        parsed[key.strip()] = value.strip()
    return parsed


def _parse_weights(values: tuple[str, ...]) -> dict[str, float]:
    weights: dict[str, float] = {}
    for key, value in _parse_assignments(values, "--weight").items():
        try:
            weights[key] = float(value)
        except ValueError:
            msg = f"weight for '{key}' is not a number: '{value}'"
            raise click.BadParameter(msg, param_hint="--weight") from None
    return weights


# ---------------------------------------------------------------------------
# audit
# ---------------------------------------------------------------------------


@main.command()
@click.option(
    "--project",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Project root (default: current directory).",
)
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Config file (default: .principia/config.yml).",
)
@click.option("--include", multiple=True, help="Include glob (repeatable, replaces config).")
@click.option("--exclude", multiple=True, help="Exclude glob (repeatable, replaces config).")
@click.option("--principle", "principles", multiple=True, help="Evaluate only this principle id.")
@click.option("--severity", "severities", multiple=True, help="Override severity: RULE=LEVEL.")
@click.option(
    "--format",
    "formats",
    multiple=True,
    type=click.Choice(["markdown", "json", "console"]),
    help="Report format (repeatable).",
)
@click.option("--ruleset-version", default=None, help="Ruleset version to audit against.")
@click.option("--workers", default=None, type=click.IntRange(min=1), help="Worker threads.")
@click.option(
    "--output-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Directory for written reports (default: from config).",
)
@click.option("--no-history", is_flag=True, help="Do not read or record audit history.")
def audit(
    *,
    project: Path | None,
    config_path: Path | None,
    include: tuple[str, ...],
    exclude: tuple[str, ...],
    principles: tuple[str, ...],
    severities: tuple[str, ...],
    formats: tuple[str, ...],
    ruleset_version: str | None,
    workers: int | None,
    output_dir: Path | None,
    no_history: bool,
) -> None:
    """Audit the project and write reports.

    Exits 0 whenever the run completes, however many violations it finds.
    """
    from principia.config import resolve_config
    from principia.engine.auditor import run_audit
    from principia.errors import ConfigError, FileSetError
    from principia.history import AuditHistoryStore, default_history_path
    from principia.reporting import format_console, write_reports

    project_root = (project or Path.cwd()).resolve()

    overrides: dict[str, Any] = {}
    if include:
        overrides["include"] = list(include)
    if exclude:
        overrides["exclude"] = list(exclude)
    if principles:
        overrides["principles"] = list(principles)
    if severities:
        overrides["severity_overrides"] = _parse_assignments(severities, "--severity")
    if formats:
        overrides["report_formats"] = list(formats)
    if ruleset_version:
        overrides["ruleset_version"] = ruleset_version
    if output_dir is not None:
        overrides["output_dir"] = str(output_dir)

    history = None if no_history else AuditHistoryStore(default_history_path(project_root))
    try:
        config = resolve_config(project_root, config_path, overrides)
        report = run_audit(project_root, config, history=history, max_workers=workers)
    except (ConfigError, FileSetError) as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(EXIT_CONFIG_ERROR)
    finally:
        if history is not None:
            history.close()

    out_dir = Path(config.output_dir)
    if not out_dir.is_absolute():
        out_dir = project_root / out_dir
    for path in write_reports(report, out_dir, config.report_formats):
        click.echo(f"Wrote {path}")

    if "console" in config.report_formats:
        click.echo(format_console(report, color=sys.stdout.isatty()), nl=False)
    else:
        s = report.summary
        click.echo(
            f"Health score: {s.health_score}/100 ({s.health_label}), "
            f"{s.total_violations} violations in {s.files_analyzed} files"
        )


# ---------------------------------------------------------------------------
# history
# ---------------------------------------------------------------------------


@main.command()
@click.option(
    "--project",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=None,
    help="Project root (default: current directory).",
)
@click.option("--limit", default=10, type=click.IntRange(min=1), help="Number of runs to show.")
@click.option("--json", "output_json", is_flag=True, help="Output as JSON.")
def history(*, project: Path | None, limit: int, output_json: bool) -> None:
    """List recent audit runs, newest first."""
    from dataclasses import asdict

    from principia.errors import HistoryError
    from principia.history import AuditHistoryStore, default_history_path

    project_root = project or Path.cwd()
    db_path = default_history_path(project_root)
    if not db_path.exists():
        click.echo("No audit history yet. Run `principia audit` first.", err=True)
        sys.exit(1)

    try:
        with AuditHistoryStore(db_path) as store:
            runs = store.list_runs(limit)
    except HistoryError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)

    if output_json:
        click.echo(json.dumps([asdict(r) for r in runs], ensure_ascii=False, indent=2))
        return

    from rich.console import Console
    from rich.table import Table

    table = Table(title="Audit History", box=None, padding=(0, 1))
    table.add_column("Run", style="cyan")
    table.add_column("Ruleset")
    table.add_column("Branch")
    table.add_column("Commit")
    table.add_column("Score", justify="right")
    table.add_column("Violations", justify="right")
    table.add_column("Files", justify="right")
    for r in runs:
        table.add_row(
            r.run_id,
            r.ruleset_version,
            r.branch,
            r.commit[:8],
            str(r.health_score),
            str(r.total_violations),
            str(r.files_analyzed),
        )
    Console().print(table)


# ---------------------------------------------------------------------------
# rescore
# ---------------------------------------------------------------------------


@main.command()
@click.argument("run_id")
@click.option(
    "--project",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=None,
    help="Project root (default: current directory).",
)
@click.option(
    "--weight",
    "weights",
    multiple=True,
    help="PRINCIPLE=WEIGHT (repeatable); unspecified principles keep their weight.",
)
def rescore(*, run_id: str, project: Path | None, weights: tuple[str, ...]) -> None:
    """Replay the health score of a stored run under different weights.

    The full table must still sum to 1.0.
    """
    from principia.engine.scoring import rescore as rescore_run
    from principia.errors import ConfigError, HistoryError
    from principia.history import AuditHistoryStore, default_history_path

    project_root = project or Path.cwd()
    db_path = default_history_path(project_root)
    if not db_path.exists():
        click.echo("No audit history yet. Run `principia audit` first.", err=True)
        sys.exit(1)

    try:
        with AuditHistoryStore(db_path) as store:
            report = store.get(run_id)
    except HistoryError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)
    if report is None:
        click.echo(f"Error: run '{run_id}' not found.", err=True)
        sys.exit(1)

    run = report.run
    table = {p.principle_id: p.weight for p in run.principles}
    table.update(_parse_weights(weights))
    try:
        score = rescore_run(run, table)
    except ConfigError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(EXIT_CONFIG_ERROR)

    click.echo(f"Run {run.id}: stored score {run.health_score}, rescored {score}")
    for p in run.principles:
        click.echo(f"  {p.principle_id}: {table[p.principle_id]:.2f}")


# ---------------------------------------------------------------------------
# rules
# ---------------------------------------------------------------------------


@main.command()
@click.option("--ruleset-version", default=None, help="Ruleset version (default: latest).")
@click.option("--json", "output_json", is_flag=True, help="Output as JSON.")
def rules(*, ruleset_version: str | None, output_json: bool) -> None:
    """Print the ruleset catalog."""
    from principia.rules.catalog import DEFAULT_RULESET_VERSION, get_ruleset

    try:
        ruleset = get_ruleset(ruleset_version or DEFAULT_RULESET_VERSION)
    except KeyError as exc:
        click.echo(f"Error: {exc.args[0]}", err=True)
        sys.exit(EXIT_CONFIG_ERROR)

    if output_json:
        data = {
            "version": ruleset.version,
            "principles": [
                {
                    "id": p.id,
                    "name": p.name,
                    "weight": p.weight,
                    "rules": [
                        {
                            "id": r.id,
                            "severity": r.severity.value,
                            "description": r.description,
                        }
                        for r in ruleset.rules_for(p.id)
                    ],
                }
                for p in ruleset.principles
            ],
        }
        click.echo(json.dumps(data, ensure_ascii=False, indent=2))
        return

    click.echo(f"Ruleset {ruleset.version}")
    for p in ruleset.principles:
        click.echo("")
        click.echo(f"{p.id}  {p.name} (weight {p.weight:.2f})")
        for r in ruleset.rules_for(p.id):
            click.echo(f"  [{r.severity.value}] {r.id}: {r.description}")
