"""Audit history store: append-only SQLite table of completed runs.

Each row keeps a few header columns for listing plus the full JSON report,
so a stored run can be reloaded, compared against, or re-scored later.
Rows are never updated or deleted.
"""

from __future__ import annotations

import json
import logging
import sqlite3
from dataclasses import dataclass
from datetime import timezone
from typing import TYPE_CHECKING

from principia.engine.serialize import report_from_dict, report_to_dict
from principia.errors import HistoryError

if TYPE_CHECKING:
    from datetime import datetime
    from pathlib import Path

    from principia.models import AuditReport

logger = logging.getLogger(__name__)

HISTORY_DIR = ".principia"
HISTORY_FILE = "history.db"

_SCHEMA_SQL = """\
CREATE TABLE IF NOT EXISTS audit_runs (
    seq              INTEGER PRIMARY KEY AUTOINCREMENT,
    run_id           TEXT NOT NULL,
    ts_key           TEXT NOT NULL,
    timestamp        TEXT NOT NULL,
    ruleset_version  TEXT NOT NULL,
    branch           TEXT NOT NULL,
    commit_sha       TEXT NOT NULL,
    health_score     INTEGER NOT NULL,
    total_violations INTEGER NOT NULL,
    files_analyzed   INTEGER NOT NULL,
    report_json      TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_audit_runs_ts ON audit_runs(ts_key);
CREATE INDEX IF NOT EXISTS idx_audit_runs_run_id ON audit_runs(run_id);
"""


@dataclass(frozen=True)
class RunInfo:
    """Header of a stored run, as listed by ``principia history``."""

    run_id: str
    timestamp: str
    ruleset_version: str
    branch: str
    commit: str
    health_score: int
    total_violations: int
    files_analyzed: int


def default_history_path(project_root: Path) -> Path:
    return project_root / HISTORY_DIR / HISTORY_FILE


def _ts_key(ts: datetime) -> str:
    """Fixed-width UTC key so that string order equals time order."""
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%fZ")


class AuditHistoryStore:
    """SQLite-backed history of audit runs.

    The database file (and its parent directory) is created lazily on the
    first access.  Every storage failure surfaces as :class:`HistoryError`.
    """

    def __init__(self, db_path: Path) -> None:
        self.db_path = db_path
        self._conn: sqlite3.Connection | None = None

    # -- connection ---------------------------------------------------------

    def _connect(self) -> sqlite3.Connection:
        if self._conn is not None:
            return self._conn
        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            conn = sqlite3.connect(str(self.db_path))
            conn.row_factory = sqlite3.Row
            conn.execute("PRAGMA journal_mode=WAL")
            conn.executescript(_SCHEMA_SQL)
        except (OSError, sqlite3.Error) as exc:
            msg = f"cannot open history store {self.db_path}: {exc}"
            raise HistoryError(msg) from exc
        self._conn = conn
        return conn

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def __enter__(self) -> AuditHistoryStore:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    # -- writes -------------------------------------------------------------

    def append(self, report: AuditReport) -> int:
        """Store *report* as a new row and return its sequence number."""
        conn = self._connect()
        run = report.run
        payload = json.dumps(report_to_dict(report), ensure_ascii=False)
        try:
            cursor = conn.execute(
                "INSERT INTO audit_runs (run_id, ts_key, timestamp, ruleset_version, "
                "branch, commit_sha, health_score, total_violations, files_analyzed, "
                "report_json) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
                (
                    run.id,
                    _ts_key(run.timestamp),
                    run.timestamp.isoformat(),
                    run.ruleset_version,
                    run.branch,
                    run.commit,
                    run.health_score,
                    run.total_violations,
                    run.files_analyzed,
                    payload,
                ),
            )
            conn.commit()
        except sqlite3.Error as exc:
            msg = f"cannot append run {run.id}: {exc}"
            raise HistoryError(msg) from exc
        logger.debug("Stored run %s in %s", run.id, self.db_path)
        return cursor.lastrowid  # type: ignore[return-value]

    # -- reads --------------------------------------------------------------

    def _query_one(self, sql: str, params: tuple[object, ...]) -> AuditReport | None:
        conn = self._connect()
        try:
            row = conn.execute(sql, params).fetchone()
        except sqlite3.Error as exc:
            msg = f"cannot read history store: {exc}"
            raise HistoryError(msg) from exc
        if row is None:
            return None
        return self._decode(row)

    @staticmethod
    def _decode(row: sqlite3.Row) -> AuditReport:
        try:
            return report_from_dict(json.loads(row["report_json"]))
        except (KeyError, ValueError, TypeError, AttributeError, IndexError) as exc:
            msg = f"stored run {row['run_id']} cannot be decoded: {exc}"
            raise HistoryError(msg) from exc

    def most_recent_before(self, timestamp: datetime) -> AuditReport | None:
        """Return the latest run strictly earlier than *timestamp*, if any."""
        return self._query_one(
            "SELECT run_id, report_json FROM audit_runs WHERE ts_key < ? "
            "ORDER BY ts_key DESC, seq DESC LIMIT 1",
            (_ts_key(timestamp),),
        )

    def get(self, run_id: str) -> AuditReport | None:
        """Return the run with *run_id* (the latest one if the id repeats)."""
        return self._query_one(
            "SELECT run_id, report_json FROM audit_runs WHERE run_id = ? "
            "ORDER BY seq DESC LIMIT 1",
            (run_id,),
        )

    def list_runs(self, limit: int | None = 20) -> list[RunInfo]:
        """List stored runs, newest first."""
        conn = self._connect()
        sql = (
            "SELECT run_id, timestamp, ruleset_version, branch, commit_sha, "
            "health_score, total_violations, files_analyzed FROM audit_runs "
            "ORDER BY ts_key DESC, seq DESC"
        )
        params: tuple[object, ...] = ()
        if limit is not None:
            sql += " LIMIT ?"
            params = (limit,)
        try:
            rows = conn.execute(sql, params).fetchall()
        except sqlite3.Error as exc:
            msg = f"cannot read history store: {exc}"
            raise HistoryError(msg) from exc
        return [
            RunInfo(
                run_id=row["run_id"],
                timestamp=row["timestamp"],
                ruleset_version=row["ruleset_version"],
                branch=row["branch"],
                commit=row["commit_sha"],
                health_score=int(row["health_score"]),
                total_violations=int(row["total_violations"]),
                files_analyzed=int(row["files_analyzed"]),
            )
            for row in rows
        ]
