"""
NetSight persistence layer.
SQLite-backed DataStore for topology snapshots, discovery jobs, alerts, and the audit trail.
"""

import json
import sqlite3
import threading
from dataclasses import asdict
from datetime import datetime
from pathlib import Path
from typing import Iterable, List, Optional

from models import Alert, NetworkTopology, topology_from_dict


class DataStore:
    """Lightweight persistence for snapshots, scan jobs, alerts, and audit entries."""

    def __init__(self, db_path: Path):
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self.lock = threading.Lock()
        self._init_db()

    def _connect(self):
        conn = sqlite3.connect(self.db_path, timeout=30, check_same_thread=False)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA journal_mode=WAL")
        conn.execute("PRAGMA synchronous=NORMAL")
        return conn

    def _init_db(self):
        with self._connect() as conn:
            conn.executescript(
                """
                CREATE TABLE IF NOT EXISTS snapshots (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    created_at TEXT NOT NULL,
                    source TEXT NOT NULL,
                    is_live INTEGER DEFAULT 0,
                    device_count INTEGER DEFAULT 0,
                    connection_count INTEGER DEFAULT 0,
                    topology_json TEXT NOT NULL
                );

                CREATE TABLE IF NOT EXISTS scan_jobs (
                    job_id TEXT PRIMARY KEY,
                    profile TEXT NOT NULL,
                    target TEXT NOT NULL,
                    status TEXT NOT NULL,
                    progress INTEGER DEFAULT 0,
                    message TEXT DEFAULT '',
                    started_at TEXT,
                    completed_at TEXT,
                    result_json TEXT DEFAULT '{}',
                    error TEXT DEFAULT ''
                );

                CREATE TABLE IF NOT EXISTS alerts (
                    id TEXT PRIMARY KEY,
                    title TEXT NOT NULL,
                    description TEXT DEFAULT '',
                    severity TEXT NOT NULL,
                    category TEXT NOT NULL,
                    source TEXT DEFAULT '',
                    timestamp TEXT NOT NULL,
                    acknowledged INTEGER DEFAULT 0,
                    resolved INTEGER DEFAULT 0,
                    assignee TEXT,
                    tags_json TEXT DEFAULT '[]',
                    metadata_json TEXT DEFAULT '{}'
                );

                CREATE TABLE IF NOT EXISTS audit_logs (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    timestamp TEXT NOT NULL,
                    actor TEXT DEFAULT '',
                    action TEXT NOT NULL,
                    entity TEXT DEFAULT '',
                    details_json TEXT DEFAULT '{}'
                );

                CREATE INDEX IF NOT EXISTS idx_snapshots_created ON snapshots(created_at);
                CREATE INDEX IF NOT EXISTS idx_alerts_timestamp ON alerts(timestamp);
                CREATE INDEX IF NOT EXISTS idx_audit_timestamp ON audit_logs(timestamp);
                """
            )

    # -- topology snapshots --------------------------------------------------

    def save_snapshot(self, topology: NetworkTopology, source: str, is_live: bool = False) -> int:
        payload = json.dumps(asdict(topology), default=str)
        with self.lock, self._connect() as conn:
            cur = conn.execute(
                """
                INSERT INTO snapshots (created_at, source, is_live, device_count, connection_count, topology_json)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    datetime.now().isoformat(),
                    source,
                    1 if is_live else 0,
                    len(topology.devices),
                    len(topology.connections),
                    payload,
                ),
            )
            return int(cur.lastrowid)

    def list_snapshots(self, limit: int = 20) -> List[dict]:
        lim = max(1, int(limit))
        with self.lock, self._connect() as conn:
            rows = conn.execute(
                """
                SELECT id, created_at, source, is_live, device_count, connection_count
                FROM snapshots ORDER BY id DESC LIMIT ?
                """,
                (lim,),
            ).fetchall()
        return [
            {
                "id": r["id"],
                "created_at": r["created_at"],
                "source": r["source"],
                "is_live": bool(r["is_live"]),
                "device_count": r["device_count"],
                "connection_count": r["connection_count"],
            }
            for r in rows
        ]

    def load_snapshot(self, snapshot_id: Optional[int] = None) -> Optional[NetworkTopology]:
        """Load a snapshot by id, or the most recent one."""
        with self.lock, self._connect() as conn:
            if snapshot_id is None:
                row = conn.execute("SELECT topology_json FROM snapshots ORDER BY id DESC LIMIT 1").fetchone()
            else:
                row = conn.execute("SELECT topology_json FROM snapshots WHERE id=?", (snapshot_id,)).fetchone()
        if not row:
            return None
        return topology_from_dict(json.loads(row["topology_json"]))

    # -- scan jobs ----------------------------------------------------------

    def create_scan_job(self, job_id: str, profile: str, target: str):
        with self.lock, self._connect() as conn:
            conn.execute(
                """
                INSERT INTO scan_jobs (job_id, profile, target, status, progress, message, started_at, result_json, error)
                VALUES (?, ?, ?, 'queued', 0, 'Queued', ?, '{}', '')
                """,
                (job_id, profile, target, datetime.now().isoformat()),
            )

    def update_scan_job(
        self,
        job_id: str,
        *,
        status: Optional[str] = None,
        progress: Optional[int] = None,
        message: Optional[str] = None,
        result: Optional[dict] = None,
        error: Optional[str] = None,
    ):
        fields = []
        values = []
        if status is not None:
            fields.append("status=?")
            values.append(status)
        if progress is not None:
            fields.append("progress=?")
            values.append(int(progress))
        if message is not None:
            fields.append("message=?")
            values.append(message)
        if result is not None:
            fields.append("result_json=?")
            values.append(json.dumps(result, default=str))
        if error is not None:
            fields.append("error=?")
            values.append(error)
        if status in {"completed", "failed"}:
            fields.append("completed_at=?")
            values.append(datetime.now().isoformat())
        if not fields:
            return
        values.append(job_id)
        query = f"UPDATE scan_jobs SET {', '.join(fields)} WHERE job_id=?"
        with self.lock, self._connect() as conn:
            conn.execute(query, values)

    def get_scan_job(self, job_id: str) -> Optional[dict]:
        with self.lock, self._connect() as conn:
            row = conn.execute("SELECT * FROM scan_jobs WHERE job_id=?", (job_id,)).fetchone()
        if not row:
            return None
        return self._job_row(row)

    def list_scan_jobs(self, limit: int = 20) -> List[dict]:
        with self.lock, self._connect() as conn:
            rows = conn.execute(
                "SELECT * FROM scan_jobs ORDER BY started_at DESC LIMIT ?",
                (max(1, int(limit)),),
            ).fetchall()
        return [self._job_row(r) for r in rows]

    def has_running_scan(self) -> bool:
        with self.lock, self._connect() as conn:
            row = conn.execute("SELECT COUNT(*) AS n FROM scan_jobs WHERE status IN ('queued', 'running')").fetchone()
        return bool(row["n"])

    @staticmethod
    def _job_row(row) -> dict:
        try:
            result_json = json.loads(row["result_json"] or "{}")
        except json.JSONDecodeError:
            result_json = {}
        return {
            "job_id": row["job_id"],
            "profile": row["profile"],
            "target": row["target"],
            "status": row["status"],
            "progress": row["progress"],
            "message": row["message"],
            "started_at": row["started_at"],
            "completed_at": row["completed_at"],
            "result": result_json,
            "error": row["error"],
        }

    # -- alerts -------------------------------------------------------------

    def replace_alerts(self, alerts: Iterable[Alert]) -> int:
        rows = [
            (
                a.id,
                a.title,
                a.description,
                a.severity,
                a.category,
                a.source,
                a.timestamp,
                1 if a.acknowledged else 0,
                1 if a.resolved else 0,
                a.assignee,
                json.dumps(a.tags),
                json.dumps(a.metadata, default=str),
            )
            for a in alerts
        ]
        with self.lock, self._connect() as conn:
            conn.execute("DELETE FROM alerts")
            conn.executemany(
                """
                INSERT INTO alerts (id, title, description, severity, category, source, timestamp,
                                    acknowledged, resolved, assignee, tags_json, metadata_json)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                rows,
            )
        return len(rows)

    def add_alert(self, alert: Alert):
        with self.lock, self._connect() as conn:
            conn.execute(
                """
                INSERT INTO alerts (id, title, description, severity, category, source, timestamp,
                                    acknowledged, resolved, assignee, tags_json, metadata_json)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    title=excluded.title,
                    description=excluded.description,
                    severity=excluded.severity,
                    category=excluded.category,
                    source=excluded.source,
                    timestamp=excluded.timestamp,
                    tags_json=excluded.tags_json,
                    metadata_json=excluded.metadata_json
                """,
                (
                    alert.id,
                    alert.title,
                    alert.description,
                    alert.severity,
                    alert.category,
                    alert.source,
                    alert.timestamp,
                    1 if alert.acknowledged else 0,
                    1 if alert.resolved else 0,
                    alert.assignee,
                    json.dumps(alert.tags),
                    json.dumps(alert.metadata, default=str),
                ),
            )

    def list_alerts(
        self,
        limit: int = 1000,
        *,
        severity: str = "",
        category: str = "",
        acknowledged: Optional[bool] = None,
        resolved: Optional[bool] = None,
    ) -> List[dict]:
        clauses = []
        values: list = []
        if severity:
            clauses.append("severity=?")
            values.append(severity)
        if category:
            clauses.append("category=?")
            values.append(category)
        if acknowledged is not None:
            clauses.append("acknowledged=?")
            values.append(1 if acknowledged else 0)
        if resolved is not None:
            clauses.append("resolved=?")
            values.append(1 if resolved else 0)
        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        values.append(max(1, int(limit)))
        with self.lock, self._connect() as conn:
            rows = conn.execute(
                f"SELECT * FROM alerts {where} ORDER BY timestamp DESC LIMIT ?",
                values,
            ).fetchall()
        return [self._alert_row(r) for r in rows]

    def get_alert(self, alert_id: str) -> Optional[dict]:
        with self.lock, self._connect() as conn:
            row = conn.execute("SELECT * FROM alerts WHERE id=?", (alert_id,)).fetchone()
        return self._alert_row(row) if row else None

    def set_alert_flags(
        self,
        alert_id: str,
        *,
        acknowledged: Optional[bool] = None,
        resolved: Optional[bool] = None,
        assignee: Optional[str] = None,
    ) -> bool:
        fields = []
        values: list = []
        if acknowledged is not None:
            fields.append("acknowledged=?")
            values.append(1 if acknowledged else 0)
        if resolved is not None:
            fields.append("resolved=?")
            values.append(1 if resolved else 0)
        if assignee is not None:
            fields.append("assignee=?")
            values.append(assignee)
        if not fields:
            return False
        values.append(alert_id)
        with self.lock, self._connect() as conn:
            cur = conn.execute(f"UPDATE alerts SET {', '.join(fields)} WHERE id=?", values)
            return cur.rowcount > 0

    @staticmethod
    def _alert_row(row) -> dict:
        return {
            "id": row["id"],
            "title": row["title"],
            "description": row["description"],
            "severity": row["severity"],
            "category": row["category"],
            "source": row["source"],
            "timestamp": row["timestamp"],
            "acknowledged": bool(row["acknowledged"]),
            "resolved": bool(row["resolved"]),
            "assignee": row["assignee"],
            "tags": json.loads(row["tags_json"] or "[]"),
            "metadata": json.loads(row["metadata_json"] or "{}"),
        }

    # -- audit trail ----------------------------------------------------------

    def add_audit_entry(self, action: str, *, actor: str = "", entity: str = "", details: Optional[dict] = None):
        with self.lock, self._connect() as conn:
            conn.execute(
                """
                INSERT INTO audit_logs (timestamp, actor, action, entity, details_json)
                VALUES (?, ?, ?, ?, ?)
                """,
                (datetime.now().isoformat(), actor, action, entity, json.dumps(details or {}, default=str)),
            )

    def list_audit_entries(self, limit: int = 100) -> List[dict]:
        with self.lock, self._connect() as conn:
            rows = conn.execute(
                "SELECT * FROM audit_logs ORDER BY id DESC LIMIT ?",
                (max(1, int(limit)),),
            ).fetchall()
        return [
            {
                "id": r["id"],
                "timestamp": r["timestamp"],
                "actor": r["actor"],
                "action": r["action"],
                "entity": r["entity"],
                "details": json.loads(r["details_json"] or "{}"),
            }
            for r in rows
        ]
