"""SQLite-based record of gated stage invocations.

Every invocation that passes through the artifact cache is logged here with
its outcome (skipped, computed, failed). The ledger is a record for
inspection and debugging; artifact existence on disk stays the cache key.
"""

import sqlite3
import logging
import threading
from pathlib import Path
from datetime import datetime, timezone
from typing import Optional, Dict, List

logger = logging.getLogger(__name__)

STATUSES = ('skipped', 'computed', 'failed')


class StageLedger:
    """Tracks stage invocations across pipeline runs.

    **Database Schema:**

    SQLite table `stage_runs`:

    - run_id: Run identifier from the runtime config
    - stage: orientation, global_diffusion, local_motion, ...
    - label: Invocation tag within the stage (source folder, field tag, fit mode)
    - artifact: Primary output path
    - status: skipped, computed, failed
    - error_message: Failure detail if failed
    - started_at / finished_at: ISO timestamps (UTC)

    **Thread Safety:**

    All methods are thread-safe via internal locking; relaxation field tasks
    record concurrently.

    **Typical Usage:**

        with StageLedger("rotdif-10ns-stages.db") as ledger:
            ledger.record(run_id, "relaxation", "600", path, "computed")
            stats = ledger.get_statistics(run_id)
    """

    def __init__(self, db_path: Path | str):
        """Initialize ledger.

        Parameters
        ----------
        db_path : Path or str
            Path to SQLite database file. Created if doesn't exist.
        """
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        self._conn = None
        self._lock = threading.Lock()

        self._init_database()
        logger.info("Stage ledger initialized: %s", self.db_path)

    def _get_connection(self) -> sqlite3.Connection:
        if self._conn is None:
            self._conn = sqlite3.connect(str(self.db_path), check_same_thread=False)
            self._conn.row_factory = sqlite3.Row
        return self._conn

    def _init_database(self):
        """Create database schema if it doesn't exist."""
        conn = self._get_connection()

        with self._lock:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS stage_runs (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    run_id TEXT,
                    stage TEXT NOT NULL,
                    label TEXT,
                    artifact TEXT,
                    status TEXT NOT NULL,
                    error_message TEXT,
                    started_at TEXT,
                    finished_at TEXT
                )
            """)
            conn.execute("CREATE INDEX IF NOT EXISTS idx_run_id ON stage_runs(run_id)")
            conn.execute("CREATE INDEX IF NOT EXISTS idx_stage ON stage_runs(stage)")
            conn.commit()

    def record(self, run_id: Optional[str], stage: str, label: str,
               artifact: Optional[Path], status: str,
               error: Optional[str] = None,
               started_at: Optional[datetime] = None):
        """Record the outcome of one gated invocation.

        Parameters
        ----------
        run_id : str or None
            Run identifier.
        stage : str
            Pipeline stage name.
        label : str
            Invocation tag within the stage.
        artifact : Path, optional
            Primary expected output.
        status : str
            One of 'skipped', 'computed', 'failed'.
        error : str, optional
            Error message for failed invocations.
        started_at : datetime, optional
            When the invocation started; defaults to now.

        Raises
        ------
        ValueError
            If status is not a known status.
        """
        if status not in STATUSES:
            raise ValueError(f"Invalid status: {status}. Must be one of {STATUSES}")

        finished = datetime.now(timezone.utc)
        started = started_at or finished
        conn = self._get_connection()

        with self._lock:
            conn.execute("""
                INSERT INTO stage_runs
                (run_id, stage, label, artifact, status, error_message, started_at, finished_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """, (
                run_id,
                stage,
                label,
                str(artifact) if artifact else None,
                status,
                error,
                started.isoformat(),
                finished.isoformat(),
            ))
            conn.commit()

        logger.debug("Recorded %s %s:%s", status, stage, label)

    def get_statistics(self, run_id: Optional[str] = None) -> Dict:
        """Summary counts of recorded invocations.

        Parameters
        ----------
        run_id : str, optional
            Restrict to one run. If None, counts every run.

        Returns
        -------
        dict
            `total`, `skipped`, `computed`, `failed`.
        """
        conn = self._get_connection()

        query = """
            SELECT
                COUNT(*) as total,
                COALESCE(SUM(CASE WHEN status = 'skipped' THEN 1 ELSE 0 END), 0) as skipped,
                COALESCE(SUM(CASE WHEN status = 'computed' THEN 1 ELSE 0 END), 0) as computed,
                COALESCE(SUM(CASE WHEN status = 'failed' THEN 1 ELSE 0 END), 0) as failed
            FROM stage_runs
        """
        params = []
        if run_id is not None:
            query += " WHERE run_id = ?"
            params.append(run_id)

        with self._lock:
            row = conn.execute(query, params).fetchone()
            return dict(row) if row else {}

    def get_stage_history(self, stage: str) -> List[Dict]:
        """All records for ``stage``, oldest first."""
        conn = self._get_connection()

        with self._lock:
            cursor = conn.execute(
                "SELECT * FROM stage_runs WHERE stage = ? ORDER BY id", (stage,)
            )
            return [dict(row) for row in cursor.fetchall()]

    def close(self):
        """Close database connection. Safe to call multiple times."""
        if self._conn:
            self._conn.close()
            self._conn = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
