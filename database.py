"""
SQLite storage shared by the threshold store, alert ledger and match tracker
Every statement runs on its own short-lived autocommit connection
"""

import logging
import sqlite3
import time
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, List, Optional, Sequence
import config
from errors import PersistenceError

SCHEMA = [
    """
    CREATE TABLE IF NOT EXISTS football_alerts (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        fixture_id INTEGER NOT NULL,
        minute INTEGER NOT NULL,
        press_total REAL NOT NULL,
        press_diff REAL NOT NULL,
        corners INTEGER NOT NULL,
        shots_on_goal INTEGER NOT NULL,
        goals_at_alert INTEGER NOT NULL DEFAULT 0,
        goal_happened INTEGER DEFAULT NULL,
        created_at TEXT NOT NULL
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_alerts_fixture_minute ON football_alerts(fixture_id, minute)",
    "CREATE INDEX IF NOT EXISTS idx_alerts_created_at ON football_alerts(created_at)",
    """
    CREATE TABLE IF NOT EXISTS football_thresholds (
        id INTEGER PRIMARY KEY DEFAULT 1 CHECK (id = 1),
        threshold_total REAL NOT NULL,
        threshold_diff REAL NOT NULL,
        escanteios_10min INTEGER NOT NULL,
        last_updated TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS match_snapshots (
        fixture_id INTEGER NOT NULL,
        minute INTEGER NOT NULL,
        corners INTEGER NOT NULL,
        observed_at TEXT NOT NULL
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_snapshots_fixture ON match_snapshots(fixture_id, minute)",
]

LOCK_RETRIES = 5


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def to_db_time(moment: datetime) -> str:
    """Fixed-width UTC text so stored timestamps compare correctly as strings"""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc).isoformat(timespec='microseconds')


def from_db_time(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    return datetime.fromisoformat(value)


class Database:
    """Thin wrapper around a SQLite file"""

    def __init__(self, path: str = config.DATABASE_FILE, busy_timeout: int = config.DB_BUSY_TIMEOUT):
        self.path = path
        self.busy_timeout = busy_timeout
        self.logger = logging.getLogger(__name__)

    def _connect(self) -> sqlite3.Connection:
        con = sqlite3.connect(self.path, timeout=self.busy_timeout, isolation_level=None)
        con.row_factory = sqlite3.Row
        con.execute(f"PRAGMA busy_timeout={int(self.busy_timeout * 1000)};")
        try:
            con.execute("PRAGMA journal_mode=WAL;")
        except sqlite3.OperationalError:
            pass
        return con

    @contextmanager
    def connection(self):
        """Open a connection, translating driver errors into PersistenceError"""
        try:
            con = self._connect()
        except sqlite3.Error as e:
            raise PersistenceError(f"Cannot open database {self.path}: {e}") from e

        try:
            yield con
        except sqlite3.Error as e:
            raise PersistenceError(str(e)) from e
        finally:
            con.close()

    def _run(self, con: sqlite3.Connection, sql: str, params: Sequence[Any]) -> sqlite3.Cursor:
        for attempt in range(LOCK_RETRIES):
            try:
                return con.execute(sql, params)
            except sqlite3.OperationalError as e:
                if "locked" not in str(e).lower() or attempt == LOCK_RETRIES - 1:
                    raise
                time.sleep(0.1 * (attempt + 1))

    def insert(self, sql: str, params: Sequence[Any] = ()) -> int:
        """Run one INSERT and return the new row id"""
        with self.connection() as con:
            return self._run(con, sql, params).lastrowid

    def update(self, sql: str, params: Sequence[Any] = ()) -> int:
        """Run one UPDATE/DELETE and return the number of affected rows"""
        with self.connection() as con:
            return self._run(con, sql, params).rowcount

    def fetch_all(self, sql: str, params: Sequence[Any] = ()) -> List[sqlite3.Row]:
        with self.connection() as con:
            return self._run(con, sql, params).fetchall()

    def fetch_one(self, sql: str, params: Sequence[Any] = ()) -> Optional[sqlite3.Row]:
        with self.connection() as con:
            return self._run(con, sql, params).fetchone()

    def init_schema(self):
        """Create tables and seed the default thresholds row"""
        with self.connection() as con:
            con.execute("BEGIN")
            try:
                for statement in SCHEMA:
                    con.execute(statement)
                con.execute(
                    """
                    INSERT INTO football_thresholds
                        (id, threshold_total, threshold_diff, escanteios_10min, last_updated)
                    VALUES (1, ?, ?, ?, ?)
                    ON CONFLICT (id) DO NOTHING
                    """,
                    (config.DEFAULT_THRESHOLD_TOTAL, config.DEFAULT_THRESHOLD_DIFF,
                     config.DEFAULT_ESCANTEIOS_10MIN, to_db_time(utcnow())),
                )
                con.execute("COMMIT")
            except sqlite3.Error:
                con.execute("ROLLBACK")
                raise

        self.logger.info(f"Database ready: {self.path}")
