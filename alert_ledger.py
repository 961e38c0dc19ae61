"""
Alert Ledger
Append-only record of issued alerts and their verified outcomes
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Dict, List, Optional
from database import Database, from_db_time, to_db_time, utcnow

ALERT_COLUMNS = (
    "id, fixture_id, minute, press_total, press_diff, corners, shots_on_goal, "
    "goals_at_alert, goal_happened, created_at"
)


@dataclass(frozen=True)
class AlertRecord:
    id: int
    fixture_id: int
    minute: int
    press_total: float
    press_diff: float
    corners: int
    shots_on_goal: int
    goals_at_alert: int
    goal_happened: Optional[bool]  # None until verified
    created_at: datetime

    @property
    def resolved(self) -> bool:
        return self.goal_happened is not None

    @classmethod
    def from_row(cls, row) -> 'AlertRecord':
        goal = row['goal_happened']
        return cls(
            id=row['id'],
            fixture_id=row['fixture_id'],
            minute=row['minute'],
            press_total=row['press_total'],
            press_diff=row['press_diff'],
            corners=row['corners'],
            shots_on_goal=row['shots_on_goal'],
            goals_at_alert=row['goals_at_alert'] or 0,
            goal_happened=None if goal is None else bool(goal),
            created_at=from_db_time(row['created_at']),
        )


class AlertLedger:
    """All operations raise PersistenceError when the store is unreachable"""

    def __init__(self, db: Database, logger=None):
        self.db = db
        self.logger = logger or logging.getLogger(__name__)

    def append(self, fixture_id: int, minute: int, press_total: float, press_diff: float,
               corners: int, shots_on_goal: int, goals_at_alert: int,
               now: Optional[datetime] = None) -> int:
        """
        Insert a new unresolved alert

        Returns:
            Id of the new record
        """
        alert_id = self.db.insert(
            """
            INSERT INTO football_alerts
                (fixture_id, minute, press_total, press_diff, corners, shots_on_goal,
                 goals_at_alert, created_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (fixture_id, minute, press_total, press_diff,
             corners, shots_on_goal, goals_at_alert, to_db_time(now or utcnow())),
        )
        self.logger.info(f"Alert #{alert_id} stored for fixture {fixture_id} at {minute}'")
        return alert_id

    def get(self, alert_id: int) -> Optional[AlertRecord]:
        row = self.db.fetch_one(
            f"SELECT {ALERT_COLUMNS} FROM football_alerts WHERE id = ?", (alert_id,)
        )
        return AlertRecord.from_row(row) if row else None

    def list_unresolved_older_than(self, duration: timedelta, limit: int,
                                   now: Optional[datetime] = None) -> List[AlertRecord]:
        """Oldest-first unresolved alerts created before now - duration"""
        cutoff = (now or utcnow()) - duration
        rows = self.db.fetch_all(
            f"""
            SELECT {ALERT_COLUMNS} FROM football_alerts
            WHERE goal_happened IS NULL AND created_at < ?
            ORDER BY created_at ASC, id ASC
            LIMIT ?
            """,
            (to_db_time(cutoff), limit),
        )
        return [AlertRecord.from_row(row) for row in rows]

    def resolve(self, alert_id: int, goal_happened: bool) -> bool:
        """
        Record the outcome of an alert

        Repeating the call with the same outcome is harmless. A record that
        was already resolved with the other outcome is left unchanged.

        Returns:
            True if the record now holds this outcome
        """
        value = 1 if goal_happened else 0
        changed = self.db.update(
            """
            UPDATE football_alerts SET goal_happened = ?
            WHERE id = ? AND (goal_happened IS NULL OR goal_happened = ?)
            """,
            (value, alert_id, value),
        )
        if not changed:
            self.logger.warning(f"Alert #{alert_id} not resolved (missing or already resolved)")
            return False
        return True

    def aggregate_outcomes(self, window: timedelta, now: Optional[datetime] = None) -> Dict:
        """
        Totals over resolved alerts created within the trailing window

        Returns:
            {'total_alerts', 'goals_confirmed', 'distinct_matches'}
        """
        since = (now or utcnow()) - window
        row = self.db.fetch_one(
            """
            SELECT COUNT(*) AS total_alerts,
                   COALESCE(SUM(CASE WHEN goal_happened = 1 THEN 1 ELSE 0 END), 0) AS goals_confirmed,
                   COUNT(DISTINCT fixture_id) AS distinct_matches
            FROM football_alerts
            WHERE created_at > ? AND goal_happened IS NOT NULL
            """,
            (to_db_time(since),),
        )
        return {
            'total_alerts': int(row['total_alerts'] or 0),
            'goals_confirmed': int(row['goals_confirmed'] or 0),
            'distinct_matches': int(row['distinct_matches'] or 0),
        }

    def last_alert_time(self, fixture_id: int) -> Optional[datetime]:
        """Creation time of the most recent alert for a fixture"""
        row = self.db.fetch_one(
            "SELECT MAX(created_at) AS last_at FROM football_alerts WHERE fixture_id = ?",
            (fixture_id,),
        )
        return from_db_time(row['last_at']) if row else None
