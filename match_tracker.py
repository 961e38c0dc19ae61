"""
Match Tracking for Windowed Corner Counts
Keeps cumulative corner observations per fixture so recent corners can be derived
"""

import logging
from datetime import datetime, timedelta
from typing import Optional
import config
from database import Database, to_db_time, utcnow


class MatchTracker:
    def __init__(self, db: Database, window_minutes: int = config.CORNER_WINDOW_MINUTES,
                 logger=None):
        self.db = db
        self.window_minutes = window_minutes
        self.logger = logger or logging.getLogger(__name__)

    def record_snapshot(self, fixture_id: int, minute: int, corners: int,
                        now: Optional[datetime] = None):
        """Store the cumulative corner count seen at a match minute"""
        self.db.insert(
            "INSERT INTO match_snapshots (fixture_id, minute, corners, observed_at) "
            "VALUES (?, ?, ?, ?)",
            (fixture_id, minute, corners, to_db_time(now or utcnow())),
        )

    def recent_corners(self, fixture_id: int, minute: int, total_corners: int) -> Optional[int]:
        """
        Corners taken in the last window_minutes of match time

        Returns:
            The cumulative count when windowing is off or the whole match
            fits in the window; the difference to the closest snapshot at or
            before the window start; the difference to the earliest snapshot
            when only younger ones exist; None when there is no history.
        """
        if self.window_minutes <= 0 or minute <= self.window_minutes:
            return total_corners

        window_start = minute - self.window_minutes
        baseline = self.db.fetch_one(
            """
            SELECT corners FROM match_snapshots
            WHERE fixture_id = ? AND minute <= ?
            ORDER BY minute DESC, observed_at DESC
            LIMIT 1
            """,
            (fixture_id, window_start),
        )

        if baseline is None:
            # Undercounts rather than guessing
            baseline = self.db.fetch_one(
                """
                SELECT corners FROM match_snapshots
                WHERE fixture_id = ?
                ORDER BY minute ASC, observed_at ASC
                LIMIT 1
                """,
                (fixture_id,),
            )

        if baseline is None:
            self.logger.debug(f"No corner history for fixture {fixture_id}")
            return None

        return max(0, total_corners - int(baseline['corners']))

    def cleanup_old_snapshots(self, max_age_hours: int = config.SNAPSHOT_RETENTION_HOURS,
                              now: Optional[datetime] = None) -> int:
        """Drop observations of matches that are long over"""
        cutoff = (now or utcnow()) - timedelta(hours=max_age_hours)
        removed = self.db.update(
            "DELETE FROM match_snapshots WHERE observed_at < ?", (to_db_time(cutoff),)
        )
        if removed:
            self.logger.info(f"Cleaned {removed} old corner snapshots")
        return removed
