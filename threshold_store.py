"""
Persisted adaptive thresholds (single row)
"""

import logging
from alert_policy import ThresholdSet
from database import Database, from_db_time, to_db_time, utcnow
from errors import PersistenceError


class ThresholdStore:
    """Read/replace handle for the singleton thresholds row. Last write wins."""

    def __init__(self, db: Database, logger=None):
        self.db = db
        self.logger = logger or logging.getLogger(__name__)

    def read(self) -> ThresholdSet:
        """
        Current thresholds, or the defaults when the row is missing or the
        store cannot be reached
        """
        try:
            row = self.db.fetch_one(
                "SELECT threshold_total, threshold_diff, escanteios_10min, last_updated "
                "FROM football_thresholds WHERE id = 1"
            )
        except PersistenceError as e:
            self.logger.error(f"Could not read thresholds, using defaults: {e}")
            return ThresholdSet.defaults()

        if row is None:
            self.logger.warning("No thresholds stored, using defaults")
            return ThresholdSet.defaults()

        return ThresholdSet(
            threshold_total=float(row['threshold_total']),
            threshold_diff=float(row['threshold_diff']),
            escanteios_10min=int(row['escanteios_10min']),
            last_updated=from_db_time(row['last_updated']),
        )

    def write(self, new_set: ThresholdSet, now=None) -> ThresholdSet:
        """
        Replace the stored thresholds and stamp last_updated

        Values are clamped to their bounds and stored as computed.
        Raises PersistenceError if the store is unreachable.
        """
        stamped = new_set.clamped()
        moment = now or utcnow()
        total = stamped.threshold_total
        diff = stamped.threshold_diff

        self.db.insert(
            """
            INSERT INTO football_thresholds
                (id, threshold_total, threshold_diff, escanteios_10min, last_updated)
            VALUES (1, ?, ?, ?, ?)
            ON CONFLICT (id) DO UPDATE SET
                threshold_total = excluded.threshold_total,
                threshold_diff = excluded.threshold_diff,
                escanteios_10min = excluded.escanteios_10min,
                last_updated = excluded.last_updated
            """,
            (total, diff, stamped.escanteios_10min, to_db_time(moment)),
        )

        self.logger.info(
            f"Thresholds updated: total={total:.2f} diff={diff:.2f} corners={stamped.escanteios_10min}"
        )
        return ThresholdSet(total, diff, stamped.escanteios_10min, moment)
