"""
Delayed outcome verification
Checks whether a goal followed each alert once the observation window has passed
"""

import logging
import time
from datetime import datetime, timedelta
from typing import Dict, Optional
import config
from errors import FeedError, PersistenceError


def goal_happened(goals_at_alert: int, home_goals: int, away_goals: int) -> bool:
    """A goal counts only if the total went up since the alert"""
    return (home_goals or 0) + (away_goals or 0) > (goals_at_alert or 0)


def verify_goal_outcomes(ledger, feed,
                         observation_window: timedelta = timedelta(minutes=config.OBSERVATION_WINDOW_MINUTES),
                         batch_size: int = config.VERIFY_BATCH_SIZE,
                         delay: float = config.VERIFY_DELAY_SECONDS,
                         sleep=time.sleep, now: Optional[datetime] = None,
                         logger=None) -> Dict:
    """
    Resolve the oldest unresolved alerts past the observation window

    At most batch_size records are handled per call. A record whose score
    cannot be fetched or whose update fails stays unresolved for a later run.

    Returns:
        {'checked', 'updated', 'failed', 'success', 'error'}
    """
    logger = logger or logging.getLogger(__name__)

    try:
        candidates = ledger.list_unresolved_older_than(observation_window, batch_size, now=now)
    except PersistenceError as e:
        logger.error(f"❌ Could not load unverified alerts: {e}")
        return {'checked': 0, 'updated': 0, 'failed': 0, 'success': False, 'error': str(e)}

    logger.info(f"🔍 Found {len(candidates)} unverified alerts older than {observation_window}")

    updated = 0
    failed = 0

    for index, alert in enumerate(candidates):
        if index:
            sleep(delay)

        try:
            score = feed.get_current_score(alert.fixture_id)
        except FeedError as e:
            failed += 1
            logger.warning(f"⚠️ Alert #{alert.id}: score fetch failed for fixture {alert.fixture_id}: {e}")
            continue

        total_now = (score.get('home_goals') or 0) + (score.get('away_goals') or 0)
        outcome = goal_happened(alert.goals_at_alert, score.get('home_goals'), score.get('away_goals'))

        try:
            if ledger.resolve(alert.id, outcome):
                updated += 1
        except PersistenceError as e:
            failed += 1
            logger.warning(f"⚠️ Alert #{alert.id}: could not store outcome: {e}")
            continue

        logger.info(
            f"✅ Alert #{alert.id} fixture {alert.fixture_id}: goals {alert.goals_at_alert} -> "
            f"{total_now}, goal_happened={outcome}"
        )

    logger.info(f"Verification done: checked={len(candidates)} updated={updated} failed={failed}")
    return {
        'checked': len(candidates),
        'updated': updated,
        'failed': failed,
        'success': True,
        'error': None,
    }
