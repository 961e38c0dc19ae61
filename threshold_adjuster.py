"""
Daily threshold adjustment
Measures alert accuracy over the trailing window and nudges the thresholds
"""

import logging
from datetime import datetime, timedelta
from typing import Dict, Optional
import config
from alert_policy import ThresholdSet, clamp
from errors import PersistenceError


def calculate_accuracy(alerts_sent: int, goals_confirmed: int) -> float:
    """Percentage of verified alerts followed by a goal (0 with no alerts)"""
    if alerts_sent <= 0:
        return 0.0
    return goals_confirmed / alerts_sent * 100


def adjustment_factor(accuracy: float, alerts_sent: int) -> float:
    """
    Multiplier step for the thresholds

    Very accurate alerts lower the bars (more alerts); poor accuracy over
    enough alerts raises them (fewer, stronger alerts).
    """
    if accuracy > config.HIGH_ACCURACY:
        return -config.ADJUSTMENT_STEP
    if accuracy < config.LOW_ACCURACY and alerts_sent >= config.MIN_ALERTS_FOR_INCREASE:
        return config.ADJUSTMENT_STEP
    return 0.0


def recommend_thresholds(current: ThresholdSet, factor: float) -> ThresholdSet:
    """Scale total and diff by (1 + factor) within bounds; corners never scale"""
    return ThresholdSet(
        threshold_total=clamp(current.threshold_total * (1 + factor), *config.THRESHOLD_TOTAL_BOUNDS),
        threshold_diff=clamp(current.threshold_diff * (1 + factor), *config.THRESHOLD_DIFF_BOUNDS),
        escanteios_10min=int(clamp(current.escanteios_10min, *config.ESCANTEIOS_BOUNDS)),
        last_updated=current.last_updated,
    )


def _rounded(thresholds: ThresholdSet) -> Dict:
    return {
        'threshold_total': round(thresholds.threshold_total, 2),
        'threshold_diff': round(thresholds.threshold_diff, 2),
        'escanteios_10min': thresholds.escanteios_10min,
    }


def perform_daily_analysis(ledger, store,
                           window: timedelta = timedelta(hours=config.ANALYSIS_WINDOW_HOURS),
                           now: Optional[datetime] = None, logger=None) -> Dict:
    """
    Evaluate the last window of verified alerts and update thresholds

    Thresholds are written only when the factor is non-zero. Current and
    recommended values are always returned.

    Returns:
        {'matches_monitored', 'alerts_sent', 'goals_confirmed', 'accuracy',
         'adjustment_factor', 'current_thresholds', 'recommended_thresholds',
         'updated', 'success', 'error'}
    """
    logger = logger or logging.getLogger(__name__)
    current = store.read()

    result = {
        'matches_monitored': 0,
        'alerts_sent': 0,
        'goals_confirmed': 0,
        'accuracy': 0.0,
        'adjustment_factor': 0.0,
        'current_thresholds': _rounded(current),
        'recommended_thresholds': _rounded(current),
        'updated': False,
        'success': False,
        'error': None,
    }

    try:
        stats = ledger.aggregate_outcomes(window, now=now)
    except PersistenceError as e:
        logger.error(f"❌ Daily analysis failed reading alerts: {e}")
        result['error'] = str(e)
        return result

    alerts_sent = stats['total_alerts']
    goals_confirmed = stats['goals_confirmed']
    accuracy = calculate_accuracy(alerts_sent, goals_confirmed)
    factor = adjustment_factor(accuracy, alerts_sent)
    recommended = recommend_thresholds(current, factor)

    logger.info(
        f"📈 Last {window}: {stats['distinct_matches']} matches, {alerts_sent} alerts, "
        f"{goals_confirmed} goals, accuracy {accuracy:.2f}%, factor {factor:+.2f}"
    )

    result.update({
        'matches_monitored': stats['distinct_matches'],
        'alerts_sent': alerts_sent,
        'goals_confirmed': goals_confirmed,
        'accuracy': round(accuracy, 2),
        'adjustment_factor': factor,
        'recommended_thresholds': _rounded(recommended),
    })

    if factor == 0:
        logger.info("➡️ Accuracy within range - no adjustment")
        result['success'] = True
        return result

    try:
        store.write(recommended, now=now)
    except PersistenceError as e:
        logger.error(f"❌ Could not store new thresholds: {e}")
        result['error'] = str(e)
        return result

    result['updated'] = True
    result['success'] = True
    return result
