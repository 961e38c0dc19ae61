"""
Alert decision rules
Combines pressure metrics with the current adaptive thresholds
"""

from dataclasses import dataclass, replace
from datetime import datetime
from typing import Dict, List, Optional
import config
from pressure_scorer import PressureMetrics

SHOTS_MODES = config.SHOTS_ON_GOAL_MODES

REASON_TOTAL = 'press_total'
REASON_DIFF = 'press_diff'
REASON_CORNERS = 'corners'


def clamp(value, low, high):
    return max(low, min(high, value))


@dataclass(frozen=True)
class ThresholdSet:
    """The three tunable bars an alert must clear"""
    threshold_total: float = config.DEFAULT_THRESHOLD_TOTAL
    threshold_diff: float = config.DEFAULT_THRESHOLD_DIFF
    escanteios_10min: int = config.DEFAULT_ESCANTEIOS_10MIN
    last_updated: Optional[datetime] = None

    @classmethod
    def defaults(cls) -> 'ThresholdSet':
        return cls()

    def clamped(self) -> 'ThresholdSet':
        """Copy with every value pulled inside its allowed range"""
        return replace(
            self,
            threshold_total=clamp(float(self.threshold_total), *config.THRESHOLD_TOTAL_BOUNDS),
            threshold_diff=clamp(float(self.threshold_diff), *config.THRESHOLD_DIFF_BOUNDS),
            escanteios_10min=int(clamp(int(self.escanteios_10min), *config.ESCANTEIOS_BOUNDS)),
        )

    def as_dict(self) -> Dict:
        return {
            'threshold_total': self.threshold_total,
            'threshold_diff': self.threshold_diff,
            'escanteios_10min': self.escanteios_10min,
        }


def shots_for_condition(metrics: PressureMetrics, mode: str = config.SHOTS_ON_GOAL_MODE) -> int:
    """
    Shots-on-goal figure used by the pressure-difference rule

    max: the larger of the two sides
    sum: both sides together
    dominant: the side currently producing more pressure
    """
    if mode == 'max':
        return max(metrics.shots_home, metrics.shots_away)
    if mode == 'sum':
        return metrics.shots_home + metrics.shots_away
    if mode == 'dominant':
        if metrics.press_home >= metrics.press_away:
            return metrics.shots_home
        return metrics.shots_away
    raise ValueError(f"Unknown shots-on-goal mode: {mode!r} (expected one of {SHOTS_MODES})")


def evaluate_alert(metrics: PressureMetrics, thresholds: ThresholdSet,
                   recent_corners: Optional[int] = None,
                   shots_mode: str = config.SHOTS_ON_GOAL_MODE,
                   min_shots: int = config.MIN_SHOTS_ON_GOAL) -> List[str]:
    """
    Return the alert conditions met by a match

    Conditions are independent; an empty list means no alert.
    recent_corners is the corner count for the recent period; None skips
    the corner rule because the period is unknown.
    """
    reasons = []

    if metrics.press_total >= thresholds.threshold_total:
        reasons.append(REASON_TOTAL)

    if (metrics.press_diff >= thresholds.threshold_diff
            and shots_for_condition(metrics, shots_mode) >= min_shots):
        reasons.append(REASON_DIFF)

    if recent_corners is not None and recent_corners >= thresholds.escanteios_10min:
        reasons.append(REASON_CORNERS)

    return reasons


def should_alert(metrics: PressureMetrics, thresholds: ThresholdSet,
                 recent_corners: Optional[int] = None,
                 shots_mode: str = config.SHOTS_ON_GOAL_MODE,
                 min_shots: int = config.MIN_SHOTS_ON_GOAL) -> bool:
    return bool(evaluate_alert(metrics, thresholds, recent_corners, shots_mode, min_shots))
