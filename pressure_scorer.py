"""
Pressure scoring from live match statistics
Turns the API-Football statistics payload into home/away pressure figures
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional
import config
from errors import InsufficientDataError

# str.isdigit() also accepts superscripts and other scripts
ASCII_DIGITS = "0123456789"


@dataclass(frozen=True)
class PressureMetrics:
    """Pressure figures for one statistics snapshot"""
    press_home: float
    press_away: float
    press_total: float
    press_diff: float
    attacks_home: int
    attacks_away: int
    shots_home: int
    shots_away: int
    corners_home: int
    corners_away: int

    @property
    def corners_total(self) -> int:
        return self.corners_home + self.corners_away

    @property
    def shots_total(self) -> int:
        return self.shots_home + self.shots_away

    def as_dict(self) -> Dict:
        return {
            'press_home': self.press_home,
            'press_away': self.press_away,
            'press_total': self.press_total,
            'press_diff': self.press_diff,
            'attacks_home': self.attacks_home,
            'attacks_away': self.attacks_away,
            'shots_home': self.shots_home,
            'shots_away': self.shots_away,
            'corners_home': self.corners_home,
            'corners_away': self.corners_away,
        }


def parse_stat_value(value):
    """
    Parse a statistic value the way the feed delivers it

    Numbers pass through unchanged, strings are read as base-10 integers from their
    leading digits ("12", "7 ", "55%"), anything else counts as 0.
    """
    if value is None or isinstance(value, bool):
        return 0

    if isinstance(value, (int, float)):
        return value

    if isinstance(value, str):
        text = value.strip()
        sign = 1
        if text[:1] in ('-', '+'):
            sign = -1 if text[0] == '-' else 1
            text = text[1:]
        digits = ''
        for char in text:
            if char not in ASCII_DIGITS:
                break
            digits += char
        return sign * int(digits) if digits else 0

    return 0


def extract_stat_value(team: Dict, stat_name: str) -> int:
    """
    Find one statistic for one team, matching the name case-insensitively

    Args:
        team: One entry of the statistics response ({'team': ..., 'statistics': [...]})
        stat_name: Name of statistic (e.g. 'Shots on Goal')

    Returns:
        Integer value, 0 when missing or unparseable
    """
    wanted = stat_name.lower()
    for item in (team or {}).get('statistics') or []:
        stat_type = item.get('type')
        if isinstance(stat_type, str) and stat_type.lower() == wanted:
            return parse_stat_value(item.get('value'))
    return 0


def team_pressure(attacks: int, shots_on_goal: int, corners: int) -> float:
    return (attacks * config.ATTACK_WEIGHT
            + shots_on_goal * config.SHOT_ON_GOAL_WEIGHT
            + corners * config.CORNER_WEIGHT)


def compute_pressure(stats: Optional[List[Dict]]) -> PressureMetrics:
    """
    Compute pressure metrics, raising InsufficientDataError on short input

    The first entry is the home team, the second the away team.
    """
    if not stats or len(stats) < 2:
        raise InsufficientDataError(
            f"Insufficient statistics data ({len(stats) if stats else 0} team entries)"
        )

    home, away = stats[0], stats[1]

    attacks_home = extract_stat_value(home, config.STAT_ATTACKS)
    attacks_away = extract_stat_value(away, config.STAT_ATTACKS)
    shots_home = extract_stat_value(home, config.STAT_SHOTS_ON_GOAL)
    shots_away = extract_stat_value(away, config.STAT_SHOTS_ON_GOAL)
    corners_home = extract_stat_value(home, config.STAT_CORNERS)
    corners_away = extract_stat_value(away, config.STAT_CORNERS)

    press_home = team_pressure(attacks_home, shots_home, corners_home)
    press_away = team_pressure(attacks_away, shots_away, corners_away)

    return PressureMetrics(
        press_home=press_home,
        press_away=press_away,
        press_total=press_home + press_away,
        press_diff=abs(press_home - press_away),
        attacks_home=attacks_home,
        attacks_away=attacks_away,
        shots_home=shots_home,
        shots_away=shots_away,
        corners_home=corners_home,
        corners_away=corners_away,
    )


def calculate_pressure(stats: Optional[List[Dict]], logger=None) -> Dict:
    """
    Score a statistics snapshot without raising

    Returns:
        {'success': True, 'metrics': PressureMetrics, 'error': None} or
        {'success': False, 'metrics': None, 'error': '...'}
    """
    logger = logger or logging.getLogger(__name__)

    try:
        metrics = compute_pressure(stats)
    except InsufficientDataError as e:
        logger.warning(f"Pressure not calculated: {e}")
        return {'success': False, 'metrics': None, 'error': str(e)}

    logger.debug(
        f"Pressure home={metrics.press_home:.1f} away={metrics.press_away:.1f} "
        f"total={metrics.press_total:.1f} diff={metrics.press_diff:.1f}"
    )
    return {'success': True, 'metrics': metrics, 'error': None}
