import importlib
import itertools

import pytest

import config
from alert_policy import ThresholdSet, evaluate_alert, should_alert, shots_for_condition
from conftest import team_stats
from pressure_scorer import compute_pressure


def metrics_for(home, away):
    return compute_pressure([team_stats(*home), team_stats(*away)])


def test_low_pressure_is_suppressed():
    metrics = metrics_for((10, 3, 5), (4, 1, 2))
    thresholds = ThresholdSet(70, 15, 3)

    assert evaluate_alert(metrics, thresholds, recent_corners=2) == []
    assert should_alert(metrics, thresholds, recent_corners=2) is False


def test_total_pressure_condition():
    metrics = metrics_for((80, 6, 6), (60, 4, 5))  # 53.8 + 40.0

    assert evaluate_alert(metrics, ThresholdSet(70, 30, 6), recent_corners=0) == ["press_total"]


def test_diff_condition_needs_shots_on_goal():
    thresholds = ThresholdSet(120, 15, 6)
    with_shots = metrics_for((40, 2, 5), (4, 0, 0))  # diff 25
    without_shots = metrics_for((44, 1, 5), (4, 0, 0))

    assert evaluate_alert(with_shots, thresholds) == ["press_diff"]
    assert evaluate_alert(without_shots, thresholds) == []


def test_corner_condition_uses_recent_count():
    metrics = metrics_for((4, 0, 9), (2, 0, 1))
    thresholds = ThresholdSet(70, 15, 3)

    assert evaluate_alert(metrics, thresholds, recent_corners=3) == ["corners"]
    assert evaluate_alert(metrics, thresholds, recent_corners=2) == []
    # Unknown recent period: the corner rule is not evaluated
    assert evaluate_alert(metrics, thresholds, recent_corners=None) == []


def test_all_conditions_reported():
    metrics = metrics_for((100, 8, 10), (10, 1, 1))

    reasons = evaluate_alert(metrics, ThresholdSet(50, 10, 2), recent_corners=5)

    assert reasons == ["press_total", "press_diff", "corners"]


def test_shots_modes():
    metrics = metrics_for((30, 1, 2), (4, 3, 0))  # home dominates, away has more shots

    assert shots_for_condition(metrics, "max") == 3
    assert shots_for_condition(metrics, "sum") == 4
    assert shots_for_condition(metrics, "dominant") == 1
    with pytest.raises(ValueError):
        shots_for_condition(metrics, "home")


def test_unknown_shots_mode_rejected_at_startup(monkeypatch):
    monkeypatch.setenv("SHOTS_ON_GOAL_MODE", "home")
    try:
        with pytest.raises(ValueError):
            importlib.reload(config)
    finally:
        monkeypatch.setenv("SHOTS_ON_GOAL_MODE", "max")
        importlib.reload(config)

    assert config.SHOTS_ON_GOAL_MODE == "max"


def test_raising_thresholds_never_creates_an_alert():
    samples = [
        metrics_for((10, 3, 5), (4, 1, 2)),
        metrics_for((80, 6, 6), (60, 4, 5)),
        metrics_for((40, 2, 5), (4, 0, 0)),
        metrics_for((100, 8, 10), (10, 1, 1)),
    ]
    totals = [50, 70, 95, 120]
    diffs = [10, 15, 22, 30]
    corners = [2, 3, 4, 6]

    for metrics, recent in itertools.product(samples, [0, 3, 7]):
        for total, diff, corner in itertools.product(totals, diffs, corners):
            base = should_alert(metrics, ThresholdSet(total, diff, corner), recent)
            raised = [
                ThresholdSet(total + 5, diff, corner),
                ThresholdSet(total, diff + 5, corner),
                ThresholdSet(total, diff, corner + 1),
            ]
            for higher in raised:
                if should_alert(metrics, higher, recent):
                    assert base, (metrics, total, diff, corner, higher)


def test_clamped_threshold_set():
    clamped = ThresholdSet(200, 1, 9).clamped()

    assert clamped.threshold_total == 120
    assert clamped.threshold_diff == 10
    assert clamped.escanteios_10min == 6
