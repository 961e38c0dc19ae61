from datetime import timedelta

import pytest

import config
from alert_policy import ThresholdSet
from conftest import NOW, FakeFeed, FakeNotifier, live_fixture, team_stats
from errors import FeedError
from live_scanner import ALERTED, COOLDOWN, FAILED, NO_ALERT, SKIPPED, LiveScanner
from logger_config import ErrorMonitor

HIGH = [team_stats(90, 6, 7), team_stats(60, 4, 5)]  # total 99.6
LOW = [team_stats(10, 3, 5), team_stats(4, 1, 2)]  # total 19.6


def make_scanner(db, ledger, store, tracker, feed, notifier=None):
    notifier = notifier or FakeNotifier()
    return LiveScanner(
        db=db, api_client=feed, notifier=notifier, ledger=ledger, store=store,
        tracker=tracker, error_monitor=ErrorMonitor(notifier), verify_sleep=lambda s: None,
    )


@pytest.fixture(autouse=True)
def cooldown(monkeypatch):
    monkeypatch.setattr(config, "ALERT_COOLDOWN_MINUTES", 10)


def test_high_pressure_match_is_alerted_and_recorded(db, ledger, store, tracker):
    feed = FakeFeed(live=[live_fixture(1, minute=65, home_goals=1)], stats={1: HIGH})
    notifier = FakeNotifier()
    scanner = make_scanner(db, ledger, store, tracker, feed, notifier)

    summary = scanner.perform_scan(now=NOW)

    assert summary["fixtures_checked"] == 1
    assert summary["alerts_sent"] == 1
    assert summary["success"] is True
    assert notifier.alerts[0][0] == 1
    assert "press_total" in notifier.alerts[0][1]

    record = ledger.get(1)
    assert record.fixture_id == 1
    assert record.minute == 65
    assert record.goals_at_alert == 1
    assert record.corners == 12
    assert record.shots_on_goal == 10
    assert record.goal_happened is None


def test_low_pressure_match_is_not_alerted(db, ledger, store, tracker):
    feed = FakeFeed(live=[live_fixture(1)], stats={1: LOW})
    notifier = FakeNotifier()
    scanner = make_scanner(db, ledger, store, tracker, feed, notifier)

    assert scanner.process_match(live_fixture(1), store.read(), now=NOW) == NO_ALERT
    assert notifier.alerts == []
    assert ledger.last_alert_time(1) is None


def test_failed_statistics_fetch_short_circuits_the_match(db, ledger, store, tracker):
    feed = FakeFeed(stats={1: FeedError("timeout")})
    scanner = make_scanner(db, ledger, store, tracker, feed)

    assert scanner.process_match(live_fixture(1), store.read(), now=NOW) == FAILED
    assert tracker.recent_corners(1, 60, 5) is None


def test_incomplete_statistics_are_skipped(db, ledger, store, tracker):
    feed = FakeFeed(stats={1: [team_stats(50, 5, 5)]})
    scanner = make_scanner(db, ledger, store, tracker, feed)

    assert scanner.process_match(live_fixture(1), store.read(), now=NOW) == SKIPPED


def test_repeat_alert_within_cooldown_is_suppressed(db, ledger, store, tracker):
    feed = FakeFeed(stats={1: HIGH})
    notifier = FakeNotifier()
    scanner = make_scanner(db, ledger, store, tracker, feed, notifier)
    thresholds = store.read()

    assert scanner.process_match(live_fixture(1, minute=60), thresholds, now=NOW) == ALERTED
    assert scanner.process_match(live_fixture(1, minute=65), thresholds,
                                 now=NOW + timedelta(minutes=5)) == COOLDOWN
    assert scanner.process_match(live_fixture(1, minute=71), thresholds,
                                 now=NOW + timedelta(minutes=11)) == ALERTED
    assert len(notifier.alerts) == 2


def test_delivery_failure_does_not_record_alert(db, ledger, store, tracker):
    feed = FakeFeed(stats={1: HIGH})
    scanner = make_scanner(db, ledger, store, tracker, feed, FakeNotifier(fail=True))

    assert scanner.process_match(live_fixture(1), store.read(), now=NOW) == FAILED
    assert ledger.last_alert_time(1) is None


def test_corner_burst_uses_recent_window(db, ledger, store, tracker):
    quiet = [team_stats(10, 0, 2), team_stats(8, 0, 1)]
    burst = [team_stats(12, 0, 5), team_stats(8, 0, 2)]
    feed = FakeFeed(stats={1: quiet})
    notifier = FakeNotifier()
    scanner = make_scanner(db, ledger, store, tracker, feed, notifier)
    thresholds = ThresholdSet(120, 30, 3)

    # First sighting at minute 50: no history, corner rule not evaluated
    assert scanner.process_match(live_fixture(1, minute=50), thresholds, now=NOW) == NO_ALERT

    feed.stats[1] = burst
    # 7 corners now, 3 at minute 50 -> 4 recent
    assert scanner.process_match(live_fixture(1, minute=60), thresholds,
                                 now=NOW + timedelta(minutes=10)) == ALERTED
    assert notifier.alerts[0] == (1, ["corners"], 4)


def test_live_feed_failure_still_verifies_outcomes(db, ledger, store, tracker):
    alert_id = ledger.append(fixture_id=5, minute=70, press_total=80.0, press_diff=20.0, corners=5,
                             shots_on_goal=4, goals_at_alert=0, now=NOW - timedelta(minutes=20))
    feed = FakeFeed(scores={5: {"home_goals": 0, "away_goals": 1}})
    feed.fail_live = True
    scanner = make_scanner(db, ledger, store, tracker, feed)

    summary = scanner.perform_scan(now=NOW)

    assert summary["success"] is False
    assert "live feed down" in summary["error"]
    assert summary["verification"]["updated"] == 1
    assert ledger.get(alert_id).goal_happened is True


def test_one_bad_match_does_not_stop_the_cycle(db, ledger, store, tracker):
    feed = FakeFeed(
        live=[live_fixture(1), live_fixture(2), live_fixture(3)],
        stats={1: FeedError("boom"), 2: LOW, 3: HIGH},
    )
    scanner = make_scanner(db, ledger, store, tracker, feed)

    summary = scanner.perform_scan(now=NOW)

    assert summary["fixtures_checked"] == 3
    assert summary["failed"] == 1
    assert summary["alerts_sent"] == 1


def test_daily_analysis_sends_report(db, ledger, store, tracker):
    for i in range(10):
        alert_id = ledger.append(fixture_id=i, minute=60, press_total=80.0, press_diff=20.0, corners=5,
                                 shots_on_goal=4, goals_at_alert=0, now=NOW - timedelta(hours=3))
        ledger.resolve(alert_id, i < 9)
    notifier = FakeNotifier()
    scanner = make_scanner(db, ledger, store, tracker, FakeFeed(), notifier)

    report = scanner.run_daily_analysis(now=NOW)

    assert report["updated"] is True
    assert notifier.reports == [report]
    assert store.read().threshold_total == pytest.approx(66.5)


def test_daily_analysis_due_once_per_day(db, ledger, store, tracker, monkeypatch):
    monkeypatch.setattr(config, "DAILY_ANALYSIS_HOUR_UTC", 0)
    scanner = make_scanner(db, ledger, store, tracker, FakeFeed())
    midnight = NOW.replace(hour=0, minute=1)

    assert scanner.daily_analysis_due(midnight) is True
    scanner.last_analysis_date = midnight.date()
    assert scanner.daily_analysis_due(midnight + timedelta(minutes=5)) is False
    assert scanner.daily_analysis_due(NOW) is False


def test_non_ascii_statistic_does_not_break_the_cycle(db, ledger, store, tracker):
    odd = [team_stats("²", 1, 1), team_stats(1, 1, 1)]
    feed = FakeFeed(live=[live_fixture(1), live_fixture(2)], stats={1: odd, 2: HIGH})
    scanner = make_scanner(db, ledger, store, tracker, feed)

    summary = scanner.perform_scan(now=NOW)

    assert summary["fixtures_checked"] == 2
    assert summary["alerts_sent"] == 1
    assert summary["failed"] == 0


def test_unexpected_error_fails_only_that_match(db, ledger, store, tracker):
    feed = FakeFeed(live=[live_fixture(1), live_fixture(2)], stats={1: TypeError("bad payload"), 2: HIGH})
    notifier = FakeNotifier()
    scanner = make_scanner(db, ledger, store, tracker, feed, notifier)

    summary = scanner.perform_scan(now=NOW)

    assert summary["failed"] == 1
    assert summary["alerts_sent"] == 1
    assert summary["verification"] is not None
    assert [alert[0] for alert in notifier.alerts] == [2]


def test_zero_cooldown_alerts_every_cycle(db, ledger, store, tracker, monkeypatch):
    monkeypatch.setattr(config, "ALERT_COOLDOWN_MINUTES", 0)
    feed = FakeFeed(stats={1: HIGH})
    notifier = FakeNotifier()
    scanner = make_scanner(db, ledger, store, tracker, feed, notifier)
    thresholds = store.read()

    assert scanner.process_match(live_fixture(1, minute=60), thresholds, now=NOW) == ALERTED
    assert scanner.process_match(live_fixture(1, minute=61), thresholds,
                                 now=NOW + timedelta(minutes=1)) == ALERTED
    assert len(notifier.alerts) == 2
