from datetime import timedelta

from alert_ledger import AlertLedger
from conftest import NOW, FakeFeed
from errors import FeedError
from outcome_verifier import goal_happened, verify_goal_outcomes


def add_alert(ledger, fixture_id, goals=0, minutes_ago=15):
    return ledger.append(
        fixture_id=fixture_id, minute=70, press_total=80.0, press_diff=20.0,
        corners=5, shots_on_goal=4, goals_at_alert=goals,
        now=NOW - timedelta(minutes=minutes_ago),
    )


def no_sleep(seconds):
    pass


def test_goal_happened_requires_strict_increase():
    assert goal_happened(1, 2, 0) is True
    assert goal_happened(2, 1, 1) is False
    assert goal_happened(0, None, None) is False


def test_goal_after_alert_is_recorded(ledger):
    alert_id = add_alert(ledger, fixture_id=10, goals=1)
    feed = FakeFeed(scores={10: {"home_goals": 2, "away_goals": 0}})

    result = verify_goal_outcomes(ledger, feed, sleep=no_sleep, now=NOW)

    assert result == {"checked": 1, "updated": 1, "failed": 0, "success": True, "error": None}
    assert ledger.get(alert_id).goal_happened is True


def test_unchanged_score_is_a_miss(ledger):
    alert_id = add_alert(ledger, fixture_id=10, goals=2)
    feed = FakeFeed(scores={10: {"home_goals": 1, "away_goals": 1}})

    verify_goal_outcomes(ledger, feed, sleep=no_sleep, now=NOW)

    assert ledger.get(alert_id).goal_happened is False


def test_young_alerts_wait_for_the_window(ledger):
    alert_id = add_alert(ledger, fixture_id=10, minutes_ago=4)
    feed = FakeFeed(scores={10: {"home_goals": 3, "away_goals": 0}})

    result = verify_goal_outcomes(ledger, feed, sleep=no_sleep, now=NOW)

    assert result["checked"] == 0
    assert feed.score_calls == []
    assert ledger.get(alert_id).goal_happened is None


def test_fetch_failure_is_isolated(ledger):
    failing = add_alert(ledger, fixture_id=1, minutes_ago=30)
    missing = add_alert(ledger, fixture_id=2, minutes_ago=25)
    ok = add_alert(ledger, fixture_id=3, minutes_ago=20)
    feed = FakeFeed(scores={1: FeedError("timeout"), 3: {"home_goals": 1, "away_goals": 0}})

    result = verify_goal_outcomes(ledger, feed, sleep=no_sleep, now=NOW)

    assert result["checked"] == 3
    assert result["updated"] == 1
    assert result["failed"] == 2
    assert result["success"] is True
    assert ledger.get(failing).goal_happened is None
    assert ledger.get(missing).goal_happened is None
    assert ledger.get(ok).goal_happened is True


def test_batch_is_capped_at_fifty_oldest(ledger):
    ids = [add_alert(ledger, fixture_id=i, minutes_ago=200 - i) for i in range(51)]
    feed = FakeFeed(scores={i: {"home_goals": 0, "away_goals": 0} for i in range(51)})
    delays = []

    result = verify_goal_outcomes(ledger, feed, sleep=delays.append, now=NOW)

    assert result["checked"] == 50
    assert result["updated"] == 50
    assert feed.score_calls == list(range(50))
    assert len(set(feed.score_calls)) == 50
    assert delays == [0.5] * 49
    assert ledger.get(ids[-1]).goal_happened is None

    second = verify_goal_outcomes(ledger, feed, sleep=no_sleep, now=NOW)
    assert second["checked"] == 1
    assert ledger.get(ids[-1]).goal_happened is False


def test_store_failure_reports_error(broken_db):
    result = verify_goal_outcomes(AlertLedger(broken_db), FakeFeed(), sleep=no_sleep, now=NOW)

    assert result["success"] is False
    assert result["checked"] == 0
    assert result["error"]
