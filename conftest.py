"""Shared fixtures: temporary SQLite store and in-memory feed/notifier fakes"""

from datetime import datetime, timezone

import pytest

from alert_ledger import AlertLedger
from database import Database
from errors import DeliveryError, FeedError
from match_tracker import MatchTracker
from threshold_store import ThresholdStore

NOW = datetime(2026, 10, 18, 15, 0, 0, tzinfo=timezone.utc)


def team_stats(attacks=None, shots=None, corners=None, name="Team"):
    """One team entry in API-Football statistics format"""
    statistics = []
    if attacks is not None:
        statistics.append({"type": "Total attacks", "value": attacks})
    if shots is not None:
        statistics.append({"type": "Shots on Goal", "value": shots})
    if corners is not None:
        statistics.append({"type": "Corner Kicks", "value": corners})
    return {"team": {"name": name}, "statistics": statistics}


def live_fixture(fixture_id, minute=60, home_goals=0, away_goals=0):
    return {
        "fixture": {"id": fixture_id, "status": {"elapsed": minute}},
        "league": {"name": "Test League"},
        "teams": {"home": {"name": f"Home {fixture_id}"}, "away": {"name": f"Away {fixture_id}"}},
        "goals": {"home": home_goals, "away": away_goals},
    }


class FakeFeed:
    def __init__(self, live=None, stats=None, scores=None):
        self.live = live or []
        self.stats = stats or {}
        self.scores = scores or {}
        self.score_calls = []
        self.fail_live = False

    def get_live_matches(self):
        if self.fail_live:
            raise FeedError("live feed down")
        return list(self.live)

    def get_match_statistics(self, fixture_id):
        value = self.stats.get(fixture_id)
        if isinstance(value, Exception):
            raise value
        return value or []

    def get_current_score(self, fixture_id):
        self.score_calls.append(fixture_id)
        value = self.scores.get(fixture_id)
        if value is None:
            raise FeedError(f"Fixture {fixture_id} not found")
        if isinstance(value, Exception):
            raise value
        return value


class FakeNotifier:
    def __init__(self, fail=False):
        self.fail = fail
        self.alerts = []
        self.reports = []
        self.errors = []
        self.messages = []

    def send_message(self, message, parse_mode="HTML"):
        if self.fail:
            raise DeliveryError("telegram down")
        self.messages.append(message)
        return len(self.messages)

    def send_match_alert(self, fixture, metrics, reasons, recent_corners):
        if self.fail:
            raise DeliveryError("telegram down")
        self.alerts.append((fixture["fixture"]["id"], reasons, recent_corners))
        return len(self.alerts)

    def send_daily_report(self, report):
        if self.fail:
            raise DeliveryError("telegram down")
        self.reports.append(report)
        return len(self.reports)

    def send_error_notification(self, error_type, error_message):
        if self.fail:
            raise DeliveryError("telegram down")
        self.errors.append((error_type, error_message))
        return len(self.errors)

    def send_startup_notification(self, thresholds):
        return self.send_message("started")


@pytest.fixture
def db(tmp_path):
    database = Database(str(tmp_path / "monitor.db"))
    database.init_schema()
    return database


@pytest.fixture
def ledger(db):
    return AlertLedger(db)


@pytest.fixture
def store(db):
    return ThresholdStore(db)


@pytest.fixture
def tracker(db):
    return MatchTracker(db, window_minutes=10)


@pytest.fixture
def broken_db(tmp_path):
    """Database whose path cannot be opened"""
    return Database(str(tmp_path / "missing-dir" / "monitor.db"))
