"""
Live Match Scanner
One monitoring pass: fetch stats -> score -> decide -> alert + record -> verify outcomes
Also hosts the long-running loop that triggers passes and the daily adjustment
"""

import time
import logging
from datetime import datetime, timedelta
from typing import Dict, Optional
import config
from alert_ledger import AlertLedger
from alert_policy import evaluate_alert
from api_client import APIFootballClient
from database import Database, utcnow
from errors import DeliveryError, FeedError, PersistenceError
from logger_config import ErrorMonitor
from match_tracker import MatchTracker
from outcome_verifier import verify_goal_outcomes
from pressure_scorer import calculate_pressure
from telegram_notifier import TelegramNotifier
from threshold_adjuster import perform_daily_analysis
from threshold_store import ThresholdStore

# Per-match outcomes reported by process_match
ALERTED = 'alerted'
NO_ALERT = 'no_alert'
COOLDOWN = 'cooldown'
SKIPPED = 'skipped'
FAILED = 'failed'


class LiveScanner:
    """Main scanning engine wiring the feed, policy, ledger and notifier"""

    def __init__(self, db: Optional[Database] = None, api_client=None, notifier=None,
                 ledger: Optional[AlertLedger] = None, store: Optional[ThresholdStore] = None,
                 tracker: Optional[MatchTracker] = None, error_monitor: Optional[ErrorMonitor] = None,
                 verify_sleep=time.sleep, logger=None):
        self.db = db or Database()
        self.api_client = api_client or APIFootballClient()
        self.notifier = notifier or TelegramNotifier()
        self.ledger = ledger or AlertLedger(self.db)
        self.store = store or ThresholdStore(self.db)
        self.tracker = tracker or MatchTracker(self.db)
        self.error_monitor = error_monitor or ErrorMonitor(self.notifier)
        self.verify_sleep = verify_sleep
        self.logger = logger or logging.getLogger(__name__)

        # Scanning state
        self.scan_count = 0
        self.alerts_sent = 0
        self.start_time = datetime.now()
        self.last_cleanup = datetime.now()
        self.last_analysis_date = None

    def in_cooldown(self, fixture_id: int, now: datetime) -> bool:
        """True if this fixture was alerted within the cooldown period"""
        if config.ALERT_COOLDOWN_MINUTES <= 0:
            return False
        last = self.ledger.last_alert_time(fixture_id)
        return last is not None and now - last < timedelta(minutes=config.ALERT_COOLDOWN_MINUTES)

    def process_match(self, fixture: Dict, thresholds, now: Optional[datetime] = None) -> str:
        """
        Process a single match through the alert pipeline

        A failed statistics fetch ends the evaluation of this match for the
        cycle; it is never scored as zero pressure.

        Returns:
            One of ALERTED, NO_ALERT, COOLDOWN, SKIPPED, FAILED
        """
        try:
            return self._evaluate_match(fixture, thresholds, now or utcnow())
        except Exception as e:
            fixture_id = (fixture.get('fixture') or {}).get('id')
            self.logger.error(f"Error processing match {fixture_id}: {str(e)}", exc_info=True)
            self.error_monitor.log_error("Scanner", f"fixture {fixture_id}: {e}", send_alert=False)
            return FAILED

    def _evaluate_match(self, fixture: Dict, thresholds, now: datetime) -> str:
        info = fixture.get('fixture', {})
        fixture_id = info.get('id')
        minute = info.get('status', {}).get('elapsed') or 0
        teams = fixture.get('teams', {})
        home_team = teams.get('home', {}).get('name', 'Unknown')
        away_team = teams.get('away', {}).get('name', 'Unknown')
        goals = fixture.get('goals', {})
        goals_now = (goals.get('home') or 0) + (goals.get('away') or 0)

        if not fixture_id:
            self.logger.debug("Invalid fixture ID, skipping")
            return SKIPPED

        try:
            stats = self.api_client.get_match_statistics(fixture_id)
        except FeedError as e:
            self.error_monitor.log_error("Feed", f"statistics for fixture {fixture_id}: {e}", send_alert=False)
            return FAILED

        scored = calculate_pressure(stats, logger=self.logger)
        if not scored['success']:
            self.logger.info(f"{home_team} vs {away_team}: {scored['error']}")
            return SKIPPED
        metrics = scored['metrics']

        try:
            recent_corners = self.tracker.recent_corners(fixture_id, minute, metrics.corners_total)
            self.tracker.record_snapshot(fixture_id, minute, metrics.corners_total, now=now)
        except PersistenceError as e:
            self.error_monitor.log_error("Persistence", f"corner history: {e}")
            return FAILED

        reasons = evaluate_alert(metrics, thresholds, recent_corners)
        self.logger.info(
            f"{home_team} vs {away_team} ({minute}') total={metrics.press_total:.1f} "
            f"diff={metrics.press_diff:.1f} recent_corners={recent_corners} -> {reasons or 'no alert'}"
        )
        if not reasons:
            return NO_ALERT

        try:
            if self.in_cooldown(fixture_id, now):
                self.logger.info(f"Skipping duplicate alert: {home_team} vs {away_team}")
                return COOLDOWN
        except PersistenceError as e:
            self.error_monitor.log_error("Persistence", f"alert history: {e}")
            return FAILED

        try:
            self.notifier.send_match_alert(fixture, metrics, reasons, recent_corners)
        except DeliveryError as e:
            self.error_monitor.log_error("Delivery", str(e))
            return FAILED

        try:
            self.ledger.append(
                fixture_id=fixture_id,
                minute=minute,
                press_total=metrics.press_total,
                press_diff=metrics.press_diff,
                corners=metrics.corners_total,
                shots_on_goal=metrics.shots_total,
                goals_at_alert=goals_now,
                now=now,
            )
        except PersistenceError as e:
            self.error_monitor.log_error("Persistence", f"alert for fixture {fixture_id} sent but not stored: {e}")
            return FAILED

        self.alerts_sent += 1
        return ALERTED

    def perform_scan(self, now: Optional[datetime] = None) -> Dict:
        """
        Perform a single monitoring pass followed by outcome verification

        Returns:
            Scan results summary
        """
        self.scan_count += 1
        self.logger.info(f"Starting scan #{self.scan_count}")

        summary = {
            'fixtures_checked': 0,
            'alerts_sent': 0,
            'cooldown_skipped': 0,
            'skipped': 0,
            'failed': 0,
            'verification': None,
            'success': True,
            'error': None,
        }

        thresholds = self.store.read()

        try:
            live_matches = self.api_client.get_live_matches()
        except FeedError as e:
            self.error_monitor.log_error("Feed", f"live fixtures: {e}")
            summary['success'] = False
            summary['error'] = str(e)
            live_matches = []

        for match in live_matches:
            outcome = self.process_match(match, thresholds, now=now)
            summary['fixtures_checked'] += 1
            if outcome == ALERTED:
                summary['alerts_sent'] += 1
            elif outcome == COOLDOWN:
                summary['cooldown_skipped'] += 1
            elif outcome == SKIPPED:
                summary['skipped'] += 1
            elif outcome == FAILED:
                summary['failed'] += 1

        summary['verification'] = verify_goal_outcomes(
            self.ledger, self.api_client, sleep=self.verify_sleep, now=now, logger=self.logger
        )
        if not summary['verification']['success'] and summary['error'] is None:
            summary['error'] = summary['verification']['error']
            summary['success'] = False

        return summary

    def run_daily_analysis(self, now: Optional[datetime] = None) -> Dict:
        """Adjust thresholds and report the result to Telegram"""
        report = perform_daily_analysis(self.ledger, self.store, now=now, logger=self.logger)

        if not report['success']:
            self.error_monitor.log_error("Analysis", report['error'] or "unknown error")
            return report

        try:
            self.notifier.send_daily_report(report)
        except DeliveryError as e:
            self.error_monitor.log_error("Delivery", f"daily report: {e}")

        return report

    def daily_analysis_due(self, now: datetime) -> bool:
        """Once per UTC day, during the configured hour"""
        return now.hour == config.DAILY_ANALYSIS_HOUR_UTC and self.last_analysis_date != now.date()

    def periodic_maintenance(self):
        """Daily cleanup of old corner snapshots"""
        now = datetime.now()
        if (now - self.last_cleanup).total_seconds() > 86400:  # 24 hours
            try:
                self.tracker.cleanup_old_snapshots()
            except PersistenceError as e:
                self.error_monitor.log_warning("Persistence", f"snapshot cleanup: {e}")
            self.last_cleanup = now

    def run(self):
        """
        Main 24/7 scanning loop
        Each pass is independent, so a crash or restart loses nothing
        """
        self.logger.info("Starting 24/7 Pressure Monitor")
        try:
            self.notifier.send_startup_notification(self.store.read())
        except DeliveryError as e:
            self.error_monitor.log_warning("Delivery", f"startup notification: {e}")

        try:
            while True:
                try:
                    now = utcnow()
                    if self.daily_analysis_due(now):
                        self.logger.info("🌙 Running daily analysis")
                        self.run_daily_analysis(now=now)
                        self.last_analysis_date = now.date()

                    scan_results = self.perform_scan()
                    self.periodic_maintenance()

                    self.logger.info(
                        f"Scan complete. Checked: {scan_results['fixtures_checked']}, "
                        f"Alerts: {scan_results['alerts_sent']}, "
                        f"Verified: {scan_results['verification']['updated']}. "
                        f"Next scan in {config.BASE_SCAN_INTERVAL}s"
                    )
                except Exception as e:
                    self.logger.error(f"Error in scan cycle: {str(e)}", exc_info=True)
                    self.error_monitor.log_error("Scan", str(e))

                time.sleep(config.BASE_SCAN_INTERVAL)

        except KeyboardInterrupt:
            self.logger.info("Scanner stopped by user")
