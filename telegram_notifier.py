"""
Telegram Notification Handler
Sends alerts, daily reports and status updates to Telegram
"""

import requests
import logging
from html import escape
from typing import Dict, List, Optional
from datetime import datetime, timezone
import config
from errors import DeliveryError

REASON_LABELS = {
    'press_total': 'Total pressure above threshold',
    'press_diff': 'One-sided pressure with shots on goal',
    'corners': 'Corner burst in the recent period',
}


def utc_stamp() -> str:
    return datetime.now(timezone.utc).strftime('%Y-%m-%d %H:%M:%S UTC')


class TelegramNotifier:
    """Handle all Telegram bot communications"""

    def __init__(self, bot_token: Optional[str] = None, chat_id: Optional[str] = None,
                 timeout: float = config.REQUEST_TIMEOUT, session: Optional[requests.Session] = None):
        self.bot_token = bot_token if bot_token is not None else config.TELEGRAM_BOT_TOKEN
        self.chat_id = chat_id if chat_id is not None else config.TELEGRAM_CHAT_ID
        self.base_url = f"https://api.telegram.org/bot{self.bot_token}"
        self.timeout = timeout
        self.session = session or requests.Session()
        self.logger = logging.getLogger(__name__)

    def send_message(self, message: str, parse_mode: Optional[str] = config.TELEGRAM_PARSE_MODE) -> int:
        """
        Send message to the Telegram chat

        Args:
            message: Message text (supports HTML/Markdown)
            parse_mode: 'HTML', 'Markdown' or None for plain text

        Returns:
            Telegram message_id

        Raises:
            DeliveryError: missing credentials, HTTP failure or API rejection
        """
        if not self.bot_token or not self.chat_id:
            raise DeliveryError("TELEGRAM_BOT_TOKEN or TELEGRAM_CHAT_ID not configured")

        payload = {
            'chat_id': self.chat_id,
            'text': message,
            'disable_web_page_preview': True
        }
        if parse_mode:
            payload['parse_mode'] = parse_mode

        try:
            response = self.session.post(f"{self.base_url}/sendMessage", json=payload,
                                         timeout=self.timeout)
        except requests.RequestException as e:
            raise DeliveryError(f"Failed to send Telegram message: {e}") from e

        if response.status_code != 200:
            raise DeliveryError(f"Telegram API error {response.status_code}: {response.text[:200]}")

        try:
            body = response.json()
        except ValueError as e:
            raise DeliveryError(f"Invalid Telegram response: {e}") from e

        if not body.get('ok'):
            raise DeliveryError(f"Telegram rejected message: {body.get('description', 'unknown error')}")

        message_id = body.get('result', {}).get('message_id')
        self.logger.info(f"Telegram message sent (id={message_id})")
        return message_id

    def format_match_alert(self, fixture: Dict, metrics, reasons: List[str],
                           recent_corners: Optional[int]) -> str:
        """
        Format a pressure alert for one match

        Args:
            fixture: Live fixture as returned by the feed
            metrics: PressureMetrics for the match
            reasons: Conditions that triggered the alert
            recent_corners: Corners in the recent period, if known
        """
        teams = fixture.get('teams', {})
        home = escape(teams.get('home', {}).get('name', 'Home'))
        away = escape(teams.get('away', {}).get('name', 'Away'))
        league = escape(fixture.get('league', {}).get('name', 'Unknown league'))
        minute = fixture.get('fixture', {}).get('status', {}).get('elapsed') or 0
        goals = fixture.get('goals', {})
        score = f"{goals.get('home') or 0}-{goals.get('away') or 0}"

        reason_lines = "\n".join(f"• {REASON_LABELS.get(r, r)}" for r in reasons)
        corners_line = f"{recent_corners} recent" if recent_corners is not None else "n/a recent"

        return f"""🚨 <b>Goal Pressure Alert</b>

⚽ <b>{home} vs {away}</b>
🏆 {league}
⏱ {minute}' | Score: {score}

<b>Pressure</b>
• Home: {metrics.press_home:.1f} | Away: {metrics.press_away:.1f}
• Total: {metrics.press_total:.1f} | Diff: {metrics.press_diff:.1f}

<b>Stats</b>
• Attacks: {metrics.attacks_home}-{metrics.attacks_away}
• Shots on goal: {metrics.shots_home}-{metrics.shots_away}
• Corners: {metrics.corners_home}-{metrics.corners_away} ({corners_line})

<b>Triggered by</b>
{reason_lines}
"""

    def format_daily_report(self, report: Dict) -> str:
        """Format the daily accuracy report and threshold recommendation"""
        current = report['current_thresholds']
        recommended = report['recommended_thresholds']

        if report['adjustment_factor'] < 0:
            verdict = "📉 High accuracy - thresholds lowered by 5%"
        elif report['adjustment_factor'] > 0:
            verdict = "📈 Low accuracy - thresholds raised by 5%"
        else:
            verdict = "➡️ Accuracy within range - thresholds unchanged"

        return f"""📊 <b>Daily Performance Report</b>

Matches monitored: {report['matches_monitored']}
Alerts verified: {report['alerts_sent']}
Goals confirmed: {report['goals_confirmed']}
Accuracy: {report['accuracy']:.2f}%

<b>Thresholds</b> (current → recommended)
• Total: {current['threshold_total']} → {recommended['threshold_total']}
• Diff: {current['threshold_diff']} → {recommended['threshold_diff']}
• Corners: {current['escanteios_10min']} → {recommended['escanteios_10min']}

{verdict}
{utc_stamp()}
"""

    def send_match_alert(self, fixture: Dict, metrics, reasons: List[str],
                         recent_corners: Optional[int]) -> int:
        return self.send_message(self.format_match_alert(fixture, metrics, reasons, recent_corners))

    def send_daily_report(self, report: Dict) -> int:
        return self.send_message(self.format_daily_report(report))

    def send_error_notification(self, error_type: str, error_message: str) -> int:
        """
        Send error notification for recurring issues

        Args:
            error_type: Type of error (Feed, Delivery, Persistence, ...)
            error_message: Detailed error description
        """
        message = f"""❌ <b>System Error</b>

Type: {escape(error_type)}
Details: {escape(error_message)}

Timestamp: {utc_stamp()}
"""
        return self.send_message(message)

    def send_startup_notification(self, thresholds) -> int:
        """Send notification when the scanner starts"""
        message = f"""🚀 <b>Pressure Monitor Started</b>

Scan interval: {config.BASE_SCAN_INTERVAL}s
Thresholds: total {thresholds.threshold_total} | diff {thresholds.threshold_diff} | corners {thresholds.escanteios_10min}
Corner window: {config.CORNER_WINDOW_MINUTES or 'whole match'} min
Outcome window: {config.OBSERVATION_WINDOW_MINUTES} min

System initialized successfully ✅
{utc_stamp()}
"""
        return self.send_message(message)
