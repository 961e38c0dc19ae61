"""
API-Football Client with Rate Limiting
Live fixtures, fixture statistics and current scores; failures raise FeedError
"""

import requests
import time
import logging
from typing import Dict, List, Optional
from datetime import datetime, timezone
import config
from errors import FeedError


class APIUsageTracker:
    """Track API usage to stay within the daily quota"""

    def __init__(self, daily_limit: int = config.DAILY_REQUEST_LIMIT):
        self.daily_limit = daily_limit
        self.requests_today = 0
        self.last_reset = datetime.now(timezone.utc)
        self.limit_warning_sent = False

    def reset_if_needed(self):
        """Reset the counter at the UTC day boundary"""
        now = datetime.now(timezone.utc)
        if now.date() > self.last_reset.date():
            self.requests_today = 0
            self.last_reset = now
            self.limit_warning_sent = False
            logging.info(f"✅ Daily API counter reset - {self.daily_limit} requests available")

    def remaining(self) -> int:
        self.reset_if_needed()
        return self.daily_limit - self.requests_today

    def can_make_request(self) -> bool:
        remaining = self.remaining()

        if remaining <= 0:
            return False

        # Warn once when approaching the limit
        if remaining <= 50 and not self.limit_warning_sent:
            self.limit_warning_sent = True
            logging.warning(f"⚠️ API LIMIT WARNING: Only {remaining} requests remaining!")

        return True

    def record_request(self):
        self.requests_today += 1

    def get_usage_stats(self) -> Dict:
        return {
            'requests_today': self.requests_today,
            'daily_remaining': self.remaining(),
        }


class APIFootballClient:
    """Client for API-Football with retry logic and rate limiting"""

    def __init__(self, api_key: Optional[str] = None, base_url: Optional[str] = None,
                 timeout: float = config.REQUEST_TIMEOUT, session: Optional[requests.Session] = None,
                 sleep=time.sleep):
        self.base_url = base_url or config.API_FOOTBALL_BASE_URL
        self.headers = {
            'x-apisports-key': api_key if api_key is not None else config.API_FOOTBALL_KEY
        }
        self.timeout = timeout
        self.session = session or requests.Session()
        self.sleep = sleep
        self.usage_tracker = APIUsageTracker()
        self.logger = logging.getLogger(__name__)

    def _make_request(self, endpoint: str, params: Optional[Dict] = None) -> Dict:
        """
        Make API request with retry on rate limiting and timeouts

        Args:
            endpoint: API endpoint (e.g., '/fixtures')
            params: Query parameters

        Returns:
            Decoded JSON body

        Raises:
            FeedError: quota exhausted, HTTP/network failure or invalid JSON
        """
        if not self.headers['x-apisports-key']:
            raise FeedError("API_FOOTBALL_KEY not configured")

        if not self.usage_tracker.can_make_request():
            raise FeedError("Daily API quota exhausted")

        url = f"{self.base_url}{endpoint}"
        last_error = "no attempt made"

        for attempt in range(config.MAX_RETRIES):
            try:
                response = self.session.get(
                    url,
                    headers=self.headers,
                    params=params,
                    timeout=self.timeout
                )
            except requests.Timeout:
                last_error = f"timeout after {self.timeout}s"
                self.logger.warning(f"Request timeout on attempt {attempt + 1} ({endpoint})")
                if attempt < config.MAX_RETRIES - 1:
                    self.sleep(config.RETRY_BACKOFF_FACTOR ** attempt)
                continue
            except requests.RequestException as e:
                raise FeedError(f"Request to {endpoint} failed: {e}") from e

            self.usage_tracker.record_request()

            if response.status_code == 200:
                try:
                    data = response.json()
                except ValueError as e:
                    raise FeedError(f"Invalid JSON from {endpoint}: {e}") from e
                errors = data.get('errors') if isinstance(data, dict) else None
                if errors:
                    raise FeedError(f"API-Football error on {endpoint}: {errors}")
                return data

            if response.status_code == 429:  # Rate limited
                last_error = "rate limited"
                wait_time = config.RETRY_BACKOFF_FACTOR ** (attempt + 1)
                self.logger.warning(f"Rate limited, waiting {wait_time}s")
                self.sleep(wait_time)
                continue

            raise FeedError(f"API error {response.status_code} on {endpoint}: {response.text[:200]}")

        raise FeedError(f"Request to {endpoint} failed after {config.MAX_RETRIES} attempts: {last_error}")

    def get_live_matches(self) -> List[Dict]:
        """
        Fetch all currently live matches

        Returns:
            List of fixture dictionaries (possibly empty)
        """
        response = self._make_request('/fixtures', {'live': 'all'})
        return response.get('response') or []

    def get_match_statistics(self, fixture_id: int) -> List[Dict]:
        """
        Get per-team statistics for a match, home first

        Returns:
            The raw statistics list; scoring decides whether it is complete
        """
        response = self._make_request('/fixtures/statistics', {'fixture': fixture_id})
        return response.get('response') or []

    def get_current_score(self, fixture_id: int) -> Dict:
        """
        Current goals for a fixture

        Returns:
            {'home_goals': int, 'away_goals': int}
        """
        response = self._make_request('/fixtures', {'id': fixture_id})
        fixtures = response.get('response') or []
        if not fixtures:
            raise FeedError(f"Fixture {fixture_id} not found")

        goals = fixtures[0].get('goals') or {}
        return {
            'home_goals': goals.get('home') or 0,
            'away_goals': goals.get('away') or 0,
        }

    def get_usage_stats(self) -> Dict:
        """Get API usage statistics"""
        return self.usage_tracker.get_usage_stats()
