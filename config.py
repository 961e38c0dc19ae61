"""
Configuration settings for the Live Football Pressure Monitor
Values come from the environment (or a local .env file) with sane defaults
"""

import os
from dotenv import load_dotenv

load_dotenv()

# API-Football Configuration (Direct API, not RapidAPI)
API_FOOTBALL_KEY = (os.getenv("API_FOOTBALL_KEY") or "").strip()
API_FOOTBALL_BASE_URL = os.getenv("API_FOOTBALL_BASE_URL", "https://v3.football.api-sports.io")

# Telegram Configuration
TELEGRAM_BOT_TOKEN = (os.getenv("TELEGRAM_BOT_TOKEN") or "").strip()
TELEGRAM_CHAT_ID = (os.getenv("TELEGRAM_CHAT_ID") or "").strip()
TELEGRAM_PARSE_MODE = os.getenv("TELEGRAM_PARSE_MODE", "HTML")

# API Usage Limits
DAILY_REQUEST_LIMIT = int(os.getenv("DAILY_REQUEST_LIMIT", "7500"))

# Retry Configuration
MAX_RETRIES = 3
RETRY_BACKOFF_FACTOR = 2  # Exponential: 2, 4, 8 seconds
REQUEST_TIMEOUT = 10  # seconds

# Storage
DATABASE_FILE = os.getenv("DATABASE_FILE", "football_monitor.db")
DB_BUSY_TIMEOUT = 60  # seconds

# Scanning Configuration
BASE_SCAN_INTERVAL = int(os.getenv("BASE_SCAN_INTERVAL", "60"))  # seconds
SNAPSHOT_RETENTION_HOURS = 6

# Pressure weights
ATTACK_WEIGHT = 0.5
SHOT_ON_GOAL_WEIGHT = 1.5
CORNER_WEIGHT = 0.8

# Statistic names as reported by API-Football
STAT_ATTACKS = "Total attacks"
STAT_SHOTS_ON_GOAL = "Shots on Goal"
STAT_CORNERS = "Corner Kicks"

# Adaptive thresholds - defaults and hard bounds
DEFAULT_THRESHOLD_TOTAL = 70.0
DEFAULT_THRESHOLD_DIFF = 15.0
DEFAULT_ESCANTEIOS_10MIN = 3
THRESHOLD_TOTAL_BOUNDS = (50.0, 120.0)
THRESHOLD_DIFF_BOUNDS = (10.0, 30.0)
ESCANTEIOS_BOUNDS = (2, 6)

# Alert policy
MIN_SHOTS_ON_GOAL = 2
SHOTS_ON_GOAL_MODES = ("max", "sum", "dominant")
SHOTS_ON_GOAL_MODE = os.getenv("SHOTS_ON_GOAL_MODE", "max").strip().lower()
if SHOTS_ON_GOAL_MODE not in SHOTS_ON_GOAL_MODES:
    raise ValueError(
        f"SHOTS_ON_GOAL_MODE must be one of {SHOTS_ON_GOAL_MODES}, got {SHOTS_ON_GOAL_MODE!r}"
    )
CORNER_WINDOW_MINUTES = int(os.getenv("CORNER_WINDOW_MINUTES", "10"))  # 0 = whole match
ALERT_COOLDOWN_MINUTES = int(os.getenv("ALERT_COOLDOWN_MINUTES", "10"))  # 0 = disabled

# Outcome verification
OBSERVATION_WINDOW_MINUTES = 10
VERIFY_BATCH_SIZE = 50
VERIFY_DELAY_SECONDS = 0.5

# Daily threshold adjustment
ANALYSIS_WINDOW_HOURS = 24
HIGH_ACCURACY = 85.0  # > 85% = lower thresholds
LOW_ACCURACY = 50.0  # < 50% = raise thresholds
MIN_ALERTS_FOR_INCREASE = 3
ADJUSTMENT_STEP = 0.05
DAILY_ANALYSIS_HOUR_UTC = int(os.getenv("DAILY_ANALYSIS_HOUR_UTC", "0"))

# Logging
LOG_FILE = os.getenv("LOG_FILE", "football_monitor.log")
ERROR_LOG_FILE = os.getenv("ERROR_LOG_FILE", "errors.log")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# Error notifications
ERROR_ALERT_THRESHOLD = 3  # Alert after 3 occurrences
ERROR_ALERT_COOLDOWN = 3600  # 1 hour between identical error alerts
