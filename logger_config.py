"""
Logging Configuration for 24/7 Operation
Console output plus rotating log files, and throttled error notifications
"""

import logging
import logging.handlers
import os
from datetime import datetime
from typing import Dict, Optional
import config
from errors import DeliveryError


def setup_logging(log_file: Optional[str] = None, error_log_file: Optional[str] = None,
                  level: Optional[str] = None):
    """
    Configure logging with both file and console handlers
    Includes rotating file handlers to prevent excessive log growth
    """
    log_file = log_file or config.LOG_FILE
    error_log_file = error_log_file or config.ERROR_LOG_FILE
    level = getattr(logging, (level or config.LOG_LEVEL).upper(), logging.INFO)

    # Create logs directory if it doesn't exist
    for path in (log_file, error_log_file):
        log_dir = os.path.dirname(path)
        if log_dir and not os.path.exists(log_dir):
            os.makedirs(log_dir)

    # Root logger configuration
    logger = logging.getLogger()
    logger.setLevel(logging.DEBUG)

    # Clear any existing handlers
    logger.handlers = []

    formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    # Console handler - for immediate feedback
    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    # Max 10MB per file, keep 5 backup files
    file_handler = logging.handlers.RotatingFileHandler(
        log_file,
        maxBytes=10*1024*1024,  # 10MB
        backupCount=5,
        encoding='utf-8'
    )
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(formatter)
    logger.addHandler(file_handler)

    # Error-specific file handler
    error_handler = logging.handlers.RotatingFileHandler(
        error_log_file,
        maxBytes=5*1024*1024,  # 5MB
        backupCount=3,
        encoding='utf-8'
    )
    error_handler.setLevel(logging.ERROR)
    error_handler.setFormatter(formatter)
    logger.addHandler(error_handler)

    # urllib3 is chatty at DEBUG
    logging.getLogger("urllib3").setLevel(logging.WARNING)

    logger.info("=" * 80)
    logger.info(f"Logging initialized at {datetime.now().isoformat()}")
    logger.info("=" * 80)

    return logger


class ErrorMonitor:
    """
    Count recurring errors and forward them to the notifier
    Prevents alert spam while ensuring persistent failures are reported
    """

    def __init__(self, notifier, alert_threshold: int = config.ERROR_ALERT_THRESHOLD,
                 alert_cooldown: int = config.ERROR_ALERT_COOLDOWN, logger=None):
        self.notifier = notifier
        self.error_counts: Dict[str, int] = {}
        self.last_alert_time: Dict[str, datetime] = {}
        self.logger = logger or logging.getLogger(__name__)
        self.alert_threshold = alert_threshold
        self.alert_cooldown = alert_cooldown

    def log_error(self, error_type: str, error_message: str, send_alert: bool = True) -> bool:
        """
        Log error and optionally send a Telegram alert

        Args:
            error_type: Category of error (Feed, Delivery, Persistence, ...)
            error_message: Detailed error description
            send_alert: Whether to send Telegram notification

        Returns:
            True if a notification was dispatched
        """
        self.logger.error(f"{error_type}: {error_message}")

        if not send_alert:
            return False

        error_key = f"{error_type}:{error_message}"
        self.error_counts[error_key] = self.error_counts.get(error_key, 0) + 1

        if self.error_counts[error_key] < self.alert_threshold:
            return False

        now = datetime.now()
        last = self.last_alert_time.get(error_key)
        if last is not None and (now - last).total_seconds() <= self.alert_cooldown:
            return False

        try:
            self.notifier.send_error_notification(error_type, error_message)
        except DeliveryError as e:
            self.logger.warning(f"Could not deliver error notification: {e}")
            return False

        self.last_alert_time[error_key] = now
        self.error_counts[error_key] = 0
        return True

    def log_warning(self, warning_type: str, warning_message: str):
        """Log warning without sending alert"""
        self.logger.warning(f"{warning_type}: {warning_message}")

    def get_error_summary(self) -> dict:
        """Get summary of recent errors"""
        return {
            'total_error_types': len(self.error_counts),
            'error_counts': dict(self.error_counts),
            'recent_alerts': len(self.last_alert_time)
        }
