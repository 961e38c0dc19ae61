"""
Error taxonomy for the monitor

Statistics problems are recovered locally; feed, delivery and persistence
errors are transient and handled per item by the batch loops.
"""


class MonitorError(Exception):
    """Base class for all monitor errors"""


class InsufficientDataError(MonitorError):
    """Statistics payload is missing or does not contain both teams"""


class FeedError(MonitorError):
    """Match data provider failed or returned nothing usable"""


class DeliveryError(MonitorError):
    """Notification could not be delivered"""


class PersistenceError(MonitorError):
    """Underlying store is unreachable or rejected the statement"""
