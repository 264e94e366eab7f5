"""
Centralized date/time utilities
All timestamps stored by the service are timezone-aware UTC
"""

from datetime import datetime, timezone


def get_current_datetime() -> datetime:
    """
    Get current datetime in UTC

    Returns:
        Current datetime object with UTC timezone
    """
    return datetime.now(timezone.utc)

