"""
Database Models Package

Contains all SQLAlchemy models for the application.
"""

from models.visit import Visit, DEFAULT_USER_AGENT, DEFAULT_REFERER
from models.ip_stat import IPStat
from models.base import local_now, format_local_datetime, utc_timestamp

__all__ = [
    "Visit",
    "IPStat",
    "DEFAULT_USER_AGENT",
    "DEFAULT_REFERER",
    "local_now",
    "format_local_datetime",
    "utc_timestamp",
]
