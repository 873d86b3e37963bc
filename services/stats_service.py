"""
Statistics Service

Read-only aggregate and log queries over visits and ip_stats.
"""

from typing import Any, Dict, List

from sqlalchemy import func
from sqlalchemy.orm import Session

from models.base import local_day_bounds, utc_timestamp
from models.ip_stat import IPStat
from models.visit import Visit

DEFAULT_LOGS_LIMIT = 20
DEFAULT_IP_STATS_LIMIT = 50
MAX_PAGE_LIMIT = 1000


class StatsService:
    """Service for visit statistics."""

    @staticmethod
    def get_summary(db: Session, caller_ip: str) -> Dict[str, Any]:
        """
        Get the headline numbers shown to a visitor.

        Args:
            db: Database session
            caller_ip: Resolved IP of the requesting client

        Returns:
            dict: totalVisits, uniqueIPs, yourVisits, todayVisits,
                  currentIP and updateTime
        """
        # Total visits
        total_visits = db.query(func.count(Visit.id)).scalar() or 0

        # Distinct visitor IPs
        unique_ips = db.query(func.count(func.distinct(Visit.ip_address))).scalar() or 0

        # Caller's own count (0 if never seen)
        your_visits = db.query(IPStat.visit_count).filter(
            IPStat.ip_address == caller_ip
        ).scalar() or 0

        # Visits during the current server-local day
        day_start, day_end = local_day_bounds()
        today_visits = db.query(func.count(Visit.id)).filter(
            Visit.visit_time >= day_start,
            Visit.visit_time < day_end,
        ).scalar() or 0

        return {
            "totalVisits": total_visits,
            "uniqueIPs": unique_ips,
            "yourVisits": your_visits,
            "todayVisits": today_visits,
            "currentIP": caller_ip,
            "updateTime": utc_timestamp(),
        }

    @staticmethod
    def get_logs(db: Session, limit: int = DEFAULT_LOGS_LIMIT, offset: int = 0) -> List[Visit]:
        """
        Get a page of visits, newest first.

        Args:
            db: Database session
            limit: Maximum number of visits to return
            offset: Number of most recent visits to skip

        Returns:
            List[Visit]: Visits ordered by visit_time descending
        """
        return (
            db.query(Visit)
            .order_by(Visit.visit_time.desc(), Visit.id.desc())
            .limit(limit)
            .offset(offset)
            .all()
        )

    @staticmethod
    def get_ip_stats(db: Session, limit: int = DEFAULT_IP_STATS_LIMIT) -> List[IPStat]:
        """
        Get the most active IPs.

        Ordered by visit_count, then by most recent visit.
        """
        return (
            db.query(IPStat)
            .order_by(IPStat.visit_count.desc(), IPStat.last_visit.desc())
            .limit(limit)
            .all()
        )
