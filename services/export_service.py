"""
Export Service

Full dump of both tables with summary metadata.
"""

from typing import Any, Dict

from sqlalchemy.orm import Session

from models.base import local_now, utc_timestamp
from models.ip_stat import IPStat
from models.visit import Visit
from core.logger import get_logger

logger = get_logger(__name__)


class ExportService:
    """Service for exporting visit data."""

    @staticmethod
    def build_export(db: Session) -> Dict[str, Any]:
        """
        Dump every visit and every IP statistic.

        Visits are ordered newest first, so the date range runs from the
        last element (earliest) to the first (latest). Both ends are None
        when there are no visits.

        Args:
            db: Database session

        Returns:
            dict: exportTime, totalRecords, visits, ipStats and summary
        """
        visits = [
            visit.to_dict()
            for visit in db.query(Visit).order_by(Visit.visit_time.desc(), Visit.id.desc()).all()
        ]
        ip_stats = [
            stat.to_dict()
            for stat in db.query(IPStat).order_by(IPStat.visit_count.desc()).all()
        ]

        logger.info(f"Data export built: {len(visits)} visits, {len(ip_stats)} IPs")

        return {
            "exportTime": utc_timestamp(),
            "totalRecords": len(visits),
            "visits": visits,
            "ipStats": ip_stats,
            "summary": {
                "totalVisits": len(visits),
                "uniqueIPs": len(ip_stats),
                "dateRange": {
                    "earliest": visits[-1]["visit_time"] if visits else None,
                    "latest": visits[0]["visit_time"] if visits else None,
                },
            },
        }

    @staticmethod
    def export_filename() -> str:
        """Attachment filename for today's export (server-local date)."""
        return f"visit_data_{local_now().date().isoformat()}.json"
