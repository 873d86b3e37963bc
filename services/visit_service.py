"""
Visit Service

Records visits and keeps the per-IP aggregate in step with them.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy.dialects.mysql import insert as mysql_insert
from sqlalchemy.dialects.postgresql import insert as postgresql_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.orm import Session

from core.client_ip import MAX_IP_LENGTH
from models.base import local_now
from models.ip_stat import IPStat
from models.visit import DEFAULT_REFERER, DEFAULT_USER_AGENT, Visit
from core.logger import get_logger

logger = get_logger(__name__)


def _clip(value: Optional[str], length: int) -> Optional[str]:
    """Trim a value to fit a column; empty strings become None."""
    if not value:
        return None
    return value[:length]


class VisitService:
    """Service for recording visits."""

    @staticmethod
    def record_visit(
        db: Session,
        ip_address: str,
        user_agent: Optional[str] = None,
        referer: Optional[str] = None,
        screen_resolution: Optional[str] = None,
        language: Optional[str] = None,
    ) -> Visit:
        """
        Insert a visit and bump the visitor's IP statistics.

        Both writes happen in one transaction, so ip_stats.visit_count
        always matches the number of visits for that IP.

        Args:
            db: Database session
            ip_address: Resolved client IP
            user_agent: User-Agent header (defaults to "unknown browser")
            referer: Referer reported by the page (defaults to "direct access")
            screen_resolution: Reported screen size
            language: Reported browser language

        Returns:
            Visit: The stored visit (with its generated id)

        Raises:
            SQLAlchemyError: If either write fails (nothing is kept)
        """
        now = local_now()
        ip_address = ip_address[:MAX_IP_LENGTH]

        visit = Visit(
            ip_address=ip_address,
            user_agent=user_agent or DEFAULT_USER_AGENT,
            referer=_clip(referer, 500) or DEFAULT_REFERER,
            visit_time=now,
            screen_resolution=_clip(screen_resolution, 20),
            language=_clip(language, 10),
        )

        try:
            db.add(visit)
            db.flush()
            VisitService._upsert_ip_stat(db, ip_address, now)
            db.commit()
        except Exception:
            db.rollback()
            raise

        db.refresh(visit)
        logger.debug(
            f"Visit recorded: {ip_address} - {visit.user_agent[:50]}",
            extra={"visit_id": visit.id, "ip_address": ip_address},
        )
        return visit

    @staticmethod
    def _upsert_ip_stat(db: Session, ip_address: str, now: datetime) -> None:
        """
        Insert the IP with count 1, or increment its count and last_visit.

        Uses the dialect's native upsert where available.
        """
        dialect = db.get_bind().dialect.name
        values = {
            "ip_address": ip_address,
            "visit_count": 1,
            "first_visit": now,
            "last_visit": now,
        }

        if dialect == "mysql":
            stmt = mysql_insert(IPStat).values(**values)
            stmt = stmt.on_duplicate_key_update(
                visit_count=IPStat.visit_count + 1,
                last_visit=now,
            )
            db.execute(stmt)
            return

        if dialect in ("postgresql", "sqlite"):
            insert = postgresql_insert if dialect == "postgresql" else sqlite_insert
            stmt = insert(IPStat).values(**values)
            stmt = stmt.on_conflict_do_update(
                index_elements=[IPStat.ip_address],
                set_={"visit_count": IPStat.visit_count + 1, "last_visit": now},
            )
            db.execute(stmt)
            return

        # Other backends: locked read-modify-write
        stat = db.get(IPStat, ip_address, with_for_update=True)
        if stat is None:
            db.add(IPStat(**values))
        else:
            stat.visit_count = stat.visit_count + 1
            stat.last_visit = now
        db.flush()
