"""
Purge Service

Destructive reset of the visit store (admin only).
"""

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from models.ip_stat import IPStat
from models.visit import Visit
from core.logger import get_logger

logger = get_logger(__name__)


class VisitIdResetError(Exception):
    """Visits were deleted but the id sequence could not be restarted."""


class PurgeService:
    """Service for wiping all visit data."""

    @staticmethod
    def purge_all(db: Session) -> int:
        """
        Delete every visit and IP statistic, then restart visit ids at 1.

        The two deletes share one transaction. The id reset runs after the
        commit because MySQL's ALTER TABLE commits implicitly.

        Args:
            db: Database session

        Returns:
            int: Number of visits deleted

        Raises:
            SQLAlchemyError: If the deletes fail (nothing is deleted)
            VisitIdResetError: If the deletes committed but the id reset failed
        """
        try:
            deleted_visits = db.query(Visit).delete()
            deleted_ips = db.query(IPStat).delete()
            db.commit()
        except Exception:
            db.rollback()
            raise

        try:
            PurgeService._reset_visit_ids(db)
        except SQLAlchemyError as e:
            logger.error(
                f"Deleted {deleted_visits} visits and {deleted_ips} IP statistics "
                f"but failed to reset visit ids: {str(e)}",
                exc_info=True,
            )
            raise VisitIdResetError(str(e)) from e

        logger.info(f"Deleted {deleted_visits} visits and {deleted_ips} IP statistics")
        return deleted_visits

    @staticmethod
    def _reset_visit_ids(db: Session) -> None:
        """Restart the visits id sequence at 1."""
        dialect = db.get_bind().dialect.name

        if dialect == "mysql":
            statement = "ALTER TABLE visits AUTO_INCREMENT = 1"
        elif dialect == "postgresql":
            statement = "ALTER SEQUENCE visits_id_seq RESTART WITH 1"
        elif dialect == "sqlite":
            statement = "DELETE FROM sqlite_sequence WHERE name = 'visits'"
        else:
            logger.warning(f"Visit id reset not supported for dialect {dialect}")
            return

        try:
            db.execute(text(statement))
            db.commit()
        except Exception:
            db.rollback()
            raise
