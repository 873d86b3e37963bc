"""
Statistics Routes

Read-only endpoints: summary numbers, visit logs and per-IP counts.
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from api.dependencies import get_app_settings, server_error
from core.client_ip import get_client_ip
from core.config import Settings
from core.database import get_db
from core.logger import get_logger
from services.stats_service import (
    DEFAULT_IP_STATS_LIMIT,
    DEFAULT_LOGS_LIMIT,
    MAX_PAGE_LIMIT,
    StatsService,
)

router = APIRouter()
logger = get_logger(__name__)


@router.get("/stats")
def get_stats(
    client_ip: str = Depends(get_client_ip),
    settings: Settings = Depends(get_app_settings),
    db: Session = Depends(get_db),
):
    """
    Get visit statistics.

    Returns total visits, unique IPs, the caller's own visit count and
    today's visits (server-local calendar day).
    """
    try:
        return StatsService.get_summary(db, client_ip)
    except SQLAlchemyError as e:
        logger.error(f"Error getting statistics: {str(e)}", exc_info=True)
        raise server_error("Failed to get statistics", e, settings)


@router.get("/logs")
def get_logs(
    limit: int = Query(DEFAULT_LOGS_LIMIT, ge=1, le=MAX_PAGE_LIMIT, description="Maximum visits to return"),
    offset: int = Query(0, ge=0, description="Number of most recent visits to skip"),
    settings: Settings = Depends(get_app_settings),
    db: Session = Depends(get_db),
):
    """
    Get visit logs, newest first.

    **Response 422**: limit outside 1..1000 or negative offset
    """
    try:
        visits = StatsService.get_logs(db, limit=limit, offset=offset)
    except SQLAlchemyError as e:
        logger.error(f"Error getting visit logs: {str(e)}", exc_info=True)
        raise server_error("Failed to get visit logs", e, settings)

    return [visit.to_dict() for visit in visits]


@router.get("/ip-stats")
def get_ip_stats(
    limit: int = Query(DEFAULT_IP_STATS_LIMIT, ge=1, le=MAX_PAGE_LIMIT, description="Maximum IPs to return"),
    settings: Settings = Depends(get_app_settings),
    db: Session = Depends(get_db),
):
    """Get per-IP visit counts, most active first."""
    try:
        stats = StatsService.get_ip_stats(db, limit=limit)
    except SQLAlchemyError as e:
        logger.error(f"Error getting IP statistics: {str(e)}", exc_info=True)
        raise server_error("Failed to get IP statistics", e, settings)

    return [stat.to_dict() for stat in stats]
