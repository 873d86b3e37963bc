"""
Admin Routes

Destructive maintenance operations, guarded by the admin-password header.
"""

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from api.dependencies import get_app_settings, server_error, verify_admin_password
from core.config import Settings
from core.database import get_db
from core.logger import get_logger
from models.base import utc_timestamp
from services.purge_service import PurgeService, VisitIdResetError

router = APIRouter()
logger = get_logger(__name__)


@router.delete("/logs")
def purge_logs(
    _: bool = Depends(verify_admin_password),
    settings: Settings = Depends(get_app_settings),
    db: Session = Depends(get_db),
):
    """
    Delete all visits and IP statistics and restart visit ids at 1.

    **Headers**:
    - admin-password: Shared admin secret (ADMIN_PASSWORD)

    **Response 200**: Everything deleted
    **Response 403**: Missing or wrong admin password
    **Response 500**: Purge failed, or data deleted but ids not restarted
    """
    try:
        deleted = PurgeService.purge_all(db)
    except VisitIdResetError:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={
                "error": "Visit id reset failed",
                "message": "All visit logs were deleted, but visit ids could not be restarted at 1",
            },
        )
    except SQLAlchemyError as e:
        logger.error(f"Error purging visit logs: {str(e)}", exc_info=True)
        raise server_error("Failed to purge visit logs", e, settings)

    logger.warning(f"Administrator purged all visit logs ({deleted} visits)")

    return {
        "success": True,
        "message": "All visit logs have been deleted",
        "timestamp": utc_timestamp(),
    }
