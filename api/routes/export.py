"""
Export Routes

Bulk download of all visit data.
"""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from api.dependencies import get_app_settings, server_error
from core.config import Settings
from core.database import get_db
from core.logger import get_logger
from services.export_service import ExportService

router = APIRouter()
logger = get_logger(__name__)


@router.get("/export")
def export_data(
    settings: Settings = Depends(get_app_settings),
    db: Session = Depends(get_db),
):
    """
    Export every visit and IP statistic as a JSON attachment.

    No pagination: both tables are read in full.
    """
    try:
        export = ExportService.build_export(db)
    except SQLAlchemyError as e:
        logger.error(f"Error exporting data: {str(e)}", exc_info=True)
        raise server_error("Failed to export data", e, settings)

    return JSONResponse(
        content=export,
        headers={"Content-Disposition": f"attachment; filename={ExportService.export_filename()}"},
    )
