"""
Visit Routes

Records page visits reported by the frontend.
"""

import json
from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException, Request, status
from pydantic import BaseModel, ConfigDict, Field, field_validator
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from api.dependencies import get_app_settings
from core.client_ip import get_client_ip
from core.config import Settings
from core.database import get_db
from core.logger import get_logger
from models.base import utc_timestamp
from services.visit_service import VisitService

router = APIRouter()
logger = get_logger(__name__)


class TrackVisitRequest(BaseModel):
    """
    Request model for recording a visit.

    Every field is optional; values of the wrong type are dropped rather
    than rejected.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    referer: Optional[str] = Field(None, description="Page the visitor came from")
    screen_resolution: Optional[str] = Field(None, alias="screenResolution", description="e.g. '1920x1080'")
    language: Optional[str] = Field(None, description="Browser language, e.g. 'en-US'")

    @field_validator("referer", "screen_resolution", "language", mode="before")
    @classmethod
    def drop_non_strings(cls, value: Any) -> Optional[str]:
        return value if isinstance(value, str) else None


async def read_visit_data(request: Request) -> TrackVisitRequest:
    """
    Parse the visit body without ever rejecting it.

    The Content-Type is ignored (navigator.sendBeacon posts text/plain).
    Anything that is not a JSON object counts as an empty body.
    """
    raw = await request.body()
    try:
        payload = json.loads(raw) if raw else {}
    except ValueError:
        payload = {}

    if not isinstance(payload, dict):
        payload = {}

    return TrackVisitRequest.model_validate(payload)


@router.post("/visit")
def track_visit(
    request: Request,
    visit_data: TrackVisitRequest = Depends(read_visit_data),
    client_ip: str = Depends(get_client_ip),
    settings: Settings = Depends(get_app_settings),
    db: Session = Depends(get_db),
):
    """
    Record a visit.

    Captures the client IP (proxy-aware), the User-Agent header and the
    optional referer, screen resolution and language sent in the body.

    **Response 200**: Visit recorded
    **Response 500**: Database write failed
    """

    try:
        visit = VisitService.record_visit(
            db,
            ip_address=client_ip,
            user_agent=request.headers.get("user-agent"),
            referer=visit_data.referer,
            screen_resolution=visit_data.screen_resolution,
            language=visit_data.language,
        )
    except SQLAlchemyError as e:
        logger.error(f"Error recording visit from {client_ip}: {str(e)}", exc_info=True)
        detail = {"success": False, "message": "Failed to record visit"}
        if settings.DEBUG:
            detail["error"] = str(e)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=detail)

    logger.info(f"New visit recorded: {visit.ip_address} (id={visit.id})")

    return {
        "success": True,
        "message": "Visit recorded successfully",
        "visitId": visit.id,
        "ip": visit.ip_address,
        "userAgent": visit.user_agent,
        "timestamp": utc_timestamp(),
    }
