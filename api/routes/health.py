"""
Health Routes

Liveness check including a database round trip.
"""

from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse

from models.base import utc_timestamp

router = APIRouter()


@router.get("/health")
def health_check(request: Request):
    """
    Health check endpoint to verify the API and its database.

    **Response 200**: Server and database are up
    **Response 500**: Database unreachable
    """
    database = request.app.state.database
    settings = request.app.state.settings

    if not database.ping():
        content = {
            "status": "error",
            "message": "Database connection failed",
        }
        if settings.DEBUG:
            content["error"] = f"Could not reach {database.url}"
        return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=content)

    return {
        "status": "ok",
        "message": "Server is running",
        "timestamp": utc_timestamp(),
        "database": "connected",
    }
