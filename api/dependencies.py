"""
API Dependencies

Shared dependencies and helpers for FastAPI routes.
"""

import secrets
from typing import Optional

from fastapi import Header, HTTPException, Request, status

from core.config import Settings
from core.logger import get_logger

logger = get_logger(__name__)


def get_app_settings(request: Request) -> Settings:
    """Dependency returning the settings the app was built with."""
    return request.app.state.settings


def verify_admin_password(
    request: Request,
    admin_password: Optional[str] = Header(None, alias="admin-password"),
) -> bool:
    """
    Verify the shared admin secret sent in the ``admin-password`` header.

    Raises:
        HTTPException: 403 if the header is missing or wrong
    """
    settings = get_app_settings(request)
    expected = settings.ADMIN_PASSWORD

    if not admin_password or not expected or not secrets.compare_digest(
        admin_password.encode("utf-8"), expected.encode("utf-8")
    ):
        client_ip = request.client.host if request.client else "unknown"
        logger.warning(f"Rejected admin request from {client_ip}: invalid admin password")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={
                "error": "Forbidden",
                "message": "Administrator privileges are required for this operation",
            },
        )

    return True


def server_error(error: str, exc: Exception, settings: Settings, **extra) -> HTTPException:
    """
    Build the 500 response raised when a store operation fails.

    The underlying error text is only exposed when DEBUG is enabled.
    """
    detail = {
        "error": error,
        "message": str(exc) if settings.DEBUG else "An error occurred",
    }
    detail.update(extra)
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=detail)
