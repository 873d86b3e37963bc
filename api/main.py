"""
Visit Tracker API - Main Application

FastAPI application entry point. Records visits, serves statistics,
logs and exports, and exposes an admin purge endpoint.

Port: 3000 (PORT)
"""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from core.config import Settings, get_settings
from core.database import Database
from core.logger import get_logger, install_excepthook, setup_logging
from models.base import utc_timestamp
from api.routes import admin, export, health, stats, visits

# Initialize centralized logging
setup_logging()
logger = get_logger(__name__)

AVAILABLE_ENDPOINTS = [
    "GET /api/health",
    "GET /api/stats",
    "GET /api/logs",
    "POST /api/visit",
    "GET /api/ip-stats",
    "GET /api/export",
    "DELETE /api/logs",
]


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifecycle.

    Startup: validate configuration, install the crash hook
    (EXIT_ON_UNCAUGHT_ERROR), open the connection pool, verify the
    database answers (abort otherwise) and create missing tables.
    Any ASGI server running this app gets the same startup checks.
    Shutdown: close the pool if this app opened it.
    """
    settings: Settings = app.state.settings

    # SECURITY: Fail fast on unsafe configuration
    if settings.ENVIRONMENT == "production" and settings.DEBUG:
        logger.critical("SECURITY ERROR: DEBUG=True in production environment!")
        raise RuntimeError("DEBUG must be False in production. Check your environment variables.")

    if not settings.ADMIN_PASSWORD:
        logger.critical("ADMIN_PASSWORD is not set; refusing to start without an admin secret")
        raise RuntimeError("ADMIN_PASSWORD must be configured")

    if settings.EXIT_ON_UNCAUGHT_ERROR:
        install_excepthook()

    owns_database = app.state.database is None
    if owns_database:
        app.state.database = Database.from_settings(settings)
    database: Database = app.state.database

    logger.info(f"Starting {settings.APP_NAME} API v{settings.APP_VERSION}")
    logger.info(f"Environment: {settings.ENVIRONMENT}")
    logger.info(f"Database: {database.url}")

    if not database.ping():
        logger.critical("Cannot connect to the database. Check that it is running and that DB_* settings are correct.")
        if owns_database:
            database.dispose()
        raise RuntimeError("Database connection failed")

    logger.info("Database connection established")
    database.create_tables()

    try:
        yield
    finally:
        logger.info(f"Shutting down {settings.APP_NAME} API")
        if owns_database:
            database.dispose()


def create_app(settings: Optional[Settings] = None, database: Optional[Database] = None) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        settings: Configuration (default: loaded from the environment)
        database: Pre-built Database to use instead of opening one from
                  settings at startup; the caller keeps ownership of it

    Returns:
        FastAPI: Configured application
    """
    settings = settings or get_settings()

    app = FastAPI(
        title=settings.APP_NAME,
        description="Visit tracking backend: visit logs, IP statistics and data export",
        version=settings.APP_VERSION,
        lifespan=lifespan,
        docs_url="/docs" if settings.DEBUG else None,
        redoc_url="/redoc" if settings.DEBUG else None,
        openapi_url="/openapi.json" if settings.DEBUG else None,
    )
    app.state.settings = settings
    app.state.database = database

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origin_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/", tags=["Root"])
    def root():
        """API information."""
        return {
            "message": f"Welcome to {settings.APP_NAME} API",
            "version": settings.APP_VERSION,
            "endpoints": AVAILABLE_ENDPOINTS,
        }

    app.include_router(health.router, prefix="/api", tags=["Health"])
    app.include_router(visits.router, prefix="/api", tags=["Visits"])
    app.include_router(stats.router, prefix="/api", tags=["Statistics"])
    app.include_router(export.router, prefix="/api", tags=["Export"])
    app.include_router(admin.router, prefix="/api", tags=["Admin"])

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        """
        Render HTTP errors.

        404s list the available endpoints; dict details are returned as
        the response body as-is.
        """
        if exc.status_code == 404:
            return JSONResponse(
                status_code=404,
                content={
                    "error": "Not Found",
                    "message": f"Path {request.url.path} not found",
                    "availableEndpoints": AVAILABLE_ENDPOINTS,
                },
            )
        content = exc.detail if isinstance(exc.detail, dict) else {"detail": exc.detail}
        return JSONResponse(
            status_code=exc.status_code,
            content=content,
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """Global exception handler for unhandled errors."""
        logger.error(f"Unhandled exception on {request.method} {request.url.path}: {exc}", exc_info=True)
        return JSONResponse(
            status_code=500,
            content={
                "error": "Internal server error",
                "message": str(exc) if settings.DEBUG else "An error occurred",
                "timestamp": utc_timestamp(),
            },
        )

    return app


app = create_app()


def main() -> None:
    """Run the API under uvicorn."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "api.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
    )


if __name__ == "__main__":
    main()
