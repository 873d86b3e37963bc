"""
Pytest Configuration and Fixtures

Provides shared test fixtures for all tests.
"""

import pytest
from datetime import datetime
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session
from sqlalchemy.pool import StaticPool
import os
import sys

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from api.main import create_app
from core.config import Settings
from core.database import Base, Database, get_db
from models.visit import Visit
from services.visit_service import VisitService
import models  # noqa: F401

ADMIN_PASSWORD = "test-admin-secret"


@pytest.fixture(scope="function")
def settings() -> Settings:
    """Settings isolated from the environment and .env file."""
    return Settings(
        _env_file=None,
        DATABASE_URL="sqlite://",
        ADMIN_PASSWORD=ADMIN_PASSWORD,
        ENVIRONMENT="test",
        DEBUG=False,
        LOG_FILE="",
        EXIT_ON_UNCAUGHT_ERROR=False,
    )


@pytest.fixture(scope="function")
def database():
    """Fresh in-memory database for each test."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    database = Database(engine=engine)
    Base.metadata.create_all(bind=engine)
    try:
        yield database
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture(scope="function")
def db(database: Database):
    """Database session shared by the test and the API."""
    session = database.SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(scope="function")
def app(settings: Settings, database: Database) -> FastAPI:
    return create_app(settings=settings, database=database)


@pytest.fixture(scope="function")
def client(app: FastAPI, db: Session):
    """Create a test client with database override."""
    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture(scope="function")
def record_visit(db: Session):
    """Factory recording a visit through the service."""
    def _record(ip_address: str = "1.2.3.4", **kwargs) -> Visit:
        return VisitService.record_visit(db, ip_address, **kwargs)

    return _record


@pytest.fixture(scope="function")
def add_visit(db: Session):
    """Factory inserting a raw visit row with a chosen visit_time."""
    def _add(ip_address: str, visit_time: datetime) -> Visit:
        visit = Visit(
            ip_address=ip_address,
            user_agent="pytest",
            referer="direct access",
            visit_time=visit_time,
        )
        db.add(visit)
        db.commit()
        db.refresh(visit)
        return visit

    return _add
