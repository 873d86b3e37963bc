"""
Visit Recording Tests

Tests for the visit endpoint and the per-IP aggregate it maintains.
"""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from models.ip_stat import IPStat
from models.visit import DEFAULT_REFERER, DEFAULT_USER_AGENT, Visit
from services.visit_service import VisitService


def test_visit_with_empty_body(client: TestClient, db: Session):
    """Empty body from a client without proxy headers uses the peer address and defaults."""
    response = client.post("/api/visit", json={}, headers={"User-Agent": ""})

    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert data["visitId"] == 1
    assert data["ip"] == "testclient"
    assert data["userAgent"] == DEFAULT_USER_AGENT
    assert data["timestamp"].endswith("Z")

    visit = db.get(Visit, data["visitId"])
    assert visit.ip_address == "testclient"
    assert visit.user_agent == DEFAULT_USER_AGENT
    assert visit.referer == DEFAULT_REFERER
    assert visit.screen_resolution is None
    assert visit.language is None


def test_visit_without_body(client: TestClient):
    """A request with no body at all is accepted."""
    response = client.post("/api/visit")

    assert response.status_code == 200
    assert response.json()["success"] is True


def test_visit_stores_reported_fields(client: TestClient, db: Session):
    """Referer, screen resolution, language and user agent are stored."""
    response = client.post(
        "/api/visit",
        json={
            "referer": "https://example.com/page",
            "screenResolution": "1920x1080",
            "language": "en-US",
        },
        headers={"User-Agent": "Mozilla/5.0 (X11; Linux x86_64)", "X-Forwarded-For": "203.0.113.5"},
    )

    assert response.status_code == 200
    data = response.json()
    assert data["ip"] == "203.0.113.5"
    assert data["userAgent"] == "Mozilla/5.0 (X11; Linux x86_64)"

    visit = db.get(Visit, data["visitId"])
    assert visit.referer == "https://example.com/page"
    assert visit.screen_resolution == "1920x1080"
    assert visit.language == "en-US"


def test_visit_malformed_fields_defaulted(client: TestClient, db: Session):
    """Fields of the wrong type or too long are defaulted or trimmed, never rejected."""
    response = client.post(
        "/api/visit",
        json={
            "referer": 42,
            "screenResolution": "x" * 50,
            "language": ["en"],
            "unexpected": True,
        },
    )

    assert response.status_code == 200
    visit = db.get(Visit, response.json()["visitId"])
    assert visit.referer == DEFAULT_REFERER
    assert visit.screen_resolution == "x" * 20
    assert visit.language is None


def test_same_ip_visits_counted(client: TestClient, db: Session):
    """Two visits from 1.2.3.4 produce one IP row with visit_count 2."""
    headers = {"X-Forwarded-For": "1.2.3.4"}
    client.post("/api/visit", json={}, headers=headers)
    client.post("/api/visit", json={}, headers=headers)

    response = client.get("/api/ip-stats")
    assert response.status_code == 200
    rows = [row for row in response.json() if row["ip_address"] == "1.2.3.4"]
    assert len(rows) == 1
    assert rows[0]["visit_count"] == 2

    stats = client.get("/api/stats", headers=headers).json()
    assert stats["yourVisits"] == 2


def test_ip_stat_matches_visit_rows(db: Session, record_visit):
    """visit_count always equals the number of visits for the IP."""
    for _ in range(3):
        record_visit("10.0.0.1")
    record_visit("10.0.0.2")

    for ip in ("10.0.0.1", "10.0.0.2"):
        stat = db.get(IPStat, ip)
        count = db.query(Visit).filter(Visit.ip_address == ip).count()
        assert stat.visit_count == count


def test_first_visit_kept_last_visit_updated(db: Session, record_visit):
    first = record_visit("10.0.0.3")
    second = record_visit("10.0.0.3")

    stat = db.get(IPStat, "10.0.0.3")
    db.refresh(stat)
    assert stat.first_visit == first.visit_time
    assert stat.last_visit == second.visit_time


def test_failed_upsert_rolls_back_visit(db: Session, monkeypatch: pytest.MonkeyPatch):
    """If the IP upsert fails the visit insert is rolled back too."""
    def broken_upsert(db, ip_address, now):
        raise SQLAlchemyError("upsert failed")

    monkeypatch.setattr(VisitService, "_upsert_ip_stat", staticmethod(broken_upsert))

    with pytest.raises(SQLAlchemyError):
        VisitService.record_visit(db, "10.0.0.9")

    assert db.query(Visit).count() == 0
    assert db.query(IPStat).count() == 0


def test_visit_store_failure_returns_500(client: TestClient, monkeypatch: pytest.MonkeyPatch):
    def broken_record(*args, **kwargs):
        raise SQLAlchemyError("database is down")

    monkeypatch.setattr(VisitService, "record_visit", staticmethod(broken_record))

    response = client.post("/api/visit", json={})

    assert response.status_code == 500
    data = response.json()
    assert data["success"] is False
    assert data["message"] == "Failed to record visit"
    assert "error" not in data


def test_visit_plain_text_json_body(client: TestClient, db: Session):
    """Beacon-style bodies sent as text/plain are still read as JSON."""
    response = client.post(
        "/api/visit",
        content='{"referer": "https://example.com/beacon", "language": "fr-FR"}',
        headers={"Content-Type": "text/plain;charset=UTF-8"},
    )

    assert response.status_code == 200
    visit = db.get(Visit, response.json()["visitId"])
    assert visit.referer == "https://example.com/beacon"
    assert visit.language == "fr-FR"


@pytest.mark.parametrize(
    "body, content_type",
    [
        ("[]", "application/json"),
        ('["https://example.com"]', "application/json"),
        ("42", "application/json"),
        ("not json at all", "text/plain"),
        ("{broken", "application/json"),
    ],
)
def test_visit_non_object_body_uses_defaults(client: TestClient, db: Session, body: str, content_type: str):
    response = client.post("/api/visit", content=body, headers={"Content-Type": content_type})

    assert response.status_code == 200
    visit = db.get(Visit, response.json()["visitId"])
    assert visit.referer == DEFAULT_REFERER
    assert visit.screen_resolution is None
    assert visit.language is None


def test_overlong_ip_counted_and_reported_consistently(client: TestClient, db: Session):
    """An address longer than the column is cut the same way for storage and lookup."""
    headers = {"X-Forwarded-For": "a" * 60}

    first = client.post("/api/visit", json={}, headers=headers)
    second = client.post("/api/visit", json={}, headers=headers)
    stats = client.get("/api/stats", headers=headers).json()

    assert first.json()["ip"] == "a" * 45
    assert second.json()["ip"] == first.json()["ip"]
    assert stats["currentIP"] == first.json()["ip"]
    assert stats["yourVisits"] == 2
    assert db.get(IPStat, "a" * 45).visit_count == 2
