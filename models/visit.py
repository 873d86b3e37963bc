"""
Visit Model

Append-only record of one tracked HTTP visit.
"""

from sqlalchemy import Column, DateTime, Index, Integer, String, Text

from core.database import Base
from models.base import format_local_datetime, local_now

DEFAULT_USER_AGENT = "unknown browser"
DEFAULT_REFERER = "direct access"


class Visit(Base):
    """
    One recorded visit.

    Attributes:
        id: Auto-increment visit identifier
        ip_address: Resolved client IP (IPv6 max length is 45 chars)
        user_agent: Browser/user agent string
        referer: Where the visitor came from
        visit_time: Server-local time of the visit
        screen_resolution: Reported screen size (e.g., "1920x1080")
        language: Reported browser language (e.g., "en-US")
    """

    __tablename__ = "visits"

    id = Column(Integer, primary_key=True, autoincrement=True)
    ip_address = Column(String(45), nullable=False)
    user_agent = Column(Text, nullable=True)
    referer = Column(String(500), nullable=True)
    visit_time = Column(DateTime, nullable=False, default=local_now)
    screen_resolution = Column(String(20), nullable=True)
    language = Column(String(10), nullable=True)

    __table_args__ = (
        Index("ix_visits_ip_address", "ip_address"),
        Index("ix_visits_visit_time", "visit_time"),
        {
            "mysql_engine": "InnoDB",
            "mysql_charset": "utf8mb4",
            "mysql_collate": "utf8mb4_unicode_ci",
            "sqlite_autoincrement": True,
        },
    )

    def __repr__(self):
        return f"<Visit(id={self.id}, ip_address={self.ip_address}, visit_time={self.visit_time})>"

    def to_dict(self):
        """Convert visit to dictionary."""
        return {
            "id": self.id,
            "ip_address": self.ip_address,
            "user_agent": self.user_agent,
            "referer": self.referer,
            "visit_time": format_local_datetime(self.visit_time),
            "screen_resolution": self.screen_resolution,
            "language": self.language,
        }
