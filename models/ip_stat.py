"""
IP Statistics Model

Running per-IP aggregate, kept in step with the visits table.
"""

from sqlalchemy import Column, DateTime, Integer, String

from core.database import Base
from models.base import format_local_datetime, local_now


class IPStat(Base):
    """
    Visit counter for one distinct IP address.

    visit_count always equals the number of Visit rows for ip_address.
    """

    __tablename__ = "ip_stats"

    ip_address = Column(String(45), primary_key=True)
    visit_count = Column(Integer, nullable=False, default=1)
    first_visit = Column(DateTime, nullable=False, default=local_now)
    last_visit = Column(DateTime, nullable=False, default=local_now)

    __table_args__ = {
        "mysql_engine": "InnoDB",
        "mysql_charset": "utf8mb4",
        "mysql_collate": "utf8mb4_unicode_ci",
    }

    def __repr__(self):
        return f"<IPStat(ip_address={self.ip_address}, visit_count={self.visit_count})>"

    def to_dict(self):
        """Convert IP statistics to dictionary."""
        return {
            "ip_address": self.ip_address,
            "visit_count": self.visit_count,
            "first_visit": format_local_datetime(self.first_visit),
            "last_visit": format_local_datetime(self.last_visit),
        }
