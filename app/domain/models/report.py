"""Report domain model — maps to the 'reports' table."""

import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, String, Text, Float, DateTime, ForeignKey, JSON
from sqlalchemy.orm import relationship

from app.infrastructure.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)

TYPE_RED_FLAG = "red-flag"
TYPE_INTERVENTION = "intervention"
REPORT_TYPES = (TYPE_RED_FLAG, TYPE_INTERVENTION)

STATUS_DRAFT = "draft"
STATUS_UNDER_INVESTIGATION = "under-investigation"
STATUS_REJECTED = "rejected"
STATUS_RESOLVED = "resolved"
REPORT_STATUSES = (STATUS_DRAFT, STATUS_UNDER_INVESTIGATION, STATUS_REJECTED, STATUS_RESOLVED)


class Report(Base):
    __tablename__ = "reports"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    type = Column(String(20), nullable=False, index=True)
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=False)
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)
    media = Column(JSON, nullable=False, default=list)
    status = Column(String(30), nullable=False, default=STATUS_DRAFT, index=True)
    # Python-side timestamps keep sub-second ordering on SQLite too
    created_at = Column(DateTime(timezone=True), default=_utcnow, index=True)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    owner = relationship("User")

    @property
    def location(self):
        if self.latitude is None or self.longitude is None:
            return None
        return {"lat": self.latitude, "lng": self.longitude}

    @property
    def is_draft(self) -> bool:
        return self.status == STATUS_DRAFT

    def __repr__(self):
        return f"<Report {self.id} [{self.status}] {self.title}>"
