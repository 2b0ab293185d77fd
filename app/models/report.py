"""Report model for moderator review of confessions"""

import uuid
from datetime import datetime
from enum import Enum as PyEnum

from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, String, Uuid
from sqlalchemy.orm import relationship

from app.db.database import Base


class ReportReason(str, PyEnum):
    SPAM = "SPAM"
    HARASSMENT = "HARASSMENT"
    HATE_SPEECH = "HATE_SPEECH"
    INAPPROPRIATE_CONTENT = "INAPPROPRIATE_CONTENT"
    OTHER = "OTHER"


class ReportStatus(str, PyEnum):
    PENDING = "PENDING"
    REVIEWED = "REVIEWED"
    DISMISSED = "DISMISSED"


class Report(Base):
    """A viewer's flag against a confession"""

    __tablename__ = "reports"
    __table_args__ = (
        Index("ix_reports_confession_reporter_status", "confession_id", "reporter_id", "status"),
    )

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    confession_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("confessions.id", ondelete="CASCADE"),
        nullable=False,
    )
    reporter_id = Column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    reason = Column(String(30), nullable=False)
    description = Column(String(500), nullable=True)
    status = Column(String(20), default=ReportStatus.PENDING.value, nullable=False, index=True)
    reviewed_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    reviewed_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    # Relationships
    confession = relationship("Confession", back_populates="reports")
    reporter = relationship("User", back_populates="reports", foreign_keys=[reporter_id])
    reviewer = relationship("User", foreign_keys=[reviewed_by])

    def __repr__(self):
        return f"<Report(id={self.id}, status='{self.status}', reason='{self.reason}')>"
