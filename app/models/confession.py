"""Confession model: a message sent to a receiving user"""

import uuid
from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Index, Integer, String, Text, Uuid
from sqlalchemy.orm import relationship

from app.db.database import Base


class Confession(Base):
    """A confession addressed to ``receiver``; ``sender`` is null when anonymous"""

    __tablename__ = "confessions"
    __table_args__ = (
        Index("ix_confessions_receiver_feed", "receiver_id", "is_pinned", "created_at"),
    )

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    content = Column(String(500), nullable=False)
    sender_id = Column(
        Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True
    )
    receiver_id = Column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    is_anonymous = Column(Boolean, default=True, nullable=False)
    is_pinned = Column(Boolean, default=False, nullable=False)

    # One reply per confession, overwritten on each reply
    reply = Column(Text, nullable=True)
    reply_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    edited_at = Column(DateTime, nullable=True)

    # Relationships
    sender = relationship("User", back_populates="sent_confessions", foreign_keys=[sender_id])
    receiver = relationship("User", back_populates="received_confessions", foreign_keys=[receiver_id])
    reports = relationship("Report", back_populates="confession", passive_deletes=True)

    def __repr__(self):
        return f"<Confession(id={self.id}, receiver_id={self.receiver_id}, pinned={self.is_pinned})>"
