"""User model and role hierarchy"""

from datetime import datetime
from enum import Enum as PyEnum

from sqlalchemy import Boolean, Column, DateTime, Integer, String
from sqlalchemy.orm import relationship

from app.db.database import Base


class Role(str, PyEnum):
    """Account roles, totally ordered USER < ADMIN < OWNER."""

    USER = "USER"
    ADMIN = "ADMIN"
    OWNER = "OWNER"

    @property
    def level(self) -> int:
        return ROLE_LEVELS[self]

    @classmethod
    def parse(cls, value: "str | Role") -> "Role":
        return value if isinstance(value, Role) else cls(str(value).upper())


ROLE_LEVELS = {
    Role.USER: 0,
    Role.ADMIN: 1,
    Role.OWNER: 2,
}


class User(Base):
    """Registered account that can receive confessions"""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String(30), unique=True, nullable=False, index=True)  # always lowercase
    password_hash = Column(String(255), nullable=False)
    role = Column(String(10), default=Role.USER.value, nullable=False)
    is_banned = Column(Boolean, default=False, nullable=False)
    bio = Column(String(500), nullable=True)
    image = Column(String(500), nullable=True)  # http(s) URL only
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False
    )

    # Relationships
    received_confessions = relationship(
        "Confession",
        back_populates="receiver",
        foreign_keys="Confession.receiver_id",
        passive_deletes=True,
    )
    sent_confessions = relationship(
        "Confession",
        back_populates="sender",
        foreign_keys="Confession.sender_id",
        passive_deletes=True,
    )
    reports = relationship(
        "Report",
        back_populates="reporter",
        foreign_keys="Report.reporter_id",
        passive_deletes=True,
    )

    def __repr__(self):
        return f"<User(id={self.id}, username='{self.username}', role='{self.role}')>"
