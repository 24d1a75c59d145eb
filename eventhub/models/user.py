"""
User model for EventHub.
"""

from sqlalchemy import Column, Integer, String, Text, DateTime, Boolean

from .base import Base, utcnow


class User(Base):
    """
    A registered community member.
    The password hash never leaves the identity store; API responses use
    the ``UserProfile`` schema instead of this model.
    """
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String(50), unique=True, nullable=False, index=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    hashed_password = Column(String(255), nullable=False)
    name = Column(String(255), nullable=False)
    bio = Column(Text, nullable=True)
    location = Column(String(255), nullable=True)
    profile_photo = Column(String(500), nullable=True)

    # Presence
    is_online = Column(Boolean, default=False, nullable=False)
    last_seen = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    def __repr__(self):
        return f"<User(id={self.id}, username='{self.username}')>"
