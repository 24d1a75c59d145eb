"""
Category, Event and EventAttendee models for EventHub.
"""

from typing import Optional
from sqlalchemy import (
    Column, Integer, String, Text, Date, DateTime, Boolean,
    ForeignKey, Index, CheckConstraint, UniqueConstraint
)

from .base import Base, utcnow


class Category(Base):
    """
    Event category. Seeded once at startup and treated as read-only.
    """
    __tablename__ = "categories"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), unique=True, nullable=False)
    slug = Column(String(100), unique=True, nullable=False, index=True)
    color = Column(String(30), nullable=False)

    def __repr__(self):
        return f"<Category(id={self.id}, slug='{self.slug}')>"


class Event(Base):
    """
    Event model representing a community event.
    ``current_attendees`` is a denormalized count of the event's ledger rows
    and is only changed by the attendance ledger.
    """
    __tablename__ = "events"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(255), nullable=False, index=True)
    description = Column(Text, nullable=False)
    event_date = Column(Date, nullable=False, index=True)
    event_time = Column(String(5), nullable=False)
    location = Column(String(255), nullable=False)
    category_id = Column(Integer, ForeignKey("categories.id"), nullable=False, index=True)
    organizer_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    image_url = Column(String(500), nullable=True)

    # Capacity tracking
    max_attendees = Column(Integer, nullable=True)
    current_attendees = Column(Integer, default=0, nullable=False)

    # Soft delete flag
    is_active = Column(Boolean, default=True, nullable=False, index=True)

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    __table_args__ = (
        CheckConstraint('current_attendees >= 0', name='check_current_attendees_non_negative'),
        CheckConstraint('max_attendees IS NULL OR max_attendees > 0', name='check_max_attendees_positive'),
        CheckConstraint(
            'max_attendees IS NULL OR current_attendees <= max_attendees',
            name='check_attendees_within_capacity'
        ),
    )

    def __repr__(self):
        return f"<Event(id={self.id}, title='{self.title}', location='{self.location}')>"

    @property
    def spots_left(self) -> Optional[int]:
        """Remaining capacity, or None when the event is unbounded."""
        if self.max_attendees is None:
            return None
        return self.max_attendees - (self.current_attendees or 0)

    @property
    def is_full(self) -> bool:
        """Check if the event has reached its capacity."""
        spots = self.spots_left
        return spots is not None and spots <= 0


class EventAttendee(Base):
    """
    Attendance ledger entry: one row per (event, user) pair.
    """
    __tablename__ = "event_attendees"

    id = Column(Integer, primary_key=True, index=True)
    event_id = Column(Integer, ForeignKey("events.id"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    joined_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    __table_args__ = (
        UniqueConstraint('event_id', 'user_id', name='unique_event_attendee'),
        Index('idx_attendee_user_event', 'user_id', 'event_id'),
    )

    def __repr__(self):
        return f"<EventAttendee(event_id={self.event_id}, user_id={self.user_id})>"
