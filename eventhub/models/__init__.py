from .base import Base
from .user import User
from .event import Category, Event, EventAttendee

__all__ = ["Base", "User", "Category", "Event", "EventAttendee"]
