"""
Pydantic schemas for Event-related operations.
"""

from datetime import date, datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field

from .auth import UserProfile

TIME_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"


class CategoryResponse(BaseModel):
    """Schema for category response."""
    id: int
    name: str
    slug: str
    color: str

    model_config = ConfigDict(from_attributes=True)


class EventBase(BaseModel):
    """Base event schema."""
    title: str = Field(..., min_length=1, max_length=255, description="Event title")
    description: str = Field(..., min_length=1, description="Event description")
    event_date: date = Field(..., description="Calendar date of the event")
    event_time: str = Field(..., pattern=TIME_PATTERN, description="Start time, HH:MM")
    location: str = Field(..., min_length=1, max_length=255, description="Event location")
    category_id: int = Field(..., gt=0, description="Category of the event")
    image_url: Optional[str] = Field(None, max_length=500)
    max_attendees: Optional[int] = Field(None, gt=0, description="Capacity, unbounded when omitted")


class EventCreate(EventBase):
    """Schema for creating a new event."""
    pass


class EventUpdate(BaseModel):
    """Schema for updating an event. Only provided fields are applied."""
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = Field(None, min_length=1)
    event_date: Optional[date] = None
    event_time: Optional[str] = Field(None, pattern=TIME_PATTERN)
    location: Optional[str] = Field(None, min_length=1, max_length=255)
    category_id: Optional[int] = Field(None, gt=0)
    image_url: Optional[str] = Field(None, max_length=500)
    max_attendees: Optional[int] = Field(None, gt=0)


class EventResponse(EventBase):
    """Schema for event response."""
    id: int
    organizer_id: int
    current_attendees: int
    is_active: bool
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class EventWithDetailsResponse(EventResponse):
    """Event joined with its category and organizer profile."""
    category: CategoryResponse
    organizer: UserProfile
    spots_left: Optional[int] = None
    is_attending: Optional[bool] = None


class EventFilters(BaseModel):
    """Filters accepted by the event listing."""
    category: Optional[str] = None
    search: Optional[str] = None
    date: Optional[str] = None
    location: Optional[str] = None


class MessageResponse(BaseModel):
    """Generic message response schema."""
    message: str
    success: bool = True


class AttendanceStatusResponse(BaseModel):
    """Schema for attendance status."""
    is_attending: bool


class CommunityStatsResponse(BaseModel):
    """Schema for community statistics."""
    active_events: int
    community_members: int
    event_organizers: int
    event_categories: int


class HealthCheckResponse(BaseModel):
    """Schema for health check."""
    status: str
    version: str
    database: str
    redis: str


