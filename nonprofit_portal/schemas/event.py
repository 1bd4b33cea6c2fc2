# nonprofit_portal/schemas/event.py
from pydantic import BaseModel
from typing import Optional, List
from datetime import datetime


class EventTemplateRead(BaseModel):
    id: int
    name: str
    type: Optional[str] = None
    description: Optional[str] = None
    recurrence_pattern: Optional[str] = None
    default_capacity: Optional[int] = None

    class Config:
        from_attributes = True


class EventOccurrenceRead(BaseModel):
    id: int
    template_id: int
    name: str
    start: datetime
    end: Optional[datetime] = None
    location: Optional[str] = None
    capacity: Optional[int] = None
    registration_deadline: Optional[datetime] = None

    class Config:
        from_attributes = True


class EventTemplateDetail(EventTemplateRead):
    occurrences: List[EventOccurrenceRead] = []


class EventListing(EventOccurrenceRead):
    """An occurrence as shown on the public events page."""
    registration_count: int = 0
    is_user_registered: bool = False
