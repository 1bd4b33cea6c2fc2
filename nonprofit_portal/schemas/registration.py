# nonprofit_portal/schemas/registration.py
from pydantic import BaseModel
from typing import Optional
from datetime import datetime
from .event import EventOccurrenceRead
from .user import UserSummary


class RegistrationRead(BaseModel):
    id: int
    user_id: int
    event_occurrence_id: int
    status: Optional[str] = None
    attended: bool = False
    check_in_time: Optional[datetime] = None
    created_at: Optional[datetime] = None
    occurrence: Optional[EventOccurrenceRead] = None

    class Config:
        from_attributes = True


class RegistrationAdminRead(RegistrationRead):
    user: Optional[UserSummary] = None
