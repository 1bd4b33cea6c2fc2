# nonprofit_portal/schemas/dashboard.py
from pydantic import BaseModel
from typing import Dict, Optional
from decimal import Decimal
from .event import EventOccurrenceRead


class SurveySummary(BaseModel):
    count: int = 0
    average_overall: Optional[float] = None
    buckets: Dict[str, int] = {}


class AdminKpis(BaseModel):
    total_donations: Decimal = Decimal("0")
    yearly_donations: Decimal = Decimal("0")
    monthly_donations: Decimal = Decimal("0")
    year: int
    month: int
    upcoming_events: int = 0
    next_event: Optional[EventOccurrenceRead] = None
    surveys: SurveySummary = SurveySummary()


class UserDashboard(BaseModel):
    display_name: str = ""
    upcoming_registrations: int = 0
    milestones: int = 0
    pending_surveys: int = 0
    next_event: Optional[EventOccurrenceRead] = None
    admin: Optional[AdminKpis] = None
