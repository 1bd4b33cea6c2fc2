# nonprofit_portal/schemas/donation.py
import datetime as dt
from pydantic import BaseModel
from typing import Optional
from decimal import Decimal
from .user import UserSummary


class DonationRead(BaseModel):
    id: int
    user_id: int
    amount: Decimal
    date: Optional[dt.date] = None

    class Config:
        from_attributes = True


class DonationAdminRead(DonationRead):
    user: Optional[UserSummary] = None
