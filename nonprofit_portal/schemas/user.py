# nonprofit_portal/schemas/user.py
from pydantic import BaseModel, EmailStr, Field
from typing import Optional
from datetime import date, datetime


class UserSummary(BaseModel):
    id: int
    first_name: str
    last_name: str
    email: str

    class Config:
        from_attributes = True


class UserEmail(BaseModel):
    """Checks an address typed into a form; stored addresses are read back as plain strings."""
    email: EmailStr


def clean_email(value: str) -> str:
    return UserEmail(email=(value or "").strip()).email


class UserBase(BaseModel):
    email: str
    first_name: str = Field(..., max_length=100)
    last_name: str = Field(..., max_length=100)
    dob: Optional[date] = None
    role: str
    phone: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip: Optional[str] = None
    school: Optional[str] = None
    employer: Optional[str] = None
    field_of_interest: Optional[str] = None


class UserRead(UserBase):
    id: int
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class AccountInfo(BaseModel):
    user: Optional[UserRead] = None
    error_message: str = ""
    success_message: str = ""
