# nonprofit_portal/schemas/milestone.py
from pydantic import BaseModel
from datetime import date


class MilestoneRead(BaseModel):
    id: int
    title: str

    class Config:
        from_attributes = True


class UserMilestoneRead(BaseModel):
    user_id: int
    milestone_id: int
    milestone_date: date
    milestone: MilestoneRead

    class Config:
        from_attributes = True
