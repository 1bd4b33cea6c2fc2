# nonprofit_portal/schemas/survey.py
from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime
from decimal import Decimal
from .registration import RegistrationAdminRead

SCORE_MIN = 1
SCORE_MAX = 5


class SurveyScores(BaseModel):
    satisfaction: int = Field(..., ge=SCORE_MIN, le=SCORE_MAX)
    usefulness: int = Field(..., ge=SCORE_MIN, le=SCORE_MAX)
    instructor: int = Field(..., ge=SCORE_MIN, le=SCORE_MAX)
    recommendation: int = Field(..., ge=SCORE_MIN, le=SCORE_MAX)


class SurveyRead(BaseModel):
    id: int
    registration_id: int
    satisfaction_score: int
    usefulness_score: int
    instructor_score: int
    recommendation_score: int
    overall_score: Decimal
    nps_bucket: str
    comments: Optional[str] = None
    submission_date: Optional[datetime] = None

    class Config:
        from_attributes = True


class SurveyAdminRead(SurveyRead):
    registration: Optional[RegistrationAdminRead] = None
