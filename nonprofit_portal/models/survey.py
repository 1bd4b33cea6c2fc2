# nonprofit_portal/models/survey.py
from datetime import datetime
from sqlalchemy import Column, Integer, String, Numeric, Text, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from nonprofit_portal.database import Base


class Survey(Base):
    __tablename__ = "surveys"

    id = Column(Integer, primary_key=True, index=True)
    registration_id = Column(Integer, ForeignKey("registrations.id", ondelete="CASCADE"), nullable=False, unique=True)
    satisfaction_score = Column(Integer, nullable=False)
    usefulness_score = Column(Integer, nullable=False)
    instructor_score = Column(Integer, nullable=False)
    recommendation_score = Column(Integer, nullable=False)
    overall_score = Column(Numeric(4, 2), nullable=False)
    nps_bucket = Column(String(20), nullable=False)  # Promoter, Passive, Detractor
    comments = Column(Text, nullable=True)
    submission_date = Column(DateTime, default=datetime.utcnow)

    registration = relationship("Registration", back_populates="survey")
