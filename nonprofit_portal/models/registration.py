# nonprofit_portal/models/registration.py
from datetime import datetime
from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from nonprofit_portal.database import Base

STATUS_CANCELLED = "Cancelled"


class Registration(Base):
    __tablename__ = "registrations"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    event_occurrence_id = Column(Integer, ForeignKey("event_occurrences.id", ondelete="CASCADE"), nullable=False, index=True)
    status = Column(String(50), nullable=True)  # None = active, "Cancelled" = withdrawn
    attended = Column(Boolean, nullable=False, default=False)
    check_in_time = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    user = relationship("User", back_populates="registrations")
    occurrence = relationship("EventOccurrence", back_populates="registrations")
    survey = relationship("Survey", back_populates="registration", uselist=False, cascade="all, delete-orphan")

    __table_args__ = (
        # Cancelled rows are kept, so this also blocks re-registering after a cancel
        UniqueConstraint("user_id", "event_occurrence_id", name="uq_registration_user_occurrence"),
    )

    @property
    def is_cancelled(self):
        return self.status == STATUS_CANCELLED
