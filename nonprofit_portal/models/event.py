# nonprofit_portal/models/event.py
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from nonprofit_portal.database import Base


class EventTemplate(Base):
    """A reusable kind of event; occurrences are scheduled from it."""
    __tablename__ = "event_templates"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(150), nullable=False)
    type = Column(String(50))
    description = Column(String(500), nullable=True)
    recurrence_pattern = Column(String(100), nullable=True)
    default_capacity = Column(Integer, nullable=True)

    occurrences = relationship("EventOccurrence", back_populates="template", cascade="all, delete-orphan")


class EventOccurrence(Base):
    __tablename__ = "event_occurrences"

    id = Column(Integer, primary_key=True, index=True)
    template_id = Column(Integer, ForeignKey("event_templates.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(150), nullable=False)
    start = Column(DateTime, nullable=False, index=True)
    end = Column(DateTime, nullable=True)
    location = Column(String(150))
    capacity = Column(Integer, nullable=True)  # None = unlimited
    # Expected to be <= start, not enforced
    registration_deadline = Column(DateTime, nullable=True)

    template = relationship("EventTemplate", back_populates="occurrences")
    registrations = relationship("Registration", back_populates="occurrence", cascade="all, delete-orphan")
