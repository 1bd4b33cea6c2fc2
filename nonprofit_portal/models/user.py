# nonprofit_portal/models/user.py
from datetime import datetime
from sqlalchemy import Column, Integer, String, Date, DateTime
from sqlalchemy.orm import relationship
from nonprofit_portal.database import Base

ROLE_PARTICIPANT = "participant"
ROLE_ADMIN = "admin"
VALID_ROLES = [ROLE_PARTICIPANT, ROLE_ADMIN]


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    dob = Column(Date, nullable=True)
    role = Column(String(20), nullable=False, default=ROLE_PARTICIPANT)

    phone = Column(String(30))
    city = Column(String(100))
    state = Column(String(50))
    zip = Column(String(20))
    school = Column(String(150))
    employer = Column(String(150))
    field_of_interest = Column(String(150))

    # bcrypt hash, never the plain password
    hashed_password = Column(String(255), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    # Removing a user removes everything hanging off it
    registrations = relationship("Registration", back_populates="user", cascade="all, delete-orphan")
    donations = relationship("Donation", back_populates="user", cascade="all, delete-orphan")
    user_milestones = relationship("UserMilestone", back_populates="user", cascade="all, delete-orphan")

    @property
    def full_name(self):
        return f"{self.first_name} {self.last_name or ''}".strip()
