# nonprofit_portal/models/milestone.py
from sqlalchemy import Column, Integer, String, Date, ForeignKey
from sqlalchemy.orm import relationship
from nonprofit_portal.database import Base


class Milestone(Base):
    __tablename__ = "milestones"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(150), nullable=False)

    user_milestones = relationship("UserMilestone", back_populates="milestone", cascade="all, delete-orphan")


class UserMilestone(Base):
    __tablename__ = "user_milestones"

    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    milestone_id = Column(Integer, ForeignKey("milestones.id", ondelete="CASCADE"), primary_key=True)
    milestone_date = Column(Date, nullable=False)

    user = relationship("User", back_populates="user_milestones")
    milestone = relationship("Milestone", back_populates="user_milestones")
