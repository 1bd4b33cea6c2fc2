# nonprofit_portal/models/donation.py
# -*- coding: utf-8 -*-
"""
SQLAlchemy model for recorded donations (bookkeeping only, no settlement).
"""
from datetime import date
from sqlalchemy import Column, Integer, Numeric, Date, ForeignKey
from sqlalchemy.orm import relationship
from nonprofit_portal.database import Base


class Donation(Base):
    __tablename__ = "donations"

    id = Column(Integer, primary_key=True, index=True)
    # Donations without a session go to the reserved anonymous donor
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    amount = Column(Numeric(14, 2), nullable=False)
    date = Column(Date, default=date.today)

    user = relationship("User", back_populates="donations")
