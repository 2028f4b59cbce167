"""
Customer and recurrence rule models
"""

from sqlalchemy import JSON, Boolean, Column, Date, DateTime, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base


class Customer(Base):
    __tablename__ = "customers"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    address = Column(String(500), nullable=True)

    # Filled by geocoding; customers without coordinates are ignored by best-fit analysis
    lat = Column(Float, nullable=True)
    lng = Column(Float, nullable=True)

    status = Column(String(20), default="active", nullable=False)  # active, inactive

    created_at = Column(DateTime, server_default=func.now())

    schedule_rules = relationship(
        "ScheduleRule", back_populates="customer", cascade="all, delete-orphan"
    )
    visits = relationship("Visit", back_populates="customer")


class ScheduleRule(Base):
    """Recurring cadence for a customer (frequency, weekdays, time window)"""

    __tablename__ = "schedule_rules"
    # Ids are never reused, so visits left behind by a deleted rule stay orphaned
    __table_args__ = {"sqlite_autoincrement": True}

    id = Column(Integer, primary_key=True, index=True)
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=False, index=True)

    frequency = Column(String(20), nullable=False)  # weekly, biweekly, one-time, new-start
    by_day = Column(JSON, nullable=False, default=list)  # [1, 4] = Monday and Thursday, 0=Sunday
    dt_start = Column(Date, nullable=False)  # First service date

    window_start = Column(String(5), nullable=False)  # HH:MM
    window_end = Column(String(5), nullable=False)  # HH:MM
    timezone = Column(String(64), nullable=False, default="America/Chicago")

    paused = Column(Boolean, default=False, nullable=False)

    notes = Column(Text, nullable=True)
    addons = Column(JSON, nullable=True)  # e.g. ["extra-yard", "odor-spray"]

    created_at = Column(DateTime, server_default=func.now())

    customer = relationship("Customer", back_populates="schedule_rules")
