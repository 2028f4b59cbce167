"""
Visit model for recurring service execution
"""

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base


class Visit(Base):
    """One dated occurrence of service, generated from a schedule rule or booked ad hoc"""

    __tablename__ = "visits"
    __table_args__ = (
        # Generation upserts against this key, so repeated runs never duplicate a visit
        UniqueConstraint(
            "customer_id", "schedule_rule_id", "date", name="uq_visits_customer_rule_date"
        ),
        {"sqlite_autoincrement": True},
    )

    id = Column(Integer, primary_key=True, index=True)

    # Relationships
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=False, index=True)
    # Plain column: visits outlive the rule that created them
    schedule_rule_id = Column(Integer, nullable=True, index=True)

    # Scheduling
    date = Column(Date, nullable=False, index=True)
    window_start = Column(String(5), nullable=True)  # HH:MM
    window_end = Column(String(5), nullable=True)
    service_type = Column(String(20), default="regular", nullable=False)  # regular, one-time, new-start

    # Status workflow: scheduled → in_progress → completed, scheduled ↔ skipped
    status = Column(String(20), default="scheduled", nullable=False, index=True)

    # Skipped visits stay billable (gate locked, no dog present, ...)
    billable = Column(Boolean, default=True, nullable=False)

    # Skip metadata, only set while status is skipped
    skipped_at = Column(DateTime, nullable=True)
    skipped_by = Column(String(255), nullable=True)
    skip_reason = Column(String(255), nullable=True)
    skip_notes = Column(Text, nullable=True)

    # Audit trail
    started_by = Column(String(255), nullable=True)
    started_at = Column(DateTime, nullable=True)
    completed_by = Column(String(255), nullable=True)
    completed_at = Column(DateTime, nullable=True)
    completion_notes = Column(Text, nullable=True)

    # Timestamps
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    customer = relationship("Customer", back_populates="visits")
