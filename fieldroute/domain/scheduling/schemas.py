"""Scheduling domain schemas - Pydantic models for validation"""

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, field_validator, model_validator

from ...config import DEFAULT_TIMEZONE
from ...shared.validators import (
    validate_by_day,
    validate_frequency,
    validate_time_of_day,
    validate_timezone,
    validate_window,
)


class ScheduleRuleCreate(BaseModel):
    """Schema for creating a schedule rule"""

    customerId: int
    frequency: str
    byDay: list[int] = []
    dtStart: date
    windowStart: str
    windowEnd: str
    timezone: str = DEFAULT_TIMEZONE
    paused: bool = False
    notes: Optional[str] = None
    addons: Optional[list[str]] = None
    # Last date to materialize; defaults to VISIT_HORIZON_DAYS past today
    horizonEnd: Optional[date] = None

    @field_validator("frequency")
    @classmethod
    def check_frequency(cls, v):
        return validate_frequency(v)

    @field_validator("windowStart", "windowEnd")
    @classmethod
    def check_time(cls, v, info):
        return validate_time_of_day(v, info.field_name)

    @field_validator("timezone")
    @classmethod
    def check_timezone(cls, v):
        return validate_timezone(v)

    @model_validator(mode="after")
    def check_rule(self):
        self.byDay = validate_by_day(self.byDay, self.frequency)
        validate_window(self.windowStart, self.windowEnd)
        return self


class ScheduleRuleUpdate(BaseModel):
    """Schema for editing a schedule rule (all fields optional)"""

    frequency: Optional[str] = None
    byDay: Optional[list[int]] = None
    dtStart: Optional[date] = None
    windowStart: Optional[str] = None
    windowEnd: Optional[str] = None
    timezone: Optional[str] = None
    notes: Optional[str] = None
    addons: Optional[list[str]] = None
    # Optional reconciliation cutoff, never earlier than tomorrow
    effectiveFrom: Optional[date] = None

    @field_validator("frequency")
    @classmethod
    def check_frequency(cls, v):
        if v is not None:
            return validate_frequency(v)
        return v

    @field_validator("windowStart", "windowEnd")
    @classmethod
    def check_time(cls, v, info):
        if v is not None:
            return validate_time_of_day(v, info.field_name)
        return v

    @field_validator("timezone")
    @classmethod
    def check_timezone(cls, v):
        if v is not None:
            return validate_timezone(v)
        return v


class ScheduleRuleResponse(BaseModel):
    """Schema for schedule rule response"""

    id: int
    customerId: int
    frequency: str
    byDay: list[int]
    dtStart: date
    windowStart: str
    windowEnd: str
    timezone: str
    paused: bool
    notes: Optional[str] = None
    addons: Optional[list[str]] = None
    nextVisit: Optional[date] = None
    created_at: Optional[datetime] = None


class ScheduleRuleCreatedResponse(ScheduleRuleResponse):
    visitsGenerated: int


class ReconciliationResponse(BaseModel):
    ruleId: int
    removed: int
    created: int


class NextVisitResponse(BaseModel):
    visitDate: Optional[date] = None
    windowStart: Optional[str] = None
    ruleId: Optional[int] = None
