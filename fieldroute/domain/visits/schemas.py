"""Visit domain schemas"""

from datetime import date as calendar_date
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, model_validator

from ...shared.exceptions import ValidationError


class VisitResponse(BaseModel):
    id: int
    customer_id: int
    schedule_rule_id: Optional[int]
    date: calendar_date
    window_start: Optional[str]
    window_end: Optional[str]
    service_type: str
    status: str
    billable: bool
    skipped_at: Optional[datetime]
    skipped_by: Optional[str]
    skip_reason: Optional[str]
    skip_notes: Optional[str]
    started_at: Optional[datetime]
    completed_at: Optional[datetime]
    completion_notes: Optional[str]

    class Config:
        from_attributes = True


class StartVisitRequest(BaseModel):
    userId: str = "system"


class CompleteVisitRequest(BaseModel):
    userId: str = "system"
    completion_notes: Optional[str] = None


class SkipVisitRequest(BaseModel):
    reason: str
    notes: Optional[str] = None
    userId: str = "system"


class GenerateVisitsRequest(BaseModel):
    date: Optional[calendar_date] = None
    # Top every active rule up to this date instead of the default horizon
    horizonEnd: Optional[calendar_date] = None

    @model_validator(mode="after")
    def check_target(self):
        if self.date and self.horizonEnd:
            raise ValidationError("Give either date or horizonEnd, not both", field="horizonEnd")
        return self


class GenerateVisitsResponse(BaseModel):
    date: Optional[calendar_date] = None
    generated: int
