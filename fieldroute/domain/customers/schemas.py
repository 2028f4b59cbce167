"""Customer domain schemas - Pydantic models for validation"""

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, field_validator


class CustomerCreate(BaseModel):
    """Schema for creating a new customer"""

    name: str
    address: Optional[str] = None
    lat: Optional[float] = None
    lng: Optional[float] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("Name is required")
        return v


class CustomerResponse(BaseModel):
    id: int
    name: str
    address: Optional[str] = None
    lat: Optional[float] = None
    lng: Optional[float] = None
    status: str
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class CustomerNextVisitResponse(BaseModel):
    customerId: int
    visitDate: Optional[date] = None
    windowStart: Optional[str] = None
    ruleId: Optional[int] = None


class CustomerStatusChangeResponse(BaseModel):
    customerId: int
    status: str
    rules: int
    removed: int
    created: int
