"""Customer router - FastAPI endpoints for customer schedule operations"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...database import get_db
from ...services.geocoding_service import Geocoder, get_geocoder
from .schemas import (
    CustomerCreate,
    CustomerNextVisitResponse,
    CustomerResponse,
    CustomerStatusChangeResponse,
)
from .service import CustomerService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/customers", tags=["Customers"])


def get_customer_service(db: Session = Depends(get_db)) -> CustomerService:
    """Dependency injection for CustomerService"""
    return CustomerService(db)


@router.post("", response_model=CustomerResponse, status_code=201)
async def create_customer(
    data: CustomerCreate,
    service: CustomerService = Depends(get_customer_service),
    geocoder: Geocoder = Depends(get_geocoder),
):
    customer = await service.create_customer(data, geocoder)
    return CustomerResponse.model_validate(customer)


@router.get("/{customer_id}", response_model=CustomerResponse)
async def get_customer(
    customer_id: int,
    service: CustomerService = Depends(get_customer_service),
):
    return CustomerResponse.model_validate(service.get_customer(customer_id))


@router.get("/{customer_id}/next-visit", response_model=CustomerNextVisitResponse)
async def get_customer_next_visit(
    customer_id: int,
    service: CustomerService = Depends(get_customer_service),
):
    """Earliest upcoming visit across the customer's active schedules"""
    next_visit = service.next_visit(customer_id)
    if next_visit is None:
        return CustomerNextVisitResponse(customerId=customer_id)
    return CustomerNextVisitResponse(
        customerId=customer_id,
        visitDate=next_visit.date,
        windowStart=next_visit.window_start,
        ruleId=next_visit.schedule_rule_id,
    )


@router.post("/{customer_id}/archive", response_model=CustomerStatusChangeResponse)
async def archive_customer(
    customer_id: int,
    service: CustomerService = Depends(get_customer_service),
):
    """Archive a customer: pause schedules and drop future scheduled visits"""
    change = service.archive(customer_id)
    return CustomerStatusChangeResponse(
        customerId=customer_id,
        status="inactive",
        rules=change.rules,
        removed=change.removed,
        created=change.created,
    )


@router.post("/{customer_id}/reactivate", response_model=CustomerStatusChangeResponse)
async def reactivate_customer(
    customer_id: int,
    service: CustomerService = Depends(get_customer_service),
):
    change = service.reactivate(customer_id)
    return CustomerStatusChangeResponse(
        customerId=customer_id,
        status="active",
        rules=change.rules,
        removed=change.removed,
        created=change.created,
    )
