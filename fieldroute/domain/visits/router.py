"""
Visit Management Routes
"""

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...config import DEFAULT_TIMEZONE
from ...database import get_db
from ..scheduling.recurrence import local_today
from .schemas import (
    CompleteVisitRequest,
    GenerateVisitsRequest,
    GenerateVisitsResponse,
    SkipVisitRequest,
    StartVisitRequest,
    VisitResponse,
)
from .service import VisitService

router = APIRouter(prefix="/visits", tags=["visits"])


def get_visit_service(db: Session = Depends(get_db)) -> VisitService:
    return VisitService(db)


@router.get("", response_model=List[VisitResponse])
async def list_visits(
    on_date: Optional[date] = Query(None, alias="date"),
    customer_id: Optional[int] = Query(None),
    status: Optional[str] = Query(None),
    service: VisitService = Depends(get_visit_service),
):
    """List visits, filtered by date, customer or status"""
    visits = service.list_visits(on_date=on_date, customer_id=customer_id, status=status)
    return [VisitResponse.model_validate(v) for v in visits]


@router.get("/today", response_model=List[VisitResponse])
async def list_today_visits(service: VisitService = Depends(get_visit_service)):
    visits = service.list_visits(on_date=local_today(DEFAULT_TIMEZONE))
    return [VisitResponse.model_validate(v) for v in visits]


@router.post("/generate", response_model=GenerateVisitsResponse)
async def generate_visits(
    data: GenerateVisitsRequest,
    service: VisitService = Depends(get_visit_service),
):
    """Materialize visits for one date, or top up every rule to horizonEnd (default horizon)"""
    if data.date:
        return GenerateVisitsResponse(date=data.date, generated=service.generate_for_date(data.date))
    return GenerateVisitsResponse(generated=service.extend_horizons(horizon_end=data.horizonEnd))


@router.get("/{visit_id}", response_model=VisitResponse)
async def get_visit(visit_id: int, service: VisitService = Depends(get_visit_service)):
    return VisitResponse.model_validate(service.get_visit(visit_id))


@router.post("/{visit_id}/start", response_model=VisitResponse)
async def start_visit(
    visit_id: int,
    data: StartVisitRequest,
    service: VisitService = Depends(get_visit_service),
):
    """Start a visit (mark as in progress)"""
    return VisitResponse.model_validate(service.start_visit(visit_id, data.userId))


@router.post("/{visit_id}/complete", response_model=VisitResponse)
async def complete_visit(
    visit_id: int,
    data: CompleteVisitRequest,
    service: VisitService = Depends(get_visit_service),
):
    return VisitResponse.model_validate(
        service.complete_visit(visit_id, data.userId, data.completion_notes)
    )


@router.post("/{visit_id}/skip", response_model=VisitResponse)
async def skip_visit(
    visit_id: int,
    data: SkipVisitRequest,
    service: VisitService = Depends(get_visit_service),
):
    """Skip a visit (customer still gets charged)"""
    return VisitResponse.model_validate(
        service.skip_visit(visit_id, data.userId, data.reason, data.notes)
    )


@router.post("/{visit_id}/unskip", response_model=VisitResponse)
async def unskip_visit(visit_id: int, service: VisitService = Depends(get_visit_service)):
    """Unskip a visit (restore to scheduled)"""
    return VisitResponse.model_validate(service.unskip_visit(visit_id))
