"""Schedule rule router - FastAPI endpoints for recurring schedules"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...database import get_db
from ...models import ScheduleRule
from .next_visit import NextVisitCalculator
from .schemas import (
    NextVisitResponse,
    ReconciliationResponse,
    ScheduleRuleCreate,
    ScheduleRuleCreatedResponse,
    ScheduleRuleResponse,
    ScheduleRuleUpdate,
)
from .service import ScheduleRuleService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/schedule-rules", tags=["Schedule Rules"])


def get_schedule_service(db: Session = Depends(get_db)) -> ScheduleRuleService:
    """Dependency injection for ScheduleRuleService"""
    return ScheduleRuleService(db)


def to_response(rule: ScheduleRule) -> ScheduleRuleResponse:
    return ScheduleRuleResponse(
        id=rule.id,
        customerId=rule.customer_id,
        frequency=rule.frequency,
        byDay=rule.by_day or [],
        dtStart=rule.dt_start,
        windowStart=rule.window_start,
        windowEnd=rule.window_end,
        timezone=rule.timezone,
        paused=rule.paused,
        notes=rule.notes,
        addons=rule.addons,
        nextVisit=NextVisitCalculator.for_rule(rule),
        created_at=rule.created_at,
    )


@router.get("", response_model=list[ScheduleRuleResponse])
async def list_schedule_rules(
    customer_id: Optional[int] = Query(None),
    service: ScheduleRuleService = Depends(get_schedule_service),
):
    """List schedule rules, optionally for one customer"""
    return [to_response(rule) for rule in service.list_rules(customer_id)]


@router.post("", response_model=ScheduleRuleCreatedResponse, status_code=201)
async def create_schedule_rule(
    data: ScheduleRuleCreate,
    service: ScheduleRuleService = Depends(get_schedule_service),
):
    """Create a schedule rule and generate its visits for the horizon"""
    rule, created = service.create_rule(data)
    return ScheduleRuleCreatedResponse(**to_response(rule).model_dump(), visitsGenerated=created)


@router.get("/{rule_id}", response_model=ScheduleRuleResponse)
async def get_schedule_rule(
    rule_id: int,
    service: ScheduleRuleService = Depends(get_schedule_service),
):
    return to_response(service.get_rule(rule_id))


@router.patch("/{rule_id}", response_model=ReconciliationResponse)
async def update_schedule_rule(
    rule_id: int,
    data: ScheduleRuleUpdate,
    service: ScheduleRuleService = Depends(get_schedule_service),
):
    """Edit a rule; future scheduled visits are replaced, history is kept"""
    result = service.update_rule(rule_id, data)
    return ReconciliationResponse(ruleId=rule_id, removed=result.removed, created=result.created)


@router.post("/{rule_id}/pause", response_model=ReconciliationResponse)
async def pause_schedule_rule(
    rule_id: int,
    service: ScheduleRuleService = Depends(get_schedule_service),
):
    result = service.pause_rule(rule_id)
    return ReconciliationResponse(ruleId=rule_id, removed=result.removed, created=result.created)


@router.post("/{rule_id}/resume", response_model=ReconciliationResponse)
async def resume_schedule_rule(
    rule_id: int,
    service: ScheduleRuleService = Depends(get_schedule_service),
):
    result = service.resume_rule(rule_id)
    return ReconciliationResponse(ruleId=rule_id, removed=result.removed, created=result.created)


@router.delete("/{rule_id}", response_model=ReconciliationResponse)
async def delete_schedule_rule(
    rule_id: int,
    service: ScheduleRuleService = Depends(get_schedule_service),
):
    """Delete a rule and its future scheduled visits"""
    result = service.delete_rule(rule_id)
    return ReconciliationResponse(ruleId=rule_id, removed=result.removed, created=0)


@router.get("/{rule_id}/next-visit", response_model=NextVisitResponse)
async def get_next_visit(
    rule_id: int,
    service: ScheduleRuleService = Depends(get_schedule_service),
):
    rule = service.get_rule(rule_id)
    next_date = service.next_visit(rule_id)
    if next_date is None:
        return NextVisitResponse()
    return NextVisitResponse(visitDate=next_date, windowStart=rule.window_start, ruleId=rule.id)
