"""Schedule rule service - Business logic for recurring schedules"""

import logging
from datetime import date
from typing import Optional

from sqlalchemy.orm import Session

from ...models import Customer, ScheduleRule
from ...shared.exceptions import NotFoundError
from ...shared.validators import validate_by_day, validate_window
from .generator import ReconciliationResult, VisitGenerator
from .next_visit import NextVisitCalculator
from .recurrence import normalize_dt_start
from .repository import ScheduleRuleRepository
from .schemas import ScheduleRuleCreate, ScheduleRuleUpdate

logger = logging.getLogger(__name__)

# Fields whose change moves visit dates
RECURRENCE_FIELDS = {"frequency", "by_day", "dt_start"}


class ScheduleRuleService:
    """Service layer for schedule rule business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = ScheduleRuleRepository()
        self.generator = VisitGenerator(db)

    def list_rules(self, customer_id: Optional[int] = None) -> list[ScheduleRule]:
        return self.repo.list_rules(self.db, customer_id)

    def get_rule(self, rule_id: int) -> ScheduleRule:
        rule = self.repo.get_rule(self.db, rule_id)
        if not rule:
            raise NotFoundError("Schedule rule", rule_id)
        return rule

    def create_rule(
        self, data: ScheduleRuleCreate, today: Optional[date] = None
    ) -> tuple[ScheduleRule, int]:
        """Create a rule and expand it into visits over the horizon"""
        logger.info(
            f"📅 Creating schedule rule for customer {data.customerId}: "
            f"{data.frequency} on {data.byDay}"
        )

        if not self.db.query(Customer.id).filter(Customer.id == data.customerId).first():
            raise NotFoundError("Customer", data.customerId)

        dt_start = normalize_dt_start(data.frequency, data.byDay, data.dtStart)
        if dt_start != data.dtStart:
            logger.info(f"📅 dtStart {data.dtStart} moved to {dt_start} to match selected days")

        try:
            rule = self.repo.create_rule(
                self.db,
                customer_id=data.customerId,
                frequency=data.frequency,
                by_day=data.byDay,
                dt_start=dt_start,
                window_start=data.windowStart,
                window_end=data.windowEnd,
                timezone=data.timezone,
                paused=data.paused,
                notes=data.notes,
                addons=data.addons,
            )
            created = self.generator.generate_visits(
                rule,
                horizon_end=data.horizonEnd or self.generator.default_horizon(rule, today),
                start_from=today,
                commit=False,
            )
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(rule)
        logger.info(f"✅ Schedule rule {rule.id} created with {created} visits")
        return rule, created

    def update_rule(
        self, rule_id: int, data: ScheduleRuleUpdate, today: Optional[date] = None
    ) -> ReconciliationResult:
        """Apply edits and reconcile future visits in the same transaction"""
        rule = self.get_rule(rule_id)

        frequency = data.frequency or rule.frequency
        by_day = validate_by_day(
            data.byDay if data.byDay is not None else rule.by_day, frequency
        )
        window_start = data.windowStart or rule.window_start
        window_end = data.windowEnd or rule.window_end
        validate_window(window_start, window_end)

        updates = {
            "frequency": data.frequency,
            "by_day": by_day if data.byDay is not None else None,
            "dt_start": data.dtStart,
            "window_start": data.windowStart,
            "window_end": data.windowEnd,
            "timezone": data.timezone,
            "notes": data.notes,
            "addons": data.addons,
        }
        changed = {key for key, value in updates.items() if value is not None}
        if changed & RECURRENCE_FIELDS:
            updates["dt_start"] = normalize_dt_start(
                frequency, by_day, data.dtStart or rule.dt_start
            )

        try:
            self.repo.update_rule(self.db, rule, **updates)
            result = self.generator.on_rule_changed(
                rule, cutoff=data.effectiveFrom, today=today, commit=False
            )
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(rule)
        return result

    def pause_rule(self, rule_id: int, today: Optional[date] = None) -> ReconciliationResult:
        rule = self.get_rule(rule_id)
        try:
            rule.paused = True
            result = self.generator.on_rule_paused(rule, today=today, commit=False)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        logger.info(f"⏸️ Paused schedule rule {rule_id}, removed {result.removed} future visits")
        return result

    def resume_rule(self, rule_id: int, today: Optional[date] = None) -> ReconciliationResult:
        rule = self.get_rule(rule_id)
        try:
            result = self.generator.on_rule_resumed(rule, today=today, commit=False)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        logger.info(f"▶️ Resumed schedule rule {rule_id}, generated {result.created} visits")
        return result

    def delete_rule(self, rule_id: int, today: Optional[date] = None) -> ReconciliationResult:
        """Delete a rule; completed, skipped and in-progress visits are kept"""
        rule = self.get_rule(rule_id)
        try:
            result = self.generator.on_rule_deleted(rule.id, today=today, commit=False)
            self.repo.delete_rule(self.db, rule)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        logger.info(f"🗑️ Deleted schedule rule {rule_id}, removed {result.removed} future visits")
        return result

    def next_visit(self, rule_id: int, today: Optional[date] = None) -> Optional[date]:
        return NextVisitCalculator.for_rule(self.get_rule(rule_id), today)
