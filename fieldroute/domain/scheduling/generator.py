"""
Visit generation and reconciliation

Expands schedule rules into dated visits over a forward horizon and keeps
them consistent when a rule is edited, paused, resumed or deleted.
Reconciliation is two-phase: a plan (which visits go, which dates come) is
computed first, then applied and verified inside one transaction.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Optional

from sqlalchemy.orm import Session

from ...config import DEFAULT_TIMEZONE, VISIT_HORIZON_DAYS
from ...models import ScheduleRule
from ...shared.exceptions import ConsistencyError
from .recurrence import local_today, occurrences, sequences_for_rule
from .repository import ScheduleRuleRepository, VisitRepository

logger = logging.getLogger(__name__)

SERVICE_TYPES = {
    "one-time": "one-time",
    "new-start": "new-start",
}


@dataclass
class ReconciliationPlan:
    schedule_rule_id: int
    cutoff: date
    delete_ids: list[int] = field(default_factory=list)
    create_dates: list[date] = field(default_factory=list)


@dataclass
class ReconciliationResult:
    removed: int = 0
    created: int = 0


class VisitGenerator:
    """Materializes and reconciles visits for schedule rules"""

    def __init__(self, db: Session, horizon_days: int = VISIT_HORIZON_DAYS):
        self.db = db
        self.horizon_days = horizon_days

    # ------------------------------------------------------------------
    # Generation
    # ------------------------------------------------------------------

    def default_horizon(self, rule: ScheduleRule, today: Optional[date] = None) -> date:
        today = today or local_today(rule.timezone)
        return today + timedelta(days=self.horizon_days)

    def generate_visits(
        self,
        rule: ScheduleRule,
        horizon_end: Optional[date] = None,
        start_from: Optional[date] = None,
        commit: bool = True,
    ) -> int:
        """
        Create the rule's visits between start_from (default: the rule's local
        today) and horizon_end. Existing visits are left untouched, so calling
        this repeatedly is safe.

        Returns the number of visits created.
        """
        if rule.paused:
            logger.info(f"⏸️ Schedule rule {rule.id} is paused, no visits generated")
            return 0

        start_from = start_from or local_today(rule.timezone)
        horizon_end = horizon_end or self.default_horizon(rule)
        dates = occurrences(sequences_for_rule(rule), start_from, horizon_end)

        try:
            created = self._insert_dates(rule, dates)
            if commit:
                self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.info(
            f"✅ Generated {created} visits for schedule rule {rule.id} "
            f"(days={rule.by_day}, frequency={rule.frequency}, through {horizon_end})"
        )
        return created

    def generate_for_date(self, target_date: date) -> int:
        """Materialize visits on one date for every active rule"""
        created = 0
        try:
            for rule in ScheduleRuleRepository.list_active_rules(self.db):
                created += self.generate_visits(
                    rule, horizon_end=target_date, start_from=target_date, commit=False
                )
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.info(f"📅 Generated {created} visits for {target_date}")
        return created

    def extend_horizons(
        self, today: Optional[date] = None, horizon_end: Optional[date] = None
    ) -> int:
        """Top every active rule up to horizon_end (default: each rule's forward horizon)"""
        created = 0
        try:
            for rule in ScheduleRuleRepository.list_active_rules(self.db):
                rule_today = today or local_today(rule.timezone)
                created += self.generate_visits(
                    rule,
                    horizon_end=horizon_end or self.default_horizon(rule, rule_today),
                    start_from=rule_today,
                    commit=False,
                )
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        return created

    def _insert_dates(self, rule: ScheduleRule, dates: list[date]) -> int:
        created = 0
        for visit_date in dates:
            if VisitRepository.upsert_visit(
                self.db,
                customer_id=rule.customer_id,
                schedule_rule_id=rule.id,
                date=visit_date,
                window_start=rule.window_start,
                window_end=rule.window_end,
                service_type=SERVICE_TYPES.get(rule.frequency, "regular"),
                status="scheduled",
                billable=True,
            ):
                created += 1
        return created

    # ------------------------------------------------------------------
    # Reconciliation
    # ------------------------------------------------------------------

    @staticmethod
    def effective_cutoff(today: date, cutoff: Optional[date] = None) -> date:
        """Later of tomorrow and the caller's cutoff; today's visits are never touched"""
        tomorrow = today + timedelta(days=1)
        return max(tomorrow, cutoff) if cutoff else tomorrow

    def plan_reconciliation(
        self,
        rule: ScheduleRule,
        regenerate: bool = True,
        cutoff: Optional[date] = None,
        today: Optional[date] = None,
    ) -> ReconciliationPlan:
        today = today or local_today(rule.timezone)
        effective = self.effective_cutoff(today, cutoff)

        plan = ReconciliationPlan(
            schedule_rule_id=rule.id,
            cutoff=effective,
            delete_ids=VisitRepository.future_scheduled_ids(self.db, rule.id, effective),
        )
        if regenerate and not rule.paused:
            plan.create_dates = occurrences(
                sequences_for_rule(rule), effective, self.default_horizon(rule, today)
            )
        return plan

    def apply(
        self, plan: ReconciliationPlan, rule: Optional[ScheduleRule] = None, commit: bool = True
    ) -> ReconciliationResult:
        """Apply a reconciliation plan as one unit of work"""
        result = ReconciliationResult()
        try:
            result.removed = VisitRepository.delete_scheduled(self.db, plan.delete_ids)
            if result.removed != len(plan.delete_ids):
                raise ConsistencyError(
                    f"Schedule rule {plan.schedule_rule_id}: expected to remove "
                    f"{len(plan.delete_ids)} visits, removed {result.removed}"
                )

            if rule is not None and plan.create_dates:
                result.created = self._insert_dates(rule, plan.create_dates)
                self._verify(rule, plan)

            if commit:
                self.db.commit()
        except ConsistencyError as e:
            self.db.rollback()
            logger.error(f"❌ Reconciliation aborted: {e.message}")
            raise
        except Exception:
            self.db.rollback()
            raise

        logger.info(
            f"🔄 Reconciled schedule rule {plan.schedule_rule_id}: "
            f"removed {result.removed}, created {result.created} (from {plan.cutoff})"
        )
        return result

    def _verify(self, rule: ScheduleRule, plan: ReconciliationPlan) -> None:
        self.db.flush()
        counts = dict(
            VisitRepository.dates_for_rule(self.db, rule.customer_id, rule.id, plan.cutoff)
        )

        duplicates = sorted(d for d, count in counts.items() if count > 1)
        missing = sorted(d for d in plan.create_dates if d not in counts)
        if duplicates or missing:
            raise ConsistencyError(
                f"Schedule rule {rule.id}: duplicate dates {duplicates}, missing dates {missing}"
            )

    def on_rule_changed(
        self,
        rule: ScheduleRule,
        cutoff: Optional[date] = None,
        today: Optional[date] = None,
        commit: bool = True,
    ) -> ReconciliationResult:
        """Drop future scheduled visits and regenerate them from the updated rule"""
        plan = self.plan_reconciliation(rule, regenerate=True, cutoff=cutoff, today=today)
        return self.apply(plan, rule=rule, commit=commit)

    def on_rule_paused(
        self,
        rule: ScheduleRule,
        cutoff: Optional[date] = None,
        today: Optional[date] = None,
        commit: bool = True,
    ) -> ReconciliationResult:
        """Drop future scheduled visits without regenerating"""
        plan = self.plan_reconciliation(rule, regenerate=False, cutoff=cutoff, today=today)
        return self.apply(plan, rule=rule, commit=commit)

    def on_rule_resumed(
        self,
        rule: ScheduleRule,
        today: Optional[date] = None,
        commit: bool = True,
    ) -> ReconciliationResult:
        """Unpause and regenerate from tomorrow"""
        rule.paused = False
        plan = self.plan_reconciliation(rule, regenerate=True, today=today)
        return self.apply(plan, rule=rule, commit=commit)

    def on_rule_deleted(
        self,
        schedule_rule_id: int,
        cutoff: Optional[date] = None,
        today: Optional[date] = None,
        commit: bool = True,
    ) -> ReconciliationResult:
        """Drop future scheduled visits of a rule that is going away"""
        rule = ScheduleRuleRepository.get_rule(self.db, schedule_rule_id)
        today = today or local_today(rule.timezone if rule else DEFAULT_TIMEZONE)
        plan = ReconciliationPlan(
            schedule_rule_id=schedule_rule_id,
            cutoff=self.effective_cutoff(today, cutoff),
        )
        plan.delete_ids = VisitRepository.future_scheduled_ids(
            self.db, schedule_rule_id, plan.cutoff
        )
        return self.apply(plan, commit=commit)
