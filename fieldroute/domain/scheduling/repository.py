"""Schedule rule and visit repositories - Database operations for the scheduling core

Write methods do not commit. Callers compose them into a single transaction
and commit (or roll back) once the whole unit of work is applied.
"""

from datetime import date
from typing import Iterable, Optional

from sqlalchemy import func
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session

from ...models import Customer, ScheduleRule
from ...models_visit import Visit

VISIT_KEY = ["customer_id", "schedule_rule_id", "date"]


class ScheduleRuleRepository:
    """Repository for schedule rule database operations"""

    @staticmethod
    def list_rules(db: Session, customer_id: Optional[int] = None) -> list[ScheduleRule]:
        query = db.query(ScheduleRule)
        if customer_id is not None:
            query = query.filter(ScheduleRule.customer_id == customer_id)
        return query.order_by(ScheduleRule.id).all()

    @staticmethod
    def list_active_rules(db: Session) -> list[ScheduleRule]:
        """Non-paused rules of active customers"""
        return (
            db.query(ScheduleRule)
            .join(Customer, Customer.id == ScheduleRule.customer_id)
            .filter(ScheduleRule.paused.is_(False), Customer.status == "active")
            .order_by(ScheduleRule.id)
            .all()
        )

    @staticmethod
    def get_rule(db: Session, rule_id: int) -> Optional[ScheduleRule]:
        return db.query(ScheduleRule).filter(ScheduleRule.id == rule_id).first()

    @staticmethod
    def create_rule(db: Session, **rule_data) -> ScheduleRule:
        rule = ScheduleRule(**rule_data)
        db.add(rule)
        db.flush()
        return rule

    @staticmethod
    def update_rule(db: Session, rule: ScheduleRule, **updates) -> ScheduleRule:
        """Apply provided fields (None means "leave unchanged")"""
        for key, value in updates.items():
            if value is not None and hasattr(rule, key):
                setattr(rule, key, value)
        db.flush()
        return rule

    @staticmethod
    def delete_rule(db: Session, rule: ScheduleRule) -> None:
        db.delete(rule)
        db.flush()

    @staticmethod
    def list_route_stops(db: Session, exclude_customer_id: Optional[int] = None) -> list[tuple]:
        """(lat, lng, by_day) for every active rule whose customer has coordinates"""
        query = (
            db.query(Customer.lat, Customer.lng, ScheduleRule.by_day)
            .join(ScheduleRule, ScheduleRule.customer_id == Customer.id)
            .filter(
                ScheduleRule.paused.is_(False),
                Customer.status == "active",
                Customer.lat.isnot(None),
                Customer.lng.isnot(None),
            )
        )
        if exclude_customer_id is not None:
            query = query.filter(Customer.id != exclude_customer_id)
        return query.all()


class VisitRepository:
    """Repository for visit database operations"""

    @staticmethod
    def get_visit(db: Session, visit_id: int) -> Optional[Visit]:
        return db.query(Visit).filter(Visit.id == visit_id).first()

    @staticmethod
    def list_visits(
        db: Session,
        customer_id: Optional[int] = None,
        schedule_rule_id: Optional[int] = None,
        on_date: Optional[date] = None,
        status: Optional[str] = None,
    ) -> list[Visit]:
        query = db.query(Visit)
        if customer_id is not None:
            query = query.filter(Visit.customer_id == customer_id)
        if schedule_rule_id is not None:
            query = query.filter(Visit.schedule_rule_id == schedule_rule_id)
        if on_date is not None:
            query = query.filter(Visit.date == on_date)
        if status:
            query = query.filter(Visit.status == status)
        return query.order_by(Visit.date, Visit.window_start, Visit.id).all()

    @staticmethod
    def future_scheduled_ids(db: Session, schedule_rule_id: int, cutoff: date) -> list[int]:
        """Ids of still-scheduled visits of a rule dated on or after cutoff"""
        rows = (
            db.query(Visit.id)
            .filter(
                Visit.schedule_rule_id == schedule_rule_id,
                Visit.status == "scheduled",
                Visit.date >= cutoff,
            )
            .all()
        )
        return [row.id for row in rows]

    @staticmethod
    def delete_scheduled(db: Session, visit_ids: Iterable[int]) -> int:
        """Delete the given visits, re-checking status so nothing started is removed"""
        visit_ids = list(visit_ids)
        if not visit_ids:
            return 0
        return (
            db.query(Visit)
            .filter(Visit.id.in_(visit_ids), Visit.status == "scheduled")
            .delete(synchronize_session=False)
        )

    @staticmethod
    def upsert_visit(db: Session, **values) -> bool:
        """
        Insert a visit unless one already exists for (customer, rule, date).

        Returns True when a row was created.
        """
        dialect = db.get_bind().dialect.name
        if dialect == "postgresql":
            stmt = postgresql.insert(Visit.__table__).values(**values).on_conflict_do_nothing(
                index_elements=VISIT_KEY
            )
        elif dialect == "sqlite":
            stmt = sqlite.insert(Visit.__table__).values(**values).on_conflict_do_nothing(
                index_elements=VISIT_KEY
            )
        else:
            exists = (
                db.query(Visit.id)
                .filter_by(**{key: values[key] for key in VISIT_KEY})
                .first()
            )
            if exists:
                return False
            db.add(Visit(**values))
            db.flush()
            return True

        result = db.execute(stmt)
        return result.rowcount == 1

    @staticmethod
    def dates_for_rule(
        db: Session, customer_id: int, schedule_rule_id: int, since: date
    ) -> list[tuple[date, int]]:
        """(date, row count) per visit date of a rule, from since onwards"""
        return (
            db.query(Visit.date, func.count(Visit.id))
            .filter(
                Visit.customer_id == customer_id,
                Visit.schedule_rule_id == schedule_rule_id,
                Visit.date >= since,
            )
            .group_by(Visit.date)
            .all()
        )
