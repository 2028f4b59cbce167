"""Customer service - archive / reactivate and customer-level schedule views"""

import logging
from dataclasses import dataclass
from datetime import date
from typing import Optional

from sqlalchemy.orm import Session

from ...models import Customer
from ...services.geocoding_service import Geocoder
from ...shared.exceptions import NotFoundError, UpstreamUnavailableError
from ..scheduling.generator import VisitGenerator
from ..scheduling.next_visit import NextVisit, NextVisitCalculator
from ..scheduling.repository import ScheduleRuleRepository
from .repository import CustomerRepository
from .schemas import CustomerCreate

logger = logging.getLogger(__name__)


@dataclass
class StatusChange:
    rules: int = 0
    removed: int = 0
    created: int = 0


class CustomerService:
    """Service layer for customer business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = CustomerRepository()
        self.generator = VisitGenerator(db)

    def get_customer(self, customer_id: int) -> Customer:
        customer = self.repo.get_customer(self.db, customer_id)
        if not customer:
            raise NotFoundError("Customer", customer_id)
        return customer

    async def create_customer(self, data: CustomerCreate, geocoder: Geocoder) -> Customer:
        """Create a customer, geocoding the address when no coordinates are given"""
        lat, lng = data.lat, data.lng
        if data.address and (lat is None or lng is None):
            try:
                coords = await geocoder.geocode(data.address)
                if coords:
                    lat, lng = coords.lat, coords.lng
            except UpstreamUnavailableError as e:
                # Best-fit ignores customers without coordinates until they are geocoded
                logger.warning(f"⚠️ Could not geocode address for {data.name}: {e.message}")

        customer = self.repo.create_customer(
            self.db, name=data.name, address=data.address, lat=lat, lng=lng, status="active"
        )
        logger.info(f"📥 Created customer {customer.id}")
        return customer

    def next_visit(self, customer_id: int, today: Optional[date] = None) -> Optional[NextVisit]:
        self.get_customer(customer_id)
        rules = ScheduleRuleRepository.list_rules(self.db, customer_id)
        return NextVisitCalculator.for_customer(rules, today)

    def archive(self, customer_id: int, today: Optional[date] = None) -> StatusChange:
        """Mark inactive, pause all schedules and remove their future scheduled visits"""
        customer = self.get_customer(customer_id)
        change = StatusChange()
        try:
            customer.status = "inactive"
            for rule in ScheduleRuleRepository.list_rules(self.db, customer_id):
                rule.paused = True
                result = self.generator.on_rule_paused(rule, today=today, commit=False)
                change.rules += 1
                change.removed += result.removed
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.info(
            f"🗑️ Archived customer {customer_id}: paused {change.rules} schedules, "
            f"removed {change.removed} future visits"
        )
        return change

    def reactivate(self, customer_id: int, today: Optional[date] = None) -> StatusChange:
        """Mark active, resume all schedules and regenerate their visits"""
        customer = self.get_customer(customer_id)
        change = StatusChange()
        try:
            customer.status = "active"
            for rule in ScheduleRuleRepository.list_rules(self.db, customer_id):
                result = self.generator.on_rule_resumed(rule, today=today, commit=False)
                change.rules += 1
                change.removed += result.removed
                change.created += result.created
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.info(
            f"✅ Reactivated customer {customer_id}: resumed {change.rules} schedules, "
            f"generated {change.created} visits"
        )
        return change
