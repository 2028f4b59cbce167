"""
Visit Service
Handles visit lookups and status transitions
"""

import logging
from datetime import date
from typing import Optional

from sqlalchemy.orm import Session

from ...models_visit import Visit
from ...shared.exceptions import NotFoundError
from ..scheduling.generator import VisitGenerator
from ..scheduling.repository import VisitRepository
from . import lifecycle

logger = logging.getLogger(__name__)


class VisitService:
    """Service for visit status changes and listings"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = VisitRepository()

    def get_visit(self, visit_id: int) -> Visit:
        visit = self.repo.get_visit(self.db, visit_id)
        if not visit:
            raise NotFoundError("Visit", visit_id)
        return visit

    def list_visits(
        self,
        on_date: Optional[date] = None,
        customer_id: Optional[int] = None,
        status: Optional[str] = None,
    ) -> list[Visit]:
        return self.repo.list_visits(
            self.db, customer_id=customer_id, on_date=on_date, status=status
        )

    def generate_for_date(self, target_date: date) -> int:
        return VisitGenerator(self.db).generate_for_date(target_date)

    def extend_horizons(self, horizon_end: Optional[date] = None) -> int:
        return VisitGenerator(self.db).extend_horizons(horizon_end=horizon_end)

    def _save(self, visit: Visit) -> Visit:
        self.db.commit()
        self.db.refresh(visit)
        return visit

    def start_visit(self, visit_id: int, user_id: str) -> Visit:
        """Mark a visit as in progress"""
        visit = lifecycle.start(self.get_visit(visit_id), user_id)
        logger.info(f"🚐 Visit {visit_id} started by {user_id}")
        return self._save(visit)

    def complete_visit(
        self, visit_id: int, user_id: str, completion_notes: Optional[str] = None
    ) -> Visit:
        """Mark a visit as complete"""
        visit = lifecycle.complete(self.get_visit(visit_id), user_id, completion_notes)
        logger.info(f"✅ Visit {visit_id} completed by {user_id}")
        return self._save(visit)

    def skip_visit(
        self, visit_id: int, user_id: str, reason: str, notes: Optional[str] = None
    ) -> Visit:
        """Skip a visit (customer is still charged)"""
        visit = lifecycle.skip(self.get_visit(visit_id), user_id, reason, notes)
        logger.info(f"⏭️ Visit {visit_id} skipped by {user_id}: {reason}")
        return self._save(visit)

    def unskip_visit(self, visit_id: int) -> Visit:
        """Restore a skipped visit to scheduled"""
        visit = lifecycle.unskip(self.get_visit(visit_id))
        logger.info(f"↩️ Visit {visit_id} restored to scheduled")
        return self._save(visit)
