"""
Visit status state machine

    scheduled → in_progress → completed
    scheduled ↔ skipped

Every transition checks the current status before touching the visit, so a
rejected transition leaves it exactly as it was.
"""

from datetime import datetime
from typing import Optional

from ...models_visit import Visit
from ...shared.exceptions import StateConflictError, ValidationError

SCHEDULED = "scheduled"
IN_PROGRESS = "in_progress"
COMPLETED = "completed"
SKIPPED = "skipped"

TRANSITIONS = {
    SCHEDULED: {IN_PROGRESS, SKIPPED},
    IN_PROGRESS: {COMPLETED},
    SKIPPED: {SCHEDULED},
    COMPLETED: set(),
}


def can_transition(current: str, target: str) -> bool:
    return target in TRANSITIONS.get(current, set())


def ensure_transition(visit: Visit, target: str) -> None:
    if not can_transition(visit.status, target):
        raise StateConflictError(visit.status, target)


def start(visit: Visit, started_by: str, now: Optional[datetime] = None) -> Visit:
    ensure_transition(visit, IN_PROGRESS)
    visit.status = IN_PROGRESS
    visit.started_by = started_by
    visit.started_at = now or datetime.now()
    return visit


def complete(
    visit: Visit,
    completed_by: str,
    completion_notes: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Visit:
    ensure_transition(visit, COMPLETED)
    visit.status = COMPLETED
    visit.completed_by = completed_by
    visit.completed_at = now or datetime.now()
    visit.completion_notes = completion_notes
    return visit


def skip(
    visit: Visit,
    skipped_by: str,
    reason: str,
    notes: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Visit:
    """Mark a scheduled visit as skipped. The visit stays billable."""
    if not reason or not reason.strip():
        raise ValidationError("Skip reason is required", field="reason")
    ensure_transition(visit, SKIPPED)
    visit.status = SKIPPED
    visit.skipped_at = now or datetime.now()
    visit.skipped_by = skipped_by
    visit.skip_reason = reason.strip()
    visit.skip_notes = notes
    return visit


def unskip(visit: Visit) -> Visit:
    """Restore a skipped visit to scheduled, clearing all skip metadata"""
    ensure_transition(visit, SCHEDULED)
    visit.status = SCHEDULED
    visit.skipped_at = None
    visit.skipped_by = None
    visit.skip_reason = None
    visit.skip_notes = None
    return visit
