"""
Scheduling Domain

Recurring schedule rules and the visits generated from them.

- recurrence.py  per-weekday sequence math shared by generation and lookups
- next_visit.py  next occurrence for a rule or a customer
- generator.py   visit generation and two-phase reconciliation
- repository.py  schedule rule / visit database operations
- service.py     rule create, edit, pause, resume, delete
- router.py      /schedule-rules endpoints
"""

from .router import router

__all__ = ["router"]
