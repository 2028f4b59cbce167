"""Next-visit lookups for list views, computed without materializing visits"""

from dataclasses import dataclass
from datetime import date
from typing import Iterable, Optional

from ...models import ScheduleRule
from .recurrence import local_today, next_occurrence, sequences_for_rule


@dataclass(frozen=True)
class NextVisit:
    date: date
    window_start: str
    schedule_rule_id: Optional[int]


class NextVisitCalculator:
    """Pure next-occurrence computation over schedule rules"""

    @staticmethod
    def for_rule(rule: ScheduleRule, today: Optional[date] = None) -> Optional[date]:
        """Next occurrence of a single rule, None when paused or nothing is left"""
        if rule.paused:
            return None
        today = today or local_today(rule.timezone)
        return next_occurrence(sequences_for_rule(rule), today)

    @staticmethod
    def for_customer(
        rules: Iterable[ScheduleRule], today: Optional[date] = None
    ) -> Optional[NextVisit]:
        """
        Earliest next visit across a customer's active rules.

        Ties on date go to the rule with the earliest window start.
        """
        upcoming = []
        for rule in rules:
            next_date = NextVisitCalculator.for_rule(rule, today)
            if next_date is not None:
                upcoming.append(NextVisit(next_date, rule.window_start, rule.id))

        if not upcoming:
            return None
        return min(upcoming, key=lambda v: (v.date, v.window_start))
