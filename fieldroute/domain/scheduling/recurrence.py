"""
Recurrence math for schedule rules

A rule with several weekdays is modelled as one independent sequence per
weekday, each anchored at the first date on or after dt_start that falls on
that weekday. Generation and next-visit lookups both go through
``derive_sequences`` so they always agree on which dates exist.
"""

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Iterable, Optional, Sequence
from zoneinfo import ZoneInfo

PERIOD_DAYS = {
    "weekly": 7,
    "biweekly": 14,
}

DAY_NAMES = ["Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"]


@dataclass(frozen=True)
class RecurrenceSequence:
    weekday: int  # 0=Sunday
    anchor: date
    period_days: Optional[int]  # None for a single, non-recurring visit

    @property
    def recurring(self) -> bool:
        return self.period_days is not None


def weekday_of(day: date) -> int:
    """Weekday with Sunday=0 .. Saturday=6"""
    return (day.weekday() + 1) % 7


def first_on_or_after(start: date, weekday: int) -> date:
    return start + timedelta(days=(weekday - weekday_of(start)) % 7)


def local_today(timezone: Optional[str] = None) -> date:
    if timezone:
        return datetime.now(ZoneInfo(timezone)).date()
    return date.today()


def derive_sequences(
    frequency: str, by_day: Iterable[int], dt_start: date
) -> tuple[RecurrenceSequence, ...]:
    """
    Derive the (weekday, anchor, period) sequences for a rule.

    one-time and new-start rules collapse to the single earliest anchor.
    An empty by_day yields no sequences.
    """
    days = sorted(set(by_day or []))
    if not days:
        return ()

    period = PERIOD_DAYS.get(frequency)
    sequences = [RecurrenceSequence(d, first_on_or_after(dt_start, d), period) for d in days]

    if period is None:
        return (min(sequences, key=lambda s: s.anchor),)
    return tuple(sequences)


def sequences_for_rule(rule) -> tuple[RecurrenceSequence, ...]:
    return derive_sequences(rule.frequency, rule.by_day, rule.dt_start)


def normalize_dt_start(frequency: str, by_day: Iterable[int], dt_start: date) -> date:
    """Move dt_start forward to the earliest date that falls on one of the rule's days"""
    sequences = derive_sequences(frequency, by_day, dt_start)
    if not sequences:
        return dt_start
    return min(s.anchor for s in sequences)


def _first_at_or_after(sequence: RecurrenceSequence, day: date) -> Optional[date]:
    if sequence.anchor >= day:
        return sequence.anchor
    if not sequence.recurring:
        return None
    steps = -(-(day - sequence.anchor).days // sequence.period_days)
    return sequence.anchor + timedelta(days=steps * sequence.period_days)


def occurrences(
    sequences: Sequence[RecurrenceSequence], start_from: date, horizon_end: date
) -> list[date]:
    """All sequence dates within [start_from, horizon_end], sorted and unique"""
    dates = set()
    for sequence in sequences:
        current = _first_at_or_after(sequence, start_from)
        while current is not None and current <= horizon_end:
            dates.add(current)
            if not sequence.recurring:
                break
            current += timedelta(days=sequence.period_days)
    return sorted(dates)


def next_occurrence(sequences: Sequence[RecurrenceSequence], today: date) -> Optional[date]:
    """Earliest sequence date on or after today, using each weekday's own anchor"""
    candidates = [_first_at_or_after(s, today) for s in sequences]
    return min((d for d in candidates if d is not None), default=None)
