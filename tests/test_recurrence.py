"""Tests for per-weekday recurrence sequences and next-visit lookups."""

from datetime import date, timedelta
from types import SimpleNamespace

from conftest import TODAY

from fieldroute.domain.scheduling.next_visit import NextVisitCalculator
from fieldroute.domain.scheduling.recurrence import (
    derive_sequences,
    first_on_or_after,
    next_occurrence,
    normalize_dt_start,
    occurrences,
    weekday_of,
)


def rule(by_day, frequency="weekly", dt_start=TODAY, paused=False, window_start="08:00", rule_id=1):
    return SimpleNamespace(
        id=rule_id,
        frequency=frequency,
        by_day=by_day,
        dt_start=dt_start,
        paused=paused,
        window_start=window_start,
        timezone="America/Chicago",
    )


class TestWeekdays:
    def test_sunday_is_zero(self):
        assert weekday_of(date(2026, 10, 18)) == 0
        assert weekday_of(TODAY) == 1
        assert weekday_of(date(2026, 10, 24)) == 6

    def test_first_on_or_after_same_day(self):
        assert first_on_or_after(TODAY, 1) == TODAY

    def test_first_on_or_after_wraps_week(self):
        assert first_on_or_after(TODAY, 0) == date(2026, 10, 25)


class TestDeriveSequences:
    def test_empty_by_day_has_no_sequences(self):
        assert derive_sequences("weekly", [], TODAY) == ()

    def test_each_weekday_anchored_independently(self):
        # Wednesday start: Wednesday anchors this week, Monday next week
        sequences = derive_sequences("biweekly", [1, 3], date(2026, 10, 21))
        anchors = {s.weekday: s.anchor for s in sequences}
        assert anchors == {1: date(2026, 10, 26), 3: date(2026, 10, 21)}
        assert all(s.period_days == 14 for s in sequences)

    def test_one_time_collapses_to_earliest_anchor(self):
        sequences = derive_sequences("one-time", [2, 4], TODAY)
        assert len(sequences) == 1
        assert sequences[0].anchor == date(2026, 10, 20)
        assert not sequences[0].recurring

    def test_normalize_moves_start_to_selected_day(self):
        assert normalize_dt_start("weekly", [1], date(2026, 10, 21)) == date(2026, 10, 26)

    def test_normalize_keeps_start_without_days(self):
        assert normalize_dt_start("weekly", [], date(2026, 10, 21)) == date(2026, 10, 21)


class TestOccurrences:
    def test_weekly_two_days(self):
        dates = occurrences(derive_sequences("weekly", [1, 4], TODAY), TODAY, date(2026, 11, 15))
        assert dates == [
            date(2026, 10, 19),
            date(2026, 10, 22),
            date(2026, 10, 26),
            date(2026, 10, 29),
            date(2026, 11, 2),
            date(2026, 11, 5),
            date(2026, 11, 9),
            date(2026, 11, 12),
        ]

    def test_biweekly_spacing_is_fourteen_days(self):
        dates = occurrences(derive_sequences("biweekly", [1], TODAY), TODAY, date(2026, 12, 31))
        assert dates[0] == TODAY
        assert all((b - a).days == 14 for a, b in zip(dates, dates[1:]))
        assert len(dates) == 6

    def test_biweekly_two_days_keep_their_own_phase(self):
        dates = occurrences(
            derive_sequences("biweekly", [1, 3], date(2026, 10, 21)),
            date(2026, 10, 21),
            date(2026, 11, 20),
        )
        assert dates == [
            date(2026, 10, 21),
            date(2026, 10, 26),
            date(2026, 11, 4),
            date(2026, 11, 9),
            date(2026, 11, 18),
        ]

    def test_anchor_correction(self):
        dates = occurrences(
            derive_sequences("weekly", [1], date(2026, 10, 21)),
            date(2026, 10, 21),
            date(2026, 11, 10),
        )
        assert dates[0] == date(2026, 10, 26)
        assert all(weekday_of(d) == 1 for d in dates)

    def test_start_from_mid_sequence_keeps_phase(self):
        sequences = derive_sequences("biweekly", [1], TODAY)
        dates = occurrences(sequences, date(2026, 10, 27), date(2026, 11, 30))
        assert dates == [date(2026, 11, 2), date(2026, 11, 16), date(2026, 11, 30)]

    def test_horizon_before_start_is_empty(self):
        sequences = derive_sequences("weekly", [1], date(2026, 12, 7))
        assert occurrences(sequences, TODAY, date(2026, 11, 30)) == []

    def test_one_time_past_anchor_yields_nothing(self):
        sequences = derive_sequences("one-time", [1], TODAY)
        assert occurrences(sequences, TODAY + timedelta(days=1), date(2026, 12, 31)) == []


class TestNextOccurrence:
    def test_today_counts_as_next(self):
        assert next_occurrence(derive_sequences("weekly", [1], TODAY), TODAY) == TODAY

    def test_biweekly_off_week(self):
        sequences = derive_sequences("biweekly", [1], TODAY)
        assert next_occurrence(sequences, date(2026, 10, 20)) == date(2026, 11, 2)

    def test_never_before_today_and_monotonic(self):
        sequences = derive_sequences("biweekly", [1, 3, 5], date(2026, 10, 21))
        previous = None
        for offset in range(60):
            today = TODAY + timedelta(days=offset)
            found = next_occurrence(sequences, today)
            assert found >= today
            if previous is not None:
                assert found >= previous
            previous = found

    def test_matches_generated_dates(self):
        sequences = derive_sequences("biweekly", [2, 5], TODAY)
        generated = occurrences(sequences, TODAY, TODAY + timedelta(days=60))
        for offset in range(40):
            today = TODAY + timedelta(days=offset)
            assert next_occurrence(sequences, today) == min(d for d in generated if d >= today)


class TestNextVisitCalculator:
    def test_paused_rule_has_no_next_visit(self):
        assert NextVisitCalculator.for_rule(rule([1], paused=True), TODAY) is None

    def test_empty_by_day_has_no_next_visit(self):
        assert NextVisitCalculator.for_rule(rule([]), TODAY) is None

    def test_customer_takes_earliest_across_rules(self):
        rules = [
            rule([4], rule_id=1),
            rule([2], rule_id=2),
            rule([2], paused=True, rule_id=3),
        ]
        next_visit = NextVisitCalculator.for_customer(rules, TODAY)
        assert next_visit.date == date(2026, 10, 20)
        assert next_visit.schedule_rule_id == 2

    def test_customer_tie_goes_to_earliest_window(self):
        rules = [
            rule([2], window_start="13:00", rule_id=1),
            rule([2], window_start="07:30", rule_id=2),
        ]
        next_visit = NextVisitCalculator.for_customer(rules, TODAY)
        assert next_visit.window_start == "07:30"
        assert next_visit.schedule_rule_id == 2

    def test_customer_without_active_rules(self):
        assert NextVisitCalculator.for_customer([rule([1], paused=True)], TODAY) is None
