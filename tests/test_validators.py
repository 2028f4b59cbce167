"""Tests for shared validation helpers."""

import pytest

from fieldroute.shared.exceptions import ValidationError
from fieldroute.shared.validators import (
    validate_by_day,
    validate_frequency,
    validate_time_of_day,
    validate_timezone,
    validate_window,
)


class TestTimeOfDay:
    def test_zero_pads_single_digit_hour(self):
        assert validate_time_of_day("8:30") == "08:30"

    def test_accepts_padded(self):
        assert validate_time_of_day("23:59") == "23:59"

    @pytest.mark.parametrize("value", ["24:00", "12:60", "noon", "1230", ""])
    def test_rejects_invalid(self, value):
        with pytest.raises(ValidationError) as exc_info:
            validate_time_of_day(value, "windowStart")
        assert exc_info.value.field == "windowStart"


class TestWindow:
    def test_start_before_end(self):
        validate_window("08:00", "12:00")

    def test_empty_window_rejected(self):
        with pytest.raises(ValidationError):
            validate_window("12:00", "12:00")


class TestByDay:
    def test_empty_allowed(self):
        assert validate_by_day([], "weekly") == []

    def test_sorted_unique(self):
        assert validate_by_day([5, 1, 5, 3], "biweekly") == [1, 3, 5]

    @pytest.mark.parametrize("value", [[7], [-1], ["1"], [True], [1.5]])
    def test_rejects_non_weekdays(self, value):
        with pytest.raises(ValidationError):
            validate_by_day(value, "weekly")

    def test_recurring_limited_to_five_days(self):
        with pytest.raises(ValidationError):
            validate_by_day([0, 1, 2, 3, 4, 5], "weekly")

    def test_one_time_not_limited(self):
        assert validate_by_day([0, 1, 2, 3, 4, 5], "one-time") == [0, 1, 2, 3, 4, 5]


class TestOtherFields:
    def test_frequency(self):
        assert validate_frequency("new-start") == "new-start"
        with pytest.raises(ValidationError):
            validate_frequency("daily")

    def test_timezone(self):
        assert validate_timezone("America/Chicago") == "America/Chicago"
        with pytest.raises(ValidationError):
            validate_timezone("Nowhere/Special")

    def test_validation_error_is_value_error(self):
        with pytest.raises(ValueError):
            validate_frequency("daily")
