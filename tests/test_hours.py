"""Tests for opening hours transformation, validation and display."""
from datetime import datetime

from enrichment.hours import (
    format_opening_hours,
    is_open_now,
    transform_places_hours,
    validate_opening_hours,
)

# Friday 23:00 until Saturday 02:00, Monday 09:00-17:00.
GOOGLE_HOURS = {
    "open_now": False,
    "periods": [
        {"open": {"day": 5, "time": "2300"}, "close": {"day": 6, "time": "0200"}},
        {"open": {"day": 1, "time": "0900"}, "close": {"day": 1, "time": "1700"}},
    ],
}


class TestTransform:
    def test_overnight_and_closed_days(self):
        schedule = transform_places_hours(GOOGLE_HOURS)
        assert schedule["friday"] == [{"open": "23:00", "close": "02:00", "closes_next_day": True}]
        assert schedule["monday"] == [{"open": "09:00", "close": "17:00"}]
        assert schedule["sunday"] == "closed"
        assert schedule["saturday"] == "closed"

    def test_always_open(self):
        assert transform_places_hours({"periods": []}) == {"always_open": True}
        assert transform_places_hours({"periods": [{"open": {"day": 0, "time": "0000"}}]}) == {
            "always_open": True
        }

    def test_missing_input(self):
        assert transform_places_hours(None) is None
        assert transform_places_hours({}) is None

    def test_periods_sorted_and_bad_times_zeroed(self):
        schedule = transform_places_hours({"periods": [
            {"open": {"day": 2, "time": "1800"}, "close": {"day": 2, "time": "2200"}},
            {"open": {"day": 2, "time": "1000"}, "close": {"day": 2, "time": "9999"}},
        ]})
        assert [r["open"] for r in schedule["tuesday"]] == ["10:00", "18:00"]
        assert schedule["tuesday"][0]["close"] == "00:00"


class TestValidate:
    def test_valid_schedule(self):
        assert validate_opening_hours(transform_places_hours(GOOGLE_HOURS))
        assert validate_opening_hours({"always_open": True})

    def test_close_before_open(self):
        assert not validate_opening_hours({"monday": [{"open": "17:00", "close": "09:00"}]})

    def test_overlap(self):
        assert not validate_opening_hours({"monday": [
            {"open": "09:00", "close": "13:00"},
            {"open": "12:00", "close": "17:00"},
        ]})

    def test_malformed_time(self):
        assert not validate_opening_hours({"monday": [{"open": "9am", "close": "17:00"}]})


class TestIsOpenNow:
    schedule = transform_places_hours(GOOGLE_HOURS)

    def test_friday_night_range_spills_into_saturday(self):
        assert is_open_now(self.schedule, datetime(2026, 3, 13, 23, 30))  # Friday
        assert is_open_now(self.schedule, datetime(2026, 3, 14, 1, 0))  # Saturday
        assert not is_open_now(self.schedule, datetime(2026, 3, 14, 2, 0))

    def test_daytime_range(self):
        assert is_open_now(self.schedule, datetime(2026, 3, 16, 12, 0))  # Monday
        assert not is_open_now(self.schedule, datetime(2026, 3, 16, 17, 0))
        assert not is_open_now(self.schedule, datetime(2026, 3, 15, 12, 0))  # Sunday

    def test_edges(self):
        assert is_open_now({"always_open": True}, datetime(2026, 3, 15, 4, 0))
        assert not is_open_now(None, datetime(2026, 3, 15, 4, 0))


class TestFormat:
    def test_lines(self):
        lines = format_opening_hours(transform_places_hours(GOOGLE_HOURS))
        assert lines[0] == "Sunday: Closed"
        assert lines[1] == "Monday: 9:00 AM – 5:00 PM"
        assert lines[5] == "Friday: 11:00 PM – 2:00 AM (next day)"

    def test_special_cases(self):
        assert format_opening_hours({"always_open": True}) == ["Open 24/7"]
        assert format_opening_hours(None) == ["Hours not available"]
