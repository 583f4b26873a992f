"""tests/test_hours.py – open-hours parsing and matching."""
from datetime import date, datetime, time

import pytest

from discovery.core.hours import is_open_now, parse_clock, parse_open_hours, within_custom_hours

DAY = date(2026, 10, 19)


def at(hh: int, mm: int = 0) -> datetime:
    return datetime.combine(DAY, time(hh, mm))


class TestParseClock:
    @pytest.mark.parametrize("text,expected", [
        ("21:30", time(21, 30)),
        ("9:05", time(9, 5)),
        ("9:30 PM", time(21, 30)),
        ("9:30pm", time(21, 30)),
        ("12:00 AM", time(0, 0)),
        ("6 PM", time(18, 0)),
        ("  10:00   am ", time(10, 0)),
    ])
    def test_formats(self, text, expected):
        assert parse_clock(text, DAY) == datetime.combine(DAY, expected)

    @pytest.mark.parametrize("text", [None, "", "noon", "25:00", "9.30"])
    def test_unparseable(self, text):
        assert parse_clock(text, DAY) is None


class TestParseOpenHours:
    def test_hyphen_and_en_dash(self):
        assert parse_open_hours("10:00 AM - 9:00 PM", DAY) == (at(10), at(21))
        assert parse_open_hours("10:00–21:00", DAY) == (at(10), at(21))

    @pytest.mark.parametrize("hours", [None, "", "Open daily", "10:00 AM -", "- 9 PM", "10:00 AM - late"])
    def test_unparseable(self, hours):
        assert parse_open_hours(hours, DAY) is None


class TestOpenNow:
    def test_inside_window(self):
        assert is_open_now("10:00 AM - 9:00 PM", at(12))

    def test_boundaries_are_exclusive(self):
        assert not is_open_now("10:00 AM - 9:00 PM", at(10))
        assert not is_open_now("10:00 AM - 9:00 PM", at(21))

    def test_overnight_never_matches(self):
        assert not is_open_now("6 PM - 2 AM", at(23))

    def test_missing_hours(self):
        assert not is_open_now(None, at(12))


class TestCustomWindow:
    HOURS = "10:00 AM - 6:00 PM"

    def test_overlapping_window(self):
        assert within_custom_hours(self.HOURS, "17:00", "20:00", at(12))

    def test_disjoint_window(self):
        assert not within_custom_hours(self.HOURS, "19:00", "22:00", at(12))

    def test_inverted_window_rejected(self):
        assert not within_custom_hours(self.HOURS, "14:00", "11:00", at(12))

    def test_only_from(self):
        assert within_custom_hours(self.HOURS, "5:00 PM", None, at(12))
        assert not within_custom_hours(self.HOURS, "7:00 PM", None, at(12))

    def test_only_to(self):
        assert within_custom_hours(self.HOURS, None, "11:00", at(12))
        assert not within_custom_hours(self.HOURS, None, "9:00", at(12))

    def test_no_bounds_or_bad_hours(self):
        assert not within_custom_hours(self.HOURS, None, None, at(12))
        assert not within_custom_hours("whenever", "10:00", "12:00", at(12))
        assert not within_custom_hours(self.HOURS, "soon", "12:00", at(12))
