"""
Tests for offset/day parsing and local-day arithmetic.
"""

import datetime

import pytest

from timekeeper.utils import (elapsed_seconds, local_day, local_day_bounds, parse_history_days,
                              parse_offset_minutes, utc_midnight)

UTC = datetime.timezone.utc


class TestParseOffsetMinutes:

    @pytest.mark.parametrize("raw, expected", [
        ("120", 120),
        (120, 120),
        ("-330", -330),
        ("0", 0),
        (90.9, 90),
        ("-90.9", -90),
    ])
    def test_numeric_values(self, raw, expected):
        assert parse_offset_minutes(raw) == expected

    @pytest.mark.parametrize("raw, expected", [
        ("1441", 1440),
        (99999, 1440),
        ("-1441", -1440),
        (-1e9, -1440),
    ])
    def test_out_of_range_is_clamped(self, raw, expected):
        assert parse_offset_minutes(raw) == expected

    @pytest.mark.parametrize("raw", [None, "", "abc", "nan", "inf", "-inf", [], True])
    def test_non_numeric_is_utc(self, raw):
        assert parse_offset_minutes(raw) == 0


class TestParseHistoryDays:

    def test_default_when_missing(self):
        assert parse_history_days(None) == 60
        assert parse_history_days("") == 60

    def test_default_when_no_leading_integer(self):
        assert parse_history_days("soon") == 60
        assert parse_history_days("abc12") == 60
        assert parse_history_days("  ") == 60

    def test_leading_integer_is_read(self):
        assert parse_history_days("7.5") == 7
        assert parse_history_days("12abc") == 12
        assert parse_history_days(" 9") == 9
        assert parse_history_days("+4") == 4

    def test_capped_at_maximum(self):
        assert parse_history_days("1000") == 365
        assert parse_history_days("30", maximum=14) == 14

    def test_negative_is_kept(self):
        assert parse_history_days("-3") == -3

    def test_plain_value(self):
        assert parse_history_days("7") == 7


class TestLocalDay:

    def test_positive_offset_crosses_midnight(self):
        instant = datetime.datetime(2024, 1, 1, 23, 50, tzinfo=UTC)
        assert local_day(instant, 120) == datetime.date(2024, 1, 2)

    def test_negative_offset_goes_back(self):
        instant = datetime.datetime(2024, 1, 1, 2, 0, tzinfo=UTC)
        assert local_day(instant, -180) == datetime.date(2023, 12, 31)

    def test_zero_offset_is_utc_date(self):
        instant = datetime.datetime(2024, 1, 1, 23, 59, tzinfo=UTC)
        assert local_day(instant, 0) == datetime.date(2024, 1, 1)

    def test_bounds_cover_exactly_one_local_day(self):
        start, end = local_day_bounds(datetime.date(2024, 1, 2), 120)
        assert start == datetime.datetime(2024, 1, 1, 22, 0, tzinfo=UTC)
        assert end == datetime.datetime(2024, 1, 2, 22, 0, tzinfo=UTC)
        assert local_day(start, 120) == datetime.date(2024, 1, 2)
        assert local_day(end - datetime.timedelta(microseconds=1), 120) == datetime.date(2024, 1, 2)
        assert local_day(end, 120) == datetime.date(2024, 1, 3)


def test_utc_midnight():
    instant = datetime.datetime(2024, 5, 6, 17, 45, 12, 999, tzinfo=UTC)
    assert utc_midnight(instant) == datetime.datetime(2024, 5, 6, tzinfo=UTC)


def test_elapsed_seconds_truncates_fraction():
    start = datetime.datetime(2024, 1, 1, 9, 0, 0, tzinfo=UTC)
    assert elapsed_seconds(start, start + datetime.timedelta(seconds=1, milliseconds=900)) == 1
    assert elapsed_seconds(start, start + datetime.timedelta(minutes=5)) == 300
