#!/usr/bin/env python3
"""
Unit tests for postfacto/backtesting/duration.py - Date arithmetic
"""

from datetime import date, datetime

import pandas as pd
import pytest

from postfacto.backtesting.duration import calendar_days_between, elapsed_days, parse_timestamp


class TestParseTimestamp:
    """Test timestamp parsing."""

    def test_parses_strings_and_objects(self):
        assert parse_timestamp("2023-01-01") == pd.Timestamp("2023-01-01")
        assert parse_timestamp(datetime(2023, 1, 1, 12)) == pd.Timestamp("2023-01-01 12:00")
        assert parse_timestamp(date(2023, 1, 1)) == pd.Timestamp("2023-01-01")

    def test_unknown_values_are_none(self):
        assert parse_timestamp(None) is None
        assert parse_timestamp("") is None
        assert parse_timestamp("not a date") is None
        assert parse_timestamp(1672531200) is None

    def test_timezone_aware_converted_to_naive_utc(self):
        parsed = parse_timestamp("2023-01-01T05:00:00+05:00")

        assert parsed.tzinfo is None
        assert parsed == pd.Timestamp("2023-01-01 00:00:00")


class TestCalendarDaysBetween:
    """Test whole calendar day differences."""

    def test_date_strings(self):
        assert calendar_days_between("2018-01-01", "2018-01-11") == 10

    def test_datetimes_truncate_to_days(self):
        assert calendar_days_between("2018-01-01T23:00:00", "2018-01-02T01:00:00") == 1
        assert calendar_days_between("2018-01-01T09:00:00", "2018-01-01T17:00:00") == 0

    def test_unknown_side_is_zero(self):
        assert calendar_days_between(None, "2018-01-02") == 0
        assert calendar_days_between("2018-01-02", "") == 0


class TestElapsedDays:
    """Test elapsed day calculation."""

    def test_date_strings(self):
        assert elapsed_days("2018-01-01", "2018-01-11") == 10.0

    def test_intraday_span_is_fractional(self):
        assert elapsed_days("2023-01-01T09:00:00", "2023-01-01T15:00:00") == pytest.approx(0.25)

    def test_multi_day_span_counts_whole_days(self):
        assert elapsed_days("2023-01-01T23:00:00", "2023-01-03T01:00:00") == 1.0

    def test_unknown_side_is_none(self):
        assert elapsed_days(None, "2023-01-01") is None
        assert elapsed_days("2023-01-01", "garbage") is None
