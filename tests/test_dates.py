"""Tests for date normalization and durations."""

from datetime import date

import pytest

from app.core.dates import duration_years, find_date_range, is_open_ended, normalize_date


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("Jan 2020", "2020-01"),
        ("September 2019", "2019-09"),
        ("3/2019", "2019-03"),
        ("2021-07", "2021-07"),
        ("2021", "2021"),
        ("Present", None),
        ("garbage", None),
        (None, None),
    ],
)
def test_normalize_date(raw, expected):
    assert normalize_date(raw) == expected


def test_open_ended_values():
    assert is_open_ended(None)
    assert is_open_ended("Present")
    assert is_open_ended("current")
    assert not is_open_ended("2020-01")


def test_find_date_range():
    assert find_date_range("Engineer, Jan 2020 - Present") == ("2020-01", None, "Jan 2020 - Present")
    assert find_date_range("2018 to 2020")[:2] == ("2018", "2020")
    assert find_date_range("no dates here") == (None, None, None)


def test_duration_years():
    assert duration_years("2020-01", "2022-01") == 2.0
    assert duration_years("2021-07", None, now=date(2022, 7, 15)) == 1.0
    assert duration_years("2022-01", "2020-01") == 0.0
    assert duration_years("", "2020-01") is None
    assert duration_years("soon", "2020-01") is None
