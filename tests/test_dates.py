from __future__ import annotations

import re

import pytest

from scuba_suit.dates import (
    add_days,
    forecast_dates,
    historical_dates,
    is_valid_iso_date,
    shift_years,
    today_iso,
)


@pytest.mark.parametrize(
    "start, delta, expected",
    [
        ("2025-11-19", 1, "2025-11-20"),
        ("2025-12-31", 1, "2026-01-01"),
        ("2025-03-01", -1, "2025-02-28"),
        ("2024-03-01", -1, "2024-02-29"),
        ("2025-01-01", -1, "2024-12-31"),
        ("2025-11-19", 0, "2025-11-19"),
    ],
)
def test_add_days(start, delta, expected):
    assert add_days(start, delta) == expected


def test_historical_dates_three_years():
    assert historical_dates("2025-11-19", 3) == [
        "2022-11-18", "2022-11-19", "2022-11-20",
        "2023-11-18", "2023-11-19", "2023-11-20",
        "2024-11-18", "2024-11-19", "2024-11-20",
    ]


def test_historical_dates_rolls_into_previous_december():
    assert historical_dates("2025-01-01", 1) == ["2023-12-31", "2024-01-01", "2024-01-02"]


def test_historical_dates_zero_years_is_empty():
    assert historical_dates("2025-11-19", 0) == []


def test_historical_dates_leap_day_clamps_to_feb_28():
    assert historical_dates("2024-02-29", 1) == ["2023-02-27", "2023-02-28", "2023-03-01"]
    # a leap year four years back keeps the 29th
    assert historical_dates("2024-02-29", 4)[0:3] == ["2020-02-28", "2020-02-29", "2020-03-01"]


def test_historical_dates_are_strictly_ascending():
    dates = historical_dates("2024-02-29", 8)
    assert dates == sorted(dates)
    assert len(set(dates)) == len(dates) == 24


def test_shift_years():
    from datetime import date

    assert shift_years(date(2024, 2, 29), 1) == date(2023, 2, 28)
    assert shift_years(date(2025, 6, 15), 2) == date(2023, 6, 15)


def test_forecast_dates_round_trip():
    dates = forecast_dates("2025-11-19", 2)
    assert dates == ["2025-11-17", "2025-11-18", "2025-11-19", "2025-11-20", "2025-11-21"]
    assert dates[2] == "2025-11-19"


def test_forecast_dates_month_boundary():
    assert forecast_dates("2025-12-01", 2) == [
        "2025-11-29", "2025-11-30", "2025-12-01", "2025-12-02", "2025-12-03",
    ]


@pytest.mark.parametrize("radius", [0, 1, 7, 16])
def test_forecast_dates_length_and_midpoint(radius):
    dates = forecast_dates("2024-12-31", radius)
    assert len(dates) == 2 * radius + 1
    assert dates[radius] == "2024-12-31"


@pytest.mark.parametrize(
    "value, ok",
    [
        ("2025-11-19", True),
        ("2024-02-29", True),
        ("2025-02-29", False),
        ("2025-02-30", False),
        ("2025-13-01", False),
        ("2025-1-01", False),
        ("20251119", False),
        ("2025-11-19\n", False),
        ("2025-11-19T00:00", False),
        ("", False),
    ],
)
def test_is_valid_iso_date(value, ok):
    assert is_valid_iso_date(value) is ok


def test_today_iso_shape():
    assert re.fullmatch(r"\d{4}-\d{2}-\d{2}", today_iso())
