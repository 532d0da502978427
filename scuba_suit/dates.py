"""
Date helpers for building the SST query windows.

All dates travel as ISO strings (YYYY-MM-DD) because that is what the
marine API takes and what the response rows carry. Arithmetic happens on
datetime.date so month/year/leap-year rollover is handled by the stdlib.
"""

from __future__ import annotations

import re
from datetime import date, datetime, timedelta, timezone
from typing import List


ISO_DATE_RE = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}")


def add_days(date_iso: str, days: int) -> str:
    """Add (or subtract) calendar days to an ISO date."""
    return (date.fromisoformat(date_iso) + timedelta(days=days)).isoformat()


def today_iso() -> str:
    """Current UTC date."""
    return datetime.now(timezone.utc).date().isoformat()


def shift_years(d: date, years_back: int) -> date:
    """
    Move a date back by whole years.

    Feb 29 has no counterpart in a non-leap year; it clamps to Feb 28.
    """
    target_year = d.year - years_back
    try:
        return d.replace(year=target_year)
    except ValueError:
        return d.replace(year=target_year, day=28)


def historical_dates(date_iso: str, years: int) -> List[str]:
    """
    Same three-day calendar window (day before, day of, day after) for each
    of the previous `years` years, oldest year first.

    The anchor is moved back first, then the window is applied, so
    2025-01-01 with years=1 yields 2023-12-31, 2024-01-01, 2024-01-02.
    """
    anchor = date.fromisoformat(date_iso)
    out: List[str] = []
    for year_offset in range(years, 0, -1):
        shifted = shift_years(anchor, year_offset)
        for delta in (-1, 0, 1):
            out.append((shifted + timedelta(days=delta)).isoformat())
    return out


def forecast_dates(date_iso: str, radius_days: int) -> List[str]:
    """Anchor date +/- radius_days, ascending; the anchor sits at index radius_days."""
    return [add_days(date_iso, d) for d in range(-radius_days, radius_days + 1)]


def is_valid_iso_date(value: str) -> bool:
    """Strict YYYY-MM-DD that is also a real calendar date (rejects 2025-02-30)."""
    if not isinstance(value, str) or not ISO_DATE_RE.fullmatch(value):
        return False
    try:
        date.fromisoformat(value)
    except ValueError:
        return False
    return True
