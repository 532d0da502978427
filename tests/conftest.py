from __future__ import annotations

import os
from typing import Dict, List, Optional, Sequence, Tuple

import pytest

# Settings() requires the geocoder key at import time.
os.environ.setdefault("GEOAPIFY_API_KEY", "test-key")

from scuba_suit.cache import TTLCache  # noqa: E402
from scuba_suit.weather_clients import Coordinate, GridSample  # noqa: E402


class TimeController:
    def __init__(self) -> None:
        self.now = 0.0

    def advance(self, seconds: float) -> None:
        self.now += seconds

    def __call__(self) -> float:
        return self.now


class StubMarine:
    """
    Stands in for MarineClient.

    `temps` maps date -> temperature for the plain fetch; nudged fetches
    use the same table. Every call is recorded.
    """

    def __init__(self, temps: Optional[Dict[str, Optional[float]]] = None, default: Optional[float] = None) -> None:
        self.temps = temps or {}
        self.default = default
        self.day_calls: List[Tuple[Coordinate, str]] = []
        self.nudge_calls: List[Tuple[Coordinate, str, int]] = []
        self.grid_calls: List[Tuple[Sequence[Coordinate], str]] = []

    def _lookup(self, date_iso: str) -> Optional[float]:
        return self.temps.get(date_iso, self.default)

    async def fetch_day_average(self, coord: Coordinate, date_iso: str) -> Optional[float]:
        self.day_calls.append((coord, date_iso))
        return self._lookup(date_iso)

    async def fetch_with_nudge(self, coord: Coordinate, date_iso: str, max_attempts: int = 3) -> Optional[float]:
        self.nudge_calls.append((coord, date_iso, max_attempts))
        return self._lookup(date_iso)

    async def fetch_grid(self, coords: Sequence[Coordinate], date_iso: str) -> List[GridSample]:
        self.grid_calls.append((coords, date_iso))
        return [GridSample(coord=c, temp_c=self.default) for c in coords]

    @property
    def total_calls(self) -> int:
        return len(self.day_calls) + len(self.nudge_calls) + len(self.grid_calls)


@pytest.fixture()
def clock() -> TimeController:
    return TimeController()


@pytest.fixture()
def cache(clock: TimeController) -> TTLCache:
    return TTLCache(time_func=clock)
