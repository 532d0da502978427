"""
SST aggregation service.

Why keep this separate from main.py?
- main.py stays readable (routing + request/response)
- the read-through cache and fan-out logic can be tested with a stub client
- central place for validations (dates, ranges, bbox, grid size)
"""

from __future__ import annotations

import asyncio
import logging
import math
import re
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple

from .cache import TTLCache
from .dates import forecast_dates, historical_dates, is_valid_iso_date
from .stats import compute_stats
from .suit import UserPrefs, suit_for_temp
from .weather_clients import Coordinate, GeoapifyClient, MarineClient


logger = logging.getLogger(__name__)

MAX_YEARS = 20
# Open-Meteo marine forecasts reach 16 days out
MAX_FORECAST_DAYS = 16
MAX_GRID_POINTS = 1000
MIN_GRID_STEP = 0.0001

BBOX_RE = re.compile(r"-?\d+\.?\d*,-?\d+\.?\d*,-?\d+\.?\d*,-?\d+\.?\d*")

NO_DATA_MESSAGE = (
    "No ocean temperature data available for this location. "
    "Try clicking on ocean areas or searching for coastal cities."
)


class SSTError(RuntimeError):
    """Base for errors that cross the service boundary."""
    pass


class InvalidQuery(SSTError):
    """Rejected before any cache lookup or upstream call. Never cached."""

    def __init__(self, message: str, details: Optional[List[str]] = None):
        super().__init__(message)
        self.details = details or []


class NoDataError(SSTError):
    """Well-formed request, but not a single valid temperature came back."""
    code = "NO_DATA"

    def __init__(self, message: str = NO_DATA_MESSAGE):
        super().__init__(message)


def point_cache_key(coord: Coordinate, date_iso: str, years: int, forecast_days: int) -> str:
    return f"point:{coord.lat:.3f}:{coord.lon:.3f}:{date_iso}:{years}:{forecast_days}"


def grid_cache_key(bbox: str, date_iso: str, step: float) -> str:
    return f"grid:{bbox}:{date_iso}:{step}"


def parse_bbox(bbox: str) -> Tuple[float, float, float, float]:
    """'minLon,minLat,maxLon,maxLat' -> floats, range-checked."""
    if not BBOX_RE.fullmatch(bbox or ""):
        raise InvalidQuery("Invalid parameters", ["bbox must be 'minLon,minLat,maxLon,maxLat'"])
    min_lon, min_lat, max_lon, max_lat = (float(x) for x in bbox.split(","))

    problems = []
    if not (-180.0 <= min_lon <= 180.0 and -180.0 <= max_lon <= 180.0):
        problems.append("bbox longitudes must be between -180 and 180")
    if not (-90.0 <= min_lat <= 90.0 and -90.0 <= max_lat <= 90.0):
        problems.append("bbox latitudes must be between -90 and 90")
    if min_lon > max_lon or min_lat > max_lat:
        problems.append("bbox minimums must not exceed maximums")
    if problems:
        raise InvalidQuery("Invalid parameters", problems)
    return min_lon, min_lat, max_lon, max_lat


def grid_coordinates(bbox: Tuple[float, float, float, float], step: float) -> List[Coordinate]:
    """
    Lattice over the bbox, row by row from the south-west corner.

    Each step is rounded to 4 decimals so float drift does not add or drop
    an edge row. Raises InvalidQuery when the lattice would exceed
    MAX_GRID_POINTS, before building it.
    """
    min_lon, min_lat, max_lon, max_lat = bbox
    # below the rounding resolution a step would never advance
    if not step >= MIN_GRID_STEP or math.isinf(step):
        raise InvalidQuery("Invalid parameters", [f"step must be a number >= {MIN_GRID_STEP}"])

    # rounding can shift the lattice by at most one row/column
    rows = math.floor((max_lat - min_lat) / step) + 1
    cols = math.floor((max_lon - min_lon) / step) + 1
    if max(rows - 1, 1) * max(cols - 1, 1) > MAX_GRID_POINTS:
        raise InvalidQuery("Grid too large", ["Reduce zoom level or increase step size"])

    coords: List[Coordinate] = []
    lat = min_lat
    while lat <= max_lat:
        lon = min_lon
        while lon <= max_lon:
            coords.append(Coordinate(lat=lat, lon=lon))
            lon = round(lon + step, 4)
        lat = round(lat + step, 4)

    if len(coords) > MAX_GRID_POINTS:
        raise InvalidQuery("Grid too large", ["Reduce zoom level or increase step size"])
    return coords


def make_row(date_iso: str, temp_c: Optional[float], kind: str, prefs: Optional[UserPrefs] = None) -> Dict[str, Any]:
    """One DateRow; suit is None exactly when the temperature is."""
    suit = suit_for_temp(temp_c, prefs) if temp_c is not None else None
    return {
        "date": date_iso,
        "tempC": temp_c,
        "suit": suit.to_dict() if suit else None,
        "kind": kind,
    }


class SSTService:
    """
    Read-through cache in front of the marine API.

    The cache and clients are injected so tests can hand in a fresh cache
    and a stub client per test.
    """

    def __init__(
        self,
        cache: TTLCache,
        marine: MarineClient,
        geocoder: Optional[GeoapifyClient] = None,
        *,
        max_concurrency: int = 8,
        nudge_attempts: int = 3,
        point_ttl_s: int = 1800,
        grid_ttl_s: int = 900,
        geocode_ttl_s: int = 86400,
    ):
        self.cache = cache
        self.marine = marine
        self.geocoder = geocoder
        self.max_concurrency = max_concurrency
        self.nudge_attempts = nudge_attempts
        self.point_ttl_s = point_ttl_s
        self.grid_ttl_s = grid_ttl_s
        self.geocode_ttl_s = geocode_ttl_s

    # -------------------------
    # Point recommendation
    # -------------------------

    async def get_point_recommendation(
        self,
        coord: Coordinate,
        anchor_date: str,
        years: int = 7,
        forecast_days: int = 7,
    ) -> Dict[str, Any]:
        """
        Compose {location, rows, stats} for one coordinate and anchor date.

        - historical rows: same 3-day window in each of the last `years` years,
          plain fetch, missing data allowed
        - forecast rows: anchor +/- forecast_days, nudged fetch; the anchor
          itself is the "selected" row
        - stats over every non-null temperature; none at all -> NoDataError
        Only successes are cached.
        """
        self.validate_point_query(coord, anchor_date, years, forecast_days)

        key = point_cache_key(coord, anchor_date, years, forecast_days)
        cached = self.cache.get(key)
        if cached is not None:
            logger.debug("Cache hit %s", key)
            return cached
        logger.debug("Cache miss %s", key)

        hist_dates = historical_dates(anchor_date, years)
        fc_dates = forecast_dates(anchor_date, forecast_days)

        sem = asyncio.Semaphore(self.max_concurrency)

        async def bounded(fn: Callable[..., Awaitable[Optional[float]]], *args: Any) -> Optional[float]:
            async with sem:
                return await fn(*args)

        hist_jobs = [bounded(self.marine.fetch_day_average, coord, d) for d in hist_dates]
        fc_jobs = [bounded(self.marine.fetch_with_nudge, coord, d, self.nudge_attempts) for d in fc_dates]
        temps = await asyncio.gather(*hist_jobs, *fc_jobs)
        hist_temps = temps[:len(hist_dates)]
        fc_temps = temps[len(hist_dates):]

        historical_rows = sorted(
            (make_row(d, t, "historical") for d, t in zip(hist_dates, hist_temps)),
            key=lambda row: row["date"],
        )
        forecast_rows = [
            make_row(d, t, "selected" if d == anchor_date else "forecast")
            for d, t in zip(fc_dates, fc_temps)
        ]
        rows = historical_rows + forecast_rows

        valid = [row["tempC"] for row in rows if row["tempC"] is not None]
        if not valid:
            logger.info("No SST data for %.3f,%.3f around %s", coord.lat, coord.lon, anchor_date)
            raise NoDataError()

        payload = {
            "location": {"lat": coord.lat, "lon": coord.lon},
            "rows": rows,
            "stats": compute_stats(valid),
        }
        self.cache.set(key, payload, self.point_ttl_s)
        return payload

    @staticmethod
    def validate_point_query(coord: Coordinate, anchor_date: str, years: int, forecast_days: int) -> None:
        problems = []
        if not is_valid_iso_date(anchor_date):
            problems.append("date must be a real calendar date in YYYY-MM-DD format")
        if not (-90.0 <= coord.lat <= 90.0):
            problems.append("lat must be between -90 and 90")
        if not (-180.0 <= coord.lon <= 180.0):
            problems.append("lon must be between -180 and 180")
        if not (0 <= years <= MAX_YEARS):
            problems.append(f"years must be between 0 and {MAX_YEARS}")
        if not (0 <= forecast_days <= MAX_FORECAST_DAYS):
            problems.append(f"forecastDays must be between 0 and {MAX_FORECAST_DAYS}")
        if problems:
            raise InvalidQuery("Invalid parameters", problems)

    # -------------------------
    # Grid (heatmap) sampling
    # -------------------------

    async def get_grid(self, bbox: str, date_iso: str, step: float = 0.5) -> Dict[str, Any]:
        """Batch SST over a bbox lattice. No nudging; gaps stay None."""
        if not is_valid_iso_date(date_iso):
            raise InvalidQuery("Invalid parameters", ["date must be a real calendar date in YYYY-MM-DD format"])
        coords = grid_coordinates(parse_bbox(bbox), step)

        key = grid_cache_key(bbox, date_iso, step)
        cached = self.cache.get(key)
        if cached is not None:
            logger.debug("Cache hit %s", key)
            return cached

        samples = await self.marine.fetch_grid(coords, date_iso)
        payload = {
            "points": [
                {"lat": s.coord.lat, "lon": s.coord.lon, "temp": s.temp_c}
                for s in samples
            ]
        }
        self.cache.set(key, payload, self.grid_ttl_s)
        return payload

    # -------------------------
    # Geocoding pass-through
    # -------------------------

    async def geocode(self, query: str) -> Dict[str, Any]:
        q = (query or "").strip()
        if not q:
            raise InvalidQuery("Missing query parameter", ["q must not be empty"])
        if self.geocoder is None:
            raise SSTError("Geocoding is not configured")

        key = f"geocode:{q.lower()}"
        cached = self.cache.get(key)
        if cached is not None:
            return cached

        locations = await self.geocoder.search(q)
        payload = {
            "locations": [
                {"lat": loc.lat, "lon": loc.lon, "display": loc.display}
                for loc in locations
            ]
        }
        self.cache.set(key, payload, self.geocode_ttl_s)
        return payload
