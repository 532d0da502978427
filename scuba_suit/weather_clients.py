"""
Upstream clients.

We keep API logic away from the FastAPI routes:
- easier to stub in tests (pass an httpx transport)
- the orchestrator never sees raw upstream JSON shapes
- one place for timeouts and User-Agent handling
"""

from __future__ import annotations

import asyncio
import logging
import re
from dataclasses import dataclass, replace
from typing import Any, Dict, List, Optional, Sequence

import httpx


logger = logging.getLogger(__name__)

# ~2 km at the equator
NUDGE_DEG = 0.02


@dataclass(frozen=True)
class Coordinate:
    """A point on the globe, degrees. Never mutated; nudges build new ones."""
    lat: float
    lon: float

    def nudged(self, dlat: float = 0.0, dlon: float = 0.0) -> "Coordinate":
        lon = self.lon + dlon
        # keep longitude inside [-180, 180] when nudging across the antimeridian
        if lon > 180.0:
            lon -= 360.0
        elif lon < -180.0:
            lon += 360.0
        return replace(self, lat=self.lat + dlat, lon=lon)


@dataclass(frozen=True)
class GridSample:
    """Normalized per-coordinate result shared by single and batch fetches."""
    coord: Coordinate
    temp_c: Optional[float]


@dataclass(frozen=True)
class GeoLocation:
    lat: float
    lon: float
    display: str


class GeocodeError(RuntimeError):
    """Raised when the geocoder cannot be reached or answers with an error."""
    pass


class GeocodeTimeout(GeocodeError):
    pass


def _day_average(payload: Any) -> Optional[float]:
    """
    Average of the hourly SST series for one location.

    Null readings mark ice, land or no coverage and are dropped.
    Returns None when nothing valid is left.
    """
    if not isinstance(payload, dict):
        return None
    hourly = payload.get("hourly")
    if not isinstance(hourly, dict):
        return None
    temps = hourly.get("sea_surface_temperature")
    if not isinstance(temps, list):
        return None
    valid = [float(t) for t in temps if isinstance(t, (int, float)) and not isinstance(t, bool)]
    if not valid:
        return None
    return sum(valid) / len(valid)


class MarineClient:
    """
    Open-Meteo Marine API wrapper for sea-surface temperature.

    Endpoint used:
        /v1/marine?latitude=..&longitude=..&hourly=sea_surface_temperature
                  &start_date=D&end_date=D&timezone=auto&cell_selection=sea

    Contract: every fetch returns a temperature or None. None covers HTTP
    errors, timeouts, bad JSON, empty series and land/ice cells alike;
    nothing is raised to the caller.
    """

    def __init__(
        self,
        base: str = "https://marine-api.open-meteo.com/v1/marine",
        timeout_s: float = 8.0,
        user_agent: str = "ScubaSuitRecommender/1.0",
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base = base
        self.timeout_s = timeout_s
        self.user_agent = user_agent
        self.transport = transport

    def _params(self, coords: Sequence[Coordinate], date_iso: str) -> Dict[str, str]:
        return {
            "latitude": ",".join(f"{c.lat:.4f}" for c in coords),
            "longitude": ",".join(f"{c.lon:.4f}" for c in coords),
            "hourly": "sea_surface_temperature",
            "start_date": date_iso,
            "end_date": date_iso,
            "timezone": "auto",
            # bias toward ocean cells near coastlines
            "cell_selection": "sea",
        }

    async def _get_json(self, params: Dict[str, str], context: str) -> Optional[Any]:
        """GET the marine endpoint; None on any failure (already logged)."""
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout_s,
                headers={"User-Agent": self.user_agent},
                transport=self.transport,
            ) as client:
                r = await asyncio.wait_for(client.get(self.base, params=params), timeout=self.timeout_s)
        except asyncio.TimeoutError:
            logger.warning("Open-Meteo timed out after %.1fs for %s", self.timeout_s, context)
            return None
        except httpx.HTTPError as exc:
            logger.warning("Open-Meteo request failed for %s: %s", context, exc)
            return None

        if r.status_code != 200:
            logger.warning("Open-Meteo error for %s: %s", context, r.status_code)
            return None

        try:
            return r.json()
        except ValueError:
            logger.warning("Open-Meteo returned invalid JSON for %s", context)
            return None

    async def fetch_day_average(self, coord: Coordinate, date_iso: str) -> Optional[float]:
        """Daily mean SST at one coordinate, or None."""
        context = f"{coord.lat:.4f},{coord.lon:.4f} on {date_iso}"
        data = await self._get_json(self._params([coord], date_iso), context)
        if data is None:
            return None
        # a single location may still come back wrapped
        if isinstance(data, list):
            data = data[0] if data else None
        elif isinstance(data, dict) and "results" in data:
            results = data.get("results")
            data = results[0] if isinstance(results, list) and results else None
        return _day_average(data)

    async def fetch_grid(self, coords: Sequence[Coordinate], date_iso: str) -> List[GridSample]:
        """
        Batch variant: one upstream call for many coordinates.

        A batch-level failure resolves every coordinate to None rather than
        failing the request. Missing trailing results also resolve to None.
        """
        if not coords:
            return []

        data = await self._get_json(self._params(coords, date_iso), f"grid of {len(coords)} on {date_iso}")
        if data is None:
            return [GridSample(coord=c, temp_c=None) for c in coords]

        # Open-Meteo answers a multi-location request with a list (or a
        # {"results": [...]} envelope); a single location comes back bare.
        if isinstance(data, list):
            results = data
        elif isinstance(data, dict) and "results" in data:
            results = data.get("results")
            if not isinstance(results, list):
                results = []
        else:
            results = [data]

        if len(results) != len(coords):
            logger.warning("Open-Meteo grid returned %d results for %d coordinates", len(results), len(coords))

        out: List[GridSample] = []
        for i, c in enumerate(coords):
            res = results[i] if i < len(results) else None
            out.append(GridSample(coord=c, temp_c=_day_average(res)))
        return out

    async def fetch_with_nudge(self, coord: Coordinate, date_iso: str, max_attempts: int = 3) -> Optional[float]:
        """
        Like fetch_day_average, but when the point has no data (a coastal
        click landing on a land/ice cell) retry a few km away: east, west,
        then north. First non-null reading wins.
        """
        temp = await self.fetch_day_average(coord, date_iso)
        if temp is not None:
            return temp

        attempts = [
            coord.nudged(dlon=NUDGE_DEG),
            coord.nudged(dlon=-NUDGE_DEG),
            coord.nudged(dlat=NUDGE_DEG),
        ]
        for candidate in attempts[:max(0, max_attempts)]:
            temp = await self.fetch_day_average(candidate, date_iso)
            if temp is not None:
                logger.debug("Nudged %s to %s for %s", coord, candidate, date_iso)
                return temp

        return None


class GeoapifyClient:
    """
    Geoapify forward geocoding wrapper.

    Endpoint used:
        /v1/geocode/search?text=...&limit=5&format=json&apiKey=KEY

    A "lat,lon" query is answered locally without an upstream call.
    """

    def __init__(
        self,
        api_key: str,
        base: str = "https://api.geoapify.com/v1/geocode/search",
        timeout_s: float = 8.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.base = base
        self.timeout_s = timeout_s
        self.transport = transport

    async def search(self, query: str) -> List[GeoLocation]:
        """Resolve a place name into up to five candidate locations."""
        raw = query.strip().strip("'\"")

        # ---------------------------------------------------------------------
        # Coordinate detection: "lat,lon" (optional whitespace)
        # ---------------------------------------------------------------------
        coord_match = re.fullmatch(
            r"\s*(-?\d+(?:\.\d+)?)\s*,\s*(-?\d+(?:\.\d+)?)\s*",
            raw,
        )
        if coord_match:
            lat = float(coord_match.group(1))
            lon = float(coord_match.group(2))
            if -90.0 <= lat <= 90.0 and -180.0 <= lon <= 180.0:
                return [GeoLocation(lat=lat, lon=lon, display=f"{lat:.4f}, {lon:.4f}")]

        # ---------------------------------------------------------------------
        # Default: place / city search ("Cozumel", "Monterey, CA")
        # ---------------------------------------------------------------------
        params = {"text": raw, "limit": 5, "format": "json", "apiKey": self.api_key}
        try:
            async with httpx.AsyncClient(timeout=self.timeout_s, transport=self.transport) as client:
                r = await client.get(self.base, params=params)
        except httpx.TimeoutException as exc:
            raise GeocodeTimeout("Geocoding request timed out") from exc
        except httpx.HTTPError as exc:
            raise GeocodeError(f"Geocoding request failed: {exc}") from exc

        if r.status_code != 200:
            logger.error("Geoapify returned %s: %s", r.status_code, r.text)
            raise GeocodeError(f"Geocoding service unavailable ({r.status_code})")

        try:
            data = r.json()
        except ValueError as exc:
            raise GeocodeError("Geocoding service returned invalid JSON") from exc

        results = (data.get("results") if isinstance(data, dict) else None) or []
        out: List[GeoLocation] = []
        for res in results:
            if not isinstance(res, dict):
                continue
            if res.get("lat") is None or res.get("lon") is None:
                continue
            out.append(GeoLocation(
                lat=float(res["lat"]),
                lon=float(res["lon"]),
                display=res.get("formatted", raw),
            ))
        return out
