"""
FastAPI entrypoint.

This file focuses on:
- routing and query validation
- mapping service errors to HTTP status codes
- Cache-Control headers that mirror the server-side TTLs
- wiring together cache + clients + service
"""

from __future__ import annotations

import logging

from fastapi import Depends, FastAPI, Query, Request, Response
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from .cache import TTLCache
from .schemas import ErrorOut, GeocodeResponse, GridResponse, PointResponse
from .service import MAX_FORECAST_DAYS, MAX_YEARS, InvalidQuery, NoDataError, SSTService
from .settings import settings
from .weather_clients import Coordinate, GeoapifyClient, GeocodeError, GeocodeTimeout, MarineClient

logging.basicConfig(level=settings.log_level)
logger = logging.getLogger(__name__)

app = FastAPI(title=settings.app_name)

# Process-wide cache and clients (constructed once).
cache = TTLCache()
marine = MarineClient(
    base=settings.marine_api_base,
    timeout_s=settings.upstream_timeout_s,
    user_agent=settings.user_agent,
)
geocoder = GeoapifyClient(
    settings.geoapify_api_key,
    base=settings.geoapify_base,
    timeout_s=settings.upstream_timeout_s,
)
sst_service = SSTService(
    cache,
    marine,
    geocoder,
    max_concurrency=settings.max_concurrency,
    nudge_attempts=settings.nudge_attempts,
    point_ttl_s=settings.point_ttl_s,
    grid_ttl_s=settings.grid_ttl_s,
    geocode_ttl_s=settings.geocode_ttl_s,
)


def get_service() -> SSTService:
    """FastAPI dependency; tests override it with a stubbed service."""
    return sst_service


def error_response(status_code: int, error: str, **extra) -> JSONResponse:
    body = ErrorOut(error=error, **extra).model_dump(exclude_none=True)
    return JSONResponse(status_code=status_code, content=jsonable_encoder(body))


ERROR_RESPONSES = {
    400: {"model": ErrorOut},
    404: {"model": ErrorOut},
    502: {"model": ErrorOut},
}


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    """Malformed query strings are a 400 here, not FastAPI's default 422."""
    return error_response(400, "Invalid parameters", details=jsonable_encoder(exc.errors()))


# -------------------------
# SST APIs
# -------------------------

@app.get("/api/sst/point", response_model=PointResponse, responses=ERROR_RESPONSES)
async def api_sst_point(
    response: Response,
    lat: float = Query(..., ge=-90.0, le=90.0),
    lon: float = Query(..., ge=-180.0, le=180.0),
    date: str = Query(..., pattern=r"^\d{4}-\d{2}-\d{2}$"),
    years: int = Query(7, ge=0, le=MAX_YEARS),
    forecast_days: int = Query(7, alias="forecastDays", ge=0, le=MAX_FORECAST_DAYS),
    service: SSTService = Depends(get_service),
):
    """
    Suit recommendation table for one point:
    - same 3-day window over the previous `years` years
    - the selected date +/- `forecastDays`
    - summary stats over every day that had data
    """
    try:
        payload = await service.get_point_recommendation(Coordinate(lat=lat, lon=lon), date, years, forecast_days)
    except InvalidQuery as e:
        return error_response(400, str(e), details=e.details)
    except NoDataError as e:
        return error_response(404, str(e), code=e.code)
    except Exception:
        logger.exception("Point fetch error for %s,%s on %s (years=%s, forecastDays=%s)", lat, lon, date, years, forecast_days)
        return error_response(502, "Failed to fetch SST data")

    response.headers["Cache-Control"] = f"public, max-age={service.point_ttl_s}"
    return payload


@app.get("/api/sst/grid", response_model=GridResponse, responses=ERROR_RESPONSES)
async def api_sst_grid(
    response: Response,
    bbox: str = Query(..., description="minLon,minLat,maxLon,maxLat"),
    date: str = Query(..., pattern=r"^\d{4}-\d{2}-\d{2}$"),
    step: float = Query(0.5, gt=0),
    service: SSTService = Depends(get_service),
):
    """Heatmap samples over a bounding box (capped at 1000 points)."""
    try:
        payload = await service.get_grid(bbox, date, step)
    except InvalidQuery as e:
        return error_response(400, str(e), details=e.details)
    except Exception:
        logger.exception("Grid fetch error for bbox=%s on %s (step=%s)", bbox, date, step)
        return error_response(502, "Failed to fetch SST data")

    response.headers["Cache-Control"] = f"public, max-age={service.grid_ttl_s}"
    return payload


# -------------------------
# Geocoding
# -------------------------

@app.get("/api/geocode", response_model=GeocodeResponse, responses={**ERROR_RESPONSES, 504: {"model": ErrorOut}})
async def api_geocode(
    response: Response,
    q: str = Query(..., min_length=1, max_length=255),
    service: SSTService = Depends(get_service),
):
    """Place name -> candidate coordinates for the search box."""
    try:
        payload = await service.geocode(q)
    except InvalidQuery as e:
        return error_response(400, str(e), details=e.details)
    except GeocodeTimeout:
        logger.error("Geocoding timeout for query: %s", q)
        return error_response(504, "Geocoding request timed out")
    except GeocodeError as e:
        logger.error("Geocoding error for query %s: %s", q, e)
        return error_response(502, "Failed to geocode location")
    except Exception:
        logger.exception("Geocoding failed for query: %s", q)
        return error_response(502, "Failed to geocode location")

    response.headers["Cache-Control"] = f"public, max-age={service.geocode_ttl_s}"
    return payload


@app.get("/api/health")
def api_health(service: SSTService = Depends(get_service)):
    """Liveness plus cache size for debugging."""
    return {"ok": True, "cache_size": service.cache.size}
