"""
Pydantic schemas.

Why:
- Defines the contract of our REST endpoints
- Field names match what the map UI reads (tempC, kind, temp)
"""

from pydantic import BaseModel
from typing import Any, List, Literal, Optional


SuitType = Literal["shorty", "full-3mm", "full-5mm", "full-7mm", "drysuit"]
RowKind = Literal["historical", "selected", "forecast", "no-data"]


class Suit(BaseModel):
    type: SuitType
    notes: Optional[str] = None
    label: str


class DateRow(BaseModel):
    """One day in the comparison table. suit is null iff tempC is null."""
    date: str
    tempC: Optional[float] = None
    suit: Optional[Suit] = None
    kind: RowKind


class Stats(BaseModel):
    mean: float
    min: float
    max: float
    p10: float
    p90: float


class Location(BaseModel):
    lat: float
    lon: float


class PointResponse(BaseModel):
    location: Location
    rows: List[DateRow]
    stats: Stats


class GridPoint(BaseModel):
    lat: float
    lon: float
    temp: Optional[float] = None


class GridResponse(BaseModel):
    points: List[GridPoint]


class GeoLocationOut(BaseModel):
    lat: float
    lon: float
    display: str


class GeocodeResponse(BaseModel):
    locations: List[GeoLocationOut]


class ErrorOut(BaseModel):
    """
    Error body for every non-2xx response.
    code is set for machine-readable cases (NO_DATA).
    """
    error: str
    code: Optional[str] = None
    details: Optional[List[Any]] = None
