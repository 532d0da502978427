"""
Wetsuit recommendation from sea-surface temperature.

Thresholds are scuba-oriented and conservative. They are inclusive lower
bounds checked warmest first, applied to the temperature after the
preference bias.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple


SUIT_LABELS: Dict[str, str] = {
    "shorty": "Shorty (1-3mm)",
    "full-3mm": "Full Wetsuit (3mm)",
    "full-5mm": "Full Wetsuit (5mm)",
    "full-7mm": "Full Wetsuit (7mm)",
    "drysuit": "Drysuit",
}

# (lower bound, type, notes)
THRESHOLDS: List[Tuple[float, str, str]] = [
    (26.0, "shorty", "≥26°C - warm tropical waters"),
    (23.0, "full-3mm", "23–26°C - warm waters"),
    (20.0, "full-5mm", "20–23°C - temperate waters"),
    (16.0, "full-7mm", "16–20°C - cold waters, add hood/gloves"),
    (10.0, "drysuit", "10–16°C - cold waters, drysuit recommended"),
]
COLDEST = ("drysuit", "<10°C - very cold waters, drysuit required")


@dataclass(frozen=True)
class UserPrefs:
    """Optional diver preferences that shift the recommendation colder."""
    runs_cold: bool = False
    dive_minutes: Optional[int] = None

    @property
    def bias(self) -> float:
        bias = -1.0 if self.runs_cold else 0.0
        if self.dive_minutes is not None and self.dive_minutes > 45:
            bias -= 0.5
        return bias


@dataclass(frozen=True)
class Suit:
    type: str
    notes: Optional[str] = None

    @property
    def label(self) -> str:
        return SUIT_LABELS[self.type]

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type, "notes": self.notes, "label": self.label}


def suit_for_temp(temp_c: float, prefs: Optional[UserPrefs] = None) -> Suit:
    """Map a temperature in Celsius to a suit; total over all real inputs."""
    adjusted = temp_c + (prefs.bias if prefs else 0.0)
    for lower, suit_type, notes in THRESHOLDS:
        if adjusted >= lower:
            return Suit(type=suit_type, notes=notes)
    return Suit(type=COLDEST[0], notes=COLDEST[1])
