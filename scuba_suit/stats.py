from __future__ import annotations

import math
from typing import Dict, Sequence


def quantile(values: Sequence[float], q: float) -> float:
    """
    Quantile by linear interpolation between closest ranks.

    pos = (n - 1) * q; the result sits `rest` of the way from sorted[base]
    to sorted[base + 1], or is sorted[base] when there is no next rank.
    """
    if not values:
        raise ValueError("quantile of empty sequence")
    ordered = sorted(values)
    pos = (len(ordered) - 1) * q
    base = math.floor(pos)
    rest = pos - base
    if base + 1 < len(ordered):
        return ordered[base] + rest * (ordered[base + 1] - ordered[base])
    return ordered[base]


def compute_stats(values: Sequence[float]) -> Dict[str, float]:
    """mean/min/max/p10/p90 over non-null temperatures."""
    if not values:
        raise ValueError("stats need at least one value")
    return {
        "mean": sum(values) / len(values),
        "min": min(values),
        "max": max(values),
        "p10": quantile(values, 0.1),
        "p90": quantile(values, 0.9),
    }
