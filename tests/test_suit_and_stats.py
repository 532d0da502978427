from __future__ import annotations

import pytest

from scuba_suit.stats import compute_stats, quantile
from scuba_suit.suit import SUIT_LABELS, UserPrefs, suit_for_temp


@pytest.mark.parametrize(
    "temp, expected",
    [
        (30.0, "shorty"),
        (26.0, "shorty"),
        (25.999, "full-3mm"),
        (23.0, "full-3mm"),
        (22.9, "full-5mm"),
        (20.0, "full-5mm"),
        (19.99, "full-7mm"),
        (16.0, "full-7mm"),
        (15.5, "drysuit"),
        (10.0, "drysuit"),
        (-1.5, "drysuit"),
    ],
)
def test_thresholds_are_inclusive_lower_bounds(temp, expected):
    assert suit_for_temp(temp).type == expected


def test_notes_distinguish_the_two_drysuit_bands():
    assert suit_for_temp(12.0).notes == "10–16°C - cold waters, drysuit recommended"
    assert suit_for_temp(9.9).notes == "<10°C - very cold waters, drysuit required"


def test_colder_water_never_gets_a_thinner_suit():
    order = ["shorty", "full-3mm", "full-5mm", "full-7mm", "drysuit"]
    temps = [x / 10 for x in range(0, 320)]
    ranks = [order.index(suit_for_temp(t).type) for t in temps]
    # warmer temps -> rank never increases
    assert all(a >= b for a, b in zip(ranks, ranks[1:]))


def test_runs_cold_shifts_down_a_band():
    assert suit_for_temp(26.5).type == "shorty"
    assert suit_for_temp(26.5, UserPrefs(runs_cold=True)).type == "full-3mm"


def test_long_dives_add_half_a_degree_of_bias():
    assert UserPrefs(dive_minutes=45).bias == 0.0
    assert UserPrefs(dive_minutes=60).bias == -0.5
    assert UserPrefs(runs_cold=True, dive_minutes=60).bias == -1.5
    assert suit_for_temp(20.4, UserPrefs(dive_minutes=60)).type == "full-7mm"


def test_suit_to_dict_includes_label():
    d = suit_for_temp(24.0).to_dict()
    assert d == {"type": "full-3mm", "notes": "23–26°C - warm waters", "label": SUIT_LABELS["full-3mm"]}


def test_quantile_linear_interpolation():
    values = [10, 20, 30, 40, 50]
    assert quantile(values, 0.1) == pytest.approx(14.0)
    assert quantile(values, 0.9) == pytest.approx(46.0)
    assert quantile(values, 0.0) == 10
    assert quantile(values, 1.0) == 50


def test_quantile_is_order_independent_and_single_value():
    assert quantile([50, 10, 40, 20, 30], 0.1) == pytest.approx(14.0)
    assert quantile([7.5], 0.9) == 7.5


def test_quantile_empty_raises():
    with pytest.raises(ValueError):
        quantile([], 0.5)


def test_compute_stats_ordering_sanity():
    values = [18.2, 18.9, 19.4, 20.1, 20.6, 21.0, 21.3]
    stats = compute_stats(values)
    assert stats["min"] <= stats["p10"] <= stats["mean"] <= stats["p90"] <= stats["max"]
    assert stats["mean"] == pytest.approx(sum(values) / len(values))
    assert stats["min"] == 18.2
    assert stats["max"] == 21.3


def test_compute_stats_empty_raises():
    with pytest.raises(ValueError):
        compute_stats([])
