"""
Tests for EV estimation
Run with: pytest tests/test_ev_math.py -v
"""

import pytest

from backend.core.bet_types import Direction
from backend.core.ev_math import (
    EVEstimate,
    back_ev_percent,
    commission_factor,
    estimate_ev,
    lay_ev_percent,
    round_dp,
    to_float,
)


class TestBackEV:
    def test_worked_example_with_commission(self):
        # adjusted = 1 + 1.5 * 0.92 = 2.38; 2.38 / 2.2 - 1 = 8.18%
        est = estimate_ev(Direction.BACK, 2.5, 2.2, 100, 8)
        assert est.ev_percent == pytest.approx(8.18)
        assert est.ev_value == pytest.approx(8.18)

    def test_value_uses_full_precision_percent(self):
        # 8.1818...% of 50 = 4.0909 → 4.09
        est = estimate_ev(Direction.BACK, 2.5, 2.2, 50, 8)
        assert est.ev_value == pytest.approx(4.09)

    def test_no_commission_matches_price_ratio(self):
        est = estimate_ev(Direction.BACK, 3.0, 2.5, 10, 0)
        assert est.ev_percent == pytest.approx(20.0)
        assert est.ev_value == pytest.approx(2.0)

    def test_negative_when_price_shortens_past_taken(self):
        est = estimate_ev(Direction.BACK, 2.0, 2.5, 10, 0)
        assert est.ev_percent == pytest.approx(-20.0)
        assert est.ev_value == pytest.approx(-2.0)

    @pytest.mark.parametrize("scale", [0.5, 2, 10, 137.25])
    def test_percent_invariant_to_stake_value_linear(self, scale):
        base = back_ev_percent(3.4, 3.1, 5) / 100 * 20
        est = estimate_ev(Direction.BACK, 3.4, 3.1, 20 * scale, 5)
        assert est.ev_percent == estimate_ev(Direction.BACK, 3.4, 3.1, 20, 5).ev_percent
        assert est.ev_value == pytest.approx(round(base * scale, 2))


class TestLayEV:
    def test_worked_example(self):
        # your 0.25 vs fair 0.2857 → edge -12.5%
        est = estimate_ev(Direction.LAY, 4.0, 3.5, 10, 0)
        assert est.ev_percent == pytest.approx(-12.5)
        assert est.ev_value == pytest.approx(-1.25)

    def test_laying_shorter_than_fair_is_positive(self):
        # lay at 3.0 (33.3%) when fair is 4.0 (25%) → +33.33%
        est = estimate_ev(Direction.LAY, 3.0, 4.0, 10, 0)
        assert est.ev_percent == pytest.approx(33.33)

    def test_commission_discounts_edge(self):
        assert lay_ev_percent(3.0, 4.0, 10) == pytest.approx(lay_ev_percent(3.0, 4.0, 0) * 0.9)

    def test_direction_accepts_string_value(self):
        assert estimate_ev("lay", 4.0, 3.5, 10, 0) == estimate_ev(Direction.LAY, 4.0, 3.5, 10, 0)


class TestUnavailable:
    @pytest.mark.parametrize("odds, reference", [
        (2.5, 1.0),     # reference at floor
        (2.5, 0.0),
        (1.0, 2.2),     # taken odds at floor
        (0.5, 2.2),
        (2.5, None),    # no closing price yet
        (2.5, "abc"),
        (None, 2.2),
    ])
    def test_returns_none(self, odds, reference):
        assert estimate_ev(Direction.BACK, odds, reference, 10, 8) is None
        assert estimate_ev(Direction.LAY, odds, reference, 10, 8) is None


def test_idempotent():
    first = estimate_ev(Direction.BACK, 5.5, 4.8, 12.5, 2)
    second = estimate_ev(Direction.BACK, 5.5, 4.8, 12.5, 2)
    assert first == second


def test_to_dict_uses_column_names():
    assert EVEstimate(1.5, 0.15).to_dict() == {"ev_perc": 1.5, "ev_val": 0.15}


@pytest.mark.parametrize("value, expected", [
    (None, 0.0),
    ("", 0.0),
    ("abc", 0.0),
    ("3.5", 3.5),
    (7, 7.0),
    (float("nan"), 0.0),
    (float("inf"), 0.0),
    (True, 0.0),
])
def test_to_float(value, expected):
    assert to_float(value) == expected


def test_commission_factor():
    assert commission_factor(8) == pytest.approx(0.92)
    assert commission_factor(None) == 1.0


@pytest.mark.parametrize("value, expected", [
    (0.125, 0.13),
    (-0.125, -0.13),
    (2.675, 2.67),   # binary value is 2.67499...
    (9.539, 9.54),
    (-0.001, 0.0),
])
def test_round_dp_ties_away_from_zero(value, expected):
    assert round_dp(value) == expected


def test_round_dp_has_no_negative_zero():
    assert str(round_dp(-0.001)) == "0.0"


def test_ev_value_tie_rounds_up():
    # 50% of 0.25 = 0.125 exactly
    est = estimate_ev(Direction.BACK, 3.0, 2.0, 0.25, 0)
    assert est.ev_percent == 50.0
    assert est.ev_value == 0.13
