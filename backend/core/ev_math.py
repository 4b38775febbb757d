"""Expected-value mathematics for decimal-odds exchange bets.

Every function here is **pure**: no I/O, no logging, no side effects.

EV compares the price we took against a reference price, normally the
market's closing price (BSP).  The reference is treated as the fair price.

Back bets
---------
Commission is charged on winnings only, so the effective payout multiplier is::

    adjusted = 1 + (taken - 1) * (1 - commission / 100)
    ev_pct   = (adjusted / reference - 1) * 100

Lay bets
--------
A lay is priced in implied-probability space: laying at a higher implied
probability than fair is favourable, and the edge is then discounted by
commission::

    edge   = (1 / taken) / (1 / reference) - 1
    ev_pct = edge * 100 * (1 - commission / 100)

In both cases ``ev_value = ev_pct / 100 * stake``.

Both outputs are rounded to 2 dp (half away from zero) for storage and
display; all intermediate arithmetic runs at full float precision.

Examples::

    estimate_ev(Direction.BACK, 2.5, 2.2, 100, 8)  → EVEstimate(8.18, 8.18)
    estimate_ev(Direction.LAY, 4.0, 3.5, 10, 0)    → EVEstimate(-12.5, -1.25)
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Final, Optional

from backend.core.bet_types import Direction

#: Decimal odds at or below this carry no payout and make EV undefined.
_MIN_DECIMAL_ODDS: Final[float] = 1.0

#: Storage / display precision for money and percentages.
DISPLAY_DP: Final[int] = 2

_CENT: Final[Decimal] = Decimal(1).scaleb(-DISPLAY_DP)


@dataclass(frozen=True)
class EVEstimate:
    ev_percent: float
    ev_value: float

    def to_dict(self) -> dict:
        return {"ev_perc": self.ev_percent, "ev_val": self.ev_value}


def to_float(value: object) -> float:
    """Coerce a stored numeric field, treating null or garbage as 0.0.

    Bet rows are entered by hand and may hold blanks or text; settlement
    must still be producible, so non-numeric values count as zero.
    """
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    return number if math.isfinite(number) else 0.0


def commission_factor(commission_pct: float) -> float:
    """Share of positive winnings kept after commission (8 → 0.92)."""
    return 1.0 - to_float(commission_pct) / 100.0


def round_dp(value: float) -> float:
    """Round to 2 dp with ties away from zero (0.125 → 0.13, -0.125 → -0.13).

    Works on the exact binary value of the float, so 1.005 (stored as
    1.00499...) still rounds to 1.0.  The result never carries a negative
    zero.
    """
    return float(Decimal(value).quantize(_CENT, rounding=ROUND_HALF_UP)) + 0.0


def back_ev_percent(taken_odds: float, reference_price: float, commission_pct: float) -> float:
    adjusted_odds = 1.0 + (taken_odds - 1.0) * commission_factor(commission_pct)
    return (adjusted_odds / reference_price - 1.0) * 100.0


def lay_ev_percent(taken_odds: float, reference_price: float, commission_pct: float) -> float:
    your_prob = 1.0 / taken_odds
    fair_prob = 1.0 / reference_price
    edge = your_prob / fair_prob - 1.0
    return edge * 100.0 * commission_factor(commission_pct)


def estimate_ev(
    direction: Direction,
    taken_odds: object,
    reference_price: object,
    stake: object,
    commission_pct: object = 0.0,
) -> Optional[EVEstimate]:
    """EV percentage and monetary value of a bet against ``reference_price``.

    Args:
        direction: Back or lay.
        taken_odds: Decimal odds obtained at placement.
        reference_price: Fair / closing decimal price.
        stake: Amount risked.  For a lay this is the backer's stake accepted.
        commission_pct: Commission on net winnings, in percent (0-100).

    Returns:
        :class:`EVEstimate` rounded to 2 dp, or ``None`` when either price is
        ``<= 1`` (including missing or non-numeric prices).  ``None`` means
        "EV not available" and must not be shown as zero.
    """
    odds = to_float(taken_odds)
    reference = to_float(reference_price)
    if odds <= _MIN_DECIMAL_ODDS or reference <= _MIN_DECIMAL_ODDS:
        return None

    if Direction(direction) is Direction.LAY:
        ev_pct = lay_ev_percent(odds, reference, commission_pct)
    else:
        ev_pct = back_ev_percent(odds, reference, commission_pct)

    ev_val = ev_pct / 100.0 * to_float(stake)
    return EVEstimate(
        ev_percent=round_dp(ev_pct),
        ev_value=round_dp(ev_val),
    )
