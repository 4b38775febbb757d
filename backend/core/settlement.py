"""Settlement calculator: realised return and closing-price bookkeeping.

Pure functions only.  The caller reads the bet, passes a snapshot in, and
persists the returned fields; this module never touches the database.

Return table (stake = amount risked for a back, backer's stake for a lay)::

    direction | WIN               | LOSE                | VOID
    ----------+-------------------+---------------------+-----
    back      | (odds - 1) * stake| -stake              | 0
    lay       | stake             | -(odds - 1) * stake | 0

Commission is deducted from strictly positive returns only, then the return
is rounded to 2 dp with ties away from zero.  EV-kind bets record the
reference price as ``closing`` and refresh EV against it; line-kind bets
store the reference verbatim as ``closing_line``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Union

from backend.core.bet_types import (
    BaseBetTypeCatalog,
    Direction,
    Outcome,
    TERMINAL_OUTCOMES,
)
from backend.core.errors import UnrecognizedOutcomeError
from backend.core.ev_math import commission_factor, estimate_ev, round_dp, to_float

ReferencePrice = Union[float, int, str, None]


@dataclass
class Wager:
    """The subset of a bet row that settlement reads."""

    bet_type: Optional[str]
    odds: object = None
    stake: object = None
    commission: object = 0.0
    closing: Optional[float] = None
    closing_line: Optional[str] = None
    ev_perc: Optional[float] = None
    ev_val: Optional[float] = None
    result: str = Outcome.PENDING.value
    return_value: Optional[float] = None

    @classmethod
    def from_row(cls, row) -> "Wager":
        """Build a snapshot from an ORM ``Bet`` (or anything shaped like one)."""
        return cls(
            bet_type=row.bet,
            odds=row.odds,
            stake=row.stake,
            commission=row.commission,
            closing=row.closing,
            closing_line=row.closing_line,
            ev_perc=row.ev_perc,
            ev_val=row.ev_val,
            result=row.result or Outcome.PENDING.value,
            return_value=row.return_value,
        )


@dataclass
class SettlementResult:
    closing: Optional[float]
    closing_line: Optional[str]
    ev_perc: Optional[float]
    ev_val: Optional[float]
    result: str
    return_value: float
    ev_refreshed: bool = field(default=False, compare=False)

    def to_dict(self) -> dict:
        return {
            "closing": self.closing,
            "closing_line": self.closing_line,
            "ev_perc": self.ev_perc,
            "ev_val": self.ev_val,
            "result": self.result,
            "return": self.return_value,
        }


def normalize_outcome(outcome: Union[Outcome, str]) -> Outcome:
    """Map ``"win"`` / ``Outcome.WIN`` etc. to a terminal :class:`Outcome`.

    Raises:
        UnrecognizedOutcomeError: For PENDING or anything that is not
            WIN, LOSE or VOID.
    """
    try:
        parsed = Outcome(str(getattr(outcome, "value", outcome)).strip().upper())
    except ValueError:
        raise UnrecognizedOutcomeError(outcome) from None
    if parsed not in TERMINAL_OUTCOMES:
        raise UnrecognizedOutcomeError(outcome)
    return parsed


def raw_return(direction: Direction, outcome: Outcome, odds: float, stake: float) -> float:
    """Profit or loss before commission."""
    if outcome is Outcome.VOID:
        return 0.0
    if direction is Direction.LAY:
        return stake if outcome is Outcome.WIN else -(odds - 1.0) * stake
    return (odds - 1.0) * stake if outcome is Outcome.WIN else -stake


def apply_commission(amount: float, commission_pct: float) -> float:
    """Deduct commission from winnings; losses and zero pass through."""
    if amount > 0:
        return amount * commission_factor(commission_pct)
    return amount


def _price_or_none(value: ReferencePrice) -> Optional[float]:
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _line_or_none(value: ReferencePrice) -> Optional[str]:
    return None if value is None else str(value)


def settle(
    wager: Wager,
    outcome: Union[Outcome, str],
    reference_price: ReferencePrice,
    catalog: BaseBetTypeCatalog,
    commission_pct: object = None,
) -> SettlementResult:
    """Compute the settled fields of ``wager``.

    Args:
        wager: Snapshot of the bet being settled.
        outcome: WIN, LOSE or VOID.
        reference_price: Closing price (EV kinds) or closing line (line kinds).
        catalog: Bet-type catalog used to resolve kind and direction.
        commission_pct: Commission to apply; ``None`` uses the bet's own.

    Returns:
        :class:`SettlementResult` with every field the caller must persist.
        EV fields are carried over unchanged when EV cannot be computed.

    Raises:
        UnrecognizedOutcomeError: If ``outcome`` is not terminal.
    """
    result = normalize_outcome(outcome)
    entry = catalog.resolve(wager.bet_type)
    direction = entry.resolved_direction

    commission = to_float(wager.commission if commission_pct is None else commission_pct)
    odds = to_float(wager.odds)
    stake = to_float(wager.stake)

    amount = apply_commission(raw_return(direction, result, odds, stake), commission)

    closing = wager.closing
    closing_line = wager.closing_line
    ev_perc = wager.ev_perc
    ev_val = wager.ev_val
    ev_refreshed = False

    if entry.is_ev:
        closing = _price_or_none(reference_price)
        estimate = estimate_ev(direction, odds, reference_price, stake, commission)
        if estimate is not None:
            ev_perc, ev_val = estimate.ev_percent, estimate.ev_value
            ev_refreshed = True
    else:
        closing_line = _line_or_none(reference_price)

    return SettlementResult(
        closing=closing,
        closing_line=closing_line,
        ev_perc=ev_perc,
        ev_val=ev_val,
        result=result.value,
        return_value=round_dp(amount),
        ev_refreshed=ev_refreshed,
    )
