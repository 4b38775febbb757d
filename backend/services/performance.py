"""
Results analytics: filters, headline metrics and profit-over-time series.

All public functions take plain sequences of bet rows (ORM ``Bet`` objects
or anything with the same attributes) plus the set of EV bet-type names,
and return plain dicts so they can be called from FastAPI endpoints,
scripts or tests without importing any web-layer code.

Only settled bets (result other than PENDING) count towards metrics.
"""

import logging
from datetime import date, datetime, timedelta
from typing import Dict, Iterable, List, Optional, Sequence, Set

from backend.core.bet_types import Outcome
from backend.core.ev_math import round_dp, to_float

logger = logging.getLogger(__name__)

#: Look-back windows for the preset date ranges.
DATE_RANGES: Dict[str, Optional[int]] = {
    "all": None,
    "week": 7,
    "month": 30,
    "3months": 90,
    "6months": 180,
    "year": 365,
    "custom": None,
}


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _r2(value: float) -> float:
    return round_dp(value)


def _mean(values: List[float]) -> Optional[float]:
    return sum(values) / len(values) if values else None


def _pot(profit: float, staked: float) -> float:
    """Profit over turnover, as a percentage of total stake."""
    return _r2(profit / staked * 100) if staked > 0 else 0.0


def parse_bet_date(value: Optional[str]) -> Optional[date]:
    """Parse ``dd/mm/yyyy``; anything else is ``None``."""
    if not value:
        return None
    parts = str(value).strip().split("/")
    if len(parts) != 3:
        return None
    try:
        day, month, year = (int(p) for p in parts)
        return date(year, month, day)
    except ValueError:
        return None


def is_settled(bet) -> bool:
    return bool(bet.result) and bet.result != Outcome.PENDING.value


def settled_bets(bets: Iterable) -> List:
    return [b for b in bets if is_settled(b)]


# ---------------------------------------------------------------------------
# filter_bets
# ---------------------------------------------------------------------------

def filter_bets(
    bets: Iterable,
    sport: Optional[str] = None,
    bet_type: Optional[str] = None,
    strategy: Optional[str] = None,
    date_range: str = "all",
    date_from: Optional[str] = None,
    date_to: Optional[str] = None,
    today: Optional[date] = None,
) -> List:
    """
    Apply the results-page filters.

    ``date_range`` is one of :data:`DATE_RANGES`.  Preset ranges keep bets
    dated on or after ``today - N days``; ``custom`` keeps bets between the
    inclusive ``date_from`` / ``date_to`` bounds (dd/mm/yyyy, either may be
    omitted).  Whenever a range other than ``all`` is active, bets whose
    date cannot be parsed are dropped.
    """
    if date_range not in DATE_RANGES:
        raise ValueError(f"Unknown date range {date_range!r}")

    out = list(bets)
    if sport:
        out = [b for b in out if b.sport == sport]
    if bet_type:
        out = [b for b in out if b.bet == bet_type]
    if strategy:
        out = [b for b in out if b.strategy_ref == strategy]

    if date_range == "all":
        return out

    if date_range == "custom":
        lo = parse_bet_date(date_from)
        hi = parse_bet_date(date_to)
        kept = []
        for b in out:
            d = parse_bet_date(b.date)
            if d is None:
                continue
            if lo and d < lo:
                continue
            if hi and d > hi:
                continue
            kept.append(b)
        return kept

    start = (today or datetime.utcnow().date()) - timedelta(days=DATE_RANGES[date_range])
    return [b for b in out if (parse_bet_date(b.date) or date.min) >= start]


# ---------------------------------------------------------------------------
# calculate_metrics
# ---------------------------------------------------------------------------

def calculate_metrics(bets: Sequence, ev_bet_names: Set[str]) -> Dict:
    """
    Headline results over settled bets:
      - count, total / average stake and profit
      - average, highest and lowest odds (odds > 0 only)
      - POT (profit over turnover, %)
      - total / average EV across EV-kind bets (null when there are none)
    """
    settled = settled_bets(bets)

    if not settled:
        return {
            "bet_count": 0,
            "avg_stake": 0.0,
            "total_stake": 0.0,
            "total_profit": 0.0,
            "avg_profit": 0.0,
            "avg_odds": 0.0,
            "highest_odds": 0.0,
            "lowest_odds": 0.0,
            "pot": 0.0,
            "avg_ev": None,
            "total_ev": None,
            "has_ev_bets": False,
        }

    stakes = [to_float(b.stake) for b in settled]
    returns = [to_float(b.return_value) for b in settled]
    odds = [o for o in (to_float(b.odds) for b in settled) if o > 0]

    total_stake = sum(stakes)
    total_profit = sum(returns)
    n = len(settled)

    ev_bets = [b for b in settled if b.bet in ev_bet_names]
    total_ev = avg_ev = None
    if ev_bets:
        total_ev = sum(to_float(b.ev_val) for b in ev_bets)
        avg_ev = total_ev / len(ev_bets)

    return {
        "bet_count": n,
        "avg_stake": _r2(total_stake / n),
        "total_stake": _r2(total_stake),
        "total_profit": _r2(total_profit),
        "avg_profit": _r2(total_profit / n),
        "avg_odds": _r2(_mean(odds)) if odds else 0.0,
        "highest_odds": _r2(max(odds)) if odds else 0.0,
        "lowest_odds": _r2(min(odds)) if odds else 0.0,
        "pot": _pot(total_profit, total_stake),
        "avg_ev": _r2(avg_ev) if avg_ev is not None else None,
        "total_ev": _r2(total_ev) if total_ev is not None else None,
        "has_ev_bets": bool(ev_bets),
    }


# ---------------------------------------------------------------------------
# profit_timeline
# ---------------------------------------------------------------------------

def profit_timeline(bets: Sequence, ev_bet_names: Set[str]) -> List[Dict]:
    """
    Cumulative profit and cumulative EV per settled bet, in date order.

    Bets with unparseable dates sort last in their original order.  The
    ``ev`` series is null throughout when no settled bet is an EV kind.
    """
    settled = settled_bets(bets)
    if not settled:
        return []

    ordered = sorted(settled, key=lambda b: parse_bet_date(b.date) or date.max)
    has_ev = any(b.bet in ev_bet_names for b in ordered)

    points = []
    cum_profit = 0.0
    cum_ev = 0.0
    for b in ordered:
        cum_profit += to_float(b.return_value)
        if b.bet in ev_bet_names:
            cum_ev += to_float(b.ev_val)
        points.append({
            "bet_id": b.id,
            "date": b.date,
            "profit": _r2(cum_profit),
            "ev": _r2(cum_ev) if has_ev else None,
        })
    return points


# ---------------------------------------------------------------------------
# summarise_by
# ---------------------------------------------------------------------------

def summarise_by(bets: Sequence, key: str) -> Dict[str, Dict]:
    """Per-group count, stake, profit and POT for ``sport`` / ``bet`` / ``strategy_ref``."""
    if key not in ("sport", "bet", "strategy_ref"):
        raise ValueError(f"Cannot group bets by {key!r}")

    groups: Dict[str, List] = {}
    for b in settled_bets(bets):
        groups.setdefault(getattr(b, key) or "unknown", []).append(b)

    summary = {}
    for name, grp in sorted(groups.items()):
        staked = sum(to_float(b.stake) for b in grp)
        profit = sum(to_float(b.return_value) for b in grp)
        summary[name] = {
            "bets": len(grp),
            "wins": sum(1 for b in grp if b.result == Outcome.WIN.value),
            "staked": _r2(staked),
            "profit": _r2(profit),
            "pot": _pot(profit, staked),
        }
    return summary


def results_report(
    bets: Sequence,
    ev_bet_names: Set[str],
    **filters,
) -> Dict:
    """Filtered metrics, timeline and breakdowns in one payload."""
    filtered = filter_bets(bets, **filters)
    report = {
        "filters": {k: v for k, v in filters.items() if v and k != "today"},
        "metrics": calculate_metrics(filtered, ev_bet_names),
        "timeline": profit_timeline(filtered, ev_bet_names),
        "by_sport": summarise_by(filtered, "sport"),
        "by_bet_type": summarise_by(filtered, "bet"),
        "by_strategy": summarise_by(filtered, "strategy_ref"),
    }
    logger.debug(
        "Results report: %d of %d bets after filters", len(filtered), len(bets),
    )
    return report
