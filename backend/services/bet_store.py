"""
Bet record store and settlement workflow.

All public functions receive a SQLAlchemy Session so they can be called
from FastAPI endpoints, scripts, or tests without importing any web-layer
code.  The engine in ``backend.core`` stays pure; this module owns the
read-modify-write around it.
"""

import logging
import math
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from backend.core.bet_types import (
    DEFAULT_BET_TYPES,
    BaseBetTypeCatalog,
    BetTypeEntry,
    Outcome,
    parse_direction,
    parse_kind,
)
from backend.core.errors import AlreadySettledError, BetNotFoundError
from backend.core.ev_math import estimate_ev
from backend.core.settlement import SettlementResult, Wager, settle
from backend.models import Bet, BetType, Sport

logger = logging.getLogger(__name__)

#: Fields a client may write through create / update.
EDITABLE_FIELDS = (
    "date", "sport", "event", "round_race", "selection", "bet",
    "odds", "stake", "commission", "closing", "line", "closing_line",
    "ev_perc", "ev_val", "result", "return_value",
    "bf_market_id", "bf_selection_id", "strategy_ref",
)

_TEXT_FIELDS = (
    "date", "sport", "event", "round_race", "selection", "bet",
    "line", "closing_line", "bf_market_id", "bf_selection_id", "strategy_ref",
)


# ---------------------------------------------------------------------------
# Bet-type catalog backed by the bet_types table
# ---------------------------------------------------------------------------

def _entry_from_row(row: BetType) -> BetTypeEntry:
    return BetTypeEntry(
        name=row.name,
        kind=parse_kind(row.kind),
        direction=parse_direction(row.direction),
    )


class SqlBetTypeCatalog(BaseBetTypeCatalog):
    def __init__(self, db: Session):
        self.db = db

    def lookup(self, name: str) -> Optional[BetTypeEntry]:
        row = self.db.query(BetType).filter(BetType.name == name).first()
        return _entry_from_row(row) if row else None


# ---------------------------------------------------------------------------
# Catalog maintenance
# ---------------------------------------------------------------------------

def list_sports(db: Session) -> List[str]:
    rows = db.query(Sport).all()
    return sorted((r.name for r in rows), key=str.lower)


def _ensure_sport(db: Session, name: Optional[str]) -> None:
    name = (name or "").strip()
    if name and not db.query(Sport).filter(Sport.name == name).first():
        db.add(Sport(name=name))
        db.flush()


def add_sport(db: Session, name: str) -> str:
    name = (name or "").strip()
    if not name:
        raise ValueError("Invalid sport name")
    _ensure_sport(db, name)
    db.commit()
    return name


def list_bet_types(db: Session) -> List[BetType]:
    rows = db.query(BetType).all()
    return sorted(rows, key=lambda r: r.name.lower())


def _ensure_bet_type(
    db: Session,
    name: Optional[str],
    kind: Optional[str] = None,
    direction: Optional[str] = None,
) -> Optional[BetType]:
    """INSERT OR IGNORE: an existing entry keeps its kind and direction."""
    name = (name or "").strip()
    if not name:
        return None
    row = db.query(BetType).filter(BetType.name == name).first()
    if row is None:
        direction_enum = parse_direction(direction)
        row = BetType(
            name=name,
            kind=parse_kind(kind).value,
            direction=direction_enum.value if direction_enum else None,
        )
        db.add(row)
        db.flush()
        logger.info("Bet type registered: %s (%s)", name, row.kind)
    return row


def add_bet_type(
    db: Session,
    name: str,
    kind: Optional[str] = "line",
    direction: Optional[str] = None,
) -> BetType:
    name = (name or "").strip()
    if not name:
        raise ValueError("Invalid bet type name")
    row = _ensure_bet_type(db, name, kind, direction)
    db.commit()
    return row


def seed_defaults(db: Session) -> int:
    """Insert the default bet types that are missing; returns how many were added."""
    added = 0
    for entry in DEFAULT_BET_TYPES:
        if not db.query(BetType).filter(BetType.name == entry.name).first():
            db.add(BetType(
                name=entry.name,
                kind=entry.kind.value,
                direction=entry.direction.value if entry.direction else None,
            ))
            added += 1
    db.commit()
    return added


# ---------------------------------------------------------------------------
# Bet CRUD
# ---------------------------------------------------------------------------

def _finite_or_none(value) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def _clean(data: Dict) -> Dict:
    """
    Normalise a create/update payload.

    Raises:
        ValueError: For an unknown result, or a settled result (WIN, LOSE,
            VOID) without a finite return.
    """
    values = {f: data.get(f) for f in EDITABLE_FIELDS}
    for f in _TEXT_FIELDS:
        if isinstance(values[f], str):
            values[f] = values[f].strip() or None
    if values["commission"] is None:
        values["commission"] = 0.0

    result = str(values["result"] or Outcome.PENDING.value).strip().upper()
    if result not in {o.value for o in Outcome}:
        raise ValueError(f"Unknown result {values['result']!r}")
    values["result"] = result
    if result == Outcome.PENDING.value:
        values["return_value"] = None
    else:
        values["return_value"] = _finite_or_none(values["return_value"])
        if values["return_value"] is None:
            raise ValueError(f"A {result} bet needs a numeric return")
    return values


def _refresh_entry_ev(values: Dict, entry: BetTypeEntry) -> None:
    """Recompute EV for EV kinds from the entered closing price; clear it otherwise.

    Supplied EV values are only kept when no EV can be computed.
    """
    if not entry.is_ev:
        values["ev_perc"] = None
        values["ev_val"] = None
        return
    estimate = estimate_ev(
        entry.resolved_direction,
        values["odds"],
        values["closing"],
        values["stake"],
        values["commission"],
    )
    if estimate is not None:
        values["ev_perc"], values["ev_val"] = estimate.ev_percent, estimate.ev_value


def _apply(db: Session, bet: Bet, data: Dict) -> None:
    values = _clean(data)
    _ensure_sport(db, values["sport"])
    _ensure_bet_type(db, values["bet"], data.get("kind"))
    _refresh_entry_ev(values, SqlBetTypeCatalog(db).resolve(values["bet"]))
    for field, value in values.items():
        setattr(bet, field, value)


def create_bet(db: Session, data: Dict) -> Bet:
    bet = Bet()
    _apply(db, bet, data)
    db.add(bet)
    db.commit()
    db.refresh(bet)
    logger.info("Bet %d logged: %s %s @ %s stake %s", bet.id, bet.selection, bet.bet, bet.odds, bet.stake)
    return bet


def update_bet(db: Session, bet_id: int, data: Dict) -> Optional[Bet]:
    bet = db.query(Bet).filter(Bet.id == bet_id).first()
    if not bet:
        return None
    _apply(db, bet, data)
    db.commit()
    db.refresh(bet)
    logger.info("Bet %d updated", bet_id)
    return bet


def delete_bet(db: Session, bet_id: int) -> bool:
    bet = db.query(Bet).filter(Bet.id == bet_id).first()
    if not bet:
        return False
    db.delete(bet)
    db.commit()
    logger.info("Bet %d deleted", bet_id)
    return True


def get_bet(db: Session, bet_id: int) -> Optional[Bet]:
    return db.query(Bet).filter(Bet.id == bet_id).first()


def list_bets(
    db: Session,
    sport: Optional[str] = None,
    result: Optional[str] = None,
) -> List[Bet]:
    q = db.query(Bet)
    if sport:
        q = q.filter(Bet.sport == sport)
    if result:
        q = q.filter(Bet.result == result.upper())
    return q.order_by(Bet.id.desc()).all()


def ev_bet_names(db: Session) -> set:
    return {r.name for r in db.query(BetType).filter(BetType.kind == "ev").all()}


# ---------------------------------------------------------------------------
# Settlement
# ---------------------------------------------------------------------------

def settle_bet(
    db: Session,
    bet_id: int,
    outcome: str,
    reference_price=None,
    commission: Optional[float] = None,
    force: bool = False,
) -> Bet:
    """
    Settle a bet in one read-modify-write.

    The row is read with SELECT ... FOR UPDATE so concurrent settle calls
    on the same id serialise on databases that support row locks.  Only a
    PENDING bet may be settled unless ``force`` is set.

    Raises:
        BetNotFoundError, AlreadySettledError, UnrecognizedOutcomeError
    """
    bet = db.query(Bet).filter(Bet.id == bet_id).with_for_update().first()
    if not bet:
        raise BetNotFoundError(bet_id)

    try:
        current = bet.result or Outcome.PENDING.value
        if current != Outcome.PENDING.value and not force:
            raise AlreadySettledError(bet_id, current)

        settled: SettlementResult = settle(
            Wager.from_row(bet),
            outcome,
            reference_price,
            SqlBetTypeCatalog(db),
            commission_pct=commission,
        )
    except Exception:
        db.rollback()
        raise

    bet.closing = settled.closing
    bet.closing_line = settled.closing_line
    bet.ev_perc = settled.ev_perc
    bet.ev_val = settled.ev_val
    bet.result = settled.result
    bet.return_value = settled.return_value
    db.commit()
    db.refresh(bet)

    logger.info(
        "Bet %d settled: %s, return $%.2f%s",
        bet_id,
        settled.result,
        settled.return_value,
        f", EV {settled.ev_perc:+.2f}%" if settled.ev_refreshed else "",
    )
    return bet
