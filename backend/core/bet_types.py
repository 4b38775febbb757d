"""Bet-type classification: kind, direction and the catalog interface.

A wager's *kind* decides which settlement fields are authoritative:

* ``ev``   — decimal-odds markets settled against a closing price (BSP);
  EV percentage and value are refreshed at settlement.
* ``line`` — point / handicap markets settled against a closing line that is
  stored verbatim.  No EV is computed.

A wager's *direction* (back or lay) decides the sign conventions of both the
return table and the EV formula.  Catalog entries may carry an explicit
direction; entries without one fall back to the historical naming convention
of a case-insensitive ``"lay"`` substring in the bet-type name.

The catalog is passed into the engine as a dependency.  Two implementations
ship with the project:

* :class:`InMemoryBetTypeCatalog` — a dict-backed catalog for tests, scripts
  and the live EV preview.
* ``backend.services.bet_store.SqlBetTypeCatalog`` — reads ``bet_types`` rows.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, Optional


class BetKind(str, Enum):
    LINE = "line"
    EV = "ev"


class Direction(str, Enum):
    BACK = "back"
    LAY = "lay"


class Outcome(str, Enum):
    PENDING = "PENDING"
    WIN = "WIN"
    LOSE = "LOSE"
    VOID = "VOID"


#: Outcomes a settlement may move a bet into.
TERMINAL_OUTCOMES = frozenset({Outcome.WIN, Outcome.LOSE, Outcome.VOID})


def parse_kind(value: Optional[str]) -> BetKind:
    """Anything other than ``"ev"`` is a line bet."""
    if value is not None and str(value).strip().lower() == BetKind.EV.value:
        return BetKind.EV
    return BetKind.LINE


def parse_direction(value: Optional[str]) -> Optional[Direction]:
    if value is None:
        return None
    text = str(value).strip().lower()
    if not text:
        return None
    return Direction(text)


def infer_direction(bet_type_name: Optional[str]) -> Direction:
    """Legacy rule: a bet type whose name contains "lay" is a lay bet."""
    if "lay" in str(bet_type_name or "").lower():
        return Direction.LAY
    return Direction.BACK


@dataclass(frozen=True)
class BetTypeEntry:
    """A resolved catalog entry for one bet-type name."""

    name: str
    kind: BetKind = BetKind.LINE
    direction: Optional[Direction] = None

    @property
    def resolved_direction(self) -> Direction:
        if self.direction is not None:
            return self.direction
        return infer_direction(self.name)

    @property
    def is_ev(self) -> bool:
        return self.kind is BetKind.EV

    @property
    def is_lay(self) -> bool:
        return self.resolved_direction is Direction.LAY


class BaseBetTypeCatalog(ABC):
    """Name → entry lookup used by the EV estimator and settlement."""

    @abstractmethod
    def lookup(self, name: str) -> Optional[BetTypeEntry]:
        """Return the stored entry for ``name`` or ``None`` when unknown."""

    def resolve(self, name: Optional[str]) -> BetTypeEntry:
        """Return the entry for ``name``; unknown names resolve to a line bet."""
        key = (name or "").strip()
        entry = self.lookup(key) if key else None
        if entry is None:
            return BetTypeEntry(name=key, kind=BetKind.LINE)
        return entry


class InMemoryBetTypeCatalog(BaseBetTypeCatalog):
    def __init__(self, entries: Iterable[BetTypeEntry] = ()) -> None:
        self._entries: Dict[str, BetTypeEntry] = {e.name: e for e in entries}

    def lookup(self, name: str) -> Optional[BetTypeEntry]:
        return self._entries.get(name)

    def add(self, entry: BetTypeEntry) -> None:
        self._entries.setdefault(entry.name, entry)

    def __len__(self) -> int:
        return len(self._entries)


DEFAULT_BET_TYPES = (
    BetTypeEntry("Total Over", BetKind.LINE),
    BetTypeEntry("Total Under", BetKind.LINE),
    BetTypeEntry("Line", BetKind.LINE),
    BetTypeEntry("Disposals", BetKind.LINE),
    BetTypeEntry("Win", BetKind.EV, Direction.BACK),
    BetTypeEntry("Place", BetKind.EV, Direction.BACK),
    BetTypeEntry("Lay Win", BetKind.EV, Direction.LAY),
    BetTypeEntry("Lay Place", BetKind.EV, Direction.LAY),
)
