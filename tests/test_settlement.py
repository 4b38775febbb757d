"""Tests for the settlement calculator and bet-type resolution."""

import pytest
from unittest.mock import MagicMock

from backend.core.bet_types import (
    DEFAULT_BET_TYPES,
    BetKind,
    BetTypeEntry,
    Direction,
    InMemoryBetTypeCatalog,
    Outcome,
    infer_direction,
    parse_kind,
)
from backend.core.errors import UnrecognizedOutcomeError
from backend.core.settlement import (
    Wager,
    apply_commission,
    normalize_outcome,
    raw_return,
    settle,
)


@pytest.fixture
def catalog():
    return InMemoryBetTypeCatalog(DEFAULT_BET_TYPES)


def _wager(bet="Win", odds=3.0, stake=10.0, commission=0.0, **kw):
    return Wager(bet_type=bet, odds=odds, stake=stake, commission=commission, **kw)


# ---------------------------------------------------------------------------
# Return table
# ---------------------------------------------------------------------------

@pytest.mark.parametrize("direction, outcome, expected", [
    (Direction.BACK, Outcome.WIN,  20.0),
    (Direction.BACK, Outcome.LOSE, -10.0),
    (Direction.BACK, Outcome.VOID, 0.0),
    (Direction.LAY,  Outcome.WIN,  10.0),
    (Direction.LAY,  Outcome.LOSE, -20.0),
    (Direction.LAY,  Outcome.VOID, 0.0),
])
def test_raw_return(direction, outcome, expected):
    assert raw_return(direction, outcome, 3.0, 10.0) == pytest.approx(expected)


def test_commission_only_on_positive_returns():
    assert apply_commission(20.0, 10) == pytest.approx(18.0)
    assert apply_commission(-10.0, 10) == -10.0
    assert apply_commission(0.0, 10) == 0.0


# ---------------------------------------------------------------------------
# settle: returns
# ---------------------------------------------------------------------------

def test_back_win_with_commission(catalog):
    res = settle(_wager("Win", 3.0, 10, 10), "WIN", 3.2, catalog)
    assert res.return_value == pytest.approx(18.0)
    assert res.result == "WIN"


def test_back_lose_ignores_commission(catalog):
    res = settle(_wager("Win", 3.0, 10, 10), "LOSE", 3.2, catalog)
    assert res.return_value == pytest.approx(-10.0)


def test_lay_win_returns_stake(catalog):
    res = settle(_wager("Lay Win", 4.0, 5, 0), "WIN", 3.5, catalog)
    assert res.return_value == pytest.approx(5.0)


def test_lay_lose_pays_liability(catalog):
    res = settle(_wager("Lay Win", 4.0, 5, 0), "LOSE", 3.5, catalog)
    assert res.return_value == pytest.approx(-15.0)


@pytest.mark.parametrize("bet, odds, stake, commission", [
    ("Win", 3.0, 10, 8),
    ("Lay Place", 7.5, 40, 5),
    ("Line", 1.9, 100, 0),
    ("Unknown Market", 0, 0, 0),
])
def test_void_returns_exactly_zero(catalog, bet, odds, stake, commission):
    res = settle(_wager(bet, odds, stake, commission), "VOID", 2.0, catalog)
    assert res.return_value == 0.0
    assert str(res.return_value) == "0.0"


def test_return_rounded_to_cents(catalog):
    # (2.37 - 1) * 7.33 * 0.95 = 9.539...
    res = settle(_wager("Win", 2.37, 7.33, 5), "WIN", None, catalog)
    assert res.return_value == 9.54


@pytest.mark.parametrize("bet, outcome, expected", [
    ("Win", "WIN", 0.13),    # 0.5 * 0.25 = 0.125
    ("Win", "LOSE", -0.25),
    ("Lay Win", "LOSE", -0.13),
])
def test_half_cent_ties_round_away_from_zero(catalog, bet, outcome, expected):
    res = settle(_wager(bet, 1.5, 0.25, 0), outcome, 1.6, catalog)
    assert res.return_value == expected


def test_explicit_commission_overrides_bet_commission(catalog):
    res = settle(_wager("Win", 3.0, 10, 50), "WIN", 3.0, catalog, commission_pct=0)
    assert res.return_value == pytest.approx(20.0)


def test_non_numeric_fields_count_as_zero(catalog):
    res = settle(_wager("Win", "n/a", None, "x"), "WIN", 3.0, catalog)
    assert res.return_value == 0.0
    res = settle(_wager("Win", "3", "10", None), "WIN", 3.0, catalog)
    assert res.return_value == pytest.approx(20.0)


# ---------------------------------------------------------------------------
# settle: EV and closing fields
# ---------------------------------------------------------------------------

def test_ev_kind_refreshes_ev_and_sets_closing(catalog):
    res = settle(
        _wager("Win", 2.5, 100, 8, closing_line="old", ev_perc=1.0, ev_val=1.0),
        "LOSE", 2.2, catalog,
    )
    assert res.closing == pytest.approx(2.2)
    assert res.ev_perc == pytest.approx(8.18)
    assert res.ev_val == pytest.approx(8.18)
    assert res.closing_line == "old"
    assert res.ev_refreshed


def test_ev_kind_lay_uses_lay_formula(catalog):
    res = settle(_wager("Lay Win", 4.0, 10, 0), "WIN", 3.5, catalog)
    assert res.ev_perc == pytest.approx(-12.5)
    assert res.ev_val == pytest.approx(-1.25)


def test_ev_kind_keeps_previous_ev_when_not_computable(catalog):
    res = settle(_wager("Place", 2.5, 10, 0, ev_perc=4.5, ev_val=0.45), "WIN", 0.9, catalog)
    assert res.closing == pytest.approx(0.9)
    assert res.ev_perc == 4.5
    assert res.ev_val == 0.45
    assert not res.ev_refreshed


def test_ev_kind_with_missing_price_clears_closing(catalog):
    res = settle(_wager("Win", 2.5, 10, 0, closing=2.4), "WIN", "", catalog)
    assert res.closing is None
    assert res.ev_perc is None


def test_line_kind_stores_closing_line_verbatim(catalog):
    res = settle(_wager("Total Over", 1.9, 50, 0, closing=2.0), "WIN", "+2.5", catalog)
    assert res.closing_line == "+2.5"
    assert res.closing == 2.0
    assert res.ev_perc is None and res.ev_val is None
    assert res.return_value == pytest.approx(45.0)


def test_line_kind_keeps_closing_line_text_as_given(catalog):
    res = settle(_wager("Line", 1.9, 10, 0), "VOID", " -3.5 ", catalog)
    assert res.closing_line == " -3.5 "


def test_unknown_bet_type_settles_as_line_back(catalog):
    res = settle(_wager("Quaddie", 12.0, 2, 0), "WIN", 11.0, catalog)
    assert res.closing_line == "11.0"
    assert res.closing is None
    assert res.return_value == pytest.approx(22.0)


def test_unknown_lay_named_type_is_still_lay(catalog):
    res = settle(_wager("Lay The Draw", 3.4, 10, 0), "LOSE", "3.1", catalog)
    assert res.return_value == pytest.approx(-24.0)


def test_to_dict_has_storage_keys(catalog):
    d = settle(_wager(), "WIN", 3.0, catalog).to_dict()
    assert set(d) == {"closing", "closing_line", "ev_perc", "ev_val", "result", "return"}


# ---------------------------------------------------------------------------
# Outcomes
# ---------------------------------------------------------------------------

@pytest.mark.parametrize("raw, expected", [
    ("WIN", Outcome.WIN),
    ("lose", Outcome.LOSE),
    (" Void ", Outcome.VOID),
    (Outcome.WIN, Outcome.WIN),
])
def test_normalize_outcome(raw, expected):
    assert normalize_outcome(raw) is expected


@pytest.mark.parametrize("raw", ["PENDING", "PUSH", "", None, 1])
def test_unrecognized_outcome_rejected(catalog, raw):
    with pytest.raises(UnrecognizedOutcomeError):
        settle(_wager(), raw, 3.0, catalog)


# ---------------------------------------------------------------------------
# Bet-type resolution
# ---------------------------------------------------------------------------

@pytest.mark.parametrize("name, expected", [
    ("Lay Win", Direction.LAY),
    ("LAY place", Direction.LAY),
    ("Player Overlay", Direction.LAY),   # substring rule
    ("Win", Direction.BACK),
    ("", Direction.BACK),
    (None, Direction.BACK),
])
def test_infer_direction(name, expected):
    assert infer_direction(name) is expected


def test_explicit_direction_beats_name():
    cat = InMemoryBetTypeCatalog([BetTypeEntry("Lay-up Special", BetKind.EV, Direction.BACK)])
    res = settle(_wager("Lay-up Special", 3.0, 10, 0), "WIN", 3.0, cat)
    assert res.return_value == pytest.approx(20.0)


def test_catalog_resolves_unknown_as_line():
    entry = InMemoryBetTypeCatalog().resolve("Mystery")
    assert entry.kind is BetKind.LINE
    assert not entry.is_ev


def test_parse_kind_defaults_to_line():
    assert parse_kind("ev") is BetKind.EV
    assert parse_kind(" EV ") is BetKind.EV
    assert parse_kind("spread") is BetKind.LINE
    assert parse_kind(None) is BetKind.LINE


def test_from_row_reads_orm_shape():
    row = MagicMock()
    row.bet = "Win"
    row.odds = 2.5
    row.stake = 10
    row.commission = 8
    row.closing = None
    row.closing_line = None
    row.ev_perc = None
    row.ev_val = None
    row.result = None
    row.return_value = None
    w = Wager.from_row(row)
    assert w.bet_type == "Win"
    assert w.result == "PENDING"
