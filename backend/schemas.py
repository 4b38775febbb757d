"""
Pydantic request/response schemas for the Bet Ledger API.

Using explicit schemas instead of raw dicts prevents mass-assignment
on ORM models and generates accurate OpenAPI docs.
"""

from __future__ import annotations

import math
from datetime import datetime
from typing import Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


# ---------------------------------------------------------------------------
# Bets
# ---------------------------------------------------------------------------

class BetPayload(BaseModel):
    """
    Payload for POST /api/bets and PUT /api/bets/{bet_id}.

    PUT replaces every editable field, so omitted fields are cleared.
    ``kind`` is only used when the bet type named in ``bet`` is new to
    the catalog.  EV fields left empty are filled from ``closing`` for
    EV-kind bets.
    """

    date: Optional[str] = Field(None, description="dd/mm/yyyy")
    sport: Optional[str] = Field(None, max_length=80)
    event: Optional[str] = Field(None, max_length=200)
    round_race: Optional[str] = Field(None, max_length=80)
    selection: Optional[str] = Field(None, max_length=200)
    bet: Optional[str] = Field(None, max_length=80, description='Bet-type name, e.g. "Win"')
    kind: Optional[Literal["line", "ev"]] = None

    odds: Optional[float] = Field(None, description="Decimal odds taken")
    stake: Optional[float] = Field(None, ge=0)
    commission: Optional[float] = Field(0.0, ge=0, le=100)

    closing: Optional[float] = None
    line: Optional[str] = None
    closing_line: Optional[str] = None
    ev_perc: Optional[float] = None
    ev_val: Optional[float] = None

    result: Literal["PENDING", "WIN", "LOSE", "VOID"] = "PENDING"
    return_value: Optional[float] = Field(None, alias="return")

    bf_market_id: Optional[str] = None
    bf_selection_id: Optional[str] = None
    strategy_ref: Optional[str] = None

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "date": "14/03/2026",
                "sport": "Horse",
                "event": "Spring Cup",
                "round_race": "R4",
                "selection": "Speedster",
                "bet": "Win",
                "odds": 3.5,
                "stake": 10,
                "commission": 8,
                "closing": 4.0,
                "strategy_ref": "S1",
            }
        },
    )

    @field_validator(
        "odds", "stake", "commission", "closing", "ev_perc", "ev_val", "return_value",
        mode="before",
    )
    @classmethod
    def blank_to_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("line", "closing_line", mode="before")
    @classmethod
    def line_to_text(cls, v):
        if v is None:
            return v
        text = str(v).strip()
        return text or None

    @model_validator(mode="after")
    def settled_needs_return(self) -> "BetPayload":
        if self.result != "PENDING" and (
            self.return_value is None or not math.isfinite(self.return_value)
        ):
            raise ValueError(f"A {self.result} bet needs a numeric return")
        return self


class BetResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: int
    date: Optional[str] = None
    sport: Optional[str] = None
    event: Optional[str] = None
    round_race: Optional[str] = None
    selection: Optional[str] = None
    bet: Optional[str] = None
    odds: Optional[float] = None
    stake: Optional[float] = None
    commission: Optional[float] = None
    closing: Optional[float] = None
    line: Optional[str] = None
    closing_line: Optional[str] = None
    ev_perc: Optional[float] = None
    ev_val: Optional[float] = None
    result: str
    return_value: Optional[float] = Field(None, serialization_alias="return")
    bf_market_id: Optional[str] = None
    bf_selection_id: Optional[str] = None
    strategy_ref: Optional[str] = None
    created_at: Optional[datetime] = None


# ---------------------------------------------------------------------------
# Settlement
# ---------------------------------------------------------------------------

class SettleRequest(BaseModel):
    """
    Payload for POST /api/bets/{bet_id}/settle.

    ``bsp_odds`` is the closing price (BSP) for EV kinds or the closing
    line for line kinds.  ``commission`` defaults to the bet's own.
    ``force`` allows re-settling a bet that already has a result.
    """

    result: str = Field(..., description="WIN | LOSE | VOID")
    bsp_odds: Optional[Union[float, str]] = Field(None, alias="bspOdds")
    commission: Optional[float] = Field(None, ge=0, le=100)
    force: bool = False

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={"example": {"result": "WIN", "bspOdds": 3.8, "commission": 8}},
    )

    @field_validator("commission", mode="before")
    @classmethod
    def blank_commission(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v


# ---------------------------------------------------------------------------
# EV preview
# ---------------------------------------------------------------------------

class EVEstimateRequest(BaseModel):
    """Live EV for a bet being entered; the closing price is an estimate."""

    bet: Optional[str] = Field(None, description="Bet-type name, resolves direction")
    direction: Optional[Literal["back", "lay"]] = Field(
        None, description="Overrides the catalog direction when given"
    )
    odds: float
    closing: float
    stake: float = Field(0.0, ge=0)
    commission: float = Field(0.0, ge=0, le=100)


class EVEstimateResponse(BaseModel):
    direction: Literal["back", "lay"]
    ev_available: bool
    ev_perc: Optional[float] = None
    ev_val: Optional[float] = None


# ---------------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------------

class SportCreate(BaseModel):
    name: str = Field(..., max_length=80)

    @field_validator("name")
    @classmethod
    def non_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Invalid sport name")
        return v


class BetTypeCreate(BaseModel):
    name: str = Field(..., max_length=80)
    kind: Literal["line", "ev"] = "line"
    direction: Optional[Literal["back", "lay"]] = None

    @field_validator("name")
    @classmethod
    def non_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Invalid bet type name")
        return v


class BetTypeResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    name: str
    kind: str
    direction: Optional[str] = None
