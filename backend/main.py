"""
FastAPI application for the Bet Ledger
REST API over the bet store, settlement engine and results analytics
"""

from fastapi import FastAPI, Depends, HTTPException, Query, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
from sqlalchemy import text
from contextlib import asynccontextmanager
from datetime import datetime
from typing import List, Optional
import logging
import os

from backend.models import get_db, init_db, SessionLocal
from backend.core.bet_types import Direction
from backend.core.errors import AlreadySettledError, BetNotFoundError, UnrecognizedOutcomeError
from backend.core.ev_math import estimate_ev
from backend.services import bet_store
from backend.services.performance import results_report
from backend.schemas import (
    BetPayload,
    BetResponse,
    BetTypeCreate,
    BetTypeResponse,
    EVEstimateRequest,
    EVEstimateResponse,
    SettleRequest,
    SportCreate,
)

# Logging setup
logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events"""
    logger.info("Starting Bet Ledger API")
    init_db()
    db = SessionLocal()
    try:
        added = bet_store.seed_defaults(db)
        if added:
            logger.info("Seeded %d default bet types", added)
    finally:
        db.close()

    yield

    logger.info("Shutting down Bet Ledger API")


app = FastAPI(
    title="Bet Ledger",
    description="Wager tracking, settlement and EV analytics",
    version="1.0",
    lifespan=lifespan,
)

# CORS (adjust origins for production)
app.add_middleware(
    CORSMiddleware,
    allow_origins=os.getenv("CORS_ORIGINS", "http://localhost:8501").split(","),  # Streamlit
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ============================================================================
# PUBLIC ENDPOINTS
# ============================================================================

@app.get("/")
async def root():
    """Health check"""
    return {
        "app": "Bet Ledger",
        "version": "1.0",
        "status": "operational",
        "timestamp": datetime.utcnow().isoformat(),
    }


@app.get("/health")
async def health_check(db: Session = Depends(get_db)):
    """Health check endpoint"""
    health = {"status": "healthy", "database": "connected"}

    try:
        db.execute(text("SELECT 1"))
    except Exception as e:
        logger.error("Health check database error: %s", e)
        health["status"] = "degraded"
        health["database"] = f"error: {str(e)}"

    return health


# ============================================================================
# BETS
# ============================================================================

@app.get("/api/bets", response_model=List[BetResponse])
async def get_bets(
    sport: Optional[str] = Query(default=None),
    result: Optional[str] = Query(default=None, description="PENDING | WIN | LOSE | VOID"),
    db: Session = Depends(get_db),
):
    """All bets, newest first."""
    return bet_store.list_bets(db, sport=sport, result=result)


@app.get("/api/bets/{bet_id}", response_model=BetResponse)
async def get_bet(bet_id: int, db: Session = Depends(get_db)):
    bet = bet_store.get_bet(db, bet_id)
    if not bet:
        raise HTTPException(status_code=404, detail="Bet not found")
    return bet


@app.post("/api/bets", response_model=BetResponse, status_code=201)
async def create_bet(payload: BetPayload, db: Session = Depends(get_db)):
    """Log a bet.  New sports and bet types are added to the catalog."""
    try:
        return bet_store.create_bet(db, payload.model_dump())
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc))


@app.put("/api/bets/{bet_id}", response_model=BetResponse)
async def update_bet(bet_id: int, payload: BetPayload, db: Session = Depends(get_db)):
    try:
        bet = bet_store.update_bet(db, bet_id, payload.model_dump())
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc))
    if not bet:
        raise HTTPException(status_code=404, detail="Bet not found")
    return bet


@app.delete("/api/bets/{bet_id}", status_code=204)
async def delete_bet(bet_id: int, db: Session = Depends(get_db)):
    if not bet_store.delete_bet(db, bet_id):
        raise HTTPException(status_code=404, detail="Bet not found")
    return Response(status_code=204)


@app.post("/api/bets/{bet_id}/settle", response_model=BetResponse)
async def settle_bet(bet_id: int, payload: SettleRequest, db: Session = Depends(get_db)):
    """
    Settle a bet: realised return, closing price / line, and final EV.

    Only PENDING bets are accepted unless ``force`` is set.
    """
    try:
        return bet_store.settle_bet(
            db,
            bet_id,
            payload.result,
            reference_price=payload.bsp_odds,
            commission=payload.commission,
            force=payload.force,
        )
    except BetNotFoundError:
        raise HTTPException(status_code=404, detail="Bet not found")
    except AlreadySettledError as exc:
        raise HTTPException(status_code=409, detail=str(exc))
    except UnrecognizedOutcomeError as exc:
        raise HTTPException(status_code=422, detail=str(exc))


# ============================================================================
# EV PREVIEW
# ============================================================================

@app.post("/api/ev/estimate", response_model=EVEstimateResponse)
async def ev_estimate(payload: EVEstimateRequest, db: Session = Depends(get_db)):
    """Live EV while a bet is being entered, against the current closing estimate."""
    if payload.direction:
        direction = Direction(payload.direction)
    else:
        direction = bet_store.SqlBetTypeCatalog(db).resolve(payload.bet).resolved_direction

    estimate = estimate_ev(direction, payload.odds, payload.closing, payload.stake, payload.commission)
    if estimate is None:
        return EVEstimateResponse(direction=direction.value, ev_available=False)
    return EVEstimateResponse(
        direction=direction.value,
        ev_available=True,
        ev_perc=estimate.ev_percent,
        ev_val=estimate.ev_value,
    )


# ============================================================================
# CATALOG
# ============================================================================

@app.get("/api/sports", response_model=List[str])
async def get_sports(db: Session = Depends(get_db)):
    return bet_store.list_sports(db)


@app.post("/api/sports", status_code=201)
async def create_sport(payload: SportCreate, db: Session = Depends(get_db)):
    return {"name": bet_store.add_sport(db, payload.name)}


@app.get("/api/bet-types", response_model=List[BetTypeResponse])
async def get_bet_types(db: Session = Depends(get_db)):
    return bet_store.list_bet_types(db)


@app.post("/api/bet-types", response_model=BetTypeResponse, status_code=201)
async def create_bet_type(payload: BetTypeCreate, db: Session = Depends(get_db)):
    return bet_store.add_bet_type(db, payload.name, payload.kind, payload.direction)


# ============================================================================
# PERFORMANCE
# ============================================================================

def _report(db: Session, sport, bet_type, strategy, date_range, date_from, date_to) -> dict:
    try:
        return results_report(
            bet_store.list_bets(db),
            bet_store.ev_bet_names(db),
            sport=sport,
            bet_type=bet_type,
            strategy=strategy,
            date_range=date_range,
            date_from=date_from,
            date_to=date_to,
        )
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc))


@app.get("/api/performance/summary")
async def get_performance_summary(
    sport: Optional[str] = Query(default=None),
    bet_type: Optional[str] = Query(default=None),
    strategy: Optional[str] = Query(default=None),
    date_range: str = Query(default="all", description="all | week | month | 3months | 6months | year | custom"),
    date_from: Optional[str] = Query(default=None, description="dd/mm/yyyy, custom range only"),
    date_to: Optional[str] = Query(default=None, description="dd/mm/yyyy, custom range only"),
    db: Session = Depends(get_db),
):
    """Headline metrics plus per-sport / bet-type / strategy breakdowns."""
    report = _report(db, sport, bet_type, strategy, date_range, date_from, date_to)
    report.pop("timeline")
    return report


@app.get("/api/performance/timeline")
async def get_performance_timeline(
    sport: Optional[str] = Query(default=None),
    bet_type: Optional[str] = Query(default=None),
    strategy: Optional[str] = Query(default=None),
    date_range: str = Query(default="all"),
    date_from: Optional[str] = Query(default=None),
    date_to: Optional[str] = Query(default=None),
    db: Session = Depends(get_db),
):
    """Cumulative profit and EV per settled bet, in date order."""
    report = _report(db, sport, bet_type, strategy, date_range, date_from, date_to)
    return {"timeline": report["timeline"], "has_ev_bets": report["metrics"]["has_ev_bets"]}


# ============================================================================
# ERROR HANDLERS
# ============================================================================

@app.exception_handler(Exception)
async def global_exception_handler(request, exc):
    """Catch-all exception handler"""
    logger.error("Unhandled exception: %s", exc, exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error", "type": type(exc).__name__}
    )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=int(os.getenv("API_PORT", "8000")))
