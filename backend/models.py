"""
Database models for the Bet Ledger
SQLAlchemy ORM, SQLite by default (any SQLAlchemy URL works)
"""

from sqlalchemy import (
    create_engine,
    Column,
    Integer,
    String,
    Float,
    DateTime,
    Text,
)
from sqlalchemy.engine import make_url
from sqlalchemy.orm import declarative_base, sessionmaker
from datetime import datetime
import os
from dotenv import load_dotenv

load_dotenv()

DATA_DIR = os.getenv("DATA_DIR", os.path.join(os.getcwd(), "data"))
DATABASE_URL = os.getenv("DATABASE_URL", f"sqlite:///{os.path.join(DATA_DIR, 'bets.db')}")


def make_engine(url: str = DATABASE_URL):
    """Engine for ``url``; file-backed SQLite gets its directory created."""
    connect_args = {}
    parsed = make_url(url)
    if parsed.get_backend_name() == "sqlite":
        # FastAPI serves sync routes from a threadpool
        connect_args["check_same_thread"] = False
        if parsed.database and parsed.database != ":memory:":
            os.makedirs(os.path.dirname(os.path.abspath(parsed.database)), exist_ok=True)
    return create_engine(url, pool_pre_ping=True, echo=False, connect_args=connect_args)


engine = make_engine()
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


# Dependency for FastAPI
def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


class Bet(Base):
    """One wager, from placement (PENDING) through settlement"""

    __tablename__ = "bets"

    id = Column(Integer, primary_key=True, index=True)
    date = Column(String)  # dd/mm/yyyy as entered
    sport = Column(String, index=True)
    event = Column(String)
    round_race = Column(String)
    selection = Column(String)
    bet = Column(String, index=True)  # bet-type name, e.g. "Win", "Lay Place", "Line"

    odds = Column(Float)  # decimal odds taken
    stake = Column(Float)
    commission = Column(Float, default=0.0)  # percent of positive returns

    # Settlement reference: closing for ev kinds, closing_line for line kinds
    closing = Column(Float)
    line = Column(Text)
    closing_line = Column(Text)

    # EV kinds only
    ev_perc = Column(Float)
    ev_val = Column(Float)

    result = Column(String, default="PENDING", nullable=False, index=True)  # PENDING | WIN | LOSE | VOID
    return_value = Column("return", Float)  # NULL while PENDING

    # Exchange identifiers, stored but never validated
    bf_market_id = Column(String)
    bf_selection_id = Column(String)
    strategy_ref = Column(String, index=True)

    created_at = Column(DateTime, default=datetime.utcnow)


class Sport(Base):
    __tablename__ = "sports"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, unique=True, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)


class BetType(Base):
    """Bet-type catalog entry: kind decides settlement fields, direction the sign"""

    __tablename__ = "bet_types"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, unique=True, nullable=False)
    kind = Column(String, default="line", nullable=False)  # "line" | "ev"
    direction = Column(String)  # "back" | "lay" | NULL (inferred from name)
    created_at = Column(DateTime, default=datetime.utcnow)


# Create all tables
def init_db(bind=None):
    """Initialize database tables"""
    Base.metadata.create_all(bind=bind or engine)


if __name__ == "__main__":
    init_db()
    print("✅ Database tables created")
