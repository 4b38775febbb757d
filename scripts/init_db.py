#!/usr/bin/env python3
"""
Database initialization script
Creates all tables, seeds the default bet-type catalog and optionally sample bets
"""

import sys
import os

# Add parent directory to path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

# Load .env file
from dotenv import load_dotenv
load_dotenv()

from backend.models import Base, engine, SessionLocal
from backend.services import bet_store
from datetime import date
import logging
from sqlalchemy import text, inspect

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

SAMPLE_SPORTS = ["Horse", "Greyhound", "Harness"]


def init_database(drop_existing: bool = False):
    """
    Initialize database tables

    Args:
        drop_existing: If True, drops all tables first (DANGER: data loss!)
    """
    logger.info("🔧 Initializing Bet Ledger database...")

    if drop_existing:
        logger.warning("⚠️  Dropping all existing tables!")
        response = input("Are you sure? This will delete all data. Type 'yes' to confirm: ")
        if response.lower() != 'yes':
            logger.info("Aborted.")
            return False

        Base.metadata.drop_all(bind=engine)
        logger.info("✅ Existing tables dropped")

    Base.metadata.create_all(bind=engine)
    logger.info("✅ Database tables created successfully")

    db = SessionLocal()
    try:
        added = bet_store.seed_defaults(db)
        logger.info("📋 Default bet types added: %d", added)
    finally:
        db.close()

    inspector = inspect(engine)
    logger.info("📋 Tables: %s", ", ".join(inspector.get_table_names()))
    return True


def seed_test_data():
    """Add sample sports and bets for development"""
    logger.info("🌱 Seeding sample bets...")

    today = date.today().strftime("%d/%m/%Y")
    db = SessionLocal()

    try:
        for name in SAMPLE_SPORTS:
            bet_store.add_sport(db, name)

        # Pending EV back bet: EV filled from the closing estimate
        bet_store.create_bet(db, {
            "date": today, "sport": "Horse", "event": "Spring Cup", "round_race": "Final",
            "selection": "Speedster", "bet": "Win", "odds": 3.5, "stake": 10,
            "closing": 4.0, "commission": 8, "strategy_ref": "S1",
        })
        # Pending line bet
        bet_store.create_bet(db, {
            "date": today, "sport": "Greyhound", "event": "Final Dash",
            "selection": "Flash", "bet": "Line", "odds": 2.0, "stake": 20,
            "line": "2.5", "commission": 0, "strategy_ref": "S2",
        })
        # Settled back win and lay loss go through the settlement engine
        won = bet_store.create_bet(db, {
            "date": today, "sport": "Horse", "event": "Autumn Stakes", "round_race": "Heat 1",
            "selection": "Thunder", "bet": "Win", "odds": 2.5, "stake": 10,
            "commission": 8, "strategy_ref": "S1",
        })
        bet_store.settle_bet(db, won.id, "WIN", reference_price=2.8)

        lost = bet_store.create_bet(db, {
            "date": today, "sport": "Harness", "event": "Night Cup",
            "selection": "Runner", "bet": "Lay Win", "odds": 4.0, "stake": 5,
            "commission": 0, "strategy_ref": "S3",
        })
        bet_store.settle_bet(db, lost.id, "LOSE", reference_price=3.5)

        logger.info("✅ Sample data seeded")

    except Exception as e:
        logger.error("❌ Error seeding data: %s", e)
        db.rollback()

    finally:
        db.close()


def check_connection():
    """Test database connection"""
    try:
        db = SessionLocal()
        db.execute(text("SELECT 1"))
        db.close()
        logger.info("✅ Database connection successful")
        return True
    except Exception as e:
        logger.error("❌ Database connection failed: %s", e)
        return False


if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description="Initialize Bet Ledger database")
    parser.add_argument("--drop", action="store_true", help="Drop existing tables (DANGER!)")
    parser.add_argument("--seed", action="store_true", help="Seed sample sports and bets")
    parser.add_argument("--check", action="store_true", help="Only check connection")

    args = parser.parse_args()

    if args.check:
        check_connection()
    else:
        if check_connection():
            if init_database(drop_existing=args.drop) and args.seed:
                seed_test_data()

            logger.info("🎉 Database initialization complete!")
        else:
            logger.error("Cannot initialize database - connection failed")
            sys.exit(1)
