#!/usr/bin/env python3
"""
Metadata store setup
Creates the market_metadata table and inspects stored records

Usage:
    python scripts/init_db.py             # create tables
    python scripts/init_db.py --check     # connection check only
    python scripts/init_db.py --list      # dump stored metadata hashes
    python scripts/init_db.py --reset     # drop and recreate (asks first)
"""

import sys
import os

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from dotenv import load_dotenv
load_dotenv()

import argparse
import logging

from sqlalchemy import inspect, text
from sqlalchemy.exc import SQLAlchemyError

from winzzers.models import DATABASE_URL, Base, MarketMetadataRecord, SessionLocal, engine

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def check_connection() -> bool:
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.error("Cannot reach %s: %s", DATABASE_URL, e)
        return False
    logger.info("Connected to %s", DATABASE_URL)
    return True


def create_tables(reset: bool = False) -> bool:
    """
    Create the metadata table.  With ``reset`` the table is dropped first,
    which discards every stored title/description/tag set.
    """
    if reset:
        answer = input("Drop all stored market metadata? Type 'yes' to confirm: ")
        if answer.lower() != "yes":
            logger.info("Reset aborted")
            return False
        Base.metadata.drop_all(bind=engine)
        logger.warning("market_metadata dropped")

    Base.metadata.create_all(bind=engine)
    logger.info("Tables present: %s", ", ".join(inspect(engine).get_table_names()))
    return True


def list_records() -> int:
    """Print every stored hash in market id order.  Returns the count."""
    db = SessionLocal()
    try:
        records = sorted(db.query(MarketMetadataRecord).all(), key=lambda r: int(r.market_id))
        for record in records:
            print(record.key, record.to_hash())
        return len(records)
    finally:
        db.close()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Set up the Winzzers metadata store")
    parser.add_argument("--check", action="store_true", help="Only check the connection")
    parser.add_argument("--list", action="store_true", help="Print stored metadata records")
    parser.add_argument("--reset", action="store_true", help="Drop and recreate tables")
    args = parser.parse_args()

    if not check_connection():
        sys.exit(1)
    if args.check:
        sys.exit(0)

    if args.list:
        count = list_records()
        logger.info("%d metadata record(s)", count)
    else:
        sys.exit(0 if create_tables(reset=args.reset) else 1)
