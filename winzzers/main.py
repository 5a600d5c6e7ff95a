"""
FastAPI application for the Winzzers betting client
Serves the metadata store route, read-only market views and the refresh job
"""

from fastapi import FastAPI, Depends, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from apscheduler.schedulers.background import BackgroundScheduler
from pydantic import ValidationError
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Optional
import json
import logging
import os
import time

from winzzers import __version__
from winzzers.core.errors import InvalidAmount, MalformedMarketData, ReadFailure
from winzzers.core.market_config import MarketConfig
from winzzers.core.money import format_amount
from winzzers.core.odds_math import format_odds
from winzzers.models import Base, MarketMetadataRecord, engine, get_db, metadata_key
from winzzers.schemas import (
    MarketListResponse,
    MarketMetadataIn,
    MarketMetadataOut,
    MarketOddsResponse,
    MarketResponse,
    QuoteResponse,
)
from winzzers.services.aggregator import MarketAggregator, sorted_by_id
from winzzers.services.betting import build_quote
from winzzers.services.ledger import Web3LedgerClient
from winzzers.services.market_monitor import REFRESH_INTERVAL_SEC, MarketMonitor

# Logging setup
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# Scheduler instance
scheduler = BackgroundScheduler()

_aggregator: Optional[MarketAggregator] = None
_monitor: Optional[MarketMonitor] = None


def get_aggregator() -> MarketAggregator:
    """Process-wide aggregator over the configured Web3 ledger."""
    global _aggregator
    if _aggregator is None:
        _aggregator = MarketAggregator(Web3LedgerClient())
    return _aggregator


def get_monitor() -> MarketMonitor:
    global _monitor
    if _monitor is None:
        _monitor = MarketMonitor(get_aggregator())
    return _monitor


def get_config() -> MarketConfig:
    return MarketConfig.base_usdc()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events"""
    logger.info("Starting Winzzers API v%s", __version__)

    Base.metadata.create_all(bind=engine)

    monitor = get_monitor()
    monitor.start(scheduler, interval_seconds=REFRESH_INTERVAL_SEC)
    # First snapshot immediately instead of one interval after boot.
    scheduler.add_job(monitor.poll_job, id="market_refresh_initial", replace_existing=True)
    scheduler.start()

    yield

    logger.info("Shutting down Winzzers API")
    scheduler.shutdown()


app = FastAPI(
    title="Winzzers API",
    description="Odds, payouts and market metadata for the Winzzers betting contract",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=os.getenv("CORS_ORIGINS", "http://localhost:3000").split(","),
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
        "app": "Winzzers API",
        "version": __version__,
        "status": "operational",
        "timestamp": datetime.utcnow().isoformat(),
    }


@app.get("/health")
async def health_check(
    db: Session = Depends(get_db),
    monitor: MarketMonitor = Depends(get_monitor),
):
    """Health check endpoint"""
    health = {"status": "healthy", "database": "connected", "scheduler": "running"}

    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.error("Health check database error: %s", e)
        health["status"] = "degraded"
        health["database"] = f"error: {e}"

    if not scheduler.running:
        health["status"] = "degraded"
        health["scheduler"] = "stopped"

    health["markets"] = monitor.status()
    return health


# ============================================================================
# MARKETS (read-only)
# ============================================================================

@app.get("/api/markets", response_model=MarketListResponse)
def list_markets(
    include_closed: bool = Query(default=False, description="Include non-OPEN markets"),
    monitor: MarketMonitor = Depends(get_monitor),
):
    """Markets from the latest snapshot, ascending id.  OPEN only by default."""
    markets = sorted_by_id(monitor.snapshot()) if include_closed else monitor.listed()
    return MarketListResponse(
        total=len(markets),
        markets=[MarketResponse.from_market(m) for m in markets],
    )


@app.get("/api/markets/{market_id}", response_model=MarketResponse)
def get_market(market_id: int, aggregator: MarketAggregator = Depends(get_aggregator)):
    """Fresh read of a single market, in any state."""
    try:
        market = aggregator.fetch_one(market_id)
    except (ReadFailure, MalformedMarketData) as e:
        logger.warning("Market %d unavailable: %s", market_id, e)
        raise HTTPException(status_code=404, detail=f"Market {market_id} could not be loaded")
    return MarketResponse.from_market(market)


@app.get("/api/markets/{market_id}/odds", response_model=MarketOddsResponse)
def get_market_odds(market_id: int, aggregator: MarketAggregator = Depends(get_aggregator)):
    try:
        market_odds = aggregator.fetch_odds(market_id)
    except (ReadFailure, MalformedMarketData) as e:
        logger.warning("Odds for market %d unavailable: %s", market_id, e)
        raise HTTPException(status_code=404, detail=f"Odds for market {market_id} could not be loaded")
    return MarketOddsResponse.from_odds(market_odds)


@app.get("/api/markets/{market_id}/quote", response_model=QuoteResponse)
def get_quote(
    market_id: int,
    outcome: int = Query(..., ge=0),
    stake: str = Query(default=""),
    aggregator: MarketAggregator = Depends(get_aggregator),
    config: MarketConfig = Depends(get_config),
):
    """
    Advisory payout preview.  A malformed stake previews as zero; the
    submitted bet must still pass strict parsing.
    """
    try:
        market_odds = aggregator.fetch_odds(market_id)
    except (ReadFailure, MalformedMarketData) as e:
        logger.warning("Quote for market %d unavailable: %s", market_id, e)
        raise HTTPException(status_code=404, detail=f"Odds for market {market_id} could not be loaded")

    try:
        quote = build_quote(market_odds, outcome, stake, config.slippage_pct)
        payout_display = format_amount(quote.payout, strip_zeros=True)
    except (IndexError, InvalidAmount) as e:
        raise HTTPException(status_code=400, detail=str(e))

    return QuoteResponse(
        **quote.to_dict(),
        payout_display=payout_display,
        odds_display=format_odds(quote.odds, places=2),
    )


# ============================================================================
# METADATA STORE
# ============================================================================

@app.post("/api/markets")
async def store_market_metadata(request: Request, db: Session = Depends(get_db)):
    """
    Store title/description/tags for a market under ``market:meta:<id>``.

    Responds ``{"ok": true}``, or ``{"error": ...}`` with 400 when the body
    is unreadable or ``marketId`` is missing or invalid, and 500 on any
    other failure.  Fields are stored as sent; tags are JSON-encoded.
    """
    try:
        body = await request.json()
    except ValueError:  # JSONDecodeError and UnicodeDecodeError
        return JSONResponse({"error": "body must be JSON"}, status_code=400)

    market_id = body.get("marketId") if isinstance(body, dict) else None
    if isinstance(market_id, bool) or not isinstance(market_id, int):
        return JSONResponse({"error": "marketId is required"}, status_code=400)

    try:
        payload = MarketMetadataIn.model_validate(body)
    except ValidationError as e:
        return JSONResponse({"error": e.errors(include_url=False)[0]["msg"]}, status_code=400)

    key = metadata_key(payload.market_id)
    created_at = payload.created_at if payload.created_at is not None else int(time.time() * 1000)

    try:
        record = MarketMetadataRecord(
            key=key,
            market_id=str(payload.market_id),
            title=payload.title or "",
            description=payload.description or "",
            tags=json.dumps(payload.tags, separators=(",", ":")) if payload.tags is not None else "[]",
            created_at=str(created_at),
        )
        db.merge(record)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("Metadata store write failed for %s: %s", key, e)
        return JSONResponse({"error": str(e)}, status_code=500)
    except Exception as e:
        db.rollback()
        logger.error("Unexpected metadata store error for %s: %s", key, e, exc_info=True)
        return JSONResponse({"error": str(e) or type(e).__name__}, status_code=500)

    logger.info("Stored %s", key)
    return {"ok": True}


@app.get("/api/markets/{market_id}/metadata", response_model=MarketMetadataOut)
def get_market_metadata(market_id: int, db: Session = Depends(get_db)):
    record = db.get(MarketMetadataRecord, metadata_key(market_id))
    if record is None:
        raise HTTPException(status_code=404, detail=f"No metadata for market {market_id}")
    return MarketMetadataOut(
        market_id=int(record.market_id),
        title=record.title,
        description=record.description,
        tags=json.loads(record.tags),
        created_at=int(record.created_at),
    )


# ============================================================================
# ERROR HANDLERS
# ============================================================================

@app.exception_handler(Exception)
async def global_exception_handler(request, exc):
    """Catch-all exception handler"""
    logger.error("Unhandled exception: %s", exc, exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"error": "Internal server error", "type": type(exc).__name__},
    )
