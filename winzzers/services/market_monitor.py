"""
Interval refresh of the market snapshot.

Complements the stateless aggregator by keeping the latest
``{id: Market}`` view in memory for the HTTP layer and re-reading it on a
fixed cadence.

Design:
    - Runs as an APScheduler interval job (default: every 10 seconds).
    - Each poll re-reads ``marketCounter`` and every id up to it.
    - Results are applied latest-wins per market id: a poll that started
      earlier never overwrites an entry written by a poll that started
      later, even if it finishes last.
    - Ids whose read failed in the newest poll are removed from the view.
"""

import logging
import os
import threading
from datetime import datetime
from typing import Dict, List, Optional

from apscheduler.triggers.interval import IntervalTrigger

from winzzers.core.market_view import Market, filter_listed
from winzzers.services.aggregator import MarketAggregator, market_ids, sorted_by_id

logger = logging.getLogger(__name__)

REFRESH_INTERVAL_SEC = int(os.getenv("MARKET_REFRESH_INTERVAL_SEC", "10"))


class MarketMonitor:
    """
    Holds the current market snapshot and refreshes it.

    Usage::

        monitor = MarketMonitor(MarketAggregator(ledger))
        monitor.start(scheduler)   # BackgroundScheduler owned by the app
        monitor.listed()           # OPEN markets, ascending id
    """

    JOB_ID = "market_refresh"

    def __init__(self, aggregator: MarketAggregator):
        self.aggregator = aggregator
        self._lock = threading.Lock()
        self._markets: Dict[int, Market] = {}
        self._applied_generation: Dict[int, int] = {}  # market_id -> poll generation
        self._generation = 0
        self._last_poll: Optional[datetime] = None
        self._last_counter: Optional[int] = None

    # ------------------------------------------------------------------
    # Scheduling
    # ------------------------------------------------------------------

    def start(self, scheduler, interval_seconds: int = REFRESH_INTERVAL_SEC) -> None:
        """Register :meth:`poll` on ``scheduler`` at a fixed interval."""
        scheduler.add_job(
            self.poll_job,
            IntervalTrigger(seconds=interval_seconds),
            id=self.JOB_ID,
            name="Market Snapshot Refresh",
            replace_existing=True,
            max_instances=2,
            coalesce=True,
        )
        logger.info("Market refresh scheduled every %ds", interval_seconds)

    def poll_job(self) -> None:
        try:
            self.poll()
        except Exception as exc:
            logger.error("Market refresh job failed: %s", exc, exc_info=True)

    # ------------------------------------------------------------------
    # Polling
    # ------------------------------------------------------------------

    def poll(self, ids: Optional[List[int]] = None) -> Dict:
        """
        Re-read ``ids`` (default: ``1..marketCounter``) and apply the result.

        Returns a summary dict for logging / the status endpoint.
        """
        with self._lock:
            self._generation += 1
            generation = self._generation

        counter = None
        if ids is None:
            counter = self.aggregator.ledger.market_counter()
            ids = market_ids(counter)

        fresh = self.aggregator.fetch_all(ids)
        applied = self._apply(generation, ids, fresh)

        self._last_poll = datetime.utcnow()
        if counter is not None:
            self._last_counter = counter
        return {
            "status": "ok",
            "generation": generation,
            "requested": len(ids),
            "loaded": len(fresh),
            "applied": applied,
        }

    def _apply(self, generation: int, ids: List[int], fresh: Dict[int, Market]) -> int:
        applied = 0
        with self._lock:
            for market_id in ids:
                if self._applied_generation.get(market_id, 0) > generation:
                    continue  # superseded by a newer poll
                self._applied_generation[market_id] = generation
                if market_id in fresh:
                    self._markets[market_id] = fresh[market_id]
                else:
                    self._markets.pop(market_id, None)
                applied += 1
        return applied

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    def snapshot(self) -> Dict[int, Market]:
        with self._lock:
            return dict(self._markets)

    def get(self, market_id: int) -> Optional[Market]:
        with self._lock:
            return self._markets.get(market_id)

    def listed(self) -> List[Market]:
        return sorted_by_id(filter_listed(self.snapshot().values()))

    def status(self) -> Dict:
        with self._lock:
            return {
                "markets_cached": len(self._markets),
                "last_poll": self._last_poll.isoformat() if self._last_poll else None,
                "market_counter": self._last_counter,
                "generation": self._generation,
            }
