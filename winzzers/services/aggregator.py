"""
Batch market reads with per-id failure isolation.

Public API:
  market_ids(counter)               → [1..counter]
  MarketAggregator.fetch_all(ids)   → {id: Market}   (failed ids dropped)
  MarketAggregator.refresh(old, ids)→ {id: Market}   (re-fetched ids replaced)
  MarketAggregator.fetch_listed()   → {id: Market}   (OPEN markets only)
  MarketAggregator.fetch_odds_all() → {id: MarketOdds}
  sorted_by_id(mapping)             → [Market, ...]

Reads are independent, side-effect-free ``eth_call``s, so they are issued
concurrently on a thread pool.  One id failing to load (RPC error, revert on
a nonexistent id, malformed tuple) only removes that id from the result; it
never aborts the batch.  The aggregator holds no cache and no timers.
"""

import logging
import os
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Dict, Iterable, List, Optional, Tuple, TypeVar

from winzzers.core.ledger_interface import LedgerClient
from winzzers.core.market_view import (
    Market,
    MarketOdds,
    filter_listed,
    normalize_market,
    normalize_odds,
)

logger = logging.getLogger(__name__)

DEFAULT_MAX_WORKERS = int(os.getenv("MARKET_READ_WORKERS", "8"))

T = TypeVar("T")


def market_ids(counter: int) -> List[int]:
    """Market ids assigned so far.  The contract numbers markets from 1."""
    return list(range(1, max(counter, 0) + 1))


def sorted_by_id(markets: Dict[int, T]) -> List[T]:
    """Values of ``markets`` in ascending id order, for stable display."""
    return [markets[k] for k in sorted(markets)]


class MarketAggregator:
    """
    Fetches many markets through one :class:`LedgerClient`.

    Usage::

        agg = MarketAggregator(ledger)
        markets = agg.fetch_all([1, 2, 3])
        markets = agg.refresh(markets, [2])
    """

    def __init__(self, ledger: LedgerClient, max_workers: int = DEFAULT_MAX_WORKERS):
        if not isinstance(ledger, LedgerClient):
            raise TypeError(f"ledger must be a LedgerClient, got {type(ledger).__name__}")
        self.ledger = ledger
        self.max_workers = max(1, max_workers)

    # ------------------------------------------------------------------
    # Single reads
    # ------------------------------------------------------------------

    def fetch_one(self, market_id: int) -> Market:
        """Read and normalize one market.  Raises on any failure."""
        return normalize_market(self.ledger.get_market_summary(market_id), market_id)

    def fetch_odds(self, market_id: int) -> MarketOdds:
        """Read and normalize one market's odds.  Raises on any failure."""
        return normalize_odds(self.ledger.get_market_odds(market_id), market_id)

    # ------------------------------------------------------------------
    # Batches
    # ------------------------------------------------------------------

    def fetch_all(self, ids: Iterable[int]) -> Dict[int, Market]:
        """One entry per id that loaded and normalized successfully."""
        return self._batch(ids, self.fetch_one, "market")

    def fetch_odds_all(self, ids: Iterable[int]) -> Dict[int, MarketOdds]:
        """Odds counterpart of :meth:`fetch_all`."""
        return self._batch(ids, self.fetch_odds, "odds")

    def refresh(self, existing: Dict[int, Market], ids: Iterable[int]) -> Dict[int, Market]:
        """
        Re-fetch ``ids`` and merge into a copy of ``existing``.

        Entries for ids outside ``ids`` are carried over untouched.  A
        re-fetched id replaces its entry; an id whose re-fetch failed is
        removed rather than kept stale.
        """
        ids = set(ids)
        merged = {k: v for k, v in existing.items() if k not in ids}
        merged.update(self.fetch_all(ids))
        return merged

    def fetch_range(self, counter: Optional[int] = None) -> Dict[int, Market]:
        """Every market ``1..counter``; reads ``marketCounter`` when omitted."""
        if counter is None:
            counter = self.ledger.market_counter()
        return self.fetch_all(market_ids(counter))

    def fetch_listed(self, counter: Optional[int] = None) -> Dict[int, Market]:
        """Default browse view: OPEN markets only."""
        return filter_listed(self.fetch_range(counter).values())

    def _batch(
        self, ids: Iterable[int], read: Callable[[int], T], kind: str
    ) -> Dict[int, T]:
        unique_ids = list(dict.fromkeys(ids))
        if not unique_ids:
            return {}

        def guarded(market_id: int) -> Tuple[int, Optional[T]]:
            try:
                return market_id, read(market_id)
            except Exception as exc:
                logger.warning("Dropping %s %d from batch: %s", kind, market_id, exc)
                return market_id, None

        workers = min(self.max_workers, len(unique_ids))
        with ThreadPoolExecutor(max_workers=workers) as pool:
            results = list(pool.map(guarded, unique_ids))

        loaded = {market_id: value for market_id, value in results if value is not None}
        logger.info(
            "Fetched %d/%d %s reads (%d dropped)",
            len(loaded), len(unique_ids), kind, len(unique_ids) - len(loaded),
        )
        return loaded
