#!/usr/bin/env python3
"""
Print markets read straight from the ledger.

Usage:
    python scripts/list_markets.py                # OPEN markets
    python scripts/list_markets.py --all          # every state
    python scripts/list_markets.py --ids 3 7 9    # specific ids, with odds
"""

import sys
import os

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from dotenv import load_dotenv
load_dotenv()

import argparse
import logging

from winzzers.core.money import format_amount
from winzzers.core.odds_math import format_odds
from winzzers.services.aggregator import MarketAggregator, sorted_by_id
from winzzers.services.ledger import Web3LedgerClient

logging.basicConfig(
    level=logging.WARNING,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def main():
    parser = argparse.ArgumentParser(description="List Winzzers markets")
    parser.add_argument("--all", action="store_true", help="Include non-OPEN markets")
    parser.add_argument("--ids", type=int, nargs="+", help="Only these market ids")
    parser.add_argument("--rpc-url", default=None, help="Override WINZZERS_RPC_URL")
    args = parser.parse_args()

    aggregator = MarketAggregator(Web3LedgerClient(rpc_url=args.rpc_url))

    if args.ids:
        markets = aggregator.fetch_all(args.ids)
    elif args.all:
        markets = aggregator.fetch_range()
    else:
        markets = aggregator.fetch_listed()

    if not markets:
        print("No markets found.")
        return

    odds = aggregator.fetch_odds_all(markets.keys())

    for market in sorted_by_id(markets):
        print(
            f"#{market.market_id:<4} {market.state.name:<9} "
            f"staked ${format_amount(market.total_staked, strip_zeros=True):<12} "
            f"fee {market.creator_fee_bps}bps"
        )
        market_odds = odds.get(market.market_id)
        for i, name in enumerate(market.outcome_names):
            has_odds = market_odds is not None and i < len(market_odds.odds)
            price = format_odds(market_odds.odds[i], places=2) + "x" if has_odds else "-.--x"
            marker = " (winner)" if market.winning_outcome == i else ""
            print(f"      [{i}] {name:<30} {price}{marker}")


if __name__ == "__main__":
    main()
