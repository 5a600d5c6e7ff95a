"""Shared fixtures: an in-memory ledger that stands in for the contract."""

import pytest

from winzzers.core.ledger_interface import LedgerClient, TxReceipt

CONTRACT = "0x6e2456c991fc5d2d0835d4d75558e7ddf28d6956"
CREATOR = "0x1111111111111111111111111111111111111111"
BETTOR = "0x2222222222222222222222222222222222222222"


def summary(state=1, names=("Yes", "No"), count=None, total_staked=0, winner=0,
            fee=100, liquidity=1_000_000_000, distributable=0, creator=CREATOR):
    """Raw getMarketSummary tuple in contract field order."""
    return [
        creator,
        state,
        fee,
        liquidity,
        len(names) if count is None else count,
        list(names),
        total_staked,
        winner,
        distributable,
    ]


class FakeLedger(LedgerClient):
    """
    Canned reads keyed by market id.  A value that is an exception instance
    is raised instead of returned.  Writes are recorded and answered with
    ``next_receipt``.
    """

    def __init__(self):
        self.contract_address = CONTRACT
        self.summaries = {}
        self.odds = {}
        self.counter = 0
        self.balances = {}
        self.allowances = {}
        self.writes = []
        self.next_receipt = TxReceipt(tx_hash="0xabc", status=1, logs=[])
        self.on_write = None

    @staticmethod
    def _answer(value):
        if isinstance(value, BaseException):
            raise value
        return value

    def get_market_summary(self, market_id):
        if market_id not in self.summaries:
            raise RuntimeError(f"execution reverted: market {market_id} does not exist")
        return self._answer(self.summaries[market_id])

    def get_market_odds(self, market_id):
        if market_id not in self.odds:
            raise RuntimeError(f"execution reverted: market {market_id} does not exist")
        return self._answer(self.odds[market_id])

    def market_counter(self):
        return self.counter

    def balance_of(self, address):
        return self.balances.get(address, 0)

    def allowance(self, owner, spender):
        return self.allowances.get((owner, spender), 0)

    def _write(self, *call):
        self.writes.append(call)
        if self.on_write is not None:
            self.on_write()
        return self.next_receipt

    def create_market(self, outcome_names, virtual_liquidity_per_outcome, creator_fee_bps):
        return self._write("createMarket", list(outcome_names), virtual_liquidity_per_outcome, creator_fee_bps)

    def place_bet(self, market_id, outcome_id, amount, min_odds):
        return self._write("placeBet", market_id, outcome_id, amount, min_odds)

    def approve(self, spender, amount):
        return self._write("approve", spender, amount)

    def claim(self, ticket_id):
        return self._write("claim", ticket_id)


@pytest.fixture
def ledger():
    return FakeLedger()
