"""Dependency-injection interface for the betting contract.

Every component that reads or writes the ledger accepts a
:class:`LedgerClient` at construction time instead of reaching for a
module-level contract object.  This enables:

* **Unit testing** - inject a fake client that returns canned tuples and
  raises on chosen ids, without a node.
* **Deployment swaps** - a different chain, contract address or RPC
  provider is a different client instance, not a code change.

Design choices
--------------
* :class:`LedgerClient` is an abstract base class rather than a
  ``typing.Protocol`` so a constructor guard can ``isinstance``-check it and
  client authors must inherit the contract explicitly.
* Read methods return the raw positional tuples the contract returns;
  decoding into entities is the job of
  :mod:`winzzers.core.market_view`, so a client stays a thin transport.
* Write methods block until the transaction is mined and return a
  :class:`TxReceipt`.  A reverted transaction is reported through
  ``TxReceipt.status == 0``; callers decide whether that is an error.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, List, Mapping, Sequence, Tuple


@dataclass(frozen=True)
class TxReceipt:
    """Completion record of a mined transaction.

    Attributes:
        tx_hash: ``0x``-prefixed transaction hash.
        status: ``1`` when the transaction succeeded, ``0`` when it reverted.
        logs: Emitted event logs, each a mapping with ``address``,
            ``topics`` and ``data``.
    """

    tx_hash: str
    status: int
    logs: List[Mapping[str, Any]] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return self.status == 1


class LedgerClient(ABC):
    """Abstract read/write handle on the betting contract and its token."""

    #: Address of the betting contract; the spender for token approvals.
    contract_address: str

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    @abstractmethod
    def get_market_summary(self, market_id: int) -> Sequence[Any]:
        """Raw 9-field ``getMarketSummary`` tuple."""

    @abstractmethod
    def get_market_odds(self, market_id: int) -> Tuple[Sequence[int], Sequence[str]]:
        """Raw ``(odds[], names[])`` pair."""

    @abstractmethod
    def market_counter(self) -> int:
        """Highest market id assigned so far."""

    @abstractmethod
    def balance_of(self, address: str) -> int:
        """Stake-token balance of ``address`` in integer units."""

    @abstractmethod
    def allowance(self, owner: str, spender: str) -> int:
        """Stake-token amount ``spender`` may move on behalf of ``owner``."""

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    @abstractmethod
    def create_market(
        self,
        outcome_names: Sequence[str],
        virtual_liquidity_per_outcome: int,
        creator_fee_bps: int,
    ) -> TxReceipt:
        """Submit ``createMarket`` and wait for its receipt."""

    @abstractmethod
    def place_bet(
        self, market_id: int, outcome_id: int, amount: int, min_odds: int
    ) -> TxReceipt:
        """Submit ``placeBet`` and wait for its receipt."""

    @abstractmethod
    def approve(self, spender: str, amount: int) -> TxReceipt:
        """Submit a stake-token ``approve`` and wait for its receipt."""

    @abstractmethod
    def claim(self, ticket_id: int) -> TxReceipt:
        """Submit ``claim`` and wait for its receipt."""
