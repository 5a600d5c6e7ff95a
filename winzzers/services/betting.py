"""
User-facing write flows: quote, approve, place bet, claim, create market.

A :class:`BettingSession` binds one ledger handle to one sending account.
Writes from a session are serialized: they share the account's nonce, so a
second write while one is still waiting for its receipt raises
:class:`~winzzers.core.errors.WriteInProgress` instead of queueing.  Nothing
here retries; a rejected write surfaces to the caller, who resubmits.

Amounts typed by a user enter as text.  Previews (:meth:`quote`) parse
leniently and fall back to zero; anything actually submitted is parsed
strictly and rejected with ``InvalidAmount``.
"""

import logging
import threading
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence

from winzzers.core.errors import WriteInProgress, WriteRejected
from winzzers.core.events import decode_market_created
from winzzers.core.ledger_interface import LedgerClient, TxReceipt
from winzzers.core.market_config import MarketConfig
from winzzers.core.market_view import MarketOdds, normalize_odds
from winzzers.core.money import format_amount, parse_amount, parse_amount_or_zero
from winzzers.core.odds_math import DEFAULT_SLIPPAGE_PCT, min_odds, payout
from winzzers.services.metadata import MarketMetadata, MetadataClient

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BetQuote:
    """Advisory preview of a bet.  The contract pays what it computes."""

    market_id: int
    outcome_id: int
    stake: int
    odds: int
    payout: int
    min_odds: int

    def to_dict(self) -> dict:
        return {
            "market_id": self.market_id,
            "outcome_id": self.outcome_id,
            "stake": self.stake,
            "odds": self.odds,
            "payout": self.payout,
            "min_odds": self.min_odds,
        }


@dataclass(frozen=True)
class CreatedMarket:
    tx_hash: str
    market_id: Optional[int]  # None when no MarketCreated log was found
    metadata_synced: bool


def build_quote(
    market_odds: MarketOdds,
    outcome_id: int,
    stake_text: Optional[str],
    slippage_pct: int = DEFAULT_SLIPPAGE_PCT,
) -> BetQuote:
    """
    Payout preview for ``stake_text`` on ``outcome_id``.

    Malformed stake text previews as a zero stake.  Raises ``IndexError``
    for an outcome the market does not have.
    """
    stake = parse_amount_or_zero(stake_text)
    odds = market_odds.odds_for(outcome_id)
    return BetQuote(
        market_id=market_odds.market_id,
        outcome_id=outcome_id,
        stake=stake,
        odds=odds,
        payout=payout(stake, odds),
        min_odds=min_odds(odds, slippage_pct),
    )


class BettingSession:
    """
    Write operations for a single account.

    Usage::

        session = BettingSession(ledger, account="0xabc...")
        quote = session.quote(market_id=3, outcome_id=1, stake_text="25")
        if session.needs_approval(quote.stake):
            session.approve(quote.stake)
        session.place_bet(3, 1, "25")
    """

    def __init__(
        self,
        ledger: LedgerClient,
        account: str,
        metadata: Optional[MetadataClient] = None,
        config: Optional[MarketConfig] = None,
    ):
        if not isinstance(ledger, LedgerClient):
            raise TypeError(f"ledger must be a LedgerClient, got {type(ledger).__name__}")
        self.ledger = ledger
        self.account = account
        self.metadata = metadata
        self.config = config or MarketConfig.base_usdc()
        self._write_gate = threading.Lock()

    @property
    def write_pending(self) -> bool:
        """True while a write awaits its receipt; the submit control is disabled."""
        return self._write_gate.locked()

    # ------------------------------------------------------------------
    # Reads / previews
    # ------------------------------------------------------------------

    def quote(self, market_id: int, outcome_id: int, stake_text: Optional[str]) -> BetQuote:
        """Payout preview against the odds currently on the ledger."""
        market_odds = normalize_odds(self.ledger.get_market_odds(market_id), market_id)
        return build_quote(market_odds, outcome_id, stake_text, self.config.slippage_pct)

    def balance(self) -> int:
        return self.ledger.balance_of(self.account)

    def allowance(self) -> int:
        return self.ledger.allowance(self.account, self.ledger.contract_address)

    def needs_approval(self, stake: int) -> bool:
        return stake > 0 and self.allowance() < stake

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def approve(self, amount: int) -> TxReceipt:
        """Allow the betting contract to pull ``amount`` stake-token units."""
        if amount <= 0:
            raise WriteRejected("approval amount must be positive")
        return self._submit(
            "approve", lambda: self.ledger.approve(self.ledger.contract_address, amount)
        )

    def place_bet(self, market_id: int, outcome_id: int, stake_text: str) -> TxReceipt:
        """
        Validate and submit a bet.

        The stake is parsed strictly.  The odds are re-read at submission
        time and the ``minOdds`` bound is derived from them with the
        configured slippage tolerance.
        """
        stake = parse_amount(stake_text)
        if stake <= 0:
            raise WriteRejected("stake must be greater than zero")

        odds = self._current_odds(market_id, outcome_id)
        bound = min_odds(odds, self.config.slippage_pct)

        balance = self.balance()
        if stake > balance:
            raise WriteRejected(
                f"stake {format_amount(stake)} exceeds balance {format_amount(balance)}"
            )
        allowance = self.allowance()
        if allowance < stake:
            raise WriteRejected(
                f"allowance {format_amount(allowance)} is below stake {format_amount(stake)}; "
                "approve the contract first"
            )

        logger.info(
            "Placing bet: market=%d outcome=%d stake=%s minOdds=%d",
            market_id, outcome_id, format_amount(stake), bound,
        )
        return self._submit(
            "placeBet", lambda: self.ledger.place_bet(market_id, outcome_id, stake, bound)
        )

    def claim(self, ticket_id: int) -> TxReceipt:
        return self._submit("claim", lambda: self.ledger.claim(ticket_id))

    def create_market(
        self,
        outcome_names: Sequence[str],
        title: str,
        description: str,
        tags: Optional[List[str]] = None,
    ) -> CreatedMarket:
        """
        Create a market and record its metadata.

        Blank outcome names are rejected, as are counts outside the
        configured bounds.  After the receipt arrives the new id is decoded
        from the ``MarketCreated`` log and the metadata store is updated
        best-effort; a metadata failure does not fail the call.
        """
        names = [n.strip() for n in outcome_names]
        if any(not n for n in names):
            raise WriteRejected("outcome names must not be blank")
        if not self.config.min_outcomes <= len(names) <= self.config.max_outcomes:
            raise WriteRejected(
                f"a market needs {self.config.min_outcomes}-{self.config.max_outcomes} "
                f"outcomes, got {len(names)}"
            )
        if not title.strip() or not description.strip():
            raise WriteRejected("title and description are required")

        receipt = self._submit(
            "createMarket",
            lambda: self.ledger.create_market(
                names,
                self.config.virtual_liquidity_per_outcome,
                self.config.creator_fee_bps,
            ),
        )

        market_id = decode_market_created(receipt.logs, self.ledger.contract_address)
        synced = False
        if market_id is None:
            logger.warning(
                "createMarket %s emitted no MarketCreated log; metadata not stored",
                receipt.tx_hash,
            )
        elif self.metadata is not None:
            synced = self.metadata.push_best_effort(
                MarketMetadata(
                    market_id=market_id,
                    title=title.strip(),
                    description=description.strip(),
                    tags=list(tags or []),
                )
            )

        logger.info("Market created: id=%s tx=%s", market_id, receipt.tx_hash)
        return CreatedMarket(tx_hash=receipt.tx_hash, market_id=market_id, metadata_synced=synced)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _current_odds(self, market_id: int, outcome_id: int) -> int:
        market_odds = normalize_odds(self.ledger.get_market_odds(market_id), market_id)
        try:
            return market_odds.odds_for(outcome_id)
        except IndexError as exc:
            raise WriteRejected(f"market {market_id} has no outcome {outcome_id}") from exc

    def _submit(self, label: str, send: Callable[[], TxReceipt]) -> TxReceipt:
        if not self._write_gate.acquire(blocking=False):
            raise WriteInProgress(f"{label}: another transaction is still pending")
        try:
            receipt = send()
        finally:
            self._write_gate.release()

        if not receipt.succeeded:
            logger.error("%s reverted: %s", label, receipt.tx_hash)
            raise WriteRejected(f"{label} reverted", receipt.tx_hash)
        logger.info("%s confirmed: %s", label, receipt.tx_hash)
        return receipt
