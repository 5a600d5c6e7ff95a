"""Normalization of raw contract reads into UI-ready market entities.

``getMarketSummary(id)`` returns a positional 9-tuple::

    (creator, state, creatorFee, virtualLiquidity, outcomeCount,
     outcomeNames, totalStaked, winningOutcome, distributable)

and ``getMarketOdds(id)`` returns ``(odds[], names[])``.  The functions here
turn those tuples into frozen dataclasses and refuse anything that does not
fit, so downstream code never sees a half-decoded market.

The contract reports ``winningOutcome == 0`` for markets that are not
resolved yet, which is indistinguishable from "outcome 0 won".
:func:`normalize_market` therefore maps it to ``None`` unless the state is
:attr:`MarketState.RESOLVED`.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Dict, Iterable, Optional, Sequence, Tuple

from winzzers.core.errors import MalformedMarketData

SUMMARY_FIELDS: Tuple[str, ...] = (
    "creator",
    "state",
    "creatorFee",
    "virtualLiquidity",
    "outcomeCount",
    "outcomeNames",
    "totalStaked",
    "winningOutcome",
    "distributable",
)


class MarketState(IntEnum):
    """Lifecycle of a market as stored by the contract."""

    CREATED = 0
    OPEN = 1
    LOCKED = 2
    RESOLVED = 3
    CANCELLED = 4


@dataclass(frozen=True)
class Market:
    """One betting proposition, as read from the ledger.

    Attributes:
        market_id: Contract-assigned id (``1..marketCounter``).
        creator: Address that created the market.
        state: Lifecycle state.
        creator_fee_bps: Creator fee in basis points.
        virtual_liquidity: Seed liquidity per outcome, integer units.
        outcome_count: Number of outcomes.
        outcome_names: Outcome labels, ``len == outcome_count``.
        total_staked: Sum of all stakes, integer units.
        winning_outcome: Index of the winning outcome; ``None`` unless
            the market is resolved.
        distributable: Pool available to winners, integer units.
    """

    market_id: int
    creator: str
    state: MarketState
    creator_fee_bps: int
    virtual_liquidity: int
    outcome_count: int
    outcome_names: Tuple[str, ...]
    total_staked: int
    winning_outcome: Optional[int]
    distributable: int

    @property
    def is_listed(self) -> bool:
        return is_listed(self)

    def to_dict(self) -> dict:
        return {
            "market_id": self.market_id,
            "creator": self.creator,
            "state": self.state.name,
            "creator_fee_bps": self.creator_fee_bps,
            "virtual_liquidity": self.virtual_liquidity,
            "outcome_count": self.outcome_count,
            "outcome_names": list(self.outcome_names),
            "total_staked": self.total_staked,
            "winning_outcome": self.winning_outcome,
            "distributable": self.distributable,
        }


@dataclass(frozen=True)
class MarketOdds:
    """Current odds per outcome, index-aligned with ``names``."""

    market_id: int
    odds: Tuple[int, ...]
    names: Tuple[str, ...]

    def odds_for(self, outcome_id: int) -> int:
        if not 0 <= outcome_id < len(self.odds):
            raise IndexError(
                f"market {self.market_id} has no outcome {outcome_id} "
                f"({len(self.odds)} outcomes)"
            )
        return self.odds[outcome_id]


# ---------------------------------------------------------------------------
# Normalization
# ---------------------------------------------------------------------------


def normalize_market(raw: Sequence[Any], market_id: int) -> Market:
    """Build a :class:`Market` from a ``getMarketSummary`` tuple.

    Raises:
        MalformedMarketData: Wrong arity, a field of the wrong type, an
            unknown state value, a negative amount, a name list whose length
            differs from ``outcomeCount``, or a resolved market whose
            winning index is out of range.
    """
    if isinstance(raw, (str, bytes)) or not isinstance(raw, Sequence):
        raise MalformedMarketData(
            f"summary must be a sequence, got {type(raw).__name__}", market_id
        )
    if len(raw) != len(SUMMARY_FIELDS):
        raise MalformedMarketData(
            f"summary has {len(raw)} fields, expected {len(SUMMARY_FIELDS)}", market_id
        )

    (
        creator,
        state,
        creator_fee,
        virtual_liquidity,
        outcome_count,
        outcome_names,
        total_staked,
        winning_outcome,
        distributable,
    ) = raw

    if not isinstance(creator, str):
        raise MalformedMarketData(f"creator must be an address string, got {creator!r}", market_id)

    state_value = _uint(state, "state", market_id)
    try:
        market_state = MarketState(state_value)
    except ValueError:
        raise MalformedMarketData(f"unknown market state {state_value}", market_id) from None

    names = _str_tuple(outcome_names, "outcomeNames", market_id)
    count = _uint(outcome_count, "outcomeCount", market_id)
    if len(names) != count:
        raise MalformedMarketData(
            f"outcomeCount is {count} but {len(names)} outcome names were returned", market_id
        )

    winner: Optional[int] = None
    winning_value = _uint(winning_outcome, "winningOutcome", market_id)
    if market_state is MarketState.RESOLVED:
        if winning_value >= count:
            raise MalformedMarketData(
                f"winningOutcome {winning_value} out of range for {count} outcomes", market_id
            )
        winner = winning_value

    return Market(
        market_id=market_id,
        creator=creator,
        state=market_state,
        creator_fee_bps=_uint(creator_fee, "creatorFee", market_id),
        virtual_liquidity=_uint(virtual_liquidity, "virtualLiquidity", market_id),
        outcome_count=count,
        outcome_names=names,
        total_staked=_uint(total_staked, "totalStaked", market_id),
        winning_outcome=winner,
        distributable=_uint(distributable, "distributable", market_id),
    )


def normalize_odds(raw: Sequence[Any], market_id: int) -> MarketOdds:
    """Build :class:`MarketOdds` from a ``getMarketOdds`` ``(odds, names)`` pair."""
    if isinstance(raw, (str, bytes)) or not isinstance(raw, Sequence) or len(raw) != 2:
        raise MalformedMarketData("odds read must be an (odds, names) pair", market_id)

    raw_odds, raw_names = raw
    if isinstance(raw_odds, (str, bytes)) or not isinstance(raw_odds, Sequence):
        raise MalformedMarketData("odds must be a list of integers", market_id)

    odds = tuple(_uint(o, "odds", market_id) for o in raw_odds)
    names = _str_tuple(raw_names, "names", market_id)
    if len(odds) != len(names):
        raise MalformedMarketData(
            f"{len(odds)} odds values for {len(names)} outcome names", market_id
        )
    return MarketOdds(market_id=market_id, odds=odds, names=names)


# ---------------------------------------------------------------------------
# Listing filter
# ---------------------------------------------------------------------------


def is_listed(market: Market) -> bool:
    """Only open markets appear in the default browse view."""
    return market.state is MarketState.OPEN


def filter_listed(markets: Iterable[Market]) -> Dict[int, Market]:
    """Keep listed markets, keyed by id."""
    return {m.market_id: m for m in markets if is_listed(m)}


# ---------------------------------------------------------------------------
# Field coercion
# ---------------------------------------------------------------------------


def _uint(value: Any, name: str, market_id: int) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise MalformedMarketData(f"{name} must be an integer, got {value!r}", market_id)
    if value < 0:
        raise MalformedMarketData(f"{name} must be non-negative, got {value}", market_id)
    return value


def _str_tuple(value: Any, name: str, market_id: int) -> Tuple[str, ...]:
    if isinstance(value, (str, bytes)) or not isinstance(value, Sequence):
        raise MalformedMarketData(f"{name} must be a list of strings", market_id)
    if not all(isinstance(v, str) for v in value):
        raise MalformedMarketData(f"{name} must contain only strings", market_id)
    return tuple(value)
