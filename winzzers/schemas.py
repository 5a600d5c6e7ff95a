"""
Pydantic request/response schemas for the Winzzers API.

Amounts and odds travel as integers of 1e-6 units next to their
fixed-point display strings, so clients never have to do float math.
"""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, StrictInt

from winzzers.core.market_view import Market, MarketOdds
from winzzers.core.money import format_amount
from winzzers.core.odds_math import format_odds


# ---------------------------------------------------------------------------
# Metadata store
# ---------------------------------------------------------------------------

class MarketMetadataIn(BaseModel):
    """
    Payload for POST /api/markets.

    Only ``marketId`` is required.  Values are stored as sent: missing text
    fields become empty strings, missing tags ``[]`` and a missing
    ``createdAt`` the time of the request.
    """

    model_config = ConfigDict(populate_by_name=True)

    market_id: StrictInt = Field(..., alias="marketId")
    title: Optional[str] = None
    description: Optional[str] = None
    tags: Optional[List[str]] = None
    created_at: Optional[StrictInt] = Field(None, alias="createdAt")


class MarketMetadataOut(BaseModel):
    market_id: int
    title: str
    description: str
    tags: List[str]
    created_at: int


# ---------------------------------------------------------------------------
# Markets
# ---------------------------------------------------------------------------

class MarketResponse(BaseModel):
    market_id: int
    creator: str
    state: str
    creator_fee_bps: int
    virtual_liquidity: int
    outcome_count: int
    outcome_names: List[str]
    total_staked: int
    total_staked_display: str
    winning_outcome: Optional[int]
    distributable: int

    @classmethod
    def from_market(cls, market: Market) -> "MarketResponse":
        data = market.to_dict()
        data["total_staked_display"] = format_amount(market.total_staked, strip_zeros=True)
        return cls(**data)


class OutcomeOdds(BaseModel):
    outcome_id: int
    name: str
    odds: int
    odds_display: str


class MarketOddsResponse(BaseModel):
    market_id: int
    outcomes: List[OutcomeOdds]

    @classmethod
    def from_odds(cls, market_odds: MarketOdds) -> "MarketOddsResponse":
        return cls(
            market_id=market_odds.market_id,
            outcomes=[
                OutcomeOdds(outcome_id=i, name=name, odds=odds, odds_display=format_odds(odds, places=2))
                for i, (odds, name) in enumerate(zip(market_odds.odds, market_odds.names))
            ],
        )


class MarketListResponse(BaseModel):
    total: int
    markets: List[MarketResponse]


class QuoteResponse(BaseModel):
    """Advisory payout preview.  The contract's own arithmetic is authoritative."""

    market_id: int
    outcome_id: int
    stake: int
    odds: int
    payout: int
    min_odds: int
    payout_display: str
    odds_display: str
