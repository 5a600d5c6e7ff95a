"""Protocol-level configuration - all contract constants in one place.

Nowhere else in the codebase should token decimals, slippage tolerance or
default market-creation parameters be hard-coded.

:class:`MarketConfig` is a frozen dataclass.  :meth:`MarketConfig.base_usdc`
returns the values the deployed contract and the web frontend agree on.
Override single fields via :func:`dataclasses.replace`::

    from dataclasses import replace
    from winzzers.core.market_config import MarketConfig

    cfg = replace(MarketConfig.base_usdc(), slippage_pct=2)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Final

#: Fractional digits of the settlement token (USDC).
AMOUNT_DECIMALS: Final[int] = 6

#: Integer units per whole token.
AMOUNT_SCALE: Final[int] = 10 ** AMOUNT_DECIMALS

#: Implicit denominator of every on-chain odds value (1.0x == 1_000_000).
ODDS_DENOMINATOR: Final[int] = AMOUNT_SCALE

#: Basis points in 100 %.
BPS_DENOMINATOR: Final[int] = 10_000

#: Largest value a contract ``uint256`` slot can hold.
MAX_UINT256: Final[int] = 2 ** 256 - 1


@dataclass(frozen=True)
class MarketConfig:
    """Immutable bundle of contract and UI constants.

    Attributes:
        decimals: Fractional digits of the stake token.  The contract is
            deployed against 6-decimal USDC on Base.
        slippage_pct: Tolerance applied to quoted odds when building the
            ``minOdds`` bound of a bet.  5 means the bet reverts if odds
            fall more than 5 % between quote and execution.
        virtual_liquidity_per_outcome: Seed liquidity the contract assigns
            to each outcome at creation, in integer units (1000 USDC).
        creator_fee_bps: Creator fee requested at market creation (1 %).
        min_outcomes: Smallest number of outcomes a market may declare.
        max_outcomes: Largest number of outcomes a market may declare.
        refresh_interval_seconds: Default polling cadence for market and
            odds snapshots.
    """

    decimals: int = AMOUNT_DECIMALS
    slippage_pct: int = 5
    virtual_liquidity_per_outcome: int = 1000 * AMOUNT_SCALE
    creator_fee_bps: int = 100
    min_outcomes: int = 2
    max_outcomes: int = 20
    refresh_interval_seconds: int = 10

    def __post_init__(self) -> None:
        if not 0 <= self.slippage_pct < 100:
            raise ValueError(f"slippage_pct must be in [0, 100), got {self.slippage_pct}")
        if not 0 <= self.creator_fee_bps <= BPS_DENOMINATOR:
            raise ValueError(f"creator_fee_bps must be in [0, 10000], got {self.creator_fee_bps}")
        if self.min_outcomes < 2 or self.max_outcomes < self.min_outcomes:
            raise ValueError("outcome bounds must satisfy 2 <= min_outcomes <= max_outcomes")

    @classmethod
    def base_usdc(cls) -> "MarketConfig":
        """Constants used by the production deployment on Base."""
        return cls()
