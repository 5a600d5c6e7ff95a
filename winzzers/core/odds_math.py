"""Odds mathematics - the single source of truth for payout previews.

Every function here is **pure**: no I/O, no logging, no side effects.
Import from this module; never reimplement locally in services.

Odds are integers over :data:`ODDS_DENOMINATOR` (``1_000_000 == 1.0x``),
the same scale as stake amounts.  All arithmetic is integer-only and
truncates toward zero, exactly like the contract's Solidity division.  The
payout shown to a user is advisory; the contract is the source of truth, so
a preview must never promise more than the contract will pay.

Run tests with::

    pytest tests/test_odds_math.py -v
"""

from __future__ import annotations

from typing import Final, Optional

from winzzers.core.market_config import AMOUNT_DECIMALS, ODDS_DENOMINATOR
from winzzers.core.money import Amount, check_units, format_amount

#: Integer odds over ODDS_DENOMINATOR.
Odds = int

#: Default tolerance for the minOdds bound: the bet reverts when odds drop
#: more than this percentage between quote and execution.
DEFAULT_SLIPPAGE_PCT: Final[int] = 5


def payout(stake: Amount, odds: Odds) -> Amount:
    """Gross payout (stake included) for ``stake`` at ``odds``.

    Computes ``stake * odds // ODDS_DENOMINATOR``.  Any remainder is
    discarded, matching the contract's integer division.

    Examples::

        payout(100_000_000, 1_850_000) → 185_000_000   (100 USDC at 1.85x)
        payout(1, 1_999_999)           →           1   (floor, not 2)

    Raises:
        InvalidAmount: If either argument is negative or not an ``int``.
    """
    check_units(stake, "stake")
    check_units(odds, "odds")
    return stake * odds // ODDS_DENOMINATOR


def net_profit(stake: Amount, odds: Odds) -> int:
    """Payout minus stake.  Negative when odds are below 1.0x."""
    return payout(stake, odds) - stake


def min_odds(odds: Odds, slippage_pct: int = DEFAULT_SLIPPAGE_PCT) -> Odds:
    """Lowest odds a bet will accept, ``odds * (100 - slippage_pct) // 100``.

    With the default 5 % tolerance ``min_odds(2_000_000) == 1_900_000``.
    """
    check_units(odds, "odds")
    if not 0 <= slippage_pct < 100:
        raise ValueError(f"slippage_pct must be in [0, 100), got {slippage_pct}")
    return odds * (100 - slippage_pct) // 100


def format_odds(odds: Odds, places: Optional[int] = None) -> str:
    """Render odds as a decimal multiplier.

    Uses the fixed-point amount rules, so ``format_odds(1_850_000)`` is
    ``"1.850000"``.  ``places`` truncates the fraction for display
    (``format_odds(1_856_000, places=2) == "1.85"``); it never rounds up.
    """
    rendered = format_amount(odds)
    if places is None:
        return rendered
    if not 0 <= places <= AMOUNT_DECIMALS:
        raise ValueError(f"places must be in [0, {AMOUNT_DECIMALS}], got {places}")
    whole, fraction = rendered.split(".")
    return whole if places == 0 else f"{whole}.{fraction[:places]}"
