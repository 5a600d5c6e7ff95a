"""Fixed-point money - decimal text to and from 6-decimal integer units.

Every amount handled by this package is an ``int`` count of 1e-6 token
units (USDC micro-dollars).  Floating point never touches an amount: the
contract settles in integers and a float round-trip would drift by a unit on
values such as ``0.29``.

Parsing rules
-------------
* Input is sign-free: ``"-1"`` and ``"+1"`` are rejected.
* Only ASCII digits and a single ``.`` separator are accepted.  Thousands
  separators, exponents and locale digits are rejected.
* At most six fractional digits.  ``"12.345678"`` parses, ``"12.3456789"``
  raises :class:`~winzzers.core.errors.InvalidAmount`.
* ``"12."`` and ``".5"`` are accepted; a lone ``"."`` is not.
* Values above the uint256 maximum are rejected; the contract cannot hold
  them.
* ``None`` and the empty string parse to ``0``.  This is a deliberate
  convenience for empty form fields, not a fallback for bad input.

Run tests with::

    pytest tests/test_money.py -v
"""

from __future__ import annotations

import logging
import re
from typing import Final, Optional

from winzzers.core.errors import InvalidAmount
from winzzers.core.market_config import AMOUNT_DECIMALS, AMOUNT_SCALE, MAX_UINT256

logger = logging.getLogger(__name__)

#: Integer count of 1e-6 token units.
Amount = int

_DIGITS: Final = re.compile(r"[0-9]*")

#: Whole-part digits of the largest uint256; anything longer cannot be staked.
MAX_WHOLE_DIGITS: Final[int] = len(str(MAX_UINT256))


def parse_amount(text: Optional[str]) -> Amount:
    """Parse a sign-free decimal string into integer units.

    Args:
        text: Decimal text such as ``"100"``, ``"1.85"`` or ``"0.000001"``.
            Surrounding whitespace is ignored.

    Returns:
        ``whole * 10**6 + fraction`` where ``fraction`` is the fractional
        digits right-padded to six places.

    Raises:
        InvalidAmount: More than one separator, a non-digit character, more
            than six fractional digits, a separator with no digits, or a
            value above the uint256 maximum.

    Examples::

        parse_amount("100")       → 100_000_000
        parse_amount("1.85")      →   1_850_000
        parse_amount("")          →           0
    """
    if text is None:
        return 0
    if not isinstance(text, str):
        raise InvalidAmount(f"amount must be text, got {type(text).__name__}")

    cleaned = text.strip()
    if cleaned == "":
        return 0

    parts = cleaned.split(".")
    if len(parts) > 2:
        raise InvalidAmount(f"{text!r} has more than one decimal separator")

    whole = parts[0]
    fraction = parts[1] if len(parts) == 2 else ""

    if not _DIGITS.fullmatch(whole) or not _DIGITS.fullmatch(fraction):
        raise InvalidAmount(f"{text!r} contains characters other than digits and '.'")
    if whole == "" and fraction == "":
        raise InvalidAmount(f"{text!r} has no digits")
    if len(fraction) > AMOUNT_DECIMALS:
        raise InvalidAmount(
            f"{text!r} has {len(fraction)} fractional digits; "
            f"at most {AMOUNT_DECIMALS} are representable"
        )
    if len(whole) > MAX_WHOLE_DIGITS:
        raise InvalidAmount(f"amount has {len(whole)} whole digits; exceeds uint256")

    units = int(whole or "0") * AMOUNT_SCALE + int(fraction.ljust(AMOUNT_DECIMALS, "0"))
    if units > MAX_UINT256:
        raise InvalidAmount("amount exceeds uint256")
    return units


def format_amount(amount: Amount, *, strip_zeros: bool = False) -> str:
    """Render integer units as ``"<whole>.<6-digit-fraction>"``.

    ``strip_zeros`` drops trailing fractional zeros (and the separator when
    nothing remains).  Either form parses back to the same amount.

    Raises:
        InvalidAmount: If ``amount`` is negative, above uint256 or not an
            ``int``.
    """
    check_units(amount, "amount")
    whole, fraction = divmod(amount, AMOUNT_SCALE)
    rendered = f"{whole}.{fraction:0{AMOUNT_DECIMALS}d}"
    if strip_zeros:
        rendered = rendered.rstrip("0").rstrip(".")
    return rendered


def parse_amount_or_zero(text: Optional[str]) -> Amount:
    """Advisory parse: malformed input yields ``0`` instead of raising.

    For derived, display-only values (payout previews, balance checks on a
    half-typed field).  Amounts submitted on-chain must go through
    :func:`parse_amount`.
    """
    try:
        return parse_amount(text)
    except InvalidAmount as exc:
        logger.debug("Advisory amount parse fell back to 0: %s", exc)
        return 0


def check_units(value: object, name: str) -> None:
    """Raise InvalidAmount unless ``value`` is an ``int`` in uint256 range."""
    # bool is an int subclass; True is not one micro-dollar.
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidAmount(f"{name} must be integer units, got {type(value).__name__}")
    if value < 0:
        raise InvalidAmount(f"{name} must be non-negative, got {value}")
    if value > MAX_UINT256:
        raise InvalidAmount(f"{name} exceeds uint256")
