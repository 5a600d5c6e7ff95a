"""Decoding of contract event logs from transaction receipts.

``createMarket`` does not return the new market id; the contract announces
it through a ``MarketCreated`` event whose first indexed topic is the id.
:func:`decode_market_created` scans a receipt's logs for that event.  It is
kept apart from transaction submission so it can be exercised with canned
log fixtures.

Logs may come straight from web3 (``AttributeDict`` with ``HexBytes``
topics) or from JSON (plain dicts with ``0x``-prefixed hex strings); both
are accepted.  Entries that are not ``MarketCreated`` or cannot be decoded
are skipped, never raised.
"""

from __future__ import annotations

from typing import Any, Iterable, Mapping, Optional

from eth_abi import decode as abi_decode
from eth_abi.exceptions import DecodingError
from hexbytes import HexBytes
from web3 import Web3

MARKET_CREATED_SIGNATURE = "MarketCreated(uint256,address,uint256,uint256)"

#: keccak256 of the event signature; topic[0] of every MarketCreated log.
MARKET_CREATED_TOPIC = HexBytes(Web3.keccak(text=MARKET_CREATED_SIGNATURE))


def decode_market_created(
    logs: Iterable[Mapping[str, Any]],
    contract_address: Optional[str] = None,
) -> Optional[int]:
    """Return the market id announced by the first ``MarketCreated`` log.

    Args:
        logs: Receipt log entries, each with ``topics`` (and optionally
            ``address``).
        contract_address: When given, logs emitted by any other address are
            ignored.  Compared case-insensitively.

    Returns:
        The decoded market id, or ``None`` when no log matches.
    """
    wanted = contract_address.lower() if contract_address else None

    for entry in logs:
        if wanted is not None:
            emitter = entry.get("address")
            if not isinstance(emitter, str) or emitter.lower() != wanted:
                continue

        try:
            topics = [HexBytes(t) for t in entry.get("topics") or ()]
        except (TypeError, ValueError):
            continue
        if len(topics) < 2 or topics[0] != MARKET_CREATED_TOPIC:
            continue

        try:
            (market_id,) = abi_decode(["uint256"], bytes(topics[1]))
        except DecodingError:
            continue
        return int(market_id)

    return None
