"""Exception taxonomy for the Winzzers client.

Recovery policy per exception:

* :class:`InvalidAmount` - bad decimal input.  Fatal for anything submitted
  on-chain; advisory calculations fall back to a zero amount instead.
* :class:`MalformedMarketData` - a contract read decoded to the wrong shape.
* :class:`ReadFailure` - network or ledger read error for one market id.
  Non-fatal to a batch: the id is dropped from aggregate views.
* :class:`WriteRejected` - the wallet, node or contract refused a
  transaction.  Always surfaced to the caller; never retried automatically.
* :class:`MetadataSyncFailure` - the off-chain metadata store did not
  accept a record.  Best-effort: logged and swallowed by the session.
"""

from __future__ import annotations

from typing import Optional


class WinzzersError(Exception):
    """Base class for every error raised by this package."""


class InvalidAmount(WinzzersError, ValueError):
    """Decimal text or integer units that are not a valid 6-decimal amount."""


class MalformedMarketData(WinzzersError, ValueError):
    """A raw contract read whose arity, types or invariants do not match."""

    def __init__(self, message: str, market_id: Optional[int] = None):
        self.market_id = market_id
        prefix = f"market {market_id}: " if market_id is not None else ""
        super().__init__(prefix + message)


class ReadFailure(WinzzersError):
    """A ledger read could not be completed."""

    def __init__(self, message: str, market_id: Optional[int] = None):
        self.market_id = market_id
        super().__init__(message)


class WriteRejected(WinzzersError):
    """A transaction was refused before or after submission."""

    def __init__(self, message: str, tx_hash: Optional[str] = None):
        self.tx_hash = tx_hash
        super().__init__(message)


class WriteInProgress(WriteRejected):
    """Another write from the same session has not reached its receipt yet."""


class MetadataSyncFailure(WinzzersError):
    """The metadata store rejected the record or could not be reached."""
