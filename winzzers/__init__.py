"""Winzzers: odds, payouts and market reconciliation for an on-chain betting contract."""

__version__ = "1.0.0"
