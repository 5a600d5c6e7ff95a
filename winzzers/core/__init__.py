"""Core mathematics and data shapes for the Winzzers betting client.

This package contains pure building blocks:

- ``money``            - fixed-point (6-decimal) amount parsing and formatting
- ``odds_math``        - payout, slippage bound and odds display
- ``market_view``      - normalization of raw contract reads into ``Market``
- ``events``           - ``MarketCreated`` log decoding
- ``ledger_interface`` - ABC and DTOs for the contract handle
- ``market_config``    - protocol constants (decimals, fees, slippage)
- ``errors``           - exception taxonomy

Nothing in this package imports from ``winzzers.services``.
All modules are side-effect-free and unit-testable in isolation.
"""
