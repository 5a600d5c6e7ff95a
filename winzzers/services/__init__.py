"""I/O-bound services: ledger transport, batch reads, write flows, metadata sync, refresh."""
