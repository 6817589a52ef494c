"""Command line interface for Focus Ledger."""
