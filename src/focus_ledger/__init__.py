"""Focus Ledger - time tracking against categories with derived reports."""

__version__ = "0.1.0"
