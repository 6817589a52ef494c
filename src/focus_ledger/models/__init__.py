"""Data models for Focus Ledger."""

from .category import Category
from .report import DayCell, HourBucket, MonthHeatmap, Report, WeekdayBucket
from .session import ActiveSession, LedgerState, Session
from .stats import ShopItem, ShopOffer, Stats

__all__ = [
    "ActiveSession",
    "Category",
    "DayCell",
    "HourBucket",
    "LedgerState",
    "MonthHeatmap",
    "Report",
    "Session",
    "ShopItem",
    "ShopOffer",
    "Stats",
    "WeekdayBucket",
]
