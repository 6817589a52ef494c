"""Reward currency: one coin per full hour of tracked time."""

from typing import Iterable, List

from focus_ledger.models.session import Session
from focus_ledger.models.stats import ShopItem, ShopOffer, Stats

SECONDS_PER_COIN = 3600

SHOP_ITEMS = (
    ShopItem(name="Focus Booster", cost=50),
    ShopItem(name="Custom Theme", cost=120),
)


def total_seconds(sessions: Iterable[Session]) -> int:
    """Sum of completed session durations. A running session never counts."""
    return sum(s.duration_sec for s in sessions)


def coins(sessions: Iterable[Session]) -> int:
    return total_seconds(sessions) // SECONDS_PER_COIN


def compute_stats(sessions: Iterable[Session]) -> Stats:
    seconds = total_seconds(sessions)
    return Stats(total_seconds=seconds, coins=seconds // SECONDS_PER_COIN)


def shop_listing(balance: int) -> List[ShopOffer]:
    """The shop catalogue with affordability against ``balance``."""
    return [
        ShopOffer(item=item, affordable=balance >= item.cost) for item in SHOP_ITEMS
    ]
