"""Totals and reward models."""

from pydantic import BaseModel


class Stats(BaseModel):
    """Total tracked time across all history and the coins it is worth."""

    total_seconds: int
    coins: int


class ShopItem(BaseModel):
    name: str
    cost: int


class ShopOffer(BaseModel):
    """A shop item together with whether the current balance covers it."""

    item: ShopItem
    affordable: bool
