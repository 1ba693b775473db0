"""Odds conversion and parlay pricing helpers."""

from __future__ import annotations

from collections.abc import Iterable

STANDARD_PRICE = -110


def implied_prob_from_american(price: int | None) -> float | None:
    """Convert American odds to implied probability."""
    if price is None or price == 0:
        return None
    if price > 0:
        return 100.0 / (price + 100.0)
    value = -price
    return value / (value + 100.0)


def american_to_decimal(price: int | None) -> float | None:
    """Convert American odds to decimal odds."""
    if price is None or price == 0:
        return None
    if price > 0:
        return 1.0 + (price / 100.0)
    return 1.0 + (100.0 / abs(price))


def parlay_decimal_odds(prices: Iterable[int | None]) -> float:
    """Product of leg decimal odds; missing or zero prices count as -110."""
    total = 1.0
    for price in prices:
        decimal_odds = american_to_decimal(price) or american_to_decimal(STANDARD_PRICE)
        total *= decimal_odds  # type: ignore[operator]
    return total
