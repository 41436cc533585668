"""
Response shaping for the crypto endpoints.

Caller-supplied field names only ever select from the allow-lists below;
nothing the caller sends is used directly as a field accessor.
"""

from __future__ import annotations

from typing import Any

# Sort keywords accepted by /listings/latest -> upstream sort field
LISTING_SORT_FIELDS: dict[str, str] = {
    "market_cap": "market_cap",
    "market_cap_strict": "market_cap_strict",
    "name": "name",
    "symbol": "symbol",
    "date_added": "date_added",
    "price": "price",
    "circulating_supply": "circulating_supply",
    "total_supply": "total_supply",
    "max_supply": "max_supply",
    "num_market_pairs": "num_market_pairs",
    "volume_24h": "volume_24h",
    "volume_7d": "volume_7d",
    "volume_30d": "volume_30d",
    "percent_change_1h": "percent_change_1h",
    "percent_change_24h": "percent_change_24h",
    "percent_change_7d": "percent_change_7d",
}
DEFAULT_SORT = "market_cap"

SORT_DIRECTIONS: dict[str, str] = {"asc": "asc", "desc": "desc"}
DEFAULT_SORT_DIR = "desc"

# Top-movers timeframe keyword -> quote field
PERCENT_CHANGE_FIELDS: dict[str, str] = {
    "1h": "percent_change_1h",
    "7d": "percent_change_7d",
    "30d": "percent_change_30d",
}
DEFAULT_PERCENT_CHANGE_FIELD = "percent_change_24h"

MIN_MOVERS_POOL = 100


def resolve_sort(sort: str | None) -> str:
    return LISTING_SORT_FIELDS.get((sort or "").lower(), DEFAULT_SORT)


def resolve_sort_dir(sort_dir: str | None) -> str:
    return SORT_DIRECTIONS.get((sort_dir or "").lower(), DEFAULT_SORT_DIR)


def percent_change_field(timeframe: str | None) -> str:
    return PERCENT_CHANGE_FIELDS.get(timeframe or "", DEFAULT_PERCENT_CHANGE_FIELD)


def movers_pool_size(limit: int) -> int:
    """How many listings to fetch so both ends of the ranking are meaningful."""
    return max(limit * 5, MIN_MOVERS_POOL)


def _change(coin: dict, convert: str, field: str) -> float:
    quote = (coin.get("quote") or {}).get(convert) or {}
    value = quote.get(field)
    return float(value) if value is not None else 0.0


def split_movers(coins: list[dict], convert: str, timeframe: str | None, limit: int) -> dict:
    """Rank coins by percent change and cut gainers and losers.

    Gainers are the head of the descending ranking; losers are its tail,
    reversed so the biggest drop comes first. Both hold at most ``limit``
    entries. Coins missing the field rank as 0.
    """
    if limit <= 0:
        return {"gainers": [], "losers": []}

    field = percent_change_field(timeframe)
    ranked = sorted(coins, key=lambda c: _change(c, convert, field), reverse=True)
    return {
        "gainers": ranked[:limit],
        "losers": list(reversed(ranked[-limit:])),
    }


def match_by_name_or_symbol(entries: list[dict], query: str, limit: int) -> list[dict]:
    """Case-insensitive substring match on name or symbol, first ``limit`` hits."""
    needle = query.lower()
    matches = [
        e
        for e in entries
        if needle in str(e.get("name", "")).lower() or needle in str(e.get("symbol", "")).lower()
    ]
    return matches[:limit]


def project_top_coin(coin: dict) -> dict[str, Any]:
    """Reduce a USD+INR listing entry to the fields the top-fifty table shows."""
    quote = coin.get("quote") or {}
    usd = quote.get("USD") or {}
    inr = quote.get("INR") or {}
    return {
        "id": coin.get("id"),
        "name": coin.get("name"),
        "symbol": coin.get("symbol"),
        "price_usd": usd.get("price"),
        "price_inr": inr.get("price"),
        "market_cap": usd.get("market_cap"),
        "percent_change_24h": usd.get("percent_change_24h"),
        "volume_24h": usd.get("volume_24h"),
        "circulating_supply": coin.get("circulating_supply"),
        "total_supply": coin.get("total_supply"),
        "max_supply": coin.get("max_supply"),
        "last_updated": coin.get("last_updated"),
    }
