"""Market-data proxy routes."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Query, Request

from cryptokind.activity.logger import dispatch_activity
from cryptokind.api.deps import get_cache, get_default_convert, get_upstream
from cryptokind.api.middleware import client_ip
from cryptokind.errors import InvalidRequestError, UpstreamError
from cryptokind.market.cache import ResponseCache
from cryptokind.market.client import UpstreamClient
from cryptokind.market.shaping import (
    match_by_name_or_symbol,
    movers_pool_size,
    project_top_coin,
    resolve_sort,
    resolve_sort_dir,
    split_movers,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/crypto", tags=["crypto"])

TOP_FIFTY_CACHE_KEY = "top50cryptos"
SEARCH_MAP_POOL = 5000


def _convert(convert: str | None, default: str) -> str:
    return (convert or default).upper()


# ─── Listings & quotes ───────────────────────────────────────────────────


@router.get("/listings/latest")
async def api_latest_listings(
    request: Request,
    start: int = Query(1, ge=1),
    limit: int = Query(100, ge=1, le=5000),
    sort: str | None = Query(None),
    sort_dir: str | None = Query(None),
    convert: str | None = Query(None),
    default_convert: str = Depends(get_default_convert),
    upstream: UpstreamClient = Depends(get_upstream),
):
    params = {
        "start": start,
        "limit": limit,
        "sort": resolve_sort(sort),
        "sort_dir": resolve_sort_dir(sort_dir),
        "convert": _convert(convert, default_convert),
    }
    data = await upstream.request("/cryptocurrency/listings/latest", params)

    dispatch_activity(client_ip(request), "getLatestListings", params)
    return {"success": True, "data": data.get("data"), "metadata": data.get("status")}


@router.get("/info")
async def api_info_missing_id():
    raise InvalidRequestError("Cryptocurrency ID is required")


@router.get("/info/{crypto_id}")
async def api_crypto_info(
    request: Request,
    crypto_id: str,
    convert: str | None = Query(None),
    default_convert: str = Depends(get_default_convert),
    upstream: UpstreamClient = Depends(get_upstream),
):
    crypto_id = crypto_id.strip()
    if not crypto_id:
        raise InvalidRequestError("Cryptocurrency ID is required")

    params = {"id": crypto_id, "convert": _convert(convert, default_convert)}
    data = await upstream.request("/cryptocurrency/quotes/latest", params)

    dispatch_activity(client_ip(request), "getCryptoDetails", params)
    return {
        "success": True,
        "data": (data.get("data") or {}).get(crypto_id),
        "metadata": data.get("status"),
    }


# ─── Search ──────────────────────────────────────────────────────────────


@router.get("/search")
async def api_search(
    request: Request,
    query: str | None = Query(None),
    limit: int = Query(10, ge=1, le=100),
    convert: str | None = Query(None),
    default_convert: str = Depends(get_default_convert),
    upstream: UpstreamClient = Depends(get_upstream),
):
    query = (query or "").strip()
    if not query:
        raise InvalidRequestError("Search query is required")
    convert = _convert(convert, default_convert)

    try:
        data = await upstream.request(
            "/cryptocurrency/quotes/latest",
            {"symbol": query.upper(), "convert": convert},
        )
    except UpstreamError as e:
        logger.info("Symbol lookup for %r failed (%s), matching by name", query, e)
        listing = await upstream.request(
            "/cryptocurrency/map",
            {"listing_status": "active", "limit": SEARCH_MAP_POOL},
        )
        matches = match_by_name_or_symbol(listing.get("data") or [], query, limit)
        if not matches:
            return {"success": True, "data": [], "metadata": listing.get("status")}

        ids = ",".join(str(m["id"]) for m in matches)
        data = await upstream.request(
            "/cryptocurrency/quotes/latest", {"id": ids, "convert": convert}
        )

    dispatch_activity(
        client_ip(request),
        "searchCryptocurrencies",
        {"query": query, "limit": limit, "convert": convert},
    )
    return {
        "success": True,
        "data": list((data.get("data") or {}).values()),
        "metadata": data.get("status"),
    }


# ─── Historical ──────────────────────────────────────────────────────────


@router.get("/historical")
async def api_historical_missing_id():
    raise InvalidRequestError("Cryptocurrency ID is required")


@router.get("/historical/{crypto_id}")
async def api_historical(
    request: Request,
    crypto_id: str,
    convert: str | None = Query(None),
    interval: str = Query("daily"),
    time_start: str | None = Query(None),
    time_end: str | None = Query(None),
    count: int = Query(10, ge=1),
    default_convert: str = Depends(get_default_convert),
    upstream: UpstreamClient = Depends(get_upstream),
):
    crypto_id = crypto_id.strip()
    if not crypto_id:
        raise InvalidRequestError("Cryptocurrency ID is required")

    params = {
        "id": crypto_id,
        "convert": _convert(convert, default_convert),
        "interval": interval,
        "count": count,
    }
    if time_start:
        params["time_start"] = time_start
    if time_end:
        params["time_end"] = time_end

    data = await upstream.request("/cryptocurrency/quotes/historical", params)

    dispatch_activity(client_ip(request), "getHistoricalData", params)
    return {"success": True, "data": data.get("data"), "metadata": data.get("status")}


# ─── Rankings ────────────────────────────────────────────────────────────


@router.get("/top-movers")
async def api_top_movers(
    request: Request,
    limit: int = Query(10, ge=1, le=1000),
    convert: str | None = Query(None),
    timeframe: str = Query("24h"),
    default_convert: str = Depends(get_default_convert),
    upstream: UpstreamClient = Depends(get_upstream),
):
    convert = _convert(convert, default_convert)
    data = await upstream.request(
        "/cryptocurrency/listings/latest",
        {"limit": movers_pool_size(limit), "convert": convert},
    )
    movers = split_movers(data.get("data") or [], convert, timeframe, limit)

    dispatch_activity(
        client_ip(request),
        "getTopGainersLosers",
        {"limit": limit, "convert": convert, "timeframe": timeframe},
    )
    return {"success": True, "data": movers, "metadata": data.get("status")}


@router.get("/top-fifty")
async def api_top_fifty(
    request: Request,
    upstream: UpstreamClient = Depends(get_upstream),
    cache: ResponseCache = Depends(get_cache),
):
    params = {"limit": 50, "sort": "market_cap", "sort_dir": "desc", "convert": "USD,INR"}

    cached = cache.get(TOP_FIFTY_CACHE_KEY)
    if cached is not None:
        logger.info("Returning cached top fifty")
        dispatch_activity(client_ip(request), "getTopFiftyCryptos", params)
        return {"success": True, "data": cached, "cached": True}

    data = await upstream.request("/cryptocurrency/listings/latest", params)
    coins = [project_top_coin(c) for c in data.get("data") or []]
    cache.set(TOP_FIFTY_CACHE_KEY, coins)

    dispatch_activity(client_ip(request), "getTopFiftyCryptos", params)
    return {
        "success": True,
        "data": coins,
        "metadata": data.get("status"),
        "cached": False,
    }
