"""Stock and market-data routers.

Endpoints:
    GET /api/stock/metric       - Proxy Finnhub basic financial metrics for a symbol
    GET /api/news               - Latest market news
    GET /api/market-holidays    - Upcoming exchange holidays
"""
import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from app.config import get_config

from .client import FinnhubClient, FinnhubError
from .schemas import MarketHoliday, MarketHolidaysResponse, MetricsResponse, NewsItem

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/stock", tags=["stock"])
market_router = APIRouter(prefix="/api", tags=["market"])

MAX_HOLIDAYS = 10


def _client_or_error():
    """Build a Finnhub client, or the 500 response used when no key is configured."""
    config = get_config()
    api_key = config.finnhub_api_key
    if not api_key:
        logger.error("Finnhub API key not configured")
        return None, JSONResponse({"error": "Finnhub API key not configured"}, status_code=500)

    client = FinnhubClient(
        api_key=api_key,
        base_url=config.finnhub.base_url,
        timeout_seconds=config.finnhub.timeout_seconds,
        max_retries=config.finnhub.max_retries,
    )
    return client, None


@router.get("/metric", response_model=MetricsResponse)
async def get_stock_metrics(symbol: Optional[str] = None, metric: Optional[str] = None):
    """Return Finnhub financial metrics for a symbol.

    Provider status codes and bodies are logged but never relayed; any
    provider failure becomes a generic 500.

    Args:
        symbol: Ticker symbol (required).
        metric: Metric set name, defaults to "all".
    """
    if not symbol:
        return JSONResponse({"error": "Symbol parameter is required"}, status_code=400)

    client, error = _client_or_error()
    if error is not None:
        return error

    try:
        metrics = await client.get_metrics(symbol, metric or "all")
    except FinnhubError as e:
        logger.error(f"Error fetching financial metrics for {symbol}: {e}")
        return JSONResponse({"error": "Internal server error"}, status_code=500)
    except Exception:
        logger.exception("Unexpected error fetching financial metrics for %s", symbol)
        return JSONResponse({"error": "Internal server error"}, status_code=500)

    return MetricsResponse(symbol=symbol, metrics=metrics)


@market_router.get("/news", response_model=list[NewsItem])
async def get_market_news(category: str = "general", limit: int = 10):
    """Return the newest market news items, timestamps in milliseconds."""
    client, error = _client_or_error()
    if error is not None:
        return error

    try:
        news = await client.get_news(category)
    except FinnhubError as e:
        logger.error(f"Error fetching market news ({category}): {e}")
        return JSONResponse({"error": "Failed to fetch market news"}, status_code=500)
    except Exception:
        logger.exception("Unexpected error fetching market news")
        return JSONResponse({"error": "Failed to fetch market news"}, status_code=500)

    items = []
    for raw in news[:max(limit, 0)]:
        if not isinstance(raw, dict):
            continue
        item = dict(raw)
        # Finnhub reports seconds; clients expect epoch milliseconds
        item["datetime"] = int(item.get("datetime") or 0) * 1000
        items.append(NewsItem(**item))
    return items


@market_router.get("/market-holidays", response_model=MarketHolidaysResponse)
async def get_market_holidays(exchange: str = "US"):
    """Return up to ten holidays on or after today, soonest first."""
    client, error = _client_or_error()
    if error is not None:
        return error

    try:
        entries = await client.get_market_holidays(exchange)
    except FinnhubError as e:
        logger.error(f"Error fetching market holidays ({exchange}): {e}")
        return JSONResponse({"error": "Failed to fetch market holidays"}, status_code=500)
    except Exception:
        logger.exception("Unexpected error fetching market holidays")
        return JSONResponse({"error": "Failed to fetch market holidays"}, status_code=500)

    today = date.today()
    upcoming = []
    for entry in entries:
        if not isinstance(entry, dict):
            continue
        try:
            at = date.fromisoformat(str(entry.get("atDate", "")))
        except ValueError:
            logger.debug("Skipping holiday with unparsable date: %r", entry.get("atDate"))
            continue
        if at >= today:
            upcoming.append((at, entry))

    upcoming.sort(key=lambda pair: pair[0])
    holidays = [
        MarketHoliday(
            eventName=entry.get("eventName") or "",
            atDate=at.isoformat(),
            countryCode=entry.get("countryCode"),
            exchangeCode=entry.get("exchangeCode"),
            tradingHour=entry.get("tradingHour") or None,
        )
        for at, entry in upcoming[:MAX_HOLIDAYS]
    ]
    return MarketHolidaysResponse(exchange=exchange, holidays=holidays)
