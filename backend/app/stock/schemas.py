"""Response schemas for stock and market endpoints."""
from typing import Any, List, Optional

from pydantic import BaseModel, Field


class MetricsResponse(BaseModel):
    """Finnhub metrics payload echoed with the requested symbol."""
    symbol: str = Field(..., description="Requested ticker symbol")
    metrics: Any = Field(..., description="Finnhub /stock/metric payload, unmodified")


class NewsItem(BaseModel):
    id: Optional[int] = None
    headline: str = ""
    summary: str = ""
    url: str = ""
    image: str = ""
    datetime: int = Field(0, description="Publication time in epoch milliseconds")
    category: str = ""
    source: str = ""
    related: Optional[str] = None


class MarketHoliday(BaseModel):
    eventName: str
    atDate: str = Field(..., description="Holiday date (YYYY-MM-DD)")
    countryCode: Optional[str] = None
    exchangeCode: Optional[str] = None
    tradingHour: Optional[str] = None


class MarketHolidaysResponse(BaseModel):
    exchange: str
    holidays: List[MarketHoliday] = Field(default_factory=list)
