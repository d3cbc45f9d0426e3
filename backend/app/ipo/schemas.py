"""Pydantic schemas for IPO stock listings."""
from datetime import date
from typing import List, Literal, Optional

from pydantic import BaseModel, Field


IpoMarket = Literal["US", "HK"]
IpoStatus = Literal["UPCOMING", "PRICING", "LISTED", "WITHDRAWN", "POSTPONED"]


class IpoStockCreate(BaseModel):
    """Request body for adding an IPO listing."""
    symbol: str = Field(..., min_length=1, max_length=20)
    company_name: str = Field(..., min_length=1, max_length=200)
    market: IpoMarket = "US"
    expected_price: Optional[float] = Field(default=None, ge=0)
    price_range: Optional[str] = None                # e.g. "$18.00 - $20.00"
    shares_offered: Optional[int] = Field(default=None, ge=0)
    ipo_date: Optional[date] = None
    status: IpoStatus = "UPCOMING"
    description: Optional[str] = None
    sector: Optional[str] = None
    industry: Optional[str] = None
    underwriters: List[str] = Field(default_factory=list)
    market_cap: Optional[float] = None
    revenue: Optional[float] = None
    net_income: Optional[float] = None
    employees: Optional[int] = Field(default=None, ge=0)
    website: Optional[str] = None


class IpoStockUpdate(BaseModel):
    """Request body for updating a listing; only fields present are changed."""
    symbol: Optional[str] = Field(default=None, min_length=1, max_length=20)
    company_name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    market: Optional[IpoMarket] = None
    expected_price: Optional[float] = Field(default=None, ge=0)
    price_range: Optional[str] = None
    shares_offered: Optional[int] = Field(default=None, ge=0)
    ipo_date: Optional[date] = None
    status: Optional[IpoStatus] = None
    description: Optional[str] = None
    sector: Optional[str] = None
    industry: Optional[str] = None
    underwriters: Optional[List[str]] = None
    market_cap: Optional[float] = None
    revenue: Optional[float] = None
    net_income: Optional[float] = None
    employees: Optional[int] = Field(default=None, ge=0)
    website: Optional[str] = None
