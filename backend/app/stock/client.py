"""Finnhub market-data client.

A thin async wrapper around the Finnhub REST API:
1. Every request carries an explicit timeout
2. Transport errors and 5xx responses are retried a bounded number of times
3. Any other failure is raised as FinnhubError without retrying
"""
import logging
from typing import Any

import httpx

logger = logging.getLogger(__name__)


class FinnhubError(Exception):
    """Finnhub could not deliver a usable response.

    The message is for server logs only; callers see a generic error.
    """

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class FinnhubClient:
    """Issues one-shot requests against the Finnhub API."""

    DEFAULT_BASE_URL = "https://finnhub.io/api/v1"

    def __init__(
        self,
        api_key: str,
        base_url: str = DEFAULT_BASE_URL,
        timeout_seconds: float = 10.0,
        max_retries: int = 1,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout_seconds = timeout_seconds
        self.max_retries = max_retries

    async def _get(self, path: str, params: dict[str, str]) -> Any:
        url = f"{self.base_url}{path}"
        query = {**params, "token": self.api_key}
        attempts = self.max_retries + 1

        async with httpx.AsyncClient(timeout=self.timeout_seconds) as client:
            for attempt in range(1, attempts + 1):
                try:
                    resp = await client.get(url, params=query)
                except httpx.HTTPError as e:
                    logger.warning(
                        "Finnhub %s transport error (attempt %d/%d): %s",
                        path, attempt, attempts, type(e).__name__,
                    )
                    if attempt < attempts:
                        continue
                    raise FinnhubError(f"Transport error calling {path}: {e}") from e

                if resp.status_code >= 500 and attempt < attempts:
                    logger.warning(
                        "Finnhub %s returned %d (attempt %d/%d), retrying",
                        path, resp.status_code, attempt, attempts,
                    )
                    continue

                if not resp.is_success:
                    raise FinnhubError(
                        f"Finnhub {path} returned {resp.status_code}: {resp.text[:200]}",
                        status_code=resp.status_code,
                    )

                try:
                    return resp.json()
                except ValueError as e:
                    raise FinnhubError(f"Finnhub {path} returned non-JSON body") from e

        # Unreachable: the loop either returns or raises on the last attempt
        raise FinnhubError(f"No attempts made for {path}")

    async def get_metrics(self, symbol: str, metric: str = "all") -> Any:
        """Fetch basic financial metrics for a symbol.

        Args:
            symbol: Ticker symbol, e.g. "AAPL".
            metric: Metric set name; Finnhub accepts "all".

        Returns:
            The provider's JSON payload, unmodified.

        Raises:
            FinnhubError: On non-2xx, transport failure, timeout or bad JSON.
        """
        return await self._get("/stock/metric", {"symbol": symbol, "metric": metric})

    async def get_news(self, category: str = "general") -> list:
        """Fetch the latest market news for a category.

        Raises:
            FinnhubError: As for get_metrics, or if the payload is not a list.
        """
        news = await self._get("/news", {"category": category})
        if not isinstance(news, list):
            raise FinnhubError(f"Finnhub /news returned {type(news).__name__}, expected list")
        return news

    async def get_market_holidays(self, exchange: str = "US") -> list:
        """Fetch the market-holiday calendar for an exchange.

        Returns:
            The ``data`` entries of the payload (empty if absent).
        """
        payload = await self._get("/calendar/market-holiday", {"exchange": exchange})
        if not isinstance(payload, dict):
            raise FinnhubError("Finnhub /calendar/market-holiday returned a non-object payload")
        return payload.get("data") or []
