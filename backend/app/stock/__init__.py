"""Stock data endpoints backed by the Finnhub market-data API."""
