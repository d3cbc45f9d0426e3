"""IPO Tracker Backend Application.

This is the main entry point for the IPO tracker backend service, which
serves IPO stock information, proxies financial data from Finnhub and
hosts uploaded prospectus documents.

Modules:
    - stock: Finnhub financial metrics, market news and holiday proxy
    - ipo: IPO stock listings (DuckDB)
    - files: Prospectus upload, download and cleanup
    - analytics: DuckDB-based page-view statistics
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from app.analytics.router import router as analytics_router
from app.analytics.service import PageViewService
from app.config import get_config
from app.files.router import router as files_router, upload_router
from app.ipo.router import router as ipo_router
from app.ipo.service import IpoStockService
from app.stock.router import market_router, router as stock_router

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)

# httpx/httpcore log every request URL, including the Finnhub token.
for _noisy in (
    "httpx",
    "httpcore",
    "httpcore.http11",
    "httpcore.connection",
):
    logging.getLogger(_noisy).setLevel(logging.WARNING)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager for startup/shutdown events."""
    # Startup
    config = get_config()

    configured_level = getattr(logging, config.logging.level.upper(), None)
    if configured_level is not None:
        logging.getLogger().setLevel(configured_level)
        logger.info("Root logger level set to %s", config.logging.level.upper())

    if not config.finnhub_api_key:
        logger.warning("FINNHUB_API_KEY is not set; Finnhub-backed endpoints will return 500")

    logger.info(
        f"Serving prospectus files from {config.files.upload_dir} "
        f"(retention {config.files.retention_hours}h)"
    )

    yield  # Application runs here

    # Shutdown
    PageViewService.reset_instance()
    IpoStockService.reset_instance()
    logger.info("Application shutdown complete")


# Create FastAPI application with metadata
app = FastAPI(
    title="IPO Tracker API",
    description="Backend service for the IPO tracker: listings, market data and prospectus files",
    version="0.1.0",
    lifespan=lifespan,
)

# Register all routers
app.include_router(stock_router)
app.include_router(market_router)
app.include_router(ipo_router)
app.include_router(files_router)
app.include_router(upload_router)
app.include_router(analytics_router)


@app.get("/health")
async def health() -> dict:
    """Health check endpoint.

    Returns:
        dict: Status object indicating the server is running.
    """
    return {"status": "ok"}
