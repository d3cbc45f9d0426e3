"""IPO stock listings router.

Endpoints:
    GET    /api/stocks       - Active listings (WITHDRAWN excluded)
    POST   /api/stocks       - Add a listing
    GET    /api/stocks/{id}  - One listing
    PUT    /api/stocks/{id}  - Partial update
    DELETE /api/stocks/{id}  - Remove a listing
"""
import logging

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from .schemas import IpoStockCreate, IpoStockUpdate
from .service import IpoStockService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/stocks", tags=["stocks"])


def _service() -> IpoStockService:
    return IpoStockService.get_instance()


def _not_found() -> JSONResponse:
    return JSONResponse({"error": "Stock not found"}, status_code=404)


@router.get("")
async def list_stocks() -> JSONResponse:
    """List listings by lifecycle stage, then IPO date (latest first)."""
    try:
        stocks = _service().list_active()
    except Exception:
        logger.exception("[stocks] Failed to list stocks")
        return JSONResponse({"error": "Failed to fetch stocks"}, status_code=500)
    return JSONResponse(stocks)


@router.post("", status_code=201)
async def create_stock(body: IpoStockCreate) -> JSONResponse:
    """Create a listing.

    Returns:
        The stored listing (201 Created).
    """
    try:
        stock = _service().create(**body.model_dump())
    except Exception:
        logger.exception("[stocks] Failed to create %s", body.symbol)
        return JSONResponse({"error": "Failed to create stock"}, status_code=500)
    logger.info("[stocks] Created %s (%s)", stock["id"], stock["symbol"])
    return JSONResponse(stock, status_code=201)


@router.get("/{stock_id}")
async def get_stock(stock_id: str) -> JSONResponse:
    try:
        stock = _service().get(stock_id)
    except Exception:
        logger.exception("[stocks] Failed to fetch %s", stock_id)
        return JSONResponse({"error": "Failed to fetch stock"}, status_code=500)
    if stock is None:
        return _not_found()
    return JSONResponse(stock)


@router.put("/{stock_id}")
async def update_stock(stock_id: str, body: IpoStockUpdate) -> JSONResponse:
    """Update the fields present in the body.

    Returns:
        The updated listing, or 404 if not found.
    """
    try:
        updated = _service().update(stock_id, **body.model_dump(exclude_unset=True))
    except Exception:
        logger.exception("[stocks] Failed to update %s", stock_id)
        return JSONResponse({"error": "Failed to update stock"}, status_code=500)
    if updated is None:
        return _not_found()
    logger.info("[stocks] Updated %s → status=%s", stock_id, updated.get("status"))
    return JSONResponse(updated)


@router.delete("/{stock_id}")
async def delete_stock(stock_id: str) -> JSONResponse:
    try:
        deleted = _service().delete(stock_id)
    except Exception:
        logger.exception("[stocks] Failed to delete %s", stock_id)
        return JSONResponse({"error": "Failed to delete stock"}, status_code=500)
    if not deleted:
        return _not_found()
    logger.info("[stocks] Deleted %s", stock_id)
    return JSONResponse({"message": "Stock deleted successfully"})
