"""Page-view tracking endpoints.

Endpoints:
    POST /api/uv-stats: Record a page view from the browser tracker
    GET  /api/uv-stats: Today's, recent daily and all-time view counts
"""
import logging
from typing import Optional

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from .schemas import PageViewStats, RecordVisitRequest, RecordVisitResponse
from .service import PageViewService, generate_visitor_id

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/uv-stats", tags=["analytics"])


def _client_ip(request: Request) -> str:
    forwarded: Optional[str] = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip
    if request.client and request.client.host:
        return request.client.host
    return "127.0.0.1"


@router.post("", response_model=RecordVisitResponse)
async def record_visit(request: Request, body: Optional[RecordVisitRequest] = None):
    """Record one page view for the calling visitor."""
    page = body.page if body else "/"
    visitor_id = generate_visitor_id(
        _client_ip(request),
        request.headers.get("user-agent", "unknown"),
    )

    try:
        is_new = PageViewService.get_instance().record_visit(visitor_id, page)
    except Exception:
        logger.exception("Error recording page view")
        return JSONResponse({"error": "Internal server error"}, status_code=500)

    logger.debug("Recorded page view: page=%s new=%s", page, is_new)
    return RecordVisitResponse(visitor_id=visitor_id, is_new_visitor=is_new)


@router.get("", response_model=PageViewStats)
async def get_stats():
    """Return page-view statistics; degrades to zeros if storage fails."""
    try:
        return PageViewService.get_instance().get_stats()
    except Exception:
        logger.exception("Database error, returning empty page-view stats")
        return PageViewStats()
