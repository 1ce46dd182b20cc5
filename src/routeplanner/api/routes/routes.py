"""Route planning endpoints."""

from __future__ import annotations

import logging
from typing import Literal

from fastapi import APIRouter, HTTPException, Query, status
from fastapi.responses import PlainTextResponse

from ...schemas.routing import RouteRequest, RouteResponse
from ...services.routing.errors import RouteOptimizationError
from ...services.routing.service import export_route, optimize_route

router = APIRouter(prefix="/routes", tags=["routes"])

logger = logging.getLogger(__name__)


def _raise_for(exc: Exception) -> None:
    if isinstance(exc, ValueError):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    if isinstance(exc, RouteOptimizationError):
        logger.warning(f"Could not optimize route: {exc}")
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=f"Could not optimize route: {exc}",
        ) from exc
    logger.exception(f"Error optimizing route: {exc}")
    raise HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=f"Could not optimize route: {exc}",
    ) from exc


@router.post("/optimize", response_model=RouteResponse, status_code=status.HTTP_200_OK)
def optimize(payload: RouteRequest) -> RouteResponse:
    try:
        return optimize_route(payload)
    except Exception as exc:
        _raise_for(exc)


@router.post("/export", response_class=PlainTextResponse, status_code=status.HTTP_200_OK)
def export(
    payload: RouteRequest,
    fmt: Literal["text", "csv"] = Query(default="text", alias="format", description="Itinerary export format"),
) -> PlainTextResponse:
    """Plain-text or CSV itinerary for the optimized route."""
    try:
        content = export_route(payload, fmt)
    except Exception as exc:
        _raise_for(exc)
    media_type = "text/csv" if fmt == "csv" else "text/plain"
    return PlainTextResponse(content, media_type=media_type)
