"""Service status routes."""

from __future__ import annotations

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from vinylmatch import __version__
from vinylmatch.core.tracing import get_trace_id

router = APIRouter(prefix="/api")


@router.get("/")
async def root() -> JSONResponse:
    return JSONResponse(
        {
            "message": "vinylmatch component matcher",
            "version": __version__,
            "status": "ok",
            "trace_id": get_trace_id(),
        }
    )


@router.get("/health")
async def health() -> JSONResponse:
    """Liveness probe; does not touch the catalog."""
    return JSONResponse({"status": "healthy", "trace_id": get_trace_id()})
