"""Health check endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from oxt_api import __version__
from oxt_api.dependencies import AppContext, get_context

router = APIRouter(tags=["health"])


@router.get("/health")
async def health() -> dict:
    return {"status": "ok", "version": __version__}


@router.get("/ready")
async def ready(ctx: AppContext = Depends(get_context)):
    """Ready once the data source answers; 503 while it is unreachable."""
    block = await ctx.validators.get_block_number()
    if block.degraded:
        return JSONResponse(
            status_code=503,
            content={"status": "unavailable", "reason": block.reason},
        )
    return {
        "status": "ready",
        "data_source": ctx.settings.data_source,
        "block_number": block.value,
    }
