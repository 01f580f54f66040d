"""Delegator ranking endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from oxt_api.dependencies import AppContext, PagePagination, get_context, require_address
from oxt_api.responses import wrap_fetched, wrap_response
from oxt_api.utils.pagination import build_links

router = APIRouter(prefix="/ranking", tags=["ranking"])


@router.get("/delegators")
async def list_rankings(
    pagination: PagePagination = Depends(),
    ctx: AppContext = Depends(get_context),
):
    """All delegators by total stake across validators, paginated."""
    result = await ctx.ranking.rank(pagination.page, pagination.limit)
    page = result.value
    return wrap_response(
        page,
        total_count=page.pagination.total_items,
        degraded=result.degraded,
        degraded_reason=result.reason,
        links=build_links("/v1/ranking/delegators", page.pagination),
    )


@router.get("/delegator/{address}")
async def get_delegator_rank(address: str, ctx: AppContext = Depends(get_context)):
    """Tie-aware rank, percentile and per-validator breakdown for one delegator."""
    require_address(address)
    result = await ctx.ranking.rank_of(address)
    return wrap_fetched(result)


@router.get("/top")
async def get_top_delegators(
    limit: int = Query(10, ge=1, le=50),
    ctx: AppContext = Depends(get_context),
):
    result = await ctx.ranking.top(limit)
    return wrap_fetched(result, total_count=len(result.value.entries))


@router.get("/stats")
async def get_ranking_stats(ctx: AppContext = Depends(get_context)):
    result = await ctx.ranking.summary()
    return wrap_fetched(result)
