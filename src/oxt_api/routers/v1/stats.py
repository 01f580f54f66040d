"""Network statistics endpoints."""

from __future__ import annotations

import asyncio

from fastapi import APIRouter, Depends, Query

from oxt_shared.models import DistributionType
from oxt_api.dependencies import AppContext, get_context
from oxt_api.responses import wrap_fetched, wrap_response

router = APIRouter(prefix="/stats", tags=["stats"])


@router.get("")
async def get_stats(ctx: AppContext = Depends(get_context)):
    """Network overview and health in one response."""
    overview, health = await asyncio.gather(
        ctx.stats.network_overview(),
        ctx.stats.network_health(),
    )
    reasons = [r.reason for r in (overview, health) if r.reason]
    return wrap_response(
        {"overview": overview.value, "health": health.value},
        degraded=overview.degraded or health.degraded,
        degraded_reason="; ".join(reasons) or None,
    )


@router.get("/network")
async def get_network_health(ctx: AppContext = Depends(get_context)):
    """Median stake, Gini staking concentration and validator health."""
    result = await ctx.stats.network_health()
    return wrap_fetched(result)


@router.get("/distribution")
async def get_distribution(
    type: DistributionType = Query("staking", description="staking | commission | delegators"),
    ctx: AppContext = Depends(get_context),
):
    result = await ctx.stats.validator_distribution(type)
    return wrap_fetched(result)


@router.get("/cache")
async def get_cache_stats(ctx: AppContext = Depends(get_context)):
    return wrap_response(ctx.stats.cache_stats())
