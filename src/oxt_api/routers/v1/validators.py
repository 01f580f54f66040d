"""Validator endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from oxt_api.dependencies import AppContext, get_context, require_address
from oxt_api.responses import wrap_fetched, wrap_response
from oxt_api.utils.pagination import build_links

router = APIRouter(prefix="/validators", tags=["validators"])


@router.get("")
async def list_validators(ctx: AppContext = Depends(get_context)):
    """Addresses of all activated validators."""
    result = await ctx.validators.get_activated_validators()
    return wrap_fetched(result, total_count=len(result.value))


@router.get("/{address}")
async def get_validator(address: str, ctx: AppContext = Depends(get_context)):
    """Validator info merged with its description, jailed and activated flags."""
    require_address(address)
    result = await ctx.validators.get_validator_details(address)
    return wrap_response(
        result.value.to_dict(),
        degraded=result.degraded,
        degraded_reason=result.reason,
    )


@router.get("/{address}/stakers")
async def get_validator_stakers(
    address: str,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=50),
    ctx: AppContext = Depends(get_context),
):
    require_address(address)
    result = await ctx.validators.get_stakers(address, page, limit)
    pagination = result.value.pagination
    return wrap_fetched(
        result,
        total_count=pagination.total_items,
        links=build_links(f"/v1/validators/{address}/stakers", pagination),
    )


@router.get("/{address}/yield")
async def get_validator_yield(address: str, ctx: AppContext = Depends(get_context)):
    """Delegator and operator APR/APY, performance score and risk for one validator."""
    require_address(address)
    result = await ctx.apr.validator_yield(address)
    return wrap_fetched(result)
