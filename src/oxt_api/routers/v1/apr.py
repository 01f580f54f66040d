"""APR / APY endpoints (rate limited by RateLimitMiddleware)."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field

from oxt_shared.constants import ZERO_ADDRESS
from oxt_api.dependencies import AppContext, get_context, require_address
from oxt_api.responses import error_response, wrap_fetched, wrap_response
from oxt_api.services.apr_service import InsufficientStakeError, InvalidBlockTimeError

router = APIRouter(prefix="/apr", tags=["apr"])

MAX_BATCH_VALIDATORS = 50


class BatchRequest(BaseModel):
    validators: list[str] = Field(default_factory=list)
    block_time: int | None = Field(default=None, alias="blockTime")


def _check_block_time(ctx: AppContext, block_time: int | None) -> None:
    if block_time is None:
        return
    try:
        ctx.apr.check_block_time(block_time)
    except InvalidBlockTimeError as exc:
        raise HTTPException(
            status_code=400,
            detail=error_response(
                "INVALID_BLOCK_TIME",
                str(exc),
                details={"valid_block_times": list(exc.valid)},
            ),
        ) from exc


@router.get("/delegator/{delegator}/validator/{validator}")
async def get_delegator_apr(
    delegator: str,
    validator: str,
    block_time: int | None = Query(None, alias="blockTime", description="1 (fast) or 5 (slow)"),
    ctx: AppContext = Depends(get_context),
):
    """APR for a delegator's actual position with a validator."""
    require_address(delegator, "delegator")
    require_address(validator, "validator")
    _check_block_time(ctx, block_time)
    try:
        result = await ctx.apr.delegator_apr(delegator, validator, block_time)
    except InsufficientStakeError as exc:
        raise HTTPException(
            status_code=400,
            detail=error_response(
                "INSUFFICIENT_STAKE",
                str(exc),
                details={
                    "current_stake": str(exc.current_stake),
                    "min_stake": str(exc.min_stake),
                },
            ),
        ) from exc
    return wrap_fetched(result)


@router.get("/delegator/{delegator}/validator/{validator}/stake-check")
async def check_minimum_stake(
    delegator: str,
    validator: str,
    ctx: AppContext = Depends(get_context),
):
    """Whether a position meets the minimum delegator stake, and by how much."""
    require_address(delegator, "delegator")
    require_address(validator, "validator")
    result = await ctx.apr.stake_check(delegator, validator)
    if result.degraded:
        # an unreadable position would otherwise look like a zero stake
        raise HTTPException(
            status_code=503,
            detail=error_response(
                "STAKE_CHECK_ERROR",
                "Staking position is unavailable",
                details={"reason": result.reason},
            ),
        )
    return wrap_fetched(result)


@router.post("/delegator/{delegator}/batch")
async def batch_delegator_apr(
    delegator: str,
    body: BatchRequest,
    ctx: AppContext = Depends(get_context),
):
    """APR for one delegator across up to 50 validators; per-item failures are reported inline."""
    require_address(delegator, "delegator")
    if not body.validators:
        raise HTTPException(
            status_code=400,
            detail=error_response("INVALID_REQUEST", "validators must be a non-empty list"),
        )
    if len(body.validators) > MAX_BATCH_VALIDATORS:
        raise HTTPException(
            status_code=400,
            detail=error_response(
                "TOO_MANY_VALIDATORS",
                f"Maximum {MAX_BATCH_VALIDATORS} validators per request",
                details={"received": len(body.validators)},
            ),
        )
    for validator in body.validators:
        require_address(validator, "validator")
    _check_block_time(ctx, body.block_time)

    items = await ctx.apr.delegator_apr_batch(delegator, body.validators, body.block_time)
    return wrap_response(items, total_count=len(items))


@router.get("/validator/{validator}")
async def get_validator_apr(
    validator: str,
    block_time: int | None = Query(None, alias="blockTime"),
    ctx: AppContext = Depends(get_context),
):
    """Theoretical APR for a new delegator staking the minimum amount."""
    require_address(validator, "validator")
    _check_block_time(ctx, block_time)
    result = await ctx.apr.delegator_apr(
        ZERO_ADDRESS, validator, block_time, skip_minimum_stake_check=True
    )
    return wrap_fetched(result)


@router.get("/average")
async def get_average_apr(
    block_time: int | None = Query(None, alias="blockTime"),
    ctx: AppContext = Depends(get_context),
):
    _check_block_time(ctx, block_time)
    result = await ctx.apr.average_apr(block_time)
    return wrap_fetched(result)


@router.get("/compare")
async def compare_validators(
    validators: str = Query(..., description="Comma-separated validator addresses"),
    ctx: AppContext = Depends(get_context),
):
    """Yield reports side by side with a summary and recommendations."""
    addresses = [v.strip() for v in validators.split(",") if v.strip()]
    if not addresses:
        raise HTTPException(
            status_code=400,
            detail=error_response("INVALID_REQUEST", "At least one validator is required"),
        )
    if len(addresses) > MAX_BATCH_VALIDATORS:
        raise HTTPException(
            status_code=400,
            detail=error_response(
                "TOO_MANY_VALIDATORS",
                f"Maximum {MAX_BATCH_VALIDATORS} validators per request",
                details={"received": len(addresses)},
            ),
        )
    for address in addresses:
        require_address(address, "validator")

    result = await ctx.apr.compare_validators(addresses)
    return wrap_fetched(result, total_count=len(addresses))


@router.get("/config")
async def get_apr_config(ctx: AppContext = Depends(get_context)):
    data = ctx.apr.configuration()
    data["minimum_stake"] = ctx.apr.minimum_stake()
    return wrap_response(data)
