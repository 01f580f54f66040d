"""Delegator endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from oxt_shared.units import format_ether
from oxt_api.dependencies import AppContext, get_context, require_address
from oxt_api.responses import wrap_fetched, wrap_response

router = APIRouter(prefix="/delegators", tags=["delegators"])


@router.get("/{address}")
async def get_delegator(address: str, ctx: AppContext = Depends(get_context)):
    """Every position the delegator holds across activated validators."""
    require_address(address)
    result = await ctx.delegators.get_delegator_overview(address)
    data = result.value.model_dump(mode="json")
    data["active_delegations"] = result.value.active_delegations
    return wrap_response(
        data,
        total_count=result.value.active_delegations,
        degraded=result.degraded,
        degraded_reason=result.reason,
    )


@router.get("/{address}/staking/{validator}")
async def get_staking(address: str, validator: str, ctx: AppContext = Depends(get_context)):
    """One position: staked amount and pending rewards with a single validator."""
    require_address(address)
    require_address(validator, "validator")
    staking, pending = (
        await ctx.delegators.get_staking_info(address, validator),
        await ctx.delegators.get_pending_rewards(address, validator),
    )
    data = {
        "delegator": address,
        "validator": validator,
        "staked_amount": str(staking.value.amount),
        "staked_amount_wei": str(staking.value.amount_wei),
        "unstake_block": staking.value.unstake_block,
        "last_claim_block": staking.value.last_claim_block,
        "pending_rewards": str(format_ether(pending.value)),
        "pending_rewards_wei": str(pending.value),
    }
    reasons = [r.reason for r in (staking, pending) if r.reason]
    return wrap_response(
        data,
        degraded=staking.degraded or pending.degraded,
        degraded_reason="; ".join(reasons) or None,
    )


@router.get("/{delegator}/{validator}/withdrawal-status")
async def get_withdrawal_status(
    delegator: str, validator: str, ctx: AppContext = Depends(get_context)
):
    require_address(delegator, "delegator")
    require_address(validator, "validator")
    result = await ctx.delegators.withdrawal_status(delegator, validator)
    return wrap_fetched(result)
