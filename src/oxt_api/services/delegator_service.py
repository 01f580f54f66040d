"""Delegator data service (cache namespace "delegators")."""

from __future__ import annotations

import asyncio
from decimal import Decimal
from typing import Any

from oxt_shared.config import Settings
from oxt_shared.models import (
    DelegatorOverview,
    DelegatorPosition,
    StakingInfo,
    WithdrawalStatus,
)
from oxt_shared.units import format_ether
from oxt_api.services.cached import CachedReader
from oxt_api.services.validator_service import ValidatorService
from oxt_api.sources.base import StakingDataSource
from oxt_api.utils.cache import CacheStore
from oxt_api.utils.degraded import Fetched, any_degraded


class DelegatorService(CachedReader):
    def __init__(
        self,
        source: StakingDataSource,
        cache: CacheStore,
        settings: Settings,
        log: Any,
        *,
        validators: ValidatorService,
    ) -> None:
        super().__init__(source, cache, settings, log)
        self._validators = validators

    async def get_staking_info(self, staker: str, validator: str) -> Fetched[StakingInfo]:
        return await self._read(
            f"staking_info_{staker}_{validator}",
            lambda: self._source.get_staking_info(staker, validator),
            StakingInfo(),
            ttl_ms=self._settings.staking_info_ttl,
        )

    async def get_pending_rewards(self, delegator: str, validator: str) -> Fetched[int]:
        """Pending rewards in wei."""
        return await self._read(
            f"pending_rewards_{delegator}_{validator}",
            lambda: self._source.get_pending_rewards(delegator, validator),
            0,
            ttl_ms=self._settings.pending_rewards_ttl,
        )

    async def get_delegator_overview(self, delegator: str) -> Fetched[DelegatorOverview]:
        """Every activated validator this delegator has stake with, plus totals."""
        activated = await self._validators.get_activated_validators()
        degraded = activated.degraded
        reasons = [activated.reason] if activated.reason else []

        positions: list[DelegatorPosition] = []
        total_staked = Decimal(0)
        total_pending = Decimal(0)
        for validator in activated.value:
            info, pending = await asyncio.gather(
                self.get_staking_info(delegator, validator),
                self.get_pending_rewards(delegator, validator),
            )
            for result in (info, pending):
                if result.degraded:
                    degraded = True
                    reasons.append(result.reason or "")
            if info.value.amount_wei <= 0:
                continue
            pending_oxt = format_ether(pending.value)
            positions.append(
                DelegatorPosition(
                    validator=validator,
                    staked_amount=info.value.amount,
                    pending_rewards=pending_oxt,
                    unstake_block=info.value.unstake_block,
                    last_claim_block=info.value.last_claim_block,
                )
            )
            total_staked += info.value.amount
            total_pending += pending_oxt

        overview = DelegatorOverview(
            address=delegator,
            positions=positions,
            total_staked=total_staked,
            total_pending_rewards=total_pending,
        )
        if degraded:
            return Fetched.fallback(overview, "; ".join(r for r in reasons if r))
        return Fetched.ok(overview)

    async def withdrawal_status(self, delegator: str, validator: str) -> Fetched[WithdrawalStatus]:
        """
        Whether an unstaked position can be withdrawn yet.

        An unstake_block of 0 means the stake was never unstaked ("staked").
        Otherwise the position is "ready" once the chain reaches unstake_block
        and "pending" before that, with the remaining time estimated at the
        fast block time. If either read fails the status is "unknown".
        """
        staking, block = await asyncio.gather(
            self.get_staking_info(delegator, validator),
            self._validators.get_block_number(),
        )
        unstake_block = staking.value.unstake_block
        status = WithdrawalStatus(
            delegator=delegator,
            validator=validator,
            status="unknown",
            unstake_block=unstake_block,
            current_block=block.value,
        )
        if any_degraded(staking, block):
            reasons = [r.reason for r in (staking, block) if r.reason]
            return Fetched.fallback(status, "; ".join(reasons) or "upstream unavailable")

        if unstake_block == 0:
            status.status = "staked"
        elif unstake_block <= block.value:
            status.status = "ready"
            status.can_withdraw = True
        else:
            status.status = "pending"
            status.blocks_remaining = unstake_block - block.value
            status.estimated_seconds = status.blocks_remaining * self._settings.fast_block_time
        return Fetched.ok(status)
