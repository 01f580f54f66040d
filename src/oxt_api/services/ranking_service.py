"""
services/ranking_service.py — Delegator ranking by total stake across validators.

Totals are rebuilt from scratch on every miss: for each activated
validator, for each of its stakers, the staker's position with that
validator is added to a per-delegator running total. That is an
O(validators x stakers) scan of upstream reads, each of which is itself
cached by the validator and delegator services; the resulting totals are
memoized in the "ranking" namespace for RANKING_CACHE_TTL.

Ordering:
  - rank() sorts descending by stake with a stable sort over the scan
    order, so equal stakes keep first-seen order and receive consecutive
    positional ranks.
  - rank_of() is tie-aware: 1 + the number of delegators with strictly
    greater stake, so every delegator tied for a stake shares a rank.

Usage:
    page = await ranking.rank(page=1, limit=20)
    mine = await ranking.rank_of("0xabc...")
"""

from __future__ import annotations

import asyncio
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from oxt_shared.config import Settings
from oxt_shared.models import (
    DelegatorRank,
    RankingEntry,
    RankingPage,
    RankingSummary,
    ValidatorStake,
)
from oxt_shared.units import format_ether, normalize_address
from oxt_api.services.delegator_service import DelegatorService
from oxt_api.services.validator_service import ValidatorService
from oxt_api.utils.cache import CacheStore
from oxt_api.utils.degraded import Fetched
from oxt_api.utils.pagination import paginate

TOTALS_KEY = "delegator_totals"

FOUR_DP = Decimal("0.0001")
TWO_DP = Decimal("0.01")


# ---------------------------------------------------------------------------
# Pure helpers
# ---------------------------------------------------------------------------


def sort_totals(totals: dict[str, int]) -> list[tuple[str, int]]:
    """Delegators by descending stake; ties keep insertion order."""
    return sorted(totals.items(), key=lambda item: item[1], reverse=True)


def percent_of_total(stake_wei: int, total_wei: int) -> Decimal:
    if total_wei == 0:
        return Decimal("0.00")
    pct = Decimal(stake_wei) / Decimal(total_wei) * 100
    return pct.quantize(FOUR_DP, rounding=ROUND_HALF_UP)


def summarize(totals: dict[str, int]) -> RankingSummary:
    count = len(totals)
    total_wei = sum(totals.values())
    return RankingSummary(
        total_delegators=count,
        total_staked=format_ether(total_wei),
        average_stake=format_ether(total_wei // count) if count else Decimal(0),
    )


def tie_aware_rank(totals: dict[str, int], address: str) -> int | None:
    """None when the address has no stake; otherwise 1 + count of strictly larger stakes."""
    stake = totals.get(address, 0)
    if stake <= 0:
        return None
    return 1 + sum(1 for other in totals.values() if other > stake)


def percentile(rank: int, total_delegators: int) -> Decimal:
    if total_delegators == 0:
        return Decimal(0)
    pct = Decimal(total_delegators - rank + 1) / Decimal(total_delegators) * 100
    return pct.quantize(TWO_DP, rounding=ROUND_HALF_UP)


def _join_reasons(results: list[Fetched[Any]]) -> str:
    return "; ".join(r.reason for r in results if r.reason)


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------


class RankingService:
    def __init__(
        self,
        validators: ValidatorService,
        delegators: DelegatorService,
        cache: CacheStore,
        settings: Settings,
        log: Any,
    ) -> None:
        self._validators = validators
        self._delegators = delegators
        self._cache = cache
        self._settings = settings
        self._log = log

    async def compute_all_totals(self) -> Fetched[dict[str, int]]:
        """Per-delegator total stake in wei, keyed by lower-cased address."""
        cached = self._cache.get(TOTALS_KEY)
        if cached is not None:
            return Fetched.ok(cached)

        activated = await self._validators.get_activated_validators()
        infos = await asyncio.gather(
            *(self._validators.get_validator_info(v) for v in activated.value)
        )
        reads: list[Fetched[Any]] = [activated, *infos]

        pairs = [
            (staker, validator)
            for validator, info in zip(activated.value, infos)
            for staker in info.value.stakers
        ]
        positions = await asyncio.gather(
            *(self._delegators.get_staking_info(s, v) for s, v in pairs)
        )
        reads.extend(positions)

        totals: dict[str, int] = {}
        for (staker, _), position in zip(pairs, positions):
            amount = position.value.amount_wei
            if amount <= 0:
                continue
            key = normalize_address(staker)
            totals[key] = totals.get(key, 0) + amount

        self._log.info(
            "delegator_totals_computed",
            validators=len(activated.value),
            positions=len(pairs),
            delegators=len(totals),
        )

        degraded = [r for r in reads if r.degraded]
        if degraded:
            return Fetched.fallback(totals, _join_reasons(degraded))
        self._cache.set(TOTALS_KEY, totals, self._settings.ranking_cache_ttl)
        return Fetched.ok(totals)

    async def rank(self, page: int = 1, limit: int = 20) -> Fetched[RankingPage]:
        totals = await self.compute_all_totals()
        ordered = sort_totals(totals.value)
        total_wei = sum(totals.value.values())

        start = (page - 1) * limit
        entries = [
            RankingEntry(
                delegator_address=address,
                total_stake_wei=stake,
                total_stake=format_ether(stake),
                rank=start + offset + 1,
                percent_of_total=percent_of_total(stake, total_wei),
            )
            for offset, (address, stake) in enumerate(ordered[start : start + limit])
        ]
        result = RankingPage(
            entries=entries,
            pagination=paginate(len(ordered), page, limit),
            summary=summarize(totals.value),
        )
        return Fetched(result, totals.degraded, totals.reason)

    async def top(self, limit: int = 10) -> Fetched[RankingPage]:
        return await self.rank(1, limit)

    async def summary(self) -> Fetched[RankingSummary]:
        totals = await self.compute_all_totals()
        return Fetched(summarize(totals.value), totals.degraded, totals.reason)

    async def validator_breakdown(self, delegator: str) -> Fetched[list[ValidatorStake]]:
        """The delegator's nonzero positions, largest first."""
        activated = await self._validators.get_activated_validators()
        positions = await asyncio.gather(
            *(self._delegators.get_staking_info(delegator, v) for v in activated.value)
        )
        breakdown = [
            ValidatorStake(
                validator=validator,
                stake_wei=position.value.amount_wei,
                stake=position.value.amount,
            )
            for validator, position in zip(activated.value, positions)
            if position.value.amount_wei > 0
        ]
        breakdown.sort(key=lambda item: item.stake_wei, reverse=True)

        degraded = [r for r in (activated, *positions) if r.degraded]
        if degraded:
            return Fetched.fallback(breakdown, _join_reasons(degraded))
        return Fetched.ok(breakdown)

    async def rank_of(self, delegator: str) -> Fetched[DelegatorRank]:
        totals = await self.compute_all_totals()
        key = normalize_address(delegator)
        rank = tie_aware_rank(totals.value, key)
        count = len(totals.value)

        if rank is None:
            result = DelegatorRank(
                address=delegator,
                total_delegators=count,
                message="Delegator not found or has no active stakes",
            )
            return Fetched(result, totals.degraded, totals.reason)

        breakdown = await self.validator_breakdown(delegator)
        result = DelegatorRank(
            address=delegator,
            rank=rank,
            total_stake=format_ether(totals.value[key]),
            total_delegators=count,
            percentile=percentile(rank, count),
            validator_breakdown=breakdown.value,
        )
        degraded = [r for r in (totals, breakdown) if r.degraded]
        if degraded:
            return Fetched.fallback(result, _join_reasons(degraded))
        return Fetched.ok(result)

    def invalidate(self) -> bool:
        return self._cache.delete(TOTALS_KEY)
