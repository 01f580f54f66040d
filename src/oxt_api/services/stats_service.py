"""
services/stats_service.py — Network overview, health and distribution statistics.

Every figure is computed over all activated validators. Results are not
cached here; the underlying validator reads already are.
"""

from __future__ import annotations

import asyncio
import time
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from oxt_shared.config import Settings
from oxt_shared.models import (
    Distribution,
    DistributionType,
    NetworkHealth,
    NetworkOverview,
    ValidatorSnapshot,
    ValidatorStakeRow,
)
from oxt_shared.units import normalize_address
from oxt_api.services import distribution
from oxt_api.services.validator_service import ValidatorService
from oxt_api.services.yield_estimator import sanitize_commission
from oxt_api.utils.cache import CacheRegistry
from oxt_api.utils.degraded import Fetched

TOP_VALIDATORS = 5

DISTRIBUTION_LABELS: dict[str, str] = {
    "staking": "Staking Amount (OXT)",
    "commission": "Commission Rate (%)",
    "delegators": "Delegator Count",
}


def _reasons(results: list[Fetched[Any]]) -> str | None:
    degraded = [r.reason or "" for r in results if r.degraded]
    return "; ".join(degraded) if degraded else None


class StatsService:
    def __init__(
        self,
        validators: ValidatorService,
        registry: CacheRegistry,
        settings: Settings,
        log: Any,
    ) -> None:
        self._validators = validators
        self._registry = registry
        self._settings = settings
        self._log = log
        self._started = time.monotonic()

    async def _snapshots(self) -> tuple[list[ValidatorSnapshot], list[Fetched[Any]]]:
        activated = await self._validators.get_activated_validators()
        infos = await asyncio.gather(
            *(self._validators.get_validator_info(v) for v in activated.value)
        )
        return [i.value for i in infos], [activated, *infos]

    async def network_overview(self) -> Fetched[NetworkOverview]:
        (snapshots, reads), total, block = await asyncio.gather(
            self._snapshots(),
            self._validators.get_total_staking(),
            self._validators.get_block_number(),
        )
        reads.extend([total, block])

        delegators = {normalize_address(s) for snap in snapshots for s in snap.stakers}
        count = len(snapshots)
        average = (total.value / count).quantize(Decimal("0.000001")) if count else Decimal(0)
        top = sorted(snapshots, key=lambda s: s.staking_amount, reverse=True)[:TOP_VALIDATORS]

        overview = NetworkOverview(
            total_staking=total.value,
            total_validators=count,
            total_delegators=len(delegators),
            current_block=block.value,
            average_stake_per_validator=average,
            top_validators=[
                ValidatorStakeRow(
                    address=s.address,
                    staking_amount=s.staking_amount,
                    stakers=len(s.stakers),
                    commission_rate_bp=s.commission_rate_bp,
                )
                for s in top
            ],
        )
        reason = _reasons(reads)
        return Fetched.fallback(overview, reason) if reason else Fetched.ok(overview)

    async def network_health(self) -> Fetched[NetworkHealth]:
        snapshots, reads = await self._snapshots()
        jailed = await asyncio.gather(
            *(self._validators.is_validator_jailed(s.address) for s in snapshots)
        )
        reads.extend(jailed)

        stakes = [float(s.staking_amount) for s in snapshots]
        total = len(snapshots)
        jailed_count = sum(1 for j in jailed if j.value)
        active = total - jailed_count
        gini = Decimal(str(distribution.gini_coefficient(stakes))).quantize(
            Decimal("0.0001"), rounding=ROUND_HALF_UP
        )
        median = (
            sorted(s.staking_amount for s in snapshots)[total // 2] if total else Decimal(0)
        )
        health_pct = (
            (Decimal(active) / Decimal(total) * 100).quantize(
                Decimal("0.01"), rounding=ROUND_HALF_UP
            )
            if total
            else Decimal(0)
        )

        result = NetworkHealth(
            total_validators=total,
            active_validators=active,
            jailed_validators=jailed_count,
            validator_health=health_pct,
            median_stake=median,
            staking_concentration=gini,
            concentration_status=distribution.concentration_label(float(gini)),
        )
        reason = _reasons(reads)
        return Fetched.fallback(result, reason) if reason else Fetched.ok(result)

    async def validator_distribution(self, kind: DistributionType) -> Fetched[Distribution]:
        snapshots, reads = await self._snapshots()
        if kind == "staking":
            values = [float(s.staking_amount) for s in snapshots]
        elif kind == "commission":
            default_bp = self._settings.default_commission
            values = [
                float(sanitize_commission(s.commission_rate_bp, default_bp).decimal * 100)
                for s in snapshots
            ]
        elif kind == "delegators":
            values = [float(len(s.stakers)) for s in snapshots]
        else:
            raise ValueError(f"unknown distribution type: {kind!r}")

        result = distribution.distribution_buckets(values, DISTRIBUTION_LABELS[kind])
        reason = _reasons(reads)
        return Fetched.fallback(result, reason) if reason else Fetched.ok(result)

    @property
    def uptime_seconds(self) -> float:
        return round(time.monotonic() - self._started, 3)

    def cache_stats(self) -> dict[str, Any]:
        return {
            "caches": self._registry.all_stats(),
            "uptime_seconds": self.uptime_seconds,
        }
