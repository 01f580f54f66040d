"""
APR / APY service (cache namespace "apy").

Fetches validator and staking state through the data services, runs the
yield estimator, and caches finished reports. Degraded inputs produce
degraded reports, which are returned but never cached.
"""

from __future__ import annotations

import asyncio
from decimal import Decimal
from typing import Any

from oxt_shared.config import Settings
from oxt_shared.constants import BLOCK_TIME_LABELS
from oxt_shared.models import (
    AverageApr,
    BatchAprItem,
    ComparisonSummary,
    DelegatorApr,
    Recommendation,
    RiskLevel,
    StakeCheck,
    ValidatorComparison,
    YieldReport,
)
from oxt_api.services import yield_estimator
from oxt_api.services.delegator_service import DelegatorService
from oxt_api.services.validator_service import ValidatorService
from oxt_api.utils.cache import CacheStore
from oxt_api.utils.degraded import Fetched, any_degraded


class InsufficientStakeError(Exception):
    """The delegator's stake is below the configured minimum."""

    def __init__(self, current_stake: Decimal, min_stake: Decimal) -> None:
        super().__init__(f"Minimum stake required: {min_stake} OXT")
        self.current_stake = current_stake
        self.min_stake = min_stake


class InvalidBlockTimeError(ValueError):
    def __init__(self, block_time: int, valid: tuple[int, ...]) -> None:
        super().__init__(f"Block time must be one of {list(valid)} seconds")
        self.block_time = block_time
        self.valid = valid


class AprService:
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

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    @property
    def valid_block_times(self) -> tuple[int, ...]:
        return (self._settings.fast_block_time, self._settings.slow_block_time)

    def check_block_time(self, block_time: int) -> None:
        if block_time not in self.valid_block_times:
            raise InvalidBlockTimeError(block_time, self.valid_block_times)

    def _block_label(self, block_time: int) -> str:
        return BLOCK_TIME_LABELS.get(block_time, f"{block_time} seconds per block")

    def configuration(self) -> dict[str, Any]:
        s = self._settings
        return {
            "min_delegator_stake": str(s.min_delegator_stake),
            "block_time_fast": s.fast_block_time,
            "block_time_slow": s.slow_block_time,
            "blocks_per_year_fast": s.blocks_per_year_fast,
            "blocks_per_year_slow": s.blocks_per_year_slow,
            "default_commission_rate": s.default_commission,
            "network_inflation_rate": str(s.network_inflation_rate),
            "compounding_frequency": s.compounding_frequency,
        }

    def minimum_stake(self) -> dict[str, str]:
        min_stake = self._settings.min_delegator_stake
        return {"ether": str(min_stake), "formatted": f"{min_stake} OXT"}

    async def stake_check(self, delegator: str, validator: str) -> Fetched[StakeCheck]:
        min_stake = self._settings.min_delegator_stake
        staking = await self._delegators.get_staking_info(delegator, validator)
        current = staking.value.amount
        check = StakeCheck(
            delegator=delegator,
            validator=validator,
            meets_requirement=current >= min_stake,
            current_stake=current,
            min_stake=min_stake,
            difference=abs(current - min_stake),
        )
        if staking.degraded:
            return Fetched.fallback(check, staking.reason or "upstream unavailable")
        return Fetched.ok(check)

    # ------------------------------------------------------------------
    # Validator yield
    # ------------------------------------------------------------------

    async def validator_yield(self, address: str) -> Fetched[YieldReport]:
        cache_key = f"validator_yield_{address}"
        cached = self._cache.get(cache_key)
        if cached is not None:
            return Fetched.ok(cached)

        info, description, total = await asyncio.gather(
            self._validators.get_validator_info(address),
            self._validators.get_validator_description(address),
            self._validators.get_total_staking(),
        )
        s = self._settings
        report = yield_estimator.build_yield_report(
            info.value,
            blocks_per_year=s.blocks_per_year_fast,
            block_time=s.fast_block_time,
            inflation_rate=s.network_inflation_rate,
            default_commission_bp=s.default_commission,
            compounding_frequency=s.compounding_frequency,
            moniker=description.value.moniker,
            total_network_staking=total.value,
        )
        reads = (info, description, total)
        if any_degraded(*reads):
            reasons = [r.reason for r in reads if r.reason]
            return Fetched.fallback(report, "; ".join(reasons) or "upstream unavailable")

        self._cache.set(cache_key, report, s.yield_cache_ttl)
        return Fetched.ok(report)

    async def compare_validators(self, addresses: list[str]) -> Fetched[ValidatorComparison]:
        results = await asyncio.gather(*(self.validator_yield(a) for a in addresses))
        reports = sorted(
            (r.value for r in results), key=lambda r: r.performance.score, reverse=True
        )
        comparison = ValidatorComparison(
            comparisons=reports,
            summary=_comparison_summary(reports),
            recommendations=_recommendations(reports),
        )
        degraded = [r.reason for r in results if r.degraded]
        if degraded:
            return Fetched.fallback(comparison, "; ".join(d or "" for d in degraded))
        return Fetched.ok(comparison)

    # ------------------------------------------------------------------
    # Delegator APR
    # ------------------------------------------------------------------

    async def delegator_apr(
        self,
        delegator: str,
        validator: str,
        block_time: int | None = None,
        *,
        skip_minimum_stake_check: bool = False,
    ) -> Fetched[DelegatorApr]:
        """
        APR for a delegator's position with a validator.

        Raises:
            InvalidBlockTimeError: block_time is not a configured block time.
            InsufficientStakeError: the position is below the minimum stake
                (unless skip_minimum_stake_check, which prices the minimum
                stake instead of the actual one).
        """
        s = self._settings
        block_time = s.fast_block_time if block_time is None else block_time
        self.check_block_time(block_time)

        cache_key = f"delegator_apr_{delegator}_{validator}_{block_time}_{skip_minimum_stake_check}"
        cached = self._cache.get(cache_key)
        if cached is not None:
            return Fetched.ok(cached)

        if skip_minimum_stake_check:
            info = await self._validators.get_validator_info(validator)
            reads: tuple[Fetched[Any], ...] = (info,)
            effective_stake = s.min_delegator_stake
        else:
            info, staking = await asyncio.gather(
                self._validators.get_validator_info(validator),
                self._delegators.get_staking_info(delegator, validator),
            )
            reads = (info, staking)
            effective_stake = staking.value.amount
            # an unreadable position is reported as degraded, not as too small
            if not staking.degraded and effective_stake < s.min_delegator_stake:
                raise InsufficientStakeError(effective_stake, s.min_delegator_stake)

        result = yield_estimator.delegator_apr(
            info.value,
            delegator=delegator,
            delegator_stake=effective_stake,
            block_time=block_time,
            block_configuration=self._block_label(block_time),
            blocks_per_year=s.blocks_per_year(block_time),
            inflation_rate=s.network_inflation_rate,
            default_commission_bp=s.default_commission,
        )
        if any_degraded(*reads):
            reasons = [r.reason for r in reads if r.reason]
            return Fetched.fallback(result, "; ".join(reasons) or "upstream unavailable")

        self._log.info(
            "apr_calculated",
            delegator=delegator,
            validator=validator,
            block_time=block_time,
            apr=str(result.apr),
            method=result.calculation_method,
        )
        self._cache.set(cache_key, result, s.apr_cache_ttl)
        return Fetched.ok(result)

    async def delegator_apr_batch(
        self, delegator: str, validators: list[str], block_time: int | None = None
    ) -> list[BatchAprItem]:
        items: list[BatchAprItem] = []
        for validator in validators:
            try:
                result = await self.delegator_apr(delegator, validator, block_time)
            except InsufficientStakeError as exc:
                items.append(
                    BatchAprItem(
                        validator=validator,
                        success=False,
                        error="INSUFFICIENT_STAKE",
                        message=str(exc),
                    )
                )
                continue
            items.append(BatchAprItem(validator=validator, success=True, data=result.value))
        return items

    async def average_apr(self, block_time: int | None = None) -> Fetched[AverageApr]:
        """Mean APR over activated validators with nonzero stake, each priced at its full stake."""
        s = self._settings
        block_time = s.fast_block_time if block_time is None else block_time
        self.check_block_time(block_time)

        activated = await self._validators.get_activated_validators()
        infos = await asyncio.gather(
            *(self._validators.get_validator_info(v) for v in activated.value)
        )
        aprs: list[Decimal] = []
        for info in infos:
            snapshot = info.value
            if snapshot.staking_amount <= 0:
                continue
            result = yield_estimator.delegator_apr(
                snapshot,
                delegator=snapshot.address,
                delegator_stake=snapshot.staking_amount,
                block_time=block_time,
                block_configuration=self._block_label(block_time),
                blocks_per_year=s.blocks_per_year(block_time),
                inflation_rate=s.network_inflation_rate,
                default_commission_bp=s.default_commission,
            )
            aprs.append(result.apr)

        average = sum(aprs, Decimal(0)) / len(aprs) if aprs else Decimal(0)
        summary = AverageApr(
            average_apr=yield_estimator.quantize(average, yield_estimator.TWO_DP),
            validators_included=len(aprs),
            total_validators=len(activated.value),
            block_time=block_time,
            block_configuration=self._block_label(block_time),
        )
        degraded = [r.reason for r in (activated, *infos) if r.degraded]
        if degraded:
            return Fetched.fallback(summary, "; ".join(d or "" for d in degraded))
        return Fetched.ok(summary)


# ---------------------------------------------------------------------------
# Comparison helpers
# ---------------------------------------------------------------------------


def _comparison_summary(reports: list[YieldReport]) -> ComparisonSummary:
    if not reports:
        return ComparisonSummary(total_validators=0, average_apy=Decimal(0))

    average = sum((r.delegator.apy for r in reports), Decimal(0)) / len(reports)
    lowest_risk = min(reports, key=lambda r: r.risk.score)
    highest = None
    for report in reports:
        best = highest.delegator.apy if highest else Decimal(0)
        if report.delegator.apy > best:
            highest = report

    return ComparisonSummary(
        total_validators=len(reports),
        average_apy=yield_estimator.quantize(average, yield_estimator.TWO_DP),
        best_performer=reports[0].validator_address,
        lowest_risk=lowest_risk.validator_address,
        highest_apy=highest.validator_address if highest else None,
    )


def _recommendations(reports: list[YieldReport]) -> list[Recommendation]:
    """reports must already be sorted by performance score, best first."""
    recommendations: list[Recommendation] = []

    low_risk = [r for r in reports if r.risk.level == RiskLevel.LOW]
    if low_risk:
        best = max(low_risk, key=lambda r: r.delegator.apy)
        recommendations.append(
            Recommendation(
                type="CONSERVATIVE",
                reason=f"Lowest risk with {best.delegator.apy}% APY",
                validators=[best.validator_address],
                risk_level=best.risk.level,
            )
        )

    growth = [r for r in reports if r.delegator.apy > 10 and r.risk.level != RiskLevel.HIGH]
    if growth:
        best = growth[0]
        recommendations.append(
            Recommendation(
                type="GROWTH",
                reason=f"High yield {best.delegator.apy}% with moderate risk",
                validators=[best.validator_address],
                risk_level=best.risk.level,
            )
        )

    if len(reports) >= 3:
        recommendations.append(
            Recommendation(
                type="DIVERSIFIED",
                reason="Diversify across top 3 performers to reduce risk",
                validators=[r.validator_address for r in reports[:3]],
            )
        )

    return recommendations
