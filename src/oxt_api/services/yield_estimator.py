"""
services/yield_estimator.py — APR/APY, performance and risk scoring for validators.

Pure functions over Decimal; nothing here touches the network or the
cache. Services fetch a ValidatorSnapshot, call build_yield_report() or
delegator_apr(), and decide themselves whether to cache the result.

Reward model:
  - The contract's reward amount is treated as a per-block figure and
    annualised with blocks_per_year for the configured block time.
  - A reward amount of exactly zero means "no history yet": the annual
    reward is then estimated as staking_amount * inflation_rate and the
    result is tagged calculation_method="estimated".

Usage:
    report = build_yield_report(
        snapshot,
        blocks_per_year=31_536_000,
        block_time=1,
        inflation_rate=Decimal("0.05"),
        default_commission_bp=500,
    )
    report.delegator.apr, report.performance.score, report.risk.level
"""

from __future__ import annotations

import math
from decimal import ROUND_HALF_UP, Decimal

from oxt_shared.constants import BASIS_POINTS, DAYS_PER_YEAR
from oxt_shared.models import (
    CommissionRate,
    DelegatorApr,
    PerformanceRanking,
    PerformanceSummary,
    RewardEstimate,
    RiskAssessment,
    RiskLevel,
    ValidatorSnapshot,
    YieldMetrics,
    YieldReport,
    YieldSide,
)

ZERO = Decimal(0)
TWO_DP = Decimal("0.01")
FOUR_DP = Decimal("0.0001")
SIX_DP = Decimal("0.000001")


def quantize(value: Decimal, places: Decimal) -> Decimal:
    return value.quantize(places, rounding=ROUND_HALF_UP)


# ---------------------------------------------------------------------------
# Inputs
# ---------------------------------------------------------------------------


def sanitize_commission(basis_points: int | None, default_bp: int = 500) -> CommissionRate:
    """
    Convert an untrusted basis-point commission into a fraction.

    Missing values fall back to default_bp silently; values outside
    [0, 10000] fall back with a warning attached.
    """
    warning = None
    if basis_points is None:
        bp = default_bp
    elif basis_points < 0 or basis_points > BASIS_POINTS:
        warning = f"Invalid rate {basis_points}, using default"
        bp = default_bp
    else:
        bp = basis_points
    rate = Decimal(bp) / BASIS_POINTS
    return CommissionRate(
        basis_points=bp,
        decimal=rate,
        percentage=f"{quantize(rate * 100, TWO_DP)}%",
        warning=warning,
    )


def estimate_rewards(
    staking_amount: Decimal,
    reward_amount: Decimal,
    *,
    blocks_per_year: int,
    inflation_rate: Decimal,
) -> RewardEstimate:
    """Annual and daily validator rewards, falling back to the inflation model."""
    if reward_amount == 0:
        annual = staking_amount * inflation_rate
        per_block = annual / blocks_per_year
        method = "estimated"
    else:
        per_block = reward_amount
        annual = per_block * blocks_per_year
        method = "historical"
    return RewardEstimate(
        per_block=per_block,
        annual=annual,
        daily=annual / DAYS_PER_YEAR,
        blocks_per_year=blocks_per_year,
        calculation_method=method,
    )


# ---------------------------------------------------------------------------
# Rates
# ---------------------------------------------------------------------------


def calculate_apr(daily_rewards: Decimal, total_staked: Decimal) -> Decimal:
    """Simple annualised return in percent. Zero when nothing is staked."""
    if total_staked <= 0:
        return ZERO
    return daily_rewards / total_staked * DAYS_PER_YEAR * 100


def calculate_apy(
    daily_rewards: Decimal,
    total_staked: Decimal,
    compounding_frequency: int = DAYS_PER_YEAR,
) -> Decimal:
    """Compound annual yield in percent, compounding n times a year."""
    if total_staked <= 0:
        return ZERO
    daily_rate = daily_rewards / total_staked
    periodic_rate = daily_rate / (Decimal(compounding_frequency) / DAYS_PER_YEAR)
    return ((1 + periodic_rate) ** compounding_frequency - 1) * 100


def yield_side(
    daily_rewards: Decimal,
    total_staked: Decimal,
    compounding_frequency: int = DAYS_PER_YEAR,
) -> YieldSide:
    return YieldSide(
        apr=quantize(calculate_apr(daily_rewards, total_staked), TWO_DP),
        apy=quantize(calculate_apy(daily_rewards, total_staked, compounding_frequency), TWO_DP),
        daily=quantize(daily_rewards, SIX_DP),
        monthly=quantize(daily_rewards * 30, SIX_DP),
        yearly=quantize(daily_rewards * DAYS_PER_YEAR, SIX_DP),
    )


# ---------------------------------------------------------------------------
# Scoring
# ---------------------------------------------------------------------------


def performance_score(
    apy: Decimal,
    commission_rate: Decimal,
    staking_amount: Decimal,
    *,
    active: bool,
    never_slashed: bool,
) -> int:
    """
    Additive 0–100 score. apy is in percent, commission_rate a fraction.

    All thresholds are strict: an APY of exactly 15 lands in the >12 band.
    """
    score = 50

    if apy > 15:
        score += 40
    elif apy > 12:
        score += 30
    elif apy > 10:
        score += 20
    elif apy > 8:
        score += 10

    if commission_rate < Decimal("0.05"):
        score += 25
    elif commission_rate < Decimal("0.10"):
        score += 20
    elif commission_rate < Decimal("0.15"):
        score += 15
    elif commission_rate < Decimal("0.20"):
        score += 10
    else:
        score -= 10

    if staking_amount > 100_000:
        score += 20
    elif staking_amount > 50_000:
        score += 15
    elif staking_amount > 10_000:
        score += 10
    elif staking_amount > 1_000:
        score += 5

    if active:
        score += 15
    if never_slashed:
        score += 5

    return max(0, min(100, score))


def performance_ranking(score: int) -> PerformanceRanking:
    if score >= 85:
        return PerformanceRanking.EXCELLENT
    if score >= 70:
        return PerformanceRanking.GOOD
    if score >= 55:
        return PerformanceRanking.AVERAGE
    if score >= 40:
        return PerformanceRanking.BELOW_AVERAGE
    return PerformanceRanking.POOR


_RECOMMENDATIONS = {
    RiskLevel.LOW: "Suitable for conservative investors seeking steady returns",
    RiskLevel.MEDIUM: "Moderate risk - suitable for balanced portfolios",
    RiskLevel.HIGH: "High risk - only for experienced investors who understand the risks",
    RiskLevel.UNKNOWN: "Cannot assess due to lack of data",
}


def assess_risk(
    *,
    slashed: bool,
    delegator_count: int,
    staking_amount: Decimal,
    commission_rate: Decimal,
) -> RiskAssessment:
    score = 0
    factors: list[str] = []

    if slashed:
        factors.append("Has been slashed previously")
        score += 30
    if delegator_count < 10:
        factors.append("Low number of delegators")
        score += 20
    if staking_amount < 1_000:
        factors.append("Low total staking amount")
        score += 25
    if commission_rate > Decimal("0.20"):
        factors.append("High commission rate")
        score += 15

    if score >= 50:
        level = RiskLevel.HIGH
    elif score >= 25:
        level = RiskLevel.MEDIUM
    else:
        level = RiskLevel.LOW

    return RiskAssessment(
        level=level, score=score, factors=factors, recommendation=_RECOMMENDATIONS[level]
    )


def break_even_days(apy: Decimal) -> int | None:
    """Days of simple interest at the given APY until returns equal principal."""
    if apy <= 0:
        return None
    daily_rate = apy / DAYS_PER_YEAR / 100
    return math.ceil(1 / daily_rate)


def break_even_time(apy: Decimal) -> str:
    days = break_even_days(apy)
    if days is None:
        return "N/A"
    if days > 3650:
        return "10+ years"
    if days > 365:
        return f"{math.ceil(days / 365)} years"
    if days > 30:
        return f"{math.ceil(days / 30)} months"
    return f"{days} days"


# ---------------------------------------------------------------------------
# Reports
# ---------------------------------------------------------------------------


def build_yield_report(
    snapshot: ValidatorSnapshot,
    *,
    blocks_per_year: int,
    block_time: int,
    inflation_rate: Decimal,
    default_commission_bp: int,
    compounding_frequency: int = DAYS_PER_YEAR,
    moniker: str = "Unknown",
    total_network_staking: Decimal | None = None,
) -> YieldReport:
    """Full yield report for one validator; zero report when nothing is staked."""
    stake = snapshot.staking_amount
    commission = sanitize_commission(snapshot.commission_rate_bp, default_commission_bp)
    if stake <= 0:
        return zero_yield_report(
            snapshot.address,
            commission=commission,
            moniker=moniker,
            block_time=block_time,
            blocks_per_year=blocks_per_year,
            compounding_frequency=compounding_frequency,
        )

    rewards = estimate_rewards(
        stake,
        snapshot.reward_amount,
        blocks_per_year=blocks_per_year,
        inflation_rate=inflation_rate,
    )
    operator_daily = rewards.daily * commission.decimal
    delegator_daily = rewards.daily - operator_daily

    delegator = yield_side(delegator_daily, stake, compounding_frequency)
    operator = yield_side(operator_daily, stake, compounding_frequency)
    raw_apr = calculate_apr(delegator_daily, stake)
    raw_apy = calculate_apy(delegator_daily, stake, compounding_frequency)

    score = performance_score(
        raw_apy,
        commission.decimal,
        stake,
        active=snapshot.is_active,
        never_slashed=snapshot.never_slashed,
    )
    network_share = None
    if total_network_staking is not None and total_network_staking > 0:
        network_share = quantize(stake / total_network_staking * 100, FOUR_DP)

    stakers = len(snapshot.stakers)
    compounding_effect = (
        quantize((raw_apy - raw_apr) / raw_apr * 100, TWO_DP) if raw_apr > 0 else ZERO
    )

    return YieldReport(
        validator_address=snapshot.address,
        moniker=moniker,
        total_staked=quantize(stake, SIX_DP),
        commission=commission,
        calculation_method=rewards.calculation_method,
        delegator=delegator,
        operator=operator,
        performance=PerformanceSummary(
            score=score,
            ranking=performance_ranking(score),
            network_share=network_share,
        ),
        risk=assess_risk(
            slashed=not snapshot.never_slashed,
            delegator_count=stakers,
            staking_amount=stake,
            commission_rate=commission.decimal,
        ),
        metrics=YieldMetrics(
            expected_daily_yield=quantize(rewards.daily, SIX_DP),
            break_even_time=break_even_time(raw_apy),
            compounding_effect=compounding_effect,
            total_stakers=stakers,
            average_stake_per_delegator=quantize(stake / stakers, SIX_DP) if stakers else ZERO,
        ),
        block_time=block_time,
        blocks_per_year=blocks_per_year,
        compounding_frequency=compounding_frequency,
    )


def zero_yield_report(
    address: str,
    *,
    commission: CommissionRate,
    moniker: str = "Unknown",
    block_time: int = 1,
    blocks_per_year: int = 0,
    compounding_frequency: int = DAYS_PER_YEAR,
) -> YieldReport:
    empty = YieldSide(apr=ZERO, apy=ZERO, daily=ZERO, monthly=ZERO, yearly=ZERO)
    return YieldReport(
        validator_address=address,
        moniker=moniker,
        total_staked=ZERO,
        commission=commission,
        calculation_method="estimated",
        delegator=empty,
        operator=empty,
        performance=PerformanceSummary(score=0, ranking=PerformanceRanking.UNKNOWN),
        risk=RiskAssessment(
            level=RiskLevel.UNKNOWN,
            score=0,
            factors=["Insufficient data"],
            recommendation=_RECOMMENDATIONS[RiskLevel.UNKNOWN],
        ),
        metrics=YieldMetrics(
            expected_daily_yield=ZERO,
            break_even_time="N/A",
            compounding_effect=ZERO,
            total_stakers=0,
            average_stake_per_delegator=ZERO,
        ),
        block_time=block_time,
        blocks_per_year=blocks_per_year,
        compounding_frequency=compounding_frequency,
    )


def delegator_apr(
    snapshot: ValidatorSnapshot,
    *,
    delegator: str,
    delegator_stake: Decimal,
    block_time: int,
    block_configuration: str,
    blocks_per_year: int,
    inflation_rate: Decimal,
    default_commission_bp: int,
) -> DelegatorApr:
    """APR a delegator earns on delegator_stake with this validator, after commission."""
    total = snapshot.staking_amount
    commission = sanitize_commission(snapshot.commission_rate_bp, default_commission_bp)
    rewards = estimate_rewards(
        total,
        snapshot.reward_amount,
        blocks_per_year=blocks_per_year,
        inflation_rate=inflation_rate,
    )

    share = delegator_stake / total if total > 0 else ZERO
    annual = rewards.annual * share * (1 - commission.decimal)
    apr = annual / delegator_stake * 100 if delegator_stake > 0 else ZERO

    note = None
    if rewards.calculation_method == "estimated":
        note = (
            f"APR estimated based on {quantize(inflation_rate * 100, TWO_DP)}% network "
            "inflation (validator has no reward history)"
        )

    return DelegatorApr(
        delegator=delegator,
        validator=snapshot.address,
        block_time=block_time,
        block_configuration=block_configuration,
        blocks_per_year=blocks_per_year,
        delegator_stake=delegator_stake,
        validator_total_stake=total,
        commission=commission,
        delegator_share=quantize(share * 100, TWO_DP),
        estimated_annual_rewards=quantize(annual, SIX_DP),
        apr=quantize(apr, TWO_DP),
        calculation_method=rewards.calculation_method,
        note=note,
    )
