"""
models/yields.py — Pydantic models produced by the yield estimator.
"""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Literal

from pydantic import BaseModel, Field

CalculationMethod = Literal["historical", "estimated"]


class RiskLevel(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    UNKNOWN = "UNKNOWN"


class PerformanceRanking(str, Enum):
    EXCELLENT = "EXCELLENT"
    GOOD = "GOOD"
    AVERAGE = "AVERAGE"
    BELOW_AVERAGE = "BELOW_AVERAGE"
    POOR = "POOR"
    UNKNOWN = "UNKNOWN"


class CommissionRate(BaseModel):
    basis_points: int
    decimal: Decimal                 # fraction in [0, 1]
    percentage: str                  # "5.00%"
    warning: str | None = None


class RewardEstimate(BaseModel):
    """Validator-level rewards before the commission split."""

    per_block: Decimal
    annual: Decimal
    daily: Decimal
    blocks_per_year: int
    calculation_method: CalculationMethod


class YieldSide(BaseModel):
    """APR/APY and reward amounts for one party (delegators or operator)."""

    apr: Decimal
    apy: Decimal
    daily: Decimal
    monthly: Decimal
    yearly: Decimal


class RiskAssessment(BaseModel):
    level: RiskLevel
    score: int
    factors: list[str] = Field(default_factory=list)
    recommendation: str


class PerformanceSummary(BaseModel):
    score: int
    ranking: PerformanceRanking
    network_share: Decimal | None = None   # percent, 4 dp


class YieldMetrics(BaseModel):
    expected_daily_yield: Decimal
    break_even_time: str
    compounding_effect: Decimal            # percent, 2 dp
    total_stakers: int
    average_stake_per_delegator: Decimal


class YieldReport(BaseModel):
    validator_address: str
    moniker: str = "Unknown"
    total_staked: Decimal
    commission: CommissionRate
    calculation_method: CalculationMethod
    delegator: YieldSide
    operator: YieldSide
    performance: PerformanceSummary
    risk: RiskAssessment
    metrics: YieldMetrics
    block_time: int
    blocks_per_year: int
    compounding_frequency: int
    calculated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def apr_percent(self) -> Decimal:
        return self.delegator.apr

    @property
    def apy_percent(self) -> Decimal:
        return self.delegator.apy


class DelegatorApr(BaseModel):
    """APR for one delegator's position with one validator."""

    delegator: str
    validator: str
    block_time: int
    block_configuration: str
    blocks_per_year: int
    delegator_stake: Decimal
    validator_total_stake: Decimal
    commission: CommissionRate
    delegator_share: Decimal               # percent of validator stake, 2 dp
    estimated_annual_rewards: Decimal
    apr: Decimal
    calculation_method: CalculationMethod
    note: str | None = None
    calculated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def apr_percent(self) -> str:
        return f"{self.apr:.2f}%"


class Recommendation(BaseModel):
    type: Literal["CONSERVATIVE", "GROWTH", "DIVERSIFIED"]
    reason: str
    validators: list[str]
    risk_level: RiskLevel | None = None


class ComparisonSummary(BaseModel):
    total_validators: int
    average_apy: Decimal
    best_performer: str | None = None
    lowest_risk: str | None = None
    highest_apy: str | None = None


class ValidatorComparison(BaseModel):
    comparisons: list[YieldReport]
    summary: ComparisonSummary
    recommendations: list[Recommendation]


class BatchAprItem(BaseModel):
    validator: str
    success: bool
    data: DelegatorApr | None = None
    error: str | None = None
    message: str | None = None


class AverageApr(BaseModel):
    average_apr: Decimal
    validators_included: int
    total_validators: int
    block_time: int
    block_configuration: str
    calculated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class StakeCheck(BaseModel):
    delegator: str
    validator: str
    meets_requirement: bool
    current_stake: Decimal
    min_stake: Decimal
    difference: Decimal                    # absolute distance from the minimum
