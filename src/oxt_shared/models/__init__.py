"""
Pydantic models shared by the API, its services and its data sources.
"""

from oxt_shared.models.chain import (
    ContractConstants,
    DelegatorOverview,
    DelegatorPosition,
    StakingInfo,
    ValidatorDescription,
    ValidatorDetails,
    ValidatorSnapshot,
    ValidatorStatus,
    WithdrawalStatus,
)
from oxt_shared.models.distribution import (
    Bucket,
    Distribution,
    DistributionStats,
    DistributionType,
)
from oxt_shared.models.network import NetworkHealth, NetworkOverview, ValidatorStakeRow
from oxt_shared.models.ranking import (
    DelegatorRank,
    Pagination,
    RankingEntry,
    RankingPage,
    RankingSummary,
    StakerPage,
    ValidatorStake,
)
from oxt_shared.models.yields import (
    AverageApr,
    BatchAprItem,
    CommissionRate,
    ComparisonSummary,
    DelegatorApr,
    PerformanceRanking,
    PerformanceSummary,
    Recommendation,
    RewardEstimate,
    RiskAssessment,
    RiskLevel,
    StakeCheck,
    ValidatorComparison,
    YieldMetrics,
    YieldReport,
    YieldSide,
)

__all__ = [
    "AverageApr",
    "BatchAprItem",
    "Bucket",
    "CommissionRate",
    "ComparisonSummary",
    "ContractConstants",
    "DelegatorApr",
    "DelegatorOverview",
    "DelegatorPosition",
    "DelegatorRank",
    "Distribution",
    "DistributionStats",
    "DistributionType",
    "NetworkHealth",
    "NetworkOverview",
    "Pagination",
    "PerformanceRanking",
    "PerformanceSummary",
    "RankingEntry",
    "RankingPage",
    "RankingSummary",
    "Recommendation",
    "RewardEstimate",
    "RiskAssessment",
    "RiskLevel",
    "StakeCheck",
    "StakerPage",
    "StakingInfo",
    "ValidatorComparison",
    "ValidatorDescription",
    "ValidatorDetails",
    "ValidatorSnapshot",
    "ValidatorStake",
    "ValidatorStakeRow",
    "ValidatorStatus",
    "WithdrawalStatus",
    "YieldMetrics",
    "YieldReport",
    "YieldSide",
]
