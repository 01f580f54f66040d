"""
tests/test_yield_estimator.py — APR/APY maths, scoring rubric, risk and reports.
"""

from __future__ import annotations

from decimal import Decimal

import pytest

from oxt_shared.models import PerformanceRanking, RiskLevel, ValidatorSnapshot, ValidatorStatus
from oxt_api.services import yield_estimator as ye

BLOCKS_FAST = 31_536_000
INFLATION = Decimal("0.05")


def snapshot(**overrides) -> ValidatorSnapshot:
    fields = {
        "address": "0x1111111111111111111111111111111111111111",
        "status": ValidatorStatus.ACTIVE,
        "staking_amount": Decimal("100000"),
        "commission_rate_bp": 500,
        "reward_amount_wei": 0,
        "slash_amount_wei": 0,
        "stakers": ["0xd100000000000000000000000000000000000001"],
    }
    fields.update(overrides)
    return ValidatorSnapshot(**fields)


def report(snap: ValidatorSnapshot, **kwargs):
    kwargs.setdefault("blocks_per_year", BLOCKS_FAST)
    kwargs.setdefault("block_time", 1)
    kwargs.setdefault("inflation_rate", INFLATION)
    kwargs.setdefault("default_commission_bp", 500)
    return ye.build_yield_report(snap, **kwargs)


# ---------------------------------------------------------------------------
# Commission
# ---------------------------------------------------------------------------

class TestCommission:
    def test_out_of_range_falls_back_to_default(self):
        rate = ye.sanitize_commission(15_000, default_bp=500)
        assert rate.basis_points == 500
        assert rate.decimal == Decimal("0.05")
        assert rate.warning is not None

    def test_negative_falls_back(self):
        assert ye.sanitize_commission(-1).basis_points == 500

    def test_missing_uses_default_silently(self):
        rate = ye.sanitize_commission(None, default_bp=700)
        assert rate.basis_points == 700
        assert rate.warning is None

    def test_zero_is_a_real_rate(self):
        rate = ye.sanitize_commission(0)
        assert rate.decimal == 0
        assert rate.percentage == "0.00%"

    def test_upper_bound_is_valid(self):
        rate = ye.sanitize_commission(10_000)
        assert rate.decimal == 1
        assert rate.warning is None


# ---------------------------------------------------------------------------
# Rewards and rates
# ---------------------------------------------------------------------------

class TestRates:
    def test_zero_reward_uses_inflation_model(self):
        est = ye.estimate_rewards(
            Decimal("100000"), Decimal(0), blocks_per_year=BLOCKS_FAST, inflation_rate=INFLATION
        )
        assert est.calculation_method == "estimated"
        assert est.annual == Decimal("5000")
        assert est.per_block * BLOCKS_FAST == pytest.approx(Decimal("5000"))

    def test_nonzero_reward_is_annualised_per_block(self):
        est = ye.estimate_rewards(
            Decimal("50500"), Decimal("0.001"), blocks_per_year=BLOCKS_FAST, inflation_rate=INFLATION
        )
        assert est.calculation_method == "historical"
        assert est.annual == Decimal("31536")
        assert est.daily == Decimal("86.4")

    def test_apr_of_known_daily_rate(self):
        # 0.1% a day
        apr = ye.calculate_apr(Decimal("1"), Decimal("1000"))
        assert apr == Decimal("36.5")

    def test_apy_dominates_apr(self):
        daily, total = Decimal("1"), Decimal("1000")
        assert ye.calculate_apy(daily, total) > ye.calculate_apr(daily, total)

    def test_zero_reward_gives_equal_zero_rates(self):
        assert ye.calculate_apr(Decimal(0), Decimal(1000)) == 0
        assert ye.calculate_apy(Decimal(0), Decimal(1000)) == 0

    @pytest.mark.parametrize("total", [Decimal(0), Decimal(-5)])
    def test_non_positive_stake_short_circuits(self, total):
        assert ye.calculate_apr(Decimal(10), total) == 0
        assert ye.calculate_apy(Decimal(10), total) == 0

    def test_single_compounding_period_equals_apr(self):
        apy = ye.calculate_apy(Decimal("1"), Decimal("1000"), compounding_frequency=1)
        assert apy == pytest.approx(Decimal("36.5"))


# ---------------------------------------------------------------------------
# Performance score
# ---------------------------------------------------------------------------

def score(apy="0", commission="0.50", stake="0", active=False, never_slashed=False) -> int:
    return ye.performance_score(
        Decimal(apy),
        Decimal(commission),
        Decimal(stake),
        active=active,
        never_slashed=never_slashed,
    )


class TestPerformanceScore:
    def test_apy_threshold_is_strict(self):
        assert score(apy="15.00") == 50 + 30 - 10
        assert score(apy="15.01") == 50 + 40 - 10

    @pytest.mark.parametrize(
        "apy,bonus",
        [("8", 0), ("8.01", 10), ("10.01", 20), ("12.01", 30), ("20", 40)],
    )
    def test_apy_bands(self, apy, bonus):
        assert score(apy=apy) == 40 + bonus

    def test_exactly_five_percent_commission_misses_top_tier(self):
        assert score(commission="0.05") == 50 + 20
        assert score(commission="0.0499") == 50 + 25

    @pytest.mark.parametrize(
        "commission,delta",
        [("0.10", 15), ("0.15", 10), ("0.19", 10), ("0.20", -10)],
    )
    def test_commission_bands(self, commission, delta):
        assert score(commission=commission) == 50 + delta

    @pytest.mark.parametrize(
        "stake,bonus",
        [("1000", 0), ("1001", 5), ("10001", 10), ("50001", 15), ("100000", 15), ("100001", 20)],
    )
    def test_stake_bands(self, stake, bonus):
        assert score(stake=stake) == 40 + bonus

    def test_status_bonuses(self):
        assert score(active=True) == 40 + 15
        assert score(never_slashed=True) == 40 + 5

    def test_clamped_to_100(self):
        assert score("20", "0.01", "200000", True, True) == 100

    @pytest.mark.parametrize(
        "value,label",
        [
            (85, PerformanceRanking.EXCELLENT),
            (84, PerformanceRanking.GOOD),
            (70, PerformanceRanking.GOOD),
            (55, PerformanceRanking.AVERAGE),
            (40, PerformanceRanking.BELOW_AVERAGE),
            (39, PerformanceRanking.POOR),
        ],
    )
    def test_ranking_labels(self, value, label):
        assert ye.performance_ranking(value) == label


# ---------------------------------------------------------------------------
# Risk and break-even
# ---------------------------------------------------------------------------

class TestRisk:
    def test_every_factor(self):
        risk = ye.assess_risk(
            slashed=True,
            delegator_count=1,
            staking_amount=Decimal(500),
            commission_rate=Decimal("0.5"),
        )
        assert risk.score == 90
        assert risk.level == RiskLevel.HIGH
        assert len(risk.factors) == 4

    def test_medium(self):
        risk = ye.assess_risk(
            slashed=False,
            delegator_count=5,
            staking_amount=Decimal(500),
            commission_rate=Decimal("0.05"),
        )
        assert risk.score == 45
        assert risk.level == RiskLevel.MEDIUM

    def test_low(self):
        risk = ye.assess_risk(
            slashed=False,
            delegator_count=5,
            staking_amount=Decimal(5000),
            commission_rate=Decimal("0.20"),
        )
        assert risk.score == 20
        assert risk.level == RiskLevel.LOW
        assert risk.factors == ["Low number of delegators"]

    @pytest.mark.parametrize(
        "apy,expected",
        [
            ("0", "N/A"),
            ("-1", "N/A"),
            ("3.65", "10+ years"),
            ("36.5", "3 years"),
            ("730", "2 months"),
            ("3650", "10 days"),
        ],
    )
    def test_break_even_time(self, apy, expected):
        assert ye.break_even_time(Decimal(apy)) == expected


# ---------------------------------------------------------------------------
# Reports
# ---------------------------------------------------------------------------

class TestYieldReport:
    def test_inflation_fallback_scenario(self):
        r = report(snapshot())
        assert r.calculation_method == "estimated"
        assert r.delegator.apr == Decimal("4.75")
        assert r.delegator.apy == Decimal("4.86")
        assert r.operator.apr == Decimal("0.25")
        # +20 commission (5% is not < 5%), +15 stake (100k is not > 100k), +15 active, +5 clean
        assert r.performance.score == 100
        assert r.performance.ranking == PerformanceRanking.EXCELLENT

    def test_inactive_validator_scores_lower(self):
        r = report(snapshot(status=ValidatorStatus.INACTIVE, slash_amount_wei=1))
        assert r.performance.score == 50 + 20 + 15

    def test_network_share(self):
        r = report(snapshot(), total_network_staking=Decimal("400000"))
        assert r.performance.network_share == Decimal("25.0000")

    def test_network_share_absent_without_total(self):
        assert report(snapshot()).performance.network_share is None

    def test_metrics(self):
        r = report(snapshot(stakers=["a", "b", "c", "d"]))
        assert r.metrics.total_stakers == 4
        assert r.metrics.average_stake_per_delegator == Decimal("25000")
        assert r.metrics.break_even_time == "10+ years"
        assert r.metrics.compounding_effect > 0

    def test_invalid_commission_uses_default(self):
        r = report(snapshot(commission_rate_bp=15_000))
        assert r.commission.basis_points == 500
        assert r.commission.warning

    def test_zero_stake_gives_zero_report(self):
        r = report(snapshot(staking_amount=Decimal(0)), moniker="idle")
        assert r.delegator.apr == 0
        assert r.performance.score == 0
        assert r.performance.ranking == PerformanceRanking.UNKNOWN
        assert r.risk.level == RiskLevel.UNKNOWN
        assert r.risk.factors == ["Insufficient data"]
        assert r.moniker == "idle"


class TestDelegatorApr:
    def kwargs(self, **overrides):
        values = {
            "delegator": "0xd100000000000000000000000000000000000001",
            "delegator_stake": Decimal("60000"),
            "block_time": 1,
            "block_configuration": "1 second per block",
            "blocks_per_year": BLOCKS_FAST,
            "inflation_rate": INFLATION,
            "default_commission_bp": 500,
        }
        values.update(overrides)
        return values

    def test_estimated_position(self):
        result = ye.delegator_apr(snapshot(), **self.kwargs())
        assert result.apr == Decimal("4.75")
        assert result.delegator_share == Decimal("60.00")
        assert result.estimated_annual_rewards == Decimal("2850")
        assert result.calculation_method == "estimated"
        assert "5.00%" in result.note

    def test_historical_position(self):
        snap = snapshot(staking_amount=Decimal("50500"), commission_rate_bp=1000, reward_amount_wei=10**15)
        result = ye.delegator_apr(snap, **self.kwargs(delegator_stake=Decimal("10000")))
        assert result.calculation_method == "historical"
        assert result.apr == Decimal("56.20")
        assert result.note is None

    def test_slow_blocks_earn_less(self):
        snap = snapshot(staking_amount=Decimal("50500"), commission_rate_bp=1000, reward_amount_wei=10**15)
        result = ye.delegator_apr(
            snap,
            **self.kwargs(
                delegator_stake=Decimal("10000"),
                block_time=5,
                blocks_per_year=BLOCKS_FAST // 5,
            ),
        )
        assert result.apr == Decimal("11.24")

    def test_zero_stake_validator(self):
        result = ye.delegator_apr(snapshot(staking_amount=Decimal(0)), **self.kwargs())
        assert result.apr == 0
        assert result.delegator_share == 0
