"""Tests for Gini, median and histogram helpers."""

from __future__ import annotations

import pytest

from oxt_api.services.distribution import (
    concentration_label,
    distribution_buckets,
    gini_coefficient,
    index_median,
)


class TestGini:
    def test_uniform_is_zero(self):
        assert gini_coefficient([100, 100, 100, 100]) == 0

    def test_empty_is_zero(self):
        assert gini_coefficient([]) == 0

    def test_all_zero_is_zero(self):
        assert gini_coefficient([0, 0, 0]) == 0

    def test_single_holder_reaches_maximum_for_n(self):
        assert gini_coefficient([0, 0, 0, 100]) == pytest.approx(0.75)
        assert gini_coefficient([0] * 9 + [1]) == pytest.approx(0.9)

    def test_order_does_not_matter(self):
        assert gini_coefficient([100000, 2000, 50500]) == pytest.approx(
            gini_coefficient([2000, 50500, 100000])
        )

    def test_known_value(self):
        assert gini_coefficient([2000, 50500, 100000]) == pytest.approx(196000 / 457500)

    def test_labels(self):
        assert concentration_label(0.4999) == "Healthy"
        assert concentration_label(0.5) == "Concentrated"


class TestMedian:
    def test_odd(self):
        assert index_median([3, 1, 2]) == 2

    def test_even_takes_upper_middle(self):
        assert index_median([4, 1, 3, 2]) == 3


class TestBuckets:
    def test_empty_input(self):
        dist = distribution_buckets([], "Staking")
        assert dist.label == "Staking"
        assert dist.buckets == []
        assert dist.stats is None

    def test_bucket_count_capped_at_ten(self):
        values = [float(v) for v in range(1, 12)]
        dist = distribution_buckets(values, "x")
        assert len(dist.buckets) == 10
        assert sum(b.count for b in dist.buckets) == 11

    def test_maximum_lands_in_last_bucket(self):
        values = [float(v) for v in range(1, 12)]
        dist = distribution_buckets(values, "x")
        last = dist.buckets[-1]
        assert last.count == 2
        assert last.max == pytest.approx(11.0)

    def test_fewer_values_than_ten(self):
        dist = distribution_buckets([100000.0, 50500.0, 2000.0], "Staking Amount (OXT)")
        assert [b.count for b in dist.buckets] == [1, 1, 1]
        assert [b.percentage for b in dist.buckets] == ["33.33", "33.33", "33.33"]
        assert dist.stats.min == 2000
        assert dist.stats.max == 100000
        assert dist.stats.median == "50500.000000"
        assert dist.stats.average == "50833.333333"

    def test_empty_buckets_dropped(self):
        dist = distribution_buckets([0.0, 0.0, 0.0, 100.0], "x")
        assert [b.count for b in dist.buckets] == [3, 1]
        assert [b.percentage for b in dist.buckets] == ["75.00", "25.00"]

    def test_equal_values_share_one_bucket(self):
        dist = distribution_buckets([5.0, 5.0, 5.0], "x")
        assert len(dist.buckets) == 1
        assert dist.buckets[0].count == 3
        assert dist.buckets[0].percentage == "100.00"
