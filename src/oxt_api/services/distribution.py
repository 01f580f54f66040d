"""
services/distribution.py — Concentration and histogram helpers for validator metrics.

Works on plain float lists (staking amounts, commission percentages,
delegator counts) gathered by the stats service.
"""

from __future__ import annotations

import math
from collections.abc import Sequence

from oxt_shared.constants import GINI_CONCENTRATED_THRESHOLD, MAX_HISTOGRAM_BUCKETS
from oxt_shared.models import Bucket, Distribution, DistributionStats


def gini_coefficient(values: Sequence[float]) -> float:
    """
    Gini coefficient of non-negative values.

    0 for an empty list or an all-zero list; approaches 1 as a single
    value holds everything (the maximum for n values is (n - 1) / n).
    """
    if not values:
        return 0.0
    ordered = sorted(values)
    n = len(ordered)
    total = sum(ordered)
    if total == 0:
        return 0.0
    weighted = sum((2 * (i + 1) - n - 1) * x for i, x in enumerate(ordered))
    return weighted / (n * total)


def concentration_label(gini: float) -> str:
    return "Healthy" if gini < GINI_CONCENTRATED_THRESHOLD else "Concentrated"


def index_median(values: Sequence[float]) -> float:
    """sorted(values)[n // 2]: the upper middle for even n, no averaging."""
    ordered = sorted(values)
    return ordered[len(ordered) // 2]


def distribution_buckets(values: Sequence[float], label: str) -> Distribution:
    """
    Equal-width histogram over min(10, n) buckets with summary stats.

    The maximum value is clamped into the last bucket. Empty buckets are
    dropped from the result. When every value is equal the range is zero
    and all values fall into the first bucket.
    """
    if not values:
        return Distribution(label=label)

    lo = min(values)
    hi = max(values)
    count = min(MAX_HISTOGRAM_BUCKETS, len(values))
    width = (hi - lo) / count

    counts = [0] * count
    for value in values:
        index = math.floor((value - lo) / width) if width > 0 else 0
        counts[min(index, count - 1)] += 1

    buckets = [
        Bucket(
            min=lo + i * width,
            max=lo + (i + 1) * width,
            count=c,
            percentage=f"{c / len(values) * 100:.2f}",
        )
        for i, c in enumerate(counts)
        if c > 0
    ]

    return Distribution(
        label=label,
        buckets=buckets,
        stats=DistributionStats(
            min=lo,
            max=hi,
            average=f"{sum(values) / len(values):.6f}",
            median=f"{index_median(values):.6f}",
        ),
    )
