"""
models/distribution.py — Histogram and concentration results for the stats surface.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

DistributionType = Literal["staking", "commission", "delegators"]


class Bucket(BaseModel):
    min: float
    max: float
    count: int
    percentage: str                        # 2 dp share of all values


class DistributionStats(BaseModel):
    min: float
    max: float
    average: str                           # 6 dp
    median: str                            # 6 dp, sorted[n // 2]


class Distribution(BaseModel):
    label: str
    buckets: list[Bucket] = Field(default_factory=list)
    stats: DistributionStats | None = None
