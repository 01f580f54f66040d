"""
models/ranking.py — Delegator ranking results.
"""

from __future__ import annotations

from decimal import Decimal

from pydantic import BaseModel, Field


class RankingEntry(BaseModel):
    delegator_address: str
    total_stake_wei: int
    total_stake: Decimal                   # OXT
    rank: int                              # 1-based position in the sorted list
    percent_of_total: Decimal              # 4 dp, "0.00" when nothing is staked


class Pagination(BaseModel):
    current_page: int
    total_pages: int
    total_items: int
    items_per_page: int
    has_next: bool
    has_prev: bool


class RankingSummary(BaseModel):
    total_delegators: int
    total_staked: Decimal
    average_stake: Decimal


class RankingPage(BaseModel):
    entries: list[RankingEntry]
    pagination: Pagination
    summary: RankingSummary


class ValidatorStake(BaseModel):
    validator: str
    stake_wei: int
    stake: Decimal


class DelegatorRank(BaseModel):
    """rank is None when the delegator has no active stake."""

    address: str
    rank: int | None = None
    total_stake: Decimal = Decimal(0)
    total_delegators: int = 0
    percentile: Decimal | None = None
    validator_breakdown: list[ValidatorStake] = Field(default_factory=list)
    message: str | None = None


class StakerPage(BaseModel):
    validator: str
    stakers: list[str]
    pagination: Pagination
