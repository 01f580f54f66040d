"""
models/network.py — Network-wide summaries for the stats endpoints.
"""

from __future__ import annotations

from decimal import Decimal

from pydantic import BaseModel, Field


class ValidatorStakeRow(BaseModel):
    address: str
    staking_amount: Decimal
    stakers: int
    commission_rate_bp: int | None = None


class NetworkOverview(BaseModel):
    total_staking: Decimal
    total_validators: int
    total_delegators: int                  # distinct staker addresses
    current_block: int
    average_stake_per_validator: Decimal
    top_validators: list[ValidatorStakeRow] = Field(default_factory=list)


class NetworkHealth(BaseModel):
    total_validators: int
    active_validators: int
    jailed_validators: int
    validator_health: Decimal              # percent not jailed, 2 dp
    median_stake: Decimal
    staking_concentration: Decimal         # Gini, 4 dp
    concentration_status: str              # "Healthy" | "Concentrated"
