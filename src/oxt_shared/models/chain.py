"""
models/chain.py — Pydantic models for decoded on-chain staking state.

These are the read-only inputs the services receive from a data source.
Amounts that the contract reports in wei stay integers; amounts the
estimators work with are exposed as Decimal OXT.
"""

from __future__ import annotations

from decimal import Decimal
from enum import IntEnum
from typing import Any, Literal

from pydantic import BaseModel, Field

from oxt_shared.constants import ZERO_ADDRESS
from oxt_shared.units import format_ether


class ValidatorStatus(IntEnum):
    INACTIVE = 0
    ACTIVE = 1
    JAILED = 2


class ValidatorSnapshot(BaseModel):
    """One validator's state as returned by getValidatorInfo."""

    address: str
    reward_address: str = ZERO_ADDRESS
    status: ValidatorStatus = ValidatorStatus.INACTIVE
    staking_amount: Decimal = Decimal(0)     # OXT
    commission_rate_bp: int | None = None    # basis points, untrusted
    reward_amount_wei: int = 0
    slash_amount_wei: int = 0
    stakers: list[str] = Field(default_factory=list)

    @property
    def reward_amount(self) -> Decimal:
        return format_ether(self.reward_amount_wei)

    @property
    def slash_amount(self) -> Decimal:
        return format_ether(self.slash_amount_wei)

    @property
    def is_active(self) -> bool:
        return self.status == ValidatorStatus.ACTIVE

    @property
    def never_slashed(self) -> bool:
        return self.slash_amount_wei == 0

    @classmethod
    def empty(cls, address: str) -> "ValidatorSnapshot":
        """Zeroed snapshot used when the upstream read fails."""
        return cls(address=address)


class ValidatorDescription(BaseModel):
    moniker: str = "Unknown"
    website: str = ""
    email: str = ""
    details: str = ""


class StakingInfo(BaseModel):
    """A staker's position with one validator (getStakingInfo)."""

    amount_wei: int = 0
    unstake_block: int = 0
    last_claim_block: int = 0

    @property
    def amount(self) -> Decimal:
        return format_ether(self.amount_wei)


class ContractConstants(BaseModel):
    max_validator_num: int = 0
    block_epoch: int = 0
    minimal_staking: Decimal = Decimal(0)
    validator_slash_amount: Decimal = Decimal(0)
    staking_lock_period: int = 0
    withdraw_reward_period: int = 0
    default_commission_rate: int = 0   # basis points
    max_commission_rate: int = 0       # basis points


class ValidatorDetails(BaseModel):
    """Validator info merged with its description and status flags."""

    address: str
    info: ValidatorSnapshot
    description: ValidatorDescription
    is_jailed: bool = False
    is_activated: bool = False

    @property
    def total_stakers(self) -> int:
        return len(self.info.stakers)

    def to_dict(self) -> dict[str, Any]:
        data = self.model_dump(mode="json")
        data["total_stakers"] = self.total_stakers
        return data


class DelegatorPosition(BaseModel):
    validator: str
    staked_amount: Decimal
    pending_rewards: Decimal
    unstake_block: int = 0
    last_claim_block: int = 0


class DelegatorOverview(BaseModel):
    address: str
    positions: list[DelegatorPosition] = Field(default_factory=list)
    total_staked: Decimal = Decimal(0)
    total_pending_rewards: Decimal = Decimal(0)

    @property
    def active_delegations(self) -> int:
        return len(self.positions)


class WithdrawalStatus(BaseModel):
    """Where an unstake request stands relative to the current block."""

    delegator: str
    validator: str
    status: Literal["staked", "pending", "ready", "unknown"]
    can_withdraw: bool = False
    blocks_remaining: int = 0
    unstake_block: int = 0
    current_block: int = 0
    estimated_seconds: int | None = None
