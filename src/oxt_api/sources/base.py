"""
sources/base.py — Abstract interface for upstream staking-contract reads.

A data source hands the services already-decoded values: addresses as
strings, wei amounts as ints, OXT amounts as Decimal. Encoding, ABI
decoding and RPC transport belong to whatever sits behind the adapter.

Every failure an adapter cannot recover from is raised as SourceError so
services have exactly one exception type to turn into a degraded result.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Any

from pydantic import ValidationError

from oxt_shared.models import (
    ContractConstants,
    StakingInfo,
    ValidatorDescription,
    ValidatorSnapshot,
)


class SourceError(Exception):
    """An upstream read failed or returned something undecodable."""


class StakingDataSource(ABC):
    """Read-only view of the validators contract."""

    name: str = "unknown"

    @abstractmethod
    async def get_activated_validators(self) -> list[str]: ...

    @abstractmethod
    async def get_validator_info(self, validator: str) -> ValidatorSnapshot: ...

    @abstractmethod
    async def get_validator_description(self, validator: str) -> ValidatorDescription: ...

    @abstractmethod
    async def is_validator_jailed(self, validator: str) -> bool: ...

    @abstractmethod
    async def get_staking_info(self, staker: str, validator: str) -> StakingInfo: ...

    @abstractmethod
    async def get_pending_rewards(self, delegator: str, validator: str) -> int:
        """Pending delegator rewards in wei."""

    @abstractmethod
    async def get_total_staking(self) -> Decimal: ...

    @abstractmethod
    async def get_block_number(self) -> int: ...

    @abstractmethod
    async def get_contract_constants(self) -> ContractConstants: ...

    async def close(self) -> None:
        """Release transport resources. Default: nothing to release."""

    # ------------------------------------------------------------------
    # Shared decoding helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _parse_validator(address: str, raw: dict[str, Any]) -> ValidatorSnapshot:
        try:
            return ValidatorSnapshot.model_validate({"address": address, **raw})
        except ValidationError as exc:
            raise SourceError(f"bad validator payload for {address}: {exc}") from exc

    @staticmethod
    def _parse_staking_info(raw: dict[str, Any]) -> StakingInfo:
        try:
            return StakingInfo.model_validate(raw)
        except ValidationError as exc:
            raise SourceError(f"bad staking payload: {exc}") from exc
