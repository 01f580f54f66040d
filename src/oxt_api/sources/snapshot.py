"""
sources/snapshot.py — Data source backed by a JSON snapshot of decoded chain state.

Used for local development, demos and tests. The file is read lazily on
the first call and kept in memory; reload() picks up a new file.

Snapshot shape:
  {
    "block_number": 1200345,
    "total_staking": "250000.5",
    "activated": ["0xabc…", …],                 # optional, default: ACTIVE validators
    "constants": { "max_validator_num": 21, … },
    "validators": [
      { "address": "0xabc…", "status": 1, "staking_amount": "100000",
        "commission_rate_bp": 500, "reward_amount_wei": "0",
        "slash_amount_wei": "0", "stakers": ["0xdef…"], "jailed": false,
        "description": { "moniker": "node-1", … } }
    ],
    "stakes": [
      { "delegator": "0xdef…", "validator": "0xabc…", "amount_wei": "…",
        "unstake_block": 0, "last_claim_block": 0, "pending_rewards_wei": "…" }
    ]
  }
"""

from __future__ import annotations

import json
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

import structlog
from pydantic import ValidationError

from oxt_shared.models import (
    ContractConstants,
    StakingInfo,
    ValidatorDescription,
    ValidatorSnapshot,
    ValidatorStatus,
)
from oxt_shared.units import normalize_address
from oxt_api.sources.base import SourceError, StakingDataSource

log = structlog.get_logger(__name__)

_VALIDATOR_KEYS = (
    "reward_address",
    "status",
    "staking_amount",
    "commission_rate_bp",
    "reward_amount_wei",
    "slash_amount_wei",
    "stakers",
)


class SnapshotSource(StakingDataSource):
    """Serves contract reads from an in-memory snapshot dict."""

    name = "snapshot"

    def __init__(self, path: str | Path | None = None, data: dict[str, Any] | None = None) -> None:
        if path is None and data is None:
            raise ValueError("SnapshotSource needs a path or data")
        self._path = Path(path) if path is not None else None
        self._data = data
        self._validators: dict[str, dict[str, Any]] | None = None
        self._stakes: dict[tuple[str, str], dict[str, Any]] | None = None

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def reload(self) -> None:
        self._validators = None
        self._stakes = None
        if self._path is not None:
            self._data = None

    def _load(self) -> dict[str, Any]:
        if self._data is None:
            assert self._path is not None
            try:
                self._data = json.loads(self._path.read_text(encoding="utf-8"))
            except (OSError, ValueError) as exc:
                raise SourceError(f"cannot read snapshot {self._path}: {exc}") from exc
            log.info("snapshot_loaded", path=str(self._path))
        return self._data

    def _index(self) -> None:
        data = self._load()
        self._validators = {
            normalize_address(v["address"]): v for v in data.get("validators", [])
        }
        self._stakes = {
            (normalize_address(s["delegator"]), normalize_address(s["validator"])): s
            for s in data.get("stakes", [])
        }

    def _validator_raw(self, validator: str) -> dict[str, Any] | None:
        if self._validators is None:
            self._index()
        assert self._validators is not None
        return self._validators.get(normalize_address(validator))

    def _stake_raw(self, staker: str, validator: str) -> dict[str, Any] | None:
        if self._stakes is None:
            self._index()
        assert self._stakes is not None
        return self._stakes.get((normalize_address(staker), normalize_address(validator)))

    # ------------------------------------------------------------------
    # StakingDataSource
    # ------------------------------------------------------------------

    async def get_activated_validators(self) -> list[str]:
        data = self._load()
        if "activated" in data:
            return list(data["activated"])
        return [
            v["address"]
            for v in data.get("validators", [])
            if v.get("status") == ValidatorStatus.ACTIVE
        ]

    async def get_validator_info(self, validator: str) -> ValidatorSnapshot:
        raw = self._validator_raw(validator)
        if raw is None:
            # The contract answers unknown addresses with a zeroed struct.
            return ValidatorSnapshot.empty(validator)
        fields = {k: raw[k] for k in _VALIDATOR_KEYS if k in raw}
        return self._parse_validator(raw["address"], fields)

    async def get_validator_description(self, validator: str) -> ValidatorDescription:
        raw = self._validator_raw(validator) or {}
        try:
            return ValidatorDescription.model_validate(raw.get("description") or {})
        except ValidationError as exc:
            raise SourceError(f"bad description for {validator}: {exc}") from exc

    async def is_validator_jailed(self, validator: str) -> bool:
        raw = self._validator_raw(validator) or {}
        return bool(raw.get("jailed", raw.get("status") == ValidatorStatus.JAILED))

    async def get_staking_info(self, staker: str, validator: str) -> StakingInfo:
        raw = self._stake_raw(staker, validator)
        if raw is None:
            return StakingInfo()
        return self._parse_staking_info(
            {k: raw[k] for k in ("amount_wei", "unstake_block", "last_claim_block") if k in raw}
        )

    async def get_pending_rewards(self, delegator: str, validator: str) -> int:
        raw = self._stake_raw(delegator, validator) or {}
        try:
            return int(raw.get("pending_rewards_wei", 0))
        except (TypeError, ValueError) as exc:
            raise SourceError(f"bad pending rewards for {delegator}: {exc}") from exc

    async def get_total_staking(self) -> Decimal:
        data = self._load()
        try:
            if "total_staking" in data:
                return Decimal(str(data["total_staking"]))
            return sum(
                (Decimal(str(v.get("staking_amount", 0))) for v in data.get("validators", [])),
                Decimal(0),
            )
        except InvalidOperation as exc:
            raise SourceError(f"bad total staking: {exc}") from exc

    async def get_block_number(self) -> int:
        try:
            return int(self._load().get("block_number", 0))
        except (TypeError, ValueError) as exc:
            raise SourceError(f"bad block number: {exc}") from exc

    async def get_contract_constants(self) -> ContractConstants:
        try:
            return ContractConstants.model_validate(self._load().get("constants") or {})
        except ValidationError as exc:
            raise SourceError(f"bad contract constants: {exc}") from exc
