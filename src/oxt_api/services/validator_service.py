"""Validator data service (cache namespace "validators")."""

from __future__ import annotations

import asyncio
from decimal import Decimal

from oxt_shared.models import (
    ContractConstants,
    StakerPage,
    ValidatorDescription,
    ValidatorDetails,
    ValidatorSnapshot,
)
from oxt_shared.units import normalize_address
from oxt_api.services.cached import CachedReader
from oxt_api.sources.base import SourceError
from oxt_api.utils.degraded import Fetched, any_degraded
from oxt_api.utils.pagination import paginate

DETAILS_TTL_MS = 30_000


class ValidatorService(CachedReader):
    async def get_validator_info(self, address: str) -> Fetched[ValidatorSnapshot]:
        return await self._read(
            f"validator_info_{address}",
            lambda: self._source.get_validator_info(address),
            ValidatorSnapshot.empty(address),
        )

    async def get_validator_description(self, address: str) -> Fetched[ValidatorDescription]:
        return await self._read(
            f"validator_desc_{address}",
            lambda: self._source.get_validator_description(address),
            ValidatorDescription(),
        )

    async def get_activated_validators(self) -> Fetched[list[str]]:
        return await self._read(
            "activated_validators",
            self._source.get_activated_validators,
            [],
        )

    async def get_total_staking(self) -> Fetched[Decimal]:
        return await self._read("total_staking", self._source.get_total_staking, Decimal(0))

    async def is_validator_jailed(self, address: str) -> Fetched[bool]:
        return await self._read(
            f"validator_jailed_{address}",
            lambda: self._source.is_validator_jailed(address),
            False,
        )

    async def get_contract_constants(self) -> Fetched[ContractConstants]:
        return await self._read(
            "contract_constants",
            self._source.get_contract_constants,
            ContractConstants(),
            ttl_ms=self._settings.constants_ttl,
        )

    async def get_block_number(self) -> Fetched[int]:
        # Changes every block; not worth caching.
        try:
            return Fetched.ok(await self._source.get_block_number())
        except SourceError as exc:
            self._log.warning("block_number_failed", error=str(exc))
            return Fetched.fallback(0, str(exc))

    async def get_validator_details(self, address: str) -> Fetched[ValidatorDetails]:
        cache_key = f"validator_details_{address}"
        cached = self._cache.get(cache_key)
        if cached is not None:
            return Fetched.ok(cached)

        info, description, jailed, activated = await asyncio.gather(
            self.get_validator_info(address),
            self.get_validator_description(address),
            self.is_validator_jailed(address),
            self.get_activated_validators(),
        )
        wanted = normalize_address(address)
        details = ValidatorDetails(
            address=address,
            info=info.value,
            description=description.value,
            is_jailed=jailed.value,
            is_activated=any(normalize_address(a) == wanted for a in activated.value),
        )
        if any_degraded(info, description, jailed, activated):
            reasons = [r.reason for r in (info, description, jailed, activated) if r.reason]
            return Fetched.fallback(details, "; ".join(reasons))

        self._cache.set(cache_key, details, DETAILS_TTL_MS)
        return Fetched.ok(details)

    async def get_stakers(self, address: str, page: int, limit: int) -> Fetched[StakerPage]:
        """One page of the addresses staking with a validator, in contract order."""
        info = await self.get_validator_info(address)
        stakers = info.value.stakers
        start = (page - 1) * limit
        result = StakerPage(
            validator=address,
            stakers=stakers[start:start + limit],
            pagination=paginate(len(stakers), page, limit),
        )
        if info.degraded:
            return Fetched.fallback(result, info.reason or "upstream unavailable")
        return Fetched.ok(result)
