"""
sources/indexer.py — Data source reading decoded contract state over HTTP.

Talks to a chain indexer that has already decoded the validators contract
and serves plain JSON:

  GET /validators/activated                   → ["0x…", …]
  GET /validators/{address}                   → validator fields (see SnapshotSource)
  GET /validators/{address}/description       → {"moniker": …}
  GET /validators/{address}/jailed            → {"jailed": bool}
  GET /staking/{staker}/{validator}           → {"amount_wei": …, …}
  GET /rewards/pending/{delegator}/{validator}→ {"pending_rewards_wei": …}
  GET /staking/total                          → {"total_staking": "…"}
  GET /blocks/latest                          → {"number": …}
  GET /contract/constants                     → {…}

Transient HTTP failures are retried with exponential backoff; anything
still failing is raised as SourceError.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Any

import httpx
import structlog
from pydantic import ValidationError

from oxt_shared.models import ContractConstants, StakingInfo, ValidatorDescription, ValidatorSnapshot
from oxt_api.sources.base import SourceError, StakingDataSource
from oxt_api.utils.retry import with_retry

log = structlog.get_logger(__name__)


class IndexerSource(StakingDataSource):
    name = "indexer"

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 30.0,
        max_attempts: int = 3,
        base_delay: float = 0.5,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._client = client or httpx.AsyncClient(timeout=timeout)
        self._owns_client = client is None
        self._fetch = with_retry(
            max_attempts=max_attempts,
            base_delay=base_delay,
            retry_on=(httpx.TransportError, httpx.HTTPStatusError),
        )(self._request)

    # ------------------------------------------------------------------
    # HTTP
    # ------------------------------------------------------------------

    async def _request(self, path: str) -> Any:
        response = await self._client.get(f"{self._base_url}{path}")
        response.raise_for_status()
        return response.json()

    async def _get(self, path: str) -> Any:
        try:
            return await self._fetch(path)
        except (httpx.HTTPError, ValueError) as exc:
            log.warning("indexer_request_failed", path=path, error=str(exc))
            raise SourceError(f"GET {path} failed: {exc}") from exc

    async def _get_object(self, path: str) -> dict[str, Any]:
        payload = await self._get(path)
        if not isinstance(payload, dict):
            raise SourceError(f"GET {path} returned {type(payload).__name__}, expected object")
        return payload

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    # ------------------------------------------------------------------
    # StakingDataSource
    # ------------------------------------------------------------------

    async def get_activated_validators(self) -> list[str]:
        payload = await self._get("/validators/activated")
        if not isinstance(payload, list):
            raise SourceError("activated validators payload is not a list")
        return [str(a) for a in payload]

    async def get_validator_info(self, validator: str) -> ValidatorSnapshot:
        payload = await self._get_object(f"/validators/{validator}")
        payload.pop("address", None)
        return self._parse_validator(validator, payload)

    async def get_validator_description(self, validator: str) -> ValidatorDescription:
        payload = await self._get_object(f"/validators/{validator}/description")
        try:
            return ValidatorDescription.model_validate(payload)
        except ValidationError as exc:
            raise SourceError(f"bad description for {validator}: {exc}") from exc

    async def is_validator_jailed(self, validator: str) -> bool:
        payload = await self._get_object(f"/validators/{validator}/jailed")
        return bool(payload.get("jailed", False))

    async def get_staking_info(self, staker: str, validator: str) -> StakingInfo:
        payload = await self._get_object(f"/staking/{staker}/{validator}")
        return self._parse_staking_info(payload)

    async def get_pending_rewards(self, delegator: str, validator: str) -> int:
        payload = await self._get_object(f"/rewards/pending/{delegator}/{validator}")
        try:
            return int(payload.get("pending_rewards_wei", 0))
        except (TypeError, ValueError) as exc:
            raise SourceError(f"bad pending rewards payload: {exc}") from exc

    async def get_total_staking(self) -> Decimal:
        payload = await self._get_object("/staking/total")
        try:
            return Decimal(str(payload["total_staking"]))
        except (KeyError, InvalidOperation) as exc:
            raise SourceError(f"bad total staking payload: {exc}") from exc

    async def get_block_number(self) -> int:
        payload = await self._get_object("/blocks/latest")
        try:
            return int(payload["number"])
        except (KeyError, TypeError, ValueError) as exc:
            raise SourceError(f"bad block payload: {exc}") from exc

    async def get_contract_constants(self) -> ContractConstants:
        payload = await self._get_object("/contract/constants")
        try:
            return ContractConstants.model_validate(payload)
        except ValidationError as exc:
            raise SourceError(f"bad contract constants: {exc}") from exc
