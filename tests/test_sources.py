"""
tests/test_sources.py — SnapshotSource and IndexerSource.

All HTTP is mocked via respx; no real network calls are made.
"""

from __future__ import annotations

import json
from decimal import Decimal
from pathlib import Path

import httpx
import pytest
import respx

from oxt_shared.models import ValidatorStatus
from oxt_api.sources import IndexerSource, SnapshotSource, SourceError
from tests.conftest import D1, SNAPSHOT, V1, V2, V3

BASE = "http://indexer.test"


# ---------------------------------------------------------------------------
# SnapshotSource
# ---------------------------------------------------------------------------

class TestSnapshotSource:
    @pytest.mark.asyncio
    async def test_reads_validator_from_file(self):
        source = SnapshotSource(SNAPSHOT)
        info = await source.get_validator_info(V2)
        assert info.status == ValidatorStatus.ACTIVE
        assert info.staking_amount == Decimal("50500")
        assert info.commission_rate_bp == 1000
        assert info.reward_amount == Decimal("0.001")
        assert len(info.stakers) == 3

    @pytest.mark.asyncio
    async def test_lookup_ignores_address_case(self):
        source = SnapshotSource(SNAPSHOT)
        info = await source.get_staking_info(D1.upper().replace("0X", "0x"), V1)
        assert info.amount == Decimal("60000")

    @pytest.mark.asyncio
    async def test_unknown_validator_is_zeroed(self):
        source = SnapshotSource(SNAPSHOT)
        info = await source.get_validator_info("0x" + "a" * 40)
        assert info.staking_amount == 0
        assert info.stakers == []

    @pytest.mark.asyncio
    async def test_missing_position_is_zero(self):
        source = SnapshotSource(SNAPSHOT)
        info = await source.get_staking_info(D1, V3)
        assert info.amount_wei == 0

    @pytest.mark.asyncio
    async def test_jailed_and_description(self):
        source = SnapshotSource(SNAPSHOT)
        assert await source.is_validator_jailed(V3) is True
        assert await source.is_validator_jailed(V1) is False
        assert (await source.get_validator_description(V1)).moniker == "alpha"
        assert (await source.get_validator_description("0x" + "a" * 40)).moniker == "Unknown"

    @pytest.mark.asyncio
    async def test_total_staking_summed_when_absent(self):
        source = SnapshotSource(SNAPSHOT)
        assert await source.get_total_staking() == Decimal("152500")

    @pytest.mark.asyncio
    async def test_activated_defaults_to_active_validators(self, snapshot_data):
        del snapshot_data["activated"]
        source = SnapshotSource(data=snapshot_data)
        assert await source.get_activated_validators() == [V1, V2]

    @pytest.mark.asyncio
    async def test_pending_rewards_and_constants(self):
        source = SnapshotSource(SNAPSHOT)
        assert await source.get_pending_rewards(D1, V1) == 2_500_000_000_000_000_000
        constants = await source.get_contract_constants()
        assert constants.max_validator_num == 21
        assert await source.get_block_number() == 1200345

    @pytest.mark.asyncio
    async def test_missing_file_raises_source_error(self, tmp_path: Path):
        source = SnapshotSource(tmp_path / "missing.json")
        with pytest.raises(SourceError):
            await source.get_activated_validators()

    @pytest.mark.asyncio
    async def test_corrupt_file_raises_source_error(self, tmp_path: Path):
        path = tmp_path / "bad.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(SourceError):
            await SnapshotSource(path).get_block_number()

    @pytest.mark.asyncio
    async def test_bad_validator_payload_raises_source_error(self, snapshot_data):
        snapshot_data["validators"][0]["staking_amount"] = "lots"
        source = SnapshotSource(data=snapshot_data)
        with pytest.raises(SourceError):
            await source.get_validator_info(V1)

    @pytest.mark.asyncio
    async def test_bad_block_number_raises_source_error(self, snapshot_data):
        snapshot_data["block_number"] = "latest"
        source = SnapshotSource(data=snapshot_data)
        with pytest.raises(SourceError):
            await source.get_block_number()

    @pytest.mark.asyncio
    async def test_reload_picks_up_new_file(self, tmp_path: Path, snapshot_data):
        path = tmp_path / "snap.json"
        path.write_text(json.dumps(snapshot_data), encoding="utf-8")
        source = SnapshotSource(path)
        assert await source.get_block_number() == 1200345

        snapshot_data["block_number"] = 1200400
        path.write_text(json.dumps(snapshot_data), encoding="utf-8")
        source.reload()
        assert await source.get_block_number() == 1200400

    def test_needs_path_or_data(self):
        with pytest.raises(ValueError):
            SnapshotSource()


# ---------------------------------------------------------------------------
# IndexerSource
# ---------------------------------------------------------------------------

def make_indexer(**kwargs) -> IndexerSource:
    kwargs.setdefault("base_delay", 0)
    return IndexerSource(BASE, **kwargs)


class TestIndexerSource:
    @pytest.mark.asyncio
    async def test_validator_info(self):
        payload = {
            "address": V1,
            "status": 1,
            "staking_amount": "100000",
            "commission_rate_bp": 500,
            "reward_amount_wei": "0",
            "slash_amount_wei": "0",
            "stakers": [D1],
        }
        with respx.mock(base_url=BASE) as router:
            router.get(f"/validators/{V1}").mock(return_value=httpx.Response(200, json=payload))
            source = make_indexer()
            info = await source.get_validator_info(V1)
            await source.close()

        assert info.address == V1
        assert info.staking_amount == Decimal("100000")
        assert info.is_active

    @pytest.mark.asyncio
    async def test_activated_validators(self):
        with respx.mock(base_url=BASE) as router:
            router.get("/validators/activated").mock(
                return_value=httpx.Response(200, json=[V1, V2])
            )
            source = make_indexer()
            assert await source.get_activated_validators() == [V1, V2]
            await source.close()

    @pytest.mark.asyncio
    async def test_total_staking_and_block(self):
        with respx.mock(base_url=BASE) as router:
            router.get("/staking/total").mock(
                return_value=httpx.Response(200, json={"total_staking": "152500.5"})
            )
            router.get("/blocks/latest").mock(
                return_value=httpx.Response(200, json={"number": 42})
            )
            source = make_indexer()
            assert await source.get_total_staking() == Decimal("152500.5")
            assert await source.get_block_number() == 42
            await source.close()

    @pytest.mark.asyncio
    async def test_retries_transient_failure(self):
        with respx.mock(base_url=BASE) as router:
            route = router.get("/blocks/latest").mock(
                side_effect=[
                    httpx.Response(503),
                    httpx.Response(200, json={"number": 7}),
                ]
            )
            source = make_indexer()
            assert await source.get_block_number() == 7
            await source.close()

        assert route.call_count == 2

    @pytest.mark.asyncio
    async def test_exhausted_retries_raise_source_error(self):
        with respx.mock(base_url=BASE) as router:
            route = router.get("/blocks/latest").mock(return_value=httpx.Response(500))
            source = make_indexer(max_attempts=3)
            with pytest.raises(SourceError):
                await source.get_block_number()
            await source.close()

        assert route.call_count == 3

    @pytest.mark.asyncio
    async def test_connect_error_raises_source_error(self):
        with respx.mock(base_url=BASE) as router:
            router.get("/staking/total").mock(side_effect=httpx.ConnectError("refused"))
            source = make_indexer(max_attempts=2)
            with pytest.raises(SourceError):
                await source.get_total_staking()
            await source.close()

    @pytest.mark.asyncio
    async def test_wrong_payload_shape_raises_source_error(self):
        with respx.mock(base_url=BASE) as router:
            router.get("/validators/activated").mock(
                return_value=httpx.Response(200, json={"unexpected": True})
            )
            router.get(f"/validators/{V1}/jailed").mock(
                return_value=httpx.Response(200, json=[True])
            )
            source = make_indexer()
            with pytest.raises(SourceError):
                await source.get_activated_validators()
            with pytest.raises(SourceError):
                await source.is_validator_jailed(V1)
            await source.close()

    @pytest.mark.asyncio
    async def test_injected_client_is_not_closed(self):
        client = httpx.AsyncClient()
        source = make_indexer(client=client)
        await source.close()
        assert not client.is_closed
        await client.aclose()
