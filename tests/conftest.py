"""Shared test fixtures for oxt-staking-api."""

from __future__ import annotations

import json
from collections import Counter
from pathlib import Path
from typing import Any

import pytest
from fastapi.testclient import TestClient

from oxt_shared.config import Settings
from oxt_api.context import AppContext
from oxt_api.sources import SnapshotSource, SourceError

FIXTURES = Path(__file__).parent / "fixtures"
SNAPSHOT = FIXTURES / "chain_snapshot.json"

# Validators in the fixture snapshot
V1 = "0x1111111111111111111111111111111111111111"   # 100k staked, 5%, no reward history
V2 = "0x2222222222222222222222222222222222222222"   # 50.5k staked, 10%, 0.001 OXT/block
V3 = "0x3333333333333333333333333333333333333333"   # 2k staked, jailed, slashed, bad commission

# Delegators: totals D1 70k, D3 42k, D2 40k, D4 500
D1 = "0xd100000000000000000000000000000000000001"
D2 = "0xd200000000000000000000000000000000000002"
D3 = "0xd300000000000000000000000000000000000003"
D4 = "0xd400000000000000000000000000000000000004"
NOBODY = "0x9999999999999999999999999999999999999999"


class FakeClock:
    """Millisecond clock that only moves when told to."""

    def __init__(self, start: float = 1_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, ms: float) -> None:
        self.now += ms


class CountingSource(SnapshotSource):
    """SnapshotSource that counts upstream reads and can be told to fail some of them."""

    def __init__(self, *args: Any, fail: set[str] | None = None, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.calls: Counter[str] = Counter()
        self.fail = set(fail or ())
        self.closed = False

    def _track(self, name: str) -> None:
        self.calls[name] += 1
        if name in self.fail:
            raise SourceError(f"{name} unavailable")

    async def get_activated_validators(self):
        self._track("get_activated_validators")
        return await super().get_activated_validators()

    async def get_validator_info(self, validator):
        self._track("get_validator_info")
        return await super().get_validator_info(validator)

    async def get_staking_info(self, staker, validator):
        self._track("get_staking_info")
        return await super().get_staking_info(staker, validator)

    async def get_total_staking(self):
        self._track("get_total_staking")
        return await super().get_total_staking()

    async def get_block_number(self):
        self._track("get_block_number")
        return await super().get_block_number()

    async def close(self) -> None:
        self.closed = True


def make_settings(**overrides: Any) -> Settings:
    return Settings(_env_file=None, snapshot_path=str(SNAPSHOT), **overrides)


def make_context(
    fail: set[str] | None = None, data: dict[str, Any] | None = None, **overrides: Any
) -> AppContext:
    if data is None:
        data = json.loads(SNAPSHOT.read_text(encoding="utf-8"))
    return AppContext.build(
        make_settings(**overrides),
        source=CountingSource(data=data, fail=fail),
        clock=FakeClock(),
    )


@pytest.fixture()
def snapshot_data() -> dict[str, Any]:
    return json.loads(SNAPSHOT.read_text(encoding="utf-8"))


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def ctx() -> AppContext:
    return make_context()


@pytest.fixture()
def source(ctx: AppContext) -> CountingSource:
    return ctx.source  # type: ignore[return-value]


@pytest.fixture()
def app(ctx: AppContext):
    """Test FastAPI app over the fixture snapshot."""
    from oxt_api.app import create_app

    return create_app(context=ctx)


@pytest.fixture()
def client(app):
    """HTTP test client with the lifespan running."""
    with TestClient(app) as c:
        yield c
