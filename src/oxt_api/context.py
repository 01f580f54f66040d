"""
context.py — The application context: one object owning every long-lived resource.

Construction order is settings → logger → cache registry → data source →
services. Teardown runs in reverse for what needs it: the registry is
destroyed (cleanup sweeps cancelled, stores cleared) before the data
source is closed.

Usage:
    ctx = AppContext.build(settings)
    await ctx.startup()
    report = await ctx.apr.validator_yield("0xabc...")
    await ctx.shutdown()
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import structlog

from oxt_shared.config import Settings
from oxt_shared.config import settings as default_settings
from oxt_shared.constants import NS_APY, NS_DELEGATORS, NS_RANKING, NS_VALIDATORS
from oxt_api.services.apr_service import AprService
from oxt_api.services.delegator_service import DelegatorService
from oxt_api.services.ranking_service import RankingService
from oxt_api.services.stats_service import StatsService
from oxt_api.services.validator_service import ValidatorService
from oxt_api.sources import IndexerSource, SnapshotSource, StakingDataSource
from oxt_api.utils.cache import CacheRegistry, Clock, monotonic_ms


def build_source(settings: Settings) -> StakingDataSource:
    """Data source selected by settings.data_source."""
    if settings.data_source == "indexer":
        return IndexerSource(settings.indexer_url, timeout=settings.indexer_timeout)
    return SnapshotSource(settings.snapshot_path)


@dataclass
class AppContext:
    settings: Settings
    log: Any
    registry: CacheRegistry
    source: StakingDataSource
    validators: ValidatorService
    delegators: DelegatorService
    apr: AprService
    ranking: RankingService
    stats: StatsService

    @classmethod
    def build(
        cls,
        settings: Settings | None = None,
        *,
        source: StakingDataSource | None = None,
        clock: Clock = monotonic_ms,
    ) -> "AppContext":
        settings = settings or default_settings
        log = structlog.get_logger("oxt_api").bind(
            contract=settings.validators_contract_address
        )
        registry = CacheRegistry(
            max_size=settings.cache_max_size,
            default_ttl_ms=settings.cache_duration,
            cleanup_interval=settings.cache_cleanup_interval,
            clock=clock,
            log=log.bind(component="cache"),
        )
        source = source or build_source(settings)

        validators = ValidatorService(
            source,
            registry.get_store(NS_VALIDATORS),
            settings,
            log.bind(service="validators"),
        )
        delegators = DelegatorService(
            source,
            registry.get_store(NS_DELEGATORS),
            settings,
            log.bind(service="delegators"),
            validators=validators,
        )
        apr = AprService(
            validators,
            delegators,
            registry.get_store(NS_APY),
            settings,
            log.bind(service="apr"),
        )
        ranking = RankingService(
            validators,
            delegators,
            registry.get_store(NS_RANKING),
            settings,
            log.bind(service="ranking"),
        )
        stats = StatsService(validators, registry, settings, log.bind(service="stats"))

        return cls(
            settings=settings,
            log=log,
            registry=registry,
            source=source,
            validators=validators,
            delegators=delegators,
            apr=apr,
            ranking=ranking,
            stats=stats,
        )

    async def startup(self) -> None:
        self.registry.start()
        self.log.info(
            "context_started",
            data_source=self.settings.data_source,
            namespaces=self.registry.namespaces,
        )

    async def shutdown(self) -> None:
        self.registry.destroy()
        await self.source.close()
        self.log.info("context_stopped")
