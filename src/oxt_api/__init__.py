"""
oxt_api — REST backend for OXT validator and delegator staking data.

Reads decoded contract state through a data source, caches it per
namespace, and serves yield estimates, delegator rankings and network
statistics over FastAPI.

Modules:
    app              — FastAPI application factory and lifespan
    context          — AppContext owning settings, logger, caches, services
    utils.cache      — CacheStore / CacheRegistry (TTL + LRU)
    services.*       — validator/delegator reads, yield estimator, ranking, stats
    sources.*        — StakingDataSource adapters (snapshot file, HTTP indexer)
    routers.*        — HTTP endpoints

Usage:
    uvicorn oxt_api.app:app --port 3001
"""

__version__ = "0.1.0"
