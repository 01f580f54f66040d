"""
Upstream data sources for decoded validators-contract state.

Available sources:
  SnapshotSource  — JSON snapshot file (development, tests)
  IndexerSource   — HTTP chain indexer serving decoded JSON
"""

from oxt_api.sources.base import SourceError, StakingDataSource
from oxt_api.sources.indexer import IndexerSource
from oxt_api.sources.snapshot import SnapshotSource

__all__ = [
    "IndexerSource",
    "SnapshotSource",
    "SourceError",
    "StakingDataSource",
]
