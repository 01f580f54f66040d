"""
config.py — pydantic-settings Settings class.

All environment variables for the OXT staking API are declared here.
The application context receives a Settings instance explicitly; the
module-level `settings` is the default used when none is supplied.

Usage:
    from oxt_shared.config import settings
    print(settings.cache_duration)
"""

from __future__ import annotations

from decimal import Decimal
from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from oxt_shared.constants import ADDRESS_RE, BASIS_POINTS, SECONDS_PER_YEAR


def _find_dotenv() -> Path | None:
    """Walk up from CWD to find the nearest .env file."""
    current = Path.cwd()
    for parent in [current, *current.parents]:
        candidate = parent / ".env"
        if candidate.is_file():
            return candidate
    return None


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=_find_dotenv() or ".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # -------------------------------------------------------------------------
    # Cache (all TTLs in milliseconds)
    # -------------------------------------------------------------------------
    cache_duration: int = Field(default=30_000, ge=1)
    cache_max_size: int = Field(default=1000, ge=1)
    cache_cleanup_interval: float = Field(default=60.0, gt=0)  # seconds

    yield_cache_ttl: int = Field(default=3_600_000, ge=1)
    staking_info_ttl: int = Field(default=10_000, ge=1)
    pending_rewards_ttl: int = Field(default=5_000, ge=1)
    constants_ttl: int = Field(default=300_000, ge=1)
    ranking_cache_ttl: int = Field(default=30_000, ge=1)
    apr_cache_ttl: int = Field(default=30_000, ge=1)

    # -------------------------------------------------------------------------
    # Yield estimation
    # -------------------------------------------------------------------------
    network_inflation_rate: Decimal = Field(default=Decimal("0.05"), ge=0, le=1)
    fast_block_time: int = Field(default=1, gt=0)   # seconds per block
    slow_block_time: int = Field(default=5, gt=0)
    default_commission: int = Field(default=500, ge=0, le=BASIS_POINTS)
    min_delegator_stake: Decimal = Field(default=Decimal("1000"), ge=0)  # OXT
    compounding_frequency: int = Field(default=365, ge=1)

    # -------------------------------------------------------------------------
    # Upstream chain data
    # -------------------------------------------------------------------------
    data_source: Literal["snapshot", "indexer"] = Field(default="snapshot")
    snapshot_path: str = Field(default="./data/chain_snapshot.json")
    indexer_url: str = Field(default="http://localhost:8545/indexer")
    indexer_timeout: float = Field(default=30.0, gt=0)
    validators_contract_address: str = Field(
        default="0x000000000000000000000000000000000000f000"
    )

    # -------------------------------------------------------------------------
    # API server
    # -------------------------------------------------------------------------
    api_host: str = Field(default="0.0.0.0")
    api_port: int = Field(default=3001)
    cors_origins: str = Field(default="*")

    # APR endpoints: requests per window per client
    apr_rate_limit_max: int = Field(default=60, ge=1)
    apr_rate_limit_window: float = Field(default=60.0, gt=0)  # seconds

    # -------------------------------------------------------------------------
    # Logging
    # -------------------------------------------------------------------------
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO"
    )
    log_format: Literal["json", "console"] = Field(default="console")

    # -------------------------------------------------------------------------
    # Derived / computed
    # -------------------------------------------------------------------------
    @property
    def cors_origins_list(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    @property
    def blocks_per_year_fast(self) -> int:
        return SECONDS_PER_YEAR // self.fast_block_time

    @property
    def blocks_per_year_slow(self) -> int:
        return SECONDS_PER_YEAR // self.slow_block_time

    def blocks_per_year(self, block_time: int) -> int:
        """Blocks per year for one of the configured block times."""
        if block_time == self.slow_block_time:
            return self.blocks_per_year_slow
        return self.blocks_per_year_fast

    @field_validator("indexer_url", mode="before")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/") if isinstance(v, str) else v

    @field_validator("validators_contract_address")
    @classmethod
    def check_address(cls, v: str) -> str:
        if not ADDRESS_RE.match(v):
            raise ValueError(f"not a contract address: {v!r}")
        return v


# ---------------------------------------------------------------------------
# Module-level default; the app context can be given another instance
# ---------------------------------------------------------------------------
settings = Settings()
