"""
constants.py — shared constants used across the API and its services.

Time, unit and rubric constants live here so the estimators, the
statistics surface and the settings validators stay in sync.
"""

from __future__ import annotations

import re
from typing import Final

# ---------------------------------------------------------------------------
# Time
# ---------------------------------------------------------------------------
DAYS_PER_YEAR: Final[int] = 365
SECONDS_PER_DAY: Final[int] = 86_400
SECONDS_PER_YEAR: Final[int] = DAYS_PER_YEAR * SECONDS_PER_DAY  # 31,536,000

# ---------------------------------------------------------------------------
# Units
# ---------------------------------------------------------------------------
WEI_PER_OXT: Final[int] = 10**18
BASIS_POINTS: Final[int] = 10_000  # 100%

ZERO_ADDRESS: Final[str] = "0x" + "0" * 40
ADDRESS_RE: Final[re.Pattern[str]] = re.compile(r"^0x[a-fA-F0-9]{40}$")

# ---------------------------------------------------------------------------
# Block-time configurations accepted by the APR endpoints
# ---------------------------------------------------------------------------
BLOCK_TIME_LABELS: Final[dict[int, str]] = {
    1: "1 second per block",
    5: "5 seconds per block",
}

# ---------------------------------------------------------------------------
# Cache namespaces
# ---------------------------------------------------------------------------
NS_VALIDATORS: Final[str] = "validators"
NS_DELEGATORS: Final[str] = "delegators"
NS_APY: Final[str] = "apy"
NS_RANKING: Final[str] = "ranking"

# ---------------------------------------------------------------------------
# Statistics
# ---------------------------------------------------------------------------
MAX_HISTOGRAM_BUCKETS: Final[int] = 10
GINI_CONCENTRATED_THRESHOLD: Final[float] = 0.5
