"""
oxt_shared — settings, constants, unit helpers and models for the OXT staking API.

Usage:
    from oxt_shared.config import settings
    from oxt_shared.models import ValidatorSnapshot, StakingInfo, YieldReport
    from oxt_shared.units import format_ether, parse_ether
    from oxt_shared.constants import SECONDS_PER_YEAR, BASIS_POINTS
"""

__version__ = "0.1.0"
