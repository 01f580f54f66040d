"""
units.py — wei/OXT conversion and address helpers.

Upstream adapters hand the core already-decoded values; these helpers are
the only place the 18-decimal fixed-point representation is interpreted.

Usage:
    from oxt_shared.units import format_ether, parse_ether, is_valid_address

    format_ether(1_500_000_000_000_000_000)  # Decimal("1.5")
    parse_ether("1000")                        # 1000 * 10**18
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation

from oxt_shared.constants import ADDRESS_RE, WEI_PER_OXT


def format_ether(wei: int) -> Decimal:
    """Convert an integer wei amount to a Decimal OXT amount."""
    return Decimal(wei) / Decimal(WEI_PER_OXT)


def parse_ether(amount: str | int | Decimal) -> int:
    """
    Convert an OXT amount to integer wei, truncating sub-wei precision.

    Raises:
        ValueError: if the amount is not a number.
    """
    try:
        value = Decimal(str(amount))
    except InvalidOperation as exc:
        raise ValueError(f"not a numeric amount: {amount!r}") from exc
    return int(value * WEI_PER_OXT)


def is_valid_address(address: str) -> bool:
    return bool(ADDRESS_RE.match(address or ""))


def normalize_address(address: str) -> str:
    """Lower-case an address so map keys compare equal regardless of checksum case."""
    return address.lower()
