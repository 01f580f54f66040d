"""
utils/degraded.py — Values that may have come from a fallback.

Upstream reads favour availability: when a read fails the service returns
a documented default instead of raising. Fetched makes that visible so
callers can surface it (responses carry meta.degraded).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class Fetched(Generic[T]):
    value: T
    degraded: bool = False
    reason: str | None = None

    @classmethod
    def ok(cls, value: T) -> "Fetched[T]":
        return cls(value)

    @classmethod
    def fallback(cls, value: T, reason: str) -> "Fetched[T]":
        return cls(value, degraded=True, reason=reason)


def any_degraded(*results: Fetched) -> bool:
    return any(r.degraded for r in results)
