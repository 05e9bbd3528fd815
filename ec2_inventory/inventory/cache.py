"""
ec2_inventory/inventory/cache.py - Immutable inventory snapshot

A snapshot holds the record list and its lookup index together. Readers hold
a reference to one snapshot; the refresh path replaces the reference as a
whole, so a reader never observes records without their lookup entries.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from ec2_inventory.auth.types import AccountRegion

# Instance cache TTL (the scheduler refreshes every 30 minutes)
DEFAULT_INVENTORY_TTL = 3 * 60 * 60


@dataclass(frozen=True)
class InventorySnapshot:
    """Records + lookup index published as a single unit

    Attributes:
        records: Normalized records in (account, region, page) order
        lookup: Record key (InstanceId / GroupId) -> owning AccountRegion
        created_at: When the refresh that built this snapshot finished
        expires_at: After this time get() refreshes instead of serving
    """

    records: tuple[dict[str, Any], ...]
    lookup: Mapping[str, AccountRegion]
    created_at: datetime
    expires_at: datetime
    pair_count: int = field(default=0, compare=False)

    @classmethod
    def build(
        cls,
        records: Sequence[dict[str, Any]],
        lookup: Mapping[str, AccountRegion],
        created_at: datetime,
        ttl_seconds: float = DEFAULT_INVENTORY_TTL,
        pair_count: int = 0,
    ) -> InventorySnapshot:
        """Create a snapshot with a read-only view of the lookup index"""
        return cls(
            records=tuple(records),
            lookup=MappingProxyType(dict(lookup)),
            created_at=created_at,
            expires_at=created_at + timedelta(seconds=ttl_seconds),
            pair_count=pair_count,
        )

    def is_expired(self, now: datetime) -> bool:
        return now >= self.expires_at

    def age_seconds(self, now: datetime) -> float:
        return (now - self.created_at).total_seconds()

    def __len__(self) -> int:
        return len(self.records)
