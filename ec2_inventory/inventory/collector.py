"""
ec2_inventory/inventory/collector.py - Cached multi-account inventory

Collects resources from every registered account/region and serves them from
an in-memory snapshot until it expires or a refresh is forced.

Refresh behaviour:
    - Pairs are fetched on a bounded thread pool; the snapshot is swapped once,
      after every pair has finished.
    - Provider errors are absorbed per pair by the paginated caller (partial
      results). Any other exception from a pair aborts the whole cycle with
      UnexpectedRefreshError and the previous snapshot stays in place.
    - Refreshes are single-flight: a caller arriving while another refresh is
      running waits for it and reuses its result.
"""

from __future__ import annotations

import logging
import threading
from collections import defaultdict
from collections.abc import Callable, Sequence
from functools import partial
from typing import TYPE_CHECKING, Any, Protocol

from ec2_inventory.auth.cache import Clock, utc_now
from ec2_inventory.exceptions import RefreshTimeoutError, UnexpectedRefreshError
from ec2_inventory.parallel.executor import ParallelConfig, ParallelPairExecutor

from .cache import DEFAULT_INVENTORY_TTL, InventorySnapshot
from .services.ec2 import fetch_instances, fetch_security_groups
from .types import InstanceRecord, SecurityGroupRecord

if TYPE_CHECKING:
    from ec2_inventory.auth.types import AccountRegion
    from ec2_inventory.parallel.paginator import RetryingPaginatedCaller

logger = logging.getLogger(__name__)

DEFAULT_MAX_WORKERS = 8

PairFetcher = Callable[["AccountRegion"], Sequence[dict[str, Any]]]


class AccountRegionSource(Protocol):
    """Anything exposing the registered account/region pairs"""

    @property
    def account_regions(self) -> Sequence[AccountRegion]: ...


class CachedInventory:
    """Snapshot cache over a per account/region fetch function

    Subclasses supply the fetch function and the record key used for the
    lookup index.
    """

    name = "inventory"
    key_field = ""

    def __init__(
        self,
        source: AccountRegionSource,
        fetch: PairFetcher,
        ttl_seconds: float = DEFAULT_INVENTORY_TTL,
        max_workers: int = DEFAULT_MAX_WORKERS,
        refresh_timeout: float | None = None,
        clock: Clock | None = None,
    ):
        """Initialize inventory

        Args:
            source: Provides the account/region pairs to fetch
            fetch: Fetches records for one account/region
            ttl_seconds: Snapshot lifetime
            max_workers: Concurrent account/region fetches
            refresh_timeout: Whole-cycle timeout in seconds (None: no limit)
            clock: Current time function (for testing)
        """
        self._source = source
        self._fetch = fetch
        self.ttl_seconds = ttl_seconds
        self.refresh_timeout = refresh_timeout
        self._executor = ParallelPairExecutor(ParallelConfig(max_workers=max_workers, timeout=refresh_timeout))
        self._clock = clock or utc_now

        self._snapshot: InventorySnapshot | None = None
        self._generation = 0
        self._refresh_lock = threading.Lock()

    @property
    def snapshot(self) -> InventorySnapshot | None:
        """Currently published snapshot (None before the first refresh)"""
        return self._snapshot

    @property
    def is_refreshing(self) -> bool:
        return self._refresh_lock.locked()

    def get(self, force_refresh: bool = False) -> tuple[dict[str, Any], ...]:
        """Get cached records, refreshing synchronously when needed

        Args:
            force_refresh: If True, bypass the cache and fetch fresh data

        Returns:
            Records of the current snapshot

        Raises:
            UnexpectedRefreshError: If a needed refresh fails
        """
        snapshot = self._snapshot
        if not force_refresh and snapshot is not None and not snapshot.is_expired(self._clock()):
            return snapshot.records
        return self.refresh().records

    def refresh(self) -> InventorySnapshot:
        """Fetch every account/region and publish a new snapshot

        Returns:
            The published snapshot (possibly one built by a concurrent refresh)

        Raises:
            UnexpectedRefreshError: The cycle was aborted; the old snapshot is kept
            RefreshTimeoutError: The cycle exceeded refresh_timeout
        """
        observed = self._generation
        with self._refresh_lock:
            snapshot = self._snapshot
            if self._generation != observed and snapshot is not None:
                logger.debug("%s refresh finished while waiting, reusing result", self.name)
                return snapshot

            snapshot = self._build_snapshot()
            self._snapshot = snapshot
            self._generation += 1

        logger.info(
            "Updated %s cache: %d records from %d account/regions",
            self.name,
            len(snapshot.records),
            snapshot.pair_count,
        )
        return snapshot

    def lookup_account(self, key: str) -> AccountRegion | None:
        """Resolve the owning account/region of a record key from the current snapshot"""
        snapshot = self._snapshot
        if snapshot is None:
            return None
        return snapshot.lookup.get(key)

    def _build_snapshot(self) -> InventorySnapshot:
        pairs = tuple(self._source.account_regions)
        logger.debug("Refreshing %s across %d account/regions", self.name, len(pairs))

        try:
            result = self._executor.execute(pairs, self._fetch, label=str)
        except TimeoutError as e:
            raise RefreshTimeoutError(self.name, self.refresh_timeout or 0) from e

        errors = result.get_errors()
        if errors:
            first = errors[0]
            raise UnexpectedRefreshError(
                self.name,
                f"{len(errors)} account/region fetch(es) failed, first [{first.identifier}] {first.message}",
                cause=first.original_exception if isinstance(first.original_exception, Exception) else None,
            )

        records: list[dict[str, Any]] = []
        lookup: dict[str, AccountRegion] = {}
        for pair, task in zip(pairs, result.results):
            for record in task.data or ():
                key = record.get(self.key_field)
                if key is None:
                    logger.warning("[%s] %s record without %s skipped", pair, self.name, self.key_field)
                    continue
                if key in lookup:
                    logger.debug("[%s] duplicate %s %s skipped", pair, self.key_field, key)
                    continue
                lookup[key] = pair
                records.append(record)

        return InventorySnapshot.build(
            records,
            lookup,
            created_at=self._clock(),
            ttl_seconds=self.ttl_seconds,
            pair_count=len(pairs),
        )


class InstanceInventory(CachedInventory):
    """EC2 instance inventory

    Example:
        inventory = InstanceInventory(registry, caller)

        # Served from cache while the snapshot is live
        instances = inventory.get()

        # Force refresh (ignores cache)
        instances = inventory.get(force_refresh=True)

        # Which account owns an instance
        pair = inventory.lookup_account("i-0123456789abcdef0")
    """

    name = "instances"
    key_field = "InstanceId"

    def __init__(
        self,
        source: AccountRegionSource,
        caller: RetryingPaginatedCaller,
        ttl_seconds: float = DEFAULT_INVENTORY_TTL,
        max_workers: int = DEFAULT_MAX_WORKERS,
        refresh_timeout: float | None = None,
        clock: Clock | None = None,
    ):
        self._caller = caller
        super().__init__(
            source,
            partial(fetch_instances, caller),
            ttl_seconds=ttl_seconds,
            max_workers=max_workers,
            refresh_timeout=refresh_timeout,
            clock=clock,
        )

    def get(self, force_refresh: bool = False) -> tuple[InstanceRecord, ...]:
        return super().get(force_refresh)

    def describe(self, instance_ids: Sequence[str]) -> list[InstanceRecord]:
        """Fetch fresh records for specific instances

        Owning account/regions are resolved through the lookup index of the
        current snapshot; unknown IDs are skipped. The cache is not updated.
        """
        by_pair: dict[AccountRegion, list[str]] = defaultdict(list)
        for instance_id in instance_ids:
            pair = self.lookup_account(instance_id)
            if pair is None:
                logger.warning("Instance %s not found in inventory", instance_id)
                continue
            by_pair[pair].append(instance_id)

        records: list[InstanceRecord] = []
        for pair, ids in by_pair.items():
            records.extend(fetch_instances(self._caller, pair, ids))
        return records


class SecurityGroupInventory(CachedInventory):
    """Security Group inventory, same cache contract as InstanceInventory"""

    name = "security groups"
    key_field = "GroupId"

    def __init__(
        self,
        source: AccountRegionSource,
        caller: RetryingPaginatedCaller,
        ttl_seconds: float = DEFAULT_INVENTORY_TTL,
        max_workers: int = DEFAULT_MAX_WORKERS,
        refresh_timeout: float | None = None,
        clock: Clock | None = None,
    ):
        super().__init__(
            source,
            partial(fetch_security_groups, caller),
            ttl_seconds=ttl_seconds,
            max_workers=max_workers,
            refresh_timeout=refresh_timeout,
            clock=clock,
        )

    def get(self, force_refresh: bool = False) -> tuple[SecurityGroupRecord, ...]:
        return super().get(force_refresh)
