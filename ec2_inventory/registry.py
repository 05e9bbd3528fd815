"""
ec2_inventory/registry.py - 계정/리전 레지스트리

설정된 계정마다 인스턴스가 있는 리전을 탐색하여 (계정, 리전) 목록을 만듭니다.
레지스트리는 프로세스 시작 시 한 번만 설정되며 이후에는 읽기 전용입니다.

정책:
- 계정별 탐색 실패 → 로깅 후 해당 계정 스킵 (다른 계정은 계속 진행)
- 인스턴스가 있는 리전이 없는 계정 → 정상 (항목 없음)
- setup() 두 번째 호출 → RegistryAlreadyInitializedError

Usage:
    registry = AccountRegistry(RegionDiscoverer(broker))
    pairs = registry.setup(accounts)

    for pair in registry.account_regions:
        print(pair)  # "Production/eu-west-1"
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterable

from ec2_inventory.auth.types import AccountConfig, AccountRegion
from ec2_inventory.exceptions import RegionDiscoveryError, RegistryAlreadyInitializedError
from ec2_inventory.region.discovery import RegionDiscoverer

logger = logging.getLogger(__name__)


class AccountRegistry:
    """(계정, 리전) 레지스트리"""

    def __init__(self, discoverer: RegionDiscoverer):
        self._discoverer = discoverer
        self._account_regions: tuple[AccountRegion, ...] = ()
        self._initialized = False
        self._lock = threading.Lock()

    @property
    def initialized(self) -> bool:
        return self._initialized

    @property
    def account_regions(self) -> tuple[AccountRegion, ...]:
        """설정된 (계정, 리전) 목록 (setup 전에는 빈 튜플)"""
        return self._account_regions

    def setup(self, accounts: Iterable[AccountConfig]) -> tuple[AccountRegion, ...]:
        """계정별 리전을 탐색하여 레지스트리 설정

        Args:
            accounts: 설정 파일에서 로드한 계정 목록

        Returns:
            (계정, 리전) 튜플. 계정 순서, 계정 내에서는 리전 탐색 순서.

        Raises:
            RegistryAlreadyInitializedError: 이미 설정된 경우
        """
        with self._lock:
            if self._initialized:
                raise RegistryAlreadyInitializedError()

            pairs: list[AccountRegion] = []
            skipped = 0

            for account in accounts:
                try:
                    regions = self._discoverer.find_regions_with_instances(account)
                except RegionDiscoveryError as e:
                    logger.error("AWS 계정 접근 실패 [%s]: %s", account.name, e)
                    skipped += 1
                    continue
                except Exception as e:
                    logger.error("AWS 계정 접근 중 예외 [%s]: %s", account.name, e)
                    skipped += 1
                    continue

                pairs.extend(AccountRegion(account=account, region=region) for region in regions)

            self._account_regions = tuple(pairs)
            self._initialized = True

        logger.info("계정 레지스트리 설정 완료: %d개 계정/리전 (스킵된 계정: %d)", len(pairs), skipped)
        return self._account_regions
