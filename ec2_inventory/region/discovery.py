"""
ec2_inventory/region/discovery.py - 인스턴스가 있는 리전 탐색

EC2.describe_regions()로 계정에서 활성화된 리전 목록을 조회한 뒤,
각 리전에 describe_instances(MaxResults=5) 탐색 호출을 보내
인스턴스가 하나라도 있는 리전만 골라냅니다.

정책:
- 리전 목록 조회 실패 → RegionDiscoveryError (계정 단위로 스킵됨)
- 리전 탐색 호출 실패 → 해당 리전은 "인스턴스 없음"으로 간주 (best-effort)
- 결과 순서는 describe_regions 응답 순서를 따름

Usage:
    discoverer = RegionDiscoverer(broker, bootstrap_region="eu-west-1")

    # 활성화된 전체 리전
    regions = discoverer.list_regions(account)

    # 인스턴스가 있는 리전만
    regions = discoverer.find_regions_with_instances(account)
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import TYPE_CHECKING

from ec2_inventory.exceptions import RegionDiscoveryError
from ec2_inventory.parallel.client import get_client

if TYPE_CHECKING:
    from ec2_inventory.auth.broker import CredentialBroker, RoleAccount

logger = logging.getLogger(__name__)

# 리전 목록 조회에 사용하는 기본 리전
DEFAULT_BOOTSTRAP_REGION = "eu-west-1"

# 탐색 호출의 최대 결과 수 (describe_instances 허용 최소값)
DEFAULT_PROBE_MAX_RESULTS = 5

# 리전 탐색 동시 실행 수
DEFAULT_PROBE_WORKERS = 4


class RegionDiscoverer:
    """계정별 리전 탐색기

    Example:
        discoverer = RegionDiscoverer(broker)

        for region in discoverer.find_regions_with_instances(account):
            print(f"{account.name}: {region}")
    """

    def __init__(
        self,
        broker: CredentialBroker,
        bootstrap_region: str = DEFAULT_BOOTSTRAP_REGION,
        probe_max_results: int = DEFAULT_PROBE_MAX_RESULTS,
        max_workers: int = DEFAULT_PROBE_WORKERS,
    ):
        """초기화

        Args:
            broker: 계정 자격증명 브로커
            bootstrap_region: describe_regions를 호출할 리전
            probe_max_results: 탐색 호출의 MaxResults
            max_workers: 리전 탐색 동시 실행 수 (1이면 순차 실행)
        """
        self._broker = broker
        self.bootstrap_region = bootstrap_region
        self.probe_max_results = probe_max_results
        self.max_workers = max(1, max_workers)

    def list_regions(self, account: RoleAccount) -> list[str]:
        """계정에서 활성화된 리전 목록 조회

        Raises:
            RegionDiscoveryError: describe_regions 호출 실패 시
        """
        try:
            session = self._broker.session_for(account, self.bootstrap_region)
            ec2 = get_client(session, "ec2", region_name=self.bootstrap_region)
            response = ec2.describe_regions()
        except Exception as e:
            raise RegionDiscoveryError(account.name, cause=e) from e

        regions = [r["RegionName"] for r in response.get("Regions", []) if r.get("RegionName")]
        logger.debug("[%s] 활성 리전 %d개", account.name, len(regions))
        return regions

    def has_instances(self, account: RoleAccount, region: str) -> bool:
        """리전에 인스턴스가 하나라도 있는지 확인

        탐색 호출이 실패하면 False를 반환합니다.
        """
        try:
            session = self._broker.session_for(account, region)
            ec2 = get_client(session, "ec2", region_name=region)
            response = ec2.describe_instances(MaxResults=self.probe_max_results)
        except Exception as e:
            logger.debug("[%s/%s] 리전 탐색 실패, 인스턴스 없음으로 처리: %s", account.name, region, e)
            return False

        return len(response.get("Reservations", [])) > 0

    def find_regions_with_instances(self, account: RoleAccount) -> list[str]:
        """인스턴스가 있는 리전 목록 반환 (describe_regions 순서 유지)

        Raises:
            RegionDiscoveryError: 리전 목록 조회 실패 시
        """
        regions = self.list_regions(account)
        if not regions:
            return []

        if self.max_workers == 1:
            found = [self.has_instances(account, region) for region in regions]
        else:
            workers = min(self.max_workers, len(regions))
            with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="region-probe") as pool:
                found = list(pool.map(lambda region: self.has_instances(account, region), regions))

        valid = [region for region, ok in zip(regions, found) if ok]
        logger.info("[%s] 인스턴스가 있는 리전: %s", account.name, ", ".join(valid) or "(없음)")
        return valid
