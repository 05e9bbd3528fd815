"""
ec2_inventory/service.py - 인벤토리 캐시 조회 인터페이스

프로세스 전역 상태 대신 명시적인 컨텍스트 객체로 모든 구성 요소를 묶습니다.

구성:
    CredentialBroker → RegionDiscoverer → AccountRegistry
    RetryingPaginatedCaller → InstanceInventory / SecurityGroupInventory
    Scheduler (부트스트랩 + 30분 주기 갱신)

Example:
    service = create_service(InventorySettings.from_env())
    service.start()

    if not service.wait_until_ready(timeout=300) or service.init_failed():
        raise SystemExit("인벤토리를 사용할 수 없음")

    for instance in service.get_instances():
        print(instance["InstanceId"], instance["Account"], instance["Region"])

    service.stop()
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING, Any

from ec2_inventory.auth.broker import CredentialBroker
from ec2_inventory.config import InventorySettings, create_bootstrap_session, load_accounts
from ec2_inventory.exceptions import InventoryUnavailableError
from ec2_inventory.inventory.collector import InstanceInventory, SecurityGroupInventory
from ec2_inventory.inventory.types import InstanceRecord, SecurityGroupRecord
from ec2_inventory.parallel.decorators import RetryConfig
from ec2_inventory.parallel.errors import ErrorReporter, LoggingErrorReporter
from ec2_inventory.parallel.paginator import RetryingPaginatedCaller, make_client_factory
from ec2_inventory.region.discovery import RegionDiscoverer
from ec2_inventory.registry import AccountRegistry
from ec2_inventory.scheduler import InitState, Scheduler

if TYPE_CHECKING:
    import boto3

    from ec2_inventory.auth.cache import Clock
    from ec2_inventory.auth.types import AccountConfig, AccountRegion

logger = logging.getLogger(__name__)


class InventoryService:
    """인벤토리 캐시 컨텍스트 객체

    Attributes:
        settings: 실행 설정
        reporter: 에러 리포터
        broker: 자격증명 브로커
        registry: 계정/리전 레지스트리
        instances: 인스턴스 인벤토리
        security_groups: 보안 그룹 인벤토리
        scheduler: 부트스트랩 + 주기 갱신 스케줄러
    """

    def __init__(
        self,
        settings: InventorySettings,
        accounts: Sequence[AccountConfig],
        session: boto3.Session,
        reporter: ErrorReporter | None = None,
        clock: Clock | None = None,
    ):
        """초기화

        Args:
            settings: 실행 설정
            accounts: 계정 목록
            session: 부트스트랩 boto3 세션
            reporter: 에러 리포터 (None이면 LoggingErrorReporter)
            clock: 캐시용 현재 시각 함수 (테스트용)
        """
        self.settings = settings
        self.accounts = tuple(accounts)
        self.reporter: ErrorReporter = reporter or LoggingErrorReporter()

        self.broker = CredentialBroker(session, ttl_seconds=settings.credential_ttl, clock=clock)
        self.discoverer = RegionDiscoverer(
            self.broker,
            bootstrap_region=settings.bootstrap_region,
            probe_max_results=settings.probe_max_results,
            max_workers=settings.max_workers,
        )
        self.registry = AccountRegistry(self.discoverer)

        self.caller = RetryingPaginatedCaller(
            make_client_factory(self.broker),
            reporter=self.reporter,
            retry_config=RetryConfig(
                max_retries=settings.max_retries,
                base_delay=settings.retry_delay,
                page_delay=settings.page_delay,
            ),
        )

        inventory_options: dict[str, Any] = {
            "ttl_seconds": settings.instance_cache_ttl,
            "max_workers": settings.max_workers,
            "refresh_timeout": settings.refresh_timeout,
            "clock": clock,
        }
        self.instances = InstanceInventory(self.registry, self.caller, **inventory_options)
        self.security_groups = SecurityGroupInventory(self.registry, self.caller, **inventory_options)

        self.scheduler = Scheduler(
            self.registry,
            self.accounts,
            self.instances,
            self.security_groups,
            reporter=self.reporter,
            interval_minutes=settings.refresh_interval_minutes,
        )

    @property
    def init_state(self) -> InitState:
        return self.scheduler.init_state

    # =========================================================================
    # 수명 주기
    # =========================================================================

    def start(self) -> None:
        """백그라운드에서 부트스트랩 후 주기 갱신 시작"""
        self.scheduler.start()

    def bootstrap(self) -> bool:
        """현재 스레드에서 부트스트랩만 수행 (주기 갱신 없음)"""
        return self.scheduler.bootstrap()

    def stop(self) -> None:
        self.scheduler.stop()

    def __enter__(self) -> InventoryService:
        self.start()
        return self

    def __exit__(self, *exc: object) -> None:
        self.stop()

    # =========================================================================
    # 초기화 상태
    # =========================================================================

    def init_completed(self) -> bool:
        """부트스트랩 성공 여부

        실패한 경우에도 False이므로 이 값만 폴링하면 끝나지 않습니다.
        init_failed()를 함께 확인하거나 wait_until_ready()를 사용하세요.
        """
        return self.init_state.completed

    def init_failed(self) -> bool:
        return self.init_state.failed

    def wait_until_ready(self, timeout: float | None = None) -> bool:
        """초기화 완료까지 대기

        Returns:
            제한 시간 내에 초기화가 성공했으면 True (실패/시간 초과는 False)
        """
        self.init_state.wait(timeout)
        return self.init_state.completed

    def _ensure_ready(self, timeout: float | None) -> None:
        if not self.init_state.wait(timeout):
            raise InventoryUnavailableError(f"인벤토리 초기화가 {timeout}초 내에 완료되지 않음")
        if self.init_state.failed:
            raise InventoryUnavailableError("인벤토리 초기화 실패", cause=self.init_state.error)

    # =========================================================================
    # 조회
    # =========================================================================

    def get_instances(self, force_refresh: bool = False, timeout: float | None = None) -> tuple[InstanceRecord, ...]:
        """전체 계정/리전의 인스턴스 목록

        초기화 전이면 완료될 때까지 대기합니다.

        Raises:
            InventoryUnavailableError: 초기화 실패 또는 제한 시간 초과
            UnexpectedRefreshError: 필요한 갱신이 실패한 경우
        """
        self._ensure_ready(timeout)
        return self.instances.get(force_refresh)

    def get_security_groups(
        self, force_refresh: bool = False, timeout: float | None = None
    ) -> tuple[SecurityGroupRecord, ...]:
        """전체 계정/리전의 보안 그룹 목록"""
        self._ensure_ready(timeout)
        return self.security_groups.get(force_refresh)

    def lookup_account(self, instance_id: str) -> AccountRegion | None:
        """인스턴스 ID로 소유 계정/리전 조회 (현재 캐시 기준)"""
        return self.instances.lookup_account(instance_id)

    def describe_instances(self, instance_ids: Sequence[str], timeout: float | None = None) -> list[InstanceRecord]:
        """특정 인스턴스의 최신 정보 조회 (캐시는 갱신하지 않음)"""
        self._ensure_ready(timeout)
        return self.instances.describe(instance_ids)


def create_service(
    settings: InventorySettings | None = None,
    reporter: ErrorReporter | None = None,
    session: boto3.Session | None = None,
    accounts: Sequence[AccountConfig] | None = None,
) -> InventoryService:
    """설정으로부터 InventoryService 생성

    Args:
        settings: 실행 설정 (None이면 환경 변수)
        reporter: 에러 리포터
        session: 부트스트랩 세션 (None이면 settings로 생성)
        accounts: 계정 목록 (None이면 settings.accounts_file 로드)

    Raises:
        ConfigLoadError: 계정 설정 파일 로드 실패 시
    """
    settings = settings or InventorySettings.from_env()
    if accounts is None:
        accounts = load_accounts(settings.accounts_file)
    if session is None:
        session = create_bootstrap_session(settings)
    return InventoryService(settings, accounts, session, reporter=reporter)
