"""
ec2_inventory/parallel/paginator.py - 재시도/페이지네이션 API 호출기

NextToken 기반 페이지네이션과 쓰로틀링 재시도를 처리하는 래퍼입니다.
API 에러는 예외로 던지지 않고 에러 리포터로 전달한 뒤 지금까지 수집한
부분 결과를 반환합니다.

동작:
    1. 페이지 요청 → data_key 필드의 항목을 결과에 추가
    2. 응답에 NextToken이 있으면 page_delay(0.5초) 대기 후 다음 페이지 요청
    3. 쓰로틀링 에러 → 같은 페이지를 고정 간격(2초)으로 최대 10회 재시도
       재시도 소진 시 RateLimitExhausted 리포트 후 중단
    4. 그 외 에러 → RemoteError 리포트 후 중단 (재시도 없음)

Example:
    caller = RetryingPaginatedCaller(make_client_factory(broker), reporter=reporter)

    reservations = caller.call(
        account_region,
        "describe_instances",
        params={"Filters": [...]},
        data_key="Reservations",
    )
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from ec2_inventory.exceptions import RateLimitExhausted, RemoteCallError, RemoteError

from .client import get_client
from .decorators import DEFAULT_RETRY_CONFIG, RetryConfig, is_retryable
from .errors import ErrorReporter, safe_report

if TYPE_CHECKING:
    from ec2_inventory.auth.broker import CredentialBroker
    from ec2_inventory.auth.types import AccountRegion

logger = logging.getLogger(__name__)

# (account_region, service) -> boto3 client
ClientFactory = Callable[["AccountRegion", str], Any]

DEFAULT_TOKEN_KEY = "NextToken"


def make_client_factory(broker: CredentialBroker, max_attempts: int = 1) -> ClientFactory:
    """CredentialBroker 자격증명을 사용하는 client 팩토리 생성

    쓰로틀링 재시도는 RetryingPaginatedCaller가 담당하므로
    기본적으로 botocore 재시도를 끈 client를 생성합니다.
    """

    def factory(account_region: AccountRegion, service: str) -> Any:
        session = broker.session_for(account_region, account_region.region)
        return get_client(session, service, region_name=account_region.region, max_attempts=max_attempts)

    return factory


class RetryingPaginatedCaller:
    """페이지네이션 + 쓰로틀링 재시도 호출기

    Attributes:
        retry_config: 재시도/페이지 대기 설정
        service: 호출할 AWS 서비스 이름
        token_key: 페이지네이션 토큰 필드 이름
    """

    def __init__(
        self,
        client_factory: ClientFactory,
        reporter: ErrorReporter | None = None,
        retry_config: RetryConfig | None = None,
        service: str = "ec2",
        token_key: str = DEFAULT_TOKEN_KEY,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """초기화

        Args:
            client_factory: (account_region, service) -> client
            reporter: 에러 리포터 (None이면 로깅만)
            retry_config: 재시도 설정 (None이면 기본: 10회, 2초)
            service: AWS 서비스 이름
            token_key: 페이지네이션 토큰 필드 이름
            sleep: 대기 함수 (테스트용)
        """
        self._client_factory = client_factory
        self._reporter = reporter
        self.retry_config = retry_config or DEFAULT_RETRY_CONFIG
        self.service = service
        self.token_key = token_key
        self._sleep = sleep

    def call(
        self,
        account_region: AccountRegion,
        operation_name: str,
        params: dict[str, Any] | None = None,
        data_key: str = "Reservations",
        token_key: str | None = None,
    ) -> list[Any]:
        """페이지네이션 API를 끝까지 호출하여 결과 항목을 합쳐 반환

        Args:
            account_region: 대상 계정/리전
            operation_name: boto3 client 메서드 이름 (예: "describe_instances")
            params: API 파라미터 (변경되지 않음)
            data_key: 응답에서 항목을 꺼낼 필드 이름
            token_key: 페이지네이션 토큰 필드 이름 (None이면 self.token_key)

        Returns:
            모든 페이지 항목을 페이지 순서대로 합친 리스트.
            중간에 에러가 발생하면 그때까지의 부분 결과.
        """
        client = self._client_factory(account_region, self.service)
        method = getattr(client, operation_name)

        token_key = token_key or self.token_key
        request = dict(params or {})
        result: list[Any] = []
        page = 0

        while True:
            page += 1
            response = self._call_page(method, request, account_region, operation_name)
            if response is None:
                break

            items = response.get(data_key)
            if isinstance(items, list):
                result.extend(items)

            next_token = response.get(token_key)
            if not next_token:
                break

            request[token_key] = next_token
            # 다음 페이지 전 대기 (쓰로틀링 예방)
            self._sleep(self.retry_config.page_delay)

        logger.debug(
            "[%s] %s 완료: %d페이지, %d개 항목", account_region, operation_name, page, len(result)
        )
        return result

    def _call_page(
        self,
        method: Callable[..., Any],
        request: dict[str, Any],
        account_region: AccountRegion,
        operation_name: str,
    ) -> dict[str, Any] | None:
        """단일 페이지 호출 (쓰로틀링 재시도 포함)

        Returns:
            응답 딕셔너리 또는 None (에러 리포트 후 중단해야 하는 경우)
        """
        retries = 0

        while True:
            try:
                return method(**request) or {}
            except Exception as e:
                if is_retryable(e) and retries < self.retry_config.max_retries:
                    delay = self.retry_config.get_delay(retries)
                    retries += 1
                    logger.info(
                        "[%s] %s 쓰로틀링, %.1f초 후 재시도 (시도: %d)",
                        account_region,
                        operation_name,
                        delay,
                        retries,
                    )
                    self._sleep(delay)
                    continue

                error: RemoteCallError
                if is_retryable(e):
                    error = RateLimitExhausted(operation_name, attempts=retries + 1, cause=e)
                else:
                    error = RemoteError.from_client_error(operation_name, e)

                logger.warning("[%s] %s", account_region, error.message)
                safe_report(self._reporter, f"[{account_region}] {error}")
                return None
