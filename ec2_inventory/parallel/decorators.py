"""
ec2_inventory/parallel/decorators.py - AWS API 에러 분류 및 재시도 설정

주요 구성 요소:
- RetryConfig: 쓰로틀링 재시도 설정 (기본: 고정 2초 대기, 최대 10회)
- categorize_error: 예외를 ErrorCategory로 분류
- is_retryable: 재시도 가능 여부 판단 (쓰로틀링만 재시도)

재시도 정책:
    쓰로틀링 에러 발생 시 같은 페이지를 고정 간격으로 재시도합니다.
    대기는 매 재시도 직전에만 적용되며 마지막 실패 이후에는 대기하지 않습니다.
    쓰로틀링 외의 에러는 재시도하지 않습니다.
"""

import logging
import random
from dataclasses import dataclass

from ec2_inventory.exceptions import get_error_code, is_access_denied, is_throttling

from .types import ErrorCategory

logger = logging.getLogger(__name__)

__all__ = [
    "RetryConfig",
    "DEFAULT_RETRY_CONFIG",
    "categorize_error",
    "get_error_code",
    "is_retryable",
]


@dataclass
class RetryConfig:
    """재시도 설정

    exponential_base가 1.0이고 jitter가 False이면 고정 간격 재시도입니다.

    Attributes:
        max_retries: 최대 재시도 횟수 (0이면 재시도 안함, 총 시도는 max_retries + 1)
        base_delay: 기본 대기 시간 (초)
        max_delay: 최대 대기 시간 (초)
        exponential_base: 지수 백오프 밑수
        jitter: 지터 사용 여부
        page_delay: 다음 페이지 요청 전 대기 시간 (초)
    """

    max_retries: int = 10
    base_delay: float = 2.0
    max_delay: float = 30.0
    exponential_base: float = 1.0
    jitter: bool = False
    page_delay: float = 0.5

    def __post_init__(self) -> None:
        if self.max_retries < 0:
            raise ValueError(f"max_retries must be >= 0, got {self.max_retries}")

    def get_delay(self, attempt: int) -> float:
        """재시도 대기 시간 계산

        Args:
            attempt: 현재 재시도 순번 (0부터 시작)

        Returns:
            대기 시간 (초)
        """
        delay = self.base_delay * (self.exponential_base**attempt)
        delay = min(delay, self.max_delay)

        if self.jitter:
            delay = random.uniform(0, delay)

        return delay


# 기본 재시도 설정
DEFAULT_RETRY_CONFIG = RetryConfig()


def categorize_error(error: Exception) -> ErrorCategory:
    """예외 객체를 분석하여 ErrorCategory로 분류

    Args:
        error: 분류할 예외

    Returns:
        에러 카테고리
    """
    if is_throttling(error):
        return ErrorCategory.THROTTLING
    if is_access_denied(error):
        return ErrorCategory.ACCESS_DENIED

    response = getattr(error, "response", None)
    if response is not None:
        error_code = response.get("Error", {}).get("Code", "")

        if "NotFound" in error_code:
            return ErrorCategory.NOT_FOUND
        if "Timeout" in error_code:
            return ErrorCategory.TIMEOUT
        if error_code in ("ExpiredToken", "ExpiredTokenException"):
            return ErrorCategory.EXPIRED_TOKEN

    # 네트워크 에러
    if isinstance(error, (ConnectionError, TimeoutError, OSError)):
        return ErrorCategory.NETWORK

    return ErrorCategory.UNKNOWN


def is_retryable(error: Exception) -> bool:
    """재시도 가능한 에러인지 확인 (쓰로틀링만 해당)"""
    return is_throttling(error)
