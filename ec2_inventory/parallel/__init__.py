"""
ec2_inventory/parallel - 병렬 처리 / API 호출 모듈

멀티 계정/리전 AWS 호출을 안전하게 처리합니다.

주요 구성 요소:
- RetryingPaginatedCaller: NextToken 페이지네이션 + 쓰로틀링 재시도
- ParallelPairExecutor: (계정, 리전) 작업 병렬 실행기
- LoggingErrorReporter: 운영 알림 사이드 채널 기본 구현

Example:
    from ec2_inventory.parallel import RetryingPaginatedCaller, make_client_factory

    caller = RetryingPaginatedCaller(make_client_factory(broker), reporter=reporter)
    reservations = caller.call(pair, "describe_instances", data_key="Reservations")
"""

from .client import get_client
from .decorators import RetryConfig, categorize_error, is_retryable
from .errors import ErrorReporter, LoggingErrorReporter, ReportedError, safe_report
from .executor import ParallelConfig, ParallelPairExecutor
from .paginator import ClientFactory, RetryingPaginatedCaller, make_client_factory
from .types import ErrorCategory, ParallelExecutionResult, TaskError, TaskResult

__all__: list[str] = [
    # Caller
    "RetryingPaginatedCaller",
    "ClientFactory",
    "make_client_factory",
    # Executor
    "ParallelPairExecutor",
    "ParallelConfig",
    # Client
    "get_client",
    # Retry
    "RetryConfig",
    "categorize_error",
    "is_retryable",
    # Error reporting
    "ErrorReporter",
    "LoggingErrorReporter",
    "ReportedError",
    "safe_report",
    # Types
    "ErrorCategory",
    "TaskError",
    "TaskResult",
    "ParallelExecutionResult",
]
