"""
ec2_inventory/parallel/executor.py - 계정/리전 병렬 실행기

Map-Reduce 패턴으로 (계정, 리전) 작업을 병렬 처리합니다.
ThreadPoolExecutor 기반이며, 작업별 실패는 서로 격리되어 TaskResult로 수집됩니다.

주요 구성 요소:
- ParallelConfig: 병렬 실행 설정 (워커 수, 전체 제한 시간)
- ParallelPairExecutor: 작업 목록 병렬 실행기 (결과는 입력 순서 유지)

Example:
    executor = ParallelPairExecutor(ParallelConfig(max_workers=8))
    result = executor.execute(account_regions, fetch_instances, label=str)

    records = result.get_flat_data()
    print(f"성공: {result.success_count}, 실패: {result.error_count}")
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Sequence
from concurrent.futures import Future, ThreadPoolExecutor, wait
from dataclasses import dataclass
from typing import TypeVar

from .decorators import categorize_error, get_error_code
from .types import ParallelExecutionResult, TaskError, TaskResult

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")


def _clear_exception_chain(e: BaseException) -> None:
    """traceback + chained exception 메모리 누수 방지"""
    e.__traceback__ = None
    if e.__context__ is not None:
        e.__context__.__traceback__ = None
    if e.__cause__ is not None:
        e.__cause__.__traceback__ = None


@dataclass
class ParallelConfig:
    """병렬 실행 설정

    Attributes:
        max_workers: 최대 동시 스레드 수 (1~100)
        timeout: 전체 실행 제한 시간 (초, None이면 무제한)
    """

    max_workers: int = 8
    timeout: float | None = None

    def __post_init__(self) -> None:
        if self.max_workers < 1:
            raise ValueError(f"max_workers must be >= 1, got {self.max_workers}")
        if self.max_workers > 100:
            self.max_workers = 100
        if self.timeout is not None and self.timeout <= 0:
            raise ValueError(f"timeout must be > 0, got {self.timeout}")


class ParallelPairExecutor:
    """작업 목록 병렬 실행기

    특징:
    - ThreadPoolExecutor 기반 병렬 처리
    - 작업별 예외 격리 (하나의 실패가 다른 작업에 영향 없음)
    - 결과는 입력 순서 유지
    - 전체 제한 시간 초과 시 대기 중인 작업 취소 후 TimeoutError
    """

    def __init__(self, config: ParallelConfig | None = None):
        self.config = config or ParallelConfig()

    def execute(
        self,
        items: Sequence[T],
        func: Callable[[T], R],
        label: Callable[[T], str] = str,
    ) -> ParallelExecutionResult[R]:
        """작업 함수를 모든 항목에 병렬 실행

        Args:
            items: 작업 입력 목록 (예: AccountRegion 목록)
            func: 항목 하나를 처리하는 함수
            label: 로그/에러용 식별자 생성 함수

        Returns:
            ParallelExecutionResult[R]: 입력 순서를 따르는 결과

        Raises:
            TimeoutError: config.timeout 초과 시
        """
        if not items:
            logger.debug("실행할 작업이 없습니다")
            return ParallelExecutionResult()

        start_time = time.monotonic()
        workers = min(self.config.max_workers, len(items))
        logger.debug("병렬 실행 시작: %d개 작업, max_workers=%d", len(items), workers)

        executor = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="inventory")
        try:
            futures: list[Future[TaskResult[R]]] = [
                executor.submit(self._execute_single, func, item, label(item)) for item in items
            ]
            done, not_done = wait(futures, timeout=self.config.timeout)
            if not_done:
                for future in not_done:
                    future.cancel()
                raise TimeoutError(
                    f"{len(not_done)}/{len(items)}개 작업이 {self.config.timeout}초 내에 끝나지 않음"
                )
        finally:
            # 제한 시간 초과 시 실행 중인 스레드를 기다리지 않음
            executor.shutdown(wait=False, cancel_futures=True)

        results = tuple(future.result() for future in futures)
        exec_result = ParallelExecutionResult(results=results)

        total_ms = (time.monotonic() - start_time) * 1000
        logger.debug(
            "병렬 실행 완료: 성공 %d, 실패 %d, 총 %.0fms",
            exec_result.success_count,
            exec_result.error_count,
            total_ms,
        )
        return exec_result

    @staticmethod
    def _execute_single(func: Callable[[T], R], item: T, identifier: str) -> TaskResult[R]:
        """단일 작업 실행 (워커 스레드 내에서 호출)"""
        start_time = time.monotonic()
        try:
            data = func(item)
            return TaskResult(
                identifier=identifier,
                success=True,
                data=data,
                duration_ms=(time.monotonic() - start_time) * 1000,
            )
        except Exception as e:
            logger.error("작업 실행 중 예외 [%s]: %s", identifier, e)
            _clear_exception_chain(e)
            return TaskResult(
                identifier=identifier,
                success=False,
                error=TaskError(
                    identifier=identifier,
                    category=categorize_error(e),
                    error_code=get_error_code(e),
                    message=str(e),
                    original_exception=e,
                ),
                duration_ms=(time.monotonic() - start_time) * 1000,
            )
