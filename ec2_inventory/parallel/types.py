"""
ec2_inventory/parallel/types.py - 병렬 실행 결과 타입

주요 구성 요소:
- ErrorCategory: 에러 분류
- TaskError: 개별 작업 실패 정보
- TaskResult: 개별 작업 결과 (성공 데이터 또는 에러)
- ParallelExecutionResult: 전체 실행 결과 (입력 순서 유지)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Generic, TypeVar

T = TypeVar("T")


class ErrorCategory(Enum):
    """에러 카테고리"""

    THROTTLING = "throttling"
    ACCESS_DENIED = "access_denied"
    NOT_FOUND = "not_found"
    EXPIRED_TOKEN = "expired_token"
    TIMEOUT = "timeout"
    NETWORK = "network"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class TaskError:
    """작업 실패 정보

    Attributes:
        identifier: 작업 식별자 (예: "계정이름/리전")
        category: 에러 카테고리
        error_code: AWS 에러 코드 또는 예외 클래스명
        message: 에러 메시지
        original_exception: 원본 예외
    """

    identifier: str
    category: ErrorCategory
    error_code: str
    message: str
    original_exception: BaseException | None = field(default=None, compare=False, repr=False)

    def __str__(self) -> str:
        return f"[{self.identifier}] {self.error_code}: {self.message}"


@dataclass(frozen=True)
class TaskResult(Generic[T]):
    """개별 작업 결과"""

    identifier: str
    success: bool
    data: T | None = None
    error: TaskError | None = None
    duration_ms: float = 0.0


@dataclass(frozen=True)
class ParallelExecutionResult(Generic[T]):
    """병렬 실행 전체 결과

    results는 입력 작업 순서를 그대로 따릅니다.
    """

    results: tuple[TaskResult[T], ...] = ()

    @property
    def success_count(self) -> int:
        return sum(1 for r in self.results if r.success)

    @property
    def error_count(self) -> int:
        return sum(1 for r in self.results if not r.success)

    def get_data(self) -> list[T]:
        """성공한 작업의 데이터 목록"""
        return [r.data for r in self.results if r.success and r.data is not None]

    def get_flat_data(self) -> list:
        """성공한 작업의 리스트 데이터를 하나로 합침"""
        flat: list = []
        for data in self.get_data():
            if isinstance(data, (list, tuple)):
                flat.extend(data)
            else:
                flat.append(data)
        return flat

    def get_errors(self) -> list[TaskError]:
        """실패한 작업의 에러 목록"""
        return [r.error for r in self.results if not r.success and r.error is not None]

    def get_error_summary(self) -> str:
        """에러 코드별 건수 요약"""
        errors = self.get_errors()
        if not errors:
            return "에러 없음"

        by_code: dict[str, int] = {}
        for e in errors:
            by_code[e.error_code] = by_code.get(e.error_code, 0) + 1

        parts = [f"{code}: {count}건" for code, count in sorted(by_code.items())]
        return f"에러 {len(errors)}건 ({', '.join(parts)})"
