"""
ec2_inventory/parallel/errors.py - 에러 리포터 (운영 알림 채널)

콘솔 로깅과 별개로 운영자에게 노출할 에러를 전달하는 사이드 채널입니다.
리포터 호출은 fire-and-forget이며 리포터 내부 실패가 수집 경로로 전파되지 않습니다.

주요 구성 요소:
- ErrorReporter: report_error(message) 프로토콜
- ReportedError: 리포트된 에러 기록
- LoggingErrorReporter: 로깅 + 최근 에러 보관 (기본 구현, 스레드 세이프)
- safe_report: 리포터 예외를 삼키고 로깅만 하는 헬퍼

Example:
    reporter = LoggingErrorReporter()

    safe_report(reporter, "Throttle issue with AWS function, maximum retries exceeded")

    for err in reporter.errors:
        print(err)
"""

from __future__ import annotations

import logging
import threading
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from typing import Protocol, runtime_checkable

logger = logging.getLogger(__name__)

# 운영 알림용 logger (콘솔 로그와 분리하여 핸들러를 붙일 수 있음)
alert_logger = logging.getLogger("ec2_inventory.alerts")

DEFAULT_HISTORY_SIZE = 500


@runtime_checkable
class ErrorReporter(Protocol):
    """운영 알림 사이드 채널"""

    def report_error(self, message: str) -> None: ...


@dataclass(frozen=True)
class ReportedError:
    """리포트된 에러 기록

    Attributes:
        message: 에러 메시지
        timestamp: 리포트 시각
    """

    message: str
    timestamp: datetime = field(default_factory=datetime.now)

    def __str__(self) -> str:
        return f"[{self.timestamp:%Y-%m-%d %H:%M:%S}] {self.message}"


class LoggingErrorReporter:
    """로깅 기반 에러 리포터

    ec2_inventory.alerts logger에 ERROR 레벨로 기록하고
    최근 에러를 제한된 크기로 보관합니다.
    """

    def __init__(self, history_size: int = DEFAULT_HISTORY_SIZE):
        """초기화

        Args:
            history_size: 보관할 최근 에러 수
        """
        self._errors: deque[ReportedError] = deque(maxlen=history_size)
        self._lock = threading.Lock()

    def report_error(self, message: str) -> None:
        """에러 리포트 (로깅 + 보관)"""
        with self._lock:
            self._errors.append(ReportedError(message=message))
        alert_logger.error(message)

    @property
    def errors(self) -> list[ReportedError]:
        """보관된 에러의 복사본 반환 (오래된 순)"""
        with self._lock:
            return list(self._errors)

    @property
    def has_errors(self) -> bool:
        with self._lock:
            return len(self._errors) > 0

    def get_summary(self) -> str:
        """보관된 에러 요약 문자열"""
        with self._lock:
            if not self._errors:
                return "에러 없음"
            return f"에러 {len(self._errors)}건 (최근: {self._errors[-1].message})"

    def clear(self) -> None:
        with self._lock:
            self._errors.clear()


def safe_report(reporter: ErrorReporter | None, message: str) -> None:
    """안전한 에러 리포트 (reporter가 None이거나 실패해도 동작)

    reporter가 없으면 로깅만 수행합니다.
    """
    if reporter is None:
        logger.error(message)
        return

    try:
        reporter.report_error(message)
    except Exception as e:
        logger.warning("에러 리포터 호출 실패: %s (원본 메시지: %s)", e, message)
