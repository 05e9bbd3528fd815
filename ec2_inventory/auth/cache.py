# ec2_inventory/auth/cache.py
"""
AWS 자격증명 캐시 구현

- CacheEntry: 만료 시간이 있는 제네릭 캐시 항목
- CredentialsCache: 메모리 기반 임시 자격증명 캐시

설계 원칙:
- 만료로만 무효화 (명시적 폐기 없음)
- AssumeRole 실패 결과(None)도 동일한 TTL 동안 캐시
- 시각은 주입 가능한 clock으로 계산 (테스트 용이성)
"""

from __future__ import annotations

import threading
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Generic, TypeVar

from .types import Credential

T = TypeVar("T")

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """현재 UTC 시각"""
    return datetime.now(timezone.utc)


# =============================================================================
# Generic Cache Entry
# =============================================================================


@dataclass
class CacheEntry(Generic[T]):
    """캐시 항목을 나타내는 제네릭 데이터 클래스

    Attributes:
        value: 캐시된 값 (None도 유효한 값)
        created_at: 생성 시간 (UTC)
        expires_at: 만료 시간 (UTC, None이면 만료되지 않음)
    """

    value: T
    created_at: datetime = field(default_factory=utc_now)
    expires_at: datetime | None = None

    def is_expired(self, now: datetime | None = None, buffer_seconds: int = 0) -> bool:
        """캐시 항목이 만료되었는지 확인

        Args:
            now: 기준 시각 (None이면 현재 UTC)
            buffer_seconds: 만료 전 버퍼 시간 (초)

        Returns:
            True if 만료됨, False otherwise
        """
        if self.expires_at is None:
            return False

        now = now or utc_now()
        return now >= (self.expires_at - timedelta(seconds=buffer_seconds))

    def remaining_seconds(self, now: datetime | None = None) -> int | None:
        """남은 시간을 초 단위로 반환"""
        if self.expires_at is None:
            return None

        remaining = self.expires_at - (now or utc_now())
        return max(0, int(remaining.total_seconds()))


# =============================================================================
# Credentials Cache
# =============================================================================


class CredentialsCache:
    """메모리 기반 자격증명 캐시

    임시 자격증명(Role credentials)을 캐시하여 불필요한 STS 호출을 줄입니다.
    기본 TTL: 55분 (STS 기본 세션 유효 시간 1시간보다 짧게)

    Thread-safe 구현.
    """

    def __init__(self, default_ttl_seconds: int = 3300, clock: Clock | None = None):
        """CredentialsCache 초기화

        Args:
            default_ttl_seconds: 기본 TTL (초) - 기본 55분
            clock: 현재 시각 함수 (기본: UTC now)
        """
        self._cache: dict[str, CacheEntry[Credential | None]] = {}
        self._lock = threading.RLock()
        self._default_ttl = timedelta(seconds=default_ttl_seconds)
        self._clock = clock or utc_now

    @staticmethod
    def make_key(role_arn: str, session_name: str) -> str:
        """캐시 키 생성 (세션 이름 + 역할 ARN)"""
        return f"{session_name}{role_arn}"

    def get_entry(self, key: str) -> CacheEntry[Credential | None] | None:
        """유효한 캐시 항목 조회

        캐시된 값이 None(AssumeRole 실패)인 경우에도 항목 자체를 반환하므로
        호출자는 "캐시 없음"과 "실패가 캐시됨"을 구분할 수 있습니다.

        Returns:
            CacheEntry 또는 None (없거나 만료됨)
        """
        with self._lock:
            entry = self._cache.get(key)
            if entry is None:
                return None
            if entry.is_expired(self._clock()):
                del self._cache[key]
                return None
            return entry

    def set(self, key: str, credential: Credential | None) -> CacheEntry[Credential | None]:
        """자격증명 저장 (None 허용)"""
        now = self._clock()
        entry: CacheEntry[Credential | None] = CacheEntry(
            value=credential,
            created_at=now,
            expires_at=now + self._default_ttl,
        )
        with self._lock:
            self._cache[key] = entry
        return entry

    def clear(self) -> None:
        """모든 캐시 클리어"""
        with self._lock:
            self._cache.clear()

    def __len__(self) -> int:
        """유효한 캐시 항목 수"""
        with self._lock:
            now = self._clock()
            expired_keys = [key for key, entry in self._cache.items() if entry.is_expired(now)]
            for key in expired_keys:
                del self._cache[key]
            return len(self._cache)
