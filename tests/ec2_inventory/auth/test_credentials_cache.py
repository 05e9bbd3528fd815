"""
ec2_inventory/auth/cache.py 단위 테스트

CacheEntry, CredentialsCache 테스트.
"""

import threading
from datetime import datetime, timedelta, timezone

from ec2_inventory.auth.cache import CacheEntry, CredentialsCache
from ec2_inventory.auth.types import Credential

# =============================================================================
# CacheEntry 테스트
# =============================================================================


class TestCacheEntry:
    """CacheEntry 테스트"""

    def test_is_expired_with_no_expiry(self):
        """만료 시간 없으면 만료되지 않음"""
        entry = CacheEntry(value="test")
        assert entry.is_expired() is False

    def test_is_expired_with_past_expiry(self):
        """과거 만료 시간이면 만료됨"""
        past = datetime.now(timezone.utc) - timedelta(hours=1)
        entry = CacheEntry(value="test", expires_at=past)
        assert entry.is_expired() is True

    def test_is_expired_at_exact_expiry(self):
        """만료 시각과 같으면 만료됨"""
        now = datetime(2024, 1, 1, tzinfo=timezone.utc)
        entry = CacheEntry(value="test", expires_at=now)
        assert entry.is_expired(now) is True

    def test_is_expired_with_buffer(self):
        """버퍼 시간 내이면 만료로 간주"""
        now = datetime(2024, 1, 1, tzinfo=timezone.utc)
        entry = CacheEntry(value="test", expires_at=now + timedelta(seconds=30))
        assert entry.is_expired(now, buffer_seconds=60) is True
        assert entry.is_expired(now, buffer_seconds=10) is False

    def test_remaining_seconds(self):
        """남은 시간 계산"""
        now = datetime(2024, 1, 1, tzinfo=timezone.utc)
        entry = CacheEntry(value="test", expires_at=now + timedelta(minutes=5))
        assert entry.remaining_seconds(now) == 300
        assert entry.remaining_seconds(now + timedelta(minutes=10)) == 0


# =============================================================================
# CredentialsCache 테스트
# =============================================================================


def _credential() -> Credential:
    return Credential(access_key_id="AKIA", secret_access_key="secret", session_token="token")


class TestCredentialsCache:
    """CredentialsCache 테스트"""

    def test_make_key_is_session_name_plus_role_arn(self):
        """캐시 키 = 세션 이름 + 역할 ARN"""
        key = CredentialsCache.make_key("arn:aws:iam::123456789012:role/Reader", "Reader_session")
        assert key == "Reader_sessionarn:aws:iam::123456789012:role/Reader"

    def test_set_and_get(self, clock):
        """저장 후 조회"""
        cache = CredentialsCache(clock=clock)
        credential = _credential()
        cache.set("key", credential)

        entry = cache.get_entry("key")
        assert entry is not None
        assert entry.value is credential

    def test_get_nonexistent(self, clock):
        """없는 키 조회"""
        cache = CredentialsCache(clock=clock)
        assert cache.get_entry("missing") is None

    def test_none_value_is_cached(self, clock):
        """None(실패)도 캐시 항목으로 반환"""
        cache = CredentialsCache(clock=clock)
        cache.set("key", None)

        entry = cache.get_entry("key")
        assert entry is not None
        assert entry.value is None

    def test_entry_expires_after_ttl(self, clock):
        """TTL 경과 후 만료"""
        cache = CredentialsCache(default_ttl_seconds=3300, clock=clock)
        cache.set("key", _credential())

        clock.advance(minutes=54, seconds=59)
        assert cache.get_entry("key") is not None

        clock.advance(seconds=1)
        assert cache.get_entry("key") is None

    def test_len_excludes_expired(self, clock):
        """만료 항목은 개수에서 제외"""
        cache = CredentialsCache(default_ttl_seconds=60, clock=clock)
        cache.set("a", _credential())
        clock.advance(seconds=30)
        cache.set("b", _credential())

        assert len(cache) == 2
        clock.advance(seconds=31)
        assert len(cache) == 1

    def test_clear(self, clock):
        """전체 삭제"""
        cache = CredentialsCache(clock=clock)
        cache.set("a", _credential())
        cache.clear()
        assert len(cache) == 0

    def test_thread_safety(self, clock):
        """동시 접근"""
        cache = CredentialsCache(clock=clock)
        errors = []

        def worker(n):
            try:
                for i in range(50):
                    cache.set(f"key-{n}-{i}", _credential())
                    cache.get_entry(f"key-{n}-{i}")
            except Exception as e:
                errors.append(e)

        threads = [threading.Thread(target=worker, args=(n,)) for n in range(5)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert errors == []
        assert len(cache) == 250


class TestCredential:
    """Credential 테스트"""

    def test_repr_hides_secrets(self):
        """repr에 시크릿이 노출되지 않음"""
        text = repr(_credential())
        assert "secret" not in text
        assert "token" not in text

    def test_to_session_kwargs(self):
        """boto3.Session 인자 변환"""
        kwargs = _credential().to_session_kwargs()
        assert kwargs == {
            "aws_access_key_id": "AKIA",
            "aws_secret_access_key": "secret",
            "aws_session_token": "token",
        }
