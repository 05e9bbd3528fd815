# ec2_inventory/auth/broker.py
"""
AssumeRole 자격증명 브로커

계정별 역할을 AssumeRole하여 임시 자격증명을 발급받고 55분 동안 캐시합니다.

정책:
- 캐시 키: 세션 이름 + 역할 ARN
- 유효한 캐시가 있으면 동일한 객체를 그대로 반환
- AssumeRole 실패 시 로깅 후 None을 같은 TTL 동안 캐시 (CACHE_FAILED_ASSUMPTIONS)
  → 영구적인 권한 오류가 있어도 STS를 반복 호출하지 않음
  → 호출자는 자격증명 없이(부트스트랩 세션으로) 진행
"""

from __future__ import annotations

import logging
import threading
from typing import Protocol

import boto3

from ec2_inventory.exceptions import AssumeRoleError
from ec2_inventory.parallel.client import get_client

from .cache import Clock, CredentialsCache, utc_now
from .types import Credential

logger = logging.getLogger(__name__)

# STS 기본 세션 유효 시간은 1시간, 캐시는 55분
DEFAULT_CREDENTIAL_TTL = 3300

# AssumeRole 실패 결과도 TTL 동안 캐시
CACHE_FAILED_ASSUMPTIONS = True


class RoleAccount(Protocol):
    """AssumeRole 대상 (AccountConfig 또는 AccountRegion)"""

    @property
    def id(self) -> str: ...

    @property
    def name(self) -> str: ...

    @property
    def role_name(self) -> str: ...


def build_role_arn(account: RoleAccount) -> str:
    """계정 ID와 역할 이름으로 역할 ARN 생성"""
    return f"arn:aws:iam::{account.id}:role/{account.role_name}"


def build_session_name(account: RoleAccount) -> str:
    """역할 이름으로 세션 이름 생성"""
    return f"{account.role_name}_session"


class CredentialBroker:
    """계정별 임시 자격증명 발급 및 캐시

    Example:
        broker = CredentialBroker(boto3.Session())

        credential = broker.get_credentials(account)
        session = broker.session_for(account, "ap-northeast-2")
        ec2 = session.client("ec2", region_name="ap-northeast-2")
    """

    def __init__(
        self,
        bootstrap_session: boto3.Session,
        ttl_seconds: int = DEFAULT_CREDENTIAL_TTL,
        clock: Clock | None = None,
        cache: CredentialsCache | None = None,
    ):
        """초기화

        Args:
            bootstrap_session: STS 호출 및 자격증명 실패 시 사용할 기본 세션
            ttl_seconds: 자격증명 캐시 TTL (초)
            clock: 현재 시각 함수 (테스트용)
            cache: 외부에서 주입할 캐시 (None이면 생성)
        """
        self._bootstrap_session = bootstrap_session
        self._clock = clock or utc_now
        self._cache = cache or CredentialsCache(default_ttl_seconds=ttl_seconds, clock=self._clock)
        self._key_locks: dict[str, threading.Lock] = {}
        self._key_locks_guard = threading.Lock()

    @property
    def bootstrap_session(self) -> boto3.Session:
        return self._bootstrap_session

    @property
    def cache(self) -> CredentialsCache:
        return self._cache

    def _lock_for(self, key: str) -> threading.Lock:
        """캐시 키별 락 (같은 계정에 대한 동시 AssumeRole 방지)"""
        with self._key_locks_guard:
            lock = self._key_locks.get(key)
            if lock is None:
                lock = threading.Lock()
                self._key_locks[key] = lock
            return lock

    def get_credentials(self, account: RoleAccount) -> Credential | None:
        """계정 역할의 임시 자격증명 반환

        Args:
            account: AccountConfig 또는 AccountRegion

        Returns:
            Credential 또는 None (AssumeRole 실패 시, 캐시 기간 동안 유지)
        """
        role_arn = build_role_arn(account)
        session_name = build_session_name(account)
        key = CredentialsCache.make_key(role_arn, session_name)

        entry = self._cache.get_entry(key)
        if entry is not None:
            return entry.value

        with self._lock_for(key):
            # 대기 중 다른 스레드가 발급했을 수 있음
            entry = self._cache.get_entry(key)
            if entry is not None:
                return entry.value

            try:
                credential = self._assume_role(role_arn, session_name)
            except AssumeRoleError as e:
                logger.error("AWS 자격증명 로드 실패 [%s]: %s", account.name, e)
                if not CACHE_FAILED_ASSUMPTIONS:
                    return None
                credential = None

            self._cache.set(key, credential)
            return credential

    def _assume_role(self, role_arn: str, session_name: str) -> Credential:
        """STS AssumeRole 호출

        Raises:
            AssumeRoleError: 호출 실패 또는 응답 형식 오류
        """
        sts = get_client(self._bootstrap_session, "sts")

        try:
            response = sts.assume_role(RoleArn=role_arn, RoleSessionName=session_name)
            creds = response["Credentials"]
            return Credential(
                access_key_id=creds["AccessKeyId"],
                secret_access_key=creds["SecretAccessKey"],
                session_token=creds["SessionToken"],
                obtained_at=self._clock(),
            )
        except Exception as e:
            raise AssumeRoleError(role_arn, cause=e) from e

    def session_for(self, account: RoleAccount, region: str | None = None) -> boto3.Session:
        """계정용 boto3 Session 반환

        자격증명이 없으면(AssumeRole 실패) 부트스트랩 세션을 그대로 사용합니다.
        """
        credential = self.get_credentials(account)
        if credential is None:
            return self._bootstrap_session
        return boto3.Session(region_name=region, **credential.to_session_kwargs())
