# ec2_inventory/auth/types.py
"""
ec2_inventory/auth/types.py - 계정/자격증명 핵심 타입 정의

포함 항목:
    - AccountConfig: 설정 파일의 계정 정보 (불변)
    - AccountRegion: 계정 + 리전, 인벤토리 수집의 작업 단위 (불변)
    - Credential: AssumeRole로 발급받은 임시 자격증명
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

logger = logging.getLogger(__name__)


# =============================================================================
# Account
# =============================================================================


@dataclass(frozen=True)
class AccountConfig:
    """설정 파일에서 로드한 AWS 계정 정보

    Attributes:
        id: AWS 계정 ID (12자리)
        name: 표시용 계정 이름
        role_name: AssumeRole 대상 역할 이름
    """

    id: str
    name: str
    role_name: str

    def __post_init__(self):
        """계정 ID가 12자리 숫자가 아닌 경우 경고를 출력합니다."""
        if not self.id or len(self.id) != 12 or not self.id.isdigit():
            logger.warning("유효하지 않은 AWS 계정 ID: '%s' (12자리 숫자여야 함)", self.id)

    @property
    def role_arn(self) -> str:
        """AssumeRole 대상 역할 ARN"""
        return f"arn:aws:iam::{self.id}:role/{self.role_name}"

    @property
    def session_name(self) -> str:
        """AssumeRole 세션 이름"""
        return f"{self.role_name}_session"

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AccountConfig:
        """설정 딕셔너리에서 생성

        기존 설정 파일 형식(roleName)과 snake_case(role_name)를 모두 허용합니다.
        """
        role_name = data.get("roleName", data.get("role_name"))
        return cls(id=str(data["id"]), name=str(data["name"]), role_name=str(role_name))


@dataclass(frozen=True)
class AccountRegion:
    """계정 + 리전 조합

    인벤토리 수집의 작업 단위입니다. 레지스트리 설정 시 한 번 생성되며
    프로세스가 재시작될 때까지 바뀌지 않습니다.
    """

    account: AccountConfig
    region: str

    @property
    def id(self) -> str:
        return self.account.id

    @property
    def name(self) -> str:
        return self.account.name

    @property
    def role_name(self) -> str:
        return self.account.role_name

    def __str__(self) -> str:
        return f"{self.account.name}/{self.region}"


# =============================================================================
# Credential
# =============================================================================


@dataclass(frozen=True)
class Credential:
    """AssumeRole 임시 자격증명

    Attributes:
        access_key_id: 액세스 키 ID
        secret_access_key: 시크릿 액세스 키
        session_token: 세션 토큰
        obtained_at: 발급 시각 (UTC)
    """

    access_key_id: str
    secret_access_key: str = field(repr=False)
    session_token: str = field(repr=False)
    obtained_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_session_kwargs(self) -> dict[str, str]:
        """boto3.Session 생성 인자로 변환"""
        return {
            "aws_access_key_id": self.access_key_id,
            "aws_secret_access_key": self.secret_access_key,
            "aws_session_token": self.session_token,
        }
