"""
ec2_inventory/config.py - 설정 로드

계정 설정 파일(JSON/YAML) 로드, 환경 변수 기반 실행 설정, 부트스트랩 세션 생성을 담당합니다.

환경 변수:
    AWS_ACCOUNTS_CONFIG: 계정 설정 파일 경로 (기본: config/awsaccounts.json)
    ENVIRONMENT: "LOCALDEV"이면 공유 자격증명 파일의 default 프로파일 사용
    INVENTORY_REFRESH_MINUTES: 갱신 주기 (분, 기본: 30)
    INVENTORY_MAX_WORKERS: 계정/리전 동시 수집 수 (기본: 8)
    INVENTORY_REFRESH_TIMEOUT: 갱신 주기 제한 시간 (초, 기본: 없음)
    INVENTORY_BOOTSTRAP_REGION: 리전 목록 조회 리전 (기본: eu-west-1)

계정 설정 파일 형식:
    [
        {"id": "123456789012", "name": "Production", "roleName": "InventoryReadRole"}
    ]
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import boto3
import yaml  # type: ignore[import-untyped]

from ec2_inventory.auth.types import AccountConfig
from ec2_inventory.exceptions import ConfigLoadError

logger = logging.getLogger(__name__)

DEFAULT_ACCOUNTS_FILE = "config/awsaccounts.json"
LOCALDEV_ENVIRONMENT = "LOCALDEV"
LOCALDEV_PROFILE = "default"


@dataclass
class InventorySettings:
    """인벤토리 캐시 실행 설정

    Attributes:
        accounts_file: 계정 설정 파일 경로
        local_dev: True면 공유 자격증명 파일의 default 프로파일 사용
        bootstrap_region: describe_regions 호출 리전
        refresh_interval_minutes: 스케줄러 갱신 주기 (분)
        instance_cache_ttl: 인벤토리 캐시 TTL (초)
        credential_ttl: AssumeRole 자격증명 캐시 TTL (초)
        max_retries: 쓰로틀링 최대 재시도 횟수
        retry_delay: 쓰로틀링 재시도 간격 (초)
        page_delay: 페이지 간 대기 시간 (초)
        probe_max_results: 리전 탐색 호출의 MaxResults
        max_workers: 계정/리전 동시 수집 수
        refresh_timeout: 갱신 주기 제한 시간 (초, None이면 무제한)
    """

    accounts_file: str = DEFAULT_ACCOUNTS_FILE
    local_dev: bool = False
    bootstrap_region: str = "eu-west-1"
    refresh_interval_minutes: int = 30
    instance_cache_ttl: int = 3 * 60 * 60
    credential_ttl: int = 55 * 60
    max_retries: int = 10
    retry_delay: float = 2.0
    page_delay: float = 0.5
    probe_max_results: int = 5
    max_workers: int = 8
    refresh_timeout: float | None = None

    def __post_init__(self) -> None:
        if self.refresh_interval_minutes < 1:
            raise ValueError(f"refresh_interval_minutes must be >= 1, got {self.refresh_interval_minutes}")
        if self.max_workers < 1:
            raise ValueError(f"max_workers must be >= 1, got {self.max_workers}")

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None, **overrides: Any) -> InventorySettings:
        """환경 변수에서 설정 생성

        Args:
            environ: 환경 변수 딕셔너리 (None이면 os.environ)
            **overrides: 환경 변수보다 우선하는 값 (None은 무시)
        """
        env = os.environ if environ is None else environ
        values: dict[str, Any] = {
            "accounts_file": env.get("AWS_ACCOUNTS_CONFIG", DEFAULT_ACCOUNTS_FILE),
            "local_dev": env.get("ENVIRONMENT", "").upper() == LOCALDEV_ENVIRONMENT,
        }

        if env.get("INVENTORY_REFRESH_MINUTES"):
            values["refresh_interval_minutes"] = _parse_number(env, "INVENTORY_REFRESH_MINUTES", int)
        if env.get("INVENTORY_MAX_WORKERS"):
            values["max_workers"] = _parse_number(env, "INVENTORY_MAX_WORKERS", int)
        if env.get("INVENTORY_REFRESH_TIMEOUT"):
            values["refresh_timeout"] = _parse_number(env, "INVENTORY_REFRESH_TIMEOUT", float)
        if env.get("INVENTORY_BOOTSTRAP_REGION"):
            values["bootstrap_region"] = env["INVENTORY_BOOTSTRAP_REGION"]

        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)


def _parse_number(env: Mapping[str, str], name: str, kind: type) -> Any:
    try:
        return kind(env[name])
    except ValueError as e:
        raise ValueError(f"{name} 값이 올바르지 않음: {env[name]!r}") from e


def load_accounts(path: str | Path) -> list[AccountConfig]:
    """계정 설정 파일 로드

    JSON은 YAML의 부분집합이므로 yaml.safe_load로 두 형식을 모두 읽습니다.

    Args:
        path: 설정 파일 경로

    Returns:
        AccountConfig 목록 (파일 순서)

    Raises:
        ConfigLoadError: 파일이 없거나 형식이 올바르지 않은 경우
    """
    config_file = Path(path)
    if not config_file.exists():
        raise ConfigLoadError(str(path), "파일이 존재하지 않음")

    try:
        with config_file.open(encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        raise ConfigLoadError(str(path), "파일 파싱 실패", cause=e) from e

    # {"accounts": [...]} 형식도 허용
    if isinstance(data, dict) and "accounts" in data:
        data = data["accounts"]

    if not isinstance(data, list):
        raise ConfigLoadError(str(path), "계정 목록(list) 형식이어야 함")

    accounts: list[AccountConfig] = []
    for index, entry in enumerate(data):
        if not isinstance(entry, dict):
            raise ConfigLoadError(str(path), f"{index}번째 항목이 객체가 아님")

        missing = [k for k in ("id", "name") if not entry.get(k)]
        if not (entry.get("roleName") or entry.get("role_name")):
            missing.append("roleName")
        if missing:
            raise ConfigLoadError(str(path), f"{index}번째 항목에 필수 필드 누락: {', '.join(missing)}")

        # YAML 1.1은 따옴표 없는 0으로 시작하는 ID를 8진수로 읽으므로 복원할 수 없음
        if not isinstance(entry["id"], str):
            raise ConfigLoadError(
                str(path), f"{index}번째 항목의 account id는 따옴표로 감싼 문자열이어야 함: {entry['id']!r}"
            )

        accounts.append(AccountConfig.from_dict(entry))

    logger.info("계정 설정 로드: %s (%d개 계정)", config_file, len(accounts))
    return accounts


def create_bootstrap_session(settings: InventorySettings) -> boto3.Session:
    """STS 호출에 사용할 부트스트랩 세션 생성

    LOCALDEV 환경에서는 공유 자격증명 파일의 default 프로파일을,
    그 외에는 boto3 기본 자격증명 체인(환경 변수, 인스턴스 역할 등)을 사용합니다.
    """
    if settings.local_dev:
        logger.debug("로컬 개발 환경: '%s' 프로파일 사용", LOCALDEV_PROFILE)
        return boto3.Session(profile_name=LOCALDEV_PROFILE, region_name=settings.bootstrap_region)
    return boto3.Session(region_name=settings.bootstrap_region)
