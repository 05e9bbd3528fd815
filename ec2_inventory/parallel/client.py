"""
ec2_inventory/parallel/client.py - boto3 client 생성 헬퍼

타임아웃과 botocore 재시도 횟수가 설정된 boto3 client를 생성합니다.

페이지네이션 호출은 쓰로틀링 재시도를 RetryingPaginatedCaller가 직접 처리하므로
botocore 자체 재시도를 끈 client(max_attempts=1)를 사용합니다.

Example:
    sts = get_client(session, "sts")
    ec2 = get_client(session, "ec2", region_name="eu-west-1", max_attempts=1)
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from botocore.config import Config

if TYPE_CHECKING:
    import boto3

DEFAULT_MAX_ATTEMPTS = 5
CONNECT_TIMEOUT = 10  # 초
READ_TIMEOUT = 30  # 초


def get_client(
    session: boto3.Session,
    service_name: str,
    region_name: str | None = None,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
) -> Any:
    """boto3 client 생성

    Args:
        session: boto3 Session
        service_name: AWS 서비스 이름 (ec2, sts)
        region_name: 리전 (None이면 세션 기본값)
        max_attempts: botocore 최대 시도 횟수 (1이면 재시도 없음)
    """
    config = Config(
        retries={"max_attempts": max_attempts, "mode": "standard"},
        connect_timeout=CONNECT_TIMEOUT,
        read_timeout=READ_TIMEOUT,
    )
    return session.client(service_name, region_name=region_name, config=config)
