"""
tests/conftest.py - pytest 공통 픽스처

AWS API 모킹과 테스트 헬퍼를 제공합니다.

Usage:
    def test_something(account, clock, make_client_error):
        # account: 테스트용 AccountConfig
        # clock: 수동으로 진행시키는 시계
        # make_client_error: botocore ClientError 생성 함수
        pass
"""

import os
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError

from ec2_inventory.auth.types import AccountConfig, AccountRegion
from ec2_inventory.parallel.errors import LoggingErrorReporter

# =============================================================================
# 환경 설정
# =============================================================================


@pytest.fixture(autouse=True)
def setup_test_environment():
    """테스트 환경 설정"""
    # 테스트용 환경 변수 설정 (실제 자격증명 사용 방지)
    os.environ.setdefault("AWS_DEFAULT_REGION", "eu-west-1")
    os.environ.setdefault("AWS_ACCESS_KEY_ID", "testing")
    os.environ.setdefault("AWS_SECRET_ACCESS_KEY", "testing")
    os.environ.setdefault("AWS_SECURITY_TOKEN", "testing")
    os.environ.setdefault("AWS_SESSION_TOKEN", "testing")

    yield


# =============================================================================
# 시간
# =============================================================================


class FakeClock:
    """수동으로 진행시키는 시계"""

    def __init__(self, start: datetime | None = None):
        self.now = start or datetime(2024, 1, 1, 0, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float = 0, minutes: float = 0, hours: float = 0) -> None:
        self.now += timedelta(seconds=seconds, minutes=minutes, hours=hours)


@pytest.fixture
def clock():
    """2024-01-01 00:00 UTC에서 시작하는 시계"""
    return FakeClock()


@pytest.fixture
def sleeps():
    """sleep 대신 대기 시간을 기록하는 리스트

    Usage:
        caller = RetryingPaginatedCaller(..., sleep=sleeps.append)
    """
    return []


# =============================================================================
# 계정
# =============================================================================


@pytest.fixture
def account():
    """테스트용 계정"""
    return AccountConfig(id="123456789012", name="Production", role_name="InventoryReadRole")


@pytest.fixture
def second_account():
    """두 번째 테스트용 계정"""
    return AccountConfig(id="210987654321", name="Staging", role_name="InventoryReadRole")


@pytest.fixture
def account_region(account):
    """Production/eu-west-1"""
    return AccountRegion(account=account, region="eu-west-1")


# =============================================================================
# AWS 모킹 픽스처
# =============================================================================


@pytest.fixture
def make_client_error():
    """botocore ClientError 생성 함수"""

    def _make(code: str, message: str = "error", operation: str = "DescribeInstances") -> ClientError:
        return ClientError({"Error": {"Code": code, "Message": message}}, operation)

    return _make


@pytest.fixture
def reporter():
    """기록용 에러 리포터"""
    return LoggingErrorReporter()


@pytest.fixture
def mock_ec2_client():
    """EC2 클라이언트 모킹"""
    mock_client = MagicMock()

    # describe_instances 기본 응답
    mock_client.describe_instances.return_value = {
        "Reservations": [
            {
                "Instances": [
                    {
                        "InstanceId": "i-1234567890abcdef0",
                        "InstanceType": "t3.micro",
                        "State": {"Name": "running"},
                        "Tags": [{"Key": "Name", "Value": "test-instance"}],
                        "PrivateIpAddress": "10.0.0.1",
                    }
                ]
            }
        ]
    }

    mock_client.describe_regions.return_value = {
        "Regions": [
            {"RegionName": "eu-west-1"},
            {"RegionName": "us-east-1"},
        ]
    }

    yield mock_client


@pytest.fixture
def instance_data():
    """describe_instances 인스턴스 항목 생성 함수"""

    def _make(instance_id: str, name: str | None = None, **fields) -> dict:
        data = {
            "InstanceId": instance_id,
            "InstanceType": "t3.micro",
            "State": {"Name": "running"},
            **fields,
        }
        if name is not None:
            data["Tags"] = [{"Key": "Name", "Value": name}]
        return data

    return _make
