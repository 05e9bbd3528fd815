"""
tests/ec2_inventory/parallel/test_paginator.py - RetryingPaginatedCaller 테스트
"""

from unittest.mock import MagicMock

import pytest

from ec2_inventory.exceptions import RateLimitExhausted
from ec2_inventory.parallel.client import get_client
from ec2_inventory.parallel.decorators import RetryConfig
from ec2_inventory.parallel.paginator import RetryingPaginatedCaller, make_client_factory


def _caller(client, reporter=None, sleeps=None, **config):
    return RetryingPaginatedCaller(
        lambda pair, service: client,
        reporter=reporter,
        retry_config=RetryConfig(**config) if config else None,
        sleep=sleeps.append if sleeps is not None else (lambda _: None),
    )


class TestPagination:
    """NextToken 페이지네이션 테스트"""

    def test_single_page(self, account_region):
        """NextToken 없으면 한 번만 호출"""
        client = MagicMock()
        client.describe_instances.return_value = {"Reservations": [{"id": 1}]}

        result = _caller(client).call(account_region, "describe_instances")

        assert result == [{"id": 1}]
        client.describe_instances.assert_called_once_with()

    def test_three_pages_concatenated_in_order(self, account_region, sleeps):
        """3페이지 결과를 순서대로 합침"""
        client = MagicMock()
        client.describe_instances.side_effect = [
            {"Reservations": [{"id": 1}, {"id": 2}], "NextToken": "t1"},
            {"Reservations": [{"id": 3}], "NextToken": "t2"},
            {"Reservations": [{"id": 4}]},
        ]

        result = _caller(client, sleeps=sleeps).call(account_region, "describe_instances")

        assert [r["id"] for r in result] == [1, 2, 3, 4]
        calls = client.describe_instances.call_args_list
        assert calls[0].kwargs == {}
        assert calls[1].kwargs == {"NextToken": "t1"}
        assert calls[2].kwargs == {"NextToken": "t2"}

    def test_page_delay_between_pages_only(self, account_region, sleeps):
        """다음 페이지가 있을 때만 0.5초 대기"""
        client = MagicMock()
        client.describe_instances.side_effect = [
            {"Reservations": [], "NextToken": "t1"},
            {"Reservations": []},
        ]

        _caller(client, sleeps=sleeps).call(account_region, "describe_instances")

        assert sleeps == [0.5]

    def test_params_not_mutated(self, account_region):
        """전달한 params는 변경되지 않음"""
        client = MagicMock()
        client.describe_instances.side_effect = [
            {"Reservations": [], "NextToken": "t1"},
            {"Reservations": []},
        ]
        params = {"InstanceIds": ["i-1"]}

        _caller(client).call(account_region, "describe_instances", params)

        assert params == {"InstanceIds": ["i-1"]}
        assert client.describe_instances.call_args_list[1].kwargs == {"InstanceIds": ["i-1"], "NextToken": "t1"}

    def test_custom_data_key(self, account_region):
        """data_key로 응답 필드 선택"""
        client = MagicMock()
        client.describe_security_groups.return_value = {"SecurityGroups": [{"GroupId": "sg-1"}]}

        result = _caller(client).call(account_region, "describe_security_groups", data_key="SecurityGroups")

        assert result == [{"GroupId": "sg-1"}]

    def test_missing_data_key_yields_nothing(self, account_region):
        """응답에 data_key가 없으면 빈 결과"""
        client = MagicMock()
        client.describe_instances.return_value = {}

        assert _caller(client).call(account_region, "describe_instances") == []


class TestThrottlingRetry:
    """쓰로틀링 재시도 테스트"""

    def test_nine_throttles_then_success(self, account_region, make_client_error, reporter, sleeps):
        """9회 쓰로틀링 후 성공 → 결과 반환, 리포트 없음"""
        client = MagicMock()
        throttle = make_client_error("RequestLimitExceeded", "Request limit exceeded.")
        client.describe_instances.side_effect = [throttle] * 9 + [{"Reservations": [{"id": 1}]}]

        result = _caller(client, reporter, sleeps).call(account_region, "describe_instances")

        assert result == [{"id": 1}]
        assert client.describe_instances.call_count == 10
        assert sleeps == [2.0] * 9
        assert reporter.errors == []

    def test_ten_retries_then_success(self, account_region, make_client_error, reporter):
        """10회 재시도 후 11번째 시도 성공"""
        client = MagicMock()
        throttle = make_client_error("Throttling", "Rate exceeded")
        client.describe_instances.side_effect = [throttle] * 10 + [{"Reservations": [{"id": 1}]}]

        result = _caller(client, reporter).call(account_region, "describe_instances")

        assert result == [{"id": 1}]
        assert reporter.errors == []

    def test_eleven_throttles_reports_exhaustion(self, account_region, make_client_error, reporter, sleeps):
        """11회 연속 쓰로틀링 → RateLimitExhausted 리포트, 부분 결과 반환"""
        client = MagicMock()
        throttle = make_client_error("RequestLimitExceeded")
        client.describe_instances.side_effect = [{"Reservations": [{"id": 1}], "NextToken": "t1"}] + [throttle] * 11

        result = _caller(client, reporter, sleeps).call(account_region, "describe_instances")

        assert result == [{"id": 1}]
        assert client.describe_instances.call_count == 12
        # 페이지 대기 1회 + 재시도 대기 10회 (마지막 실패 후 대기 없음)
        assert sleeps == [0.5] + [2.0] * 10
        assert len(reporter.errors) == 1
        assert "Production/eu-west-1" in reporter.errors[0].message
        assert "11회 시도" in reporter.errors[0].message

    def test_rate_exceeded_message_is_retryable(self, account_region, make_client_error):
        """에러 코드와 무관하게 "Rate exceeded" 메시지는 재시도"""
        client = MagicMock()
        client.describe_instances.side_effect = [
            make_client_error("SomethingElse", "Rate exceeded"),
            {"Reservations": [{"id": 1}]},
        ]

        assert _caller(client).call(account_region, "describe_instances") == [{"id": 1}]

    def test_non_retryable_error_stops_without_retry(self, account_region, make_client_error, reporter, sleeps):
        """쓰로틀링 외 에러 → 재시도 없이 RemoteError 리포트"""
        client = MagicMock()
        client.describe_instances.side_effect = make_client_error("UnauthorizedOperation", "not allowed")

        result = _caller(client, reporter, sleeps).call(account_region, "describe_instances")

        assert result == []
        assert client.describe_instances.call_count == 1
        assert sleeps == []
        assert "UnauthorizedOperation" in reporter.errors[0].message

    def test_non_client_exception_is_reported(self, account_region, reporter):
        """일반 예외도 리포트 후 부분 결과 반환"""
        client = MagicMock()
        client.describe_instances.side_effect = ConnectionError("connection reset")

        assert _caller(client, reporter).call(account_region, "describe_instances") == []
        assert "ConnectionError" in reporter.errors[0].message

    def test_custom_max_retries(self, account_region, make_client_error, reporter):
        """max_retries 설정"""
        client = MagicMock()
        client.describe_instances.side_effect = make_client_error("Throttling")

        _caller(client, reporter, max_retries=2).call(account_region, "describe_instances")

        assert client.describe_instances.call_count == 3

    def test_reporter_failure_does_not_propagate(self, account_region, make_client_error):
        """리포터 내부 예외는 호출 경로로 전파되지 않음"""
        client = MagicMock()
        client.describe_instances.side_effect = make_client_error("InvalidParameterValue")
        broken = MagicMock()
        broken.report_error.side_effect = RuntimeError("alert channel down")

        assert _caller(client, broken).call(account_region, "describe_instances") == []
        broken.report_error.assert_called_once()


class TestClientFactory:
    """make_client_factory 테스트"""

    def test_factory_uses_broker_session_without_botocore_retries(self, account_region):
        broker = MagicMock()
        session = broker.session_for.return_value

        factory = make_client_factory(broker)
        factory(account_region, "ec2")

        broker.session_for.assert_called_once_with(account_region, "eu-west-1")
        _, kwargs = session.client.call_args
        assert kwargs["region_name"] == "eu-west-1"
        assert kwargs["config"].retries["max_attempts"] == 1

    def test_get_client_defaults(self):
        session = MagicMock()

        get_client(session, "sts")

        args, kwargs = session.client.call_args
        assert args == ("sts",)
        assert kwargs["region_name"] is None
        assert kwargs["config"].retries["max_attempts"] == 5


class TestRateLimitExhausted:
    """RateLimitExhausted 예외 테스트"""

    def test_is_throttling_category(self):
        from ec2_inventory.exceptions import is_throttling

        error = RateLimitExhausted("describe_instances", attempts=11)
        assert is_throttling(error) is True
        assert error.error_code == "RateExceeded"

    def test_negative_retries_rejected(self):
        with pytest.raises(ValueError):
            RetryConfig(max_retries=-1)
