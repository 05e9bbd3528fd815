"""
tests/ec2_inventory/test_service.py - InventoryService 테스트
"""

import json
from unittest.mock import MagicMock, patch

import pytest

from ec2_inventory.auth.types import AccountRegion
from ec2_inventory.config import InventorySettings
from ec2_inventory.exceptions import ConfigLoadError, InventoryUnavailableError
from ec2_inventory.service import InventoryService, create_service


@pytest.fixture
def service(account, clock):
    """리전 탐색/API 호출을 모킹한 서비스"""
    svc = InventoryService(InventorySettings(), [account], MagicMock(), clock=clock)

    def call(pair, operation, params=None, data_key="Reservations"):
        if operation == "describe_security_groups":
            return [{"GroupId": f"sg-{pair.region}"}]
        return [{"Instances": [{"InstanceId": f"i-{pair.region}", "Tags": []}]}]

    with (
        patch.object(svc.discoverer, "find_regions_with_instances", return_value=["eu-west-1", "us-east-1"]),
        patch.object(svc.caller, "call", side_effect=call),
    ):
        yield svc

    svc.stop()


class TestInventoryService:
    """InventoryService 테스트"""

    def test_bootstrap_then_get_instances(self, service, account):
        assert service.bootstrap() is True

        instances = service.get_instances()

        assert service.init_completed() is True
        assert service.init_failed() is False
        assert [i["InstanceId"] for i in instances] == ["i-eu-west-1", "i-us-east-1"]
        assert service.lookup_account("i-us-east-1") == AccountRegion(account, "us-east-1")

    def test_security_groups(self, service):
        service.bootstrap()

        groups = service.get_security_groups()

        assert {g["GroupId"] for g in groups} == {"sg-eu-west-1", "sg-us-east-1"}

    def test_init_failed_when_registry_setup_throws(self, service):
        """레지스트리 설정 예외 → initFailed, get_instances 사용 불가"""
        with patch.object(service.registry, "setup", side_effect=RuntimeError("boom")):
            assert service.bootstrap() is False

        assert service.init_failed() is True
        assert service.init_completed() is False
        with pytest.raises(InventoryUnavailableError):
            service.get_instances()

    def test_get_before_init_times_out(self, service):
        with pytest.raises(InventoryUnavailableError):
            service.get_instances(timeout=0.01)

    def test_background_start(self, service):
        service.start()

        assert service.wait_until_ready(timeout=5) is True
        assert len(service.get_instances()) == 2

    def test_describe_instances(self, service):
        service.bootstrap()
        service.caller.call.reset_mock()

        service.describe_instances(["i-us-east-1"])

        args = service.caller.call.call_args.args
        assert args[0].region == "us-east-1"
        assert args[2] == {"InstanceIds": ["i-us-east-1"]}

    def test_context_manager(self, service):
        with service as svc:
            assert svc.wait_until_ready(timeout=5) is True


class TestCreateService:
    """create_service 테스트"""

    def test_loads_accounts_file(self, tmp_path):
        config_file = tmp_path / "awsaccounts.json"
        config_file.write_text(json.dumps([{"id": "123456789012", "name": "Prod", "roleName": "Reader"}]))
        settings = InventorySettings(accounts_file=str(config_file))

        svc = create_service(settings, session=MagicMock())

        assert [a.name for a in svc.accounts] == ["Prod"]
        assert svc.settings is settings

    def test_missing_accounts_file_is_fatal(self, tmp_path):
        settings = InventorySettings(accounts_file=str(tmp_path / "missing.json"))

        with pytest.raises(ConfigLoadError):
            create_service(settings, session=MagicMock())

    def test_settings_flow_into_components(self, account):
        settings = InventorySettings(max_retries=3, retry_delay=1.0, instance_cache_ttl=60, credential_ttl=120)

        svc = create_service(settings, session=MagicMock(), accounts=[account])

        assert svc.caller.retry_config.max_retries == 3
        assert svc.caller.retry_config.base_delay == 1.0
        assert svc.instances.ttl_seconds == 60
        assert svc.scheduler.interval_minutes == 30
