"""
tests/ec2_inventory/test_end_to_end.py - moto 기반 전체 흐름 테스트

STS AssumeRole → 리전 탐색 → 인스턴스/보안 그룹 수집까지 실제 boto3 호출로 검증합니다.
"""

import boto3
from moto import mock_aws

from ec2_inventory.auth.types import AccountConfig
from ec2_inventory.config import InventorySettings
from ec2_inventory.service import InventoryService

# moto 기본 계정
ACCOUNT_ID = "123456789012"


def _run_instances(region: str, names: list[str]) -> list[str]:
    ec2 = boto3.client("ec2", region_name=region)
    image_id = ec2.describe_images(Owners=["amazon"])["Images"][0]["ImageId"]

    instance_ids = []
    for name in names:
        response = ec2.run_instances(
            ImageId=image_id,
            MinCount=1,
            MaxCount=1,
            InstanceType="t3.micro",
            TagSpecifications=[
                {
                    "ResourceType": "instance",
                    "Tags": [{"Key": "Name", "Value": name}, {"Key": "Env", "Value": "test"}],
                }
            ],
        )
        instance_ids.append(response["Instances"][0]["InstanceId"])
    return instance_ids


class TestEndToEnd:
    """moto로 전체 흐름 테스트"""

    @mock_aws
    def test_bootstrap_collects_instances_across_regions(self):
        eu_ids = _run_instances("eu-west-1", ["web-1", "web-2"])
        us_ids = _run_instances("us-east-1", ["batch-1"])

        account = AccountConfig(id=ACCOUNT_ID, name="Production", role_name="InventoryReadRole")
        settings = InventorySettings(page_delay=0, retry_delay=0, max_workers=4)
        service = InventoryService(settings, [account], boto3.Session(region_name="eu-west-1"))

        assert service.bootstrap() is True

        regions = {pair.region for pair in service.registry.account_regions}
        assert regions == {"eu-west-1", "us-east-1"}

        instances = service.get_instances()
        assert {i["InstanceId"] for i in instances} == set(eu_ids + us_ids)

        by_id = {i["InstanceId"]: i for i in instances}
        assert by_id[us_ids[0]]["Region"] == "us-east-1"
        assert by_id[us_ids[0]]["Account"] == "Production"
        assert by_id[us_ids[0]]["AccountId"] == ACCOUNT_ID
        assert by_id[eu_ids[0]]["Tags"] == {"Name": "web-1", "Env": "test"}

        assert service.lookup_account(eu_ids[1]).region == "eu-west-1"

        groups = service.get_security_groups()
        assert groups
        assert {g["Region"] for g in groups} <= regions

    @mock_aws
    def test_describe_instances_with_filter(self):
        eu_ids = _run_instances("eu-west-1", ["web-1", "web-2"])

        account = AccountConfig(id=ACCOUNT_ID, name="Production", role_name="InventoryReadRole")
        service = InventoryService(
            InventorySettings(page_delay=0, retry_delay=0),
            [account],
            boto3.Session(region_name="eu-west-1"),
        )
        service.bootstrap()

        records = service.describe_instances([eu_ids[1]])

        assert [r["InstanceId"] for r in records] == [eu_ids[1]]

    @mock_aws
    def test_account_without_instances(self):
        account = AccountConfig(id=ACCOUNT_ID, name="Empty", role_name="InventoryReadRole")
        service = InventoryService(InventorySettings(), [account], boto3.Session(region_name="eu-west-1"))

        assert service.bootstrap() is True
        assert service.registry.account_regions == ()
        assert service.get_instances() == ()
