"""
ec2_inventory/inventory/services/ec2.py - EC2 resource fetching

Fetches EC2 instances and Security Groups for one account/region through the
retrying paginated caller. Provider errors never raise here: the caller
reports them and returns whatever pages were collected.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING, Any

from ..types import InstanceRecord, SecurityGroupRecord, normalize_instance, normalize_security_group

if TYPE_CHECKING:
    from ec2_inventory.auth.types import AccountRegion
    from ec2_inventory.parallel.paginator import RetryingPaginatedCaller


def fetch_instances(
    caller: RetryingPaginatedCaller,
    account_region: AccountRegion,
    instance_ids: Sequence[str] | None = None,
) -> list[InstanceRecord]:
    """Fetch EC2 instances in one account/region

    Args:
        caller: Retrying paginated caller
        account_region: Target account and region
        instance_ids: Optional InstanceIds filter

    Returns:
        InstanceRecords in reservation order
    """
    params: dict[str, Any] = {}
    if instance_ids:
        params["InstanceIds"] = list(instance_ids)

    reservations = caller.call(account_region, "describe_instances", params, data_key="Reservations")

    instances: list[InstanceRecord] = []
    for reservation in reservations:
        for data in reservation.get("Instances", []):
            instances.append(normalize_instance(data, account_region))
    return instances


def fetch_security_groups(
    caller: RetryingPaginatedCaller,
    account_region: AccountRegion,
    group_ids: Sequence[str] | None = None,
) -> list[SecurityGroupRecord]:
    """Fetch Security Groups in one account/region

    Args:
        caller: Retrying paginated caller
        account_region: Target account and region
        group_ids: Optional GroupIds filter

    Returns:
        SecurityGroupRecords in API order
    """
    params: dict[str, Any] = {}
    if group_ids:
        params["GroupIds"] = list(group_ids)

    groups = caller.call(account_region, "describe_security_groups", params, data_key="SecurityGroups")
    return [normalize_security_group(data, account_region) for data in groups]
