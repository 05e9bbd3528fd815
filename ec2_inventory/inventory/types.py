"""
ec2_inventory/inventory/types.py - Inventory record shapes

Records are plain dicts holding the raw EC2 API fields, with tags reshaped
into a mapping and account/region metadata stamped on top. A record is built
once per refresh and never mutated after it is published in a snapshot.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from ec2_inventory.auth.types import AccountRegion

# Raw describe_instances instance + Account / AccountId / Region, Tags as dict
InstanceRecord = dict[str, Any]

# Raw describe_security_groups group + Account / AccountId / Region, Tags as dict
SecurityGroupRecord = dict[str, Any]

# Metadata keys stamped on every record
ACCOUNT_KEY = "Account"
ACCOUNT_ID_KEY = "AccountId"
REGION_KEY = "Region"


def reshape_tags(tags: Iterable[Mapping[str, Any]] | None) -> dict[str, Any]:
    """Convert [{"Key": k, "Value": v}, ...] into {k: v}

    Duplicate keys resolve last-write-wins. Entries without a Key are ignored.
    """
    result: dict[str, Any] = {}
    for tag in tags or ():
        key = tag.get("Key")
        if key is None:
            continue
        result[key] = tag.get("Value", "")
    return result


def stamp_record(raw: Mapping[str, Any], account_region: AccountRegion) -> dict[str, Any]:
    """Copy a raw API item, reshape its tags and add account/region metadata

    The input mapping is not modified.
    """
    record = dict(raw)
    record["Tags"] = reshape_tags(raw.get("Tags"))
    record[ACCOUNT_KEY] = account_region.name
    record[ACCOUNT_ID_KEY] = account_region.id
    record[REGION_KEY] = account_region.region
    return record


def normalize_instance(raw: Mapping[str, Any], account_region: AccountRegion) -> InstanceRecord:
    """Build an InstanceRecord from a describe_instances instance"""
    return stamp_record(raw, account_region)


def normalize_security_group(raw: Mapping[str, Any], account_region: AccountRegion) -> SecurityGroupRecord:
    """Build a SecurityGroupRecord from a describe_security_groups group"""
    return stamp_record(raw, account_region)
