"""
ec2_inventory/inventory - Cached EC2 inventory across accounts and regions

Classes:
    - InventorySnapshot: Immutable records + lookup index
    - InstanceInventory: Cached EC2 instance list
    - SecurityGroupInventory: Cached Security Group list

Usage:
    from ec2_inventory.inventory import InstanceInventory

    inventory = InstanceInventory(registry, caller)
    instances = inventory.get()
    instances = inventory.get(force_refresh=True)
"""

from .cache import DEFAULT_INVENTORY_TTL, InventorySnapshot
from .collector import CachedInventory, InstanceInventory, SecurityGroupInventory
from .services import fetch_instances, fetch_security_groups
from .types import InstanceRecord, SecurityGroupRecord, normalize_instance, reshape_tags

__all__ = [
    # Cache
    "DEFAULT_INVENTORY_TTL",
    "InventorySnapshot",
    # Collector
    "CachedInventory",
    "InstanceInventory",
    "SecurityGroupInventory",
    # Services
    "fetch_instances",
    "fetch_security_groups",
    # Types
    "InstanceRecord",
    "SecurityGroupRecord",
    "normalize_instance",
    "reshape_tags",
]
