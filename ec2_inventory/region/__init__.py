"""
ec2_inventory/region - 계정별 리전 탐색

Usage:
    from ec2_inventory.region import RegionDiscoverer

    discoverer = RegionDiscoverer(broker)
    regions = discoverer.find_regions_with_instances(account)
"""

from .discovery import DEFAULT_BOOTSTRAP_REGION, DEFAULT_PROBE_MAX_RESULTS, RegionDiscoverer

__all__ = [
    "RegionDiscoverer",
    "DEFAULT_BOOTSTRAP_REGION",
    "DEFAULT_PROBE_MAX_RESULTS",
]
