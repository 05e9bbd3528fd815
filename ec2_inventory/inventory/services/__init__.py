"""
ec2_inventory/inventory/services - Per account/region fetch functions
"""

from .ec2 import fetch_instances, fetch_security_groups

__all__ = ["fetch_instances", "fetch_security_groups"]
