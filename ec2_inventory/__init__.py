# ec2_inventory/__init__.py
"""
멀티 계정 EC2 인벤토리 캐시

여러 AWS 계정/리전의 EC2 인스턴스 목록을 수집하여 메모리에 캐시하고
30분 주기로 갱신합니다.

사용 예시:
    from ec2_inventory import InventorySettings, create_service

    service = create_service(InventorySettings.from_env())
    service.start()

    if service.wait_until_ready(timeout=300):
        instances = service.get_instances()

Note:
    이 모듈은 Lazy Import 패턴을 사용합니다.
    실제 사용 시점에만 하위 모듈(boto3 포함)이 로드됩니다.
"""

__version__ = "0.1.0"

__all__ = [
    # Service
    "InventoryService",
    "create_service",
    # Config
    "InventorySettings",
    "load_accounts",
    # Components
    "CredentialBroker",
    "RegionDiscoverer",
    "AccountRegistry",
    "RetryingPaginatedCaller",
    "InstanceInventory",
    "SecurityGroupInventory",
    "Scheduler",
    "InitState",
    # Types
    "AccountConfig",
    "AccountRegion",
    # Error reporting
    "ErrorReporter",
    "LoggingErrorReporter",
]

_IMPORT_MAPPING = {
    "InventoryService": (".service", "InventoryService"),
    "create_service": (".service", "create_service"),
    "InventorySettings": (".config", "InventorySettings"),
    "load_accounts": (".config", "load_accounts"),
    "CredentialBroker": (".auth.broker", "CredentialBroker"),
    "RegionDiscoverer": (".region.discovery", "RegionDiscoverer"),
    "AccountRegistry": (".registry", "AccountRegistry"),
    "RetryingPaginatedCaller": (".parallel.paginator", "RetryingPaginatedCaller"),
    "InstanceInventory": (".inventory.collector", "InstanceInventory"),
    "SecurityGroupInventory": (".inventory.collector", "SecurityGroupInventory"),
    "Scheduler": (".scheduler", "Scheduler"),
    "InitState": (".scheduler", "InitState"),
    "AccountConfig": (".auth.types", "AccountConfig"),
    "AccountRegion": (".auth.types", "AccountRegion"),
    "ErrorReporter": (".parallel.errors", "ErrorReporter"),
    "LoggingErrorReporter": (".parallel.errors", "LoggingErrorReporter"),
}


def __getattr__(name: str):
    """Lazy import - 실제 사용 시점에만 모듈 로드"""
    if name in _IMPORT_MAPPING:
        module_name, attr_name = _IMPORT_MAPPING[name]
        import importlib

        module = importlib.import_module(module_name, __name__)
        return getattr(module, attr_name)

    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
