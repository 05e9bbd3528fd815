# ec2_inventory/auth/__init__.py
"""
AWS 계정 자격증명 모듈 (ec2_inventory/auth)

구성:
- AccountConfig / AccountRegion: 계정 설정 및 작업 단위 타입
- Credential: AssumeRole 임시 자격증명
- CredentialsCache: 55분 TTL 메모리 캐시
- CredentialBroker: AssumeRole + 캐시 조회

사용 예시:
    from ec2_inventory.auth import CredentialBroker

    broker = CredentialBroker(boto3.Session())
    session = broker.session_for(account, region="eu-west-1")

Note:
    이 모듈은 Lazy Import 패턴을 사용합니다.
    실제 사용 시점에만 하위 모듈(boto3 포함)이 로드됩니다.
"""

__all__ = [
    # Types
    "AccountConfig",
    "AccountRegion",
    "Credential",
    # Cache
    "CacheEntry",
    "CredentialsCache",
    # Broker
    "CredentialBroker",
]

_IMPORT_MAPPING = {
    "AccountConfig": (".types", "AccountConfig"),
    "AccountRegion": (".types", "AccountRegion"),
    "Credential": (".types", "Credential"),
    "CacheEntry": (".cache", "CacheEntry"),
    "CredentialsCache": (".cache", "CredentialsCache"),
    "CredentialBroker": (".broker", "CredentialBroker"),
}


def __getattr__(name: str):
    """Lazy import - 실제 사용 시점에만 모듈 로드"""
    if name in _IMPORT_MAPPING:
        module_name, attr_name = _IMPORT_MAPPING[name]
        import importlib

        module = importlib.import_module(module_name, __name__)
        return getattr(module, attr_name)

    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
