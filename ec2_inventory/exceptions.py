"""
ec2_inventory/exceptions.py - 통합 예외 계층 구조

인벤토리 캐시 전체에서 사용되는 예외 클래스들을 정의합니다.
대부분의 예외는 계정/리전/페이지 단위로 격리되어 로깅 또는 에러 리포터로 전달되며,
부트스트랩 단계의 예외만 프로세스 전체의 사용 가능 여부에 영향을 줍니다.

예외 계층 구조:
    InventoryError (베이스)
    ├── ConfigLoadError (설정 로드 실패 - 치명적)
    ├── RegionDiscoveryError (계정별 리전 탐색 실패 - 스킵)
    ├── AssumeRoleError (AssumeRole 실패 - 빈 자격증명 캐시)
    ├── RemoteCallError (API 호출 실패 - 부분 결과 유지)
    │   ├── RemoteError
    │   └── RateLimitExhausted
    ├── UnexpectedRefreshError (갱신 주기 중단 - 기존 캐시 유지)
    │   └── RefreshTimeoutError
    ├── InventoryUnavailableError (초기화 실패/미완료)
    └── RegistryAlreadyInitializedError

Usage:
    from ec2_inventory.exceptions import RemoteError

    try:
        response = ec2.describe_instances()
    except ClientError as e:
        error = RemoteError.from_client_error("describe_instances", e)
        reporter.report_error(str(error))
"""

from __future__ import annotations

from typing import Any

# =============================================================================
# 베이스 예외
# =============================================================================


class InventoryError(Exception):
    """인벤토리 캐시 기본 예외 클래스

    Attributes:
        message: 에러 메시지
        cause: 원인 예외 (체이닝용)
        details: 추가 상세 정보
    """

    def __init__(
        self,
        message: str,
        cause: Exception | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.cause = cause
        self.details = details or {}

    def __str__(self) -> str:
        if self.cause:
            return f"{self.message}: {self.cause}"
        return self.message

    def to_dict(self) -> dict[str, Any]:
        """예외 정보를 딕셔너리로 반환"""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "cause": str(self.cause) if self.cause else None,
            "details": self.details,
        }


# =============================================================================
# 설정 / 부트스트랩
# =============================================================================


class ConfigLoadError(InventoryError):
    """계정 설정 파일 로드 실패 (시작 중단)"""

    def __init__(self, path: str, reason: str, cause: Exception | None = None):
        super().__init__(f"설정 로드 실패 [{path}]: {reason}", cause)
        self.path = path
        self.details["path"] = path


class RegistryAlreadyInitializedError(InventoryError):
    """AccountRegistry.setup()이 두 번 호출된 경우"""

    def __init__(self) -> None:
        super().__init__("계정 레지스트리는 이미 초기화되었습니다")


class InventoryUnavailableError(InventoryError):
    """초기화가 실패했거나 제한 시간 내에 끝나지 않은 경우"""

    pass


# =============================================================================
# 계정 / 자격증명
# =============================================================================


class RegionDiscoveryError(InventoryError):
    """계정의 리전 목록 조회 실패"""

    def __init__(self, account_name: str, cause: Exception | None = None):
        super().__init__(f"리전 탐색 실패 [{account_name}]", cause)
        self.account_name = account_name
        self.details["account_name"] = account_name


class AssumeRoleError(InventoryError):
    """STS AssumeRole 실패"""

    def __init__(self, role_arn: str, cause: Exception | None = None):
        super().__init__(f"AssumeRole 실패 [{role_arn}]", cause)
        self.role_arn = role_arn
        self.details["role_arn"] = role_arn


# =============================================================================
# API 호출
# =============================================================================


class RemoteCallError(InventoryError):
    """AWS API 호출 관련 예외 베이스"""

    def __init__(
        self,
        operation: str,
        message: str,
        error_code: str | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message, cause)
        self.operation = operation
        self.error_code = error_code
        self.details.update({"operation": operation, "error_code": error_code})


class RemoteError(RemoteCallError):
    """재시도하지 않는 API 에러 (부분 결과 유지)"""

    def __init__(
        self,
        operation: str,
        error_code: str | None = None,
        error_message: str | None = None,
        cause: Exception | None = None,
    ):
        message = f"API 호출 실패: {operation}"
        if error_code:
            message = f"{message} ({error_code})"
        if error_message:
            message = f"{message}: {error_message}"
        super().__init__(operation, message, error_code, cause)
        self.error_message = error_message

    @classmethod
    def from_client_error(cls, operation: str, client_error: Exception) -> RemoteError:
        """botocore.exceptions.ClientError로부터 생성

        Args:
            operation: API 작업 이름
            client_error: ClientError 또는 일반 예외

        Returns:
            RemoteError 인스턴스
        """
        error_code = None
        error_message = None

        if hasattr(client_error, "response"):
            error_info = client_error.response.get("Error", {})
            error_code = error_info.get("Code")
            error_message = error_info.get("Message")
        else:
            error_code = client_error.__class__.__name__
            error_message = str(client_error)

        return cls(
            operation=operation,
            error_code=error_code,
            error_message=error_message,
            cause=client_error,
        )


class RateLimitExhausted(RemoteCallError):
    """쓰로틀링 재시도 횟수 초과"""

    def __init__(self, operation: str, attempts: int, cause: Exception | None = None):
        message = f"쓰로틀링 재시도 횟수 초과: {operation} ({attempts}회 시도)"
        super().__init__(operation, message, "RateExceeded", cause)
        self.attempts = attempts
        self.details["attempts"] = attempts


# 계약상의 이름 (재시도 소진)
ExhaustedRetries = RateLimitExhausted


# =============================================================================
# 갱신 주기
# =============================================================================


class UnexpectedRefreshError(InventoryError):
    """갱신 주기 중단 - 기존 캐시는 그대로 유지됨"""

    def __init__(self, inventory: str, message: str, cause: Exception | None = None):
        super().__init__(f"인벤토리 갱신 중단 [{inventory}]: {message}", cause)
        self.inventory = inventory
        self.details["inventory"] = inventory


class RefreshTimeoutError(UnexpectedRefreshError):
    """갱신 주기가 제한 시간을 초과함"""

    def __init__(self, inventory: str, timeout: float):
        super().__init__(inventory, f"{timeout:.0f}초 제한 시간 초과")
        self.timeout = timeout
        self.details["timeout"] = timeout


# =============================================================================
# 예외 유틸리티 함수
# =============================================================================

THROTTLING_CODES = frozenset(
    {
        "Throttling",
        "ThrottlingException",
        "RequestLimitExceeded",
        "TooManyRequestsException",
        "RateExceeded",
    }
)

ACCESS_DENIED_CODES = frozenset(
    {
        "AccessDenied",
        "AccessDeniedException",
        "UnauthorizedAccess",
        "UnauthorizedOperation",
        "AuthFailure",
    }
)


def get_error_code(error: Exception) -> str:
    """예외 객체에서 에러 코드 문자열 추출

    ClientError의 경우 response에서 Code를 추출하고,
    그 외에는 예외 클래스명을 반환합니다.
    """
    response = getattr(error, "response", None)
    if response is not None:
        code: str = response.get("Error", {}).get("Code", "Unknown")
        return code
    return error.__class__.__name__


def is_throttling(error: Exception) -> bool:
    """스로틀링 오류인지 확인

    에러 코드 외에 "Rate exceeded" 메시지도 스로틀링으로 간주합니다.

    Args:
        error: 확인할 예외

    Returns:
        스로틀링 오류이면 True
    """
    if isinstance(error, RateLimitExhausted):
        return True

    response = getattr(error, "response", None)
    if response is not None:
        error_info = response.get("Error", {})
        if error_info.get("Code", "") in THROTTLING_CODES:
            return True
        return error_info.get("Message", "") == "Rate exceeded"

    return False


def is_access_denied(error: Exception) -> bool:
    """액세스 거부 오류인지 확인"""
    response = getattr(error, "response", None)
    if response is not None:
        return response.get("Error", {}).get("Code", "") in ACCESS_DENIED_CODES
    return False
