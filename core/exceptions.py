"""
core/exceptions.py - 통합 예외 계층 구조

검사 파이프라인 전체에서 사용되는 예외 클래스들을 정의합니다.
설정 오류만 execute() 밖으로 전파되고, 나머지 외부 API 오류는
Finding 또는 에러 로그로 기록됩니다.

예외 계층 구조:
    InspectorError (베이스)
    ├── ConfigError (설정 관련 - 즉시 실패, 재시도 없음)
    │   ├── CredentialsError
    │   └── InspectorStateError
    ├── InvalidArgumentError (레지스트리 인자 오류)
    ├── InspectorNotFoundError (미등록 서비스 카테고리)
    └── ValidationError (입력 검증)

Usage:
    from core.exceptions import format_error_for_user, is_access_denied

    try:
        result = s3.get_bucket_encryption(Bucket=name)
    except ClientError as e:
        if is_access_denied(e):
            ...
"""

from typing import Any, Dict, FrozenSet, Optional

# =============================================================================
# 베이스 예외
# =============================================================================


class InspectorError(Exception):
    """검사 파이프라인 기본 예외 클래스

    Attributes:
        message: 에러 메시지
        cause: 원인 예외 (체이닝용)
        details: 추가 상세 정보
    """

    def __init__(
        self,
        message: str,
        cause: Optional[Exception] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.cause = cause
        self.details = details or {}

    def __str__(self) -> str:
        if self.cause:
            return f"{self.message}: {self.cause}"
        return self.message

    def to_dict(self) -> Dict[str, Any]:
        """예외 정보를 딕셔너리로 반환"""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "cause": str(self.cause) if self.cause else None,
            "details": self.details,
        }


# =============================================================================
# 설정 관련 예외
# =============================================================================


class ConfigError(InspectorError):
    """설정 관련 예외

    잘못된 서비스 카테고리, 자격 증명 누락 등. 호출자에게 즉시 보고되며
    재시도하지 않습니다.
    """

    def __init__(
        self,
        key: str,
        message: str,
        cause: Optional[Exception] = None,
    ):
        full_message = f"설정 오류 [{key}]: {message}"
        super().__init__(full_message, cause)
        self.config_key = key
        self.details["config_key"] = key


class CredentialsError(ConfigError):
    """AWS 자격 증명 누락/형식 오류"""

    def __init__(self, missing: list, cause: Optional[Exception] = None):
        super().__init__("credentials", f"필수 필드 누락: {', '.join(missing)}", cause)
        self.missing_fields = list(missing)
        self.details["missing_fields"] = self.missing_fields


class InspectorStateError(ConfigError):
    """Inspector 재사용 등 수명 주기 위반"""

    def __init__(self, service_category: str, message: str):
        super().__init__(f"inspector:{service_category}", message)
        self.service_category = service_category


# =============================================================================
# 레지스트리 관련 예외
# =============================================================================


class InvalidArgumentError(InspectorError):
    """레지스트리 등록 인자 오류"""

    def __init__(self, argument: str, reason: str):
        super().__init__(f"잘못된 인자 [{argument}]: {reason}")
        self.argument = argument
        self.reason = reason
        self.details["argument"] = argument


class InspectorNotFoundError(InspectorError):
    """등록되지 않은 서비스 카테고리"""

    def __init__(self, service_category: str):
        super().__init__(f"등록된 Inspector 없음: {service_category}")
        self.service_category = service_category
        self.details["service_category"] = service_category


class ValidationError(InspectorError):
    """입력 검증 오류"""

    def __init__(
        self,
        field: str,
        value: Any,
        expected: str,
        cause: Optional[Exception] = None,
    ):
        message = f"검증 오류 [{field}]: 예상값 '{expected}', 실제값 '{value}'"
        super().__init__(message, cause)
        self.field = field
        self.value = value
        self.expected = expected
        self.details.update(
            {
                "field": field,
                "value": str(value),
                "expected": expected,
            }
        )


# =============================================================================
# 에러 코드 헬퍼
# =============================================================================

# AWS 에러 코드 분류 (정확히 일치하는 코드만)
ERROR_CODE_GROUPS: Dict[str, FrozenSet[str]] = {
    "access_denied": frozenset(
        {"AccessDenied", "AccessDeniedException", "UnauthorizedAccess", "UnauthorizedOperation", "AllAccessDisabled"}
    ),
    "throttling": frozenset(
        {"Throttling", "ThrottlingException", "RequestLimitExceeded", "TooManyRequestsException", "SlowDown"}
    ),
    "not_found": frozenset(
        {
            "NoSuchBucket",
            "NoSuchEntity",
            "NotFoundException",
            "ResourceNotFoundException",
            "InvalidGroup.NotFound",
            "InvalidInstanceID.NotFound",
        }
    ),
}

# 사용자 표시용 안내 문구
_USER_HINTS = {
    "AccessDenied": "권한이 없습니다. IAM 정책을 확인하세요.",
    "ExpiredToken": "인증 토큰이 만료되었습니다. 자격 증명을 갱신하세요.",
    "InvalidClientTokenId": "잘못된 자격 증명입니다.",
    "SignatureDoesNotMatch": "Secret Access Key가 올바르지 않습니다.",
}


def _client_error_info(error: Exception) -> Optional[Dict[str, Any]]:
    response = getattr(error, "response", None)
    if isinstance(response, dict):
        return response.get("Error", {})
    return None


def get_error_code(error: Exception) -> str:
    """ClientError면 응답의 Code, 그 외에는 예외 클래스명"""
    info = _client_error_info(error)
    if info is None:
        return type(error).__name__
    return info.get("Code", "Unknown")


def _in_group(error: Exception, group: str) -> bool:
    info = _client_error_info(error)
    return info is not None and info.get("Code", "") in ERROR_CODE_GROUPS[group]


def is_access_denied(error: Exception) -> bool:
    return _in_group(error, "access_denied")


def is_throttling(error: Exception) -> bool:
    return _in_group(error, "throttling")


def is_not_found(error: Exception) -> bool:
    return _in_group(error, "not_found")


def format_error_for_user(error: Exception) -> str:
    """CLI 출력과 작업 실패 사유에 쓰는 한 줄 메시지"""
    info = _client_error_info(error)
    if isinstance(error, InspectorError) or info is None:
        return str(error)

    code = info.get("Code", "UnknownError")
    return _USER_HINTS.get(code, f"{code}: {info.get('Message', str(error))}")
