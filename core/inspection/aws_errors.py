"""
core/inspection/aws_errors.py - 외부 API 에러 분류

검사 중 잡히지 않은 AWS 에러를 다음 중 하나로 분류합니다:
    - PERMISSION: 권한 부족 → 조치 안내가 담긴 Finding
    - CREDENTIALS: 자격 증명 만료/무효 → Finding
    - THROTTLING: 재시도 후에도 스로틀링 → Finding
    - UNKNOWN: 그 외 → 에러 로그에만 기록 (실행은 계속)

분류 결과를 Finding/로그로 바꾸는 일은 BaseInspector.handle_aws_error가 담당합니다.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from botocore.exceptions import NoCredentialsError, PartialCredentialsError

from core.exceptions import get_error_code, is_access_denied, is_throttling


class AWSErrorKind(Enum):
    """외부 API 에러 분류"""

    PERMISSION = "permission"
    CREDENTIALS = "credentials"
    THROTTLING = "throttling"
    UNKNOWN = "unknown"


CREDENTIAL_ERROR_CODES = {
    "ExpiredToken",
    "ExpiredTokenException",
    "TokenRefreshRequired",
    "RequestExpired",
    "InvalidClientTokenId",
    "InvalidAccessKeyId",
    "SignatureDoesNotMatch",
    "AuthFailure",
    "InvalidUserID.NotFound",
    "UnrecognizedClientException",
}


@dataclass(frozen=True)
class ErrorAdvice:
    """Finding으로 변환할 때 사용하는 문구"""

    issue: str
    recommendation: str


def classify_aws_error(error: Exception) -> AWSErrorKind:
    """예외를 AWSErrorKind로 분류"""
    if isinstance(error, (NoCredentialsError, PartialCredentialsError)):
        return AWSErrorKind.CREDENTIALS
    if get_error_code(error) in CREDENTIAL_ERROR_CODES:
        return AWSErrorKind.CREDENTIALS
    if is_access_denied(error):
        return AWSErrorKind.PERMISSION
    if is_throttling(error):
        return AWSErrorKind.THROTTLING
    return AWSErrorKind.UNKNOWN


def advise(kind: AWSErrorKind, error_code: str, operation: str, service: str) -> ErrorAdvice | None:
    """분류별 문제 설명과 권장 조치 (UNKNOWN이면 None)

    Args:
        kind: 에러 분류
        error_code: AWS 에러 코드
        operation: 실패한 API 작업 (예: "DescribeSecurityGroups")
        service: IAM 액션 접두사로 쓸 서비스 이름 (예: "ec2")
    """
    if kind == AWSErrorKind.PERMISSION:
        action = f"{service.lower()}:{operation}" if operation else f"{service.lower()}:*"
        return ErrorAdvice(
            issue=f"AWS 권한 부족: {operation or service} 호출이 거부되었습니다 ({error_code})",
            recommendation=f"IAM 정책에 {action} 권한을 추가하세요",
        )
    if kind == AWSErrorKind.CREDENTIALS:
        return ErrorAdvice(
            issue=f"AWS 자격 증명이 만료되었거나 유효하지 않습니다 ({error_code})",
            recommendation="자격 증명을 갱신하거나 AWS 계정 ID와 역할 ARN을 확인한 뒤 다시 검사하세요",
        )
    if kind == AWSErrorKind.THROTTLING:
        return ErrorAdvice(
            issue=f"AWS API 요청 한도 초과로 {operation or service} 조회를 완료하지 못했습니다 ({error_code})",
            recommendation="잠시 후 다시 검사하거나 동시 검사 수를 줄이세요",
        )
    return None
