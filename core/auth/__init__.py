# core/auth/__init__.py
"""
AWS 인증 모듈 (core/auth)

검사 요청의 자격 증명을 정규화하고 boto3 Session을 생성합니다.

사용 예시:
    from core.auth import AWSCredentials

    session = AWSCredentials(profile="audit").create_session("us-east-1")
"""

from .session import AWSCredentials, resolve_credentials

__all__ = [
    "AWSCredentials",
    "resolve_credentials",
]
