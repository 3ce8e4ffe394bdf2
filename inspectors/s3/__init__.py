"""
inspectors/s3 - S3 Inspector

Checks:
    - bucket-encryption: 기본 암호화
    - bucket-public-access: 퍼블릭 액세스 차단
    - bucket-versioning: 버전 관리 / MFA Delete
    - bucket-logging: 서버 액세스 로깅
    - bucket-policy: 퍼블릭 Principal 정책
"""

from core.inspection import AWSInspector

from .checks import CHECKS
from .collector import S3DataCollector


class S3Inspector(AWSInspector):
    """S3 보안 설정 Inspector"""

    service_category = "S3"
    description = "S3 버킷 보안 설정 검사"
    check_classes = CHECKS

    def create_collector(self) -> S3DataCollector:
        return S3DataCollector(self)


__all__: list[str] = ["S3Inspector", "S3DataCollector"]
