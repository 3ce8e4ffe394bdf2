"""
inspectors/s3/collector.py - S3 Resource Data Collector

버킷 목록은 한 번 조회 후 캐시하고, 버킷별 설정은 collect_each로 동시에 조회합니다.

반환 규칙:
    - "설정 없음" 에러 코드는 빈 값({} 또는 [])으로 변환
    - 그 밖의 에러로 조회에 실패한 버킷은 None (원인은 Inspector가 이미 기록)
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from botocore.exceptions import ClientError

from core.exceptions import get_error_code

if TYPE_CHECKING:
    from core.inspection import AWSInspector

logger = logging.getLogger(__name__)

BUCKET_RESOURCE_TYPE = "S3Bucket"

# 설정이 없을 때 S3가 돌려주는 에러 코드
NOT_CONFIGURED_CODES = {
    "ServerSideEncryptionConfigurationNotFoundError",
    "NoSuchPublicAccessBlockConfiguration",
    "NoSuchBucketPolicy",
}


def _or_empty(call: Callable[[], Any], empty: Any) -> Any:
    """설정 없음 에러를 빈 값으로 변환"""
    try:
        return call()
    except ClientError as e:
        if get_error_code(e) in NOT_CONFIGURED_CODES:
            return empty
        raise


class S3DataCollector:
    """S3 버킷/버킷 설정 수집기

    Args:
        inspector: 재시도 정책과 client를 제공하는 Inspector
    """

    def __init__(self, inspector: AWSInspector):
        self.inspector = inspector
        self._buckets: list[dict[str, Any]] | None = None
        self._lock = threading.Lock()

    @property
    def s3(self) -> Any:
        return self.inspector.client("s3")

    def list_buckets(self) -> list[dict[str, Any]]:
        """전체 버킷 목록 (Inspector 실행 동안 캐시)"""
        with self._lock:
            if self._buckets is None:
                response = self.inspector.call(self.s3.list_buckets, "ListBuckets")
                self._buckets = list(response.get("Buckets") or [])
                logger.debug(f"S3 버킷 {len(self._buckets)}개 조회")
            return list(self._buckets)

    def _per_bucket(
        self,
        names: list[str],
        fetch: Callable[[str], Any],
        operation: str,
    ) -> dict[str, Any]:
        operations = {name: (lambda name=name: fetch(name)) for name in names}
        return self.inspector.collect_each(operations, operation, BUCKET_RESOURCE_TYPE)

    def encryption_rules(self, names: list[str]) -> dict[str, list[dict[str, Any]] | None]:
        """버킷별 기본 암호화 규칙 (미설정이면 [])"""

        def fetch(name: str) -> list[dict[str, Any]]:
            response = _or_empty(lambda: self.s3.get_bucket_encryption(Bucket=name), {})
            config = response.get("ServerSideEncryptionConfiguration") or {}
            return list(config.get("Rules") or [])

        return self._per_bucket(names, fetch, "GetBucketEncryption")

    def public_access_blocks(self, names: list[str]) -> dict[str, dict[str, Any] | None]:
        """버킷별 퍼블릭 액세스 차단 설정 (미설정이면 {})"""

        def fetch(name: str) -> dict[str, Any]:
            response = _or_empty(lambda: self.s3.get_public_access_block(Bucket=name), {})
            return dict(response.get("PublicAccessBlockConfiguration") or {})

        return self._per_bucket(names, fetch, "GetPublicAccessBlock")

    def versioning(self, names: list[str]) -> dict[str, dict[str, Any] | None]:
        """버킷별 버전 관리 상태 ({"Status": ..., "MFADelete": ...}, 한 번도 켠 적 없으면 {})"""

        def fetch(name: str) -> dict[str, Any]:
            response = self.s3.get_bucket_versioning(Bucket=name)
            return {k: response[k] for k in ("Status", "MFADelete") if k in response}

        return self._per_bucket(names, fetch, "GetBucketVersioning")

    def logging_configs(self, names: list[str]) -> dict[str, dict[str, Any] | None]:
        """버킷별 액세스 로깅 설정 (비활성이면 {})"""

        def fetch(name: str) -> dict[str, Any]:
            response = self.s3.get_bucket_logging(Bucket=name)
            return dict(response.get("LoggingEnabled") or {})

        return self._per_bucket(names, fetch, "GetBucketLogging")

    def policies(self, names: list[str]) -> dict[str, str | None]:
        """버킷별 정책 문서 JSON 문자열 (정책 없으면 "")"""

        def fetch(name: str) -> str:
            response = _or_empty(lambda: self.s3.get_bucket_policy(Bucket=name), {})
            return str(response.get("Policy") or "")

        return self._per_bucket(names, fetch, "GetBucketPolicy")
