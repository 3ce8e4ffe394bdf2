"""
core/parallel - 재시도 및 병렬 조회 모듈

AWS API 호출을 선형 백오프로 재시도하고, 형제 하위 리소스 조회를
동시에 실행하면서 작업별 실패를 독립적으로 수집합니다.

주요 구성 요소:
- retryable_call / retryable: 선형 백오프 재시도
- gather_settled / map_settled: scatter/gather 병렬 조회
- ErrorCollector: 복구 가능한 에러 수집기
- get_client: botocore Config가 적용된 boto3 client

Example:
    from core.parallel import gather_settled, retryable_call

    names = [b["Name"] for b in retryable_call(lambda: s3.list_buckets()["Buckets"])]
    result = gather_settled(
        {n: (lambda n=n: retryable_call(lambda: s3.get_bucket_versioning(Bucket=n))) for n in names}
    )
"""

from .client import get_client
from .decorators import RetryPolicy, categorize_error, is_retryable, retryable, retryable_call
from .errors import (
    CollectedError,
    ErrorCollector,
    ErrorSeverity,
    categorize_error_code,
)
from .executor import gather_settled, map_settled
from .types import ErrorCategory, GatherResult, TaskError, TaskResult

__all__: list[str] = [
    # Retry
    "RetryPolicy",
    "retryable_call",
    "retryable",
    "categorize_error",
    "is_retryable",
    # Scatter/gather
    "gather_settled",
    "map_settled",
    # Client
    "get_client",
    # Error handling
    "ErrorCollector",
    "ErrorSeverity",
    "CollectedError",
    "categorize_error_code",
    # Types
    "ErrorCategory",
    "GatherResult",
    "TaskError",
    "TaskResult",
]
