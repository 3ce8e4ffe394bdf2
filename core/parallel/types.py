"""
core/parallel/types.py - 병렬 수집 결과 타입

하위 리소스 동시 조회(scatter/gather)의 작업별 성공/실패 결과를 표현합니다.

주요 구성 요소:
- ErrorCategory: 에러 카테고리 분류
- TaskError: 개별 작업 실패 정보
- TaskResult: 개별 작업 결과 (성공 데이터 또는 TaskError)
- GatherResult: 전체 수집 결과 (키 → TaskResult, 제출 순서 유지)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Generic, TypeVar

T = TypeVar("T")


class ErrorCategory(Enum):
    """에러 카테고리

    재시도 여부와 Finding 변환 여부를 결정하는 기준입니다.
    """

    THROTTLING = "throttling"
    ACCESS_DENIED = "access_denied"
    NOT_FOUND = "not_found"
    NETWORK = "network"
    TIMEOUT = "timeout"
    EXPIRED_TOKEN = "expired_token"
    INVALID_REQUEST = "invalid_request"
    SERVICE_ERROR = "service_error"
    UNKNOWN = "unknown"


_RETRYABLE_CATEGORIES = {
    ErrorCategory.THROTTLING,
    ErrorCategory.NETWORK,
    ErrorCategory.TIMEOUT,
    ErrorCategory.SERVICE_ERROR,
}


@dataclass
class TaskError:
    """개별 작업 실패 정보

    Attributes:
        identifier: 작업 키 (버킷 이름, 인스턴스 ID 등)
        category: 에러 카테고리
        error_code: AWS 에러 코드 또는 예외 클래스명
        message: 에러 메시지
        original_exception: 원본 예외 (traceback은 제거된 상태)
        timestamp: 실패 시각
    """

    identifier: str
    category: ErrorCategory
    error_code: str
    message: str
    original_exception: Exception | None = None
    timestamp: datetime = field(default_factory=datetime.now)

    def is_retryable(self) -> bool:
        return self.category in _RETRYABLE_CATEGORIES

    def __str__(self) -> str:
        return f"[{self.identifier}] {self.error_code}: {self.message}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "identifier": self.identifier,
            "category": self.category.value,
            "error_code": self.error_code,
            "message": self.message,
            "timestamp": self.timestamp.isoformat(),
        }


@dataclass
class TaskResult(Generic[T]):
    """개별 작업 결과

    success가 False면 data는 None이고 error에 실패 정보가 담깁니다.
    """

    identifier: str
    success: bool
    data: T | None = None
    error: TaskError | None = None
    duration_ms: float = 0.0

    def __str__(self) -> str:
        status = "OK" if self.success else "FAIL"
        return f"[{self.identifier}] {status} ({self.duration_ms:.0f}ms)"


@dataclass
class GatherResult(Generic[T]):
    """scatter/gather 전체 결과

    입력 키마다 정확히 하나의 TaskResult를 가지며, 순서는 제출 순서와 같습니다.
    한 작업의 실패가 다른 작업의 결과에 영향을 주지 않습니다.
    """

    results: dict[str, TaskResult[T]] = field(default_factory=dict)

    def __len__(self) -> int:
        return len(self.results)

    def __getitem__(self, key: str) -> TaskResult[T]:
        return self.results[key]

    def get(self, key: str) -> T | None:
        """키에 해당하는 성공 데이터 (실패 시 None)"""
        result = self.results.get(key)
        if result is None or not result.success:
            return None
        return result.data

    def values_or_none(self) -> dict[str, T | None]:
        """키 → 데이터 매핑 (실패한 키는 None)"""
        return {key: (r.data if r.success else None) for key, r in self.results.items()}

    @property
    def successful(self) -> list[TaskResult[T]]:
        return [r for r in self.results.values() if r.success]

    @property
    def failed(self) -> list[TaskResult[T]]:
        return [r for r in self.results.values() if not r.success]

    @property
    def success_count(self) -> int:
        return len(self.successful)

    @property
    def error_count(self) -> int:
        return len(self.failed)

