"""
core/parallel/errors.py - 에러 수집

검사를 중단시키지 않은 실패(조회 실패, 검사 항목 예외 등)를 Inspector별로 모읍니다.
수집된 에러는 결과 페이로드의 errorsEncountered에 {error, context} 형태로 들어갑니다.

Example:
    errors = ErrorCollector("s3", region="ap-northeast-2")
    errors.collect(e, "GetBucketPolicy", resource_id=name)
    errors.get_summary()  # "에러 1건 (warning: 1건)"
"""

from __future__ import annotations

import logging
import threading
from collections import Counter
from collections.abc import Iterator
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from .types import ErrorCategory

logger = logging.getLogger(__name__)


class ErrorSeverity(Enum):
    """수집된 에러의 심각도 (로그 레벨 결정)"""

    CRITICAL = "critical"  # 검사 항목 전체 실패
    WARNING = "warning"  # 일부 리소스 조회 실패
    INFO = "info"  # 권한 없음
    DEBUG = "debug"

    @property
    def log_level(self) -> int:
        return {
            ErrorSeverity.CRITICAL: logging.ERROR,
            ErrorSeverity.WARNING: logging.WARNING,
            ErrorSeverity.INFO: logging.INFO,
            ErrorSeverity.DEBUG: logging.DEBUG,
        }[self]


# 에러 코드에 포함된 키워드 → 분류 (위에서부터 먼저 일치하는 항목)
_CODE_KEYWORDS: tuple[tuple[ErrorCategory, tuple[str, ...]], ...] = (
    (ErrorCategory.ACCESS_DENIED, ("accessdenied", "unauthorized", "forbidden", "allaccessdisabled")),
    (ErrorCategory.EXPIRED_TOKEN, ("expiredtoken", "tokenrefreshrequired", "requestexpired")),
    (ErrorCategory.NOT_FOUND, ("notfound", "nosuch", "doesnotexist")),
    (ErrorCategory.THROTTLING, ("throttl", "ratelimit", "toomanyrequests", "slowdown")),
    (ErrorCategory.TIMEOUT, ("timeout", "timedout")),
    (ErrorCategory.INVALID_REQUEST, ("invalid", "validation", "malformed")),
    (ErrorCategory.SERVICE_ERROR, ("internal", "serviceunavailable", "serviceerror")),
)


def categorize_error_code(error_code: str) -> ErrorCategory:
    """AWS 에러 코드 문자열을 ErrorCategory로 분류 (일치 없으면 UNKNOWN)"""
    code = error_code.lower()
    for category, keywords in _CODE_KEYWORDS:
        if any(k in code for k in keywords):
            return category
    return ErrorCategory.UNKNOWN


@dataclass
class CollectedError:
    """수집된 에러 1건

    Attributes:
        operation: 실패한 API 작업 또는 검사 항목 ID
        error_code: AWS 에러 코드 또는 예외 클래스명
        resource_id: 관련 리소스 ID
        context: 결과 페이로드에 함께 실을 값 (resourceType, check 등)
    """

    timestamp: datetime
    service: str
    region: str
    operation: str
    error_code: str
    error_message: str
    severity: ErrorSeverity
    category: ErrorCategory
    resource_id: str | None = None
    context: dict[str, Any] = field(default_factory=dict)

    def __str__(self) -> str:
        target = f" ({self.resource_id})" if self.resource_id else ""
        return f"[{self.severity.value.upper()}] {self.service}.{self.operation}{target}: {self.error_code}"

    @property
    def error(self) -> str:
        return f"{self.error_code}: {self.error_message}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": self.error,
            "context": {
                "operation": self.operation,
                "resourceId": self.resource_id,
                "region": self.region,
                **self.context,
            },
            "timestamp": self.timestamp.isoformat(),
            "severity": self.severity.value,
            "category": self.category.value,
        }


class ErrorCollector:
    """스레드 세이프 에러 수집기 (수집 순서 유지)

    collect_each의 작업 스레드와 검사 스레드가 동시에 기록할 수 있습니다.
    """

    def __init__(self, service: str, region: str = ""):
        self.service = service
        self.region = region
        self._errors: list[CollectedError] = []
        self._lock = threading.Lock()

    def collect(
        self,
        error: Exception,
        operation: str,
        resource_id: str | None = None,
        severity: ErrorSeverity = ErrorSeverity.WARNING,
        context: dict[str, Any] | None = None,
    ) -> CollectedError:
        """예외 수집 (ClientError는 response의 코드/메시지 사용)"""
        response = getattr(error, "response", None)
        if isinstance(response, dict):
            info = response.get("Error", {})
            code, message = info.get("Code", "Unknown"), info.get("Message", str(error))
        else:
            code, message = type(error).__name__, str(error)
        return self.collect_generic(code, message, operation, resource_id, severity, context)

    def collect_generic(
        self,
        error_code: str,
        error_message: str,
        operation: str,
        resource_id: str | None = None,
        severity: ErrorSeverity = ErrorSeverity.WARNING,
        context: dict[str, Any] | None = None,
    ) -> CollectedError:
        """코드/메시지로 직접 수집 (예외 객체가 없는 경우)"""
        category = categorize_error_code(error_code)
        if category == ErrorCategory.ACCESS_DENIED and severity == ErrorSeverity.WARNING:
            severity = ErrorSeverity.INFO

        collected = CollectedError(
            timestamp=datetime.now(),
            service=self.service,
            region=self.region,
            operation=operation,
            error_code=error_code,
            error_message=error_message,
            severity=severity,
            category=category,
            resource_id=resource_id,
            context=dict(context or {}),
        )
        with self._lock:
            self._errors.append(collected)

        logger.log(severity.log_level, f"{collected} - {error_message}")
        return collected

    def __len__(self) -> int:
        with self._lock:
            return len(self._errors)

    def __iter__(self) -> Iterator[CollectedError]:
        return iter(self.errors)

    @property
    def errors(self) -> list[CollectedError]:
        with self._lock:
            return list(self._errors)

    def get_summary(self) -> str:
        """예: "에러 3건 (critical: 1건, warning: 2건)" """
        errors = self.errors
        if not errors:
            return "에러 없음"
        counts = Counter(e.severity.value for e in errors)
        parts = ", ".join(f"{k}: {v}건" for k, v in sorted(counts.items()))
        return f"에러 {len(errors)}건 ({parts})"
