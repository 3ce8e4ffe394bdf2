"""
core/inspection/base.py - Inspector / Check Module 기본 클래스

서비스 카테고리(S3, EC2 등)별 Inspector는 하나 이상의 Check Module을 소유하고,
리소스 카운터, 에러 로그, Finding 목록을 관리합니다.

실행 규칙:
    - execute()는 Inspector 인스턴스당 1회만 호출할 수 있습니다.
    - target_item == "all": 선언 순서대로 모든 검사를 순차 실행하며,
      한 검사의 실패는 기록 후 다음 검사로 넘어갑니다.
    - target_item이 검사 ID면 해당 검사만 실행합니다.
    - 알 수 없는 target_item은 "system" 타입 Finding으로 보고합니다.
    - execute() 밖으로 나가는 예외는 설정 오류(ConfigError)뿐입니다.

Example:
    class BucketEncryptionCheck(BaseCheck):
        check_id = "bucket-encryption"
        name = "버킷 암호화"

        def run(self) -> None:
            for bucket in self.collector.list_buckets():
                self.scanned()
                ...

    class S3Inspector(AWSInspector):
        service_category = "S3"
        check_classes = (BucketEncryptionCheck,)
"""

from __future__ import annotations

import logging
import threading
import time
from abc import ABC, abstractmethod
from collections.abc import Callable, Iterator, Mapping, Sequence
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, TypeVar

import boto3
from botocore.exceptions import BotoCoreError, ClientError, ProfileNotFound

from core.auth import AWSCredentials, resolve_credentials
from core.config import get_default_region, settings
from core.exceptions import ConfigError, InspectorStateError, get_error_code
from core.parallel import (
    ErrorCollector,
    ErrorSeverity,
    RetryPolicy,
    gather_settled,
    get_client,
    retryable_call,
)
from core.tracking.types import CompletionEvent, JobStatus

from .aws_errors import advise, classify_aws_error
from .finding import FORMAT_ERROR_RESOURCE_TYPE, SYSTEM_RESOURCE_TYPE, Finding, summarize

logger = logging.getLogger(__name__)

T = TypeVar("T")

ProgressCallback = Callable[[str, int], Any]


# =============================================================================
# 설정 / 결과 타입
# =============================================================================


@dataclass(frozen=True)
class InspectionConfig:
    """검사 설정

    Attributes:
        target_item: "all" 또는 검사 ID (예: "bucket-encryption")
        region: 리전 오버라이드 (None이면 자격 증명/환경변수/기본값 순)
        options: 검사별 추가 옵션
    """

    target_item: str = settings.ALL_ITEMS
    region: str | None = None
    options: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not isinstance(self.target_item, str) or not self.target_item.strip():
            raise ConfigError("target_item", f"검사 항목은 비어 있지 않은 문자열이어야 합니다: {self.target_item!r}")

    @property
    def is_all(self) -> bool:
        return self.target_item.strip().lower() == settings.ALL_ITEMS

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any] | None) -> InspectionConfig:
        """딕셔너리에서 생성 (targetItem/target_item 모두 허용)

        Raises:
            ConfigError: 매핑이 아니거나 값이 잘못된 경우
        """
        if data is None:
            return cls()
        if not isinstance(data, Mapping):
            raise ConfigError("inspection_config", f"매핑이어야 합니다: {type(data).__name__}")

        known = {"targetItem", "target_item", "region", "options"}
        options = dict(data.get("options") or {})
        options.update({k: v for k, v in data.items() if k not in known})
        return cls(
            target_item=data.get("targetItem") or data.get("target_item") or settings.ALL_ITEMS,
            region=data.get("region") or None,
            options=options,
        )

    @classmethod
    def coerce(cls, value: InspectionConfig | Mapping[str, Any] | None) -> InspectionConfig:
        if isinstance(value, InspectionConfig):
            return value
        return cls.from_mapping(value)


@dataclass(frozen=True)
class CheckInfo:
    """검사 항목 설명"""

    check_id: str
    name: str
    category: str
    description: str = ""

    def to_dict(self) -> dict[str, str]:
        return {
            "id": self.check_id,
            "name": self.name,
            "category": self.category,
            "description": self.description,
        }


@dataclass(frozen=True)
class InspectorInfo:
    """Inspector 자기 설명 (레지스트리 discovery용)"""

    service_category: str
    version: str
    supported_checks: tuple[str, ...]
    description: str = ""
    checks: tuple[CheckInfo, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "serviceCategory": self.service_category,
            "version": self.version,
            "supportedChecks": list(self.supported_checks),
            "description": self.description,
        }


@dataclass(frozen=True)
class InspectionResult:
    """Inspector 실행 결과 (외부로 내보내는 페이로드)"""

    service_category: str
    region: str | None
    target_item: str | None
    findings: tuple[Finding, ...]
    resources_scanned: int
    errors_encountered: tuple[dict[str, Any], ...] = ()
    version: str = ""
    started_at: datetime | None = None
    finished_at: datetime | None = None

    @property
    def duration_seconds(self) -> float:
        if self.started_at is None or self.finished_at is None:
            return 0.0
        return (self.finished_at - self.started_at).total_seconds()

    def to_dict(self) -> dict[str, Any]:
        return {
            "serviceCategory": self.service_category,
            "findings": [f.to_dict() for f in self.findings],
            "resourcesScanned": self.resources_scanned,
            "region": self.region,
            "targetItem": self.target_item,
            "errorsEncountered": list(self.errors_encountered),
            "summary": {
                **summarize(self.findings),
                "resourcesScanned": self.resources_scanned,
                "errorCount": len(self.errors_encountered),
            },
            "metadata": {
                "inspectorVersion": self.version,
                "startTime": self.started_at.isoformat() if self.started_at else None,
                "endTime": self.finished_at.isoformat() if self.finished_at else None,
                "durationSeconds": self.duration_seconds,
            },
        }

    def to_completion_event(self, job_id: str, batch_id: str | None = None) -> CompletionEvent:
        """추적기에 전달할 완료 이벤트"""
        return CompletionEvent(
            job_id=job_id,
            status=JobStatus.COMPLETED,
            results=self.to_dict(),
            batch_id=batch_id,
        )


# =============================================================================
# 형식 오류 집계
# =============================================================================


def missing_fields(resource: Any, fields: Sequence[str]) -> list[str]:
    """리소스 딕셔너리에서 누락된 필수 필드 목록

    빈 리스트/0 같은 값은 존재하는 것으로 봅니다. None과 빈 문자열만 누락입니다.
    """
    if not isinstance(resource, Mapping):
        return list(fields)
    return [f for f in fields if resource.get(f) is None or resource.get(f) == ""]


class FormatErrorBatch:
    """한 배치(리소스 루프)의 형식 오류 메시지 모음 (메시지 기준 중복 제거)"""

    def __init__(self, resource_type: str):
        self.resource_type = resource_type
        self._messages: dict[str, None] = {}
        self.offending = 0

    def add(self, message: str) -> None:
        self.offending += 1
        self._messages.setdefault(message, None)

    def check(self, resource: Any, required: Sequence[str]) -> bool:
        """필수 필드가 모두 있으면 True, 아니면 오류를 기록하고 False"""
        if not isinstance(resource, Mapping):
            self.add(f"{self.resource_type} 데이터가 객체가 아님")
            return False

        missing = missing_fields(resource, required)
        if missing:
            self.add(f"필수 필드 누락: {', '.join(missing)}")
            return False
        return True

    @property
    def messages(self) -> list[str]:
        return list(self._messages)

    def __bool__(self) -> bool:
        return bool(self._messages)


# =============================================================================
# Check Module
# =============================================================================


class BaseCheck(ABC):
    """Check Module 기본 클래스

    하나의 설정 측면(암호화, 공개 접근 등)을 검사합니다.
    데이터 수집은 Inspector의 collector를 통해 검사가 직접 호출합니다.
    """

    check_id: str = ""
    name: str = ""
    category: str = "security"
    description: str = ""

    def __init__(self, inspector: BaseInspector):
        self.inspector = inspector

    @property
    def collector(self) -> Any:
        return self.inspector.collector

    @classmethod
    def info(cls) -> CheckInfo:
        return CheckInfo(cls.check_id, cls.name or cls.check_id, cls.category, cls.description)

    @abstractmethod
    def run(self) -> None:
        """검사 실행 (Finding/리소스 카운트는 inspector에 기록)"""

    def scanned(self, count: int = 1) -> None:
        self.inspector.increment_resource_count(count)

    def report(self, resource_id: str, resource_type: str, issue: str, recommendation: str) -> Finding:
        return self.inspector.add_finding(resource_id, resource_type, issue, recommendation)


# =============================================================================
# Inspector
# =============================================================================


class BaseInspector(ABC):
    """서비스 카테고리별 Inspector 기본 클래스

    인스턴스는 검사 요청 1건 전용입니다. 생성 → execute() → to_result() 후 폐기합니다.

    Args:
        options: 생성 옵션
            - max_retries: API 호출 최대 시도 횟수 (기본: settings.API_RETRY_COUNT)
            - retry_delay: 선형 백오프 기본 대기 시간 (기본: settings.RETRY_BASE_DELAY)
            - max_workers: 하위 리소스 동시 조회 스레드 수
            - sleep: 백오프 대기 함수 (테스트용)
    """

    service_category: str = ""
    version: str = "1.0.0"
    description: str = ""
    check_classes: tuple[type[BaseCheck], ...] = ()

    def __init__(self, options: Mapping[str, Any] | None = None):
        if not self.service_category:
            raise ConfigError("service_category", f"{type(self).__name__}에 service_category가 없습니다")

        self.options: dict[str, Any] = dict(options or {})
        self.retry_policy = RetryPolicy(
            max_attempts=int(self.options.get("max_retries", settings.API_RETRY_COUNT)),
            base_delay=float(self.options.get("retry_delay", settings.RETRY_BASE_DELAY)),
        )
        self.max_workers = int(self.options.get("max_workers", settings.MAX_WORKERS))
        self._sleep: Callable[[float], Any] = self.options.get("sleep") or time.sleep

        self.errors = ErrorCollector(self.service_category.lower())
        self.collector: Any = None
        self.region: str | None = None
        self.target_item: str | None = None
        self.inspection_config: InspectionConfig | None = None
        self.started_at: datetime | None = None
        self.finished_at: datetime | None = None
        self.progress = 0

        self._findings: list[Finding] = []
        self._resources_scanned = 0
        self._lock = threading.Lock()
        self._executed = False
        self._progress_callback: ProgressCallback | None = None

    # -------------------------------------------------------------------------
    # 자기 설명
    # -------------------------------------------------------------------------

    @classmethod
    def supported_checks(cls) -> tuple[str, ...]:
        return tuple(c.check_id for c in cls.check_classes)

    def get_info(self) -> InspectorInfo:
        return InspectorInfo(
            service_category=self.service_category,
            version=self.version,
            supported_checks=self.supported_checks(),
            description=self.description,
            checks=tuple(c.info() for c in self.check_classes),
        )

    # -------------------------------------------------------------------------
    # 상태
    # -------------------------------------------------------------------------

    @property
    def findings(self) -> tuple[Finding, ...]:
        with self._lock:
            return tuple(self._findings)

    @property
    def resources_scanned(self) -> int:
        with self._lock:
            return self._resources_scanned

    def add_finding(self, resource_id: str, resource_type: str, issue: str, recommendation: str) -> Finding:
        """Finding 추가 (발견 순서 유지)"""
        finding = Finding.create(resource_id, resource_type, issue, recommendation)
        with self._lock:
            self._findings.append(finding)
        logger.debug(f"[{self.service_category}] Finding: {resource_type}/{resource_id} - {issue}")
        return finding

    def increment_resource_count(self, count: int = 1) -> None:
        if count < 0:
            raise ValueError(f"count must be >= 0, got {count}")
        with self._lock:
            self._resources_scanned += count

    def set_progress_callback(self, callback: ProgressCallback | None) -> None:
        self._progress_callback = callback

    def update_progress(self, step: str, percent: float) -> None:
        """진행률 보고 (0~100으로 보정). 콜백 실패는 검사를 중단시키지 않습니다."""
        self.progress = int(max(0, min(100, percent)))
        if self._progress_callback is None:
            return
        try:
            self._progress_callback(step, self.progress)
        except Exception as e:
            logger.warning(f"[{self.service_category}] 진행률 콜백 실패: {e}")

    # -------------------------------------------------------------------------
    # 실행
    # -------------------------------------------------------------------------

    def execute(
        self,
        credentials: AWSCredentials | Mapping[str, Any] | None,
        inspection_config: InspectionConfig | Mapping[str, Any] | None = None,
    ) -> BaseInspector:
        """검사 실행

        Returns:
            self (findings/resources_scanned가 채워진 상태)

        Raises:
            InspectorStateError: 이미 실행된 인스턴스
            ConfigError: 자격 증명/설정 오류
        """
        if self._executed:
            raise InspectorStateError(self.service_category, "Inspector는 한 번만 실행할 수 있습니다. 새 인스턴스를 생성하세요")
        self._executed = True

        config = InspectionConfig.coerce(inspection_config)
        creds = resolve_credentials(credentials)
        self.validate_credentials(creds)

        self.inspection_config = config
        self.target_item = config.target_item
        self.region = config.region or creds.region or get_default_region()
        self.started_at = datetime.now()

        logger.info(f"[{self.service_category}] 검사 시작: target={config.target_item}, region={self.region}")
        try:
            self.prepare(creds, config)
            self._dispatch(config)
        finally:
            self.finished_at = datetime.now()

        logger.info(
            f"[{self.service_category}] 검사 완료: 리소스 {self.resources_scanned}개, "
            f"Finding {len(self.findings)}건, {self.errors.get_summary()}"
        )
        return self

    def validate_credentials(self, credentials: AWSCredentials) -> None:
        """사전 검증 (하위 클래스에서 오버라이드)"""

    def prepare(self, credentials: AWSCredentials, config: InspectionConfig) -> None:
        """검사 전 준비 (세션/collector 생성 등). 하위 클래스에서 오버라이드"""

    def create_checks(self) -> list[BaseCheck]:
        return [check_class(self) for check_class in self.check_classes]

    def _dispatch(self, config: InspectionConfig) -> None:
        checks = self.create_checks()

        if config.is_all:
            selected = checks
        else:
            target = config.target_item.strip().lower()
            selected = [c for c in checks if c.check_id.lower() == target]
            if not selected:
                self._report_unsupported(config.target_item)
                self.update_progress("완료", 100)
                return

        total = len(selected)
        for index, check in enumerate(selected):
            self.update_progress(check.name or check.check_id, index * 100 / total)
            self._run_check(check)

        self.update_progress("완료", 100)

    def _run_check(self, check: BaseCheck) -> None:
        """검사 1건 실행 (실패는 기록 후 계속)"""
        logger.debug(f"[{self.service_category}] 검사 실행: {check.check_id}")
        try:
            check.run()
        except ConfigError:
            raise
        except (ClientError, BotoCoreError) as e:
            self.handle_aws_error(e, check.check_id, SYSTEM_RESOURCE_TYPE, check.check_id)
        except Exception as e:
            logger.error(f"[{self.service_category}] 검사 실패 [{check.check_id}]: {e}")
            self.errors.collect(
                e,
                check.check_id,
                severity=ErrorSeverity.CRITICAL,
                context={"check": check.check_id},
            )

    def _report_unsupported(self, target_item: str) -> None:
        supported = ", ".join(self.supported_checks()) or "없음"
        logger.warning(f"[{self.service_category}] 지원하지 않는 검사 항목: {target_item}")
        self.add_finding(
            resource_id=target_item,
            resource_type=SYSTEM_RESOURCE_TYPE,
            issue=f"지원하지 않는 검사 항목입니다: {target_item}",
            recommendation=f"{self.service_category}에서 지원하는 항목({supported}) 중 하나를 선택하세요",
        )
        self.errors.collect_generic(
            "UnsupportedCheck",
            f"지원하지 않는 검사 항목: {target_item}",
            "dispatch",
            resource_id=target_item,
            context={"targetItem": target_item},
        )

    # -------------------------------------------------------------------------
    # 수집 헬퍼
    # -------------------------------------------------------------------------

    def call(self, operation: Callable[[], T], label: str = "") -> T:
        """Inspector 재시도 정책으로 API 호출"""
        return retryable_call(
            operation,
            max_attempts=self.retry_policy.max_attempts,
            base_delay=self.retry_policy.base_delay,
            sleep=self._sleep,
            label=label,
        )

    def collect_each(
        self,
        operations: Mapping[str, Callable[[], T]],
        operation: str,
        resource_type: str,
    ) -> dict[str, T | None]:
        """형제 하위 리소스 조회를 동시에 실행

        각 호출에는 재시도 정책이 적용되고, 실패한 키는 None이 되며
        실패 원인은 handle_aws_error로 기록됩니다. 배치 전체는 실패하지 않습니다.
        """
        wrapped: dict[str, Callable[[], T]] = {
            key: (lambda op=op, key=key: self.call(op, f"{operation}({key})")) for key, op in operations.items()
        }
        gathered = gather_settled(wrapped, max_workers=self.max_workers)

        for result in gathered.failed:
            error = result.error
            if error is not None and error.original_exception is not None:
                self.handle_aws_error(error.original_exception, result.identifier, resource_type, operation)
        return gathered.values_or_none()

    @contextmanager
    def format_errors(
        self,
        resource_type: str,
        resource_id: str | None = None,
        recommendation: str | None = None,
    ) -> Iterator[FormatErrorBatch]:
        """리소스 루프의 형식 오류를 모아 배치당 Finding 1건으로 기록

        Example:
            with self.inspector.format_errors("SecurityGroup") as batch:
                for sg in groups:
                    self.scanned()
                    if not batch.check(sg, ("GroupId", "GroupName")):
                        continue
                    ...
        """
        batch = FormatErrorBatch(resource_type)
        try:
            yield batch
        finally:
            if batch:
                logger.warning(
                    f"[{self.service_category}] {resource_type} 형식 오류 {batch.offending}건 ({len(batch.messages)}종)"
                )
                self.add_finding(
                    resource_id=resource_id or f"{resource_type}-format",
                    resource_type=FORMAT_ERROR_RESOURCE_TYPE,
                    issue=f"{resource_type} 데이터 형식 오류 발견: {', '.join(batch.messages)}",
                    recommendation=recommendation or f"{resource_type} 데이터 구조를 확인하세요",
                )

    # -------------------------------------------------------------------------
    # 외부 에러 처리
    # -------------------------------------------------------------------------

    @property
    def iam_service(self) -> str:
        """권한 안내에 쓰는 IAM 액션 접두사"""
        return self.service_category.lower()

    def handle_aws_error(
        self,
        error: Exception,
        resource_id: str,
        resource_type: str,
        operation: str,
    ) -> Finding | None:
        """잡히지 않은 외부 에러를 Finding 또는 에러 로그로 변환 (예외를 발생시키지 않음)

        Returns:
            생성된 Finding (에러 로그로만 기록된 경우 None)
        """
        kind = classify_aws_error(error)
        error_code = get_error_code(error)
        advice = advise(kind, error_code, operation, self.iam_service)

        if advice is None:
            self.errors.collect(
                error,
                operation,
                resource_id=resource_id,
                context={"resourceType": resource_type, "kind": kind.value},
            )
            return None

        logger.warning(f"[{self.service_category}] {operation} 실패 ({kind.value}): {resource_id} - {error_code}")
        return self.add_finding(
            resource_id=resource_id or self.service_category,
            resource_type=resource_type or SYSTEM_RESOURCE_TYPE,
            issue=advice.issue,
            recommendation=advice.recommendation,
        )

    # -------------------------------------------------------------------------
    # 결과
    # -------------------------------------------------------------------------

    def to_result(self) -> InspectionResult:
        return InspectionResult(
            service_category=self.service_category,
            region=self.region,
            target_item=self.target_item,
            findings=self.findings,
            resources_scanned=self.resources_scanned,
            errors_encountered=tuple(e.to_dict() for e in self.errors),
            version=self.version,
            started_at=self.started_at,
            finished_at=self.finished_at,
        )


class AWSInspector(BaseInspector):
    """boto3 Session을 사용하는 Inspector

    정적 키(또는 프로파일)가 없으면 execute()가 CredentialsError로 실패합니다.
    """

    def __init__(self, options: Mapping[str, Any] | None = None):
        super().__init__(options)
        self.session: boto3.Session | None = None
        self._clients: dict[str, Any] = {}

    def validate_credentials(self, credentials: AWSCredentials) -> None:
        credentials.validate()

    def prepare(self, credentials: AWSCredentials, config: InspectionConfig) -> None:
        try:
            self.session = credentials.create_session(self.region)
        except ProfileNotFound as e:
            raise ConfigError("profile", f"AWS 프로파일을 찾을 수 없습니다: {credentials.profile}", cause=e) from e
        self.collector = self.create_collector()

    def create_collector(self) -> Any:
        """서비스별 Resource Data Collector 생성 (하위 클래스에서 오버라이드)"""
        return None

    def client(self, service_name: str) -> Any:
        """botocore Config가 적용된 client (서비스별 캐시)"""
        if self.session is None:
            raise InspectorStateError(self.service_category, "execute() 전에는 client를 만들 수 없습니다")
        if service_name not in self._clients:
            self._clients[service_name] = get_client(self.session, service_name, region_name=self.region)
        return self._clients[service_name]
