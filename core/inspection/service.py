"""
core/inspection/service.py - 검사 실행 서비스

레지스트리와 추적기를 연결합니다: 작업 등록 → Inspector 생성 → 진행률 전달 →
실행 → 결과로 완료(또는 설정 오류로 실패) 처리.

진행 중 진행률은 최대 99로 전달하고, 100은 결과와 함께 명시적 완료 이벤트로만
보냅니다. 그래야 auto-completion이 결과 없는 완료를 먼저 만들지 않습니다.

Usage:
    service = InspectionService(create_default_registry(), JobProgressTracker())
    result = service.run("S3", {"profile": "audit"}, {"targetItem": "all"})

    outcomes = service.run_many([
        InspectionRequest("S3", creds),
        InspectionRequest("EC2", creds, {"targetItem": "dangerous-ports"}),
    ])
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any

from core.auth import AWSCredentials
from core.config import settings
from core.exceptions import ConfigError, InspectorError, InspectorNotFoundError, format_error_for_user
from core.tracking import CompletionEvent, Job, JobProgressTracker, JobStatus, ProgressUpdate

from .base import InspectionConfig, InspectionResult
from .registry import InspectorRegistry

logger = logging.getLogger(__name__)

# 진행 중 보고 상한 (100은 완료 이벤트 전용)
IN_FLIGHT_PROGRESS_CAP = 99


@dataclass
class InspectionRequest:
    """검사 요청 1건"""

    service_category: str
    credentials: AWSCredentials | Mapping[str, Any] | None = None
    config: InspectionConfig | Mapping[str, Any] | None = None
    job_id: str | None = None
    batch_id: str | None = None
    is_background: bool = False
    options: Mapping[str, Any] = field(default_factory=dict)


@dataclass
class InspectionOutcome:
    """run_many 결과 1건 (result 또는 error 중 하나)"""

    request: InspectionRequest
    job_id: str
    result: InspectionResult | None = None
    error: InspectorError | None = None

    @property
    def success(self) -> bool:
        return self.result is not None


def _target_of(config: InspectionConfig | Mapping[str, Any] | None) -> str:
    """작업 표시용 검사 항목 (설정 검증은 execute에서)"""
    if isinstance(config, InspectionConfig):
        return config.target_item
    if isinstance(config, Mapping):
        return str(config.get("targetItem") or config.get("target_item") or settings.ALL_ITEMS)
    return settings.ALL_ITEMS


class InspectionService:
    """검사 실행 서비스

    Args:
        registry: Inspector 레지스트리
        tracker: 작업 진행 상태 추적기
        inspector_options: 모든 Inspector 생성 시 기본 옵션
    """

    def __init__(
        self,
        registry: InspectorRegistry,
        tracker: JobProgressTracker,
        inspector_options: Mapping[str, Any] | None = None,
    ):
        self.registry = registry
        self.tracker = tracker
        self.inspector_options = dict(inspector_options or {})

    def _start(self, request: InspectionRequest) -> Job:
        return self.tracker.start_job(
            job_id=request.job_id,
            batch_id=request.batch_id,
            service_category=request.service_category.upper(),
            item_names=[_target_of(request.config)],
            total_items=1,
            is_background=request.is_background,
        )

    def _fail(self, job: Job, error: Exception) -> None:
        self.tracker.complete(CompletionEvent(job.job_id, status=JobStatus.FAILED, error=format_error_for_user(error)))

    def _execute(self, job: Job, request: InspectionRequest) -> InspectionResult:
        try:
            inspector = self.registry.create(request.service_category, {**self.inspector_options, **request.options})
        except InspectorNotFoundError as e:
            logger.error(f"검사 실패 [{job.job_id}]: {e}")
            self._fail(job, e)
            raise

        def report(step: str, percent: int) -> None:
            self.tracker.ingest(
                ProgressUpdate(
                    job_id=job.job_id,
                    progress=min(percent, IN_FLIGHT_PROGRESS_CAP),
                    status=JobStatus.IN_PROGRESS,
                    current_step=step,
                )
            )

        inspector.set_progress_callback(report)
        try:
            inspector.execute(request.credentials, request.config)
        except ConfigError as e:
            logger.error(f"검사 설정 오류 [{job.job_id}]: {e}")
            self._fail(job, e)
            raise

        result: InspectionResult = inspector.to_result()
        self.tracker.complete(result.to_completion_event(job.job_id, job.batch_id))
        return result

    def run(
        self,
        service_category: str,
        credentials: AWSCredentials | Mapping[str, Any] | None,
        config: InspectionConfig | Mapping[str, Any] | None = None,
        job_id: str | None = None,
        batch_id: str | None = None,
        is_background: bool = False,
    ) -> InspectionResult:
        """검사 1건 실행

        Raises:
            InspectorNotFoundError: 등록되지 않은 카테고리 (작업은 FAILED 처리)
            ConfigError: 자격 증명/설정 오류 (작업은 FAILED 처리)
        """
        request = InspectionRequest(service_category, credentials, config, job_id, batch_id, is_background)
        job = self._start(request)
        return self._execute(job, request)

    def run_many(
        self,
        requests: Iterable[InspectionRequest],
        max_workers: int = 4,
    ) -> list[InspectionOutcome]:
        """여러 검사를 스레드 풀에서 동시에 실행

        모든 작업은 실행 전에 PENDING으로 등록됩니다. 개별 실패는
        InspectionOutcome.error에 담기며 다른 검사에 영향을 주지 않습니다.

        Returns:
            요청 순서대로의 InspectionOutcome 목록
        """
        pending = [(request, self._start(request)) for request in requests]
        if not pending:
            return []

        with ThreadPoolExecutor(max_workers=max(1, min(max_workers, len(pending)))) as executor:
            futures = [executor.submit(self._execute, job, request) for request, job in pending]

            outcomes: list[InspectionOutcome] = []
            for (request, job), future in zip(pending, futures):
                try:
                    outcomes.append(InspectionOutcome(request, job.job_id, result=future.result()))
                except InspectorError as e:
                    outcomes.append(InspectionOutcome(request, job.job_id, error=e))

        ok = sum(1 for o in outcomes if o.success)
        logger.info(f"검사 {len(outcomes)}건 완료: 성공 {ok}, 실패 {len(outcomes) - ok}")
        return outcomes
