"""
core/tracking/types.py - 작업 진행 상태 추적 타입

주요 구성 요소:
- JobStatus: 작업 상태 (PENDING → IN_PROGRESS → COMPLETED/FAILED)
- Job: 추적 중인 작업 1건 (추적기 소유, 조회 시 복사본 반환)
- ProgressUpdate: 진행률/상태 업데이트 이벤트
- CompletionEvent: 명시적 완료 이벤트
- UpdateOutcome: ingest 처리 결과
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Any

from core.exceptions import ValidationError


class JobStatus(Enum):
    """작업 상태"""

    PENDING = "PENDING"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"

    @property
    def is_terminal(self) -> bool:
        return self in (JobStatus.COMPLETED, JobStatus.FAILED)

    @property
    def rank(self) -> int:
        """수명 주기 순서 (PENDING 0, IN_PROGRESS 1, 종료 2)"""
        if self.is_terminal:
            return 2
        return 1 if self == JobStatus.IN_PROGRESS else 0

    @classmethod
    def parse(cls, value: Any) -> JobStatus:
        """문자열/JobStatus를 JobStatus로 변환 (대소문자 무시)

        Raises:
            ValidationError: 알 수 없는 상태값
        """
        if isinstance(value, JobStatus):
            return value
        if isinstance(value, str):
            normalized = value.strip().upper().replace("-", "_")
            try:
                return cls(normalized)
            except ValueError:
                pass
        raise ValidationError("status", value, "PENDING | IN_PROGRESS | COMPLETED | FAILED")


class UpdateOutcome(Enum):
    """ingest 처리 결과"""

    APPLIED = "applied"
    COMPLETED = "completed"  # 이 업데이트로 종료 상태 전이가 일어남
    DROPPED_UNKNOWN = "dropped_unknown"  # 활성 목록에 없는 ID
    DROPPED_DUPLICATE = "dropped_duplicate"  # 중복 억제 시간 창 내 동일 업데이트
    DROPPED_REGRESSION = "dropped_regression"  # 진행률 또는 상태 역행
    DROPPED_INVALID = "dropped_invalid"  # ID 없음 등

    @property
    def applied(self) -> bool:
        return self in (UpdateOutcome.APPLIED, UpdateOutcome.COMPLETED)


@dataclass
class Job:
    """추적 중인 작업 1건

    batch_id는 작업 ID가 정해지기 전에 먼저 알려질 수 있으며,
    job_id/batch_id/aliases 중 어느 것으로도 같은 작업을 찾을 수 있습니다.

    Attributes:
        job_id: 기본 키
        batch_id: 보조 키 (기본값은 job_id)
        aliases: 업데이트에서 새로 알게 된 추가 ID
        status: 작업 상태
        progress: 진행률 (0~100)
        current_step: 현재 단계 설명
        is_background: 백그라운드 작업 여부
        last_updated: 마지막으로 적용된 업데이트 시각 (추적기 clock 기준 초)
        auto_completed: 진행률 100 도달로 추적기가 완료를 추론했는지
    """

    job_id: str
    batch_id: str
    status: JobStatus = JobStatus.PENDING
    progress: int = 0
    current_step: str | None = None
    is_background: bool = False
    last_updated: float = 0.0
    auto_completed: bool = False
    aliases: set[str] = field(default_factory=set)
    service_category: str | None = None
    item_names: list[str] = field(default_factory=list)
    total_items: int = 0
    started_at: datetime = field(default_factory=datetime.now)
    completed_at: datetime | None = None
    results: Any = None
    error: str | None = None

    @property
    def ids(self) -> set[str]:
        return {self.job_id, self.batch_id, *self.aliases}

    def matches(self, identifier: str) -> bool:
        return identifier in self.ids

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    def snapshot(self) -> Job:
        """읽기용 복사본 (가변 필드는 새 컨테이너로 복사)"""
        return replace(self, aliases=set(self.aliases), item_names=list(self.item_names))

    def to_dict(self) -> dict[str, Any]:
        return {
            "jobId": self.job_id,
            "batchId": self.batch_id,
            "status": self.status.value,
            "progress": self.progress,
            "currentStep": self.current_step,
            "isBackground": self.is_background,
            "autoCompleted": self.auto_completed,
            "serviceCategory": self.service_category,
            "itemNames": list(self.item_names),
            "totalItems": self.total_items,
            "startedAt": self.started_at.isoformat(),
            "completedAt": self.completed_at.isoformat() if self.completed_at else None,
            "error": self.error,
        }


def _first(data: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        value = data.get(key)
        if value is not None and value != "":
            return value
    return None


def _as_number(name: str, value: Any) -> float | None:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float, str)):
        raise ValidationError(name, value, "숫자")
    try:
        number = float(value)
    except (ValueError, OverflowError) as e:
        raise ValidationError(name, value, "숫자", cause=e) from e
    if not math.isfinite(number):
        raise ValidationError(name, value, "유한한 숫자")
    return number


@dataclass(frozen=True)
class ProgressUpdate:
    """진행률/상태 업데이트

    push/poll 출처와 무관하게 같은 형태로 추적기에 전달됩니다.
    progress가 None이면 상태/단계만 바꾸는 업데이트입니다.
    """

    job_id: str | None
    progress: float | None = None
    batch_id: str | None = None
    status: JobStatus | None = None
    current_step: str | None = None

    @property
    def keys(self) -> list[str]:
        """조회에 사용할 ID (job_id 우선)"""
        return [k for k in (self.job_id, self.batch_id) if k]

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> ProgressUpdate:
        """메시지 딕셔너리에서 생성

        두 가지 형태를 허용합니다:
            {"jobId": "a", "progress": 40, "currentStep": "..."}
            {"batchId": "b", "progress": {"percentage": 40, "currentStep": "..."}}

        Raises:
            ValidationError: progress/status 값이 잘못된 경우
        """
        if not isinstance(data, Mapping):
            raise ValidationError("update", data, "매핑")

        raw_progress = data.get("progress")
        current_step = _first(data, "currentStep", "current_step")
        if isinstance(raw_progress, Mapping):
            current_step = current_step or _first(raw_progress, "currentStep", "current_step")
            raw_progress = _first(raw_progress, "percentage", "percent", "progress")

        raw_status = data.get("status")
        return cls(
            job_id=_first(data, "jobId", "job_id", "inspectionId"),
            batch_id=_first(data, "batchId", "batch_id"),
            progress=_as_number("progress", raw_progress),
            status=JobStatus.parse(raw_status) if raw_status else None,
            current_step=current_step,
        )


@dataclass(frozen=True)
class CompletionEvent:
    """명시적 완료 이벤트

    Attributes:
        job_id: 작업 ID (batch_id/별칭도 가능)
        status: 종료 상태 (COMPLETED 또는 FAILED)
        results: 결과 페이로드 (InspectionResult.to_dict() 등)
        batch_id: 보조 ID
        error: 실패 사유 (FAILED인 경우)
    """

    job_id: str
    status: JobStatus = JobStatus.COMPLETED
    results: Any = None
    batch_id: str | None = None
    error: str | None = None

    def __post_init__(self) -> None:
        if not self.status.is_terminal:
            raise ValidationError("status", self.status.value, "COMPLETED | FAILED")

    @property
    def keys(self) -> list[str]:
        return [k for k in (self.job_id, self.batch_id) if k]

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> CompletionEvent:
        job_id = _first(data, "jobId", "job_id", "inspectionId", "batchId", "batch_id")
        if not job_id:
            raise ValidationError("jobId", None, "작업 ID")
        status = JobStatus.parse(data.get("status") or JobStatus.COMPLETED)
        return cls(
            job_id=job_id,
            status=status,
            results=data.get("results"),
            batch_id=_first(data, "batchId", "batch_id"),
            error=_first(data, "error", "errorMessage"),
        )
