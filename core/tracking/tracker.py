"""
core/tracking/tracker.py - 작업 진행 상태 추적기

여러 출처(push 메시지, 주기적 폴링)에서 동시에 들어오는 진행률/완료 이벤트를
작업별 상태로 수렴시킵니다.

규칙:
    1. 조회: job_id로 찾고, 없으면 batch_id/별칭으로 검색합니다. 시작되지 않은
       ID의 업데이트는 버립니다 (업데이트만으로 작업을 만들지 않음).
    2. 진행률은 [0, 100]으로 보정합니다. NaN/무한대는 잘못된 업데이트로 버립니다.
    3. 상태/진행률/현재 단계가 모두 같고 직전 적용 후 duplicate_window 이내면 무시합니다.
    4. 진행률 역행은 무시합니다. 단, allow_reset이면 정확히 0으로의 리셋은 허용합니다.
       상태도 PENDING → IN_PROGRESS → 종료 순서를 거슬러 돌아가지 않습니다.
    5. 진행률이 100에 도달하면 추적기가 COMPLETED로 전이시킵니다 (auto-completion).
    6. 명시적 완료는 같은 전이를 수행하되, 이미 완료된 작업이면 활성 목록에서
       제거만 하고 완료 이력에 중복 추가하지 않습니다.
    7. 백그라운드/포그라운드 플래그는 위 규칙에 영향을 주지 않습니다.

활성 목록과 완료 이력은 하나의 RLock으로 보호되며, 각 규칙은 하나의 임계 구역에서
조회부터 전이까지 수행합니다. 종료 전이는 작업당 정확히 한 번 일어납니다.

Usage:
    tracker = JobProgressTracker()
    tracker.start_job("a")
    tracker.ingest({"jobId": "a", "progress": 40})
    tracker.ingest({"jobId": "a", "progress": 100})   # auto-completion
    tracker.completed_jobs()[0].status                  # JobStatus.COMPLETED
"""

from __future__ import annotations

import logging
import math
import threading
import time
import uuid
from collections.abc import Callable, Iterable, Mapping
from datetime import datetime
from typing import Any

from core.config import settings
from core.exceptions import ValidationError

from .types import CompletionEvent, Job, JobStatus, ProgressUpdate, UpdateOutcome

logger = logging.getLogger(__name__)

JobListener = Callable[[Job], Any]


def clamp_progress(value: float) -> int:
    """진행률을 0~100 정수로 보정"""
    return int(max(0, min(100, round(value))))


class JobProgressTracker:
    """작업 진행 상태 추적기 (스레드 세이프)

    Args:
        history_limit: 완료 이력 최대 길이 (최신순)
        duplicate_window: 중복 업데이트 판정 시간 창 (초)
        allow_reset: 진행률 0으로의 역행(리셋)을 허용할지
        clock: 단조 증가 시계 (초). 테스트에서 대체 가능
    """

    def __init__(
        self,
        history_limit: int = settings.JOB_HISTORY_LIMIT,
        duplicate_window: float = settings.DUPLICATE_WINDOW_SECONDS,
        allow_reset: bool = True,
        clock: Callable[[], float] = time.monotonic,
    ):
        if history_limit < 1:
            raise ValueError(f"history_limit must be >= 1, got {history_limit}")

        self.history_limit = history_limit
        self.duplicate_window = duplicate_window
        self.allow_reset = allow_reset
        self._clock = clock

        self._active: dict[str, Job] = {}
        self._completed: list[Job] = []
        self._listeners: list[JobListener] = []
        self._lock = threading.RLock()

    # -------------------------------------------------------------------------
    # 조회 (내부, 락 보유 상태에서 호출)
    # -------------------------------------------------------------------------

    def _resolve(self, identifiers: Iterable[str | None]) -> Job | None:
        ids = [i for i in identifiers if i]
        for identifier in ids:
            job = self._active.get(identifier)
            if job is not None:
                return job
        for identifier in ids:
            for job in self._active.values():
                if job.matches(identifier):
                    return job
        return None

    def _in_history(self, job: Job) -> bool:
        ids = job.ids
        return any(ids & done.ids for done in self._completed)

    def _finish(
        self,
        job: Job,
        status: JobStatus,
        auto: bool,
        results: Any = None,
        error: str | None = None,
    ) -> Job:
        """종료 전이: 활성 목록에서 제거하고 완료 이력에 한 번만 추가"""
        job.status = status
        if status == JobStatus.COMPLETED:
            job.progress = 100
            job.current_step = "Completed"
        job.auto_completed = job.auto_completed or auto
        job.completed_at = datetime.now()
        job.last_updated = self._clock()
        if results is not None:
            job.results = results
        if error:
            job.error = error

        self._active.pop(job.job_id, None)
        if not self._in_history(job):
            self._completed.insert(0, job)
            del self._completed[self.history_limit :]
        else:
            logger.debug(f"이미 완료 이력에 있음: {job.job_id}")

        logger.info(f"작업 종료: {job.job_id} ({status.value}{', auto' if auto else ''}), 남은 활성 작업 {len(self._active)}개")
        return job.snapshot()

    def _notify(self, job: Job) -> None:
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(job)
            except Exception as e:
                logger.warning(f"완료 리스너 실패 [{job.job_id}]: {e}")

    # -------------------------------------------------------------------------
    # 명령
    # -------------------------------------------------------------------------

    def start_job(
        self,
        job_id: str | None = None,
        batch_id: str | None = None,
        service_category: str | None = None,
        item_names: Iterable[str] = (),
        total_items: int = 0,
        is_background: bool = False,
    ) -> Job:
        """PENDING 작업 등록

        같은 ID의 활성 작업이 이미 있으면 새로 만들지 않고 기존 작업을 반환합니다
        (새 ID는 별칭으로 추가).
        """
        primary = job_id or batch_id or uuid.uuid4().hex

        with self._lock:
            existing = self._resolve([job_id, batch_id])
            if existing is not None:
                for identifier in (job_id, batch_id):
                    if identifier and identifier not in existing.ids:
                        existing.aliases.add(identifier)
                return existing.snapshot()

            job = Job(
                job_id=primary,
                batch_id=batch_id or primary,
                service_category=service_category,
                item_names=list(item_names),
                total_items=total_items,
                is_background=is_background,
                last_updated=self._clock(),
            )
            self._active[job.job_id] = job
            logger.debug(f"작업 시작: {job.job_id} (batch={job.batch_id})")
            return job.snapshot()

    def ingest(self, update: ProgressUpdate | Mapping[str, Any]) -> UpdateOutcome:
        """진행률/상태 업데이트 적용 (규칙 1~5)"""
        if not isinstance(update, ProgressUpdate):
            try:
                update = ProgressUpdate.from_mapping(update)
            except ValidationError as e:
                logger.debug(f"잘못된 업데이트 무시: {e}")
                return UpdateOutcome.DROPPED_INVALID

        if not update.keys:
            return UpdateOutcome.DROPPED_INVALID
        if update.progress is not None and not math.isfinite(update.progress):
            logger.debug(f"유한하지 않은 진행률 무시: {update.progress}")
            return UpdateOutcome.DROPPED_INVALID

        finished: Job | None = None
        with self._lock:
            job = self._resolve(update.keys)
            if job is None:
                logger.debug(f"알 수 없는 작업 업데이트 무시: {update.keys}")
                return UpdateOutcome.DROPPED_UNKNOWN

            for identifier in update.keys:
                if identifier not in job.ids:
                    job.aliases.add(identifier)

            now = self._clock()
            progress = job.progress if update.progress is None else clamp_progress(update.progress)
            step = update.current_step or job.current_step
            status = update.status or job.status
            if status.rank < job.status.rank:
                # 늦게 도착한 이전 단계 상태는 무시
                if progress == job.progress and step == job.current_step:
                    logger.debug(f"상태 역행 무시: {job.job_id} {job.status.value} -> {status.value}")
                    return UpdateOutcome.DROPPED_REGRESSION
                status = job.status
            if status == JobStatus.PENDING and update.status is None and progress > 0:
                status = JobStatus.IN_PROGRESS

            if (
                progress == job.progress
                and status == job.status
                and step == job.current_step
                and now - job.last_updated < self.duplicate_window
            ):
                return UpdateOutcome.DROPPED_DUPLICATE

            if status.is_terminal:
                finished = self._finish(job, status, auto=False)
            elif progress < job.progress and not (self.allow_reset and progress == 0):
                logger.debug(f"진행률 역행 무시: {job.job_id} {job.progress} -> {progress}")
                return UpdateOutcome.DROPPED_REGRESSION
            elif progress >= 100 and not job.auto_completed:
                job.current_step = step
                finished = self._finish(job, JobStatus.COMPLETED, auto=True)
            else:
                if progress // 20 != job.progress // 20:
                    logger.debug(f"진행률: {job.job_id} {progress}%")
                job.progress = progress
                job.current_step = step
                job.status = status
                job.last_updated = now
                return UpdateOutcome.APPLIED

        self._notify(finished)
        return UpdateOutcome.COMPLETED

    def complete(self, event: CompletionEvent | Mapping[str, Any]) -> bool:
        """명시적 완료 처리 (규칙 6)

        Returns:
            이 호출이 종료 전이를 수행했으면 True.
            이미 완료됐거나 알 수 없는 작업이면 False.
        """
        if not isinstance(event, CompletionEvent):
            try:
                event = CompletionEvent.from_mapping(event)
            except ValidationError as e:
                logger.debug(f"잘못된 완료 이벤트 무시: {e}")
                return False

        with self._lock:
            job = self._resolve(event.keys)
            if job is None:
                logger.debug(f"이미 제거된 작업의 완료 이벤트 무시: {event.job_id}")
                return False

            if job.is_terminal or job.auto_completed or job.progress >= 100:
                self._active.pop(job.job_id, None)
                return False

            finished = self._finish(job, event.status, auto=False, results=event.results, error=event.error)

        self._notify(finished)
        return True

    def cancel(self, identifier: str) -> bool:
        """활성 목록에서 제거 (완료 이력에는 추가하지 않음)"""
        with self._lock:
            job = self._resolve([identifier])
            if job is None:
                return False
            del self._active[job.job_id]
        logger.info(f"작업 취소: {job.job_id}")
        return True

    def move_to_background(self, identifier: str) -> bool:
        return self._set_background(identifier, True)

    def move_to_foreground(self, identifier: str) -> bool:
        return self._set_background(identifier, False)

    def _set_background(self, identifier: str, value: bool) -> bool:
        with self._lock:
            job = self._resolve([identifier])
            if job is None:
                return False
            job.is_background = value
            return True

    def add_listener(self, listener: JobListener) -> None:
        """종료 전이 시 호출될 콜백 등록 (락 밖에서 작업 복사본으로 호출)"""
        with self._lock:
            self._listeners.append(listener)

    def remove_listener(self, listener: JobListener) -> None:
        with self._lock:
            if listener in self._listeners:
                self._listeners.remove(listener)

    def clear_history(self) -> None:
        with self._lock:
            self._completed.clear()

    # -------------------------------------------------------------------------
    # 조회 (복사본 반환)
    # -------------------------------------------------------------------------

    def get(self, identifier: str) -> Job | None:
        """활성 작업 → 완료 이력 순으로 조회"""
        with self._lock:
            job = self._resolve([identifier])
            if job is None:
                job = next((done for done in self._completed if done.matches(identifier)), None)
            return job.snapshot() if job else None

    def active_jobs(self) -> list[Job]:
        with self._lock:
            return [job.snapshot() for job in self._active.values()]

    def completed_jobs(self) -> list[Job]:
        """완료 이력 (최신순)"""
        with self._lock:
            return [job.snapshot() for job in self._completed]

    def background_jobs(self) -> list[Job]:
        with self._lock:
            return [job.snapshot() for job in self._active.values() if job.is_background]

    def foreground_job(self) -> Job | None:
        with self._lock:
            job = next((j for j in self._active.values() if not j.is_background), None)
            return job.snapshot() if job else None

    def active_count(self) -> int:
        with self._lock:
            return sum(1 for job in self._active.values() if not job.is_terminal)

    def active_ids(self) -> list[str]:
        with self._lock:
            return list(self._active)
