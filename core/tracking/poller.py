"""
core/tracking/poller.py - 주기적 상태 폴링

push 채널을 쓸 수 없을 때 활성 작업의 상태를 주기적으로 조회해 추적기에 넣습니다.
push와 동시에 사용해도 추적기 규칙(중복 억제, 역행 무시, 1회 종료 전이)이
그대로 적용됩니다.

Usage:
    def fetch_status(job_id):
        return api.get_inspection_status(job_id)  # {"status": ..., "progress": ...}

    with ProgressPoller(tracker, fetch_status, interval=2.0):
        ...
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Mapping
from typing import Any

from core.config import settings

from .dispatch import dispatch_message
from .tracker import JobProgressTracker
from .types import JobStatus

logger = logging.getLogger(__name__)

StatusFetcher = Callable[[str], Mapping[str, Any] | None]


def _to_message(job_id: str, status: Mapping[str, Any]) -> Mapping[str, Any]:
    """조회 결과를 dispatch 메시지 형태로 변환"""
    if "type" in status:
        return status

    data = dict(status)
    data.setdefault("jobId", job_id)

    raw_status = str(data.get("status") or "").upper()
    if raw_status in (JobStatus.COMPLETED.value, JobStatus.FAILED.value):
        return {"type": "complete", "data": data}
    return {"type": "progress", "data": data}


class ProgressPoller:
    """활성 작업 상태 폴러 (데몬 스레드)

    Args:
        tracker: 상태를 반영할 추적기
        fetch_status: job_id → 상태 딕셔너리 (없으면 None)
        interval: 폴링 주기 (초)
        stop_when_idle: 활성 작업이 없으면 스스로 종료할지
    """

    def __init__(
        self,
        tracker: JobProgressTracker,
        fetch_status: StatusFetcher,
        interval: float = settings.POLL_INTERVAL_SECONDS,
        stop_when_idle: bool = False,
    ):
        if interval <= 0:
            raise ValueError(f"interval must be > 0, got {interval}")

        self.tracker = tracker
        self.fetch_status = fetch_status
        self.interval = interval
        self.stop_when_idle = stop_when_idle
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def poll_once(self) -> int:
        """활성 작업 전체를 한 번 조회

        조회 실패는 로그만 남기고 다음 작업으로 넘어갑니다.

        Returns:
            상태가 바뀐 작업 수
        """
        changed = 0
        for job_id in self.tracker.active_ids():
            try:
                status = self.fetch_status(job_id)
            except Exception as e:
                logger.warning(f"상태 조회 실패 [{job_id}]: {e}")
                continue

            if not status:
                continue
            if dispatch_message(self.tracker, _to_message(job_id, status)):
                changed += 1
        return changed

    def _run(self) -> None:
        logger.debug(f"폴링 시작 (주기 {self.interval}초)")
        while not self._stop_event.is_set():
            try:
                self.poll_once()
            except Exception as e:
                logger.error(f"폴링 중 예외: {e}")

            if self.stop_when_idle and self.tracker.active_count() == 0:
                logger.debug("활성 작업 없음, 폴링 종료")
                break
            self._stop_event.wait(self.interval)
        logger.debug("폴링 종료")

    def start(self) -> None:
        if self.is_running:
            return
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run, name="progress-poller", daemon=True)
        self._thread.start()

    def stop(self, timeout: float | None = None) -> None:
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None

    def __enter__(self) -> ProgressPoller:
        self.start()
        return self

    def __exit__(self, *exc: Any) -> None:
        self.stop()
