"""
core/tracking - 검사 작업 진행 상태 추적

주요 구성 요소:
- JobProgressTracker: 작업별 상태 머신 (중복 억제, 역행 무시, 1회 종료 전이)
- dispatch_message: push 메시지 라우팅
- ProgressPoller: 주기적 상태 폴링

Example:
    from core.tracking import JobProgressTracker, dispatch_message

    tracker = JobProgressTracker()
    tracker.start_job("a")
    dispatch_message(tracker, {"type": "progress", "data": {"jobId": "a", "progress": 40}})
"""

from .dispatch import dispatch_message
from .poller import ProgressPoller
from .tracker import JobProgressTracker, clamp_progress
from .types import CompletionEvent, Job, JobStatus, ProgressUpdate, UpdateOutcome

__all__: list[str] = [
    "JobProgressTracker",
    "clamp_progress",
    "dispatch_message",
    "ProgressPoller",
    "CompletionEvent",
    "Job",
    "JobStatus",
    "ProgressUpdate",
    "UpdateOutcome",
]
