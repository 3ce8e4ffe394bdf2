"""
core/tracking/dispatch.py - push 메시지 라우팅

실시간 채널로 들어오는 메시지를 추적기 명령으로 변환합니다.

메시지 형태:
    {"type": "progress", "data": {"jobId": "a", "progress": {"percentage": 40}}}
    {"type": "status_change", "data": {"batchId": "b", "status": "FAILED"}}
    {"type": "complete", "data": {"jobId": "a", "status": "COMPLETED", "results": {...}}}

type 없이 data 필드가 최상위에 있는 형태도 허용합니다.
알 수 없는 type은 debug 로그만 남기고 무시합니다.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from .tracker import JobProgressTracker

logger = logging.getLogger(__name__)

PROGRESS_TYPES = {"progress", "progress_update"}
STATUS_TYPES = {"status_change"}
COMPLETE_TYPES = {"complete", "inspection_complete"}


def _payload(message: Mapping[str, Any]) -> Mapping[str, Any]:
    data = message.get("data")
    if isinstance(data, Mapping):
        return data
    return {k: v for k, v in message.items() if k != "type"}


def dispatch_message(tracker: JobProgressTracker, message: Mapping[str, Any]) -> bool:
    """메시지 1건을 추적기에 전달

    Returns:
        추적기 상태가 바뀌었으면 True
    """
    if not isinstance(message, Mapping):
        logger.debug(f"매핑이 아닌 메시지 무시: {type(message).__name__}")
        return False

    message_type = str(message.get("type") or "").lower()
    payload = _payload(message)

    if message_type in PROGRESS_TYPES or message_type in STATUS_TYPES:
        return tracker.ingest(payload).applied
    if message_type in COMPLETE_TYPES:
        return tracker.complete(payload)

    logger.debug(f"알 수 없는 메시지 타입 무시: {message_type or '(없음)'}")
    return False
