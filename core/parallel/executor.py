"""
core/parallel/executor.py - scatter/gather 병렬 실행기

버킷별 상세 조회처럼 형제 하위 리소스 호출을 동시에 실행하고,
작업별 성공/실패를 독립적으로 수집합니다 (settle all, don't fail all).
ThreadPoolExecutor 기반이며, 한 작업의 실패가 배치 전체를 취소하지 않습니다.

주요 구성 요소:
- gather_settled: 키 → 호출 매핑을 병렬 실행하여 GatherResult 반환
- map_settled: 항목 목록에 같은 함수를 적용하는 편의 함수

Example:
    from core.parallel import gather_settled

    result = gather_settled(
        {name: (lambda n=name: s3.get_bucket_location(Bucket=n)) for name in names},
        max_workers=10,
    )
    locations = result.values_or_none()  # 실패한 버킷은 None
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Iterable, Mapping
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import TypeVar

from core.config import settings
from core.exceptions import get_error_code

from .decorators import categorize_error
from .types import GatherResult, TaskError, TaskResult

logger = logging.getLogger(__name__)

T = TypeVar("T")
K = TypeVar("K")


def _clear_exception_chain(e: BaseException) -> None:
    """traceback + chained exception 메모리 누수 방지"""
    e.__traceback__ = None
    if e.__context__ is not None:
        e.__context__.__traceback__ = None
    if e.__cause__ is not None:
        e.__cause__.__traceback__ = None


def _run_single(key: str, operation: Callable[[], T]) -> TaskResult[T]:
    """단일 작업 실행 (워커 스레드 내에서 호출)

    어떤 예외도 밖으로 전파하지 않고 TaskResult로 변환합니다.
    """
    start_time = time.monotonic()
    try:
        data = operation()
        return TaskResult(
            identifier=key,
            success=True,
            data=data,
            duration_ms=(time.monotonic() - start_time) * 1000,
        )
    except Exception as e:
        _clear_exception_chain(e)
        return TaskResult(
            identifier=key,
            success=False,
            error=TaskError(
                identifier=key,
                category=categorize_error(e),
                error_code=get_error_code(e),
                message=str(e),
                original_exception=e,
            ),
            duration_ms=(time.monotonic() - start_time) * 1000,
        )


def gather_settled(
    operations: Mapping[str, Callable[[], T]],
    max_workers: int | None = None,
) -> GatherResult[T]:
    """모든 작업을 동시에 실행하고 작업별 결과를 수집

    입력 키마다 정확히 하나의 TaskResult가 반환되며 순서는 입력 순서와 같습니다.
    배치 전체에 대해서는 예외를 발생시키지 않습니다.

    Args:
        operations: 키 → 인자 없는 호출 매핑
        max_workers: 최대 동시 스레드 수 (None이면 settings.MAX_WORKERS)

    Returns:
        GatherResult[T]
    """
    if not operations:
        return GatherResult()

    workers = max(1, min(max_workers or settings.MAX_WORKERS, len(operations)))
    settled: dict[str, TaskResult[T]] = {}

    with ThreadPoolExecutor(max_workers=workers) as executor:
        futures = {executor.submit(_run_single, key, op): key for key, op in operations.items()}

        for future in as_completed(futures):
            key = futures[future]
            result = future.result()
            settled[key] = result
            if not result.success:
                logger.debug(f"하위 조회 실패: {result.error}")

    ordered = GatherResult(results={key: settled[key] for key in operations})
    if ordered.error_count:
        logger.debug(f"병렬 조회 완료: 성공 {ordered.success_count}, 실패 {ordered.error_count}")
    return ordered


def map_settled(
    func: Callable[[K], T],
    items: Iterable[K],
    key: Callable[[K], str] = str,
    max_workers: int | None = None,
) -> GatherResult[T]:
    """items 각각에 func를 적용 (gather_settled 편의 래퍼)

    Example:
        result = map_settled(lambda b: s3.get_bucket_versioning(Bucket=b), bucket_names)
    """
    operations: dict[str, Callable[[], T]] = {}
    for item in items:
        operations[key(item)] = (lambda i=item: func(i))  # type: ignore[misc]
    return gather_settled(operations, max_workers=max_workers)
