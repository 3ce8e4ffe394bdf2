"""
core/parallel/decorators.py - AWS API 에러 분류 및 재시도 유틸리티

AWS API 호출의 에러 분류, 재시도 가능 여부 판단,
선형 백오프 재시도를 제공합니다.

주요 구성 요소:
- RetryPolicy: 재시도 설정 (선형 백오프: attempt * base_delay)
- retryable_call: 단일 호출 재시도 실행
- retryable: 함수용 재시도 데코레이터
- categorize_error: 예외를 ErrorCategory로 분류
- is_retryable: 재시도 가능 여부 판단

Example:
    from core.parallel.decorators import retryable_call

    buckets = retryable_call(lambda: s3.list_buckets()["Buckets"])
"""

from __future__ import annotations

import functools
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, TypeVar

from botocore.exceptions import (
    ConnectTimeoutError,
    EndpointConnectionError,
    NoCredentialsError,
    PartialCredentialsError,
    ReadTimeoutError,
)

from core.config import settings
from core.exceptions import (
    ConfigError,
    ValidationError,
    get_error_code,
    is_access_denied,
    is_not_found,
    is_throttling,
)

from .errors import categorize_error_code
from .types import ErrorCategory

logger = logging.getLogger(__name__)

T = TypeVar("T")

EXPIRED_TOKEN_CODES = {
    "ExpiredToken",
    "ExpiredTokenException",
    "RequestExpired",
    "TokenRefreshRequired",
}

# 재시도해도 결과가 바뀌지 않는 카테고리
PERMANENT_CATEGORIES = {
    ErrorCategory.ACCESS_DENIED,
    ErrorCategory.NOT_FOUND,
    ErrorCategory.INVALID_REQUEST,
    ErrorCategory.EXPIRED_TOKEN,
}


@dataclass(frozen=True)
class RetryPolicy:
    """재시도 설정

    Attributes:
        max_attempts: 최대 시도 횟수 (첫 시도 포함, 1 이상)
        base_delay: 기본 대기 시간 (초). n번째 실패 후 n * base_delay 대기
    """

    max_attempts: int = settings.API_RETRY_COUNT
    base_delay: float = settings.RETRY_BASE_DELAY

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError(f"max_attempts must be >= 1, got {self.max_attempts}")
        if self.base_delay < 0:
            raise ValueError(f"base_delay must be >= 0, got {self.base_delay}")

    def get_delay(self, attempt: int) -> float:
        """attempt번째 시도가 실패한 뒤의 대기 시간 (attempt는 1부터)"""
        return attempt * self.base_delay


DEFAULT_RETRY_POLICY = RetryPolicy()


def categorize_error(error: Exception) -> ErrorCategory:
    """예외 객체를 분석하여 ErrorCategory로 분류

    ClientError의 경우 response에서 에러 코드를 추출하고,
    네트워크/타임아웃/자격 증명 에러는 타입으로 분류합니다.

    Args:
        error: 분류할 예외

    Returns:
        에러 카테고리
    """
    if is_throttling(error):
        return ErrorCategory.THROTTLING
    if is_access_denied(error):
        return ErrorCategory.ACCESS_DENIED
    if is_not_found(error):
        return ErrorCategory.NOT_FOUND

    if isinstance(error, (ConnectTimeoutError, ReadTimeoutError)):
        return ErrorCategory.TIMEOUT
    if isinstance(error, EndpointConnectionError):
        return ErrorCategory.NETWORK
    if isinstance(error, (NoCredentialsError, PartialCredentialsError)):
        return ErrorCategory.EXPIRED_TOKEN

    response = getattr(error, "response", None)
    if isinstance(response, dict):
        error_code = get_error_code(error)
        if error_code in EXPIRED_TOKEN_CODES:
            return ErrorCategory.EXPIRED_TOKEN
        return categorize_error_code(error_code)

    if isinstance(error, (ConnectionError, TimeoutError)):
        return ErrorCategory.NETWORK

    return ErrorCategory.UNKNOWN


def is_retryable(error: Exception) -> bool:
    """재시도 가능한 에러인지 확인

    권한 없음, 리소스 없음, 잘못된 요청, 만료된 토큰, 설정 오류는
    재시도하지 않습니다. 그 외(스로틀링, 타임아웃, 알 수 없는 에러)는
    재시도 대상입니다.
    """
    if isinstance(error, (ConfigError, ValidationError)):
        return False
    return categorize_error(error) not in PERMANENT_CATEGORIES


def retryable_call(
    operation: Callable[[], T],
    max_attempts: int | None = None,
    base_delay: float | None = None,
    retry_on: Callable[[Exception], bool] = is_retryable,
    sleep: Callable[[float], Any] | None = None,
    label: str = "",
) -> T:
    """operation을 선형 백오프로 재시도

    마지막 시도까지 실패하면 마지막 예외를 래핑 없이 그대로 다시 발생시킵니다.
    retry_on이 False를 반환하는 예외는 즉시 발생시킵니다.

    Args:
        operation: 인자 없는 호출 (예: lambda: s3.list_buckets())
        max_attempts: 최대 시도 횟수 (None이면 settings.API_RETRY_COUNT)
        base_delay: 기본 대기 시간 (None이면 settings.RETRY_BASE_DELAY)
        retry_on: 재시도 여부 판단 함수
        sleep: 대기 함수 (None이면 time.sleep)
        label: 로그용 호출 이름

    Returns:
        operation 반환값
    """
    policy = RetryPolicy(
        max_attempts=settings.API_RETRY_COUNT if max_attempts is None else max_attempts,
        base_delay=settings.RETRY_BASE_DELAY if base_delay is None else base_delay,
    )
    name = label or getattr(operation, "__name__", "operation")

    attempt = 1
    while True:
        try:
            return operation()
        except Exception as e:
            if attempt >= policy.max_attempts or not retry_on(e):
                raise

            delay = policy.get_delay(attempt)
            logger.debug(f"{name} 시도 {attempt}/{policy.max_attempts} 실패 ({get_error_code(e)}), {delay:.2f}초 후 재시도")
            (sleep or time.sleep)(delay)
            attempt += 1


def retryable(
    max_attempts: int | None = None,
    base_delay: float | None = None,
    retry_on: Callable[[Exception], bool] = is_retryable,
) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """함수 호출 전체에 retryable_call을 적용하는 데코레이터

    Example:
        @retryable(max_attempts=5)
        def list_groups(ec2):
            return ec2.describe_security_groups()["SecurityGroups"]
    """

    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> T:
            return retryable_call(
                lambda: func(*args, **kwargs),
                max_attempts=max_attempts,
                base_delay=base_delay,
                retry_on=retry_on,
                label=func.__name__,
            )

        return wrapper

    return decorator
