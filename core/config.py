"""
core/config.py - 중앙 설정 관리

검사 파이프라인과 진행 상태 추적기의 기본값, 로깅 설정,
환경변수 헬퍼를 제공합니다.

Usage:
    from core.config import settings, get_default_region

    region = get_default_region()  # "ap-northeast-2"
    attempts = settings.API_RETRY_COUNT
"""

import os
from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class Settings:
    """전역 설정 (불변)

    Attributes:
        DEFAULT_REGION: 리전 미지정 시 기본 리전
        API_RETRY_COUNT: retryable_call 기본 최대 시도 횟수
        RETRY_BASE_DELAY: 선형 백오프 기본 대기 시간 (초)
        MAX_WORKERS: 하위 리소스 동시 조회 스레드 수
        API_TIMEOUT: boto3 읽기 타임아웃 (초)
        JOB_HISTORY_LIMIT: 완료 목록 최대 길이
        DUPLICATE_WINDOW_SECONDS: 중복 업데이트 판정 시간 창
        POLL_INTERVAL_SECONDS: 진행 상태 폴링 주기
    """

    DEFAULT_REGION: str = "ap-northeast-2"
    API_RETRY_COUNT: int = 3
    RETRY_BASE_DELAY: float = 1.0
    MAX_WORKERS: int = 10
    API_TIMEOUT: int = 30
    JOB_HISTORY_LIMIT: int = 10
    DUPLICATE_WINDOW_SECONDS: float = 0.1
    POLL_INTERVAL_SECONDS: float = 2.0
    ALL_ITEMS: str = "all"
    SUPPORTED_OUTPUT_FORMATS: tuple = field(default=("console", "json"))


settings = Settings()


@dataclass
class LogConfig:
    """로깅 설정"""

    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    date_format: str = "%Y-%m-%d %H:%M:%S"
    rich: bool = True

    @classmethod
    def from_env(cls) -> "LogConfig":
        """환경변수(LOG_LEVEL, LOG_FORMAT, LOG_RICH)에서 로드"""
        default = cls()
        return cls(
            level=os.environ.get("LOG_LEVEL", default.level).upper(),
            format=os.environ.get("LOG_FORMAT", default.format),
            date_format=default.date_format,
            rich=get_env_bool("LOG_RICH", default=default.rich),
        )


# =============================================================================
# 버전
# =============================================================================


def get_version() -> str:
    """패키지 버전 문자열

    설치된 배포판 메타데이터를 우선 사용하고, 없으면 기본값을 반환합니다.
    """
    from importlib.metadata import PackageNotFoundError, version

    try:
        return version("aws-inspector")
    except PackageNotFoundError:
        return "0.1.0"


# =============================================================================
# 환경변수 헬퍼
# =============================================================================

_TRUE_VALUES = {"true", "1", "yes", "on"}
_FALSE_VALUES = {"false", "0", "no", "off"}


def get_default_profile() -> str | None:
    """AWS_PROFILE → AWS_DEFAULT_PROFILE 순으로 기본 프로파일 조회"""
    return os.environ.get("AWS_PROFILE") or os.environ.get("AWS_DEFAULT_PROFILE")


def get_default_region() -> str:
    """AWS_REGION → AWS_DEFAULT_REGION → settings.DEFAULT_REGION"""
    return os.environ.get("AWS_REGION") or os.environ.get("AWS_DEFAULT_REGION") or settings.DEFAULT_REGION


def get_env_bool(name: str, default: bool = False) -> bool:
    """환경변수를 bool로 변환 (알 수 없는 값이면 default)"""
    value = os.environ.get(name)
    if value is None:
        return default

    lowered = value.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    return default


def get_env_int(name: str, default: int = 0) -> int:
    """환경변수를 int로 변환 (변환 실패 시 default)"""
    value = os.environ.get(name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def get_env_float(name: str, default: float = 0.0) -> float:
    """환경변수를 float로 변환 (변환 실패 시 default)"""
    value = os.environ.get(name)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        return default


def get_inspector_options() -> dict[str, Any]:
    """환경변수에서 Inspector 생성 옵션 구성

    - INSPECT_MAX_RETRIES: API 호출 최대 시도 횟수
    - INSPECT_RETRY_DELAY: 선형 백오프 기본 대기 시간 (초)
    - INSPECT_MAX_WORKERS: 하위 리소스 동시 조회 스레드 수
    """
    return {
        "max_retries": get_env_int("INSPECT_MAX_RETRIES", settings.API_RETRY_COUNT),
        "retry_delay": get_env_float("INSPECT_RETRY_DELAY", settings.RETRY_BASE_DELAY),
        "max_workers": get_env_int("INSPECT_MAX_WORKERS", settings.MAX_WORKERS),
    }
