"""
core/parallel/client.py - boto3 client 생성 헬퍼

Inspector가 쓰는 client에는 botocore Config(재시도, 타임아웃, 연결 풀)가 항상 적용됩니다.
botocore 재시도는 연결 수준 오류를 흡수하고, 그 위에서 retryable_call이
선형 백오프로 애플리케이션 레벨 재시도를 수행합니다.

Example:
    from core.parallel.client import get_client

    s3 = get_client(session, "s3", region_name="ap-northeast-2")
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Literal

from botocore.config import Config

from core.config import settings

if TYPE_CHECKING:
    import boto3

RetryMode = Literal["legacy", "standard", "adaptive"]

DEFAULT_RETRY_MODE: RetryMode = "adaptive"
DEFAULT_CONNECT_TIMEOUT = 10  # 초

# collect_each의 동시 조회 수보다 작으면 urllib3 풀 경고가 발생
POOL_HEADROOM = 15


def client_config(
    max_attempts: int = settings.API_RETRY_COUNT,
    retry_mode: RetryMode = DEFAULT_RETRY_MODE,
    read_timeout: int = settings.API_TIMEOUT,
    max_pool_connections: int = settings.MAX_WORKERS + POOL_HEADROOM,
) -> Config:
    """검사용 botocore Config"""
    return Config(
        retries={"max_attempts": max_attempts, "mode": retry_mode},  # pyright: ignore[reportArgumentType]
        connect_timeout=DEFAULT_CONNECT_TIMEOUT,
        read_timeout=read_timeout,
        max_pool_connections=max_pool_connections,
    )


def get_client(
    session: boto3.Session,
    service_name: str,
    region_name: str | None = None,
    config: Config | None = None,
    **kwargs: Any,
) -> Any:
    """client_config()가 적용된 boto3 client 생성

    Args:
        session: boto3 Session
        service_name: AWS 서비스 이름 (s3, ec2 등)
        region_name: 리전 (None이면 세션 기본값)
        config: 기본 Config 위에 덮어쓸 설정
        **kwargs: session.client()에 전달할 추가 인자
    """
    merged = client_config()
    if config is not None:
        merged = merged.merge(config)
    return session.client(service_name, region_name=region_name, config=merged, **kwargs)  # pyright: ignore[reportCallIssue]
