# core/__init__.py
"""
core - AWS 리소스 검사 인프라

검사 엔진, 인증, 병렬 처리, 작업 진행 추적을 포함하는 최상위 패키지입니다.

아키텍처:
    core/
    ├── auth/           # 검사용 자격 증명 / boto3 Session
    ├── parallel/       # 재시도, 동시 조회, 에러 수집
    ├── inspection/     # Finding, Inspector 기본 클래스, 레지스트리, 실행 서비스
    ├── tracking/       # 작업 진행 상태 추적 (push/poll)
    ├── config.py       # 중앙 설정 관리
    └── exceptions.py   # 통합 예외 계층

Usage:
    # 설정 사용
    from core.config import settings, get_default_region
    region = get_default_region()  # "ap-northeast-2"

    # 예외 처리
    from core.exceptions import ConfigError, is_access_denied

    # 검사 실행
    from core.inspection import InspectionService
    from core.tracking import JobProgressTracker
"""

from core import auth, config, exceptions, inspection, parallel, tracking

__all__: list[str] = [
    # 서브패키지
    "auth",
    "parallel",
    "inspection",
    "tracking",
    # 모듈
    "config",
    "exceptions",
]
