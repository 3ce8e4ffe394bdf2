"""
core/inspection - 검사 실행 엔진

주요 구성 요소:
- Finding: 발견된 문제 1건 (불변)
- BaseCheck / BaseInspector / AWSInspector: Check Module과 Inspector 기본 클래스
- InspectorRegistry: 서비스 카테고리 → Inspector 생성자
- classify_aws_error: 외부 API 에러 분류
- InspectionService: 레지스트리 + 추적기 연결

Example:
    from core.inspection import InspectorRegistry

    registry = InspectorRegistry()
    registry.register("S3", S3Inspector)
    result = registry.create("s3").execute(creds, {"targetItem": "all"}).to_result()
"""

from .aws_errors import AWSErrorKind, classify_aws_error
from .base import (
    AWSInspector,
    BaseCheck,
    BaseInspector,
    CheckInfo,
    FormatErrorBatch,
    InspectionConfig,
    InspectionResult,
    InspectorInfo,
    missing_fields,
)
from .finding import FORMAT_ERROR_RESOURCE_TYPE, SYSTEM_RESOURCE_TYPE, Finding, summarize
from .registry import InspectorRegistry, has_inspector_capabilities
from .service import InspectionOutcome, InspectionRequest, InspectionService

__all__: list[str] = [
    # Finding
    "Finding",
    "summarize",
    "SYSTEM_RESOURCE_TYPE",
    "FORMAT_ERROR_RESOURCE_TYPE",
    # Inspector
    "BaseCheck",
    "BaseInspector",
    "AWSInspector",
    "CheckInfo",
    "InspectorInfo",
    "InspectionConfig",
    "InspectionResult",
    "FormatErrorBatch",
    "missing_fields",
    # Registry
    "InspectorRegistry",
    "has_inspector_capabilities",
    # Errors
    "AWSErrorKind",
    "classify_aws_error",
    # Service
    "InspectionService",
    "InspectionRequest",
    "InspectionOutcome",
]
