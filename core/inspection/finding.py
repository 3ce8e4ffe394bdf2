"""
core/inspection/finding.py - 검사 결과(Finding) 모델

Finding은 리소스 하나에서 발견된 문제 하나를 나타내는 불변 값입니다.
Inspector의 findings 목록에는 추가만 가능하고 수정/삭제는 없습니다.

파이프라인 자체의 문제는 실제 리소스 대신 예약된 리소스 타입을 사용합니다:
    - "system": 지원하지 않는 검사 항목, 권한/자격 증명/스로틀링 문제
    - "format-error": 구조가 잘못된 리소스 데이터 (배치당 1건으로 집계)
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

from core.exceptions import ValidationError

SYSTEM_RESOURCE_TYPE = "system"
FORMAT_ERROR_RESOURCE_TYPE = "format-error"

PIPELINE_RESOURCE_TYPES = frozenset({SYSTEM_RESOURCE_TYPE, FORMAT_ERROR_RESOURCE_TYPE})


@dataclass(frozen=True)
class Finding:
    """발견된 문제 1건

    Attributes:
        resource_id: 문제가 있는 리소스 ID (파이프라인 문제면 검사 항목/서비스 ID)
        resource_type: 리소스 타입 (예: "S3Bucket", "SecurityGroup", "system")
        issue: 문제 설명
        recommendation: 권장 조치
    """

    resource_id: str
    resource_type: str
    issue: str
    recommendation: str

    @classmethod
    def create(
        cls,
        resource_id: str,
        resource_type: str,
        issue: str,
        recommendation: str,
    ) -> Finding:
        """필드를 검증한 뒤 Finding 생성

        Raises:
            ValidationError: 필드가 비어 있거나 문자열이 아닌 경우
        """
        values = {
            "resource_id": resource_id,
            "resource_type": resource_type,
            "issue": issue,
            "recommendation": recommendation,
        }
        for name, value in values.items():
            if not isinstance(value, str) or not value.strip():
                raise ValidationError(name, value, "비어 있지 않은 문자열")
        return cls(**values)

    @property
    def is_pipeline_issue(self) -> bool:
        """실제 리소스가 아닌 파이프라인 수준 문제인지"""
        return self.resource_type in PIPELINE_RESOURCE_TYPES

    def to_dict(self) -> dict[str, str]:
        """API 응답 형태 (camelCase)"""
        return {
            "resourceId": self.resource_id,
            "resourceType": self.resource_type,
            "issue": self.issue,
            "recommendation": self.recommendation,
        }


def summarize(findings: Iterable[Finding]) -> dict[str, Any]:
    """Finding 목록 요약

    Returns:
        {"totalFindings": 건수, "resourcesAffected": 고유 리소스 수,
         "byResourceType": {타입: 건수}}
    """
    total = 0
    resources: set[tuple[str, str]] = set()
    by_type: dict[str, int] = {}

    for finding in findings:
        total += 1
        resources.add((finding.resource_type, finding.resource_id))
        by_type[finding.resource_type] = by_type.get(finding.resource_type, 0) + 1

    return {
        "totalFindings": total,
        "resourcesAffected": len(resources),
        "byResourceType": by_type,
    }
