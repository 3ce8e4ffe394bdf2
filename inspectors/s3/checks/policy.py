"""
inspectors/s3/checks/policy.py - 버킷 정책 검사

Condition 없이 Principal "*"에 Allow하는 문(statement)을 위험 패턴으로 봅니다.

위험 패턴:
    - 퍼블릭 쓰기 액세스: s3:PutObject, s3:DeleteObject, s3:PutObjectAcl (또는 s3:*)
    - 퍼블릭 읽기 액세스: s3:GetObject, s3:GetObjectVersion, s3:ListBucket
    - 와일드카드 Principal: 그 밖의 액션
"""

from __future__ import annotations

import json
from typing import Any

from .base import BucketCheck

READ_ACTIONS = {"s3:getobject", "s3:getobjectversion", "s3:listbucket"}
WRITE_ACTIONS = {"s3:putobject", "s3:deleteobject", "s3:putobjectacl"}
WILDCARD_ACTIONS = {"*", "s3:*"}


def _as_list(value: Any) -> list[Any]:
    if value is None:
        return []
    if isinstance(value, list):
        return value
    return [value]


def is_public_principal(principal: Any) -> bool:
    """Principal이 모든 사용자("*" 또는 {"AWS": "*"})인지"""
    if principal == "*":
        return True
    if isinstance(principal, dict):
        return "*" in _as_list(principal.get("AWS"))
    return False


def find_dangerous_patterns(policy: dict[str, Any]) -> list[str]:
    """정책 문서의 위험 패턴 이름 목록 (중복 제거, 발견 순서)"""
    patterns: dict[str, None] = {}
    for statement in _as_list(policy.get("Statement")):
        if not isinstance(statement, dict):
            continue
        if statement.get("Effect") != "Allow" or statement.get("Condition"):
            continue
        if not is_public_principal(statement.get("Principal")):
            continue

        actions = {str(a).lower() for a in _as_list(statement.get("Action"))}
        if actions & WILDCARD_ACTIONS or actions & WRITE_ACTIONS:
            patterns.setdefault("퍼블릭 쓰기 액세스", None)
        if actions & WILDCARD_ACTIONS or actions & READ_ACTIONS:
            patterns.setdefault("퍼블릭 읽기 액세스", None)
        if not actions & (WILDCARD_ACTIONS | READ_ACTIONS | WRITE_ACTIONS):
            patterns.setdefault("와일드카드 Principal", None)
    return list(patterns)


class BucketPolicyCheck(BucketCheck):
    check_id = "bucket-policy"
    name = "버킷 정책"
    description = "버킷 정책의 퍼블릭 Principal 허용 확인"

    def run(self) -> None:
        names = self.bucket_names()
        documents = self.collector.policies(names)

        with self.inspector.format_errors("BucketPolicy", recommendation="버킷 정책 JSON 문법을 확인하세요") as batch:
            for name in names:
                document = documents.get(name)
                if not document:
                    continue

                try:
                    policy = json.loads(document)
                except ValueError:
                    batch.add("정책 JSON 파싱 실패")
                    continue
                if not isinstance(policy, dict):
                    batch.add("정책 문서가 객체가 아님")
                    continue

                patterns = find_dangerous_patterns(policy)
                if patterns:
                    self.report_bucket(
                        name,
                        f"버킷 '{name}'의 정책에서 보안 위험이 발견되었습니다: {', '.join(patterns)}",
                        "버킷 정책에서 위험한 패턴을 제거하고 최소 권한 원칙을 적용하세요",
                    )
