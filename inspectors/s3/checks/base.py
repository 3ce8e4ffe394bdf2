"""
inspectors/s3/checks/base.py - S3 검사 공통 부분
"""

from __future__ import annotations

from typing import Any

from core.inspection import BaseCheck

from ..collector import BUCKET_RESOURCE_TYPE

BUCKET_FIELDS = ("Name",)


class BucketCheck(BaseCheck):
    """버킷 단위 검사 기본 클래스

    버킷 목록을 읽고 형식 검증을 통과한 버킷 이름만 돌려줍니다.
    검사한 버킷은 형식 오류 여부와 관계없이 모두 리소스 수에 포함됩니다.
    """

    resource_type = BUCKET_RESOURCE_TYPE

    def bucket_names(self) -> list[str]:
        buckets = self.collector.list_buckets()
        names: list[str] = []
        with self.inspector.format_errors(self.resource_type) as batch:
            for bucket in buckets:
                self.scanned()
                if batch.check(bucket, BUCKET_FIELDS):
                    names.append(bucket["Name"])
        return names

    def report_bucket(self, name: str, issue: str, recommendation: str) -> Any:
        return self.report(name, self.resource_type, issue, recommendation)
