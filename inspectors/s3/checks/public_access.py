"""
inspectors/s3/checks/public_access.py - 퍼블릭 액세스 차단 검사
"""

from __future__ import annotations

from .base import BucketCheck

# 차단 설정 키 → 비활성일 때 표시할 이름
BLOCK_SETTINGS = {
    "BlockPublicAcls": "퍼블릭 ACL 허용",
    "IgnorePublicAcls": "퍼블릭 ACL 무시 비활성화",
    "BlockPublicPolicy": "퍼블릭 정책 허용",
    "RestrictPublicBuckets": "퍼블릭 버킷 제한 비활성화",
}


class BucketPublicAccessCheck(BucketCheck):
    check_id = "bucket-public-access"
    name = "퍼블릭 액세스 차단"
    description = "S3 버킷 퍼블릭 액세스 차단 4개 설정 확인"

    def run(self) -> None:
        names = self.bucket_names()
        blocks = self.collector.public_access_blocks(names)

        for name in names:
            config = blocks.get(name)
            if config is None:
                continue
            if not config:
                self.report_bucket(
                    name,
                    f"버킷 '{name}'에 퍼블릭 액세스 차단 설정이 없습니다",
                    "즉시 퍼블릭 액세스 차단 설정을 활성화하여 보안을 강화하세요.",
                )
                continue

            unblocked = [label for key, label in BLOCK_SETTINGS.items() if not config.get(key)]
            if unblocked:
                self.report_bucket(
                    name,
                    f"버킷 '{name}'에서 퍼블릭 액세스가 부분적으로 허용되어 있습니다: {', '.join(unblocked)}",
                    "보안을 위해 모든 퍼블릭 액세스 차단 설정을 활성화하세요.",
                )
