"""
inspectors/s3/checks/versioning.py - 버전 관리 검사
"""

from __future__ import annotations

from .base import BucketCheck


class BucketVersioningCheck(BucketCheck):
    check_id = "bucket-versioning"
    name = "버전 관리"
    category = "operational-excellence"
    description = "S3 버킷 버전 관리 및 MFA Delete 확인"

    def run(self) -> None:
        names = self.bucket_names()
        states = self.collector.versioning(names)

        for name in names:
            state = states.get(name)
            if state is None:
                continue

            if state.get("Status") != "Enabled":
                self.report_bucket(
                    name,
                    f"버킷 '{name}'의 버전 관리가 비활성화되어 있습니다",
                    "데이터 보호를 위해 버전 관리를 활성화하세요. 실수로 삭제되거나 수정된 객체를 복구할 수 있습니다.",
                )
            elif state.get("MFADelete") != "Enabled":
                self.report_bucket(
                    name,
                    f"버킷 '{name}'의 버전 관리는 활성화되어 있지만 MFA Delete가 비활성화되어 있습니다",
                    "MFA Delete를 활성화하여 객체 삭제 시 추가 보안을 강화하세요.",
                )
