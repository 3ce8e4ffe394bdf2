"""
inspectors/s3/checks/logging_check.py - 액세스 로깅 검사
"""

from __future__ import annotations

from .base import BucketCheck


class BucketLoggingCheck(BucketCheck):
    check_id = "bucket-logging"
    name = "액세스 로깅"
    category = "operational-excellence"
    description = "S3 서버 액세스 로깅 활성화 여부 확인"

    def run(self) -> None:
        names = self.bucket_names()
        configs = self.collector.logging_configs(names)

        for name in names:
            config = configs.get(name)
            if config is None:
                continue
            if not config.get("TargetBucket"):
                self.report_bucket(
                    name,
                    f"버킷 '{name}'의 액세스 로깅이 비활성화되어 있습니다",
                    "보안 모니터링과 감사를 위해 액세스 로깅을 활성화하세요",
                )
