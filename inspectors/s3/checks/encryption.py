"""
inspectors/s3/checks/encryption.py - 버킷 기본 암호화 검사

기본 암호화가 없거나, 지원하지 않는 알고리즘을 쓰는 버킷을 보고합니다.
"""

from __future__ import annotations

from .base import BucketCheck

SUPPORTED_ALGORITHMS = {"AES256", "aws:kms", "aws:kms:dsse"}


class BucketEncryptionCheck(BucketCheck):
    check_id = "bucket-encryption"
    name = "버킷 암호화"
    description = "S3 버킷 서버 측 기본 암호화 설정 확인"

    def run(self) -> None:
        names = self.bucket_names()
        rules_by_bucket = self.collector.encryption_rules(names)

        for name in names:
            rules = rules_by_bucket.get(name)
            if rules is None:
                continue
            if not rules:
                self.report_bucket(
                    name,
                    f"버킷 '{name}'에 서버 측 암호화가 설정되어 있지 않습니다",
                    "S3 버킷에 서버 측 암호화를 즉시 활성화하세요. 민감한 데이터의 경우 AWS KMS 키 사용을 권장합니다.",
                )
                continue

            for rule in rules:
                default = rule.get("ApplyServerSideEncryptionByDefault") or {}
                algorithm = default.get("SSEAlgorithm")
                if algorithm and algorithm not in SUPPORTED_ALGORITHMS:
                    self.report_bucket(
                        name,
                        f"버킷 '{name}'이 지원되지 않는 암호화 알고리즘을 사용합니다: {algorithm}",
                        "AES256 또는 aws:kms 암호화로 변경하세요.",
                    )
