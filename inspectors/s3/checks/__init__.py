"""
inspectors/s3/checks - S3 Check Module 목록 (실행 순서)
"""

from .encryption import BucketEncryptionCheck
from .logging_check import BucketLoggingCheck
from .policy import BucketPolicyCheck
from .public_access import BucketPublicAccessCheck
from .versioning import BucketVersioningCheck

CHECKS = (
    BucketEncryptionCheck,
    BucketPublicAccessCheck,
    BucketVersioningCheck,
    BucketLoggingCheck,
    BucketPolicyCheck,
)

__all__: list[str] = [
    "CHECKS",
    "BucketEncryptionCheck",
    "BucketPublicAccessCheck",
    "BucketVersioningCheck",
    "BucketLoggingCheck",
    "BucketPolicyCheck",
]
