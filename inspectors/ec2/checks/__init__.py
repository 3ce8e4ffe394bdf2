"""
inspectors/ec2/checks - EC2 Check Module 목록 (실행 순서)
"""

from .dangerous_ports import DangerousPortsCheck
from .ebs_encryption import EBSEncryptionCheck
from .termination_protection import TerminationProtectionCheck
from .unused_security_groups import UnusedSecurityGroupsCheck

CHECKS = (
    DangerousPortsCheck,
    EBSEncryptionCheck,
    TerminationProtectionCheck,
    UnusedSecurityGroupsCheck,
)

__all__: list[str] = [
    "CHECKS",
    "DangerousPortsCheck",
    "EBSEncryptionCheck",
    "TerminationProtectionCheck",
    "UnusedSecurityGroupsCheck",
]
