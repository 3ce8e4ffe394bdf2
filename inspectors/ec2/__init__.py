"""
inspectors/ec2 - EC2 Inspector

Checks:
    - dangerous-ports: 위험 포트 인터넷 개방
    - ebs-encryption: EBS 볼륨 암호화
    - termination-protection: 인스턴스 종료 보호
    - unused-security-groups: 미사용 보안 그룹
"""

from core.inspection import AWSInspector

from .checks import CHECKS
from .collector import EC2DataCollector


class EC2Inspector(AWSInspector):
    """EC2 보안/운영 설정 Inspector"""

    service_category = "EC2"
    description = "EC2 인스턴스, 보안 그룹, EBS 볼륨 검사"
    check_classes = CHECKS

    def create_collector(self) -> EC2DataCollector:
        return EC2DataCollector(self)


__all__: list[str] = ["EC2Inspector", "EC2DataCollector"]
