"""
inspectors/ec2/checks/unused_security_groups.py - 미사용 보안 그룹 검사

네트워크 인터페이스/인스턴스 어디에도 연결되지 않은 보안 그룹을 보고합니다.
default 그룹은 삭제할 수 없으므로 제외합니다.
"""

from __future__ import annotations

from core.inspection import BaseCheck

from ..collector import SECURITY_GROUP_RESOURCE_TYPE

SECURITY_GROUP_FIELDS = ("GroupId", "GroupName")


class UnusedSecurityGroupsCheck(BaseCheck):
    check_id = "unused-security-groups"
    name = "미사용 보안 그룹"
    category = "cost-optimization"
    description = "어떤 리소스에도 연결되지 않은 보안 그룹 확인"

    def run(self) -> None:
        groups = self.collector.security_groups()
        used = self.collector.used_security_group_ids()

        with self.inspector.format_errors(SECURITY_GROUP_RESOURCE_TYPE) as batch:
            for group in groups:
                self.scanned()
                if not batch.check(group, SECURITY_GROUP_FIELDS):
                    continue
                if group["GroupName"] == "default" or group["GroupId"] in used:
                    continue
                self.report(
                    group["GroupId"],
                    SECURITY_GROUP_RESOURCE_TYPE,
                    f"보안 그룹 '{group['GroupName']}'이 사용되지 않고 있습니다",
                    "사용하지 않는 보안 그룹을 삭제하여 관리 복잡성을 줄이세요. 삭제 전 다른 리소스에서 참조하지 않는지 확인하세요.",
                )
