"""
inspectors/ec2/checks/termination_protection.py - 종료 보호 검사
"""

from __future__ import annotations

from core.inspection import BaseCheck

from ..collector import INSTANCE_RESOURCE_TYPE, instance_name

INSTANCE_FIELDS = ("InstanceId",)


class TerminationProtectionCheck(BaseCheck):
    check_id = "termination-protection"
    name = "종료 보호"
    category = "operational-excellence"
    description = "EC2 인스턴스 API 종료 보호 설정 확인"

    def run(self) -> None:
        instances = []
        with self.inspector.format_errors(INSTANCE_RESOURCE_TYPE) as batch:
            for instance in self.collector.instances():
                self.scanned()
                if batch.check(instance, INSTANCE_FIELDS):
                    instances.append(instance)

        protection = self.collector.termination_protection([i["InstanceId"] for i in instances])
        for instance in instances:
            # None: 조회 실패 (이미 기록됨)
            if protection.get(instance["InstanceId"]) is not False:
                continue
            self.report(
                instance["InstanceId"],
                INSTANCE_RESOURCE_TYPE,
                f"인스턴스 '{instance_name(instance)}'에 종료 보호가 비활성화되어 있습니다",
                "실수로 인한 종료를 방지하기 위해 종료 보호 활성화를 고려하세요.",
            )
