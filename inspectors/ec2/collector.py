"""
inspectors/ec2/collector.py - EC2 Resource Data Collector

목록 API는 paginator로 전체를 읽어 Inspector 실행 동안 캐시합니다.
인스턴스별 속성 조회(DescribeInstanceAttribute)는 collect_each로 동시에 실행합니다.
"""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from core.inspection import AWSInspector

logger = logging.getLogger(__name__)

INSTANCE_RESOURCE_TYPE = "EC2Instance"
SECURITY_GROUP_RESOURCE_TYPE = "SecurityGroup"
VOLUME_RESOURCE_TYPE = "EBSVolume"

# 검사 대상에서 제외하는 인스턴스 상태
SKIPPED_INSTANCE_STATES = {"terminated", "shutting-down"}


class EC2DataCollector:
    """EC2 인스턴스/보안 그룹/볼륨 수집기"""

    def __init__(self, inspector: AWSInspector):
        self.inspector = inspector
        self._cache: dict[str, list[dict[str, Any]]] = {}
        self._lock = threading.Lock()

    @property
    def ec2(self) -> Any:
        return self.inspector.client("ec2")

    def _paginate(self, method: str, key: str) -> list[dict[str, Any]]:
        """paginator 결과를 평탄화해 캐시 (재시도는 전체 목록 단위)"""
        with self._lock:
            if method not in self._cache:

                def read_all() -> list[dict[str, Any]]:
                    items: list[dict[str, Any]] = []
                    for page in self.ec2.get_paginator(method).paginate():
                        items.extend(page.get(key) or [])
                    return items

                self._cache[method] = self.inspector.call(read_all, method)
                logger.debug(f"{method}: {len(self._cache[method])}건")
            return list(self._cache[method])

    def security_groups(self) -> list[dict[str, Any]]:
        return self._paginate("describe_security_groups", "SecurityGroups")

    def instances(self) -> list[dict[str, Any]]:
        """종료되지 않은 인스턴스 목록 (Reservations 평탄화)"""
        instances: list[dict[str, Any]] = []
        for reservation in self._paginate("describe_instances", "Reservations"):
            for instance in reservation.get("Instances") or []:
                state = (instance.get("State") or {}).get("Name") if isinstance(instance, dict) else None
                if state in SKIPPED_INSTANCE_STATES:
                    continue
                instances.append(instance)
        return instances

    def volumes(self) -> list[dict[str, Any]]:
        return self._paginate("describe_volumes", "Volumes")

    def network_interfaces(self) -> list[dict[str, Any]]:
        return self._paginate("describe_network_interfaces", "NetworkInterfaces")

    def used_security_group_ids(self) -> set[str]:
        """네트워크 인터페이스 또는 인스턴스에 연결된 보안 그룹 ID"""
        used: set[str] = set()
        for source in (self.network_interfaces(), self.instances()):
            for item in source:
                if not isinstance(item, dict):
                    continue
                for group in item.get("Groups") or item.get("SecurityGroups") or []:
                    if isinstance(group, dict) and group.get("GroupId"):
                        used.add(group["GroupId"])
        return used

    def termination_protection(self, instance_ids: list[str]) -> dict[str, bool | None]:
        """인스턴스별 종료 보호 여부 (조회 실패는 None)"""

        def fetch(instance_id: str) -> bool:
            response = self.ec2.describe_instance_attribute(
                InstanceId=instance_id,
                Attribute="disableApiTermination",
            )
            return bool((response.get("DisableApiTermination") or {}).get("Value"))

        operations = {instance_id: (lambda instance_id=instance_id: fetch(instance_id)) for instance_id in instance_ids}
        return self.inspector.collect_each(operations, "DescribeInstanceAttribute", INSTANCE_RESOURCE_TYPE)


def instance_name(instance: dict[str, Any]) -> str:
    """Name 태그 (없으면 인스턴스 ID)"""
    for tag in instance.get("Tags") or []:
        if tag.get("Key") == "Name" and tag.get("Value"):
            return tag["Value"]
    return instance.get("InstanceId", "")
