"""
inspectors/ec2/checks/dangerous_ports.py - 위험 포트 노출 검사

인터넷 전체(0.0.0.0/0, ::/0)에 열린 인바운드 규칙 중 위험 포트를 포함하는
보안 그룹을 보고합니다. 규칙 구조가 잘못된 그룹은 형식 오류로 모아 1건만 보고합니다.
"""

from __future__ import annotations

from typing import Any

from core.inspection import BaseCheck

from ..collector import SECURITY_GROUP_RESOURCE_TYPE

DANGEROUS_PORTS = {
    22: "SSH",
    3389: "RDP",
    23: "Telnet",
    21: "FTP",
    3306: "MySQL",
    5432: "PostgreSQL",
}

# 이 포트가 열려 있으면 즉시 조치 권고
CRITICAL_PORTS = {22, 3389}

OPEN_CIDRS = {"0.0.0.0/0", "::/0"}

SECURITY_GROUP_FIELDS = ("GroupId", "GroupName", "IpPermissions")


def is_open_to_world(permission: dict[str, Any]) -> bool:
    ipv4 = {r.get("CidrIp") for r in permission.get("IpRanges") or []}
    ipv6 = {r.get("CidrIpv6") for r in permission.get("Ipv6Ranges") or []}
    return bool((ipv4 | ipv6) & OPEN_CIDRS)


def exposed_ports(permission: dict[str, Any]) -> list[int]:
    """규칙이 허용하는 위험 포트 (프로토콜 -1은 전체 포트)"""
    if str(permission.get("IpProtocol")) == "-1":
        return sorted(DANGEROUS_PORTS)

    from_port = permission.get("FromPort")
    to_port = permission.get("ToPort")
    if from_port is None or to_port is None:
        return []
    return sorted(p for p in DANGEROUS_PORTS if from_port <= p <= to_port)


def permission_format_error(permission: Any) -> str | None:
    """규칙 구조 검증 (정상이면 None)"""
    if not isinstance(permission, dict):
        return "IpPermissions 항목이 객체가 아님"
    ranges = permission.get("IpRanges")
    if ranges is not None and not isinstance(ranges, list):
        return "IpRanges가 배열이 아님"
    for entry in ranges or []:
        if not isinstance(entry, dict) or not entry.get("CidrIp"):
            return "IpRanges 항목에 CidrIp 누락"
    return None


class DangerousPortsCheck(BaseCheck):
    check_id = "dangerous-ports"
    name = "위험 포트 노출"
    description = "SSH/RDP/DB 등 위험 포트의 인터넷 개방 여부 확인"

    def run(self) -> None:
        groups = self.collector.security_groups()

        with self.inspector.format_errors(SECURITY_GROUP_RESOURCE_TYPE) as batch:
            for group in groups:
                self.scanned()
                if not batch.check(group, SECURITY_GROUP_FIELDS):
                    continue
                if not isinstance(group["IpPermissions"], list):
                    batch.add("IpPermissions가 배열이 아님")
                    continue

                errors = [e for e in map(permission_format_error, group["IpPermissions"]) if e]
                if errors:
                    batch.add(errors[0])
                    continue

                self._inspect(group)

    def _inspect(self, group: dict[str, Any]) -> None:
        ports: set[int] = set()
        for permission in group["IpPermissions"]:
            if is_open_to_world(permission):
                ports.update(exposed_ports(permission))
        if not ports:
            return

        issues = ", ".join(f"{DANGEROUS_PORTS[p]} 포트({p})" for p in sorted(ports))
        if ports & CRITICAL_PORTS:
            issue = f"보안 그룹 '{group['GroupName']}'에서 심각한 포트 노출: {issues}"
            recommendation = "즉시 SSH/RDP 포트를 특정 IP로 제한하고 불필요한 규칙을 제거하세요."
        else:
            issue = f"보안 그룹 '{group['GroupName']}'에서 위험한 포트 노출: {issues}"
            recommendation = "위험한 포트들을 특정 IP로 제한하거나 제거하세요."

        self.report(group["GroupId"], SECURITY_GROUP_RESOURCE_TYPE, issue, recommendation)
