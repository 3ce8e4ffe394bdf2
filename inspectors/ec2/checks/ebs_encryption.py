"""
inspectors/ec2/checks/ebs_encryption.py - EBS 볼륨 암호화 검사
"""

from __future__ import annotations

from core.inspection import BaseCheck

from ..collector import VOLUME_RESOURCE_TYPE

VOLUME_FIELDS = ("VolumeId",)


class EBSEncryptionCheck(BaseCheck):
    check_id = "ebs-encryption"
    name = "EBS 암호화"
    description = "암호화되지 않은 EBS 볼륨 확인"

    def run(self) -> None:
        volumes = self.collector.volumes()

        with self.inspector.format_errors(VOLUME_RESOURCE_TYPE) as batch:
            for volume in volumes:
                self.scanned()
                if not batch.check(volume, VOLUME_FIELDS):
                    continue
                if volume.get("Encrypted"):
                    continue

                attached = [a.get("InstanceId") for a in volume.get("Attachments") or [] if a.get("InstanceId")]
                where = f" (연결: {', '.join(attached)})" if attached else ""
                self.report(
                    volume["VolumeId"],
                    VOLUME_RESOURCE_TYPE,
                    f"EBS 볼륨 '{volume['VolumeId']}'이 암호화되어 있지 않습니다{where}",
                    "EBS 볼륨을 암호화하여 데이터 보안을 강화하세요. 스냅샷을 통해 암호화된 복사본을 생성한 뒤 교체하세요.",
                )
