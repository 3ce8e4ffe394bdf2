"""
core/auth/session.py - 검사용 AWS 자격 증명과 boto3 Session 생성

검사 요청에 실려 오는 자격 증명은 코어 입장에서 불투명한 값입니다.
필수 필드만 확인한 뒤 그대로 boto3 Session에 전달합니다.

지원 형태:
    - 정적 키: access_key_id + secret_access_key (+ session_token)
    - 프로파일: profile 하나만 지정 (~/.aws/credentials 사용)

Usage:
    from core.auth import AWSCredentials

    creds = AWSCredentials.from_mapping({
        "accessKeyId": "AKIA...",
        "secretAccessKey": "...",
        "region": "us-east-1",
    })
    session = creds.create_session()
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

import boto3

from core.config import get_default_region
from core.exceptions import CredentialsError

logger = logging.getLogger(__name__)

# from_mapping이 인식하는 키 (camelCase / snake_case)
_FIELD_ALIASES = {
    "access_key_id": ("access_key_id", "accessKeyId", "aws_access_key_id"),
    "secret_access_key": ("secret_access_key", "secretAccessKey", "aws_secret_access_key"),
    "session_token": ("session_token", "sessionToken", "aws_session_token"),
    "region": ("region", "region_name", "regionName"),
    "profile": ("profile", "profile_name", "profileName"),
}


@dataclass(frozen=True)
class AWSCredentials:
    """검사 실행용 AWS 자격 증명

    Attributes:
        access_key_id: 액세스 키 ID
        secret_access_key: 시크릿 액세스 키
        session_token: 임시 자격 증명의 세션 토큰 (선택)
        region: 기본 리전 (선택, InspectionConfig.region이 우선)
        profile: 로컬 AWS 프로파일 이름 (정적 키 대신 사용)
    """

    access_key_id: str | None = None
    secret_access_key: str | None = None
    session_token: str | None = None
    region: str | None = None
    profile: str | None = None

    def __repr__(self) -> str:
        # 키 값은 로그에 남기지 않음
        masked = f"{self.access_key_id[:4]}****" if self.access_key_id else None
        return f"AWSCredentials(access_key_id={masked!r}, region={self.region!r}, profile={self.profile!r})"

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any] | None) -> AWSCredentials:
        """딕셔너리에서 생성 (camelCase/snake_case 모두 허용)

        Raises:
            CredentialsError: data가 매핑이 아닌 경우
        """
        if data is None:
            return cls()
        if not isinstance(data, Mapping):
            raise CredentialsError(["access_key_id", "secret_access_key"])

        values: dict[str, str | None] = {}
        for field_name, aliases in _FIELD_ALIASES.items():
            values[field_name] = next((data[a] for a in aliases if data.get(a)), None)
        return cls(**values)

    @property
    def uses_profile(self) -> bool:
        return bool(self.profile) and not self.access_key_id

    def missing_fields(self) -> list[str]:
        """누락된 필수 필드 목록 (프로파일 사용 시 빈 목록)"""
        if self.uses_profile:
            return []
        return [name for name in ("access_key_id", "secret_access_key") if not getattr(self, name)]

    def validate(self) -> None:
        """필수 필드 검증

        Raises:
            CredentialsError: 정적 키 필드가 누락된 경우
        """
        missing = self.missing_fields()
        if missing:
            raise CredentialsError(missing)

    def create_session(self, region: str | None = None) -> boto3.Session:
        """boto3 Session 생성

        Args:
            region: 리전 (None이면 self.region → 환경변수 → 기본 리전)

        Raises:
            CredentialsError: 필수 필드 누락
        """
        self.validate()
        region_name = region or self.region or get_default_region()

        if self.uses_profile:
            logger.debug(f"프로파일 세션 생성: {self.profile} ({region_name})")
            return boto3.Session(profile_name=self.profile, region_name=region_name)

        logger.debug(f"정적 키 세션 생성: {self!r} ({region_name})")
        return boto3.Session(
            aws_access_key_id=self.access_key_id,
            aws_secret_access_key=self.secret_access_key,
            aws_session_token=self.session_token,
            region_name=region_name,
        )


def resolve_credentials(credentials: AWSCredentials | Mapping[str, Any] | None) -> AWSCredentials:
    """AWSCredentials 또는 매핑을 AWSCredentials로 정규화"""
    if isinstance(credentials, AWSCredentials):
        return credentials
    return AWSCredentials.from_mapping(credentials)
