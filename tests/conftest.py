"""
tests/conftest.py - pytest 공통 픽스처

AWS API 모킹과 테스트 헬퍼를 제공합니다.

Usage:
    def test_something(mock_s3_client, no_sleep):
        # mock_s3_client: MagicMock S3 client
        # no_sleep: 재시도 대기 시간 기록용 sleep 대체
        pass
"""

import os
from typing import Any, Dict, List
from unittest.mock import MagicMock

import boto3
import pytest
from botocore.exceptions import ClientError
from moto import mock_aws

# =============================================================================
# 환경 설정
# =============================================================================


@pytest.fixture(autouse=True)
def setup_test_environment(monkeypatch):
    """테스트 환경 설정"""
    monkeypatch.setenv("AWS_DEFAULT_REGION", "ap-northeast-2")
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    monkeypatch.delenv("AWS_PROFILE", raising=False)
    monkeypatch.delenv("AWS_DEFAULT_PROFILE", raising=False)
    monkeypatch.delenv("AWS_REGION", raising=False)

    yield


# =============================================================================
# 공통 값
# =============================================================================

STATIC_CREDENTIALS = {
    "accessKeyId": "testing",
    "secretAccessKey": "testing",
    "region": "ap-northeast-2",
}


@pytest.fixture
def static_credentials() -> Dict[str, str]:
    """정적 키 자격 증명 (camelCase)"""
    return dict(STATIC_CREDENTIALS)


class SleepRecorder:
    """time.sleep 대체 (대기 시간만 기록)"""

    def __init__(self):
        self.calls: List[float] = []

    def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


@pytest.fixture
def no_sleep() -> SleepRecorder:
    return SleepRecorder()


class FakeClock:
    """수동으로 진행시키는 단조 시계"""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


# =============================================================================
# AWS 모킹 픽스처
# =============================================================================


def make_paginator(pages: List[Dict[str, Any]]) -> MagicMock:
    """paginate()가 주어진 페이지를 돌려주는 paginator 모킹"""
    paginator = MagicMock()
    paginator.paginate.return_value = pages
    return paginator


@pytest.fixture
def mock_s3_client():
    """S3 클라이언트 모킹 (버킷 1개, 모든 설정 정상)"""
    mock_client = MagicMock()

    mock_client.list_buckets.return_value = {
        "Buckets": [{"Name": "test-bucket", "CreationDate": "2024-01-01T00:00:00Z"}],
        "Owner": {"DisplayName": "test-owner", "ID": "12345"},
    }
    mock_client.get_bucket_encryption.return_value = {
        "ServerSideEncryptionConfiguration": {
            "Rules": [{"ApplyServerSideEncryptionByDefault": {"SSEAlgorithm": "aws:kms"}}]
        }
    }
    mock_client.get_public_access_block.return_value = {
        "PublicAccessBlockConfiguration": {
            "BlockPublicAcls": True,
            "IgnorePublicAcls": True,
            "BlockPublicPolicy": True,
            "RestrictPublicBuckets": True,
        }
    }
    mock_client.get_bucket_versioning.return_value = {"Status": "Enabled", "MFADelete": "Enabled"}
    mock_client.get_bucket_logging.return_value = {
        "LoggingEnabled": {"TargetBucket": "log-bucket", "TargetPrefix": "test-bucket/"}
    }
    mock_client.get_bucket_policy.side_effect = create_mock_client_error("NoSuchBucketPolicy")

    yield mock_client


@pytest.fixture
def mock_ec2_client():
    """EC2 클라이언트 모킹 (paginator는 메서드 이름별 페이지 사용)"""
    mock_client = MagicMock()
    mock_client.pages = {
        "describe_security_groups": [{"SecurityGroups": []}],
        "describe_instances": [
            {
                "Reservations": [
                    {
                        "Instances": [
                            {
                                "InstanceId": "i-1234567890abcdef0",
                                "InstanceType": "t3.micro",
                                "State": {"Name": "running"},
                                "Tags": [{"Key": "Name", "Value": "test-instance"}],
                                "SecurityGroups": [{"GroupId": "sg-web", "GroupName": "web"}],
                            }
                        ]
                    }
                ]
            }
        ],
        "describe_volumes": [{"Volumes": []}],
        "describe_network_interfaces": [{"NetworkInterfaces": []}],
    }
    mock_client.get_paginator.side_effect = lambda name: make_paginator(mock_client.pages[name])
    mock_client.describe_instance_attribute.return_value = {"DisableApiTermination": {"Value": True}}

    yield mock_client


# =============================================================================
# 유틸리티 함수
# =============================================================================


def create_mock_client_error(
    error_code: str,
    error_message: str = "Test error",
    operation_name: str = "TestOperation",
) -> ClientError:
    """ClientError 생성 헬퍼"""
    return ClientError(
        {
            "Error": {
                "Code": error_code,
                "Message": error_message,
            }
        },
        operation_name,
    )


# =============================================================================
# moto 통합
# =============================================================================


@pytest.fixture
def aws_credentials(monkeypatch):
    """moto 사용 시 AWS 자격 증명 설정"""
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    monkeypatch.setenv("AWS_SECURITY_TOKEN", "testing")
    monkeypatch.setenv("AWS_SESSION_TOKEN", "testing")
    monkeypatch.setenv("AWS_DEFAULT_REGION", "ap-northeast-2")


@pytest.fixture
def moto_ec2(aws_credentials):
    """moto를 사용한 EC2 모킹"""
    with mock_aws():
        ec2 = boto3.client("ec2", region_name="ap-northeast-2")

        # VPC 생성
        vpc = ec2.create_vpc(CidrBlock="10.0.0.0/16")
        vpc_id = vpc["Vpc"]["VpcId"]

        yield ec2, vpc_id


@pytest.fixture
def moto_s3(aws_credentials):
    """moto를 사용한 S3 모킹"""
    with mock_aws():
        s3 = boto3.client("s3", region_name="ap-northeast-2")
        yield s3
