"""
tests/test_core_exceptions.py - core/exceptions.py 테스트
"""

import pytest
from conftest import create_mock_client_error

from core.exceptions import (
    ConfigError,
    CredentialsError,
    InspectorError,
    InspectorNotFoundError,
    InspectorStateError,
    InvalidArgumentError,
    ValidationError,
    format_error_for_user,
    get_error_code,
    is_access_denied,
    is_not_found,
    is_throttling,
)


class TestHierarchy:
    """예외 계층 구조"""

    @pytest.mark.parametrize(
        "error",
        [
            ConfigError("key", "msg"),
            CredentialsError(["access_key_id"]),
            InspectorStateError("S3", "msg"),
            InvalidArgumentError("factory", "msg"),
            InspectorNotFoundError("RDS"),
            ValidationError("field", 1, "str"),
        ],
    )
    def test_all_inherit_base(self, error):
        assert isinstance(error, InspectorError)

    def test_credentials_error_is_config_error(self):
        """자격 증명/수명 주기 오류는 설정 오류로 분류"""
        assert isinstance(CredentialsError(["x"]), ConfigError)
        assert isinstance(InspectorStateError("S3", "reused"), ConfigError)

    def test_not_found_is_not_config_error(self):
        assert not isinstance(InspectorNotFoundError("RDS"), ConfigError)


class TestMessages:
    """메시지와 상세 정보"""

    def test_config_error_message(self):
        error = ConfigError("target_item", "비어 있음")
        assert str(error) == "설정 오류 [target_item]: 비어 있음"
        assert error.details["config_key"] == "target_item"

    def test_credentials_error_lists_missing(self):
        error = CredentialsError(["access_key_id", "secret_access_key"])
        assert error.missing_fields == ["access_key_id", "secret_access_key"]
        assert "access_key_id, secret_access_key" in str(error)

    def test_cause_is_appended(self):
        error = InspectorError("실패", cause=ValueError("원인"))
        assert str(error) == "실패: 원인"

    def test_to_dict(self):
        data = InspectorNotFoundError("RDS").to_dict()
        assert data["error_type"] == "InspectorNotFoundError"
        assert data["details"]["service_category"] == "RDS"
        assert data["cause"] is None


class TestErrorHelpers:
    """에러 코드 헬퍼"""

    def test_get_error_code_from_client_error(self):
        assert get_error_code(create_mock_client_error("NoSuchBucket")) == "NoSuchBucket"

    def test_get_error_code_from_plain_exception(self):
        assert get_error_code(ValueError("x")) == "ValueError"

    def test_get_error_code_missing_code(self):
        error = ValueError("x")
        error.response = {"Error": {}}
        assert get_error_code(error) == "Unknown"

    def test_predicates(self):
        assert is_access_denied(create_mock_client_error("AccessDenied"))
        assert is_access_denied(create_mock_client_error("UnauthorizedOperation"))
        assert is_throttling(create_mock_client_error("RequestLimitExceeded"))
        assert is_throttling(create_mock_client_error("SlowDown"))
        assert is_not_found(create_mock_client_error("NoSuchBucket"))
        assert not is_access_denied(ValueError("AccessDenied"))

    def test_format_error_for_user(self):
        assert format_error_for_user(InspectorNotFoundError("RDS")) == "등록된 Inspector 없음: RDS"
        assert "권한" in format_error_for_user(create_mock_client_error("AccessDenied"))
        assert format_error_for_user(create_mock_client_error("Weird", "boom")) == "Weird: boom"
        assert format_error_for_user(ValueError("plain")) == "plain"
