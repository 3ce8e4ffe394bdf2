"""
tests/test_parallel_errors.py - core/parallel/errors.py 테스트
"""

import logging
import threading

import pytest
from conftest import create_mock_client_error

from core.parallel.errors import (
    CollectedError,
    ErrorCollector,
    ErrorSeverity,
    categorize_error_code,
)
from core.parallel.types import ErrorCategory


class TestCategorizeErrorCode:
    """categorize_error_code 테스트"""

    @pytest.mark.parametrize(
        "code,expected",
        [
            ("AccessDenied", ErrorCategory.ACCESS_DENIED),
            ("AllAccessDisabled", ErrorCategory.ACCESS_DENIED),
            ("ExpiredTokenException", ErrorCategory.EXPIRED_TOKEN),
            ("NoSuchPublicAccessBlockConfiguration", ErrorCategory.NOT_FOUND),
            ("ThrottlingException", ErrorCategory.THROTTLING),
            ("RequestTimeout", ErrorCategory.TIMEOUT),
            ("ValidationException", ErrorCategory.INVALID_REQUEST),
            ("ServiceUnavailable", ErrorCategory.SERVICE_ERROR),
            ("Mystery", ErrorCategory.UNKNOWN),
        ],
    )
    def test_keywords(self, code, expected):
        assert categorize_error_code(code) == expected


class TestErrorCollector:
    """ErrorCollector 테스트"""

    def test_collect_client_error(self):
        collector = ErrorCollector("s3", region="ap-northeast-2")
        collected = collector.collect(
            create_mock_client_error("InternalError", "oops"),
            "GetBucketPolicy",
            resource_id="bucket-a",
        )

        assert isinstance(collected, CollectedError)
        assert collected.error_code == "InternalError"
        assert collected.error_message == "oops"
        assert collected.category == ErrorCategory.SERVICE_ERROR
        assert collected.severity == ErrorSeverity.WARNING
        assert len(collector) == 1

    def test_collect_plain_exception(self):
        collector = ErrorCollector("ec2")
        collected = collector.collect(RuntimeError("boom"), "dangerous-ports", severity=ErrorSeverity.CRITICAL)

        assert collected.error_code == "RuntimeError"
        assert collected.error == "RuntimeError: boom"
        assert collected.severity == ErrorSeverity.CRITICAL

    def test_access_denied_downgraded_to_info(self):
        collector = ErrorCollector("s3")
        collected = collector.collect(create_mock_client_error("AccessDenied"), "ListBuckets")

        assert collected.severity == ErrorSeverity.INFO

    def test_logs_at_severity_level(self, caplog):
        collector = ErrorCollector("s3")
        with caplog.at_level(logging.DEBUG, logger="core.parallel.errors"):
            collector.collect_generic("Boom", "msg", "op", severity=ErrorSeverity.CRITICAL)

        assert caplog.records[-1].levelno == logging.ERROR

    def test_to_dict_shape(self):
        """결과 페이로드용 {error, context} 형태"""
        collector = ErrorCollector("s3", region="us-east-1")
        collected = collector.collect_generic(
            "UnsupportedCheck",
            "지원하지 않는 검사 항목",
            "dispatch",
            resource_id="bogus",
            context={"targetItem": "bogus"},
        )

        data = collected.to_dict()
        assert data["error"] == "UnsupportedCheck: 지원하지 않는 검사 항목"
        assert data["context"]["operation"] == "dispatch"
        assert data["context"]["resourceId"] == "bogus"
        assert data["context"]["region"] == "us-east-1"
        assert data["context"]["targetItem"] == "bogus"
        assert data["severity"] == "warning"

    def test_order_and_grouping(self):
        collector = ErrorCollector("s3")
        collector.collect_generic("A", "a", "op1")
        collector.collect_generic("B", "b", "op2")
        collector.collect_generic("C", "c", "op1")

        assert [e.error_code for e in collector] == ["A", "B", "C"]
        assert collector.get_summary() == "에러 3건 (warning: 3건)"
        assert ErrorCollector("s3").get_summary() == "에러 없음"

    def test_thread_safety(self):
        """동시 수집 시 유실 없음"""
        collector = ErrorCollector("ec2")

        def worker(n):
            for i in range(50):
                collector.collect_generic("E", f"{n}-{i}", "op")

        threads = [threading.Thread(target=worker, args=(n,)) for n in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(collector) == 400

