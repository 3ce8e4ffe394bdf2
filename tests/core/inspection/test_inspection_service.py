"""
tests/test_inspection_service.py - core/inspection/service.py 테스트
"""

import pytest

from core.exceptions import ConfigError, CredentialsError, InspectorNotFoundError
from core.inspection import (
    AWSInspector,
    BaseCheck,
    BaseInspector,
    InspectionRequest,
    InspectionService,
    InspectorRegistry,
)
from core.inspection.service import IN_FLIGHT_PROGRESS_CAP
from core.tracking import JobProgressTracker, JobStatus


class CountingCheck(BaseCheck):
    check_id = "counting"
    name = "카운트"

    def run(self):
        self.scanned(2)
        self.report("res-1", "Thing", "문제", "조치")


class SecondCheck(BaseCheck):
    check_id = "second"

    def run(self):
        self.scanned()


class LocalInspector(BaseInspector):
    service_category = "LOCAL"
    check_classes = (CountingCheck, SecondCheck)


class RemoteInspector(AWSInspector):
    service_category = "REMOTE"
    check_classes = (SecondCheck,)


@pytest.fixture
def tracker():
    return JobProgressTracker()


@pytest.fixture
def service(tracker):
    registry = InspectorRegistry()
    registry.register("LOCAL", LocalInspector)
    registry.register("REMOTE", RemoteInspector)
    return InspectionService(registry, tracker)


class TestRun:
    """InspectionService.run 테스트"""

    def test_success_completes_job_with_results(self, service, tracker):
        result = service.run("local", {}, {"targetItem": "all"}, job_id="job-1")

        assert result.resources_scanned == 3
        assert len(result.findings) == 1

        job = tracker.get("job-1")
        assert job.status == JobStatus.COMPLETED
        assert job.progress == 100
        assert not job.auto_completed
        assert job.results["serviceCategory"] == "LOCAL"
        assert job.service_category == "LOCAL"
        assert tracker.active_count() == 0
        assert len(tracker.completed_jobs()) == 1

    def test_in_flight_progress_capped(self, service, tracker):
        """진행 중 보고는 99를 넘지 않아 결과 없는 auto-completion이 일어나지 않음"""
        seen = []
        original = tracker.ingest

        def spy(update):
            seen.append(update.progress)
            return original(update)

        tracker.ingest = spy
        service.run("LOCAL", {}, job_id="job-1")

        assert seen
        assert max(seen) == IN_FLIGHT_PROGRESS_CAP
        assert tracker.get("job-1").results is not None

    def test_unknown_category(self, service, tracker):
        with pytest.raises(InspectorNotFoundError):
            service.run("RDS", {}, job_id="job-1")

        job = tracker.get("job-1")
        assert job.status == JobStatus.FAILED
        assert job.error

    def test_bad_credentials(self, service, tracker):
        with pytest.raises(CredentialsError):
            service.run("REMOTE", {"accessKeyId": "AKIA1234"}, job_id="job-1")

        assert tracker.get("job-1").status == JobStatus.FAILED

    def test_invalid_config(self, service, tracker):
        with pytest.raises(ConfigError):
            service.run("LOCAL", {}, {"targetItem": " "}, job_id="job-1")

        assert tracker.get("job-1").status == JobStatus.FAILED

    def test_batch_id_carried(self, service, tracker):
        service.run("LOCAL", {}, job_id="job-1", batch_id="batch-1")

        assert tracker.get("batch-1").job_id == "job-1"

    def test_inspector_options_passed(self, tracker):
        received = {}

        class OptionInspector(BaseInspector):
            service_category = "OPT"
            check_classes = ()

            def __init__(self, options=None):
                super().__init__(options)
                received.update(self.options)

        registry = InspectorRegistry()
        registry.register("OPT", OptionInspector)
        InspectionService(registry, tracker, {"max_retries": 5}).run("OPT", {})

        assert received == {"max_retries": 5}


class TestRunMany:
    """InspectionService.run_many 테스트"""

    def test_order_and_isolation(self, service, tracker):
        outcomes = service.run_many(
            [
                InspectionRequest("LOCAL", {}, job_id="a"),
                InspectionRequest("RDS", {}, job_id="b"),
                InspectionRequest("REMOTE", {}, job_id="c"),
                InspectionRequest("LOCAL", {}, {"targetItem": "second"}, job_id="d"),
            ]
        )

        assert [o.job_id for o in outcomes] == ["a", "b", "c", "d"]
        assert [o.success for o in outcomes] == [True, False, False, True]
        assert isinstance(outcomes[1].error, InspectorNotFoundError)
        assert isinstance(outcomes[2].error, CredentialsError)
        assert outcomes[3].result.resources_scanned == 1

        statuses = {job.job_id: job.status for job in tracker.completed_jobs()}
        assert statuses == {
            "a": JobStatus.COMPLETED,
            "b": JobStatus.FAILED,
            "c": JobStatus.FAILED,
            "d": JobStatus.COMPLETED,
        }
        assert tracker.active_count() == 0

    def test_empty(self, service):
        assert service.run_many([]) == []

    def test_background_flag(self, service, tracker):
        service.run_many([InspectionRequest("LOCAL", {}, job_id="a", is_background=True)])

        assert tracker.get("a").is_background
