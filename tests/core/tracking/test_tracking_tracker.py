"""
tests/test_tracking_tracker.py - core/tracking/tracker.py 테스트
"""

import threading

import pytest

from core.tracking import (
    CompletionEvent,
    JobProgressTracker,
    JobStatus,
    ProgressUpdate,
    UpdateOutcome,
    clamp_progress,
)


@pytest.fixture
def tracker(fake_clock):
    return JobProgressTracker(clock=fake_clock)


class TestStartJob:
    """start_job 테스트"""

    def test_pending(self, tracker):
        job = tracker.start_job("a", service_category="S3", item_names=["all"], total_items=1)

        assert job.status == JobStatus.PENDING
        assert job.progress == 0
        assert job.batch_id == "a"
        assert tracker.active_ids() == ["a"]

    def test_generated_id(self, tracker):
        job = tracker.start_job()

        assert job.job_id
        assert tracker.get(job.job_id) is not None

    def test_batch_id_only(self, tracker):
        job = tracker.start_job(batch_id="b")

        assert job.job_id == "b"
        assert job.batch_id == "b"

    def test_idempotent(self, tracker):
        tracker.start_job("a")
        job = tracker.start_job("a", batch_id="b2")

        assert tracker.active_count() == 1
        assert "b2" in job.aliases
        assert tracker.get("b2").job_id == "a"

    def test_invalid_history_limit(self):
        with pytest.raises(ValueError):
            JobProgressTracker(history_limit=0)


class TestIngest:
    """ingest 테스트"""

    def test_progress_then_auto_completion(self, tracker):
        """40 → 100 → 명시적 완료: 완료 이력에 정확히 1건"""
        tracker.start_job("a")

        assert tracker.ingest({"jobId": "a", "progress": 40}) == UpdateOutcome.APPLIED
        job = tracker.get("a")
        assert job.progress == 40
        assert job.status == JobStatus.IN_PROGRESS

        assert tracker.ingest({"jobId": "a", "progress": 100}) == UpdateOutcome.COMPLETED
        assert tracker.complete({"jobId": "a", "status": "COMPLETED", "results": {"ok": True}}) is False

        assert tracker.active_jobs() == []
        completed = tracker.completed_jobs()
        assert len(completed) == 1
        assert completed[0].status == JobStatus.COMPLETED
        assert completed[0].progress == 100
        assert completed[0].auto_completed
        assert completed[0].current_step == "Completed"

    def test_nested_progress_shape(self, tracker):
        tracker.start_job("a", batch_id="b")

        outcome = tracker.ingest({"batchId": "b", "progress": {"percentage": 30, "currentStep": "버킷 조회"}})

        assert outcome == UpdateOutcome.APPLIED
        job = tracker.get("a")
        assert job.progress == 30
        assert job.current_step == "버킷 조회"

    def test_unknown_job_dropped(self, tracker):
        assert tracker.ingest({"jobId": "ghost", "progress": 50}) == UpdateOutcome.DROPPED_UNKNOWN
        assert tracker.get("ghost") is None
        assert tracker.active_count() == 0

    def test_invalid_update_dropped(self, tracker):
        tracker.start_job("a")

        assert tracker.ingest({"progress": 10}) == UpdateOutcome.DROPPED_INVALID
        assert tracker.ingest({"jobId": "a", "progress": "abc"}) == UpdateOutcome.DROPPED_INVALID
        assert tracker.ingest({"jobId": "a", "status": "EXPLODED"}) == UpdateOutcome.DROPPED_INVALID
        assert tracker.get("a").progress == 0

    def test_progress_never_decreases(self, tracker):
        tracker.start_job("a")
        tracker.ingest({"jobId": "a", "progress": 60})

        assert tracker.ingest({"jobId": "a", "progress": 30}) == UpdateOutcome.DROPPED_REGRESSION
        assert tracker.get("a").progress == 60

    def test_reset_to_zero_allowed(self, tracker):
        tracker.start_job("a")
        tracker.ingest({"jobId": "a", "progress": 60})

        assert tracker.ingest({"jobId": "a", "progress": 0}) == UpdateOutcome.APPLIED
        assert tracker.get("a").progress == 0

    def test_reset_disabled(self, fake_clock):
        tracker = JobProgressTracker(allow_reset=False, clock=fake_clock)
        tracker.start_job("a")
        tracker.ingest({"jobId": "a", "progress": 60})

        assert tracker.ingest({"jobId": "a", "progress": 0}) == UpdateOutcome.DROPPED_REGRESSION

    def test_duplicate_window(self, tracker, fake_clock):
        tracker.start_job("a")
        tracker.ingest({"jobId": "a", "progress": 40})

        fake_clock.advance(0.05)
        assert tracker.ingest({"jobId": "a", "progress": 40}) == UpdateOutcome.DROPPED_DUPLICATE

        fake_clock.advance(0.2)
        assert tracker.ingest({"jobId": "a", "progress": 40}) == UpdateOutcome.APPLIED

    def test_changed_step_is_not_duplicate(self, tracker):
        tracker.start_job("a")
        tracker.ingest({"jobId": "a", "progress": 40, "currentStep": "one"})

        assert tracker.ingest({"jobId": "a", "progress": 40, "currentStep": "two"}) == UpdateOutcome.APPLIED

    def test_progress_clamped(self, tracker):
        tracker.start_job("a")

        assert tracker.ingest(ProgressUpdate("a", progress=150)) == UpdateOutcome.COMPLETED
        assert tracker.get("a").progress == 100

    def test_alias_learned_from_update(self, tracker):
        tracker.start_job("a")
        tracker.ingest({"jobId": "a", "batchId": "x", "progress": 10})

        assert tracker.ingest({"batchId": "x", "progress": 50}) == UpdateOutcome.APPLIED
        assert tracker.get("a").progress == 50

    def test_failed_status(self, tracker):
        tracker.start_job("a", batch_id="b")

        assert tracker.ingest({"batchId": "b", "status": "failed"}) == UpdateOutcome.COMPLETED

        job = tracker.completed_jobs()[0]
        assert job.status == JobStatus.FAILED
        assert not job.auto_completed

    def test_explicit_status_kept(self, tracker):
        tracker.start_job("a")
        tracker.ingest({"jobId": "a", "status": "IN_PROGRESS"})

        assert tracker.get("a").status == JobStatus.IN_PROGRESS

    def test_stale_pending_status_dropped(self, tracker):
        """IN_PROGRESS 이후 늦게 도착한 PENDING은 상태를 되돌리지 않음"""
        tracker.start_job("a")
        tracker.ingest({"jobId": "a", "status": "IN_PROGRESS", "progress": 50})

        outcome = tracker.ingest({"jobId": "a", "status": "PENDING", "progress": 50})

        assert outcome == UpdateOutcome.DROPPED_REGRESSION
        assert tracker.get("a").status == JobStatus.IN_PROGRESS

    def test_stale_pending_status_keeps_progress(self, tracker):
        """진행률은 반영하고 상태는 유지"""
        tracker.start_job("a")
        tracker.ingest({"jobId": "a", "status": "IN_PROGRESS", "progress": 20})

        assert tracker.ingest({"jobId": "a", "status": "PENDING", "progress": 70}) == UpdateOutcome.APPLIED

        job = tracker.get("a")
        assert job.progress == 70
        assert job.status == JobStatus.IN_PROGRESS

    @pytest.mark.parametrize("value", ["nan", "inf", "-inf", "1e400", float("nan"), float("inf"), 10**400])
    def test_non_finite_progress_dropped(self, tracker, value):
        tracker.start_job("a")
        tracker.ingest({"jobId": "a", "progress": 30})

        assert tracker.ingest({"jobId": "a", "progress": value}) == UpdateOutcome.DROPPED_INVALID
        job = tracker.get("a")
        assert job.progress == 30
        assert job.status == JobStatus.IN_PROGRESS

    def test_non_finite_progress_update_object_dropped(self, tracker):
        tracker.start_job("a")

        assert tracker.ingest(ProgressUpdate("a", progress=float("nan"))) == UpdateOutcome.DROPPED_INVALID
        assert tracker.get("a").progress == 0

    def test_background_does_not_change_rules(self, tracker):
        tracker.start_job("a", is_background=True)

        tracker.ingest({"jobId": "a", "progress": 100})

        assert tracker.completed_jobs()[0].auto_completed


class TestComplete:
    """complete 테스트"""

    def test_explicit_completion(self, tracker):
        tracker.start_job("a", batch_id="b")
        tracker.ingest({"jobId": "a", "progress": 70})

        assert tracker.complete(CompletionEvent("b", results={"findings": []}))

        job = tracker.get("a")
        assert job.status == JobStatus.COMPLETED
        assert job.progress == 100
        assert job.results == {"findings": []}
        assert not job.auto_completed
        assert job.completed_at is not None

    def test_failure_with_error(self, tracker):
        tracker.start_job("a")

        assert tracker.complete(CompletionEvent("a", status=JobStatus.FAILED, error="권한 없음"))

        job = tracker.get("a")
        assert job.status == JobStatus.FAILED
        assert job.error == "권한 없음"
        assert job.progress == 0

    def test_repeated_completion_is_idempotent(self, tracker):
        tracker.start_job("a")

        results = [tracker.complete({"jobId": "a"}) for _ in range(5)]

        assert results == [True, False, False, False, False]
        assert len(tracker.completed_jobs()) == 1

    def test_unknown_or_invalid(self, tracker):
        assert tracker.complete({"jobId": "ghost"}) is False
        assert tracker.complete({"results": {}}) is False

    def test_concurrent_completion_single_transition(self, tracker):
        """push/poll이 동시에 완료를 보내도 종료 전이는 1회"""
        tracker.start_job("a")
        notified = []
        tracker.add_listener(notified.append)
        transitions = []
        barrier = threading.Barrier(10, timeout=5)

        def worker(n):
            barrier.wait()
            if n % 2:
                transitions.append(tracker.complete({"jobId": "a"}))
            else:
                transitions.append(tracker.ingest({"jobId": "a", "progress": 100}) == UpdateOutcome.COMPLETED)

        threads = [threading.Thread(target=worker, args=(n,)) for n in range(10)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert transitions.count(True) == 1
        assert len(tracker.completed_jobs()) == 1
        assert len(notified) == 1

    def test_rerun_with_same_id_not_duplicated_in_history(self, tracker):
        tracker.start_job("a")
        tracker.complete({"jobId": "a"})
        tracker.start_job("a")
        tracker.complete({"jobId": "a"})

        assert len(tracker.completed_jobs()) == 1
        assert tracker.active_count() == 0


class TestHistory:
    """완료 이력 테스트"""

    def test_bounded_newest_first(self, fake_clock):
        tracker = JobProgressTracker(history_limit=3, clock=fake_clock)
        for job_id in "abcde":
            tracker.start_job(job_id)
            tracker.complete({"jobId": job_id})

        assert [job.job_id for job in tracker.completed_jobs()] == ["e", "d", "c"]

    def test_default_limit(self, tracker):
        for n in range(12):
            tracker.start_job(f"job-{n}")
            tracker.complete({"jobId": f"job-{n}"})

        assert len(tracker.completed_jobs()) == 10

    def test_clear(self, tracker):
        tracker.start_job("a")
        tracker.complete({"jobId": "a"})
        tracker.clear_history()

        assert tracker.completed_jobs() == []


class TestCommands:
    """취소/백그라운드/리스너 테스트"""

    def test_cancel(self, tracker):
        tracker.start_job("a")

        assert tracker.cancel("a")
        assert tracker.get("a") is None
        assert tracker.completed_jobs() == []
        assert not tracker.cancel("a")

    def test_background_foreground(self, tracker):
        tracker.start_job("a")
        tracker.start_job("b")

        assert tracker.move_to_background("a")
        assert [job.job_id for job in tracker.background_jobs()] == ["a"]
        assert tracker.foreground_job().job_id == "b"

        assert tracker.move_to_foreground("a")
        assert tracker.background_jobs() == []
        assert not tracker.move_to_background("ghost")

    def test_listener_only_on_terminal(self, tracker):
        seen = []
        tracker.add_listener(lambda job: seen.append((job.job_id, job.status)))
        tracker.start_job("a")

        tracker.ingest({"jobId": "a", "progress": 50})
        assert seen == []

        tracker.complete({"jobId": "a"})
        assert seen == [("a", JobStatus.COMPLETED)]

    def test_listener_failure_ignored(self, tracker):
        def broken(job):
            raise RuntimeError("boom")

        tracker.add_listener(broken)
        tracker.start_job("a")

        assert tracker.complete({"jobId": "a"})

    def test_remove_listener(self, tracker):
        seen = []
        tracker.add_listener(seen.append)
        tracker.remove_listener(seen.append)
        tracker.start_job("a")
        tracker.complete({"jobId": "a"})

        assert seen == []

    def test_snapshot_isolated(self, tracker):
        tracker.start_job("a")
        job = tracker.get("a")
        job.progress = 99
        job.aliases.add("x")

        assert tracker.get("a").progress == 0
        assert tracker.get("x") is None


class TestClampProgress:
    """clamp_progress 테스트"""

    @pytest.mark.parametrize("value,expected", [(-5, 0), (0, 0), (42.4, 42), (99.6, 100), (250, 100)])
    def test_clamp(self, value, expected):
        assert clamp_progress(value) == expected
