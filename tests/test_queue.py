"""
Worker Loop Tests
=================
FIFO processing, failure containment, progress reporting and lifecycle.
"""
import pytest

from render_queue.jobs import JobNotFoundError, JobQueue, JobStatus, QueueClosedError

TIMEOUT = 5


class TestHappyPath:
    def test_pending_then_completed(self, gated_queue, gated_renderer, store):
        first = gated_queue.submit({"name": "first"})
        second = gated_queue.submit({"name": "second"})

        assert gated_renderer.started.wait(TIMEOUT)
        assert store.get(second).status is JobStatus.PENDING
        assert store.get(second).progress == 0
        running = store.get(first)
        assert running.status is JobStatus.PROCESSING
        assert running.progress == 25
        assert running.started_at is not None
        assert running.completed_at is None
        assert running.result is None

        gated_renderer.release.set()
        assert gated_queue.wait_idle(TIMEOUT)

        for job_id in (first, second):
            job = store.get(job_id)
            assert job.status is JobStatus.COMPLETED
            assert job.progress == 100
            assert job.error is None
            assert job.completed_at >= job.created_at

    def test_result_is_recorded(self, queue, store):
        job_id = queue.submit({"name": "A", "result": "R"})
        assert queue.wait_idle(TIMEOUT)
        job = store.get(job_id)
        assert job.status is JobStatus.COMPLETED
        assert job.progress == 100
        assert job.result == "R"
        assert job.error is None

    def test_payload_passed_unchanged(self, queue, renderer):
        payload = {"name": "A", "quiz_result": "Explorer", "video_text": "hi"}
        queue.submit(payload)
        assert queue.wait_idle(TIMEOUT)
        assert renderer.calls == [payload]


class TestOrdering:
    def test_jobs_start_in_submission_order(self, queue, store, renderer):
        ids = [queue.submit({"name": f"job{i}"}) for i in range(10)]
        assert queue.wait_idle(TIMEOUT)

        assert [call["name"] for call in renderer.calls] == [f"job{i}" for i in range(10)]
        jobs = [store.get(job_id) for job_id in ids]
        starts = [job.started_at for job in jobs]
        assert starts == sorted(starts)
        assert len(set(starts)) == len(starts)
        # each job finished before the next one started
        for earlier, later in zip(jobs, jobs[1:]):
            assert earlier.completed_at < later.started_at

    def test_never_more_than_one_render_at_a_time(self, queue, renderer):
        for i in range(20):
            queue.submit({"name": f"job{i}", "progress": [10, 20]})
        assert queue.wait_idle(TIMEOUT)
        assert len(renderer.calls) == 20
        assert renderer.max_active == 1


class TestFailures:
    def test_failure_does_not_stop_later_jobs(self, queue, store):
        first = queue.submit({"name": "one"})
        second = queue.submit({"name": "two", "fail": "bad input"})
        third = queue.submit({"name": "three"})
        assert queue.wait_idle(TIMEOUT)

        assert store.get(first).status is JobStatus.COMPLETED
        assert store.get(third).status is JobStatus.COMPLETED

        failed = store.get(second)
        assert failed.status is JobStatus.FAILED
        assert failed.error == "bad input"
        assert failed.result is None
        assert failed.completed_at is not None

    def test_unexpected_exception_is_recorded(self, store):
        class Exploding:
            def render(self, payload, on_progress):
                raise ZeroDivisionError

        queue = JobQueue(store, Exploding())
        job_id = queue.submit({"name": "A"})
        assert queue.wait_idle(TIMEOUT)
        job = store.get(job_id)
        assert job.status is JobStatus.FAILED
        assert job.error == "ZeroDivisionError"

    def test_missing_result_fails_job(self, queue, store):
        job_id = queue.submit({"name": "A", "result": None})
        assert queue.wait_idle(TIMEOUT)
        job = store.get(job_id)
        assert job.status is JobStatus.FAILED
        assert job.error == "Renderer returned no result"

    def test_fallback_result_masks_failure(self, store, renderer):
        fallback = {"video_url": "/videos/sample.mp4", "filename": "sample.mp4"}
        queue = JobQueue(store, renderer, fallback_result=fallback)
        job_id = queue.submit({"name": "A", "fail": "engine missing"})
        assert queue.wait_idle(TIMEOUT)
        job = store.get(job_id)
        assert job.status is JobStatus.COMPLETED
        assert job.result == fallback
        assert job.error is None

    def test_job_evicted_before_processing_is_skipped(self, gated_queue, gated_renderer, store):
        first = gated_queue.submit({"name": "first"})
        second = gated_queue.submit({"name": "second"})
        third = gated_queue.submit({"name": "third"})
        assert gated_renderer.started.wait(TIMEOUT)

        with store._lock:
            del store._jobs[second]

        gated_renderer.release.set()
        assert gated_queue.wait_idle(TIMEOUT)

        assert [call["name"] for call in gated_renderer.calls] == ["first", "third"]
        assert store.get(first).status is JobStatus.COMPLETED
        assert store.get(third).status is JobStatus.COMPLETED
        with pytest.raises(JobNotFoundError):
            store.get(second)

    def test_job_vanishing_mid_render_does_not_stop_the_loop(
        self, gated_queue, gated_renderer, store,
    ):
        first = gated_queue.submit({"name": "first"})
        second = gated_queue.submit({"name": "second"})
        assert gated_renderer.started.wait(TIMEOUT)

        with store._lock:
            del store._jobs[first]

        gated_renderer.release.set()
        assert gated_queue.wait_idle(TIMEOUT)

        with pytest.raises(JobNotFoundError):
            store.get(first)
        assert store.get(second).status is JobStatus.COMPLETED

    def test_progress_for_vanished_job_does_not_stop_the_loop(self, store):
        class Vanishing:
            def render(self, payload, on_progress):
                if payload["name"] == "gone":
                    with store._lock:
                        job_id = next(
                            job.id for job in store._jobs.values()
                            if job.payload["name"] == "gone"
                        )
                        del store._jobs[job_id]
                on_progress(50)
                return f"result-{payload['name']}"

        queue = JobQueue(store, Vanishing())
        gone = queue.submit({"name": "gone"})
        kept = queue.submit({"name": "kept"})
        assert queue.wait_idle(TIMEOUT)

        assert gone not in store
        job = store.get(kept)
        assert job.status is JobStatus.COMPLETED
        assert job.result == "result-kept"


class TestProgress:
    def test_progress_is_clamped_and_monotonic(self, store):
        seen: list[int] = []

        class Reporting:
            def render(self, payload, on_progress):
                for value in (30, 10, 150, -5, 70):
                    on_progress(value)
                    seen.append(store.list_all()[0].progress)
                return "done"

        queue = JobQueue(store, Reporting())
        job_id = queue.submit({"name": "A"})
        assert queue.wait_idle(TIMEOUT)

        assert seen == [30, 30, 100, 100, 100]
        assert store.get(job_id).progress == 100

    def test_progress_updates_visible_while_processing(self, queue, store):
        job_id = queue.submit({"name": "A", "progress": [10, 50, 80]})
        assert queue.wait_idle(TIMEOUT)
        assert store.get(job_id).progress == 100


class TestLifecycle:
    def test_worker_exits_when_drained_and_restarts(self, queue, store):
        first = queue.submit({"name": "A"})
        assert queue.wait_idle(TIMEOUT)
        assert not queue.is_running
        assert queue.pending_count == 0

        second = queue.submit({"name": "B"})
        assert queue.wait_idle(TIMEOUT)
        assert store.get(first).status is JobStatus.COMPLETED
        assert store.get(second).status is JobStatus.COMPLETED

    def test_submit_returns_before_render_finishes(self, gated_queue, gated_renderer, store):
        job_id = gated_queue.submit({"name": "A"})
        assert store.get(job_id).status in {JobStatus.PENDING, JobStatus.PROCESSING}
        assert gated_queue.is_running
        gated_renderer.release.set()
        assert gated_queue.wait_idle(TIMEOUT)

    def test_wait_idle_times_out_while_busy(self, gated_queue, gated_renderer):
        gated_queue.submit({"name": "A"})
        assert gated_renderer.started.wait(TIMEOUT)
        assert not gated_queue.wait_idle(timeout=0.05)

    def test_shutdown_rejects_new_jobs(self, queue):
        queue.submit({"name": "A"})
        assert queue.shutdown(timeout=TIMEOUT)
        with pytest.raises(QueueClosedError):
            queue.submit({"name": "B"})

    def test_shutdown_drains_queued_jobs(self, gated_queue, gated_renderer, store):
        ids = [gated_queue.submit({"name": f"job{i}"}) for i in range(3)]
        assert gated_renderer.started.wait(TIMEOUT)
        gated_renderer.release.set()
        assert gated_queue.shutdown(timeout=TIMEOUT)
        assert all(store.get(job_id).status is JobStatus.COMPLETED for job_id in ids)

    def test_worker_start_failure_records_nothing(self, store, renderer, monkeypatch):
        class Unstartable:
            def __init__(self, *args, **kwargs):
                pass

            def start(self):
                msg = "can't start new thread"
                raise RuntimeError(msg)

        queue = JobQueue(store, renderer)
        monkeypatch.setattr("render_queue.jobs.queue.threading.Thread", Unstartable)

        with pytest.raises(RuntimeError):
            queue.submit({"name": "A"})

        assert store.list_all() == []
        assert queue.pending_count == 0
        assert not queue.is_running

        monkeypatch.undo()
        job_id = queue.submit({"name": "B"})
        assert queue.wait_idle(TIMEOUT)
        assert store.get(job_id).status is JobStatus.COMPLETED
